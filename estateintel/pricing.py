"""Rent recommendation: a size-based base rent compounded by percentage premiums."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Optional

from .classify import round_to_increment
from .config import env_float
from .models import Property, Unit

logger = logging.getLogger(__name__)

SQFT_RATE = 2.50
BEDROOM_VALUE = 300.0
BATHROOM_VALUE = 150.0
HIGH_FLOOR_PREMIUM = 0.05
ROUNDING_STEP = 25.0
CONFIDENCE = 0.78


@dataclass(frozen=True)
class PricingAssumptions:
    amenity_premium: float = 0.08
    location_premium: float = 0.12
    market_trend: float = 0.04
    feature_premium: float = 0.05

    @classmethod
    def from_env(cls) -> "PricingAssumptions":
        return cls(
            amenity_premium=env_float("ESTATEINTEL_PRICING_AMENITY", cls.amenity_premium),
            location_premium=env_float("ESTATEINTEL_PRICING_LOCATION", cls.location_premium),
            market_trend=env_float("ESTATEINTEL_PRICING_MARKET_TREND", cls.market_trend),
            feature_premium=env_float("ESTATEINTEL_PRICING_FEATURES", cls.feature_premium),
        )


@dataclass(frozen=True)
class JustificationFactor:
    category: str
    impact: float  # percentage points
    description: str


@dataclass(frozen=True)
class MarketComparison:
    average_in_area: float
    percentile: int
    competitive_position: str


@dataclass(frozen=True)
class PricingRecommendation:
    recommended_rent: float
    current_rent: float
    change_percentage: float
    confidence: float
    justification_factors: List[JustificationFactor]
    market_comparison: MarketComparison


@dataclass(frozen=True)
class WhatIfScenario:
    scenario_name: str
    adjusted_rent: float
    factors: Dict[str, float] = field(default_factory=dict)


def base_rent(u: Unit) -> float:
    """sqft x 2.50 + 300/bedroom + 150/bathroom, +5% above the third floor"""
    rent = u.square_feet * SQFT_RATE + u.bedrooms * BEDROOM_VALUE + u.bathrooms * BATHROOM_VALUE
    if u.floor > 3:
        rent *= 1.0 + HIGH_FLOOR_PREMIUM
    return rent

def seasonal_adjustment(month: int) -> float:
    if month in (4, 5, 6):
        return 0.05
    if month in (9, 10):
        return 0.03
    if month in (11, 12, 1, 2):
        return -0.02
    return 0.0

def change_percentage(recommended: float, current: float) -> float:
    return 0.0 if current <= 0 else (recommended - current) / current * 100.0


def calculate_optimal_rent(
    u: Unit,
    prop: Optional[Property] = None,
    asof: date | None = None,
    assumptions: Optional[PricingAssumptions] = None,
) -> PricingRecommendation:
    asof = asof or date.today()
    a = assumptions or PricingAssumptions()
    rent = base_rent(u)
    factors: List[JustificationFactor] = []

    if prop is not None:
        rent *= 1.0 + a.amenity_premium
        factors.append(JustificationFactor(
            "Property Amenities", a.amenity_premium * 100,
            f"Gym, pool, and parking add {int(a.amenity_premium * 100)}% value"))

    rent *= 1.0 + a.location_premium
    factors.append(JustificationFactor("Location Premium", a.location_premium * 100,
                                       "Desirable neighborhood with good schools"))

    seasonal = seasonal_adjustment(asof.month)
    rent *= 1.0 + seasonal
    if abs(seasonal) > 0.01:
        factors.append(JustificationFactor(
            "Seasonal Demand", seasonal * 100,
            "Peak rental season (spring/summer)" if seasonal > 0 else "Off-season discount"))

    rent *= 1.0 + a.market_trend
    factors.append(JustificationFactor(
        "Market Trends", a.market_trend * 100,
        "Rising market conditions" if a.market_trend > 0 else "Softening market"))

    rent *= 1.0 + a.feature_premium
    if abs(a.feature_premium) > 0.01:
        factors.append(JustificationFactor("Unit Features", a.feature_premium * 100,
                                           "Updated appliances and flooring"))

    recommended = round_to_increment(rent, ROUNDING_STEP)
    logger.debug("unit %s: base %.2f -> recommended %.2f", u.id, base_rent(u), recommended)

    return PricingRecommendation(
        recommended_rent=recommended,
        current_rent=u.monthly_rent,
        change_percentage=change_percentage(recommended, u.monthly_rent),
        confidence=CONFIDENCE,
        justification_factors=factors,
        market_comparison=MarketComparison(recommended * 0.97, 65, "Above Average"),
    )


def calculate_what_if_scenario(base: float, adjustments: Mapping[str, float],
                               name: str = "Custom Scenario") -> WhatIfScenario:
    """Compound each fractional adjustment onto `base` and round to $25."""
    rent = base
    for value in adjustments.values():
        rent *= 1.0 + value
    return WhatIfScenario(name, round_to_increment(rent, ROUNDING_STEP), dict(adjustments))
