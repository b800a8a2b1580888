"""Tenant satisfaction (0-100) and retention probability (0-1).

The score starts at a neutral 50 and each factor adds its signed points times
the factor weight:

    maintenance response 0.30, communication 0.25, resolution 0.20,
    property condition 0.15, value perception 0.10
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from .classify import bucket_below, clamp
from .features import (
    average_resolution_days, completion_rate, days_between, late_count,
    most_recent_messages, sentiment_ratio,
)
from .models import Tenant

logger = logging.getLogger(__name__)

NEUTRAL_START = 50.0
WEIGHTS = {
    "Maintenance Response": 0.30,
    "Communication Quality": 0.25,
    "Issue Resolution": 0.20,
    "Property Condition": 0.15,
    "Value Perception": 0.10,
}

RISK_LEVELS = ("Low Risk", "Medium Risk", "High Risk")
RISK_CUTOFFS = [(50.0, "High Risk"), (70.0, "Medium Risk")]
RISK_COLORS = {"Low Risk": "green", "Medium Risk": "yellow", "High Risk": "red"}

IMPACTS = ("Very Negative", "Negative", "Neutral", "Positive", "Very Positive")


@dataclass(frozen=True)
class Factor:
    category: str
    impact: str
    score: float
    description: str


@dataclass(frozen=True)
class Intervention:
    priority: str  # Immediate, Within 1 Week, Planned
    action: str
    expected_impact: str


@dataclass(frozen=True)
class SatisfactionAnalysis:
    satisfaction_score: float  # 0-100
    retention_probability: float  # 0-1
    risk_level: str
    satisfaction_factors: List[Factor]
    intervention_suggestions: List[Intervention]
    trend: str  # Improving, Stable, Declining


def maintenance_response_factor(t: Tenant) -> Factor:
    category = "Maintenance Response"
    requests = t.maintenance_requests
    if not requests:
        return Factor(category, "Neutral", 0, "No maintenance requests on record")

    rate = completion_rate(requests)
    avg_days = average_resolution_days(requests)
    if rate >= 0.9 and avg_days <= 2:
        return Factor(category, "Very Positive", 20,
                      f"Excellent maintenance response - average {int(avg_days)} day turnaround")
    if rate >= 0.75 and avg_days <= 5:
        return Factor(category, "Positive", 10, "Good maintenance response time")
    if avg_days > 10:
        return Factor(category, "Very Negative", -15, f"Slow maintenance response - average {int(avg_days)} days")
    return Factor(category, "Neutral", 0, "Average maintenance response")


def communication_quality_factor(t: Tenant) -> Factor:
    category = "Communication Quality"
    if not t.messages:
        return Factor(category, "Neutral", 0, "Limited communication history")
    if sentiment_ratio(t.messages, "Positive") > 0.6:
        return Factor(category, "Very Positive", 15, "Consistently positive interactions")
    negative = sentiment_ratio(t.messages, "Negative")
    if negative > 0.5:
        return Factor(category, "Very Negative", -20, "Frequent negative communications - needs immediate attention")
    if negative > 0.3:
        return Factor(category, "Negative", -10, "Some dissatisfaction expressed in messages")
    return Factor(category, "Positive", 5, "Generally positive communication tone")


def resolution_rate_factor(t: Tenant) -> Factor:
    category = "Issue Resolution"
    if not t.maintenance_requests:
        return Factor(category, "Neutral", 0, "No issues reported")
    rate = completion_rate(t.maintenance_requests)
    if rate >= 0.95:
        return Factor(category, "Very Positive", 12, f"{int(rate * 100)}% of issues resolved successfully")
    if rate >= 0.80:
        return Factor(category, "Positive", 6, "Most issues resolved")
    if rate < 0.60:
        return Factor(category, "Very Negative", -12, "Low resolution rate - many open issues")
    return Factor(category, "Neutral", 0, "Average issue resolution")


def property_condition_factor(t: Tenant) -> Factor:
    category = "Property Condition"
    count = len(t.maintenance_requests)
    if count > 10:
        return Factor(category, "Negative", -8, "High maintenance frequency may indicate property condition issues")
    if count > 6:
        return Factor(category, "Neutral", -3, "Moderate maintenance needs")
    return Factor(category, "Positive", 8, "Property in good condition with minimal issues")


def value_perception_factor(t: Tenant, market_average_rent: Optional[float] = None) -> Factor:
    """Rent against the area average; without market data the average is assumed 5% above rent."""
    category = "Value Perception"
    rent = t.monthly_rent
    market = rent * 1.05 if market_average_rent is None else market_average_rent
    if rent < market * 0.95:
        return Factor(category, "Positive", 8, "Excellent value - below market average")
    if rent > market * 1.10:
        return Factor(category, "Negative", -6, "Rent above market - value concerns possible")
    return Factor(category, "Neutral", 2, "Rent aligns with market value")


def retention_probability(score: float, t: Tenant, asof: date) -> float:
    probability = score / 100.0
    if t.lease_end_date is not None and days_between(asof, t.lease_end_date) < 60:
        probability *= 0.7
    if late_count(t.payments) > 2:
        probability *= 0.85
    return clamp(probability, 0.0, 1.0)


def sentiment_trend(t: Tenant) -> str:
    """Positive messages among the 3 newest against the 3 before them."""
    if len(t.messages) < 5:
        return "Stable"
    ordered = most_recent_messages(t.messages)
    recent = sum(1 for m in ordered[:3] if m.sentiment == "Positive")
    older = sum(1 for m in ordered[3:6] if m.sentiment == "Positive")
    if recent > older:
        return "Improving"
    if recent < older:
        return "Declining"
    return "Stable"


def generate_interventions(score: float, factors: List[Factor], trend: str) -> List[Intervention]:
    by_category = {f.category: f for f in factors}
    out: List[Intervention] = []

    if score < 50:
        out.append(Intervention("Immediate", "Schedule personal check-in call with tenant",
                                "Address concerns before they escalate"))

    maintenance = by_category.get("Maintenance Response")
    if maintenance is not None and maintenance.impact in ("Negative", "Very Negative"):
        out.append(Intervention("Immediate", "Expedite all pending maintenance requests",
                                "Improve satisfaction by 15-20 points"))

    communication = by_category.get("Communication Quality")
    if communication is not None and communication.impact == "Very Negative":
        out.append(Intervention("Within 1 Week", "Send personalized message acknowledging concerns",
                                "Demonstrate responsiveness and care"))

    if trend == "Declining":
        out.append(Intervention("Within 1 Week", "Offer amenity upgrade or small rent concession",
                                "Reverse negative trend and improve retention"))

    if score >= 70 and trend != "Declining":
        out.append(Intervention("Planned", "Proactively offer lease renewal with incentive",
                                "Lock in satisfied tenant before market changes"))
    return out


def predict_satisfaction(
    t: Tenant,
    asof: date | None = None,
    market_average_rent: Optional[float] = None,
) -> SatisfactionAnalysis:
    asof = asof or date.today()
    factors = [
        maintenance_response_factor(t),
        communication_quality_factor(t),
        resolution_rate_factor(t),
        property_condition_factor(t),
        value_perception_factor(t, market_average_rent),
    ]
    score = clamp(NEUTRAL_START + sum(f.score * WEIGHTS[f.category] for f in factors))
    trend = sentiment_trend(t)
    logger.debug("tenant %s satisfaction %.1f trend %s", t.id, score, trend)

    return SatisfactionAnalysis(
        satisfaction_score=score,
        retention_probability=retention_probability(score, t, asof),
        risk_level=bucket_below(score, RISK_CUTOFFS, "Low Risk"),
        satisfaction_factors=factors,
        intervention_suggestions=generate_interventions(score, factors, trend),
        trend=trend,
    )
