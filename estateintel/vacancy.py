"""Move-out probability and vacancy planning for occupied units."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

from .classify import bucket
from .features import (
    days_between, late_ratio, most_recent_messages, most_recent_payments,
    urgent_request_count,
)
from .models import Property, Tenant, Unit, is_occupied

logger = logging.getLogger(__name__)

RISK_LEVELS = ("Low Risk", "Medium Risk", "High Risk", "Imminent Move-Out")
RISK_CUTOFFS = [(0.8, "Imminent Move-Out"), (0.6, "High Risk"), (0.35, "Medium Risk")]
RISK_COLORS = {"Low Risk": "green", "Medium Risk": "yellow", "High Risk": "orange", "Imminent Move-Out": "red"}

WEIGHTS = {"lease_end": 0.40, "payment": 0.25, "complaints": 0.20, "engagement": 0.15}

Factor = Tuple[float, str]  # (score 0-1, indicator text or "")


@dataclass(frozen=True)
class VacancyPrediction:
    unit_id: str
    unit_number: str
    tenant_id: Optional[str]
    move_out_probability: float  # 0-1
    predicted_vacancy_date: Optional[date]
    risk_level: str
    behavioral_indicators: List[str]
    predicted_vacancy_duration: int  # days
    marketing_recommendations: List[str]


# ------------------------------------------------------------
# Factors
# ------------------------------------------------------------

def lease_end_factor(u: Unit, asof: date) -> Factor:
    if u.lease_end_date is None:
        return 0.1, ""
    days = days_between(asof, u.lease_end_date)
    if days < 0:
        return 1.0, "Lease has expired"
    if days < 30:
        return 0.9, f"Lease ending in {days} days"
    if days < 60:
        return 0.6, "Lease ending within 2 months"
    if days < 90:
        return 0.3, "Lease ending within 3 months"
    return 0.05, ""


def payment_factor(t: Tenant) -> Factor:
    if not t.payments:
        return 0.0, ""
    recent_late = sum(1 for p in most_recent_payments(t.payments, 3) if p.is_late)
    late = late_ratio(t.payments)
    if recent_late >= 2:
        return 0.8, "Multiple recent late payments"
    if late > 0.3:
        return 0.5, "Frequent payment delays"
    if late > 0.1:
        return 0.2, "Occasional late payments"
    return 0.0, ""


def complaint_factor(t: Tenant) -> Factor:
    count = len(t.maintenance_requests)
    if count > 10:
        return 0.7, f"High volume of maintenance requests ({count})"
    if urgent_request_count(t.maintenance_requests) > 3:
        return 0.6, "Multiple urgent requests - possible dissatisfaction"
    if count > 5:
        return 0.3, "Above average maintenance requests"
    return 0.0, ""


def engagement_factor(t: Tenant) -> Factor:
    if not t.messages:
        return 0.1, ""
    negative = sum(1 for m in most_recent_messages(t.messages, 5) if m.sentiment == "Negative")
    if negative >= 3:
        return 0.7, "Recent negative communication pattern"
    if negative >= 2:
        return 0.4, "Some negative sentiment detected"
    return 0.0, ""


# ------------------------------------------------------------
# Estimates
# ------------------------------------------------------------

def estimate_vacancy_date(u: Unit, probability: float, asof: date) -> Optional[date]:
    if probability < 0.3:
        return None
    if u.lease_end_date is not None and days_between(asof, u.lease_end_date) < 90:
        return u.lease_end_date
    return asof + timedelta(days=int((1.0 - probability) * 180))


def estimate_vacancy_duration(u: Unit, asof: date) -> int:
    """Days to re-let: larger and pricier units take longer, summer is faster."""
    days = 30 + u.bedrooms * 5
    if u.monthly_rent > 2000:
        days += 15
    elif u.monthly_rent > 1500:
        days += 7

    if 4 <= asof.month <= 8:
        days = int(days * 0.8)
    elif asof.month >= 11 or asof.month <= 2:
        days = int(days * 1.2)
    return days


def marketing_recommendations(u: Unit, risk_level: str, duration: int) -> List[str]:
    recs: List[str] = []
    if risk_level in ("Imminent Move-Out", "High Risk"):
        recs += [
            "Start marketing immediately to minimize vacancy",
            "Schedule professional photos and virtual tour",
            "Consider offering move-in incentives (first month discount)",
        ]
    elif risk_level == "Medium Risk":
        recs += [
            "Begin pre-marketing 30 days before expected vacancy",
            "Prepare unit listing with current photos",
        ]
    if duration > 45:
        recs += [
            "Expand marketing channels (Zillow, Apartments.com, local ads)",
            "Review pricing - may be above market rate",
        ]
    if u.bedrooms >= 3:
        recs.append("Target family-oriented marketing (schools, parks nearby)")
    return recs


# ------------------------------------------------------------
# Entry points
# ------------------------------------------------------------

def analyze_unit(u: Unit, asof: date | None = None) -> Optional[VacancyPrediction]:
    """Move-out prediction for the unit's current tenant; None when vacant."""
    t = u.current_tenant
    if t is None:
        return None
    asof = asof or date.today()

    factors = {
        "lease_end": lease_end_factor(u, asof),
        "payment": payment_factor(t),
        "complaints": complaint_factor(t),
        "engagement": engagement_factor(t),
    }
    probability = min(sum(WEIGHTS[k] * score for k, (score, _) in factors.items()), 1.0)
    indicators = [text for _, text in factors.values() if text]
    level = bucket(probability, RISK_CUTOFFS, "Low Risk")
    duration = estimate_vacancy_duration(u, asof)
    logger.debug("unit %s move-out probability %.2f (%s)", u.id, probability, level)

    return VacancyPrediction(
        unit_id=str(u.id),
        unit_number=u.unit_number,
        tenant_id=str(t.id),
        move_out_probability=probability,
        predicted_vacancy_date=estimate_vacancy_date(u, probability, asof),
        risk_level=level,
        behavioral_indicators=indicators,
        predicted_vacancy_duration=duration,
        marketing_recommendations=marketing_recommendations(u, level, duration),
    )


def predict_vacancies(p: Property, asof: date | None = None) -> List[VacancyPrediction]:
    """Predictions for every occupied unit, most likely move-out first."""
    asof = asof or date.today()
    predictions = [analyze_unit(u, asof) for u in p.units if is_occupied(u, asof)]
    return sorted((x for x in predictions if x is not None),
                  key=lambda x: x.move_out_probability, reverse=True)
