"""Equipment failure prediction from a property's repair history."""
from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Union

from .classify import bucket_below, clamp
from .features import as_date, days_between, mean, population_variance, season_for_month
from .models import MaintenanceLog, Property

logger = logging.getLogger(__name__)

SEVERITIES = ("Low", "Medium", "High", "Critical")
SEVERITY_CUTOFFS = [(7, "Critical"), (30, "High"), (90, "Medium")]
SEVERITY_COLORS = {"Low": "green", "Medium": "yellow", "High": "orange", "Critical": "red"}

# typical days between failures when a history has no interval yet
DEFAULT_LIFESPANS = {
    "HVAC": 180,
    "Water Heater": 365,
    "Elevator": 90,
    "Plumbing": 120,
    "Electrical": 180,
    "Appliance": 365,
}
DEFAULT_LIFESPAN = 180
MIN_CONFIDENCE = 0.3
COST_BUFFER = 1.1
DEFAULT_COST_BUFFER = 1.2

ACTIONS = {
    "Critical": "URGENT: Schedule immediate inspection and prepare for replacement. "
                "Failure expected within {days} days.",
    "High": "Schedule preventive maintenance within 1-2 weeks. Order replacement parts in advance.",
    "Medium": "Plan preventive maintenance for next routine service window. Monitor equipment performance.",
    "Low": "Add to quarterly maintenance checklist. Continue normal monitoring.",
}


@dataclass(frozen=True)
class MaintenancePrediction:
    equipment_type: str
    equipment_id: str
    predicted_failure_date: date
    confidence: float  # 0-1
    severity: str
    estimated_cost: float
    risk_factors: List[str]
    recommended_action: str


def _repair_day(log: MaintenanceLog) -> date:
    return as_date(log.repair_date) or date.min


def identify_risk_factors(logs: List[MaintenanceLog], asof: date) -> List[str]:
    factors: List[str] = []

    if len(logs) >= 3:
        recent = sorted(logs, key=_repair_day, reverse=True)[:3]
        newest, oldest = recent[0].repair_date, recent[-1].repair_date
        if newest is not None and oldest is not None and days_between(oldest, newest) < 30:
            factors.append("Increasing failure frequency")

    severe = sum(1 for log in logs if log.severity in ("High", "Critical"))
    if severe / len(logs) > 0.3:
        factors.append("History of severe failures")

    season = season_for_month(asof.month)
    if sum(1 for log in logs if log.season == season) / len(logs) > 0.4:
        factors.append("Seasonal failure pattern")

    if len(logs) >= 2:
        costs = [log.repair_cost for log in logs]
        if max(costs) > min(costs) * 2:
            factors.append("Escalating repair costs")

    return factors or ["Normal wear and tear"]


def default_prediction(equipment_type: str, last: MaintenanceLog, asof: date) -> MaintenancePrediction:
    lifespan = DEFAULT_LIFESPANS.get(equipment_type, DEFAULT_LIFESPAN)
    start = as_date(last.repair_date) or asof
    return MaintenancePrediction(
        equipment_type=equipment_type,
        equipment_id=last.equipment_id or "Unknown",
        predicted_failure_date=start + timedelta(days=lifespan),
        confidence=0.5,
        severity="Medium",
        estimated_cost=last.repair_cost * DEFAULT_COST_BUFFER,
        risk_factors=["Limited historical data"],
        recommended_action="Monitor equipment closely and schedule inspection",
    )


def predict_failure(equipment_type: str, logs: List[MaintenanceLog],
                    asof: date | None = None) -> Optional[MaintenancePrediction]:
    if not logs:
        return None
    asof = asof or date.today()
    ordered = sorted(logs, key=_repair_day)

    intervals = [
        float(days_between(prev.repair_date, cur.repair_date))
        for prev, cur in zip(ordered, ordered[1:])
        if prev.repair_date is not None and cur.repair_date is not None
    ]
    if not intervals:
        return default_prediction(equipment_type, ordered[-1], asof)

    avg = mean(intervals)
    last_repair = as_date(ordered[-1].repair_date) or asof
    predicted = last_repair + timedelta(days=avg)

    # consistent intervals -> high confidence; variance and mean are in days, not seconds
    if avg > 0:
        confidence = clamp(1.0 - population_variance(intervals, avg) / avg, MIN_CONFIDENCE, 1.0)
    else:
        confidence = MIN_CONFIDENCE

    days_until = days_between(asof, predicted)
    severity = bucket_below(days_until, SEVERITY_CUTOFFS, "Low")

    return MaintenancePrediction(
        equipment_type=equipment_type,
        equipment_id=ordered[-1].equipment_id or "Unknown",
        predicted_failure_date=predicted,
        confidence=confidence,
        severity=severity,
        estimated_cost=mean([log.repair_cost for log in logs]) * COST_BUFFER,
        risk_factors=identify_risk_factors(logs, asof),
        recommended_action=ACTIONS[severity].format(days=days_until),
    )


def analyze_maintenance(source: Union[Property, Iterable[MaintenanceLog]],
                        asof: date | None = None) -> List[MaintenancePrediction]:
    """One prediction per equipment type, soonest failure first."""
    asof = asof or date.today()
    logs = source.maintenance_logs if isinstance(source, Property) else list(source)

    grouped: Dict[str, List[MaintenanceLog]] = defaultdict(list)
    for log in logs:
        grouped[log.equipment_type or "Unknown"].append(log)

    predictions = [predict_failure(kind, group, asof) for kind, group in grouped.items()]
    predictions = [p for p in predictions if p is not None]
    logger.debug("%d equipment predictions from %d logs", len(predictions), len(logs))
    return sorted(predictions, key=lambda p: p.predicted_failure_date)
