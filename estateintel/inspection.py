from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .models import DamageDetection, Inspection

logger = logging.getLogger(__name__)

CONDITIONS = ("Poor", "Fair", "Good", "Excellent")
REPAIR_COSTS = {"Minor": 50.0, "Moderate": 150.0, "Major": 500.0}


@dataclass(frozen=True)
class ComparisonReport:
    changes_found: int
    new_damages: List[DamageDetection]
    restored_items: List[str]
    damage_responsibility: str


def condition_rating(damages: Sequence[DamageDetection]) -> str:
    if not damages:
        return "Excellent"
    major = sum(1 for d in damages if d.severity == "Major")
    moderate = sum(1 for d in damages if d.severity == "Moderate")
    if major > 2 or len(damages) > 10:
        return "Poor"
    if major > 0 or moderate > 3 or len(damages) > 5:
        return "Fair"
    return "Good"


def repair_cost(damages: Sequence[DamageDetection]) -> float:
    return sum(REPAIR_COSTS.get(d.severity, 0.0) for d in damages)


def damages_from_json(raw: Optional[str]) -> List[DamageDetection]:
    """Decode a stored [{room, damageType, severity, location}] list."""
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("ignoring malformed damage JSON")
        return []
    out: List[DamageDetection] = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        severity = item.get("severity", "Minor")
        if not isinstance(severity, str) or severity not in REPAIR_COSTS:
            logger.warning("unknown damage severity %r, using Minor", severity)
            severity = "Minor"
        try:
            confidence = float(item.get("confidence", 0.0) or 0.0)
        except (TypeError, ValueError):
            logger.warning("ignoring non-numeric damage confidence %r", item.get("confidence"))
            confidence = 0.0
        out.append(DamageDetection(
            room=str(item.get("room", "")),
            damage_type=str(item.get("damageType", item.get("damage_type", "Other"))),
            severity=severity,
            location=str(item.get("location", "")),
            confidence=confidence,
        ))
    return out


def _same_spot(a: DamageDetection, b: DamageDetection) -> bool:
    return a.room == b.room and a.damage_type == b.damage_type


def compare_inspections(move_in: Inspection, move_out: Inspection) -> ComparisonReport:
    """Damages present at move-out but not move-in, and the reverse."""
    new = [d for d in move_out.damages if not any(_same_spot(d, x) for x in move_in.damages)]
    restored = [f"{d.damage_type} in {d.room}"
                for d in move_in.damages if not any(_same_spot(d, x) for x in move_out.damages)]

    if not new:
        responsibility = "No new damages - security deposit should be returned in full"
    elif all(d.severity == "Minor" for d in new):
        responsibility = "Minor wear and tear - typically normal rental use"
    else:
        responsibility = "Tenant responsibility - damages exceed normal wear and tear"

    return ComparisonReport(
        changes_found=len(new) + len(restored),
        new_damages=new,
        restored_items=restored,
        damage_responsibility=responsibility,
    )
