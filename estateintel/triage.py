"""Maintenance request triage from the tenant's free-text description.

Keywords are matched as lower-cased substrings, so short keywords such as
"ac" or "ant" also hit longer words.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from .features import contains_any, dedupe

logger = logging.getLogger(__name__)

CATEGORIES = ("Plumbing", "HVAC", "Electrical", "Appliance", "Structural",
              "Pest Control", "Noise Complaint", "Cleaning", "Other")
URGENCY_LEVELS = ("Low", "Medium", "High", "Critical")
URGENCY_SCORES = {"Low": 25.0, "Medium": 50.0, "High": 75.0, "Critical": 100.0}
URGENCY_COLORS = {"Low": "green", "Medium": "yellow", "High": "orange", "Critical": "red"}

# category -> (keywords, text confidence); order settles ties
CATEGORY_KEYWORDS: Dict[str, Tuple[Tuple[str, ...], float]] = {
    "Plumbing": (("leak", "water", "pipe", "drain", "toilet", "faucet", "sink", "shower", "bathtub", "clog"), 0.9),
    "HVAC": (("heat", "cold", "ac", "air conditioning", "thermostat", "temperature", "furnace",
              "cooling", "heating"), 0.85),
    "Electrical": (("electric", "power", "outlet", "light", "switch", "breaker", "wire", "spark"), 0.9),
    "Appliance": (("refrigerator", "stove", "oven", "dishwasher", "washer", "dryer", "microwave"), 0.85),
    "Noise Complaint": (("noise", "loud", "sound", "neighbor", "music", "barking"), 0.8),
    "Pest Control": (("bug", "insect", "mouse", "rat", "roach", "pest", "ant", "spider"), 0.9),
}
FALLBACK_CONFIDENCE = 0.5
IMAGE_CONFIDENCE = 0.7
MIN_CONFIDENCE = 0.6

CRITICAL_KEYWORDS = ("emergency", "urgent", "immediately", "dangerous", "safety", "fire", "gas", "flood", "spark")
HIGH_KEYWORDS = ("broken", "not working", "completely", "won't", "can't", "no water", "no heat")
MEDIUM_KEYWORDS = ("soon", "asap", "problem", "issue")

CONTRACTORS = {
    "Plumbing": "Ace Plumbing Services - (555) 123-4567",
    "HVAC": "CoolAir HVAC Specialists - (555) 234-5678",
    "Electrical": "Bright Electric Co. - (555) 345-6789",
    "Appliance": "Fix-It Appliance Repair - (555) 456-7890",
    "Structural": "Strong Build Contractors - (555) 567-8901",
    "Pest Control": "BugBe-Gone Exterminators - (555) 678-9012",
    "Cleaning": "Sparkle Clean Services - (555) 789-0123",
    "Noise Complaint": "Property Management Team",
    "Other": "General Maintenance Crew - (555) 890-1234",
}
BASE_COSTS = {
    "Plumbing": 150.0, "HVAC": 200.0, "Electrical": 125.0, "Appliance": 100.0, "Structural": 300.0,
    "Pest Control": 175.0, "Cleaning": 75.0, "Noise Complaint": 0.0, "Other": 100.0,
}
URGENCY_MULTIPLIERS = {"Low": 1.0, "Medium": 1.2, "High": 1.5, "Critical": 2.0}
DURATIONS = {"Critical": "Same day", "High": "1-2 days", "Medium": "3-5 days", "Low": "1-2 weeks"}


@dataclass(frozen=True)
class TriageResult:
    category: str
    urgency: str
    urgency_score: float  # 0-100
    confidence: float
    detected_issues: List[str]
    suggested_contractor: str
    estimated_cost: float
    estimated_duration: str


def analyze_text(text: str) -> Tuple[str, float, List[str]]:
    """(category, confidence, issues) from keyword hits"""
    lowered = text.lower()
    issues: List[str] = []
    scores: Dict[str, float] = {}

    for category, (keywords, confidence) in CATEGORY_KEYWORDS.items():
        if not contains_any(lowered, keywords):
            continue
        scores[category] = confidence
        if category == "Plumbing":
            if "leak" in lowered:
                issues.append("Water leak detected")
            if "clog" in lowered:
                issues.append("Drainage issue")
        elif category == "HVAC":
            if "not working" in lowered or "broken" in lowered:
                issues.append("System malfunction")
        elif category == "Electrical":
            if "spark" in lowered:
                issues.append("Electrical hazard")
        elif category == "Appliance":
            issues.append("Appliance issue")
        elif category == "Noise Complaint":
            issues.append("Noise disturbance")
        elif category == "Pest Control":
            issues.append("Pest infestation")

    if not scores:
        return "Other", FALLBACK_CONFIDENCE, issues
    # max() keeps the first maximal entry, i.e. declaration order on ties
    top = max(scores.items(), key=lambda kv: kv[1])
    return top[0], top[1], issues


def calculate_urgency(description: str, category: str, issues: List[str]) -> str:
    if contains_any(description, CRITICAL_KEYWORDS):
        return "Critical"
    if contains_any(description, HIGH_KEYWORDS):
        return "High"
    if category == "Electrical" and "Electrical hazard" in issues:
        return "Critical"
    if category == "Plumbing" and "Water leak detected" in issues:
        return "High"
    if contains_any(description, MEDIUM_KEYWORDS):
        return "Medium"
    return "Low"


def estimate_cost(category: str, urgency: str) -> float:
    return BASE_COSTS.get(category, 100.0) * URGENCY_MULTIPLIERS.get(urgency, 1.0)


def analyze_request(description: str, image_count: int = 0) -> TriageResult:
    """Classify and prioritise a request.

    Attached photos are not inspected here; their presence adds the fixed
    image-review confidence and a visual-damage note.
    """
    category, text_confidence, issues = analyze_text(description)
    image_confidence = 0.0
    if image_count > 0:
        image_confidence = IMAGE_CONFIDENCE
        issues.append("Visual damage detected")

    issues = dedupe(issues)
    urgency = calculate_urgency(description, category, issues)
    confidence = max((text_confidence + image_confidence) / 2.0, MIN_CONFIDENCE)
    logger.debug("triaged request as %s/%s (confidence %.2f)", category, urgency, confidence)

    return TriageResult(
        category=category,
        urgency=urgency,
        urgency_score=URGENCY_SCORES[urgency],
        confidence=confidence,
        detected_issues=issues,
        suggested_contractor=CONTRACTORS.get(category, CONTRACTORS["Other"]),
        estimated_cost=estimate_cost(category, urgency),
        estimated_duration=DURATIONS[urgency],
    )
