"""Tenant screening: reliability score (0-100) from five weighted components.

Components and their point ceilings:

    Financial Reliability   35
    Employment Stability    20
    Communication History   20
    Rental History          15
    Document Verification   10
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, List, Optional

from .classify import bucket, clamp
from .features import late_ratio, rent_to_income_ratio, sentiment_ratio
from .models import Tenant, is_lease_active

logger = logging.getLogger(__name__)

RECOMMENDATIONS = ("Not Recommended", "Conditional Approval", "Recommend", "Strongly Recommend")
RECOMMENDATION_CUTOFFS = [(85.0, "Strongly Recommend"), (70.0, "Recommend"), (55.0, "Conditional Approval")]
RECOMMENDATION_COLORS = {
    "Strongly Recommend": "green",
    "Recommend": "blue",
    "Conditional Approval": "orange",
    "Not Recommended": "red",
}

REQUIRED_DOCUMENT_TYPES = ("ID", "PayStub", "Lease")


@dataclass(frozen=True)
class ScoreComponent:
    category: str
    score: float
    max_points: float
    weight: float
    explanation: str


@dataclass(frozen=True)
class ScreeningResult:
    reliability_score: float  # 0-100
    score_breakdown: List[ScoreComponent]
    strengths: List[str]
    red_flags: List[str]
    recommendation: str
    comparison_rank: Optional[int] = None
    tenant_id: Optional[str] = field(default=None, compare=False)


# (strength at or above, red flag below, strength text, red flag text)
_VERDICTS = {
    "Financial Reliability": (25, 15, "Strong financial profile", "Weak financial stability"),
    "Employment Stability": (15, 10, "Stable employment", "Employment concerns"),
    "Communication History": (15, 10, "Excellent communication", "Poor communication responsiveness"),
    "Rental History": (12, 8, "Positive rental history", "Rental history concerns"),
    "Document Verification": (8, 5, "All documents verified", "Document verification issues"),
}


def _component(category: str, score: float, max_points: float, explanation: str) -> ScoreComponent:
    return ScoreComponent(category, clamp(score, 0.0, max_points), max_points, 1.0, explanation)


def evaluate_financial_stability(t: Tenant) -> ScoreComponent:
    score = 0.0
    burden = rent_to_income_ratio(t)
    if burden is not None:
        if burden <= 0.25:
            score += 20
        elif burden <= 0.30:
            score += 17
        elif burden <= 0.35:
            score += 14
        elif burden <= 0.40:
            score += 10
        else:
            score += 5

    if t.security_deposit >= t.monthly_rent:
        score += 10
    elif t.security_deposit >= t.monthly_rent * 0.5:
        score += 5

    if t.payments:
        late = late_ratio(t.payments)
        if late == 0:
            score += 5
        elif late > 0.2:
            score -= 5

    if score >= 30:
        explanation = "Excellent financial position with strong income-to-rent ratio"
    elif score >= 20:
        explanation = "Good financial stability"
    else:
        explanation = "Financial concerns regarding ability to afford rent"
    return _component("Financial Reliability", score, 35, explanation)


def evaluate_employment(t: Tenant) -> ScoreComponent:
    status = t.employment_status.lower() if t.employment_status is not None else None
    if status is None:
        score = 8.0
    elif "full-time" in status or "full time" in status:
        score = 15.0
    elif "part-time" in status or "part time" in status:
        score = 10.0
    elif "self-employed" in status:
        score = 12.0
    elif "unemployed" in status:
        score = 2.0
    else:
        score = 8.0
    score += 5  # verifiable income documentation
    return _component("Employment Stability", score, 20, f"Employment: {t.employment_status or 'Not specified'}")


def evaluate_communication(t: Tenant) -> ScoreComponent:
    messages = t.messages
    if not messages:
        score = 12.0
    else:
        if sentiment_ratio(messages, "Positive") > 0.5:
            score = 10.0
        elif sentiment_ratio(messages, "Negative") > 0.5:
            score = 3.0
        else:
            score = 6.0
        if len(messages) < 5:
            score += 5
        elif len(messages) < 10:
            score += 3
        else:
            score += 1
        score += 5  # responsiveness
    return _component("Communication History", score, 20,
                      "Communication pattern appears professional and reasonable")


def evaluate_rental_history(t: Tenant, asof: date | None = None) -> ScoreComponent:
    count = len(t.maintenance_requests)
    if count == 0:
        score = 10.0
    elif count < 3:
        score = 8.0
    elif count < 6:
        score = 5.0
    else:
        score = 2.0
    if is_lease_active(t, asof):
        score += 5
    return _component("Rental History", score, 15, "Rental behavior suggests responsible tenancy")


def evaluate_documents(t: Tenant) -> ScoreComponent:
    if not t.documents:
        return _component("Document Verification", 5, 10, "No documents submitted yet")

    score = 0.0
    found = set()
    for doc in t.documents:
        if doc.document_type is None:
            continue
        found.add(doc.document_type)
        if doc.extraction_confidence > 0.7:
            score += 2
        elif doc.extraction_confidence > 0.5:
            score += 1
    if all(kind in found for kind in REQUIRED_DOCUMENT_TYPES):
        score += 4
    return _component("Document Verification", score, 10, "Document verification complete")


def screen_tenant(t: Tenant, asof: date | None = None) -> ScreeningResult:
    components = [
        evaluate_financial_stability(t),
        evaluate_employment(t),
        evaluate_communication(t),
        evaluate_rental_history(t, asof),
        evaluate_documents(t),
    ]

    strengths: List[str] = []
    red_flags: List[str] = []
    for c in components:
        good_at, bad_below, good_text, bad_text = _VERDICTS[c.category]
        if c.score >= good_at:
            strengths.append(good_text)
        elif c.score < bad_below:
            red_flags.append(bad_text)

    total = clamp(sum(c.score * c.weight for c in components))
    recommendation = bucket(total, RECOMMENDATION_CUTOFFS, "Not Recommended")
    logger.debug("screened tenant %s: %.1f (%s)", t.id, total, recommendation)

    return ScreeningResult(
        reliability_score=total,
        score_breakdown=components,
        strengths=strengths,
        red_flags=red_flags,
        recommendation=recommendation,
        tenant_id=str(t.id),
    )


def compare_applicants(tenants: Iterable[Tenant], asof: date | None = None) -> List[ScreeningResult]:
    """Screen every applicant and rank them, best score first (rank 1)."""
    results = sorted((screen_tenant(t, asof) for t in tenants),
                     key=lambda r: r.reliability_score, reverse=True)
    return [replace(r, comparison_rank=i + 1) for i, r in enumerate(results)]
