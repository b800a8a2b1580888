# ============================================================
# Feature extractors - raw records -> normalized numbers
# ============================================================

from __future__ import annotations
import statistics as stats
from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, TypeVar

from .models import Payment, Message, MaintenanceRequest, Tenant

T = TypeVar("T")

_DISTANT_PAST = date.min


# ------------------------------------------------------------
# 1) Generic ratios & dates
# ------------------------------------------------------------

def ratio(part: float, whole: float) -> float:
    """part / whole, 0.0 when whole <= 0"""
    return 0.0 if whole <= 0 else part / whole

def as_date(d: date | datetime | None) -> Optional[date]:
    if isinstance(d, datetime):
        return d.date()
    return d

def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole days from start to end (negative when end is earlier)"""
    return (as_date(end) - as_date(start)).days

def dedupe(items: Iterable[T]) -> List[T]:
    """Drop repeats, keep first-seen order"""
    seen = set()
    out: List[T] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out

def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring match against any keyword"""
    lowered = text.lower()
    return any(k in lowered for k in keywords)


# ------------------------------------------------------------
# 2) Financial features
# ------------------------------------------------------------

def rent_to_income_ratio(t: Tenant) -> Optional[float]:
    """Monthly rent / monthly income; None unless both are positive"""
    if t.monthly_income > 0 and t.monthly_rent > 0:
        return t.monthly_rent / t.monthly_income
    return None

def late_count(payments: Iterable[Payment]) -> int:
    return sum(1 for p in payments if p.is_late)

def late_ratio(payments: Sequence[Payment]) -> float:
    return ratio(late_count(payments), len(payments))

def most_recent_payments(payments: Iterable[Payment], n: int) -> List[Payment]:
    """Newest first; undated payments sort last"""
    return sorted(payments, key=lambda p: as_date(p.payment_date) or _DISTANT_PAST, reverse=True)[:n]

def distinct_payment_methods(payments: Iterable[Payment]) -> int:
    """Distinct methods, an unset method counting as one more"""
    return len({p.payment_method for p in payments})


# ------------------------------------------------------------
# 3) Communication features
# ------------------------------------------------------------

def sentiment_count(messages: Iterable[Message], sentiment: str) -> int:
    return sum(1 for m in messages if m.sentiment == sentiment)

def sentiment_ratio(messages: Sequence[Message], sentiment: str) -> float:
    return ratio(sentiment_count(messages, sentiment), len(messages))

def most_recent_messages(messages: Iterable[Message], n: int | None = None) -> List[Message]:
    """Newest first; messages without a timestamp sort last"""
    ordered = sorted(messages, key=lambda m: m.timestamp or datetime.min, reverse=True)
    return ordered if n is None else ordered[:n]


# ------------------------------------------------------------
# 4) Maintenance features
# ------------------------------------------------------------

def urgent_request_count(requests: Iterable[MaintenanceRequest]) -> int:
    return sum(1 for r in requests if r.urgency in ("High", "Critical"))

def completed_requests(requests: Iterable[MaintenanceRequest]) -> List[MaintenanceRequest]:
    return [r for r in requests if r.status == "Completed"]

def completion_rate(requests: Sequence[MaintenanceRequest]) -> float:
    return ratio(len(completed_requests(requests)), len(requests))

def average_resolution_days(requests: Iterable[MaintenanceRequest], default: float = 5.0) -> float:
    """Mean submitted->completed days over completed requests that carry both dates"""
    spans = [
        days_between(r.submitted_date, r.completed_date)
        for r in completed_requests(requests)
        if r.submitted_date is not None and r.completed_date is not None
    ]
    return default if not spans else sum(spans) / len(spans)


# ------------------------------------------------------------
# 5) Statistics & calendar
# ------------------------------------------------------------

def mean(values: Sequence[float]) -> float:
    return 0.0 if not values else stats.fmean(values)

def population_variance(values: Sequence[float], mu: float | None = None) -> float:
    """Mean squared deviation from mu (defaults to the sample mean)"""
    if not values:
        return 0.0
    return float(stats.pvariance(values, mu))

def season_for_month(month: int) -> str:
    if month in (12, 1, 2):
        return "Winter"
    if month in (3, 4, 5):
        return "Spring"
    if month in (6, 7, 8):
        return "Summer"
    return "Fall"

def pct_over(current: float, baseline: float) -> float:
    """Percent by which current exceeds baseline; 0.0 for a non-positive baseline"""
    return 0.0 if baseline <= 0 else (current - baseline) / baseline * 100.0
