"""Structured lease fields from already-recognised document text."""
from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 50
RICH_TEXT_LENGTH = 200
CONFIDENCE_FIELDS = 7.0

_TENANT_RE = re.compile(r"(?:Tenant|Lessee|Renter):[ \t]*([A-Za-z \t]+)")
_LANDLORD_RE = re.compile(r"(?:Landlord|Lessor|Owner):[ \t]*([A-Za-z \t]+)")
_ADDRESS_RE = re.compile(r"(?:Property|Address|Unit):[ \t]*([0-9A-Za-z \t,]+)")
_MONEY_RE = re.compile(r"\$\s*([0-9,]+(?:\.[0-9]{2})?)")
_DEPOSIT_RE = re.compile(r"security deposit[:\s]*\$\s*([0-9,]+(?:\.[0-9]{2})?)", re.IGNORECASE)

# (pattern, strptime formats tried in order)
_DATE_PATTERNS = [
    (re.compile(r"\b\d{2}/\d{2}/\d{4}\b"), ("%m/%d/%Y",)),
    (re.compile(r"\b\d{1,2}-\d{1,2}-\d{4}\b"), ("%m-%d-%Y",)),
    (re.compile(r"\b[A-Za-z]+\s+\d{1,2},\s+\d{4}\b"), ("%B %d, %Y", "%b %d, %Y")),
]


@dataclass
class LeaseData:
    tenant_name: Optional[str] = None
    landlord_name: Optional[str] = None
    property_address: Optional[str] = None
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    monthly_rent: Optional[float] = None
    security_deposit: Optional[float] = None
    lease_term: Optional[int] = None  # months
    signature_detected: bool = False
    additional_terms: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    issue: str
    severity: str  # Warning, Error


@dataclass(frozen=True)
class ExtractionResult:
    success: bool
    extracted_text: str
    structured_data: LeaseData
    confidence: float  # 0-1
    validation_issues: List[ValidationIssue]


def _capture(pattern: re.Pattern, text: str) -> Optional[str]:
    m = pattern.search(text)
    if not m:
        return None
    value = " ".join(m.group(1).split())
    return value or None

def _amount(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None

def _parse_date(raw: str, formats) -> Optional[date]:
    cleaned = " ".join(raw.split())
    for fmt in formats:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None

def extract_dates(text: str) -> List[date]:
    found: List[date] = []
    for pattern, formats in _DATE_PATTERNS:
        for m in pattern.finditer(text):
            d = _parse_date(m.group(0), formats)
            if d is not None:
                found.append(d)
    return sorted(found)

def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end"""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def extract_lease_data(text: str) -> LeaseData:
    data = LeaseData(
        tenant_name=_capture(_TENANT_RE, text),
        landlord_name=_capture(_LANDLORD_RE, text),
        property_address=_capture(_ADDRESS_RE, text),
    )

    rent = _MONEY_RE.search(text)
    if rent:
        data.monthly_rent = _amount(rent.group(1))

    dates = extract_dates(text)
    if len(dates) >= 2:
        data.lease_start_date, data.lease_end_date = dates[0], dates[1]
        data.lease_term = months_between(dates[0], dates[1])

    lowered = text.lower()
    data.signature_detected = "signature" in lowered or "signed" in lowered

    deposit = _DEPOSIT_RE.search(text)
    if deposit:
        data.security_deposit = _amount(deposit.group(1))
    return data


def validate_data(data: LeaseData) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if not data.tenant_name:
        issues.append(ValidationIssue("Tenant Name", "Tenant name not found", "Error"))
    if not data.monthly_rent:
        issues.append(ValidationIssue("Monthly Rent", "Rent amount not detected", "Error"))
    if data.lease_start_date is None:
        issues.append(ValidationIssue("Start Date", "Lease start date not found", "Error"))
    if data.lease_end_date is None:
        issues.append(ValidationIssue("End Date", "Lease end date not found", "Warning"))
    if not data.signature_detected:
        issues.append(ValidationIssue("Signature", "No signature detected", "Warning"))
    if data.lease_start_date and data.lease_end_date and data.lease_end_date <= data.lease_start_date:
        issues.append(ValidationIssue("Dates", "End date must be after start date", "Error"))
    if data.monthly_rent is not None and (data.monthly_rent < 100 or data.monthly_rent > 50000):
        issues.append(ValidationIssue("Rent", "Rent amount seems unusual", "Warning"))
    return issues


def calculate_confidence(data: LeaseData, text_length: int) -> float:
    found = [
        data.tenant_name is not None,
        data.monthly_rent is not None,
        data.lease_start_date is not None,
        data.lease_end_date is not None,
        data.property_address is not None,
        data.signature_detected,
        text_length > RICH_TEXT_LENGTH,
    ]
    return sum(found) / CONFIDENCE_FIELDS


def scan_text(text: str) -> ExtractionResult:
    data = extract_lease_data(text)
    issues = validate_data(data)
    logger.debug("lease scan: %d chars, %d validation issues", len(text), len(issues))
    return ExtractionResult(
        success=len(text) > MIN_TEXT_LENGTH,
        extracted_text=text,
        structured_data=data,
        confidence=calculate_confidence(data, len(text)),
        validation_issues=issues,
    )


def issues_json(issues: List[ValidationIssue]) -> str:
    """The JSON string list stored on a document's validation_issues column."""
    return json.dumps([f"{i.field}: {i.issue}" for i in issues])
