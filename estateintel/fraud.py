"""Fraud detection for tenant applications.

Each detected flag carries a severity (1-10). Flags from the four sources
are multiplied by a source weight and summed into a 0-100 risk score:

    documents  x5    payments  x4    income  x6    identity  x8
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .classify import bucket_below, clamp
from .features import distinct_payment_methods, late_count, late_ratio, mean
from .models import Document, Payment, Tenant, full_name

logger = logging.getLogger(__name__)

RISK_LEVELS = ("Low Risk", "Medium Risk", "High Risk", "Critical Risk")
RISK_CUTOFFS = [(30.0, "Low Risk"), (60.0, "Medium Risk"), (85.0, "High Risk")]
RISK_COLORS = {"Low Risk": "green", "Medium Risk": "yellow", "High Risk": "orange", "Critical Risk": "red"}

DOCUMENT_WEIGHT = 5
PAYMENT_WEIGHT = 4
INCOME_WEIGHT = 6
IDENTITY_WEIGHT = 8

DEFAULT_AUTHENTICITY = 0.8

ASSESSMENTS = {
    "Low Risk": "Application appears legitimate with no major red flags. Standard verification recommended.",
    "Medium Risk": "Some concerns detected. Additional verification and documentation recommended before approval.",
    "High Risk": "Multiple fraud indicators present. Thorough investigation required. "
                 "Consider requiring additional documentation.",
    "Critical Risk": "CRITICAL: Severe fraud indicators detected. Strong recommendation to REJECT application "
                     "or conduct extensive verification with legal counsel.",
}


@dataclass(frozen=True)
class FraudFlag:
    category: str
    description: str
    severity: int  # 1-10


@dataclass(frozen=True)
class FraudAnalysis:
    risk_score: float  # 0-100
    risk_level: str
    fraud_flags: List[FraudFlag]
    document_authenticity: float  # 0-1
    payment_risk_factors: List[str]
    overall_assessment: str


def validation_issue_count(doc: Document) -> int:
    """Number of entries in the stored JSON issue list; malformed JSON or non-string entries count as none."""
    if not doc.validation_issues:
        return 0
    try:
        issues = json.loads(doc.validation_issues)
    except json.JSONDecodeError:
        logger.warning("document %s has malformed validation_issues JSON", doc.id)
        return 0
    if not isinstance(issues, list) or not all(isinstance(i, str) for i in issues):
        return 0
    return len(issues)


def analyze_documents(documents: Sequence[Document]) -> List[FraudFlag]:
    flags: List[FraudFlag] = []
    for doc in documents:
        label = doc.document_type or "document"
        if doc.extraction_confidence < 0.6:
            flags.append(FraudFlag("Document Quality", f"Low quality or altered {label} detected", 6))
        if doc.fraud_risk_score > 70:
            flags.append(FraudFlag("Fraudulent Document",
                                   f"{doc.document_type or 'Document'} shows signs of forgery", 9))
        if validation_issue_count(doc) > 2:
            flags.append(FraudFlag("Inconsistent Data", f"Multiple validation issues found in {label}", 5))
    return flags


def analyze_payment_patterns(payments: Sequence[Payment]) -> List[FraudFlag]:
    flags: List[FraudFlag] = []
    if not payments:
        return flags

    if distinct_payment_methods(payments) > 3:
        flags.append(FraudFlag("Payment Behavior",
                               "Frequent changes in payment methods (possible card testing)", 4))

    late = late_ratio(payments)
    if late > 0.3:
        flags.append(FraudFlag("Payment History", f"High frequency of late payments ({int(late * 100)}%)", 6))

    unusual = sum(1 for p in payments if p.unusual_pattern_detected)
    if unusual:
        flags.append(FraudFlag("Suspicious Activity", f"{unusual} payment(s) flagged with unusual patterns", 7))
    return flags


def verify_income_ratio(t: Tenant) -> Optional[FraudFlag]:
    if t.monthly_income <= 0:
        return FraudFlag("Missing Data", "No income information provided", 3)
    burden = t.monthly_rent / t.monthly_income
    if burden > 0.5:
        return FraudFlag("Financial Inconsistency",
                         f"Rent is {int(burden * 100)}% of stated income (typically should be <30%)", 8)
    return None


def check_identity_consistency(t: Tenant, documents: Sequence[Document]) -> Optional[FraudFlag]:
    name = full_name(t).lower()
    for doc in documents:
        if doc.document_type != "ID" or doc.extracted_data_json is None:
            continue
        if name not in doc.extracted_data_json.lower():
            return FraudFlag("Identity Mismatch", "Name on ID document doesn't match application", 10)
    return None


def extract_payment_risks(payments: Sequence[Payment]) -> List[str]:
    risks: List[str] = []
    late = late_count(payments)
    if late:
        risks.append(f"{late} late payment(s)")
    failed = sum(1 for p in payments if p.status == "Failed")
    if failed:
        risks.append(f"{failed} failed transaction(s)")
    unusual = sum(1 for p in payments if p.unusual_pattern_detected)
    if unusual:
        risks.append(f"{unusual} unusual pattern(s)")
    return risks or ["No major concerns"]


def analyze_tenant_application(
    t: Tenant,
    documents: Optional[Sequence[Document]] = None,
    payments: Optional[Sequence[Payment]] = None,
) -> FraudAnalysis:
    """Score an application; documents/payments default to the tenant's own records."""
    documents = t.documents if documents is None else documents
    payments = t.payments if payments is None else payments

    flags: List[FraudFlag] = []
    total = 0.0

    doc_flags = analyze_documents(documents)
    flags.extend(doc_flags)
    total += sum(f.severity for f in doc_flags) * DOCUMENT_WEIGHT

    payment_flags = analyze_payment_patterns(payments)
    flags.extend(payment_flags)
    total += sum(f.severity for f in payment_flags) * PAYMENT_WEIGHT

    income_flag = verify_income_ratio(t)
    if income_flag:
        flags.append(income_flag)
        total += income_flag.severity * INCOME_WEIGHT

    identity_flag = check_identity_consistency(t, documents)
    if identity_flag:
        flags.append(identity_flag)
        total += identity_flag.severity * IDENTITY_WEIGHT

    score = clamp(total)
    level = bucket_below(score, RISK_CUTOFFS, "Critical Risk")
    authenticity = DEFAULT_AUTHENTICITY if not documents else mean([d.document_authenticity for d in documents])
    logger.debug("fraud analysis for tenant %s: %.1f %s (%d flags)", t.id, score, level, len(flags))

    return FraudAnalysis(
        risk_score=score,
        risk_level=level,
        fraud_flags=flags,
        document_authenticity=authenticity,
        payment_risk_factors=extract_payment_risks(payments),
        overall_assessment=ASSESSMENTS[level],
    )
