from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Literal, Tuple
from datetime import date, datetime
from uuid import UUID

Sentiment = Literal["Positive", "Neutral", "Negative"]
Urgency = Literal["Low", "Medium", "High", "Critical"]
PaymentStatus = Literal["Pending", "Completed", "Failed", "Refunded"]
RequestStatus = Literal["Submitted", "Assigned", "In Progress", "Completed", "Cancelled"]
DocumentType = Literal["Lease", "ID", "PayStub", "BankStatement", "Other"]
Season = Literal["Winter", "Spring", "Summer", "Fall"]

# --------- Tenant-side records ---------

@dataclass(frozen=True)
class Payment:
    id: UUID
    tenant_id: Optional[UUID]
    amount: float
    payment_date: Optional[date] = None
    due_date: Optional[date] = None
    payment_method: Optional[str] = None  # Credit Card, Bank Transfer, Check, Cash
    transaction_id: Optional[str] = None
    status: Optional[PaymentStatus] = None
    is_late: bool = False
    late_days: int = 0
    fraud_risk_score: float = 0.0  # 0-100
    unusual_pattern_detected: bool = False

@dataclass(frozen=True)
class Message:
    id: UUID
    tenant_id: Optional[UUID]
    content: str = ""
    sender: Optional[str] = None  # Tenant, Manager, System
    timestamp: Optional[datetime] = None
    sentiment: Optional[Sentiment] = None
    sentiment_score: float = 0.0  # -1..1
    urgency_level: Optional[str] = None
    requires_attention: bool = False

@dataclass(frozen=True)
class MaintenanceRequest:
    id: UUID
    tenant_id: Optional[UUID]
    unit_id: Optional[UUID] = None
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    urgency: Optional[Urgency] = None
    status: Optional[RequestStatus] = None
    submitted_date: Optional[date] = None
    completed_date: Optional[date] = None
    estimated_cost: float = 0.0
    actual_cost: float = 0.0
    assigned_contractor: Optional[str] = None
    ai_classification_confidence: float = 0.0
    ai_suggested_category: Optional[str] = None
    ai_urgency_score: float = 0.0  # 0-100

@dataclass(frozen=True)
class Document:
    id: UUID
    tenant_id: Optional[UUID]
    document_type: Optional[DocumentType] = None
    name: Optional[str] = None
    extracted_data_json: Optional[str] = None
    extraction_confidence: float = 0.0  # 0-1
    validation_issues: Optional[str] = None  # JSON array of strings
    fraud_risk_score: float = 0.0  # 0-100
    document_authenticity: float = 0.0  # 0-1
    is_verified: bool = False

@dataclass(frozen=True)
class Tenant:
    id: UUID
    unit_id: Optional[UUID] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    move_in_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    monthly_rent: float = 0.0
    security_deposit: float = 0.0
    employment_status: Optional[str] = None
    monthly_income: float = 0.0
    # derived fields written back by the scoring services
    reliability_score: float = 0.0  # 0-100
    satisfaction_score: float = 0.0  # 0-100
    risk_score: float = 0.0  # 0-100
    move_out_probability: float = 0.0  # 0-1
    last_communication_sentiment: Optional[Sentiment] = None
    payments: Tuple[Payment, ...] = ()
    messages: Tuple[Message, ...] = ()
    maintenance_requests: Tuple[MaintenanceRequest, ...] = ()
    documents: Tuple[Document, ...] = ()

# --------- Property-side records ---------

@dataclass(frozen=True)
class DamageDetection:
    room: str
    damage_type: str  # Wall Damage, Floor Damage, Stain, Crack, ...
    severity: Literal["Minor", "Moderate", "Major"]
    location: str = ""
    confidence: float = 0.0

@dataclass(frozen=True)
class Inspection:
    id: UUID
    unit_id: Optional[UUID]
    inspection_type: Optional[str] = None  # Move-In, Move-Out, Routine, Emergency
    inspection_date: Optional[date] = None
    inspector_name: Optional[str] = None
    overall_condition: Optional[str] = None
    damages: Tuple[DamageDetection, ...] = ()
    estimated_repair_cost: float = 0.0

@dataclass(frozen=True)
class Unit:
    id: UUID
    property_id: Optional[UUID]
    unit_number: str = ""
    floor: int = 0
    bedrooms: int = 0
    bathrooms: float = 0.0
    square_feet: float = 0.0
    monthly_rent: float = 0.0
    status: Optional[str] = None  # Available, Occupied, Under Maintenance
    lease_start_date: Optional[date] = None
    lease_end_date: Optional[date] = None
    features: Tuple[str, ...] = ()
    current_tenant: Optional[Tenant] = None
    maintenance_requests: Tuple[MaintenanceRequest, ...] = ()
    inspections: Tuple[Inspection, ...] = ()

@dataclass(frozen=True)
class MaintenanceLog:
    id: UUID
    property_id: Optional[UUID]
    equipment_type: Optional[str] = None  # HVAC, Water Heater, Elevator, ...
    equipment_id: Optional[str] = None
    issue_type: Optional[str] = None
    repair_date: Optional[date] = None
    repair_cost: float = 0.0
    preventive: bool = False
    severity: Optional[Urgency] = None
    downtime_hours: float = 0.0
    season: Optional[Season] = None

@dataclass(frozen=True)
class Property:
    id: UUID
    name: str = ""
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    property_type: Optional[str] = None
    year_built: int = 0
    total_square_feet: float = 0.0
    amenities: Tuple[str, ...] = ()
    units: Tuple[Unit, ...] = field(default=())
    maintenance_logs: Tuple[MaintenanceLog, ...] = field(default=())

@dataclass(frozen=True)
class UsageStats:
    electricity: float  # kWh
    water: float  # gallons
    gas: float  # therms
    month: Optional[date]
    total_cost: float

@dataclass(frozen=True)
class UtilityReading:
    unit_id: UUID
    utility: Literal["electricity", "water", "gas"]
    ts: datetime
    value: float

# --------- Low-level helpers ---------

def full_name(t: Tenant) -> str:
    return f"{t.first_name or ''} {t.last_name or ''}".strip()

def is_lease_active(t: Tenant, asof: date | None = None) -> bool:
    asof = asof or date.today()
    return t.lease_end_date is not None and t.lease_end_date > asof

def is_occupied(u: Unit, asof: date | None = None) -> bool:
    """Occupied = has a current tenant and a lease ending after `asof`."""
    asof = asof or date.today()
    return u.current_tenant is not None and (u.lease_end_date or asof) > asof

def occupied_units(p: Property, asof: date | None = None) -> int:
    return sum(1 for u in p.units if is_occupied(u, asof))

def occupancy_rate(p: Property, asof: date | None = None) -> float:
    return 0.0 if not p.units else occupied_units(p, asof) / len(p.units)
