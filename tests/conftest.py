"""
Shared fixtures: record factories and a temporary SQLite store.

All time-dependent tests evaluate at ASOF so results never depend on the
day the suite runs.
"""

import pytest
from datetime import date, datetime, timedelta
from uuid import uuid4

from estateintel import db
from estateintel.models import (
    Document, Inspection, MaintenanceLog, MaintenanceRequest, Message, Payment,
    Property, Tenant, Unit,
)

ASOF = date(2024, 6, 15)


class Factory:
    """Builds domain records with sensible defaults."""

    def payment(self, days_ago=0, is_late=False, method="Bank Transfer", status="Completed",
                unusual=False, amount=1500.0, **kw) -> Payment:
        paid = ASOF - timedelta(days=days_ago)
        return Payment(
            id=uuid4(), tenant_id=kw.pop("tenant_id", None), amount=amount,
            payment_date=paid, due_date=paid, payment_method=method, status=status,
            is_late=is_late, late_days=5 if is_late else 0, unusual_pattern_detected=unusual, **kw,
        )

    def on_time_payments(self, n=6):
        return tuple(self.payment(days_ago=30 * i) for i in range(n))

    def message(self, sentiment="Neutral", days_ago=0, content="Hello") -> Message:
        return Message(
            id=uuid4(), tenant_id=None, content=content, sender="Tenant",
            timestamp=datetime(ASOF.year, ASOF.month, ASOF.day, 9, 0) - timedelta(days=days_ago),
            sentiment=sentiment,
        )

    def messages(self, *sentiments):
        """Newest first: the first sentiment is today's message."""
        return tuple(self.message(s, days_ago=i) for i, s in enumerate(sentiments))

    def request(self, status="Submitted", urgency="Low", submitted_days_ago=10,
                resolution_days=None) -> MaintenanceRequest:
        submitted = ASOF - timedelta(days=submitted_days_ago)
        completed = submitted + timedelta(days=resolution_days) if resolution_days is not None else None
        return MaintenanceRequest(
            id=uuid4(), tenant_id=None, title="Request", description="Something to fix",
            urgency=urgency, status=status, submitted_date=submitted, completed_date=completed,
        )

    def completed(self, n, resolution_days=1):
        return tuple(self.request(status="Completed", resolution_days=resolution_days) for _ in range(n))

    def document(self, document_type="ID", confidence=0.9, fraud=10.0, issues=None,
                 extracted=None, authenticity=0.95) -> Document:
        return Document(
            id=uuid4(), tenant_id=None, document_type=document_type, name=f"{document_type}.pdf",
            extracted_data_json=extracted, extraction_confidence=confidence,
            validation_issues=issues, fraud_risk_score=fraud, document_authenticity=authenticity,
        )

    def full_documents(self):
        return (
            self.document("ID", extracted='{"name": "Jane Doe"}'),
            self.document("PayStub"),
            self.document("Lease"),
        )

    def tenant(self, **kw) -> Tenant:
        defaults = dict(
            id=uuid4(), first_name="Jane", last_name="Doe", email="jane@example.com",
            move_in_date=date(2023, 1, 1), lease_end_date=ASOF + timedelta(days=200),
            monthly_rent=1500.0, security_deposit=1500.0, employment_status="Full-time",
            monthly_income=6000.0,
        )
        defaults.update(kw)
        return Tenant(**defaults)

    def unit(self, tenant=None, lease_days_left=200, **kw) -> Unit:
        defaults = dict(
            id=uuid4(), property_id=None, unit_number="101", floor=2, bedrooms=2, bathrooms=1.0,
            square_feet=1000.0, monthly_rent=1600.0, status="Occupied" if tenant else "Available",
            lease_end_date=ASOF + timedelta(days=lease_days_left) if lease_days_left is not None else None,
            current_tenant=tenant,
        )
        defaults.update(kw)
        return Unit(**defaults)

    def log(self, repair_date, equipment_type="HVAC", cost=100.0, severity="Low", season=None,
            equipment_id="HVAC-1") -> MaintenanceLog:
        return MaintenanceLog(
            id=uuid4(), property_id=None, equipment_type=equipment_type, equipment_id=equipment_id,
            issue_type="Repair", repair_date=repair_date, repair_cost=cost, severity=severity,
            season=season,
        )

    def property(self, units=(), logs=(), **kw) -> Property:
        defaults = dict(id=uuid4(), name="Maple Court", year_built=1998, units=tuple(units),
                        maintenance_logs=tuple(logs))
        defaults.update(kw)
        return Property(**defaults)

    def inspection(self, damages=(), inspection_type="Routine") -> Inspection:
        return Inspection(id=uuid4(), unit_id=None, inspection_type=inspection_type,
                          inspection_date=ASOF, damages=tuple(damages))


@pytest.fixture
def make():
    return Factory()


@pytest.fixture
def asof():
    return ASOF


# =============================================================
# Store
# =============================================================

@pytest.fixture
def store(tmp_path, monkeypatch):
    """Fresh SQLite database with the schema created; the module engine is restored afterwards."""
    monkeypatch.setattr(db, "_engine", None)
    db.configure(f"sqlite:///{tmp_path / 'estateintel.db'}")
    db.init_schema()
    return db


@pytest.fixture
def seeded(store):
    """One property with an occupied unit, its tenant and their records. Returns the ids."""
    ids = {
        "property": uuid4(), "unit": uuid4(), "vacant_unit": uuid4(), "tenant": uuid4(),
        "request": uuid4(), "message": uuid4(),
    }
    store.insert_record("property", {
        "id": ids["property"], "name": "Maple Court", "city": "Springfield", "year_built": 1998,
        "total_square_feet": 12000.0, "amenities_json": ["Gym", "Pool"],
    })
    store.insert_record("unit", {
        "id": ids["unit"], "property_id": ids["property"], "unit_number": "101", "floor": 2,
        "bedrooms": 2, "bathrooms": 1.0, "square_feet": 1000.0, "monthly_rent": 1600.0,
        "status": "Occupied", "lease_start_date": date(2023, 7, 1),
        "lease_end_date": ASOF + timedelta(days=20), "features_json": ["Balcony"],
        "current_tenant_id": ids["tenant"],
    })
    store.insert_record("unit", {
        "id": ids["vacant_unit"], "property_id": ids["property"], "unit_number": "102",
        "bedrooms": 1, "bathrooms": 1.0, "square_feet": 700.0, "monthly_rent": 1200.0,
        "status": "Available",
    })
    store.insert_record("tenant", {
        "id": ids["tenant"], "unit_id": ids["unit"], "first_name": "Jane", "last_name": "Doe",
        "email": "jane@example.com", "move_in_date": date(2023, 7, 1),
        "lease_end_date": ASOF + timedelta(days=20), "monthly_rent": 1600.0,
        "security_deposit": 1600.0, "employment_status": "Full-time", "monthly_income": 6400.0,
    })
    for i, late in enumerate([True, True, False]):
        store.insert_record("payment", {
            "id": uuid4(), "tenant_id": ids["tenant"], "amount": 1600.0,
            "payment_date": ASOF - timedelta(days=30 * i), "payment_method": "Bank Transfer",
            "status": "Completed", "is_late": late, "late_days": 4 if late else 0,
            "unusual_pattern_detected": False,
        })
    store.insert_record("message", {
        "id": ids["message"], "tenant_id": ids["tenant"], "content": "Thanks for the quick fix!",
        "sender": "Tenant", "ts": datetime(2024, 6, 1, 10, 30), "sentiment": "Positive",
        "sentiment_score": 1.0, "requires_attention": False,
    })
    store.insert_record("maintenance_request", {
        "id": ids["request"], "tenant_id": ids["tenant"], "unit_id": ids["unit"],
        "title": "Leak", "description": "The kitchen sink is leaking", "status": "Completed",
        "urgency": "High", "submitted_date": date(2024, 5, 1), "completed_date": date(2024, 5, 3),
    })
    store.insert_record("document", {
        "id": uuid4(), "tenant_id": ids["tenant"], "document_type": "ID", "name": "id.png",
        "extracted_data_json": '{"name": "Jane Doe"}', "extraction_confidence": 0.92,
        "validation_issues": "[]", "fraud_risk_score": 5.0, "document_authenticity": 0.97,
        "is_verified": True,
    })
    store.insert_record("inspection", {
        "id": uuid4(), "unit_id": ids["unit"], "inspection_type": "Move-In",
        "inspection_date": date(2023, 7, 1), "overall_condition": "Good",
        "damages_json": '[{"room": "Kitchen", "damageType": "Stain", "severity": "Minor"}]',
        "estimated_repair_cost": 50.0,
    })
    for d in (date(2024, 1, 10), date(2024, 3, 10), date(2024, 5, 9)):
        store.insert_record("maintenance_log", {
            "id": uuid4(), "property_id": ids["property"], "equipment_type": "HVAC",
            "equipment_id": "HVAC-1", "issue_type": "Compressor", "repair_date": d,
            "repair_cost": 250.0, "preventive": False, "severity": "Medium",
        })
    for utility, value in (("electricity", 600.0), ("electricity", 600.0), ("water", 3000.0), ("gas", 40.0)):
        store.insert_record("utility_reading", {
            "unit_id": ids["unit"], "utility": utility, "ts": datetime(2024, 5, 20, 12, 0), "value": value,
        })
    # outside May, must not be counted
    store.insert_record("utility_reading", {
        "unit_id": ids["unit"], "utility": "electricity", "ts": datetime(2024, 6, 2, 8, 0), "value": 999.0,
    })
    return ids
