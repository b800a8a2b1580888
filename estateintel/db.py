import json
import logging
from uuid import UUID
from datetime import datetime, date
from typing import Any, Dict, Iterable, List, Optional, Tuple
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from . import config
from .errors import InvalidInput, RecordNotFound, StoreUnavailable
from .models import (
    Property, Unit, Tenant, Payment, Message, MaintenanceRequest, MaintenanceLog,
    Document, Inspection, UtilityReading, UsageStats,
)
from .energy import usage_from_readings
from .inspection import damages_from_json

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None

# --------- engine ---------

def configure(url: str, echo: bool = False) -> Engine:
    """Point the module at a database (tests use a temporary SQLite file)."""
    global _engine
    try:
        _engine = create_engine(url, future=True, echo=echo)
    except (SQLAlchemyError, ImportError) as exc:
        raise StoreUnavailable(f"cannot create engine for {url}: {exc}") from exc
    return _engine

def get_engine() -> Engine:
    if _engine is None:
        configure(config.DATABASE_URL, echo=config.SQL_ECHO)
    return _engine

# --------- schema ---------

SCHEMA = {
    "property": """
        CREATE TABLE IF NOT EXISTS property (
            id TEXT PRIMARY KEY, name TEXT, address TEXT, city TEXT, state TEXT, zip_code TEXT,
            property_type TEXT, year_built INTEGER, total_square_feet REAL, amenities_json TEXT
        )""",
    "unit": """
        CREATE TABLE IF NOT EXISTS unit (
            id TEXT PRIMARY KEY, property_id TEXT, unit_number TEXT, floor INTEGER, bedrooms INTEGER,
            bathrooms REAL, square_feet REAL, monthly_rent REAL, status TEXT,
            lease_start_date DATE, lease_end_date DATE, features_json TEXT, current_tenant_id TEXT
        )""",
    "tenant": """
        CREATE TABLE IF NOT EXISTS tenant (
            id TEXT PRIMARY KEY, unit_id TEXT, first_name TEXT, last_name TEXT, email TEXT, phone TEXT,
            move_in_date DATE, lease_end_date DATE, monthly_rent REAL, security_deposit REAL,
            employment_status TEXT, monthly_income REAL, reliability_score REAL, satisfaction_score REAL,
            risk_score REAL, move_out_probability REAL, last_communication_sentiment TEXT, updated_at TIMESTAMP
        )""",
    "payment": """
        CREATE TABLE IF NOT EXISTS payment (
            id TEXT PRIMARY KEY, tenant_id TEXT, amount REAL, payment_date DATE, due_date DATE,
            payment_method TEXT, transaction_id TEXT, status TEXT, is_late BOOLEAN, late_days INTEGER,
            fraud_risk_score REAL, unusual_pattern_detected BOOLEAN
        )""",
    "message": """
        CREATE TABLE IF NOT EXISTS message (
            id TEXT PRIMARY KEY, tenant_id TEXT, content TEXT, sender TEXT, ts TIMESTAMP, sentiment TEXT,
            sentiment_score REAL, urgency_level TEXT, requires_attention BOOLEAN,
            detected_topics_json TEXT, ai_suggested_reply TEXT
        )""",
    "maintenance_request": """
        CREATE TABLE IF NOT EXISTS maintenance_request (
            id TEXT PRIMARY KEY, tenant_id TEXT, unit_id TEXT, title TEXT, description TEXT, category TEXT,
            urgency TEXT, status TEXT, submitted_date DATE, completed_date DATE, estimated_cost REAL,
            actual_cost REAL, assigned_contractor TEXT, ai_classification_confidence REAL,
            ai_suggested_category TEXT, ai_urgency_score REAL, ai_detected_issues_json TEXT
        )""",
    "maintenance_log": """
        CREATE TABLE IF NOT EXISTS maintenance_log (
            id TEXT PRIMARY KEY, property_id TEXT, equipment_type TEXT, equipment_id TEXT, issue_type TEXT,
            repair_date DATE, repair_cost REAL, preventive BOOLEAN, severity TEXT, downtime_hours REAL,
            season TEXT
        )""",
    "document": """
        CREATE TABLE IF NOT EXISTS document (
            id TEXT PRIMARY KEY, tenant_id TEXT, document_type TEXT, name TEXT, extracted_data_json TEXT,
            extraction_confidence REAL, validation_issues TEXT, fraud_risk_score REAL,
            document_authenticity REAL, is_verified BOOLEAN
        )""",
    "inspection": """
        CREATE TABLE IF NOT EXISTS inspection (
            id TEXT PRIMARY KEY, unit_id TEXT, inspection_type TEXT, inspection_date DATE,
            inspector_name TEXT, overall_condition TEXT, damages_json TEXT, estimated_repair_cost REAL
        )""",
    "utility_reading": """
        CREATE TABLE IF NOT EXISTS utility_reading (
            unit_id TEXT, utility TEXT, ts TIMESTAMP, value REAL
        )""",
}

def _columns(ddl: str) -> Tuple[str, ...]:
    body = ddl[ddl.index("(") + 1:ddl.rindex(")")]
    return tuple(part.split()[0] for part in body.split(","))

COLUMNS = {table: _columns(ddl) for table, ddl in SCHEMA.items()}

TENANT_SCORE_FIELDS = {
    "reliability_score", "satisfaction_score", "risk_score", "move_out_probability",
    "last_communication_sentiment",
}

def init_schema() -> None:
    try:
        with _connect() as conn:
            for ddl in SCHEMA.values():
                conn.execute(text(ddl))
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"schema creation failed: {exc}") from exc
    logger.info("schema ready (%d tables)", len(SCHEMA))

# --------- value conversion ---------

def _to_db(v: Any) -> Any:
    if isinstance(v, UUID):
        return str(v)
    if isinstance(v, (datetime, date)):
        return v.isoformat()
    if isinstance(v, (list, tuple, dict)):
        return json.dumps(v)
    return v

def _uuid(v) -> Optional[UUID]:
    return UUID(str(v)) if v else None

def _date(v) -> Optional[date]:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    return date.fromisoformat(str(v)[:10])

def _datetime(v) -> Optional[datetime]:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v
    if isinstance(v, date):
        return datetime(v.year, v.month, v.day)
    return datetime.fromisoformat(str(v))

def _float(v) -> float:
    return float(v or 0.0)

def _json_list(v, where: str) -> tuple:
    if not v:
        return ()
    try:
        items = json.loads(v) if isinstance(v, str) else v
    except json.JSONDecodeError:
        logger.warning("malformed JSON list in %s", where)
        return ()
    return tuple(str(i) for i in items) if isinstance(items, list) else ()

# --------- mappers ---------

def _map_payment(row) -> Payment:
    return Payment(
        id=UUID(row["id"]),
        tenant_id=_uuid(row["tenant_id"]),
        amount=_float(row["amount"]),
        payment_date=_date(row["payment_date"]),
        due_date=_date(row["due_date"]),
        payment_method=row["payment_method"],
        transaction_id=row["transaction_id"],
        status=row["status"],
        is_late=bool(row["is_late"]),
        late_days=int(row["late_days"] or 0),
        fraud_risk_score=_float(row["fraud_risk_score"]),
        unusual_pattern_detected=bool(row["unusual_pattern_detected"]),
    )

def _map_message(row) -> Message:
    return Message(
        id=UUID(row["id"]),
        tenant_id=_uuid(row["tenant_id"]),
        content=row["content"] or "",
        sender=row["sender"],
        timestamp=_datetime(row["ts"]),
        sentiment=row["sentiment"],
        sentiment_score=_float(row["sentiment_score"]),
        urgency_level=row["urgency_level"],
        requires_attention=bool(row["requires_attention"]),
    )

def _map_request(row) -> MaintenanceRequest:
    return MaintenanceRequest(
        id=UUID(row["id"]),
        tenant_id=_uuid(row["tenant_id"]),
        unit_id=_uuid(row["unit_id"]),
        title=row["title"],
        description=row["description"],
        category=row["category"],
        urgency=row["urgency"],
        status=row["status"],
        submitted_date=_date(row["submitted_date"]),
        completed_date=_date(row["completed_date"]),
        estimated_cost=_float(row["estimated_cost"]),
        actual_cost=_float(row["actual_cost"]),
        assigned_contractor=row["assigned_contractor"],
        ai_classification_confidence=_float(row["ai_classification_confidence"]),
        ai_suggested_category=row["ai_suggested_category"],
        ai_urgency_score=_float(row["ai_urgency_score"]),
    )

def _map_document(row) -> Document:
    return Document(
        id=UUID(row["id"]),
        tenant_id=_uuid(row["tenant_id"]),
        document_type=row["document_type"],
        name=row["name"],
        extracted_data_json=row["extracted_data_json"],
        extraction_confidence=_float(row["extraction_confidence"]),
        validation_issues=row["validation_issues"],
        fraud_risk_score=_float(row["fraud_risk_score"]),
        document_authenticity=_float(row["document_authenticity"]),
        is_verified=bool(row["is_verified"]),
    )

def _map_tenant(row, payments=(), messages=(), requests=(), documents=()) -> Tenant:
    return Tenant(
        id=UUID(row["id"]),
        unit_id=_uuid(row["unit_id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        phone=row["phone"],
        move_in_date=_date(row["move_in_date"]),
        lease_end_date=_date(row["lease_end_date"]),
        monthly_rent=_float(row["monthly_rent"]),
        security_deposit=_float(row["security_deposit"]),
        employment_status=row["employment_status"],
        monthly_income=_float(row["monthly_income"]),
        reliability_score=_float(row["reliability_score"]),
        satisfaction_score=_float(row["satisfaction_score"]),
        risk_score=_float(row["risk_score"]),
        move_out_probability=_float(row["move_out_probability"]),
        last_communication_sentiment=row["last_communication_sentiment"],
        payments=tuple(payments),
        messages=tuple(messages),
        maintenance_requests=tuple(requests),
        documents=tuple(documents),
    )

def _map_inspection(row) -> Inspection:
    return Inspection(
        id=UUID(row["id"]),
        unit_id=_uuid(row["unit_id"]),
        inspection_type=row["inspection_type"],
        inspection_date=_date(row["inspection_date"]),
        inspector_name=row["inspector_name"],
        overall_condition=row["overall_condition"],
        damages=tuple(damages_from_json(row["damages_json"])),
        estimated_repair_cost=_float(row["estimated_repair_cost"]),
    )

def _map_unit(row, tenant: Optional[Tenant] = None, requests=(), inspections=()) -> Unit:
    return Unit(
        id=UUID(row["id"]),
        property_id=_uuid(row["property_id"]),
        unit_number=row["unit_number"] or "",
        floor=int(row["floor"] or 0),
        bedrooms=int(row["bedrooms"] or 0),
        bathrooms=_float(row["bathrooms"]),
        square_feet=_float(row["square_feet"]),
        monthly_rent=_float(row["monthly_rent"]),
        status=row["status"],
        lease_start_date=_date(row["lease_start_date"]),
        lease_end_date=_date(row["lease_end_date"]),
        features=_json_list(row["features_json"], f"unit {row['id']}"),
        current_tenant=tenant,
        maintenance_requests=tuple(requests),
        inspections=tuple(inspections),
    )

def _map_log(row) -> MaintenanceLog:
    return MaintenanceLog(
        id=UUID(row["id"]),
        property_id=_uuid(row["property_id"]),
        equipment_type=row["equipment_type"],
        equipment_id=row["equipment_id"],
        issue_type=row["issue_type"],
        repair_date=_date(row["repair_date"]),
        repair_cost=_float(row["repair_cost"]),
        preventive=bool(row["preventive"]),
        severity=row["severity"],
        downtime_hours=_float(row["downtime_hours"]),
        season=row["season"],
    )

def _map_property(row, units=(), logs=()) -> Property:
    return Property(
        id=UUID(row["id"]),
        name=row["name"] or "",
        address=row["address"],
        city=row["city"],
        state=row["state"],
        zip_code=row["zip_code"],
        property_type=row["property_type"],
        year_built=int(row["year_built"] or 0),
        total_square_feet=_float(row["total_square_feet"]),
        amenities=_json_list(row["amenities_json"], f"property {row['id']}"),
        units=tuple(units),
        maintenance_logs=tuple(logs),
    )

def _map_reading(row) -> UtilityReading:
    return UtilityReading(
        unit_id=UUID(row["unit_id"]),
        utility=row["utility"],
        ts=_datetime(row["ts"]),
        value=float(row["value"]),
    )

# --------- fetchers ---------

def _connect():
    try:
        return get_engine().begin()
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"database unavailable: {exc}") from exc

def _rows(conn, sql: str, params: Dict[str, Any]) -> List:
    return conn.execute(text(sql), params).mappings().all()

def _tenant_with_records(conn, row) -> Tenant:
    tid = {"tid": row["id"]}
    payments = [_map_payment(r) for r in _rows(conn, "SELECT * FROM payment WHERE tenant_id = :tid ORDER BY payment_date", tid)]
    messages = [_map_message(r) for r in _rows(conn, "SELECT * FROM message WHERE tenant_id = :tid ORDER BY ts", tid)]
    requests = [_map_request(r) for r in _rows(conn, "SELECT * FROM maintenance_request WHERE tenant_id = :tid ORDER BY submitted_date", tid)]
    documents = [_map_document(r) for r in _rows(conn, "SELECT * FROM document WHERE tenant_id = :tid", tid)]
    return _map_tenant(row, payments, messages, requests, documents)

def _unit_with_records(conn, row) -> Unit:
    tenant = None
    if row["current_tenant_id"]:
        trow = conn.execute(text("SELECT * FROM tenant WHERE id = :tid"),
                            {"tid": row["current_tenant_id"]}).mappings().first()
        tenant = _tenant_with_records(conn, trow) if trow else None
    uid = {"uid": row["id"]}
    requests = [_map_request(r) for r in _rows(conn, "SELECT * FROM maintenance_request WHERE unit_id = :uid ORDER BY submitted_date", uid)]
    inspections = [_map_inspection(r) for r in _rows(conn, "SELECT * FROM inspection WHERE unit_id = :uid ORDER BY inspection_date", uid)]
    return _map_unit(row, tenant, requests, inspections)

def fetch_tenant(tenant_id: UUID) -> Tenant:
    """Tenant with payments, messages, maintenance requests and documents."""
    try:
        with _connect() as conn:
            row = conn.execute(text("SELECT * FROM tenant WHERE id = :tid"), {"tid": str(tenant_id)}).mappings().first()
            if not row:
                raise RecordNotFound("Tenant", tenant_id)
            return _tenant_with_records(conn, row)
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"failed to load tenant {tenant_id}: {exc}") from exc

def fetch_tenants(tenant_ids: Iterable[UUID]) -> List[Tenant]:
    return [fetch_tenant(tid) for tid in tenant_ids]

def fetch_unit(unit_id: UUID) -> Unit:
    """Unit with its current tenant (and that tenant's records), requests and inspections."""
    try:
        with _connect() as conn:
            row = conn.execute(text("SELECT * FROM unit WHERE id = :uid"), {"uid": str(unit_id)}).mappings().first()
            if not row:
                raise RecordNotFound("Unit", unit_id)
            return _unit_with_records(conn, row)
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"failed to load unit {unit_id}: {exc}") from exc

def fetch_property(property_id: UUID) -> Property:
    """Property with all units (fully loaded) and its maintenance logs."""
    try:
        with _connect() as conn:
            row = conn.execute(text("SELECT * FROM property WHERE id = :pid"), {"pid": str(property_id)}).mappings().first()
            if not row:
                raise RecordNotFound("Property", property_id)
            pid = {"pid": row["id"]}
            units = [_unit_with_records(conn, r) for r in _rows(conn, "SELECT * FROM unit WHERE property_id = :pid ORDER BY unit_number", pid)]
            logs = [_map_log(r) for r in _rows(conn, "SELECT * FROM maintenance_log WHERE property_id = :pid ORDER BY repair_date", pid)]
            return _map_property(row, units, logs)
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"failed to load property {property_id}: {exc}") from exc

def fetch_readings(unit_id: UUID, ts_from: datetime, ts_to: datetime) -> List[UtilityReading]:
    sql = text("""
        SELECT * FROM utility_reading
        WHERE unit_id = :uid AND ts >= :ts_from AND ts < :ts_to
        ORDER BY ts
    """)
    try:
        with _connect() as conn:
            rows = conn.execute(sql, {"uid": str(unit_id), "ts_from": _to_db(ts_from), "ts_to": _to_db(ts_to)}).mappings().all()
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"failed to load readings for unit {unit_id}: {exc}") from exc
    return [_map_reading(r) for r in rows]

def fetch_monthly_usage(unit_id: UUID, month: date) -> UsageStats:
    """Usage for the calendar month containing `month`."""
    start = datetime(month.year, month.month, 1)
    end = datetime(month.year + (month.month == 12), month.month % 12 + 1, 1)
    return usage_from_readings(fetch_readings(unit_id, start, end), start.date())

# --------- writers ---------

def insert_record(table: str, record: Dict[str, Any]) -> None:
    """Insert one row; keys must be columns of a known table."""
    if table not in SCHEMA:
        raise InvalidInput(f"unknown table {table!r}")
    unknown = [k for k in record if k not in COLUMNS[table]]
    if not record or unknown:
        raise InvalidInput(f"bad columns for {table}: {unknown or 'none given'}")
    cols = ", ".join(record)
    binds = ", ".join(f":{k}" for k in record)
    try:
        with _connect() as conn:
            conn.execute(text(f"INSERT INTO {table} ({cols}) VALUES ({binds})"),
                         {k: _to_db(v) for k, v in record.items()})
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"insert into {table} failed: {exc}") from exc

def _update(table: str, record_id: UUID, entity: str, values: Dict[str, Any]) -> None:
    assignments = ", ".join(f"{k} = :{k}" for k in values)
    params = {k: _to_db(v) for k, v in values.items()}
    params["id"] = str(record_id)
    try:
        with _connect() as conn:
            result = conn.execute(text(f"UPDATE {table} SET {assignments} WHERE id = :id"), params)
            if result.rowcount == 0:
                raise RecordNotFound(entity, record_id)
    except SQLAlchemyError as exc:
        raise StoreUnavailable(f"update of {table} {record_id} failed: {exc}") from exc

def save_tenant_scores(tenant_id: UUID, **scores: Any) -> None:
    """Write derived score fields back onto the tenant row."""
    unknown = set(scores) - TENANT_SCORE_FIELDS
    if not scores or unknown:
        raise InvalidInput(f"not tenant score fields: {sorted(unknown) or 'none given'}")
    _update("tenant", tenant_id, "Tenant", dict(scores, updated_at=datetime.now()))
    logger.info("saved %s for tenant %s", ", ".join(sorted(scores)), tenant_id)

def save_request_triage(request_id: UUID, triage) -> None:
    _update("maintenance_request", request_id, "MaintenanceRequest", {
        "ai_suggested_category": triage.category,
        "ai_classification_confidence": triage.confidence,
        "ai_urgency_score": triage.urgency_score,
        "ai_detected_issues_json": list(triage.detected_issues),
        "urgency": triage.urgency,
        "estimated_cost": triage.estimated_cost,
        "assigned_contractor": triage.suggested_contractor,
    })
    logger.info("saved triage for request %s: %s/%s", request_id, triage.category, triage.urgency)

def save_message_analysis(message_id: UUID, analysis) -> None:
    _update("message", message_id, "Message", {
        "sentiment": analysis.sentiment,
        "sentiment_score": analysis.sentiment_score,
        "urgency_level": analysis.urgency,
        "requires_attention": analysis.requires_attention,
        "detected_topics_json": list(analysis.detected_topics),
        "ai_suggested_reply": analysis.suggested_reply,
    })
