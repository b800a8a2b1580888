import argparse, json, logging
from dataclasses import asdict
from uuid import UUID
from datetime import date
from typing import Dict, List, Optional

from . import db
from .config import configure_logging
from .errors import EstateIntelError, InvalidInput
from .screening import screen_tenant, compare_applicants
from .fraud import analyze_tenant_application
from .vacancy import predict_vacancies
from .satisfaction import predict_satisfaction
from .pricing import PricingAssumptions, calculate_optimal_rent, calculate_what_if_scenario
from .energy import analyze_utility_usage
from .triage import analyze_request
from .predictive import analyze_maintenance
from .communication import analyze_message

logger = logging.getLogger("estateintel.cli")


def _month(raw: str) -> date:
    try:
        year, month = raw.split("-")[:2]
        return date(int(year), int(month), 1)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {raw!r}") from exc

def _adjustment(raw: str) -> tuple:
    name, sep, value = raw.partition("=")
    try:
        if not sep:
            raise ValueError(raw)
        return name, float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected NAME=FRACTION, got {raw!r}") from exc

# --------- commands ---------

def cmd_screen(args) -> Dict:
    t = db.fetch_tenant(args.tenant_id)
    result = screen_tenant(t, args.asof)
    if args.save:
        db.save_tenant_scores(t.id, reliability_score=result.reliability_score)
    return asdict(result)

def cmd_compare(args) -> List[Dict]:
    return [asdict(r) for r in compare_applicants(db.fetch_tenants(args.tenant_ids), args.asof)]

def cmd_fraud(args) -> Dict:
    t = db.fetch_tenant(args.tenant_id)
    analysis = analyze_tenant_application(t)
    if args.save:
        db.save_tenant_scores(t.id, risk_score=analysis.risk_score)
    return asdict(analysis)

def cmd_vacancy(args) -> List[Dict]:
    p = db.fetch_property(args.property_id)
    predictions = predict_vacancies(p, args.asof)
    if args.save:
        for pred in predictions:
            if pred.tenant_id is not None:
                db.save_tenant_scores(pred.tenant_id, move_out_probability=pred.move_out_probability)
    return [asdict(pred) for pred in predictions]

def cmd_satisfaction(args) -> Dict:
    t = db.fetch_tenant(args.tenant_id)
    analysis = predict_satisfaction(t, args.asof, args.market_rent)
    if args.save:
        db.save_tenant_scores(t.id, satisfaction_score=analysis.satisfaction_score)
    return asdict(analysis)

def cmd_price(args) -> Dict:
    u = db.fetch_unit(args.unit_id)
    prop = db.fetch_property(u.property_id) if u.property_id else None
    rec = calculate_optimal_rent(u, prop, args.asof, PricingAssumptions.from_env())
    out = asdict(rec)
    if args.adjust:
        out["what_if"] = asdict(calculate_what_if_scenario(rec.recommended_rent, dict(args.adjust)))
    return out

def cmd_energy(args) -> Dict:
    u = db.fetch_unit(args.unit_id)
    month = args.month or (args.asof or date.today()).replace(day=1)
    return asdict(analyze_utility_usage(u, db.fetch_monthly_usage(u.id, month)))

def cmd_triage(args) -> Dict:
    triage = analyze_request(args.text, image_count=args.images)
    if args.save:
        if args.request_id is None:
            raise InvalidInput("--save needs --request-id")
        db.save_request_triage(args.request_id, triage)
    return asdict(triage)

def cmd_maintenance(args) -> List[Dict]:
    return [asdict(p) for p in analyze_maintenance(db.fetch_property(args.property_id), args.asof)]

def cmd_message(args) -> Dict:
    analysis = analyze_message(args.text)
    if args.save:
        if args.message_id is None:
            raise InvalidInput("--save needs --message-id")
        db.save_message_analysis(args.message_id, analysis)
    return asdict(analysis)

def cmd_init_db(args) -> Dict:
    db.init_schema()
    return {"status": "ok", "tables": sorted(db.SCHEMA)}

# --------- parser ---------

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="estateintel", description="Property-management scoring engines")
    ap.add_argument("--log-level", default=None, type=str.upper,
                    choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], help="Root log level")
    sub = ap.add_subparsers(dest="command", required=True)

    def add(name: str, func, help_text: str, save: bool = False) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--asof", type=date.fromisoformat, default=None, help="Evaluation date (YYYY-MM-DD)")
        if save:
            p.add_argument("--save", action="store_true", help="Write derived scores back to the store")
        p.set_defaults(func=func)
        return p

    add("screen", cmd_screen, "Reliability score for one tenant", save=True) \
        .add_argument("--tenant-id", required=True, type=UUID)
    add("compare", cmd_compare, "Rank several applicants") \
        .add_argument("--tenant-ids", required=True, type=UUID, nargs="+")
    add("fraud", cmd_fraud, "Fraud risk for a tenant application", save=True) \
        .add_argument("--tenant-id", required=True, type=UUID)
    add("vacancy", cmd_vacancy, "Move-out predictions for a property", save=True) \
        .add_argument("--property-id", required=True, type=UUID)

    p = add("satisfaction", cmd_satisfaction, "Satisfaction and retention for a tenant", save=True)
    p.add_argument("--tenant-id", required=True, type=UUID)
    p.add_argument("--market-rent", type=float, default=None, help="Market average rent")

    p = add("price", cmd_price, "Recommended rent for a unit")
    p.add_argument("--unit-id", required=True, type=UUID)
    p.add_argument("--adjust", type=_adjustment, action="append", default=[],
                   help="What-if adjustment NAME=FRACTION, repeatable")

    p = add("energy", cmd_energy, "Utility anomalies and savings for a unit")
    p.add_argument("--unit-id", required=True, type=UUID)
    p.add_argument("--month", type=_month, default=None, help="YYYY-MM (default: month of --asof)")

    p = add("triage", cmd_triage, "Classify a maintenance request", save=True)
    p.add_argument("text")
    p.add_argument("--images", type=int, default=0)
    p.add_argument("--request-id", type=UUID, default=None)

    add("maintenance", cmd_maintenance, "Equipment failure predictions for a property") \
        .add_argument("--property-id", required=True, type=UUID)

    p = add("message", cmd_message, "Sentiment, urgency and reply for a tenant message", save=True)
    p.add_argument("text")
    p.add_argument("--message-id", type=UUID, default=None)

    add("init-db", cmd_init_db, "Create the schema")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        out = args.func(args)
    except EstateIntelError as exc:
        logger.error("%s failed: %s", args.command, exc.message)
        print(json.dumps({"error": exc.message, **exc.context}, ensure_ascii=False, indent=2))
        return 1

    print(json.dumps(out, ensure_ascii=False, indent=2, default=str))
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
