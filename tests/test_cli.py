"""
CLI: each subcommand prints JSON on stdout and returns an exit code.
"""

import json
import pytest
from datetime import date
from uuid import uuid4

from estateintel import db
from estateintel.cli import build_parser, main


def run(capsys, *argv):
    code = main(list(argv))
    return code, json.loads(capsys.readouterr().out)


@pytest.fixture(autouse=True)
def default_pricing(monkeypatch):
    for name in ("AMENITY", "LOCATION", "MARKET_TREND", "FEATURES"):
        monkeypatch.delenv(f"ESTATEINTEL_PRICING_{name}", raising=False)


class TestParser:

    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_rejects_bad_uuid(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["screen", "--tenant-id", "not-a-uuid"])

    def test_log_level_is_case_insensitive(self):
        args = build_parser().parse_args(["--log-level", "debug", "triage", "Leak"])
        assert args.log_level == "DEBUG"

    def test_rejects_unknown_log_level(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--log-level", "foo", "triage", "Leak"])

    def test_rejects_bad_adjustment(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["price", "--unit-id", "00000000-0000-0000-0000-000000000001",
                                       "--adjust", "reno"])


# =============================================================
# TEST: Commands without the store
# =============================================================

class TestStatelessCommands:

    def test_triage(self, capsys):
        code, out = run(capsys, "triage", "The kitchen sink is leaking", "--images", "1")
        assert code == 0
        assert out["category"] == "Plumbing"
        assert out["detected_issues"] == ["Water leak detected", "Visual damage detected"]

    def test_message(self, capsys):
        code, out = run(capsys, "message", "Thank you, the repair was great")
        assert code == 0
        assert out["sentiment"] == "Positive"
        assert out["detected_topics"] == ["Maintenance"]

    def test_save_without_id_is_an_error(self, capsys):
        code, out = run(capsys, "triage", "Leak", "--save")
        assert code == 1
        assert "request-id" in out["error"]


# =============================================================
# TEST: Store-backed commands
# =============================================================

class TestStoreCommands:

    def test_init_db(self, store, capsys):
        code, out = run(capsys, "init-db")
        assert code == 0
        assert "tenant" in out["tables"]

    def test_screen_and_save(self, seeded, capsys):
        code, out = run(capsys, "screen", "--tenant-id", str(seeded["tenant"]), "--asof", "2024-06-15", "--save")
        assert code == 0
        # 25 + 20 + 20 + 13 + 2
        assert out["reliability_score"] == 80.0
        assert out["recommendation"] == "Recommend"
        assert db.fetch_tenant(seeded["tenant"]).reliability_score == 80.0

    def test_compare(self, seeded, capsys):
        code, out = run(capsys, "compare", "--tenant-ids", str(seeded["tenant"]), "--asof", "2024-06-15")
        assert code == 0
        assert [r["comparison_rank"] for r in out] == [1]

    def test_fraud(self, seeded, capsys):
        code, out = run(capsys, "fraud", "--tenant-id", str(seeded["tenant"]))
        assert code == 0
        assert out["risk_level"] == "Low Risk"

    def test_vacancy_and_save(self, seeded, capsys):
        code, out = run(capsys, "vacancy", "--property-id", str(seeded["property"]), "--asof", "2024-06-15", "--save")
        assert code == 0
        assert [p["unit_number"] for p in out] == ["101"]
        assert out[0]["predicted_vacancy_date"] == "2024-07-05"
        assert db.fetch_tenant(seeded["tenant"]).move_out_probability == pytest.approx(0.56)

    def test_satisfaction(self, seeded, capsys):
        code, out = run(capsys, "satisfaction", "--tenant-id", str(seeded["tenant"]), "--asof", "2024-06-15",
                        "--market-rent", "1700")
        assert code == 0
        assert 0 <= out["satisfaction_score"] <= 100

    def test_price_with_what_if(self, seeded, capsys):
        code, out = run(capsys, "price", "--unit-id", str(seeded["unit"]), "--asof", "2024-07-10",
                        "--adjust", "renovation=0.10")
        assert code == 0
        assert out["recommended_rent"] == 4300.0
        assert out["what_if"]["adjusted_rent"] == 4725.0

    def test_energy(self, seeded, capsys):
        code, out = run(capsys, "energy", "--unit-id", str(seeded["unit"]), "--month", "2024-05")
        assert code == 0
        assert out["monthly_usage"]["electricity"] == 1200.0
        assert out["monthly_usage"]["month"] == "2024-05-01"
        assert [a["utility_type"] for a in out["anomalies_detected"]] == ["Electricity"]

    def test_maintenance(self, seeded, capsys):
        code, out = run(capsys, "maintenance", "--property-id", str(seeded["property"]), "--asof", "2024-06-15")
        assert code == 0
        assert out[0]["predicted_failure_date"] == "2024-07-08"
        assert out[0]["severity"] == "High"

    def test_triage_saved_to_request(self, seeded, capsys):
        code, _ = run(capsys, "triage", "The kitchen sink is leaking",
                      "--request-id", str(seeded["request"]), "--save")
        assert code == 0
        assert db.fetch_tenant(seeded["tenant"]).maintenance_requests[0].ai_suggested_category == "Plumbing"

    def test_bad_stored_damage_json_does_not_break_pricing(self, seeded, store, capsys):
        store.insert_record("inspection", {
            "id": uuid4(), "unit_id": seeded["unit"],
            "inspection_type": "Routine", "inspection_date": date(2024, 6, 1),
            "damages_json": '[{"room": "Kitchen", "damageType": "Stain", "severity": "Minor", "confidence": "n/a"}]',
        })
        code, out = run(capsys, "price", "--unit-id", str(seeded["unit"]), "--asof", "2024-07-10")
        assert code == 0
        assert out["recommended_rent"] == 4300.0

    def test_missing_record_exit_code(self, store, capsys):
        code, out = run(capsys, "screen", "--tenant-id", "00000000-0000-0000-0000-000000000001")
        assert code == 1
        assert out["entity"] == "Tenant"
        assert out["error"].endswith("not found")
