"""
Tests for move-out probability and vacancy planning.
"""

import pytest
from datetime import timedelta

from estateintel.vacancy import (
    analyze_unit, complaint_factor, engagement_factor, estimate_vacancy_duration,
    lease_end_factor, payment_factor, predict_vacancies,
)


def _late_recent(make):
    return (make.payment(days_ago=1, is_late=True), make.payment(days_ago=31, is_late=True),
            make.payment(days_ago=61), make.payment(days_ago=91))


class TestFactors:

    @pytest.mark.parametrize("days_left,score", [
        (None, 0.1), (-1, 1.0), (10, 0.9), (45, 0.6), (75, 0.3), (120, 0.05),
    ])
    def test_lease_end(self, make, asof, days_left, score):
        assert lease_end_factor(make.unit(lease_days_left=days_left), asof)[0] == score

    def test_payment_patterns(self, make):
        assert payment_factor(make.tenant()) == (0.0, "")
        assert payment_factor(make.tenant(payments=_late_recent(make)))[0] == 0.8
        spread = (make.payment(days_ago=1), make.payment(days_ago=31, is_late=True),
                  make.payment(days_ago=61), make.payment(days_ago=91, is_late=True),
                  make.payment(days_ago=121, is_late=True))
        # 3/5 late but only one among the newest three
        assert payment_factor(make.tenant(payments=spread))[0] == 0.5

    def test_complaints(self, make):
        assert complaint_factor(make.tenant(maintenance_requests=tuple(make.request() for _ in range(11))))[0] == 0.7
        urgent = tuple(make.request(urgency="Critical") for _ in range(4))
        assert complaint_factor(make.tenant(maintenance_requests=urgent))[0] == 0.6
        assert complaint_factor(make.tenant(maintenance_requests=tuple(make.request() for _ in range(6))))[0] == 0.3
        assert complaint_factor(make.tenant()) == (0.0, "")

    def test_engagement(self, make):
        assert engagement_factor(make.tenant())[0] == 0.1
        assert engagement_factor(make.tenant(messages=make.messages("Negative", "Negative", "Negative")))[0] == 0.7
        assert engagement_factor(make.tenant(messages=make.messages("Negative", "Positive", "Negative")))[0] == 0.4
        # negatives outside the five most recent do not count
        older = make.messages("Positive", "Positive", "Positive", "Positive", "Positive", "Negative", "Negative")
        assert engagement_factor(make.tenant(messages=older))[0] == 0.0


class TestEstimates:

    def test_duration_summer_discount(self, make, asof):
        # (30 + 2 x 5 + 7) x 0.8, truncated
        assert estimate_vacancy_duration(make.unit(), asof) == 37

    def test_duration_winter_premium(self, make, asof):
        unit = make.unit(bedrooms=3, monthly_rent=2500)
        # (30 + 15 + 15) x 1.2
        assert estimate_vacancy_duration(unit, asof.replace(month=12)) == 72

    def test_duration_neutral_month(self, make, asof):
        assert estimate_vacancy_duration(make.unit(monthly_rent=1000), asof.replace(month=10)) == 40


class TestAnalyzeUnit:

    def test_vacant_unit(self, make, asof):
        assert analyze_unit(make.unit(), asof) is None

    def test_medium_risk_near_lease_end(self, make, asof):
        unit = make.unit(tenant=make.tenant(payments=_late_recent(make)), lease_days_left=20)
        pred = analyze_unit(unit, asof)
        # 0.4 x 0.9 + 0.25 x 0.8 + 0.15 x 0.1
        assert pred.move_out_probability == pytest.approx(0.575)
        assert pred.risk_level == "Medium Risk"
        assert pred.behavioral_indicators == ["Lease ending in 20 days", "Multiple recent late payments"]
        assert pred.predicted_vacancy_date == asof + timedelta(days=20)
        assert pred.predicted_vacancy_duration == 37
        assert pred.marketing_recommendations == [
            "Begin pre-marketing 30 days before expected vacancy",
            "Prepare unit listing with current photos",
        ]

    def test_imminent_move_out(self, make, asof):
        tenant = make.tenant(
            payments=_late_recent(make),
            maintenance_requests=tuple(make.request() for _ in range(11)),
            messages=make.messages("Negative", "Negative", "Negative"),
        )
        pred = analyze_unit(make.unit(tenant=tenant, lease_days_left=10, bedrooms=3), asof)
        assert pred.move_out_probability == pytest.approx(0.805)
        assert pred.risk_level == "Imminent Move-Out"
        assert pred.marketing_recommendations[0] == "Start marketing immediately to minimize vacancy"
        assert pred.marketing_recommendations[-1] == "Target family-oriented marketing (schools, parks nearby)"

    def test_low_risk_has_no_vacancy_date(self, make, asof):
        pred = analyze_unit(make.unit(tenant=make.tenant()), asof)
        # 0.4 x 0.05 + 0.15 x 0.1
        assert pred.move_out_probability == pytest.approx(0.035)
        assert pred.risk_level == "Low Risk"
        assert pred.predicted_vacancy_date is None

    def test_distant_lease_end_projects_date(self, make, asof):
        tenant = make.tenant(
            payments=_late_recent(make),
            maintenance_requests=tuple(make.request() for _ in range(11)),
            messages=make.messages("Negative", "Negative", "Negative"),
        )
        pred = analyze_unit(make.unit(tenant=tenant, lease_days_left=200), asof)
        # 0.02 + 0.2 + 0.14 + 0.105
        assert pred.move_out_probability == pytest.approx(0.465)
        assert pred.predicted_vacancy_date == asof + timedelta(days=int((1 - pred.move_out_probability) * 180))


class TestPredictVacancies:

    def test_only_occupied_units_sorted_by_probability(self, make, asof):
        calm = make.unit(tenant=make.tenant(), unit_number="101")
        risky = make.unit(tenant=make.tenant(payments=_late_recent(make)), lease_days_left=20, unit_number="102")
        vacant = make.unit(unit_number="103")
        ended = make.unit(tenant=make.tenant(), lease_days_left=-5, unit_number="104")
        preds = predict_vacancies(make.property(units=[calm, vacant, risky, ended]), asof)
        assert [p.unit_number for p in preds] == ["102", "101"]

    def test_probabilities_bounded(self, make, asof):
        tenant = make.tenant(
            payments=_late_recent(make),
            maintenance_requests=tuple(make.request(urgency="Critical") for _ in range(12)),
            messages=make.messages(*(["Negative"] * 5)),
        )
        pred = analyze_unit(make.unit(tenant=tenant, lease_days_left=-3), asof)
        assert 0.0 <= pred.move_out_probability <= 1.0
