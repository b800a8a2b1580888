"""
Tests for lease field extraction from recognised document text.
"""

import json
import pytest
from datetime import date

from estateintel.lease_scan import (
    LeaseData, calculate_confidence, extract_dates, extract_lease_data, issues_json,
    months_between, scan_text, validate_data,
)

LEASE = """RESIDENTIAL LEASE AGREEMENT
Tenant: Jane Doe
Landlord: Acme Holdings
Property: 12 Main Street, Springfield
Monthly rent: $1,250.00 due on the first of each month.
Security deposit: $1,500.00
Lease term from 01/01/2024 to 12/31/2024.
Signed by both parties.
"""


class TestExtraction:

    def test_full_lease(self):
        data = extract_lease_data(LEASE)
        assert data.tenant_name == "Jane Doe"
        assert data.landlord_name == "Acme Holdings"
        assert data.property_address == "12 Main Street, Springfield"
        assert data.monthly_rent == 1250.0
        assert data.security_deposit == 1500.0
        assert data.lease_start_date == date(2024, 1, 1)
        assert data.lease_end_date == date(2024, 12, 31)
        assert data.lease_term == 11
        assert data.signature_detected

    def test_month_name_dates(self):
        dates = extract_dates("Starts January 5, 2024 and ends Jan 4, 2025")
        assert dates == [date(2024, 1, 5), date(2025, 1, 4)]

    def test_dashed_dates_sorted(self):
        assert extract_dates("until 3-1-2025, from 3-1-2024") == [date(2024, 3, 1), date(2025, 3, 1)]

    def test_invalid_date_ignored(self):
        assert extract_dates("on 13/45/2024") == []

    def test_months_between(self):
        assert months_between(date(2024, 1, 5), date(2025, 1, 4)) == 11
        assert months_between(date(2024, 1, 1), date(2025, 1, 1)) == 12


class TestValidation:

    def test_clean_lease_has_no_issues(self):
        assert validate_data(extract_lease_data(LEASE)) == []

    def test_missing_everything(self):
        issues = validate_data(LeaseData())
        assert [(i.field, i.severity) for i in issues] == [
            ("Tenant Name", "Error"), ("Monthly Rent", "Error"), ("Start Date", "Error"),
            ("End Date", "Warning"), ("Signature", "Warning"),
        ]

    def test_same_start_and_end(self):
        data = LeaseData(tenant_name="A", monthly_rent=900.0, lease_start_date=date(2024, 1, 1),
                         lease_end_date=date(2024, 1, 1), signature_detected=True)
        assert [i.field for i in validate_data(data)] == ["Dates"]

    def test_unusual_rent(self):
        data = LeaseData(tenant_name="A", monthly_rent=60.0, lease_start_date=date(2024, 1, 1),
                         lease_end_date=date(2025, 1, 1), signature_detected=True)
        assert [(i.field, i.severity) for i in validate_data(data)] == [("Rent", "Warning")]

    def test_issues_json(self):
        issues = validate_data(LeaseData(tenant_name="A", monthly_rent=900.0, signature_detected=True))
        assert json.loads(issues_json(issues)) == [
            "Start Date: Lease start date not found", "End Date: Lease end date not found",
        ]


class TestScanText:

    def test_full_lease(self):
        result = scan_text(LEASE)
        assert result.success
        expected = (6 + (len(LEASE) > 200)) / 7
        assert result.confidence == pytest.approx(expected)
        assert result.validation_issues == []

    def test_short_text_fails(self):
        result = scan_text("Tenant: Bob")
        assert not result.success
        assert result.structured_data.tenant_name == "Bob"
        assert result.confidence == pytest.approx(1 / 7)

    def test_confidence_counts_found_fields(self):
        assert calculate_confidence(LeaseData(), 0) == 0.0
        assert calculate_confidence(LeaseData(tenant_name="A", monthly_rent=1.0), 500) == pytest.approx(3 / 7)
