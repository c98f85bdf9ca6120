"""
Unit tests for wage field coercion.

Every parser is total: bad input defaults and reports, never raises.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from wage_pipeline.core.errors import RecordCoercionDefault
from wage_pipeline.normalizer.coercion import (
    MAX_PAY,
    parse_employee_id,
    parse_pay,
    parse_text,
    parse_timestamp,
    parse_year,
    to_cents,
)

FALLBACK = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.unit
class TestParsePay:
    """Tests for pay amount parsing"""

    def test_thousands_separator_stripped(self):
        amount, problem = parse_pay("1,234.50", "basepay")

        assert amount == Decimal("1234.50")
        assert problem is None

    def test_not_available_marker_is_zero(self):
        amount, problem = parse_pay("N/A", "basepay")

        assert amount == Decimal("0")
        assert problem is None

    @pytest.mark.parametrize("raw,expected", [
        ("$38,000", Decimal("38000.00")),
        ("  12.5 ", Decimal("12.50")),
        (40000, Decimal("40000.00")),
        (99.999, Decimal("100.00")),
        (Decimal("10.005"), Decimal("10.01")),
    ])
    def test_accepted_values(self, raw, expected):
        amount, problem = parse_pay(raw, "grosspay")

        assert amount == expected
        assert problem is None

    @pytest.mark.parametrize("raw", [None, "", "-", "*****", "na"])
    def test_empty_markers_default_silently(self, raw):
        amount, problem = parse_pay(raw, "grosspay")

        assert amount == Decimal("0")
        assert problem is None

    @pytest.mark.parametrize("raw", ["abc", "-5.00", -1, True, float("nan"), float("inf"), [1]])
    def test_unusable_values_default_with_report(self, raw):
        amount, problem = parse_pay(raw, "overtimepay")

        assert amount == Decimal("0")
        assert isinstance(problem, RecordCoercionDefault)
        assert problem.field_name == "overtimepay"

    @pytest.mark.parametrize("raw", [
        "1e30",
        "99999999999",
        "99999999999999999999999999999",
        10**30,
        "9999999999.995",
    ])
    def test_amounts_beyond_storage_default_with_report(self, raw):
        amount, problem = parse_pay(raw, "grosspay")

        assert amount == Decimal("0")
        assert problem.field_name == "grosspay"

    def test_largest_storable_amount_kept(self):
        assert parse_pay("9,999,999,999.99", "grosspay") == (MAX_PAY, None)

    def test_to_cents_rounds_half_up(self):
        assert to_cents(Decimal("0.125")) == Decimal("0.13")
        assert to_cents(Decimal("2.5")) == Decimal("2.50")


@pytest.mark.unit
class TestParseEmployeeId:
    """Tests for employee identifier parsing"""

    @pytest.mark.parametrize("raw,expected", [
        (42, 42),
        (42.0, 42),
        ("  17 ", 17),
    ])
    def test_accepted_values(self, raw, expected):
        assert parse_employee_id(raw) == (expected, None)

    def test_missing_is_anonymous_without_report(self):
        assert parse_employee_id(None) == (None, None)
        assert parse_employee_id("") == (None, None)

    @pytest.mark.parametrize("raw", ["E-17", 4.5, True, {"id": 1}])
    def test_unusable_values_report(self, raw):
        employee_id, problem = parse_employee_id(raw)

        assert employee_id is None
        assert problem.field_name == "employee_id"


@pytest.mark.unit
class TestParseText:
    """Tests for name and title parsing"""

    def test_strips_whitespace_and_keeps_case(self):
        assert parse_text("  Prof-Ay ", "title") == ("Prof-Ay", None)

    def test_missing_is_empty(self):
        assert parse_text(None, "title") == ("", None)

    def test_number_is_stringified(self):
        assert parse_text(123, "lastname") == ("123", None)

    def test_container_defaults_with_report(self):
        text, problem = parse_text(["A"], "firstname")

        assert text == ""
        assert problem.field_name == "firstname"


@pytest.mark.unit
class TestParseYearAndTimestamp:
    """Tests for year and timestamp parsing"""

    @pytest.mark.parametrize("raw,expected", [
        (2023, 2023),
        ("2023", 2023),
        (2023.0, 2023),
        ("twenty", None),
        (True, None),
        (None, None),
    ])
    def test_parse_year(self, raw, expected):
        assert parse_year(raw) == expected

    def test_zulu_timestamp(self):
        parsed, problem = parse_timestamp("2024-03-01T12:00:00Z", FALLBACK)

        assert parsed == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
        assert problem is None

    def test_naive_timestamp_is_utc(self):
        parsed, _ = parse_timestamp("2024-03-01T12:00:00", FALLBACK)

        assert parsed.tzinfo == timezone.utc

    def test_missing_timestamp_uses_fallback(self):
        assert parse_timestamp(None, FALLBACK) == (FALLBACK, None)

    def test_garbage_timestamp_uses_fallback_with_report(self):
        parsed, problem = parse_timestamp("yesterday", FALLBACK)

        assert parsed == FALLBACK
        assert problem.field_name == "scraped_at"
