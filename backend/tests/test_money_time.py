"""
Tests for amount parsing and time helpers.

Verifies:
- Dollar strings convert to exact cents without float drift
- Negative and non-numeric amounts are rejected
- Browser hour offsets render as +HHMM / -HHMM
- Local day windows include the whole end day
"""

from datetime import datetime, timezone

import pytest

from vterm.errors import BadAmount, BadID
from vterm.money import format_amount, parse_amount, parse_id, parse_minor_units
from vterm.time_utils import (
    format_tz_offset,
    iso8601,
    local_day_window,
    parse_iso8601,
    previous_month_year,
)


# =============================================================================
# AMOUNTS
# =============================================================================


class TestParseAmount:

    @pytest.mark.parametrize(
        "value,cents",
        [
            ("12.56", 1256),
            ("32.55", 3255),
            ("32.52", 3252),
            ("0.50", 50),
            ("0.49", 49),
            ("1", 100),
            ("  7.1 ", 710),
            ("0", 0),
        ],
    )
    def test_converts_to_cents(self, value, cents):
        assert parse_amount(value) == cents

    @pytest.mark.parametrize("value", ["-1.00", "abc", "", "nan", "inf", None])
    def test_rejects_bad_input(self, value):
        with pytest.raises(BadAmount):
            parse_amount(value)

    def test_format_reverses_parse(self):
        for value in ("0.50", "12.56", "1000.00", "0.05"):
            assert format_amount(parse_amount(value)) == value

    def test_parse_reverses_format(self):
        for cents in (0, 1, 49, 50, 3255, 99999, 10**9):
            assert parse_amount(format_amount(cents)) == cents

    def test_minor_units(self):
        assert parse_minor_units("1256") == 1256
        assert parse_minor_units(" 50 ") == 50

    @pytest.mark.parametrize("value", ["12.56", "-5", "", None, "\u00b2", "5\u00b2", "\u0661\u0662", "\uff11"])
    def test_minor_units_must_be_ascii_digits(self, value):
        with pytest.raises(BadAmount):
            parse_minor_units(value)


class TestParseID:

    def test_parses_base_ten(self):
        assert parse_id("42") == 42

    @pytest.mark.parametrize("value", ["", None, "x1", "1.5"])
    def test_rejects(self, value):
        with pytest.raises(BadID):
            parse_id(value)


# =============================================================================
# TIME
# =============================================================================


class TestTimezoneOffset:

    @pytest.mark.parametrize(
        "hours,offset",
        [
            (-4, "-0400"),
            (5.5, "+0500"),
            (10, "+1000"),
            (-11, "-1100"),
            (0, "-0000"),
            ("-5", "-0500"),
        ],
    )
    def test_format(self, hours, offset):
        assert format_tz_offset(hours) == offset


class TestDayWindow:

    def test_end_day_is_inclusive(self):
        start, end = local_day_window("2024-03-01", "2024-03-01", "-0400")
        assert start.isoformat() == "2024-03-01T00:00:00-04:00"
        assert end.isoformat() == "2024-03-01T23:59:59-04:00"
        assert int(end.timestamp()) - int(start.timestamp()) == 86399

    def test_bad_date(self):
        with pytest.raises(ValueError):
            local_day_window("03/01/2024", "2024-03-01", "+0000")


class TestISO8601:

    def test_millisecond_precision(self):
        dt = datetime(2024, 1, 2, 3, 4, 5, 678901, tzinfo=timezone.utc)
        assert iso8601(dt) == "2024-01-02T03:04:05.678Z"

    def test_parse_back(self):
        assert parse_iso8601("2024-01-02T03:04:05.678Z").year == 2024


class TestPreviousMonth:

    def test_january_rolls_back(self):
        assert previous_month_year(datetime(2024, 1, 15, tzinfo=timezone.utc)) == "12/2023"

    def test_mid_year(self):
        assert previous_month_year(datetime(2024, 7, 1, tzinfo=timezone.utc)) == "6/2024"
