"""Tests for date parsing and coercion."""

from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from tracker.dates import (
    DateFormat,
    build_local_date,
    coerce_date,
    format_br_date,
    month_key,
    parse_local_date,
    parse_text_date,
)


class TestParseLocalDate:
    def test_dmy_slash(self):
        assert parse_local_date("31/12/2024", DateFormat.DMY_SLASH) == date(2024, 12, 31)

    def test_ymd_dash(self):
        assert parse_local_date("2024-12-31", DateFormat.YMD_DASH) == date(2024, 12, 31)

    def test_format_accepts_string_names(self):
        assert parse_local_date("31/12/2024", "DMY-slash") == parse_local_date("2024-12-31", "YMD-dash")

    @pytest.mark.parametrize("fmt", list(DateFormat))
    @pytest.mark.parametrize("raw", ["", None, "13/2024", "2024-12", "a/b/c", "00/12/2024", "2024-00-10"])
    def test_invalid_inputs_yield_none(self, raw, fmt):
        assert parse_local_date(raw, fmt) is None

    def test_wrong_separator_for_format(self):
        assert parse_local_date("2024-12-31", DateFormat.DMY_SLASH) is None
        assert parse_local_date("31/12/2024", DateFormat.YMD_DASH) is None

    def test_overflowing_day_rolls_into_next_month(self):
        assert parse_local_date("31/04/2024", DateFormat.DMY_SLASH) == date(2024, 5, 1)
        assert parse_local_date("2023-02-29", DateFormat.YMD_DASH) == date(2023, 3, 1)

    def test_overflowing_month_rolls_into_next_year(self):
        assert parse_local_date("01/13/2024", DateFormat.DMY_SLASH) == date(2025, 1, 1)

    def test_leading_integer_parse(self):
        assert parse_local_date(" 05/03/2024 ", DateFormat.DMY_SLASH) == date(2024, 3, 5)
        assert parse_local_date("2024-03-05T10:00", DateFormat.YMD_DASH) == date(2024, 3, 5)

    def test_two_digit_year_reads_as_1900s(self):
        assert parse_local_date("31/12/24", DateFormat.DMY_SLASH) == date(1924, 12, 31)
        assert parse_local_date("01/02/87", DateFormat.DMY_SLASH) == date(1987, 2, 1)
        assert parse_local_date("24-02-01", DateFormat.YMD_DASH) == date(1924, 2, 1)

    def test_unrepresentable_year(self):
        assert parse_local_date("01/01/99999", DateFormat.DMY_SLASH) is None


def test_build_local_date_negative_month():
    assert build_local_date(2024, -1, 15) == date(2023, 11, 15)


def test_parse_text_date_tries_dmy_first():
    assert parse_text_date("03/04/2024") == date(2024, 4, 3)
    assert parse_text_date("2024-04-03") == date(2024, 4, 3)
    assert parse_text_date("April 3rd") is None


class TestCoerceDate:
    def test_native_values(self):
        assert coerce_date(date(2024, 1, 2)) == date(2024, 1, 2)
        assert coerce_date(datetime(2024, 1, 2, 23, 59)) == date(2024, 1, 2)
        assert coerce_date(pd.Timestamp("2024-01-02")) == date(2024, 1, 2)
        assert coerce_date(np.datetime64("2024-01-02")) == date(2024, 1, 2)

    def test_excel_serial(self):
        assert coerce_date(45292) == date(2024, 1, 1)
        assert coerce_date(45292.75) == date(2024, 1, 1)
        assert coerce_date(np.int64(45292)) == date(2024, 1, 1)

    def test_text(self):
        assert coerce_date("15/01/2024") == date(2024, 1, 15)
        assert coerce_date("2024-01-15") == date(2024, 1, 15)

    @pytest.mark.parametrize("value", [None, float("nan"), pd.NaT, pd.NA, True, "", "n/a", object()])
    def test_missing_or_unusable(self, value):
        assert coerce_date(value) is None


def test_month_key_and_format():
    assert month_key(date(2024, 3, 9)) == "2024-03"
    assert format_br_date(date(2024, 3, 9)) == "09/03/2024"
    assert format_br_date(None) == ""
