from __future__ import annotations

import numbers
import re
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional

import numpy as np
import pandas as pd


EXCEL_EPOCH = "1899-12-30"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class DateFormat(str, Enum):
    DMY_SLASH = "DMY-slash"
    YMD_DASH = "YMD-dash"


_SEPARATORS = {DateFormat.DMY_SLASH: "/", DateFormat.YMD_DASH: "-"}


def _leading_int(text: str) -> Optional[int]:
    match = _LEADING_INT.match(text)
    if not match:
        return None
    return int(match.group(1))


def _expand_year(year: int) -> int:
    """Years 0-99 are read as 1900-1999: 24 -> 1924."""
    if 0 <= year < 100:
        return 1900 + year
    return year


def build_local_date(year: int, month: int, day: int) -> Optional[date]:
    """Build a calendar date, rolling overflowing month/day into the next period.

    ``build_local_date(2024, 2, 31)`` is 2024-03-02. Returns None when the
    result falls outside the representable range.
    """
    carry, month_index = divmod(month - 1, 12)
    try:
        return date(year + carry, month_index + 1, 1) + timedelta(days=day - 1)
    except (ValueError, OverflowError):
        return None


def parse_local_date(raw: Optional[str], fmt: DateFormat | str) -> Optional[date]:
    """Parse ``dd/mm/yyyy`` (DMY-slash) or ``yyyy-mm-dd`` (YMD-dash) text."""
    if not raw or not isinstance(raw, str):
        return None
    fmt = DateFormat(fmt)
    parts = raw.strip().split(_SEPARATORS[fmt])
    if len(parts) != 3:
        return None
    values = [_leading_int(p) for p in parts]
    if any(v is None or v == 0 for v in values):
        return None
    if fmt is DateFormat.DMY_SLASH:
        day, month, year = values
    else:
        year, month, day = values
    return build_local_date(_expand_year(year), month, day)


def parse_text_date(raw: Optional[str]) -> Optional[date]:
    for fmt in (DateFormat.DMY_SLASH, DateFormat.YMD_DASH):
        parsed = parse_local_date(raw, fmt)
        if parsed is not None:
            return parsed
    return None


def coerce_date(value: object) -> Optional[date]:
    """Best-effort conversion of a spreadsheet cell into a calendar date.

    Accepts native dates/timestamps, Excel serial numbers and text dates.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, np.datetime64):
        value = pd.Timestamp(value)
    if isinstance(value, (datetime, pd.Timestamp)):
        if pd.isna(value):
            return None
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, numbers.Real):
        if pd.isna(value):
            return None
        try:
            return pd.to_datetime(float(value), unit="D", origin=EXCEL_EPOCH).date()
        except (ValueError, OverflowError, pd.errors.OutOfBoundsDatetime):
            return None
    if isinstance(value, str):
        return parse_text_date(value)
    return None


def month_key(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def format_br_date(value: Optional[date]) -> str:
    if value is None:
        return ""
    return value.strftime("%d/%m/%Y")
