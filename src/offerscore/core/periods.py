"""
Month buckets for sales exports.

Sales registers encode the period as MAAAA or MMAAAA ("12024" = Jan 2024,
"102024" = Oct 2024). These are converted to sortable YYYYMM keys, so
plain string sorting is chronological.
"""

import math
import re
from typing import Any, Iterable

import pandas as pd

_NON_DIGITS = re.compile(r"[^0-9]")

MONTH_ABBREVIATIONS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]


def parse_month_year(value: Any) -> str | None:
    """Parse a MAAAA/MMAAAA cell into a YYYYMM key, or None if invalid."""
    if value is None:
        return None
    digits = _NON_DIGITS.sub("", str(value).strip())
    if len(digits) not in (5, 6):
        return None

    year = digits[-4:]
    month = digits[:-4].zfill(2)
    if not 1 <= int(month) <= 12:
        return None
    return year + month


def month_label(key: str) -> str:
    """Display label for a YYYYMM key: "202401" -> "Jan/24"."""
    month = int(key[4:6])
    return f"{MONTH_ABBREVIATIONS[month - 1]}/{key[2:4]}"


def detect_months(values: Iterable[Any]) -> list[str]:
    """Sorted distinct month keys found in a column of raw cells."""
    keys = {parse_month_year(v) for v in values}
    keys.discard(None)
    return sorted(keys)


def split_halves(months: list[str]) -> tuple[list[str], list[str]]:
    """
    Split months into a first and second half for trend detection.

    Both halves hold ceil(n/2) months, so with an odd count the middle
    month belongs to both.
    """
    if not months:
        return [], []
    half = math.ceil(len(months) / 2)
    return months[:half], months[-half:]


def filter_trailing_months(
    rows: pd.DataFrame, month_column: str | None, months_back: int
) -> tuple[pd.DataFrame, int]:
    """
    Keep only rows from the last `months_back` detected months.

    months_back == 0 means all months. When the export holds no more months
    than requested, rows are returned untouched. Otherwise rows without a
    valid month key are dropped along with the older months.

    Returns (filtered rows, total months detected before filtering).
    """
    if month_column is None or month_column not in rows.columns:
        return rows, 0

    keys = rows[month_column].apply(parse_month_year)
    all_months = sorted(keys.dropna().unique())
    total = len(all_months)

    if months_back <= 0 or total <= months_back:
        return rows, total

    active = set(all_months[-months_back:])
    return rows[keys.isin(active)], total
