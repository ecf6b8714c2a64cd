"""
Export of scored products as a spreadsheet-friendly CSV.

Semicolon separated, UTF-8 with a byte-order mark so Excel in pt-BR
locales opens it with the right encoding and column split.
"""

import math
import re

import pandas as pd

from .parsers import round1
from .scoring import CLEARANCE_COVERAGE, ScoredItem

EXPORT_COLUMNS = [
    "Code",
    "Identifier",
    "Description",
    "Score",
    "Band",
    "PriceTier",
    "DiscountPct",
    "Tier",
    "Margin",
    "AvgPrice",
    "ListPrice",
    "Cost",
    "Quantity",
    "Revenue",
    "Stock",
    "CoverageMonths",
    "TrendPct",
    "PromoPrice",
    "PromoMargin",
]


def _half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _plain(value: float | None):
    """Render whole floats without a trailing .0 and None as an empty cell."""
    if value is None:
        return ""
    if float(value).is_integer():
        return int(value)
    return value


def _coverage_cell(coverage: float | None) -> str:
    if coverage is None:
        return ""
    if coverage >= CLEARANCE_COVERAGE:
        return "999"
    return str(_half_up(coverage))


def export_rows(items: list[ScoredItem]) -> pd.DataFrame:
    """One export row per product, in the order given."""
    rows = [
        {
            "Code": item.code,
            "Identifier": item.identifier or "",
            "Description": item.description,
            "Score": _plain(item.score),
            "Band": item.band.label,
            "PriceTier": item.price_tier.label if item.price_tier else "",
            "DiscountPct": _plain(item.discount_pct),
            "Tier": item.lifecycle.label,
            "Margin": _plain(round1(item.margin)),
            "AvgPrice": _plain(round1(item.avg_price)),
            "ListPrice": _plain(round1(item.list_price)),
            "Cost": _plain(round1(item.cost)),
            "Quantity": _plain(item.quantity),
            "Revenue": _half_up(item.revenue),
            "Stock": _plain(item.on_hand),
            "CoverageMonths": _coverage_cell(item.coverage_months),
            "TrendPct": _plain(item.trend_pct),
            "PromoPrice": _plain(item.promo_price),
            "PromoMargin": _plain(item.promo_margin),
        }
        for item in items
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS, dtype=object)


def to_csv_bytes(items: list[ScoredItem]) -> bytes:
    """Semicolon-separated CSV, UTF-8 with BOM."""
    text = export_rows(items).to_csv(sep=";", index=False, lineterminator="\r\n")
    return text.encode("utf-8-sig")


def export_filename(label: str) -> str:
    """File name for an export tagged with a run label ("Jan/24" -> "offer_score_Jan-24.csv")."""
    safe = re.sub(r"[\\/:*?\"<>|\s]+", "-", label.strip()) or "export"
    return f"offer_score_{safe}.csv"
