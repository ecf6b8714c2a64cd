"""
Fold raw export rows into one record per product code.

Sales rows become SalesRecords carrying totals, quantity-weighted prices,
a monthly quantity series aligned to the global month list and the two
half-period averages used for trend detection. Stock rows become
StockRecords with summed on-hand quantities.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from .columns import SalesColumns, StockColumns
from .parsers import IdentifierExtractor, NumberParser
from .periods import parse_month_year, split_halves

logger = logging.getLogger(__name__)

# Velocity denominator when the export carries no usable month column
DEFAULT_PERIOD_MONTHS = 12


@dataclass(frozen=True)
class SalesRecord:
    """Sales totals for one product code."""

    code: str
    description: str
    quantity: float
    revenue: float
    avg_price: float
    list_price: float
    cost: float
    margin: float
    velocity: float  # units per month
    identifier: str | None
    barcode: str
    row_count: int
    series: tuple[float, ...]
    qty_first_half: float
    qty_second_half: float | None


@dataclass(frozen=True)
class StockRecord:
    """On-hand stock for one product code."""

    code: str
    on_hand: float
    description: str = ""


@dataclass
class SalesAggregation:
    """Aggregated sales plus the month list the series are aligned to."""

    records: list[SalesRecord]
    months: list[str]


def _text_column(rows: pd.DataFrame, column: str | None) -> pd.Series:
    if column is None or column not in rows.columns:
        return pd.Series("", index=rows.index, dtype=object)
    return rows[column].fillna("").astype(str)


def _number_column(
    rows: pd.DataFrame, column: str | None, parser: NumberParser
) -> pd.Series:
    if column is None or column not in rows.columns:
        return pd.Series(0.0, index=rows.index)
    return parser.parse_series(rows[column])


def _first_non_empty(values: pd.Series) -> str:
    for value in values:
        if value:
            return value
    return ""


def aggregate_sales(rows: pd.DataFrame, columns: SalesColumns) -> SalesAggregation:
    """
    Aggregate sales rows per product code.

    Revenue comes from the revenue column when it holds a non-zero value,
    otherwise quantity x average price. Prices and cost are weighted by
    quantity, so a product with zero total quantity gets zero averages.

    The identifier is resolved per row through a fallback chain: explicit
    identifier column, then the code itself, then every cell of the row.
    """
    parser = NumberParser()
    extractor = IdentifierExtractor()

    codes = _text_column(rows, columns.code).str.strip()
    rows = rows[codes != ""]
    codes = codes[codes != ""]
    if rows.empty:
        return SalesAggregation(records=[], months=[])

    qty = _number_column(rows, columns.quantity, parser)
    price = _number_column(rows, columns.avg_price, parser)
    list_price = _number_column(rows, columns.list_price, parser)
    cost = _number_column(rows, columns.cost, parser)
    explicit_revenue = _number_column(rows, columns.revenue, parser)
    barcode = _text_column(rows, columns.identifier).str.strip()

    headers = list(rows.columns)
    identifiers = [
        extractor.extract(bc) or extractor.extract(code) or extractor.scan_row(row, headers)
        for bc, code, row in zip(barcode, codes, rows.to_dict("records"))
    ]

    if columns.month is not None and columns.month in rows.columns:
        month_keys = rows[columns.month].apply(parse_month_year)
    else:
        month_keys = pd.Series(None, index=rows.index, dtype=object)

    frame = pd.DataFrame(
        {
            "code": codes,
            "description": _text_column(rows, columns.description),
            "qty": qty,
            "revenue": np.where(explicit_revenue != 0, explicit_revenue, qty * price),
            "price_w": price * qty,
            "list_w": list_price * qty,
            "cost_w": cost * qty,
            "month": month_keys,
            "identifier": pd.Series(identifiers, index=rows.index).fillna(""),
            "barcode": barcode,
        },
        index=rows.index,
    )

    totals = frame.groupby("code", sort=True).agg(
        description=("description", "first"),
        qty=("qty", "sum"),
        revenue=("revenue", "sum"),
        price_w=("price_w", "sum"),
        list_w=("list_w", "sum"),
        cost_w=("cost_w", "sum"),
        row_count=("qty", "size"),
        identifier=("identifier", _first_non_empty),
        barcode=("barcode", _first_non_empty),
    )

    dated = frame[frame["month"].notna()]
    months = sorted(dated["month"].unique())
    if months:
        monthly = (
            dated.pivot_table(index="code", columns="month", values="qty", aggfunc="sum")
            .reindex(index=totals.index, columns=months)
            .fillna(0.0)
        )
    else:
        monthly = pd.DataFrame(index=totals.index, columns=[], dtype=float)

    first_half, second_half = split_halves(months)
    period_months = len(months) or DEFAULT_PERIOD_MONTHS

    records = []
    for code, total in totals.iterrows():
        series = monthly.loc[code]
        quantity = float(total["qty"])
        price_w = float(total["price_w"])
        records.append(
            SalesRecord(
                code=code,
                description=total["description"],
                quantity=quantity,
                revenue=float(total["revenue"]),
                avg_price=price_w / quantity if quantity > 0 else 0.0,
                list_price=float(total["list_w"]) / quantity if quantity > 0 else 0.0,
                cost=float(total["cost_w"]) / quantity if quantity > 0 else 0.0,
                margin=(price_w - float(total["cost_w"])) / price_w * 100
                if price_w > 0
                else 0.0,
                velocity=quantity / period_months,
                identifier=total["identifier"] or None,
                barcode=total["barcode"],
                row_count=int(total["row_count"]),
                series=tuple(float(series[m]) for m in months),
                qty_first_half=float(series[first_half].mean()) if first_half else 0.0,
                qty_second_half=float(series[second_half].mean()) if second_half else None,
            )
        )

    logger.info(
        "Aggregated %d sales rows into %d products over %d months",
        len(frame),
        len(records),
        len(months),
    )
    return SalesAggregation(records=records, months=months)


def aggregate_stock(rows: pd.DataFrame, columns: StockColumns) -> dict[str, StockRecord]:
    """Sum on-hand quantity per code, keeping the first non-empty description."""
    parser = NumberParser()

    codes = _text_column(rows, columns.code).str.strip()
    frame = pd.DataFrame(
        {
            "code": codes,
            "on_hand": _number_column(rows, columns.quantity, parser),
            "description": _text_column(rows, columns.description),
        },
        index=rows.index,
    )
    frame = frame[frame["code"] != ""]
    if frame.empty:
        return {}

    totals = frame.groupby("code", sort=True).agg(
        on_hand=("on_hand", "sum"),
        description=("description", _first_non_empty),
    )

    logger.info("Aggregated %d stock rows into %d products", len(frame), len(totals))
    return {
        code: StockRecord(
            code=code,
            on_hand=float(total["on_hand"]),
            description=total["description"],
        )
        for code, total in totals.iterrows()
    }
