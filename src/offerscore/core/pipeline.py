"""
End-to-end analysis run: raw export rows in, scored products out.

A run is a pure function of its inputs. Changing the trailing-months
filter or loading another file simply runs it again from the raw rows.
"""

import logging
from dataclasses import dataclass, field

import pandas as pd

from .aggregation import aggregate_sales, aggregate_stock
from .columns import resolve_sales_columns, resolve_stock_columns
from .periods import filter_trailing_months
from .quality import DataQualityReport, check_sales, check_stock
from .reconciliation import ReconciliationResult, reconcile
from .scoring import ScoredItem, score_matches
from .summary import RunSummary, summarize

logger = logging.getLogger(__name__)


class MissingSalesDataError(ValueError):
    """Raised when a run is started without sales rows."""


@dataclass
class AnalysisResult:
    """Everything one run produces."""

    items: list[ScoredItem]
    months: list[str]  # months actually used, sorted
    total_months: int  # months detected before the trailing filter
    reconciliation: ReconciliationResult
    summary: RunSummary | None
    quality_reports: dict[str, DataQualityReport] = field(default_factory=dict)

    @property
    def items_with_stock(self) -> int:
        return sum(1 for i in self.items if i.has_stock)


def run_analysis(
    sales_rows: pd.DataFrame | None,
    stock_rows: pd.DataFrame | None = None,
    months_back: int = 0,
) -> AnalysisResult:
    """
    Resolve columns, aggregate, reconcile, score and summarize.

    Args:
        sales_rows: Sales export as an all-string DataFrame (mandatory)
        stock_rows: Stock export as an all-string DataFrame (optional)
        months_back: Keep only the last N detected months; 0 keeps all
    """
    if sales_rows is None or sales_rows.empty:
        raise MissingSalesDataError("A sales file with at least one row is required")

    sales_columns = resolve_sales_columns(list(sales_rows.columns))
    quality_reports = {"sales": check_sales(sales_rows, sales_columns)}

    filtered, total_months = filter_trailing_months(
        sales_rows, sales_columns.month, months_back
    )
    if len(filtered) != len(sales_rows):
        logger.info(
            "Trailing %d of %d months: kept %d of %d sales rows",
            months_back,
            total_months,
            len(filtered),
            len(sales_rows),
        )

    sales = aggregate_sales(filtered, sales_columns)

    stock_by_code = {}
    if stock_rows is not None and not stock_rows.empty:
        stock_columns = resolve_stock_columns(list(stock_rows.columns))
        quality_reports["stock"] = check_stock(stock_rows, stock_columns)
        stock_by_code = aggregate_stock(stock_rows, stock_columns)

    reconciliation = reconcile(sales.records, stock_by_code)
    items = score_matches(reconciliation)

    return AnalysisResult(
        items=items,
        months=sales.months,
        total_months=total_months,
        reconciliation=reconciliation,
        summary=summarize(items),
        quality_reports=quality_reports,
    )
