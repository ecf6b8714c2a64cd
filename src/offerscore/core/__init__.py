# Core reusable components: parsing, column discovery, aggregation and scoring
# These pieces only know about rows and columns, not about any one ERP export

from .parsers import normalize_text, parse_number, extract_identifier, round1
from .columns import resolve_column, resolve_sales_columns, resolve_stock_columns
from .periods import parse_month_year, month_label, filter_trailing_months
from .aggregation import SalesRecord, StockRecord, aggregate_sales, aggregate_stock
from .reconciliation import ReconciliationResult, reconcile
from .scoring import (
    LifecycleTier,
    PriceTier,
    ScoreBand,
    ScoredItem,
    score_band,
    score_items,
)
from .summary import RunSummary, summarize
from .history import HistoryEntry, HistoryStore, summary_delta
from .export import export_rows, to_csv_bytes
from .pipeline import AnalysisResult, MissingSalesDataError, run_analysis

__all__ = [
    "normalize_text",
    "parse_number",
    "extract_identifier",
    "round1",
    "resolve_column",
    "resolve_sales_columns",
    "resolve_stock_columns",
    "parse_month_year",
    "month_label",
    "filter_trailing_months",
    "SalesRecord",
    "StockRecord",
    "aggregate_sales",
    "aggregate_stock",
    "ReconciliationResult",
    "reconcile",
    "LifecycleTier",
    "PriceTier",
    "ScoreBand",
    "ScoredItem",
    "score_band",
    "score_items",
    "RunSummary",
    "summarize",
    "HistoryEntry",
    "HistoryStore",
    "summary_delta",
    "export_rows",
    "to_csv_bytes",
    "AnalysisResult",
    "MissingSalesDataError",
    "run_analysis",
]
