"""
Reconciliation of sales and stock records by product code.

Sales code (Código) and stock item number (Nº Item) are the same key in
the ERP exports this tool reads, so matching is exact on the trimmed
code. There is no fuzzy matching: a sales product without a stock row
has unknown stock, which is not the same as zero stock.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from .aggregation import SalesRecord, StockRecord

logger = logging.getLogger(__name__)


class MatchType(Enum):
    """How a match was determined."""

    EXACT_CODE = "exact_code"  # Matched on trimmed product code
    UNMATCHED = "unmatched"  # No stock row for this code


@dataclass(frozen=True)
class MatchResult:
    """Result of matching a single sales record."""

    sales: SalesRecord
    stock: StockRecord | None
    match_type: MatchType


@dataclass
class ReconciliationResult:
    """Summary of reconciliation between the sales and stock registers."""

    source_name: str
    target_name: str
    total_source_records: int
    matched_records: int
    unmatched_records: int
    stock_only_codes: list[str] = field(default_factory=list)
    matches: list[MatchResult] = field(default_factory=list)

    @property
    def match_rate(self) -> float:
        if self.total_source_records == 0:
            return 0
        return self.matched_records / self.total_source_records

    def unmatched_items(self) -> list[MatchResult]:
        return [m for m in self.matches if m.match_type == MatchType.UNMATCHED]

    def summary(self) -> dict:
        return {
            "source": self.source_name,
            "target": self.target_name,
            "total": self.total_source_records,
            "matched": self.matched_records,
            "unmatched": self.unmatched_records,
            "stock_only": len(self.stock_only_codes),
            "match_rate": f"{self.match_rate:.1%}",
        }


def reconcile(
    sales: list[SalesRecord],
    stock_by_code: dict[str, StockRecord],
    source_name: str = "sales",
    target_name: str = "stock",
) -> ReconciliationResult:
    """Join every sales record with its stock record, if any."""
    matches = []
    for record in sales:
        stock = stock_by_code.get(record.code)
        matches.append(
            MatchResult(
                sales=record,
                stock=stock,
                match_type=MatchType.EXACT_CODE if stock is not None else MatchType.UNMATCHED,
            )
        )

    matched = sum(1 for m in matches if m.stock is not None)
    sales_codes = {r.code for r in sales}
    stock_only = sorted(code for code in stock_by_code if code not in sales_codes)

    result = ReconciliationResult(
        source_name=source_name,
        target_name=target_name,
        total_source_records=len(sales),
        matched_records=matched,
        unmatched_records=len(sales) - matched,
        stock_only_codes=stock_only,
        matches=matches,
    )
    logger.info("Reconciliation: %s", result.summary())
    return result
