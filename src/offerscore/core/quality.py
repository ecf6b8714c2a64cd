"""
Data quality reporting for loaded exports.

Parsing is best-effort: garbled numbers become zero and bad month cells
are ignored. This module makes those silent decisions visible so users
can tell a genuinely weak product from a broken export. Reports are
informational and never block a run.
"""

from dataclasses import dataclass, field
from typing import Any, Callable

import pandas as pd

from .columns import SalesColumns, StockColumns
from .parsers import NumberParser
from .periods import parse_month_year

# Cells that legitimately read as zero: blanks, dashes, "0", "R$ 0,00"...
_ZERO_LIKE = r"[R$\s0.,*-]*"


@dataclass
class DataQualityIssue:
    """A single data quality issue found in an export."""

    column: str
    issue_type: str  # e.g. "missing", "invalid_number", "invalid_month", "unresolved"
    severity: str  # "critical", "warning", "info"
    count: int
    percentage: float
    sample_values: list[Any] = field(default_factory=list)
    description: str = ""


@dataclass
class DataQualityReport:
    """Summary report of data quality for a single export."""

    source_name: str
    total_rows: int
    issues: list[DataQualityIssue] = field(default_factory=list)

    @property
    def critical_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    @property
    def warning_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def has_critical_issues(self) -> bool:
        return len(self.critical_issues) > 0

    def summary(self) -> dict:
        """Return a summary dict for display."""
        return {
            "source": self.source_name,
            "total_rows": self.total_rows,
            "critical": len(self.critical_issues),
            "warnings": len(self.warning_issues),
            "info": len([i for i in self.issues if i.severity == "info"]),
        }


def _percentage(count: int, total: int) -> float:
    return (count / total) * 100 if total else 0.0


class DataQualityChecker:
    """
    Collects checks over an export and runs them into a report.

    Extend by adding custom checks via add_check().
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self._checks: list[Callable[[pd.DataFrame], list[DataQualityIssue]]] = []

    def add_check(
        self, check_fn: Callable[[pd.DataFrame], list[DataQualityIssue]]
    ) -> "DataQualityChecker":
        """Add a custom check function. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def check_missing_codes(self, column: str | None) -> "DataQualityChecker":
        """Rows without a product code are skipped during aggregation."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column is None or column not in df.columns:
                return []
            missing = int((df[column].fillna("").astype(str).str.strip() == "").sum())
            if missing == 0:
                return []
            pct = _percentage(missing, len(df))
            severity = "critical" if pct > 20 else "warning" if pct > 5 else "info"
            return [
                DataQualityIssue(
                    column=column,
                    issue_type="missing",
                    severity=severity,
                    count=missing,
                    percentage=pct,
                    description=f"{missing:,} rows without a product code were skipped",
                )
            ]

        return self.add_check(check)

    def check_numeric(self, column: str | None) -> "DataQualityChecker":
        """Non-blank cells that still parse as zero were probably garbled."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column is None or column not in df.columns:
                return []
            parser = NumberParser()
            cells = df[column].fillna("").astype(str).str.strip()
            garbled = cells[~cells.str.fullmatch(_ZERO_LIKE) & (cells.apply(parser.parse) == 0)]
            if garbled.empty:
                return []
            return [
                DataQualityIssue(
                    column=column,
                    issue_type="invalid_number",
                    severity="warning",
                    count=len(garbled),
                    percentage=_percentage(len(garbled), len(df)),
                    sample_values=garbled.head(5).tolist(),
                    description=f"{len(garbled):,} cells couldn't be read as numbers (counted as 0)",
                )
            ]

        return self.add_check(check)

    def check_months(self, column: str | None) -> "DataQualityChecker":
        """Month cells that aren't valid MAAAA/MMAAAA values."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column is None or column not in df.columns:
                return []
            cells = df[column].fillna("").astype(str).str.strip()
            invalid = cells[(cells != "") & cells.apply(parse_month_year).isna()]
            if invalid.empty:
                return []
            return [
                DataQualityIssue(
                    column=column,
                    issue_type="invalid_month",
                    severity="warning",
                    count=len(invalid),
                    percentage=_percentage(len(invalid), len(df)),
                    sample_values=invalid.head(5).tolist(),
                    description=f"{len(invalid):,} month values couldn't be parsed",
                )
            ]

        return self.add_check(check)

    def note_unresolved(self, fields: list[str], fallbacks: tuple[str, ...]) -> "DataQualityChecker":
        """Report columns that weren't found, or were taken by position."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            issues = [
                DataQualityIssue(
                    column=name,
                    issue_type="unresolved",
                    severity="info",
                    count=0,
                    percentage=0.0,
                    description=f"No column found for {name}",
                )
                for name in fields
            ]
            issues += [
                DataQualityIssue(
                    column=name,
                    issue_type="positional_fallback",
                    severity="warning",
                    count=0,
                    percentage=0.0,
                    description=f"No header matched {name}; used a column by position",
                )
                for name in fallbacks
            ]
            return issues

        return self.add_check(check)

    def run(self, df: pd.DataFrame) -> DataQualityReport:
        """Run all checks and return a quality report."""
        all_issues = []
        for check_fn in self._checks:
            all_issues.extend(check_fn(df))

        return DataQualityReport(
            source_name=self.source_name, total_rows=len(df), issues=all_issues
        )


def check_sales(rows: pd.DataFrame, columns: SalesColumns) -> DataQualityReport:
    """Quality report for a sales export."""
    checker = DataQualityChecker("Sales")
    checker.note_unresolved(columns.missing(), columns.fallbacks)
    checker.check_missing_codes(columns.code)
    for column in (columns.quantity, columns.avg_price, columns.list_price, columns.cost):
        checker.check_numeric(column)
    checker.check_months(columns.month)
    return checker.run(rows)


def check_stock(rows: pd.DataFrame, columns: StockColumns) -> DataQualityReport:
    """Quality report for a stock export."""
    checker = DataQualityChecker("Stock")
    checker.note_unresolved(columns.missing(), columns.fallbacks)
    checker.check_missing_codes(columns.code)
    checker.check_numeric(columns.quantity)
    return checker.run(rows)
