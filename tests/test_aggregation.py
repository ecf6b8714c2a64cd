"""
Tests for folding raw rows into per-product records.

Covers:
- Weighted averages and margin
- Revenue column vs quantity x price fallback
- Month series alignment and half-period averages
- Identifier fallback chain
- Stock summing and description retention
"""

import pandas as pd
import pytest

from offerscore.core.aggregation import (
    DEFAULT_PERIOD_MONTHS,
    aggregate_sales,
    aggregate_stock,
)
from offerscore.core.columns import SalesColumns, StockColumns

COLUMNS = SalesColumns(
    code="code",
    description="desc",
    quantity="qty",
    avg_price="price",
    list_price="list",
    cost="cost",
    revenue="revenue",
    month="month",
)


def frame(*rows) -> pd.DataFrame:
    keys = ["code", "desc", "qty", "price", "list", "cost", "month", "revenue"]
    return pd.DataFrame([dict(zip(keys, r)) for r in rows])


# ────────────────────────────────────────────
# SALES
# ────────────────────────────────────────────


class TestAggregateSales:
    def test_single_product_two_months(self):
        rows = frame(
            ("A1", "Livro A", "10", "R$ 50,00", "R$ 100,00", "20", "12024", ""),
            ("A1", "Livro A", "10", "50", "100", "20", "22024", ""),
        )
        result = aggregate_sales(rows, COLUMNS)

        assert result.months == ["202401", "202402"]
        assert len(result.records) == 1
        a1 = result.records[0]
        assert a1.code == "A1"
        assert a1.quantity == 20
        assert a1.revenue == 1000
        assert a1.avg_price == 50
        assert a1.list_price == 100
        assert a1.cost == 20
        assert a1.margin == pytest.approx(60)
        assert list(a1.series) == [10, 10]
        assert a1.qty_first_half == 10
        assert a1.qty_second_half == 10
        assert a1.velocity == 10
        assert a1.row_count == 2
        assert a1.identifier is None

    def test_quantity_weighted_prices(self):
        rows = frame(
            ("A1", "", "30", "10", "20", "5", "12024", ""),
            ("A1", "", "10", "30", "40", "15", "12024", ""),
        )
        a1 = aggregate_sales(rows, COLUMNS).records[0]
        assert a1.avg_price == pytest.approx(15)  # (300 + 300) / 40
        assert a1.list_price == pytest.approx(25)  # (600 + 400) / 40
        assert a1.cost == pytest.approx(7.5)  # (150 + 150) / 40

    def test_zero_quantity_gives_zero_averages(self):
        rows = frame(("Z", "", "0", "50", "100", "20", "12024", ""))
        z = aggregate_sales(rows, COLUMNS).records[0]
        assert z.quantity == 0
        assert (z.avg_price, z.list_price, z.cost, z.margin) == (0, 0, 0, 0)

    def test_explicit_revenue_wins(self):
        rows = frame(("A1", "", "10", "50", "100", "20", "12024", "480,00"))
        assert aggregate_sales(rows, COLUMNS).records[0].revenue == 480

    def test_duplicate_codes_are_summed_and_trimmed(self):
        rows = frame(
            (" A1 ", "Primeira", "5", "10", "", "", "12024", ""),
            ("A1", "Segunda", "7", "10", "", "", "12024", ""),
        )
        records = aggregate_sales(rows, COLUMNS).records
        assert len(records) == 1
        assert records[0].quantity == 12
        assert records[0].description == "Primeira"
        assert list(records[0].series) == [12]

    def test_empty_codes_are_skipped(self):
        rows = frame(
            ("", "Sem código", "99", "10", "", "", "12024", ""),
            ("B2", "Livro B", "1", "10", "", "", "12024", ""),
        )
        records = aggregate_sales(rows, COLUMNS).records
        assert [r.code for r in records] == ["B2"]

    def test_all_rows_empty(self):
        rows = frame(("", "x", "1", "1", "1", "1", "12024", ""))
        result = aggregate_sales(rows, COLUMNS)
        assert result.records == []
        assert result.months == []

    def test_series_aligned_to_global_months(self):
        rows = frame(
            ("A1", "", "4", "10", "", "", "12024", ""),
            ("B2", "", "6", "10", "", "", "32024", ""),
            ("A1", "", "2", "10", "", "", "32024", ""),
        )
        result = aggregate_sales(rows, COLUMNS)
        assert result.months == ["202401", "202403"]
        by_code = {r.code: r for r in result.records}
        assert list(by_code["A1"].series) == [4, 2]
        assert list(by_code["B2"].series) == [0, 6]

    def test_odd_month_count_halves_overlap(self):
        rows = frame(
            ("A1", "", "3", "10", "", "", "12024", ""),
            ("A1", "", "6", "10", "", "", "22024", ""),
            ("A1", "", "9", "10", "", "", "32024", ""),
        )
        a1 = aggregate_sales(rows, COLUMNS).records[0]
        assert a1.qty_first_half == pytest.approx(4.5)
        assert a1.qty_second_half == pytest.approx(7.5)
        assert a1.velocity == pytest.approx(6)

    def test_without_month_column(self):
        columns = SalesColumns(code="code", quantity="qty", avg_price="price")
        rows = frame(("A1", "", "24", "10", "", "", "", ""))
        result = aggregate_sales(rows, columns)
        a1 = result.records[0]
        assert result.months == []
        assert a1.series == ()
        assert a1.qty_first_half == 0
        assert a1.qty_second_half is None
        assert a1.velocity == 24 / DEFAULT_PERIOD_MONTHS

    def test_records_sorted_by_code(self):
        rows = frame(
            ("C", "", "1", "1", "", "", "12024", ""),
            ("A", "", "1", "1", "", "", "12024", ""),
            ("B", "", "1", "1", "", "", "12024", ""),
        )
        assert [r.code for r in aggregate_sales(rows, COLUMNS).records] == ["A", "B", "C"]


class TestIdentifierFallback:
    COLUMNS = SalesColumns(code="code", description="desc", quantity="qty", identifier="ean")

    def test_explicit_column_first(self):
        rows = pd.DataFrame(
            [{"code": "9791234567890", "desc": "", "qty": "1", "ean": "978-85-359-1484-9"}]
        )
        record = aggregate_sales(rows, self.COLUMNS).records[0]
        assert record.identifier == "9788535914849"
        assert record.barcode == "978-85-359-1484-9"

    def test_code_second(self):
        rows = pd.DataFrame([{"code": "9791234567890", "desc": "", "qty": "1", "ean": ""}])
        assert aggregate_sales(rows, self.COLUMNS).records[0].identifier == "9791234567890"

    def test_any_cell_last(self):
        rows = pd.DataFrame(
            [{"code": "B2", "desc": "Livro 9786500000001 ed. 2", "qty": "1", "ean": ""}]
        )
        assert aggregate_sales(rows, self.COLUMNS).records[0].identifier == "9786500000001"

    def test_first_non_empty_across_rows(self):
        rows = pd.DataFrame(
            [
                {"code": "B2", "desc": "sem", "qty": "1", "ean": ""},
                {"code": "B2", "desc": "sem", "qty": "1", "ean": "9788535914849"},
            ]
        )
        record = aggregate_sales(rows, self.COLUMNS).records[0]
        assert record.identifier == "9788535914849"
        assert record.barcode == "9788535914849"


# ────────────────────────────────────────────
# STOCK
# ────────────────────────────────────────────


class TestAggregateStock:
    COLUMNS = StockColumns(code="item", quantity="qty", description="desc")

    def test_sums_and_keeps_first_description(self):
        rows = pd.DataFrame(
            {
                "item": [" A1 ", "A1", "B2", ""],
                "qty": ["5", "3", "1.000", "9"],
                "desc": ["", "Livro A", "Livro B", "x"],
            }
        )
        stock = aggregate_stock(rows, self.COLUMNS)
        assert set(stock) == {"A1", "B2"}
        assert stock["A1"].on_hand == 8
        assert stock["A1"].description == "Livro A"
        assert stock["B2"].on_hand == 1.0  # dot-only quirk

    def test_missing_quantity_column(self):
        rows = pd.DataFrame({"item": ["A1"]})
        stock = aggregate_stock(rows, StockColumns(code="item"))
        assert stock["A1"].on_hand == 0
        assert stock["A1"].description == ""

    def test_empty(self):
        rows = pd.DataFrame({"item": ["", " "], "qty": ["1", "2"], "desc": ["", ""]})
        assert aggregate_stock(rows, self.COLUMNS) == {}
