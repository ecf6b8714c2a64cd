"""Tests for the CSV export, filtering and sorting of scored products."""

import pandas as pd
import pytest

from offerscore.core.export import (
    EXPORT_COLUMNS,
    export_filename,
    export_rows,
    to_csv_bytes,
)
from offerscore.core.pipeline import run_analysis
from offerscore.core.scoring import LifecycleTier, PriceTier, ScoreBand
from offerscore.core.selection import filter_items, sort_items


@pytest.fixture
def items(catalog_sales, catalog_stock):
    return run_analysis(catalog_sales, catalog_stock).items


# ────────────────────────────────────────────
# EXPORT
# ────────────────────────────────────────────


class TestExportRows:
    def test_columns_and_order(self, items):
        frame = export_rows(items)
        assert list(frame.columns) == EXPORT_COLUMNS
        assert frame["Code"].tolist() == ["A1", "B2", "C3"]

    def test_cells(self, items):
        rows = {row["Code"]: row for row in export_rows(items).to_dict("records")}
        assert rows["A1"]["Tier"] == "Healthy"
        assert rows["A1"]["Band"] == "Excellent"
        assert rows["A1"]["CoverageMonths"] == "8"
        assert rows["A1"]["Revenue"] == 1800
        assert rows["B2"]["PromoPrice"] == 22.5
        assert rows["B2"]["PriceTier"] == "Economy"
        assert rows["C3"]["CoverageMonths"] == "999"
        assert rows["C3"]["PriceTier"] == ""
        assert rows["C3"]["PromoMargin"] == ""

    def test_unknown_stock_cells_are_empty(self, a1_sales):
        row = export_rows(run_analysis(a1_sales).items).iloc[0]
        assert row["Stock"] == ""
        assert row["CoverageMonths"] == ""
        assert row["PromoPrice"] == ""

    def test_empty(self):
        frame = export_rows([])
        assert frame.empty
        assert list(frame.columns) == EXPORT_COLUMNS


class TestCsvBytes:
    def test_bom_semicolons_and_crlf(self, items):
        data = to_csv_bytes(items)
        assert data.startswith(b"\xef\xbb\xbf")
        text = data.decode("utf-8-sig")
        header = text.split("\r\n")[0]
        assert header == ";".join(EXPORT_COLUMNS)
        assert len([line for line in text.split("\r\n") if line]) == 4

    def test_whole_numbers_have_no_decimal_part(self, items):
        text = to_csv_bytes(items).decode("utf-8-sig")
        c3 = next(line for line in text.split("\r\n") if line.startswith("C3;"))
        assert ";20;" in c3  # score
        assert ";999;" in c3  # coverage


class TestExportFilename:
    @pytest.mark.parametrize(
        "label, expected",
        [
            ("Jan/24", "offer_score_Jan-24.csv"),
            ("last 3 months", "offer_score_last-3-months.csv"),
            ("  ", "offer_score_export.csv"),
        ],
    )
    def test_safe_names(self, label, expected):
        assert export_filename(label) == expected


# ────────────────────────────────────────────
# SELECTION
# ────────────────────────────────────────────


class TestFilterItems:
    def test_no_filters(self, items):
        assert filter_items(items) == items

    def test_by_lifecycle(self, items):
        assert [i.code for i in filter_items(items, lifecycle=LifecycleTier.CLEARANCE)] == ["C3"]

    def test_by_band(self, items):
        assert [i.code for i in filter_items(items, band=ScoreBand.EXCELLENT)] == ["A1"]

    def test_by_price_tier(self, items):
        assert [i.code for i in filter_items(items, price_tier=PriceTier.ECONOMY)] == ["B2"]

    def test_search_matches_code_and_descriptions(self, items):
        assert [i.code for i in filter_items(items, search="b2")] == ["B2"]
        assert [i.code for i in filter_items(items, search="ESTOQUE")] == ["A1"]
        assert [i.code for i in filter_items(items, search="livro")] == ["A1", "B2", "C3"]

    def test_filters_combine(self, items):
        assert filter_items(items, lifecycle=LifecycleTier.HEALTHY, search="livro c") == []


class TestSortItems:
    def test_by_score_descending(self, items):
        assert [i.code for i in sort_items(items)] == ["A1", "B2", "C3"]

    def test_ascending(self, items):
        assert [i.code for i in sort_items(items, "score", descending=False)] == ["C3", "B2", "A1"]

    def test_missing_values_last(self, items):
        ordered = sort_items(items, "promo_price", descending=False)
        assert [i.code for i in ordered] == ["C3", "B2", "A1"]
        ordered = sort_items(items, "discount")
        assert ordered[-1].code == "C3"

    def test_unknown_key(self, items):
        with pytest.raises(KeyError):
            sort_items(items, "nope")

    def test_does_not_mutate(self, items):
        before = list(items)
        sort_items(items, "revenue", descending=False)
        assert items == before


def test_export_round_trips_through_pandas(items, tmp_path):
    path = tmp_path / "export.csv"
    path.write_bytes(to_csv_bytes(items))
    frame = pd.read_csv(path, sep=";", encoding="utf-8-sig", dtype=str, keep_default_na=False)
    assert frame["Code"].tolist() == ["A1", "B2", "C3"]
