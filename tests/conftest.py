"""Shared fixtures: small sales/stock exports and record factories."""

import pandas as pd
import pytest

from offerscore.core.aggregation import SalesRecord, StockRecord

SALES_HEADERS = [
    "Código",
    "Descrição",
    "Mes/Ano",
    "Soma de Qtd",
    "Média de Valor Unitário",
    "Preço de Lista",
    "Custo Unitário",
    "Receita",
]


def sales_row(code, desc, month, qty, price, list_price, cost, revenue=""):
    return dict(zip(SALES_HEADERS, [code, desc, month, qty, price, list_price, cost, revenue]))


@pytest.fixture
def a1_sales() -> pd.DataFrame:
    """Two months of sales for a single product, mixed number formats."""
    return pd.DataFrame(
        [
            sales_row("A1", "Livro A", "12024", "10", "R$ 50,00", "R$ 100,00", "20"),
            sales_row("A1", "Livro A", "22024", "10", "50", "100", "20"),
        ]
    )


@pytest.fixture
def catalog_sales() -> pd.DataFrame:
    """Three months, three products, one of them never selling."""
    return pd.DataFrame(
        [
            sales_row("A1", "Livro A", "12024", "10", "50,00", "100,00", "20"),
            sales_row("A1", "Livro A", "22024", "12", "50,00", "100,00", "20"),
            sales_row("A1", "Livro A", "32024", "14", "50,00", "100,00", "20"),
            sales_row("B2", "Livro B", "12024", "4", "30,00", "35,00", "18"),
            sales_row("B2", "Livro B", "32024", "2", "30,00", "35,00", "18"),
            sales_row("C3", "Livro C", "22024", "0", "0", "80,00", "25"),
        ]
    )


@pytest.fixture
def catalog_stock() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Nº Item": ["A1", "B2", "C3", "Z9"],
            "Descrição": ["Livro A (estoque)", "", "Livro C", "Só no estoque"],
            "Quantidade Disponível": ["100", "200", "120", "5"],
        }
    )


@pytest.fixture
def make_sales_record():
    """Factory for SalesRecords with sensible defaults."""

    def factory(**overrides) -> SalesRecord:
        values = dict(
            code="X1",
            description="Produto",
            quantity=120.0,
            revenue=6000.0,
            avg_price=50.0,
            list_price=100.0,
            cost=20.0,
            margin=60.0,
            velocity=10.0,
            identifier=None,
            barcode="",
            row_count=12,
            series=(10.0,) * 12,
            qty_first_half=10.0,
            qty_second_half=10.0,
        )
        values.update(overrides)
        return SalesRecord(**values)

    return factory


@pytest.fixture
def make_stock_record():
    def factory(code="X1", on_hand=100.0, description="") -> StockRecord:
        return StockRecord(code=code, on_hand=on_hand, description=description)

    return factory
