"""
Column discovery for sales and stock exports.

Headers are matched against fixed, ordered synonym lists by substring
containment after normalization (see parsers.normalize_text). The first
pattern with any matching header wins, so more specific synonyms must come
before generic ones ("soma de qtd" before "qtd").

This is a best-effort heuristic, not a schema validator. When the code
column can't be found the first column is used positionally.
"""

import logging
from dataclasses import dataclass
from typing import Sequence

from .parsers import normalize_text

logger = logging.getLogger(__name__)


# Ordered synonym lists, most specific first
SALES_CODE_PATTERNS = ["codigo", "code", "item", "sku"]
SALES_DESCRIPTION_PATTERNS = ["codigo sbb", "descri", "produto", "product", "nome"]
SALES_QUANTITY_PATTERNS = [
    "soma de qtd",
    "quantidade",
    "qtd",
    "qty",
    "volume",
    "vendas",
    "unidades",
]
SALES_PRICE_PATTERNS = [
    "media de valor",
    "valor unitario",
    "preco medio",
    "preco med",
    "avg price",
    "prc med",
]
SALES_LIST_PRICE_PATTERNS = ["preco de lista", "preco lista", "list price", "preco tabela"]
SALES_COST_PATTERNS = ["custo unitario", "custo", "cost", "cst med", "custo_med"]
SALES_REVENUE_PATTERNS = ["receita", "revenue", "faturamento", "valor total"]
SALES_MONTH_PATTERNS = ["mes/ano", "mes ano", "mesano", "periodo", "month"]
SALES_IDENTIFIER_PATTERNS = [
    "ean",
    "isbn",
    "ean13",
    "isbn13",
    "gtin",
    "barcode",
    "cod barras",
    "3 n",
    "n de item",
    "no de item",
    "no item",
    "num item",
]

STOCK_CODE_PATTERNS = ["n item", "codigo", "code", "item", "sku"]
STOCK_QUANTITY_PATTERNS = [
    "quantidade disponivel",
    "disponivel",
    "estoque",
    "stock",
    "saldo",
]
STOCK_DESCRIPTION_PATTERNS = ["descricao", "descri", "produto"]


def resolve_column(headers: Sequence[str], patterns: Sequence[str]) -> str | None:
    """
    Return the first header containing the first matching pattern.

    Patterns are tried in priority order; for each one the headers are
    scanned in file order. Matching is substring containment on the
    normalized forms, not equality.
    """
    normalized = [normalize_text(h) for h in headers]
    for pattern in patterns:
        needle = normalize_text(pattern)
        for header, norm in zip(headers, normalized):
            if needle in norm:
                return header
    return None


def _positional(headers: Sequence[str], index: int, field_name: str) -> str | None:
    if len(headers) <= index:
        return None
    logger.warning(
        "No header matched %s; falling back to column %d (%r)",
        field_name,
        index + 1,
        headers[index],
    )
    return headers[index]


@dataclass(frozen=True)
class SalesColumns:
    """Field-to-header binding for a sales export."""

    code: str | None
    description: str | None = None
    quantity: str | None = None
    avg_price: str | None = None
    list_price: str | None = None
    cost: str | None = None
    revenue: str | None = None
    month: str | None = None
    identifier: str | None = None
    fallbacks: tuple[str, ...] = ()

    def missing(self) -> list[str]:
        """Names of optional fields that couldn't be resolved."""
        fields = ["quantity", "avg_price", "list_price", "cost", "revenue", "month", "identifier"]
        return [f for f in fields if getattr(self, f) is None]


@dataclass(frozen=True)
class StockColumns:
    """Field-to-header binding for a stock export."""

    code: str | None
    quantity: str | None = None
    description: str | None = None
    fallbacks: tuple[str, ...] = ()

    def missing(self) -> list[str]:
        return [f for f in ("quantity", "description") if getattr(self, f) is None]


def resolve_sales_columns(headers: Sequence[str]) -> SalesColumns:
    """Resolve every sales field, with positional fallback for code/description."""
    headers = list(headers)
    fallbacks = []

    code = resolve_column(headers, SALES_CODE_PATTERNS)
    if code is None:
        code = _positional(headers, 0, "code")
        fallbacks.append("code")

    description = resolve_column(headers, SALES_DESCRIPTION_PATTERNS)
    if description is None:
        description = _positional(headers, 1, "description")
        fallbacks.append("description")

    return SalesColumns(
        code=code,
        description=description,
        quantity=resolve_column(headers, SALES_QUANTITY_PATTERNS),
        avg_price=resolve_column(headers, SALES_PRICE_PATTERNS),
        list_price=resolve_column(headers, SALES_LIST_PRICE_PATTERNS),
        cost=resolve_column(headers, SALES_COST_PATTERNS),
        revenue=resolve_column(headers, SALES_REVENUE_PATTERNS),
        month=resolve_column(headers, SALES_MONTH_PATTERNS),
        identifier=resolve_column(headers, SALES_IDENTIFIER_PATTERNS),
        fallbacks=tuple(fallbacks),
    )


def resolve_stock_columns(headers: Sequence[str]) -> StockColumns:
    """Resolve the stock fields, with positional fallback for the code."""
    headers = list(headers)
    fallbacks = []

    code = resolve_column(headers, STOCK_CODE_PATTERNS)
    if code is None:
        code = _positional(headers, 0, "stock code")
        fallbacks.append("code")

    return StockColumns(
        code=code,
        quantity=resolve_column(headers, STOCK_QUANTITY_PATTERNS),
        description=resolve_column(headers, STOCK_DESCRIPTION_PATTERNS),
        fallbacks=tuple(fallbacks),
    )
