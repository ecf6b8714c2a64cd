"""Filtering and sorting of scored products for display and export."""

from .scoring import LifecycleTier, PriceTier, ScoreBand, ScoredItem

SORT_KEYS = {
    "score": lambda i: i.score,
    "margin": lambda i: i.margin,
    "trend": lambda i: i.trend_pct,
    "revenue": lambda i: i.revenue,
    "quantity": lambda i: i.quantity,
    "stock": lambda i: i.on_hand,
    "coverage": lambda i: i.coverage_months,
    "discount": lambda i: i.discount_pct,
    "avg_price": lambda i: i.avg_price,
    "promo_price": lambda i: i.promo_price,
}


def filter_items(
    items: list[ScoredItem],
    lifecycle: LifecycleTier | None = None,
    band: ScoreBand | None = None,
    price_tier: PriceTier | None = None,
    search: str = "",
) -> list[ScoredItem]:
    """Keep items matching every given filter. Search is case-insensitive."""
    result = items
    if lifecycle is not None:
        result = [i for i in result if i.lifecycle is lifecycle]
    if band is not None:
        result = [i for i in result if i.band is band]
    if price_tier is not None:
        result = [i for i in result if i.price_tier is price_tier]
    if search:
        term = search.strip().lower()
        result = [
            i
            for i in result
            if term in i.code.lower()
            or term in i.sales.description.lower()
            or term in i.stock_description.lower()
            or term in (i.identifier or "")
        ]
    return list(result)


def sort_items(
    items: list[ScoredItem], key: str = "score", descending: bool = True
) -> list[ScoredItem]:
    """Sort by a named key. Items without a value go last either way."""
    getter = SORT_KEYS[key]
    present = [i for i in items if getter(i) is not None]
    missing = [i for i in items if getter(i) is None]
    return sorted(present, key=getter, reverse=descending) + missing
