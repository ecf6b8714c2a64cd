"""
Portfolio-level aggregates over a scored run.

Used by the dashboard header and by the history log, which compares the
current run with the last saved one.
"""

from dataclasses import dataclass

from pydantic import BaseModel, Field

from .scoring import LifecycleTier, ScoredItem

# Score at or above which a product counts as "healthy or better"
HEALTHY_SCORE = 45


class RunSummary(BaseModel):
    """Aggregates of one analysis run."""

    item_count: int
    items_with_stock: int
    items_with_identifier: int
    total_revenue: float
    avg_score: float
    avg_margin: float
    total_stock_units: float = Field(description="On-hand units over products with known stock")
    capital_at_risk: float = Field(description="Units x cost tied up in non-healthy stock")
    promo_revenue_potential: float = Field(description="Units x promo price where one is suggested")
    top_revenue_share: float = Field(description="% of revenue from products scoring 45+")
    tier_histogram: dict[str, int]


def summarize(items: list[ScoredItem]) -> RunSummary | None:
    """Reduce a scored run to a RunSummary. None for an empty run."""
    if not items:
        return None

    with_stock = [i for i in items if i.has_stock]
    total_revenue = sum(i.revenue for i in items)

    histogram = {tier.key: 0 for tier in LifecycleTier}
    for item in with_stock:
        histogram[item.lifecycle.key] += 1

    top_revenue = sum(i.revenue for i in items if i.score >= HEALTHY_SCORE)

    return RunSummary(
        item_count=len(items),
        items_with_stock=len(with_stock),
        items_with_identifier=sum(1 for i in items if i.identifier),
        total_revenue=total_revenue,
        avg_score=sum(i.score for i in items) / len(items),
        avg_margin=sum(i.margin for i in items) / len(items),
        total_stock_units=sum(i.on_hand for i in with_stock),
        capital_at_risk=sum(
            i.on_hand * i.cost for i in with_stock if i.lifecycle is not LifecycleTier.HEALTHY
        ),
        promo_revenue_potential=sum(
            i.on_hand * i.promo_price for i in with_stock if i.promo_price
        ),
        top_revenue_share=top_revenue / total_revenue * 100 if total_revenue > 0 else 0.0,
        tier_histogram=histogram,
    )


@dataclass(frozen=True)
class KpiCard:
    """One headline figure of the dashboard, ready for st.metric."""

    label: str
    value: str
    delta: str | None = None
    delta_color: str = "normal"


def kpi_cards(summary: RunSummary, delta: dict[str, float]) -> list[KpiCard]:
    """
    Headline cards for a run, with changes against the last saved run.

    `delta` is the output of history.summary_delta; empty when nothing was
    saved yet, in which case the cards carry no change.
    """

    def change(name: str, template: str) -> str | None:
        return template.format(delta[name]) if name in delta else None

    return [
        KpiCard("Average Score", f"{summary.avg_score:.1f}", change("avg_score", "{:+.1f}")),
        KpiCard(
            "Revenue",
            f"R$ {summary.total_revenue:,.0f}",
            change("total_revenue", "{:+,.0f}"),
        ),
        KpiCard(
            "Average Margin",
            f"{summary.avg_margin:.1f}%",
            change("avg_margin", "{:+.1f} pts"),
        ),
        # SKU count goes in the delta slot, greyed out
        KpiCard(
            "Stock Units",
            f"{summary.total_stock_units:,.0f}",
            f"{summary.items_with_stock} SKUs",
            delta_color="off",
        ),
        KpiCard(
            "Capital in Overstock",
            f"R$ {summary.capital_at_risk:,.0f}",
            change("capital_at_risk", "{:+,.0f}"),
            delta_color="inverse",
        ),
        KpiCard(
            "Revenue from Score 45+",
            f"{summary.top_revenue_share:.1f}%",
            change("top_revenue_share", "{:+.1f} pts"),
        ),
        KpiCard("Promo Revenue Potential", f"R$ {summary.promo_revenue_potential:,.0f}"),
    ]
