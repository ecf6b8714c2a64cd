"""
Offer performance scoring.

Each product gets five sub-scores of 0-20 points, summed into a 0-100 index:

- margin:       linear in the gross margin percentage
- trend:        second-half vs first-half monthly quantity, flat = 10
- price:        discount off list, judged against the product's price tier
- contribution: log of the product's share of portfolio revenue
- turnover:     months of stock coverage, 3 months or less = 20, 24+ = 0

Coverage also drives the lifecycle tier (clearance / aggressive /
moderate / healthy), which in turn drives the suggested promotional price.
"""

import math
from dataclasses import dataclass
from enum import Enum

from .aggregation import SalesRecord, StockRecord
from .parsers import round1
from .reconciliation import ReconciliationResult, reconcile

# Coverage reported when stock exists but nothing sold; sorts above any real value
INFINITE_COVERAGE = 999.0
# Anything at or above this is treated as "never sells"
CLEARANCE_COVERAGE = 900.0
CLEARANCE_MIN_STOCK = 50
AGGRESSIVE_COVERAGE = 36
MODERATE_COVERAGE = 12

MAX_FACTOR = 20.0
NEUTRAL_FACTOR = 10.0


class PriceTier(Enum):
    """Price tiers detected from the usual discount off list price."""

    ECONOMY = ("economy", "Economy", 15, 20)
    MID = ("mid", "Mid", 40, 45)
    PREMIUM = ("premium", "Premium", 58, 65)

    def __init__(self, key: str, label: str, normal_ceiling: float, promo_floor: float):
        self.key = key
        self.label = label
        self.normal_ceiling = normal_ceiling  # deepest discount still scoring full points
        self.promo_floor = promo_floor  # discount at which the price score hits zero


class LifecycleTier(Enum):
    """Inventory-health tiers, most urgent first."""

    CLEARANCE = ("clearance", "Clearance", "No sales with stock on hand")
    AGGRESSIVE = ("aggressive", "Aggressive Promo", "Over 36 months of coverage")
    MODERATE = ("moderate", "Moderate Promo", "12 to 36 months of coverage")
    HEALTHY = ("healthy", "Healthy", "Under 12 months of coverage")

    def __init__(self, key: str, label: str, description: str):
        self.key = key
        self.label = label
        self.description = description


class ScoreBand(Enum):
    """Display bands for the total score, highest first."""

    EXCELLENT = (60, "Excellent")
    HEALTHY = (45, "Healthy")
    ATTENTION = (30, "Attention")
    CRITICAL = (15, "Critical")
    UNVIABLE = (0, "Unviable")

    def __init__(self, minimum: float, label: str):
        self.minimum = minimum
        self.label = label


@dataclass(frozen=True)
class ScoreBreakdown:
    """The five sub-scores and their total."""

    margin: float
    trend: float
    price: float
    contribution: float
    turnover: float

    @property
    def total(self) -> float:
        return round1(self.margin + self.trend + self.price + self.contribution + self.turnover)

    def as_dict(self) -> dict[str, float]:
        return {
            "margin": self.margin,
            "trend": self.trend,
            "price": self.price,
            "contribution": self.contribution,
            "turnover": self.turnover,
            "total": self.total,
        }


@dataclass(frozen=True)
class ScoredItem:
    """A sales record joined with its stock, scored and classified."""

    sales: SalesRecord
    on_hand: float | None
    stock_description: str
    coverage_months: float | None
    scores: ScoreBreakdown
    price_tier: PriceTier | None
    discount_pct: float | None
    lifecycle: LifecycleTier
    trend_pct: float
    promo_price: float | None
    promo_margin: float | None

    @property
    def code(self) -> str:
        return self.sales.code

    @property
    def description(self) -> str:
        return self.stock_description or self.sales.description

    @property
    def identifier(self) -> str | None:
        return self.sales.identifier

    @property
    def score(self) -> float:
        return self.scores.total

    @property
    def band(self) -> "ScoreBand":
        return score_band(self.scores.total)

    @property
    def has_stock(self) -> bool:
        return self.on_hand is not None

    # Sales figures, exposed flat for sorting and export

    @property
    def quantity(self) -> float:
        return self.sales.quantity

    @property
    def revenue(self) -> float:
        return self.sales.revenue

    @property
    def avg_price(self) -> float:
        return self.sales.avg_price

    @property
    def list_price(self) -> float:
        return self.sales.list_price

    @property
    def cost(self) -> float:
        return self.sales.cost

    @property
    def margin(self) -> float:
        return self.sales.margin

    @property
    def velocity(self) -> float:
        return self.sales.velocity


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def score_band(total: float) -> ScoreBand:
    """Highest band whose minimum the total reaches."""
    for band in ScoreBand:
        if total >= band.minimum:
            return band
    return ScoreBand.UNVIABLE


def compute_coverage(on_hand: float | None, velocity: float) -> float | None:
    """
    Months of stock at the current sales pace.

    None when stock is unknown. INFINITE_COVERAGE when there is stock but
    no sales. Zero when there is neither stock nor sales.
    """
    if on_hand is None:
        return None
    if velocity > 0:
        return on_hand / velocity
    if on_hand > 0:
        return INFINITE_COVERAGE
    return 0.0


def discount_pct(avg_price: float, list_price: float) -> float | None:
    """Discount off list price in percent, None when either price is missing."""
    if list_price <= 0 or avg_price <= 0:
        return None
    return (1 - avg_price / list_price) * 100


def price_tier_for(discount: float) -> PriceTier:
    """Classify a product by its discount percentage."""
    if discount <= PriceTier.ECONOMY.normal_ceiling:
        return PriceTier.ECONOMY
    if discount <= PriceTier.MID.normal_ceiling:
        return PriceTier.MID
    return PriceTier.PREMIUM


def price_tier_score(tier: PriceTier, discount: float) -> float:
    """
    Score a discount against its tier's band.

    At or under the normal ceiling scores 20, at or past the promo floor
    scores 0, linear in between.
    """
    if discount <= tier.normal_ceiling:
        return MAX_FACTOR
    if discount >= tier.promo_floor:
        return 0.0
    span = tier.promo_floor - tier.normal_ceiling
    return MAX_FACTOR * (1 - (discount - tier.normal_ceiling) / span)


def margin_factor(margin: float) -> float:
    return _clamp(margin, 0, 100) / 100 * MAX_FACTOR


def trend_factor(first_half: float, second_half: float | None) -> float:
    """Flat sales score 10; +50% or better saturates at 20, -50% at 0."""
    if first_half <= 0 or second_half is None:
        return NEUTRAL_FACTOR
    growth = (second_half - first_half) / first_half * 100
    return _clamp((growth + 50) / 100 * MAX_FACTOR, 0, MAX_FACTOR)


def contribution_factor(revenue: float, total_revenue: float) -> float:
    share = revenue / total_revenue * 100 if total_revenue > 0 else 0.0
    return _clamp(math.log(1 + max(0.0, share)) * 7, 0, MAX_FACTOR)


def turnover_factor(coverage: float | None) -> float:
    if coverage is None:
        return NEUTRAL_FACTOR
    if coverage <= 3:
        return MAX_FACTOR
    if coverage >= 24:
        return 0.0
    return MAX_FACTOR - (coverage - 3) / 21 * MAX_FACTOR


def trend_pct(first_half: float, second_half: float | None) -> float:
    """Trend shown to users: growth of the second half over the first, in %."""
    second = second_half or 0.0
    if first_half > 0:
        return round1((second - first_half) / first_half * 100)
    return 100.0 if second > 0 else 0.0


def lifecycle_tier(
    on_hand: float | None, velocity: float, coverage: float | None
) -> LifecycleTier:
    """
    Classify inventory health. First match wins:

    1. clearance  - coverage in the "never sells" region, or more than 50
                    units on hand with no sales
    2. aggressive - more than 36 months of coverage
    3. moderate   - more than 12 months of coverage
    4. healthy    - everything else, including unknown stock
    """
    if on_hand is None or coverage is None:
        return LifecycleTier.HEALTHY
    if coverage >= CLEARANCE_COVERAGE or (on_hand > CLEARANCE_MIN_STOCK and not velocity):
        return LifecycleTier.CLEARANCE
    if coverage > AGGRESSIVE_COVERAGE:
        return LifecycleTier.AGGRESSIVE
    if coverage > MODERATE_COVERAGE:
        return LifecycleTier.MODERATE
    return LifecycleTier.HEALTHY


def promo_price(
    tier: LifecycleTier, avg_price: float, cost: float, coverage: float | None
) -> float | None:
    """Suggested promotional price, None for healthy products."""
    if tier is LifecycleTier.CLEARANCE:
        # thin margin over cost, never deeper than 60% off
        return max(cost * 1.05, avg_price * 0.4)
    if tier is LifecycleTier.AGGRESSIVE:
        return avg_price * (1 - _clamp((coverage or 0) / 1000, 0.25, 0.45))
    if tier is LifecycleTier.MODERATE:
        return avg_price * 0.85
    return None


def promo_margin(price: float | None, cost: float) -> float | None:
    if price is None or price <= 0:
        return None
    return (price - cost) / price * 100


def score_item(
    record: SalesRecord, stock: StockRecord | None, total_revenue: float
) -> ScoredItem:
    """Score one product against the portfolio revenue total."""
    on_hand = stock.on_hand if stock is not None else None
    coverage = compute_coverage(on_hand, record.velocity)

    discount = discount_pct(record.avg_price, record.list_price)
    if discount is None:
        tier, price = None, NEUTRAL_FACTOR
    else:
        tier = price_tier_for(discount)
        price = price_tier_score(tier, discount)

    scores = ScoreBreakdown(
        margin=round1(margin_factor(record.margin)),
        trend=round1(trend_factor(record.qty_first_half, record.qty_second_half)),
        price=round1(price),
        contribution=round1(contribution_factor(record.revenue, total_revenue)),
        turnover=round1(turnover_factor(coverage)),
    )

    lifecycle = lifecycle_tier(on_hand, record.velocity, coverage)
    suggested = promo_price(lifecycle, record.avg_price, record.cost, coverage)
    suggested_margin = promo_margin(suggested, record.cost)

    return ScoredItem(
        sales=record,
        on_hand=on_hand,
        stock_description=stock.description if stock is not None else "",
        coverage_months=coverage,
        scores=scores,
        price_tier=tier,
        discount_pct=round1(discount) if discount is not None else None,
        lifecycle=lifecycle,
        trend_pct=trend_pct(record.qty_first_half, record.qty_second_half),
        promo_price=round1(suggested) if suggested is not None else None,
        promo_margin=round1(suggested_margin) if suggested_margin is not None else None,
    )


def score_matches(result: ReconciliationResult) -> list[ScoredItem]:
    """Score every reconciled sales record, ordered by code."""
    total_revenue = sum(m.sales.revenue for m in result.matches)
    items = [score_item(m.sales, m.stock, total_revenue) for m in result.matches]
    return sorted(items, key=lambda item: item.code)


def score_items(
    sales: list[SalesRecord], stock_by_code: dict[str, StockRecord]
) -> list[ScoredItem]:
    """Join sales with stock by code and score every product."""
    return score_matches(reconcile(sales, stock_by_code))
