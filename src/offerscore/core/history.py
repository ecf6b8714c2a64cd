"""
Capped, append-only log of saved run summaries.

Stored as a JSON list on disk, oldest first. A missing or unreadable file
means "no history": corruption is logged and never raised to the caller.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, TypeAdapter, ValidationError

from .parsers import round1
from .summary import RunSummary

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_CAP = 24

# Fields compared between the current run and the last saved one
DELTA_FIELDS = (
    "item_count",
    "avg_score",
    "avg_margin",
    "total_revenue",
    "total_stock_units",
    "capital_at_risk",
    "top_revenue_share",
)


class HistoryEntry(BaseModel):
    """A saved snapshot, rounded the way it is displayed."""

    label: str
    saved_at: str
    item_count: int
    avg_score: float
    avg_margin: float
    total_revenue: float
    total_stock_units: float
    capital_at_risk: float
    top_revenue_share: float
    tier_histogram: dict[str, int]

    @classmethod
    def from_summary(
        cls, label: str, summary: RunSummary, now: datetime | None = None
    ) -> "HistoryEntry":
        now = now or datetime.now(timezone.utc)
        return cls(
            label=label,
            saved_at=now.isoformat(),
            item_count=summary.item_count,
            avg_score=round1(summary.avg_score),
            avg_margin=round1(summary.avg_margin),
            total_revenue=round(summary.total_revenue),
            total_stock_units=summary.total_stock_units,
            capital_at_risk=round(summary.capital_at_risk),
            top_revenue_share=round1(summary.top_revenue_share),
            tier_histogram=dict(summary.tier_histogram),
        )


_entries_adapter = TypeAdapter(list[HistoryEntry])


class HistoryStore:
    """
    JSON-file history log.

    There is a single writer path (save), which reads everything, appends,
    drops the oldest entries past the cap and writes everything back.
    """

    def __init__(self, path: Path | str, cap: int = DEFAULT_HISTORY_CAP):
        self.path = Path(path)
        self.cap = cap

    def load(self) -> list[HistoryEntry]:
        """All saved entries, oldest first. Empty on any read or parse failure."""
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return _entries_adapter.validate_python(raw)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Resetting unreadable history log %s: %s", self.path, exc)
            return []

    def latest(self) -> HistoryEntry | None:
        entries = self.load()
        return entries[-1] if entries else None

    def save(
        self, label: str, summary: RunSummary, now: datetime | None = None
    ) -> list[HistoryEntry]:
        """Append a snapshot and return the capped log."""
        entries = self.load()
        entries.append(HistoryEntry.from_summary(label, summary, now))
        if len(entries) > self.cap:
            entries = entries[-self.cap:]

        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [entry.model_dump() for entry in entries]
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Saved history entry %r (%d/%d)", label, len(entries), self.cap)
        return entries


def summary_delta(current: RunSummary, previous: HistoryEntry | None) -> dict[str, float]:
    """Field-wise change of the current run against the last saved entry."""
    if previous is None:
        return {}
    return {
        name: getattr(current, name) - getattr(previous, name) for name in DELTA_FIELDS
    }
