"""
Relative time horizons and routing of dated documents into them.

A HorizonSet is built fresh for every run. Each horizon owns a boundary
(now minus a calendar offset) and a Selector; a document dated at or
before a boundary is offered to that horizon's selector.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Iterator, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta

from .errors import InvalidConfiguration
from .selector import Selector
from .types import DatedItem, as_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Offset:
    """A named relative duration, e.g. one calendar month."""
    key: str
    label: str
    delta: relativedelta

    def boundary(self, now: datetime) -> datetime:
        """Calendar-aware `now - delta`.

        Month and year offsets clamp to the last valid day, so one month
        before March 31 is the end of February.
        """
        return now - self.delta


# Ordered as presented in settings and listings
CATALOG: tuple[Offset, ...] = (
    Offset("week", "A Week Ago", relativedelta(days=7)),
    Offset("two_weeks", "Two Weeks Ago", relativedelta(days=14)),
    Offset("month", "A Month Ago", relativedelta(months=1)),
    Offset("six_months", "Six Months Ago", relativedelta(months=6)),
    Offset("year", "A Year Ago", relativedelta(years=1)),
    Offset("two_years", "Two Years Ago", relativedelta(years=2)),
    Offset("five_years", "5 Years Ago", relativedelta(years=5)),
    Offset("ten_years", "10 Years Ago", relativedelta(years=10)),
)

OFFSETS_BY_KEY = {offset.key: offset for offset in CATALOG}


def get_offset(key: str) -> Offset:
    """Look up a catalog offset by key."""
    try:
        return OFFSETS_BY_KEY[key]
    except KeyError:
        valid = ", ".join(OFFSETS_BY_KEY)
        raise InvalidConfiguration(
            f"Unknown horizon {key!r} (valid: {valid})"
        ) from None


OffsetLike = Union[Offset, str, tuple[str, Union[Offset, str]]]


def _resolve(entry: OffsetLike) -> tuple[str, Offset]:
    """Normalize an offset entry into (label, Offset)."""
    if isinstance(entry, Offset):
        return entry.label, entry
    if isinstance(entry, str):
        offset = get_offset(entry)
        return offset.label, offset
    label, target = entry
    offset = target if isinstance(target, Offset) else get_offset(target)
    return label, offset


@dataclass
class Horizon:
    """One relative time bucket for the current run."""
    key: str
    label: str
    boundary: datetime
    selector: Selector

    def accepts(self, item: DatedItem) -> bool:
        """True if the item is at least as old as the boundary."""
        return item.date <= self.boundary

    def retained(self) -> list[DatedItem]:
        """Held documents, most recent first."""
        return self.selector.drain_sorted_descending()

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "boundary": self.boundary.isoformat(),
            "items": [item.to_dict() for item in self.retained()],
        }


@dataclass
class IngestStats:
    """Counters for one ingest pass."""
    seen: int = 0
    skipped: int = 0  # no date
    routed: int = 0  # offered to at least one horizon
    unmatched: int = 0  # dated, but newer than every boundary

    def add(self, other: "IngestStats") -> None:
        self.seen += other.seen
        self.skipped += other.skipped
        self.routed += other.routed
        self.unmatched += other.unmatched


@dataclass
class HorizonSet:
    """
    The active horizons of a single run, in configured order.

    Build with HorizonSet.build(); the boundaries are fixed from then on and
    the set only accepts routes. Nothing is shared between sets, so a
    rebuilt set starts with empty selectors.
    """
    horizons: list[Horizon]
    now: datetime
    stats: IngestStats = field(default_factory=IngestStats)

    @classmethod
    def build(
        cls,
        offsets: Sequence[OffsetLike],
        capacity: int,
        now: Optional[datetime] = None,
    ) -> "HorizonSet":
        """
        Compute boundaries and create an empty selector per horizon.

        Args:
            offsets: Catalog keys, Offset objects, or (label, key|Offset)
                pairs, in display order
            capacity: Number of documents each horizon keeps
            now: Reference time; defaults to the current UTC time

        Raises:
            InvalidConfiguration: No offsets, an unknown key, or a bad capacity
        """
        if not offsets:
            raise InvalidConfiguration("No horizons enabled")
        now = utc_now() if now is None else as_utc(now)
        horizons = []
        for entry in offsets:
            label, offset = _resolve(entry)
            horizons.append(Horizon(
                key=offset.key,
                label=label,
                boundary=offset.boundary(now),
                selector=Selector(capacity),
            ))
        logger.debug(
            "Built %d horizons at %s: %s",
            len(horizons), now.isoformat(),
            ", ".join(f"{h.key}<={h.boundary.date()}" for h in horizons),
        )
        return cls(horizons=horizons, now=now)

    def __iter__(self) -> Iterator[Horizon]:
        return iter(self.horizons)

    def __len__(self) -> int:
        return len(self.horizons)

    def __getitem__(self, key: str) -> Horizon:
        for horizon in self.horizons:
            if horizon.key == key:
                return horizon
        raise KeyError(key)

    @property
    def labels(self) -> list[str]:
        return [h.label for h in self.horizons]

    def route(self, item: DatedItem) -> int:
        """
        Offer the item to every horizon whose boundary it satisfies.

        Returns:
            Number of horizons the item was offered to (not how many kept it)
        """
        offered = 0
        for horizon in self.horizons:
            if horizon.accepts(item):
                horizon.selector.insert(item)
                offered += 1
        return offered

    def ingest(self, pairs: Iterable[tuple[str, Optional[datetime]]]) -> IngestStats:
        """
        Route a stream of (identifier, date) pairs.

        Pairs without a date are counted and dropped; they never become
        DatedItems.
        """
        stats = IngestStats()
        for identifier, date in pairs:
            stats.seen += 1
            if date is None:
                stats.skipped += 1
                continue
            if self.route(DatedItem(identifier, date)):
                stats.routed += 1
            else:
                stats.unmatched += 1
        self.stats.add(stats)
        return stats

    def to_dict(self) -> dict:
        return {
            "now": self.now.isoformat(),
            "horizons": [h.to_dict() for h in self.horizons],
        }
