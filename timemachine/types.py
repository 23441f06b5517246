"""
Data types for the time machine.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Attach UTC to a naive datetime, or convert an aware one to UTC.

    All dates compared by the selectors are aware UTC datetimes; naive
    values coming from frontmatter are taken to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_utc_timestamp(ts: str) -> datetime:
    """Parse an ISO timestamp string to a timezone-aware UTC datetime.

    Accepts plain dates (2024-03-01), full timestamps, and the 'Z' suffix.
    Raises ValueError for anything else.
    """
    ts = ts.strip().replace("Z", "+00:00")
    return as_utc(datetime.fromisoformat(ts))


def display_date(dt: datetime) -> str:
    """Short-form display date (MM/DD/YYYY), as shown in horizon listings."""
    return dt.strftime("%m/%d/%Y")


@dataclass(frozen=True)
class DatedItem:
    """
    A document reference paired with its parsed creation date.

    Only documents whose date was successfully parsed become DatedItems;
    an item without a date never reaches a selector. The same instance may
    be retained by several horizons at once, so it is immutable.

    Attributes:
        identifier: Reference to the source document (vault-relative path)
        date: Creation date as an aware UTC datetime
    """
    identifier: str
    date: datetime

    def __post_init__(self):
        if not isinstance(self.date, datetime):
            if isinstance(self.date, date):
                raise TypeError(
                    f"DatedItem {self.identifier!r} needs a datetime, got a date; "
                    "convert with datetime.combine()"
                )
            raise TypeError(
                f"DatedItem {self.identifier!r} requires a datetime, got {self.date!r}"
            )
        # Normalize so that every comparison inside a selector is aware-vs-aware
        object.__setattr__(self, "date", as_utc(self.date))

    @property
    def name(self) -> str:
        """Basename of the document without its extension."""
        base = self.identifier.replace("\\", "/").rsplit("/", 1)[-1]
        return base[:-3] if base.endswith(".md") else base

    def to_dict(self) -> dict:
        return {"identifier": self.identifier, "date": self.date.isoformat()}

    def __str__(self) -> str:
        return f"{self.name}: {display_date(self.date)}"
