"""
The Event value type.

An Event is immutable: edits produce a new Event carrying the same id.
Times are naive local datetimes with whole-second resolution; the record
file has no room for a UTC offset or fractions of a second. Ordering checks
(end >= start) belong to whoever builds the Event, see validate_interval().
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta


@dataclass(frozen=True)
class Event:
    """One calendar item."""
    id: int
    title: str
    description: str
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def duration_minutes(self) -> int:
        """Whole minutes between start and end, truncated toward zero."""
        return int(self.duration / timedelta(minutes=1))

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """
        Half-open overlap test against [start, end).

        Back-to-back intervals (end == self.start) do not overlap.
        """
        return start < self.end and end > self.start

    def with_changes(self, **fields) -> 'Event':
        """Return a copy with the given fields replaced. The id cannot change."""
        if 'id' in fields and fields['id'] != self.id:
            raise ValueError("Event id cannot be changed")
        return replace(self, **fields)

    def __repr__(self):
        return f"Event(id={self.id!r}, title={self.title!r}, start={self.start}, end={self.end})"


def validate_interval(start: datetime, end: datetime) -> None:
    """Raise ValueError if the interval ends before it starts or is not naive local time."""
    validate_timestamp(start)
    validate_timestamp(end)
    if end < start:
        raise ValueError(f"End time {end} is before start time {start}")


def validate_timestamp(dt: datetime) -> None:
    """Raise ValueError for datetimes the record file cannot hold (tz-aware ones)."""
    if dt.tzinfo is not None:
        raise ValueError(f"Expected a naive local time, got {dt.isoformat()}")


def validate_text(*texts: str) -> None:
    """Raise ValueError if any text contains a line break; a record is one line."""
    for text in texts:
        if '\n' in text or '\r' in text:
            raise ValueError(f"Line breaks are not allowed in event text: {text!r}")
