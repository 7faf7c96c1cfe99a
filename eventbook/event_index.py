"""
In-memory index over one snapshot of the repository.

Built from a load_all() result and thrown away after the query; it is
never kept in sync with the file.
"""

from datetime import datetime
from typing import Iterable, Optional

from .event import Event
from .interval_tree import IntervalHandle, IntervalTree


class EventIndex:
    """Interval tree over events keyed on [start, end)."""

    def __init__(self, events: Iterable[Event]):
        self._tree: IntervalTree[datetime] = IntervalTree(
            (event.start, event.end, event) for event in events
        )

    def __len__(self) -> int:
        return len(self._tree)

    def overlapping(self, start: datetime, end: datetime, exclude_id: Optional[int] = None) -> list[Event]:
        """
        Events whose interval overlaps [start, end), chronologically.

        Uses the half-open rule start < event.end and end > event.start.
        """
        found: list[Event] = []

        def _collect(handle: IntervalHandle[datetime]):
            if handle.data.id != exclude_id:
                found.append(handle.data)

        self._tree.find_intersecting(start, end, _collect)
        return found
