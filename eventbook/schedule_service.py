"""
Scheduling logic on top of EventRepository.

Conflict detection, keyword search, delete/replace, statistics and
reminders. Every operation works on a fresh snapshot of the file; the
service keeps no event state of its own.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from .debug_log import debug_print
from .event import Event
from .event_index import EventIndex
from .event_repository import EventRepository
from .timezone_utils import local_now


def _debug_print(msg: str) -> None:
    debug_print("SCHEDULE", msg)


DEFAULT_REMINDER_WINDOW = timedelta(hours=24)


@dataclass(frozen=True)
class ScheduleStatistics:
    """Aggregate figures over all stored events."""
    total: int
    upcoming_count: int
    total_scheduled_minutes: int
    this_month_count: int
    busiest_weekday: Optional[int]  # 0 = Monday, None when there are no events


class ScheduleService:
    """
    Business operations over the event file.

    Args:
        repository: Where events live
        clock: Returns the current naive local time; defaults to the
            configured timezone's wall clock
    """

    def __init__(self, repository: EventRepository, clock: Optional[Callable[[], datetime]] = None):
        self._repository = repository
        self._clock = clock or local_now

    @property
    def repository(self) -> EventRepository:
        return self._repository

    def now(self) -> datetime:
        return self._clock()

    # ==================== Conflicts ====================

    def find_conflicts(
        self,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> list[Event]:
        """
        Events overlapping [start, end), in chronological order.

        Args:
            exclude_id: ID to ignore, used when re-checking an edited event
                against its own old slot
        """
        index = EventIndex(self._repository.load_all())
        conflicts = index.overlapping(start, end, exclude_id=exclude_id)
        for event in conflicts:
            _debug_print(f"Conflict: {start}-{end} overlaps event {event.id} [{event.title}]")
        return conflicts

    def has_conflict(
        self,
        start: datetime,
        end: datetime,
        exclude_id: Optional[int] = None,
    ) -> bool:
        """True if any other event overlaps [start, end). Back-to-back slots do not."""
        return bool(self.find_conflicts(start, end, exclude_id=exclude_id))

    # ==================== Queries ====================

    def search(self, keyword: str) -> list[Event]:
        """Case-insensitive substring match on title or description."""
        needle = keyword.casefold()
        return [
            e for e in self._repository.load_all()
            if needle in e.title.casefold() or needle in e.description.casefold()
        ]

    def events_between(self, start: datetime, end: datetime) -> list[Event]:
        """Events overlapping the half-open range [start, end)."""
        return EventIndex(self._repository.load_all()).overlapping(start, end)

    def events_on(self, day: date) -> list[Event]:
        """
        Events touching a calendar day.

        Zero-length events are included when they sit inside the day.
        """
        day_start = datetime.combine(day, time.min)
        day_end = day_start + timedelta(days=1)
        events = self.events_between(day_start, day_end)
        seen = {e.id for e in events}
        for event in self._repository.load_all():
            if event.start == event.end and day_start <= event.start < day_end and event.id not in seen:
                events.append(event)
        events.sort(key=lambda e: e.start)
        return events

    def upcoming(self, within: timedelta = DEFAULT_REMINDER_WINDOW) -> list[Event]:
        """Events starting strictly after now and strictly before now + within."""
        now = self.now()
        horizon = now + within
        return [e for e in self._repository.load_all() if now < e.start < horizon]

    # ==================== Mutations ====================

    def delete(self, event_id: int) -> bool:
        """
        Remove the event with this ID.

        Returns:
            True if an event was removed; False leaves the file untouched
        """
        with self._repository.locked():
            events = self._repository.load_all()
            remaining = [e for e in events if e.id != event_id]
            if len(remaining) == len(events):
                _debug_print(f"delete({event_id}): not found")
                return False
            self._repository.save_all(remaining)
        _debug_print(f"Deleted event {event_id}")
        return True

    def replace(
        self,
        event_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Optional[Event]:
        """Edit an event in place, keeping its ID. None if it does not exist."""
        return self._repository.replace(
            event_id, title=title, description=description, start=start, end=end
        )

    # ==================== Statistics ====================

    def statistics(self) -> ScheduleStatistics:
        events = self._repository.load_all()
        now = self.now()

        weekday_counts = Counter(e.start.weekday() for e in events)
        busiest = None
        if weekday_counts:
            # Ties go to the earliest day of the week
            busiest = min(weekday_counts, key=lambda day: (-weekday_counts[day], day))

        return ScheduleStatistics(
            total=len(events),
            upcoming_count=sum(1 for e in events if e.start > now),
            total_scheduled_minutes=sum(e.duration_minutes for e in events),
            this_month_count=sum(
                1 for e in events if (e.start.year, e.start.month) == (now.year, now.month)
            ),
            busiest_weekday=busiest,
        )
