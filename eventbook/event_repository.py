"""
Event repository backed by the record file.

The file is the single source of truth: every read reloads it and every
write goes straight to disk. No event list is cached between calls, so a
load always reflects the latest file content.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .debug_log import debug_print, warning_print
from .event import Event, validate_text, validate_timestamp
from .event_codec import HEADER, DecodeError, decode, encode, is_header
from .event_storage import RecordStorageBackend, create_storage_backend
from .locking import RecordLock


def _debug_print(msg: str) -> None:
    debug_print("REPO", msg)


def _whole_seconds(dt: Optional[datetime]) -> Optional[datetime]:
    # The record format stores seconds; returned events must match what is on disk
    return dt.replace(microsecond=0) if dt is not None else None


@dataclass
class LoadResult:
    """Events read from the file plus the records that had to be skipped."""
    events: list[Event] = field(default_factory=list)
    skipped: list[DecodeError] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class EventRepository:
    """
    Repository for Event objects.

    Provides load/save/append on the record file and ID assignment.
    Mutations hold the exclusive lock, reads the shared one. Sequences that
    must be atomic as a whole (read, modify, write) use locked().
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        lock: Optional[RecordLock] = None,
        storage: Optional[RecordStorageBackend] = None,
    ):
        self._storage = storage if storage is not None else create_storage_backend(path)
        self._lock = lock if lock is not None else RecordLock()

    @property
    def path(self) -> Path:
        return self._storage.path

    @property
    def lock(self) -> RecordLock:
        return self._lock

    def exists(self) -> bool:
        return self._storage.exists()

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the exclusive lock across several repository calls."""
        with self._lock.exclusive():
            yield

    # ==================== Reading ====================

    def load(self) -> LoadResult:
        """
        Read every record from the file.

        A missing file yields an empty result. A header line, blank lines
        and corrupt records are skipped; corrupt records are reported as
        warnings and collected in LoadResult.skipped.

        Returns:
            LoadResult with events sorted by start time (file order on ties)
        """
        result = LoadResult()
        with self._lock.shared():
            for line_number, line in self._storage.read_lines():
                if not line.strip():
                    continue
                if line_number == 1 and is_header(line):
                    continue
                decoded = decode(line, line_number)
                if decoded.ok:
                    result.events.append(decoded.event)
                else:
                    result.skipped.append(decoded.error)
                    warning_print("REPO", f"Skipping corrupted record at {decoded.error}")

        # list.sort is stable, so equal start times keep their file order
        result.events.sort(key=lambda e: e.start)
        _debug_print(f"Loaded {len(result.events)} events from {self.path} "
                     f"({result.skipped_count} skipped)")
        return result

    def load_all(self) -> list[Event]:
        """All events, sorted ascending by start time."""
        return self.load().events

    def get(self, event_id: int) -> Optional[Event]:
        """Get a single event by ID."""
        for event in self.load_all():
            if event.id == event_id:
                return event
        return None

    def next_id(self) -> int:
        """Highest ID in the file plus one, or 1 for an empty repository."""
        with self._lock.shared():
            events = self.load_all()
        return max((e.id for e in events), default=0) + 1

    # ==================== Writing ====================

    def save_all(self, events: Iterable[Event]) -> None:
        """
        Overwrite the file with a header and one record per event.

        Events are written in the order given. Raises StorageError if the
        file cannot be written; the previous content is left in place.
        """
        events = list(events)
        with self._lock.exclusive():
            self._storage.write_lines([HEADER] + [encode(e) for e in events])
        _debug_print(f"Saved {len(events)} events to {self.path}")

    def append(self, event: Event) -> None:
        """
        Append one record, creating the file (with header) if needed.

        Does not check the ID against existing records.
        """
        with self._lock.exclusive():
            self._storage.append_lines([encode(event)], header=HEADER)
        _debug_print(f"Appended event {event.id} to {self.path}")

    def create(self, title: str, description: str, start: datetime, end: datetime) -> Event:
        """
        Assign the next ID and append a new event in one locked step.

        Raises ValueError for text with line breaks or tz-aware times.
        Microseconds are dropped.

        Returns:
            The Event as persisted
        """
        validate_text(title, description)
        validate_timestamp(start)
        validate_timestamp(end)
        with self._lock.exclusive():
            event = Event(
                id=self.next_id(),
                title=title,
                description=description,
                start=_whole_seconds(start),
                end=_whole_seconds(end),
            )
            self.append(event)
        return event

    def replace(
        self,
        event_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Optional[Event]:
        """
        Replace fields of an existing event, keeping its ID.

        Read, modify and rewrite happen under one exclusive lock. Fields
        left as None keep their current value. New values are checked
        like create() before the file is read.

        Returns:
            The updated Event, or None if no event has this ID (the file
            is not touched in that case)
        """
        validate_text(*(text for text in (title, description) if text is not None))
        for dt in (start, end):
            if dt is not None:
                validate_timestamp(dt)
        changes = {
            name: value for name, value in (
                ('title', title),
                ('description', description),
                ('start', _whole_seconds(start)),
                ('end', _whole_seconds(end)),
            ) if value is not None
        }
        with self._lock.exclusive():
            events = self.load_all()
            for i, event in enumerate(events):
                if event.id == event_id:
                    updated = event.with_changes(**changes)
                    events[i] = updated
                    break
            else:
                _debug_print(f"replace({event_id}): no such event")
                return None

            events.sort(key=lambda e: e.start)
            self.save_all(events)
        _debug_print(f"Replaced event {event_id}")
        return updated
