"""
Export events to an iCalendar (.ics) file.

Each event becomes one VEVENT. Local times are tagged with the configured
timezone so other calendar programs place them correctly.
"""

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union

import pytz
from icalendar import Calendar as ICalCalendar, Event as ICalEvent

from .debug_log import debug_print
from .event import Event
from .event_storage import StorageError, atomic_write_bytes
from .timezone_utils import get_local_timezone


def _debug_print(msg: str) -> None:
    debug_print("EXPORT", msg)


PRODID = '-//Eventbook//eventbook//'


def event_uid(event: Event) -> str:
    return f"{event.id}@eventbook"


def to_ical_event(event: Event, stamp: datetime, tz) -> ICalEvent:
    """Build the VEVENT for one Event, tagging its local times with tz."""
    vevent = ICalEvent()
    vevent.add('uid', event_uid(event))
    vevent.add('summary', event.title)
    vevent.add('dtstamp', stamp)
    vevent.add('dtstart', tz.localize(event.start))
    vevent.add('dtend', tz.localize(event.end))
    if event.description:
        vevent.add('description', event.description)
    return vevent


def build_calendar(
    events: Iterable[Event],
    timezone: Optional[Union[str, pytz.BaseTzInfo]] = None,
) -> ICalCalendar:
    """
    Wrap the events in a VCALENDAR.

    Args:
        timezone: pytz timezone or zone name for DTSTART/DTEND; defaults
            to the configured local timezone
    """
    if timezone is None:
        tz = get_local_timezone()
    elif isinstance(timezone, str):
        tz = pytz.timezone(timezone)
    else:
        tz = timezone
    vcal = ICalCalendar()
    vcal.add('prodid', PRODID)
    vcal.add('version', '2.0')
    stamp = datetime.now(pytz.UTC)
    for event in events:
        vcal.add_component(to_ical_event(event, stamp, tz))
    return vcal


def export_ics(events: Iterable[Event], path: Path, timezone=None) -> int:
    """
    Write events to an .ics file, replacing it if present.

    The timezone argument is passed on to build_calendar().

    Returns:
        Number of events written
    """
    events = list(events)
    payload = build_calendar(events, timezone).to_ical()
    try:
        atomic_write_bytes(Path(path), payload)
    except OSError as e:
        raise StorageError(f"Error writing {path}: {e}", Path(path)) from e
    _debug_print(f"Exported {len(events)} events to {path}")
    return len(events)
