"""Test data builders."""
from datetime import datetime

from eventbook.event import Event


FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0)


def dt(text: str) -> datetime:
    """Shorthand for datetime.fromisoformat in test data."""
    return datetime.fromisoformat(text)


def make_event(event_id: int, title: str, start: str, end: str, description: str = "") -> Event:
    return Event(id=event_id, title=title, description=description, start=dt(start), end=dt(end))
