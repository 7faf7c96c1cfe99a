"""
Record codec: one Event <-> one line of the record file.

Record layout::

    eventId,title,description,startDateTime,endDateTime

Commas inside title/description are written as '|' and turned back into
commas on read. Text that already contained '|' therefore comes back with
a comma in its place; the format has no way to tell the two apart.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .event import Event, validate_text, validate_timestamp


DELIMITER = ","
PLACEHOLDER = "|"
FIELD_COUNT = 5
HEADER = "eventId,title,description,startDateTime,endDateTime"

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
# Files written by older versions omit seconds when they are zero
_ACCEPTED_TIMESTAMP_FORMATS = (TIMESTAMP_FORMAT, "%Y-%m-%dT%H:%M")


@dataclass(frozen=True)
class DecodeError:
    """A record that could not be turned into an Event."""
    record: str
    reason: str
    line_number: Optional[int] = None

    def __str__(self):
        where = f"line {self.line_number}: " if self.line_number is not None else ""
        return f"{where}{self.reason} ({self.record!r})"


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one record: either an event or an error."""
    event: Optional[Event] = None
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _escape(text: str) -> str:
    return text.replace(DELIMITER, PLACEHOLDER)


def _unescape(text: str) -> str:
    return text.replace(PLACEHOLDER, DELIMITER)


def format_timestamp(dt: datetime) -> str:
    return dt.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime:
    """Parse a record timestamp. Raises ValueError on anything else."""
    for fmt in _ACCEPTED_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"unparseable timestamp {text!r}")


def encode(event: Event) -> str:
    """
    Serialize an Event to a single record (no trailing newline).

    Raises ValueError for text containing line breaks or tz-aware times,
    neither of which survives a round trip through the file.
    """
    validate_text(event.title, event.description)
    validate_timestamp(event.start)
    validate_timestamp(event.end)
    return DELIMITER.join([
        str(event.id),
        _escape(event.title),
        _escape(event.description),
        format_timestamp(event.start),
        format_timestamp(event.end),
    ])


def decode(record: str, line_number: Optional[int] = None) -> DecodeResult:
    """
    Parse a single record.

    Never raises; a malformed record yields a DecodeResult with an error.
    Fields beyond the fifth are ignored.
    """
    def _fail(reason: str) -> DecodeResult:
        return DecodeResult(error=DecodeError(record=record, reason=reason, line_number=line_number))

    fields = record.split(DELIMITER)
    if len(fields) < FIELD_COUNT:
        return _fail(f"expected {FIELD_COUNT} fields, got {len(fields)}")

    raw_id, title, description, raw_start, raw_end = fields[:FIELD_COUNT]

    try:
        event_id = int(raw_id.strip())
    except ValueError:
        return _fail(f"invalid event id {raw_id!r}")
    if event_id < 1:
        return _fail(f"event id must be >= 1, got {event_id}")

    try:
        start = parse_timestamp(raw_start.strip())
        end = parse_timestamp(raw_end.strip())
    except ValueError as e:
        return _fail(str(e))

    return DecodeResult(event=Event(
        id=event_id,
        title=_unescape(title),
        description=_unescape(description),
        start=start,
        end=end,
    ))


def is_header(line: str) -> bool:
    return line.strip() == HEADER
