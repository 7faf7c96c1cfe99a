"""
Timezone utilities for Eventbook.

Event times are stored as naive local wall-clock datetimes. This module
decides which timezone "local" means, so that "now" and exported
calendars agree with the user's configuration rather than the host's.
"""

from datetime import datetime
import time as _time
import pytz


# Default timezone - overridden by config
_local_timezone_name: str = "Europe/Amsterdam"


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    _local_timezone_name = timezone_name


def get_timezone_name() -> str:
    return _local_timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Returns:
        pytz timezone object for the configured local timezone.
    """
    try:
        return pytz.timezone(_local_timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback: try system timezone name
        try:
            return pytz.timezone(_time.tzname[0])
        except pytz.UnknownTimeZoneError:
            # Last resort: fixed offset from the C library
            is_dst = _time.localtime().tm_isdst
            if is_dst:
                offset_seconds = -_time.altzone
            else:
                offset_seconds = -_time.timezone
            return pytz.FixedOffset(offset_seconds // 60)


def local_now() -> datetime:
    """
    Current wall-clock time in the configured timezone, as a naive datetime.

    Truncated to whole seconds, the resolution of the record file.
    """
    now = datetime.now(pytz.UTC).astimezone(get_local_timezone())
    return now.replace(tzinfo=None, microsecond=0)
