"""
Eventbook Backend Module

This module provides the core functionality for calendar operations:
- Event value type (event.py)
- Record codec for the CSV-like data file (event_codec.py)
- Text file storage with atomic rewrites (event_storage.py)
- Event repository - load/save/append/next-id (event_repository.py)
- Scheduling logic - conflicts, search, statistics (schedule_service.py)
- Backup and restore (backup_manager.py)
- iCalendar export (ics_export.py)
- Configuration parsing (config.py)
"""

from .config import Config
from .event import Event, validate_interval, validate_text, validate_timestamp
from .event_codec import DecodeError, DecodeResult, decode, encode
from .event_storage import StorageError
from .event_repository import EventRepository, LoadResult
from .schedule_service import ScheduleService, ScheduleStatistics
from .backup_manager import BackupManager
from .locking import RecordLock

__all__ = [
    'Config',
    'Event',
    'validate_interval',
    'validate_text',
    'validate_timestamp',
    'DecodeError',
    'DecodeResult',
    'decode',
    'encode',
    'StorageError',
    'EventRepository',
    'LoadResult',
    'ScheduleService',
    'ScheduleStatistics',
    'BackupManager',
    'RecordLock',
]
