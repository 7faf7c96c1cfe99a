"""Shared fixtures for the Eventbook test suite."""
from pathlib import Path

import pytest

from eventbook.event_repository import EventRepository
from eventbook.locking import RecordLock, default_lock_path
from eventbook.schedule_service import ScheduleService

from tests.helpers import FIXED_NOW


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    return tmp_path / "event.csv"


@pytest.fixture
def lock(data_file: Path) -> RecordLock:
    return RecordLock(default_lock_path(data_file))


@pytest.fixture
def repository(data_file: Path, lock: RecordLock) -> EventRepository:
    return EventRepository(data_file, lock=lock)


@pytest.fixture
def service(repository: EventRepository) -> ScheduleService:
    return ScheduleService(repository, clock=lambda: FIXED_NOW)
