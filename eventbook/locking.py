"""
Locking for the record file.

A single RecordLock guards every read-modify-write sequence on one data
file. Inside a process a reentrant mutex serializes threads; across
processes an advisory fcntl lock on a sibling ``.lock`` file does the
same. Readers take the lock shared, writers exclusive.
"""

import fcntl
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .debug_log import debug_print


def _debug_print(msg: str) -> None:
    debug_print("LOCK", msg)


class RecordLock:
    """
    Reentrant shared/exclusive lock for one record file.

    Nesting is allowed in the owning thread. A shared request inside an
    exclusive hold is satisfied by the exclusive hold; an exclusive request
    inside a shared hold upgrades the file lock until the outermost hold
    is released.
    """

    def __init__(self, lock_path: Optional[Path] = None):
        self.lock_path = Path(lock_path) if lock_path is not None else None
        self._mutex = threading.RLock()
        self._depth = 0
        self._fd: Optional[int] = None
        self._mode: Optional[int] = None

    @contextmanager
    def shared(self) -> Iterator[None]:
        with self._hold(fcntl.LOCK_SH):
            yield

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        with self._hold(fcntl.LOCK_EX):
            yield

    @property
    def held(self) -> bool:
        return self._depth > 0

    @contextmanager
    def _hold(self, mode: int) -> Iterator[None]:
        with self._mutex:
            if self._depth == 0:
                self._acquire_file_lock(mode)
            elif mode == fcntl.LOCK_EX and self._mode == fcntl.LOCK_SH:
                self._upgrade_file_lock()
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
                if self._depth == 0:
                    self._release_file_lock()

    def _acquire_file_lock(self, mode: int) -> None:
        self._mode = mode
        if self.lock_path is None:
            return
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        self._fd = os.open(self.lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(self._fd, mode)
        except OSError:
            os.close(self._fd)
            self._fd = None
            raise
        _debug_print(f"Acquired {'exclusive' if mode == fcntl.LOCK_EX else 'shared'} lock on {self.lock_path}")

    def _upgrade_file_lock(self) -> None:
        # flock upgrades are not atomic: another process may get in between
        self._mode = fcntl.LOCK_EX
        if self._fd is not None:
            fcntl.flock(self._fd, fcntl.LOCK_EX)
            _debug_print(f"Upgraded lock on {self.lock_path}")

    def _release_file_lock(self) -> None:
        self._mode = None
        if self._fd is None:
            return
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        finally:
            os.close(self._fd)
            self._fd = None


def default_lock_path(data_file: Path) -> Path:
    """Lock file that sits next to the data file."""
    data_file = Path(data_file)
    return data_file.with_name(data_file.name + ".lock")
