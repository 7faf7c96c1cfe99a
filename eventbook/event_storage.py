"""
Persistent record storage for Eventbook.

Abstract base class and a plain text file implementation. The storage
layer only moves lines of text; turning them into events is the
repository's job.
"""

import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .debug_log import debug_print


def _debug_print(msg: str) -> None:
    debug_print("STORAGE", msg)


class StorageError(Exception):
    """The record file could not be read or written."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class RecordStorageBackend(ABC):
    """
    Abstract base class for record storage backends.

    Implementations must leave the previous content intact when a
    rewrite fails.
    """

    @property
    @abstractmethod
    def path(self) -> Path:
        """Location of the primary record file."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Whether the record file exists."""
        pass

    @abstractmethod
    def read_lines(self) -> Iterator[tuple[int, str]]:
        """Yield (line_number, line) pairs, 1-based, without line endings."""
        pass

    @abstractmethod
    def write_lines(self, lines: Iterable[str]) -> None:
        """Replace the whole file with the given lines."""
        pass

    @abstractmethod
    def append_lines(self, lines: Iterable[str], header: Optional[str] = None) -> None:
        """Append lines, writing header first when the file is new or empty."""
        pass


class TextFileStorage(RecordStorageBackend):
    """
    UTF-8 text file storage, one record per line.

    Rewrites go to a temporary file in the same directory which is then
    renamed over the target, so readers see either the old or the new
    file and never a truncated one.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def read_lines(self) -> Iterator[tuple[int, str]]:
        try:
            with open(self._path, 'r', encoding='utf-8', newline='') as f:
                for line_number, line in enumerate(f, start=1):
                    yield line_number, line.rstrip('\r\n')
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Error reading {self._path}: {e}", self._path) from e

    def write_lines(self, lines: Iterable[str]) -> None:
        payload = "".join(f"{line}\n" for line in lines)
        try:
            atomic_write_bytes(self._path, payload.encode('utf-8'))
        except OSError as e:
            raise StorageError(f"Error writing {self._path}: {e}", self._path) from e
        _debug_print(f"Rewrote {self._path}")

    def append_lines(self, lines: Iterable[str], header: Optional[str] = None) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            new_file = not self._path.exists() or self._path.stat().st_size == 0
            with open(self._path, 'a', encoding='utf-8', newline='\n') as f:
                if new_file and header is not None:
                    f.write(f"{header}\n")
                for line in lines:
                    f.write(f"{line}\n")
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            raise StorageError(f"Error appending to {self._path}: {e}", self._path) from e
        _debug_print(f"Appended to {self._path}{' (new file)' if new_file else ''}")


def atomic_write_bytes(target: Path, payload: bytes) -> None:
    """
    Write payload to target through a temporary file and os.replace().

    Raises OSError; the temporary file is removed on failure.
    """
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}-", suffix=".tmp", dir=str(target.parent))
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        if target.exists():
            shutil.copymode(target, tmp_name)
        os.replace(tmp_name, target)
    finally:
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                pass


def atomic_copy(source: Path, target: Path) -> None:
    """Byte-for-byte copy of source onto target, replacing it atomically."""
    with open(source, 'rb') as f:
        payload = f.read()
    atomic_write_bytes(target, payload)


def get_default_data_dir() -> Path:
    """Get the default data directory respecting XDG."""
    xdg_data = os.environ.get('XDG_DATA_HOME', os.path.expanduser('~/.local/share'))
    return Path(xdg_data) / 'eventbook'


def create_storage_backend(path: Optional[Path] = None) -> RecordStorageBackend:
    """Factory function to create a storage backend."""
    if path is None:
        path = get_default_data_dir() / 'event.csv'

    return TextFileStorage(path)
