"""
Backup and restore of the record file.

A backup is a byte-identical copy of the primary file at a second path.
Each backup overwrites the previous one; restore overwrites the primary.
"""

from pathlib import Path
from typing import Optional

from .debug_log import debug_print
from .event_storage import StorageError, atomic_copy
from .locking import RecordLock


def _debug_print(msg: str) -> None:
    debug_print("BACKUP", msg)


class BackupManager:
    """
    Copies the primary file to and from its backup.

    Pass the repository's lock so that a restore cannot interleave with
    a rewrite of the primary file.
    """

    def __init__(self, primary_path: Path, backup_path: Path, lock: Optional[RecordLock] = None):
        self.primary_path = Path(primary_path)
        self.backup_path = Path(backup_path)
        self._lock = lock if lock is not None else RecordLock()

    def has_backup(self) -> bool:
        return self.backup_path.exists()

    def backup(self) -> bool:
        """
        Copy the primary file over the backup.

        Returns:
            False if there is no primary file to back up
        """
        with self._lock.shared():
            if not self.primary_path.exists():
                _debug_print(f"No data file at {self.primary_path}, nothing to back up")
                return False
            try:
                atomic_copy(self.primary_path, self.backup_path)
            except OSError as e:
                raise StorageError(f"Backup to {self.backup_path} failed: {e}", self.backup_path) from e
        _debug_print(f"Backed up {self.primary_path} to {self.backup_path}")
        return True

    def restore(self) -> bool:
        """
        Copy the backup over the primary file, discarding current data.

        Returns:
            False if there is no backup to restore from
        """
        with self._lock.exclusive():
            if not self.backup_path.exists():
                _debug_print(f"No backup at {self.backup_path}, nothing to restore")
                return False
            try:
                atomic_copy(self.backup_path, self.primary_path)
            except OSError as e:
                raise StorageError(f"Restore to {self.primary_path} failed: {e}", self.primary_path) from e
        _debug_print(f"Restored {self.primary_path} from {self.backup_path}")
        return True
