"""
Configuration parser for Eventbook.

Handles TOML file parsing and default file locations.
"""

import tomllib
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from .event_storage import get_default_data_dir
from .locking import default_lock_path


DEFAULT_TIMEZONE = "Europe/Amsterdam"
DEFAULT_REMINDER_HOURS = 24


@dataclass
class LocalizationConfig:
    """Configuration for localized day names."""
    # Default to English abbreviated day names
    day_names: list[str] = None  # Mon Tue Wed Thu Fri Sat Sun

    def __post_init__(self):
        if self.day_names is None:
            self.day_names = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

    def get_day_name(self, weekday: int) -> str:
        """Get localized day name for weekday (0=Monday, 6=Sunday)."""
        return self.day_names[weekday] if 0 <= weekday < len(self.day_names) else ""


@dataclass
class Config:
    """Main configuration container for Eventbook."""

    data_file: Path
    backup_file: Path
    lock_file: Optional[Path]  # None disables the cross-process file lock
    timezone: str = DEFAULT_TIMEZONE
    backup_before_changes: bool = True
    reminder_hours: int = DEFAULT_REMINDER_HOURS
    localization: LocalizationConfig = field(default_factory=LocalizationConfig)

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        xdg_config = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
        return Path(xdg_config) / 'eventbook' / 'eventbook.toml'

    @classmethod
    def defaults(cls) -> 'Config':
        """Configuration used when no config file exists."""
        data_dir = get_default_data_dir()
        data_file = data_dir / 'event.csv'
        return cls(
            data_file=data_file,
            backup_file=data_dir / 'event_backup.csv',
            lock_file=default_lock_path(data_file),
        )

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'Config':
        """
        Load configuration from TOML file.

        With no explicit path, a missing default config file yields
        defaults(). An explicit path that does not exist is an error.
        """
        if config_path is None:
            config_path = cls.get_default_config_path()
            if not config_path.exists():
                return cls.defaults()

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'rb') as f:
            data = tomllib.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        """Build a Config from parsed TOML data."""
        defaults = cls.defaults()

        # Parse General section
        general = data.get('General', {})

        data_file = _expand_path(general.get('data_file'), defaults.data_file)
        backup_file = _expand_path(general.get('backup_file'), data_file.with_name(
            f"{data_file.stem}_backup{data_file.suffix}"
        ))

        # Empty means "next to the data file", "none" disables it
        lock_file_str = general.get('lock_file', '')
        if not isinstance(lock_file_str, str):
            raise ValueError(f"lock_file must be a path string or \"none\", got {lock_file_str!r}")
        if lock_file_str.lower() == 'none':
            lock_file = None
        elif lock_file_str:
            lock_file = _expand_path(lock_file_str, None)
        else:
            lock_file = default_lock_path(data_file)

        reminder_hours = general.get('reminder_hours', DEFAULT_REMINDER_HOURS)
        if not isinstance(reminder_hours, int) or reminder_hours < 0:
            raise ValueError(f"reminder_hours must be a non-negative integer, got {reminder_hours!r}")

        # Parse Localization section
        localization_data = data.get('Localization', {})
        day_names_str = localization_data.get('day_names', '')
        # Parse space-separated day names (if provided)
        day_names = day_names_str.split() if day_names_str else None

        return cls(
            data_file=data_file,
            backup_file=backup_file,
            lock_file=lock_file,
            timezone=general.get('timezone', DEFAULT_TIMEZONE),
            backup_before_changes=general.get('backup_before_changes', True),
            reminder_hours=reminder_hours,
            localization=LocalizationConfig(day_names=day_names),
        )


def _expand_path(value: Optional[str], default: Optional[Path]) -> Optional[Path]:
    if not value:
        return default
    return Path(os.path.expanduser(value))


EXAMPLE_CONFIG = """
[General]
data_file = "~/.local/share/eventbook/event.csv"
backup_file = "~/.local/share/eventbook/event_backup.csv"
timezone = "Europe/Amsterdam"
backup_before_changes = true
reminder_hours = 24

[Localization]
day_names = "Mon Tue Wed Thu Fri Sat Sun"
"""
