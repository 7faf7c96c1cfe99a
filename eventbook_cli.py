#!/usr/bin/env python3
"""
Eventbook - a personal calendar kept in a plain text file.

This is the command line entry point. It parses arguments, turns text into
typed values and formats results; all calendar logic lives in the
eventbook package.
"""

import sys
import argparse
from dataclasses import dataclass
from datetime import datetime, date, timedelta
from pathlib import Path
from typing import Optional

from eventbook.backup_manager import BackupManager
from eventbook.config import Config, EXAMPLE_CONFIG
from eventbook.debug_log import set_debug, warning_print
from eventbook.event import Event, validate_interval
from eventbook.event_repository import EventRepository
from eventbook.event_storage import StorageError
from eventbook.ics_export import export_ics
from eventbook.locking import RecordLock
from eventbook.schedule_service import ScheduleService
from eventbook.timezone_utils import set_timezone


INPUT_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S")
PRINT_FORMAT = "%Y-%m-%d %H:%M"

# Commands that change the data file; a backup is taken before them
MODIFYING_COMMANDS = {"add", "edit", "delete"}


@dataclass
class Calendar:
    """The wired-up core objects for one data file."""
    config: Config
    repository: EventRepository
    schedule: ScheduleService
    backups: BackupManager


def open_calendar(config: Config, clock=None) -> Calendar:
    """Create repository, service and backup manager sharing one lock."""
    lock = RecordLock(config.lock_file)
    repository = EventRepository(config.data_file, lock=lock)
    return Calendar(
        config=config,
        repository=repository,
        schedule=ScheduleService(repository, clock=clock),
        backups=BackupManager(config.data_file, config.backup_file, lock=lock),
    )


def parse_datetime(text: str) -> datetime:
    """argparse type for date-times like '2025-10-20 14:30'."""
    for fmt in INPUT_FORMATS:
        try:
            return datetime.strptime(text.strip(), fmt)
        except ValueError:
            continue
    raise argparse.ArgumentTypeError(
        f"invalid date-time {text!r}, use YYYY-MM-DD HH:MM (e.g. 2025-10-20 14:30)"
    )


def parse_date(text: str) -> date:
    try:
        return date.fromisoformat(text.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {text!r}, use YYYY-MM-DD")


def format_event(event: Event) -> str:
    return "ID:{:<3d} | {} -> {} | {:<20s} | {}".format(
        event.id,
        event.start.strftime(PRINT_FORMAT),
        event.end.strftime("%H:%M") if event.end.date() == event.start.date() else event.end.strftime(PRINT_FORMAT),
        event.title,
        event.description,
    )


def print_events(events: list[Event], empty_message: str = "No events found.") -> None:
    if not events:
        print(empty_message)
        return
    for event in events:
        print(format_event(event))


def format_minutes(total: int) -> str:
    return f"{total // 60} hours {total % 60} minutes"


# ==================== Commands ====================

def cmd_list(cal: Calendar, args) -> int:
    result = cal.repository.load()
    print_events(result.events)
    if result.skipped_count:
        print(f"({result.skipped_count} corrupted records skipped)")
    return 0


def _report_conflicts(conflicts: list[Event]) -> None:
    for event in conflicts:
        print(f"Conflict: overlaps with event [{event.title}] (ID {event.id})")


def cmd_add(cal: Calendar, args) -> int:
    validate_interval(args.start, args.end)
    # Conflict check and write must see the same file content
    with cal.repository.locked():
        conflicts = cal.schedule.find_conflicts(args.start, args.end)
        if conflicts and not args.force:
            _report_conflicts(conflicts)
            print("Not saved. Use --force to save anyway.")
            return 1
        event = cal.repository.create(args.title, args.description, args.start, args.end)
    print(f"Event [{event.title}] created with ID {event.id}.")
    return 0


def cmd_edit(cal: Calendar, args) -> int:
    with cal.repository.locked():
        current = cal.repository.get(args.id)
        if current is None:
            print(f"Event ID {args.id} not found.")
            return 1
        start = args.start or current.start
        end = args.end or current.end
        validate_interval(start, end)
        conflicts = cal.schedule.find_conflicts(start, end, exclude_id=args.id)
        if conflicts and not args.force:
            _report_conflicts(conflicts)
            print("Not saved. Use --force to save anyway.")
            return 1
        updated = cal.schedule.replace(
            args.id, title=args.title, description=args.description, start=args.start, end=args.end
        )
    if updated is None:
        print(f"Event ID {args.id} not found.")
        return 1
    print(f"Event ID {updated.id} updated.")
    return 0


def cmd_delete(cal: Calendar, args) -> int:
    if cal.schedule.delete(args.id):
        print(f"Event ID {args.id} has been deleted.")
        return 0
    print(f"Event ID {args.id} not found.")
    return 1


def cmd_search(cal: Calendar, args) -> int:
    results = cal.schedule.search(args.keyword)
    if results:
        print(f"Found {len(results)} matches:")
    print_events(results, "No matching events found.")
    return 0


def cmd_stats(cal: Calendar, args) -> int:
    stats = cal.schedule.statistics()
    if stats.total == 0:
        print("No data available for statistics.")
        return 0
    busiest = cal.config.localization.get_day_name(stats.busiest_weekday)
    print(f"Total events:         {stats.total}")
    print(f"Upcoming events:      {stats.upcoming_count}")
    print(f"This month:           {stats.this_month_count}")
    print(f"Busiest day:          {busiest}")
    print(f"Total scheduled time: {format_minutes(stats.total_scheduled_minutes)}")
    return 0


def cmd_upcoming(cal: Calendar, args) -> int:
    hours = args.hours if args.hours is not None else cal.config.reminder_hours
    events = cal.schedule.upcoming(timedelta(hours=hours))
    if events:
        print(f"Reminder: you have {len(events)} upcoming events in the next {hours} hours")
    print_events(events, "No upcoming events.")
    return 0


def cmd_day(cal: Calendar, args) -> int:
    print_events(cal.schedule.events_on(args.date), f"No events on {args.date.isoformat()}.")
    return 0


def cmd_backup(cal: Calendar, args) -> int:
    if cal.backups.backup():
        print(f"Data backed up to {cal.config.backup_file}")
        return 0
    print(f"Nothing to back up: {cal.config.data_file} does not exist.")
    return 1


def cmd_restore(cal: Calendar, args) -> int:
    if not args.yes:
        print("Restore will overwrite current data. Re-run with --yes to continue.")
        return 1
    if cal.backups.restore():
        print(f"Data restored from {cal.config.backup_file}")
        return 0
    print(f"Restore failed: no backup at {cal.config.backup_file}")
    return 1


def cmd_export(cal: Calendar, args) -> int:
    count = export_ics(cal.repository.load_all(), args.path)
    print(f"Exported {count} events to {args.path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eventbook",
        description="Eventbook - a personal calendar kept in a plain text file"
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Path to configuration file (default: auto-detect)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List all events in date order")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("add", help="Create a new event")
    p.add_argument("title")
    p.add_argument("start", type=parse_datetime)
    p.add_argument("end", type=parse_datetime)
    p.add_argument("-d", "--description", default="")
    p.add_argument("--force", action="store_true", help="Save even if the slot is taken")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("edit", help="Change an existing event")
    p.add_argument("id", type=int)
    p.add_argument("--title")
    p.add_argument("--description")
    p.add_argument("--start", type=parse_datetime)
    p.add_argument("--end", type=parse_datetime)
    p.add_argument("--force", action="store_true", help="Save even if the slot is taken")
    p.set_defaults(func=cmd_edit)

    p = sub.add_parser("delete", help="Delete an event by ID")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("search", help="Search titles and descriptions")
    p.add_argument("keyword")
    p.set_defaults(func=cmd_search)

    p = sub.add_parser("stats", help="Show time statistics")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("upcoming", help="Events starting soon")
    p.add_argument("--hours", type=int, help="Look-ahead window (default from config)")
    p.set_defaults(func=cmd_upcoming)

    p = sub.add_parser("day", help="Events on one day")
    p.add_argument("date", type=parse_date)
    p.set_defaults(func=cmd_day)

    p = sub.add_parser("backup", help="Copy the data file to the backup file")
    p.set_defaults(func=cmd_backup)

    p = sub.add_parser("restore", help="Overwrite the data file with the backup")
    p.add_argument("--yes", action="store_true", help="Confirm overwriting current data")
    p.set_defaults(func=cmd_restore)

    p = sub.add_parser("export", help="Export all events to an .ics file")
    p.add_argument("path", type=Path)
    p.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    set_debug(args.debug)

    # Load configuration
    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("\nExample configuration:", file=sys.stderr)
        print(EXAMPLE_CONFIG, file=sys.stderr)
        return 1
    except (ValueError, OSError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    set_timezone(config.timezone)
    cal = open_calendar(config)

    try:
        if config.backup_before_changes and args.command in MODIFYING_COMMANDS:
            try:
                cal.backups.backup()
            except StorageError as e:
                warning_print("CLI", f"Automatic backup failed: {e}")
        return args.func(cal, args)
    except StorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
