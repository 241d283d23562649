"""
CLI for the calendar engine.

Every subcommand works against a database file holding the active
calendar, its current date/time and the world clock value.
"""

import argparse
import json
import logging
import sys

from almanac.cli.utils import open_manager, validate_database_path
from almanac.commands.calendar_commands import (
    AdvanceTimeCommand,
    ImportCalendarCommand,
    LoadPresetCommand,
    SetDateCommand,
    SetSyncEnabledCommand,
    SetTimeCommand,
)
from almanac.core import constants
from almanac.core.calendar import CalendarDateTime
from almanac.core.calendar_math import from_linear_time, normalize_date, to_linear_time
from almanac.core.engine_config import EngineSettings
from almanac.core.formatting import (
    build_month_grid,
    format_date,
    format_time,
    get_ordered_weekdays,
)
from almanac.core.logging_config import setup_logging, shutdown_logging
from almanac.core.presets import get_preset_ids

logger = logging.getLogger(__name__)


def _report(result) -> int:
    if result.success:
        print(f"✓ {result.message}")
        return 0
    print(f"✗ Error: {result.message}")
    for err in result.errors:
        if err != result.message:
            print(f"  - {err}")
    return 1


def _print_month_grid(manager) -> None:
    state = manager.state
    shape = manager.shape
    grid = build_month_grid(
        state.year,
        state.month,
        shape,
        today=state,
        weekday_offset=manager.settings.weekday_offset,
    )
    print(f"\n{shape.months[state.month].name} {state.year}")
    print(" ".join(f"{w.abbreviation[:3]:>3}" for w in get_ordered_weekdays(shape)))
    for week in grid:
        cells = []
        for cell in week:
            if cell.empty:
                cells.append("   ")
            else:
                # Today is marked with a trailing asterisk
                cells.append(f"{cell.day:>2}*" if cell.is_today else f"{cell.day:>3}")
        print(" ".join(cells).rstrip())


def init_calendar(args) -> int:
    """Create or reset a database with a preset calendar."""
    try:
        with open_manager(args.database) as manager:
            result = LoadPresetCommand(args.preset).execute(manager)
            code = _report(result)
            if code == 0:
                print(f"  Database: {args.database}")
                print(f"  Date: {format_date(manager.state, manager.shape)}")
            return code
    except Exception as e:
        logger.error(f"Failed to initialize calendar: {e}")
        if args.verbose:
            raise
        return 1


def show_calendar(args) -> int:
    """Show the active calendar and the current date/time."""
    try:
        with open_manager(args.database) as manager:
            snapshot = manager.snapshot()
            shape = manager.shape

            if args.json:
                snapshot["config"] = shape.to_dict()
                print(json.dumps(snapshot, indent=2))
                return 0

            state = manager.state
            print(f"\nCalendar: {shape.name_prefix}{shape.name}{shape.name_suffix}")
            print(f"Date: {snapshot['weekday']['name']}, {snapshot['date']}")
            print(f"Time: {snapshot['time']}")
            if snapshot["season"]:
                print(f"Season: {snapshot['season']['name']}")
            for moon in snapshot["moons"]:
                print(
                    f"Moon: {moon['name']} - {moon['phase']} "
                    f"({moon['percentIlluminated']}%)"
                )
            sync = "on" if state.sync_enabled else "off"
            print(f"World time sync: {sync}")
            print(f"Linear time: {snapshot['linearTime']}")
            _print_month_grid(manager)
            return 0
    except Exception as e:
        logger.error(f"Failed to show calendar: {e}")
        return 1


def advance_time(args) -> int:
    """Advance the calendar by an amount of a unit."""
    try:
        with open_manager(args.database) as manager:
            return _report(AdvanceTimeCommand(args.amount, args.unit).execute(manager))
    except Exception as e:
        logger.error(f"Failed to advance time: {e}")
        return 1


def set_date(args) -> int:
    """Set the current date."""
    if args.year is None and args.month is None and args.day is None:
        print("✗ Nothing to set. Use --year, --month or --day")
        return 1
    try:
        with open_manager(args.database) as manager:
            cmd = SetDateCommand(
                args.year, args.month, args.day, update_external=not args.no_sync
            )
            return _report(cmd.execute(manager))
    except Exception as e:
        logger.error(f"Failed to set date: {e}")
        return 1


def set_time(args) -> int:
    """Set the current time of day."""
    if args.hour is None and args.minute is None and args.second is None:
        print("✗ Nothing to set. Use --hour, --minute or --second")
        return 1
    try:
        with open_manager(args.database) as manager:
            cmd = SetTimeCommand(
                args.hour, args.minute, args.second, update_external=not args.no_sync
            )
            return _report(cmd.execute(manager))
    except Exception as e:
        logger.error(f"Failed to set time: {e}")
        return 1


def set_sync(args) -> int:
    """Turn world time sync on or off."""
    try:
        with open_manager(args.database) as manager:
            return _report(SetSyncEnabledCommand(args.state == "on").execute(manager))
    except Exception as e:
        logger.error(f"Failed to change sync: {e}")
        return 1


def convert(args) -> int:
    """Convert between linear time and calendar dates."""
    try:
        with open_manager(args.database) as manager:
            shape = manager.shape
            if args.seconds is not None:
                date = from_linear_time(args.seconds, shape)
                weekday = shape.weekdays[date.weekday].name
                print(
                    f"{weekday}, {format_date(date, shape)} "
                    f"{format_time(date.hour, date.minute, date.second)}"
                )
                return 0

            if args.year is None:
                print("✗ Provide --seconds, or --year with optional date/time fields")
                return 1
            date = normalize_date(
                CalendarDateTime(
                    year=args.year,
                    month=args.month,
                    day=args.day,
                    hour=args.hour,
                    minute=args.minute,
                    second=args.second,
                ),
                shape,
            )
            print(to_linear_time(date, shape))
            return 0
    except Exception as e:
        logger.error(f"Failed to convert: {e}")
        return 1


def import_calendar(args) -> int:
    """Import a calendar from a native or foreign JSON export."""
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"✗ Could not read {args.file}: {e}")
        return 1

    try:
        with open_manager(args.database) as manager:
            cmd = ImportCalendarCommand(data, import_state=not args.no_state)
            return _report(cmd.execute(manager))
    except Exception as e:
        logger.error(f"Failed to import calendar: {e}")
        return 1


def export_calendar(args) -> int:
    """Export the active calendar as JSON."""
    try:
        with open_manager(args.database) as manager:
            document = manager.export_document(include_state=args.include_state)
    except Exception as e:
        logger.error(f"Failed to export calendar: {e}")
        return 1

    text = json.dumps(document, indent=2)
    if args.file == "-":
        print(text)
        return 0
    try:
        with open(args.file, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        print(f"✗ Could not write {args.file}: {e}")
        return 1
    print(f"✓ Exported calendar to {args.file}")
    return 0


def serve(args) -> int:
    """Serve the HTTP API."""
    import uvicorn

    from almanac.webserver.server import create_app

    settings = EngineSettings.from_env()
    settings.db_path = args.database
    if args.host:
        settings.host = args.host
    if args.port:
        settings.port = args.port

    setup_logging(
        debug_mode=settings.debug_logging or args.verbose,
        log_to_console=settings.log_to_console,
    )
    app = create_app(settings)
    logger.info(f"Serving calendar API on {settings.host}:{settings.port}")
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    finally:
        shutdown_logging()
    return 0


def main():
    parser = argparse.ArgumentParser(description="Manage an Almanac calendar")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    # Init
    init_p = subparsers.add_parser("init", help="Create or reset with a preset")
    init_p.add_argument("--database", "-d", required=True)
    init_p.add_argument(
        "--preset", default=constants.DEFAULT_PRESET_ID, choices=get_preset_ids()
    )
    init_p.set_defaults(func=init_calendar)

    # Show
    show_p = subparsers.add_parser("show", help="Show the current date and time")
    show_p.add_argument("--database", "-d", required=True)
    show_p.add_argument("--json", action="store_true")
    show_p.set_defaults(func=show_calendar)

    # Advance
    adv_p = subparsers.add_parser("advance", help="Advance the calendar")
    adv_p.add_argument("--database", "-d", required=True)
    adv_p.add_argument("amount", type=int, help="Number of units (may be negative)")
    adv_p.add_argument("unit", choices=constants.ADVANCE_UNITS)
    adv_p.set_defaults(func=advance_time)

    # Set date
    date_p = subparsers.add_parser("set-date", help="Set the current date")
    date_p.add_argument("--database", "-d", required=True)
    date_p.add_argument("--year", type=int)
    date_p.add_argument("--month", type=int, help="Month index (0-based)")
    date_p.add_argument("--day", type=int)
    date_p.add_argument(
        "--no-sync", action="store_true", help="Leave the world clock untouched"
    )
    date_p.set_defaults(func=set_date)

    # Set time
    time_p = subparsers.add_parser("set-time", help="Set the current time of day")
    time_p.add_argument("--database", "-d", required=True)
    time_p.add_argument("--hour", type=int)
    time_p.add_argument("--minute", type=int)
    time_p.add_argument("--second", type=int)
    time_p.add_argument(
        "--no-sync", action="store_true", help="Leave the world clock untouched"
    )
    time_p.set_defaults(func=set_time)

    # Sync
    sync_p = subparsers.add_parser("sync", help="Turn world time sync on or off")
    sync_p.add_argument("--database", "-d", required=True)
    sync_p.add_argument("state", choices=["on", "off"])
    sync_p.set_defaults(func=set_sync)

    # Convert
    conv_p = subparsers.add_parser(
        "convert", help="Convert between linear time and dates"
    )
    conv_p.add_argument("--database", "-d", required=True)
    conv_p.add_argument("--seconds", type=float, help="Linear time to convert")
    conv_p.add_argument("--year", type=int)
    conv_p.add_argument("--month", type=int, default=0)
    conv_p.add_argument("--day", type=int, default=1)
    conv_p.add_argument("--hour", type=int, default=0)
    conv_p.add_argument("--minute", type=int, default=0)
    conv_p.add_argument("--second", type=int, default=0)
    conv_p.set_defaults(func=convert)

    # Import
    imp_p = subparsers.add_parser("import", help="Import a calendar from JSON")
    imp_p.add_argument("--database", "-d", required=True)
    imp_p.add_argument("file")
    imp_p.add_argument(
        "--no-state", action="store_true", help="Ignore the date in the file"
    )
    imp_p.set_defaults(func=import_calendar)

    # Export
    exp_p = subparsers.add_parser("export", help="Export the calendar to JSON")
    exp_p.add_argument("--database", "-d", required=True)
    exp_p.add_argument("file", help="Output path, or - for stdout")
    exp_p.add_argument("--include-state", action="store_true")
    exp_p.set_defaults(func=export_calendar)

    # Serve
    serve_p = subparsers.add_parser("serve", help="Serve the HTTP API")
    serve_p.add_argument("--database", "-d", required=True)
    serve_p.add_argument("--host")
    serve_p.add_argument("--port", type=int)
    serve_p.set_defaults(func=serve)

    args = parser.parse_args()

    if args.verbose and args.command != "serve":
        setup_logging(debug_mode=True, log_dir=None)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if not validate_database_path(
        args.database, allow_create=args.command in ("init", "serve")
    ):
        print(f"✗ Database file not found: {args.database}")
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
