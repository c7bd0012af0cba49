"""Command-line entry for eventcal.

Developer tool for checking what the calendar and homepage will show for a
set of stored event rows, without running the web application.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from dateutil import parser as date_parser

from . import _init_logging
from .calendar.civil_time import business_date, parse_civil_date, parse_civil_string
from .calendar.expander import ExpanderConfig, expand_all
from .calendar.models import EventDefinition
from .calendar.recurrence import RecurrenceRule, build_recurrence_rule
from .config_manager import ConfigManager
from .core.timezone_utils import normalize_timezone_name, now_utc
from .domain.records import load_event_records, to_definitions
from .domain.whats_on import build_whats_on
from .exceptions import EventCalError
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the eventcal CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="eventcal",
        description="Expand recurring restaurant events in the business timezone",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m eventcal expand --events events.json --from 2026-01-01 --to 2026-01-31
  python -m eventcal expand --start 2026-01-07T19:00 --end 2026-01-07T21:00 --weekly WE --until 2026-01-28
  python -m eventcal today --events events.json --now 2026-03-01T23:30:00-07:00
        """,
    )
    parser.add_argument("--timezone", help="Business timezone (default: EVENTCAL_BUSINESS_TIMEZONE or America/Denver)")
    parser.add_argument("--env-file", type=Path, help="Path to .env file (default: ./.env)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    expand_parser = subparsers.add_parser("expand", help="Print occurrences in a date window as JSON lines")
    source = expand_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--events", type=Path, help="JSON file with a list of event rows")
    source.add_argument("--start", metavar="YYYY-MM-DDTHH:mm", help="Start of a single event given inline")
    expand_parser.add_argument("--end", metavar="YYYY-MM-DDTHH:mm", help="End of the inline event")
    expand_parser.add_argument("--all-day", action="store_true", help="Inline event is all-day")
    expand_parser.add_argument("--title", default="", help="Title of the inline event")
    pattern = expand_parser.add_mutually_exclusive_group()
    pattern.add_argument("--weekly", metavar="MO,WE", help="Repeat weekly on these weekdays")
    pattern.add_argument("--monthly", metavar="N", help="Repeat monthly on this day of the month")
    expand_parser.add_argument("--until", metavar="YYYY-MM-DD", help="Last date of the series (inclusive)")
    expand_parser.add_argument(
        "--except", dest="exceptions", action="append", default=[], metavar="YYYY-MM-DD",
        help="Skip this date (repeatable)",
    )
    expand_parser.add_argument("--from", dest="window_start", metavar="YYYY-MM-DD", help="First date (default: today)")
    expand_parser.add_argument("--to", dest="window_end", metavar="YYYY-MM-DD", help="Last date (default: from + lookahead)")

    today_parser = subparsers.add_parser("today", help="Print the homepage what's-on summary as JSON")
    today_parser.add_argument("--events", type=Path, required=True, help="JSON file with a list of event rows")
    today_parser.add_argument("--now", help="ISO 8601 instant to evaluate at (default: current time)")
    today_parser.add_argument("--limit", type=int, help="Maximum upcoming occurrences")
    today_parser.add_argument("--hide-ended", action="store_true", help="Drop today's occurrences that are over")

    return parser


def _resolve_timezone(cli_value: Optional[str], cfg: dict) -> str:
    if cli_value:
        normalized = normalize_timezone_name(cli_value)
        if normalized is None:
            raise EventCalError(f"Unknown timezone: {cli_value!r}", field="timezone")
        return normalized
    return cfg["business_timezone"]


def _inline_definition(
    args: argparse.Namespace, tz_name: str
) -> tuple[EventDefinition, RecurrenceRule]:
    start = parse_civil_string(args.start, tz_name)
    end = parse_civil_string(args.end, tz_name) if args.end else None
    event = EventDefinition(
        id="cli", title=args.title, start_civil=start, end_civil=end, is_all_day=args.all_day
    )

    if args.weekly:
        frequency = "weekly"
    elif args.monthly:
        frequency = "monthly"
    else:
        frequency = "none"
    weekdays = [code for code in (args.weekly or "").split(",") if code.strip()]
    rule = build_recurrence_rule(
        frequency,
        weekdays=weekdays,
        day_of_month=args.monthly,
        until=args.until,
        exception_dates=args.exceptions,
        start_date=start.date,
    )
    return event, rule


def _run_expand(args: argparse.Namespace, cfg: dict, tz_name: str) -> int:
    today = business_date(now_utc(), tz_name)
    window_start: date = (
        parse_civil_date(args.window_start, field="from") if args.window_start else today
    )
    window_end: date = (
        parse_civil_date(args.window_end, field="to")
        if args.window_end
        else window_start + timedelta(days=cfg["lookahead_days"])
    )

    if args.events:
        items = to_definitions(load_event_records(args.events), tz_name)
    else:
        items = [_inline_definition(args, tz_name)]
    occurrences = expand_all(items, window_start, window_end, ExpanderConfig.from_settings(cfg))
    for occurrence in occurrences:
        print(occurrence.model_dump_json())
    logger.info("Printed %d occurrences for %s..%s", len(occurrences), window_start, window_end)
    return 0


def _run_today(args: argparse.Namespace, cfg: dict, tz_name: str) -> int:
    if args.now:
        try:
            now = date_parser.isoparse(args.now)
        except ValueError as e:
            raise EventCalError(f"Invalid --now value {args.now!r}: {e}", field="now") from e
    else:
        now = now_utc()

    items = to_definitions(load_event_records(args.events), tz_name)
    summary = build_whats_on(
        items,
        now,
        tz_name,
        lookahead_days=cfg["lookahead_days"],
        upcoming_limit=args.limit if args.limit is not None else cfg["upcoming_limit"],
        hide_ended=args.hide_ended,
        config=ExpanderConfig.from_settings(cfg),
    )
    print(json.dumps(summary.model_dump(mode="json"), indent=2))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Run the eventcal CLI.

    Returns:
        Process exit status: 0 on success, 2 on invalid input
    """
    parser = _create_parser()
    args = parser.parse_args(argv)

    manager = ConfigManager(args.env_file) if args.env_file else ConfigManager()
    cfg = manager.load_full_config()

    _init_logging(cfg.get("log_level"))
    configure_logging(debug_mode=args.debug)

    try:
        tz_name = _resolve_timezone(args.timezone, cfg)
        if args.command == "expand":
            return _run_expand(args, cfg, tz_name)
        return _run_today(args, cfg, tz_name)
    except EventCalError as e:
        field = f" [{e.field}]" if e.field else ""
        print(f"error{field}: {e.message}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
