# Tracc/cli.py

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError
load_dotenv()

from Tracc.config import Settings, database_path, local_timezone
from Tracc.database import LedgerStore
from Tracc.engine import TrackingEngine
from Tracc.errors import TraccError
from Tracc.formatting import (
    format_entry,
    format_error,
    format_today_total,
    format_transition,
)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(funcName)-25s | %(message)s"

log = logging.getLogger("Tracc.cli")


@dataclass
class AppContext:
    """Everything a command handler needs, built once per invocation."""
    settings: Settings
    engine: TrackingEngine
    tz: Optional[tzinfo] # None = system zone
    now: datetime


def handle_begin(args_ns, app: AppContext):
    transition = app.engine.start_period(app.now)
    print(format_transition(transition, app.tz, app.settings.datetime_format))


def handle_end(args_ns, app: AppContext):
    transition = app.engine.end_period(app.now)
    print(format_transition(transition, app.tz, app.settings.datetime_format))


def handle_show(args_ns, app: AppContext):
    for entry in app.engine.list_all():
        print(format_entry(entry, app.tz, app.settings.datetime_format))


def handle_today(args_ns, app: AppContext):
    total = app.engine.summarize_today(app.now, app.tz)
    print(format_today_total(total))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tracc",
        description="Tracc: record work periods and see how long you worked today."
    )
    subparsers = parser.add_subparsers(dest="command", title="Available Commands", required=True)

    subparsers.add_parser("begin", help="Start a new period.").set_defaults(func=handle_begin)
    subparsers.add_parser("end", help="End the running period.").set_defaults(func=handle_end)
    subparsers.add_parser("show", help="Print every entry, oldest first.").set_defaults(func=handle_show)
    subparsers.add_parser("today", help="Print the total time spent today.").set_defaults(func=handle_today)
    return parser


def main(argv: Optional[List[str]] = None, now: Optional[datetime] = None):
    try:
        settings = Settings()
    except ValidationError as e:
        print(f"Could not initialize application: {e}", file=sys.stderr)
        sys.exit(1)
    logging.basicConfig(format=LOG_FORMAT, level=settings.log_level)

    args = build_parser().parse_args(argv)

    tz = local_timezone(settings)
    # Captured once; every operation in this invocation sees the same instant.
    if now is None:
        now = datetime.now(tz) if tz is not None else datetime.now().astimezone()
    else:
        now = now.astimezone(tz)

    try:
        store = LedgerStore(database_path(settings))
    except TraccError as e:
        log.debug("Store initialisation failed", exc_info=True)
        print(f"Could not initialize application: {e}", file=sys.stderr)
        sys.exit(1)

    with store:
        app = AppContext(settings=settings, engine=TrackingEngine(store), tz=tz, now=now)
        try:
            args.func(args, app)
        except TraccError as e:
            log.debug(f"Command '{args.command}' failed", exc_info=True)
            print(format_error(e, tz, settings.datetime_format), file=sys.stderr)
            sys.exit(1)

if __name__ == "__main__":
    main()
