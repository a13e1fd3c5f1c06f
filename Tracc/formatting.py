"""Human-readable rendering of entries, durations and errors."""
from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Optional

from Tracc.config import DT_FMT
from Tracc.errors import (
    AlreadyIdleError,
    AlreadyRunningError,
    CorruptedLedgerError,
    EntryOutOfOrderError,
    TraccError,
)
from Tracc.engine import Transition
from Tracc.models import Entry


def format_instant(instant: datetime, tz: Optional[tzinfo] = None, fmt: str = DT_FMT) -> str:
    return instant.astimezone(tz).strftime(fmt)


def format_entry(entry: Entry, tz: Optional[tzinfo] = None, fmt: str = DT_FMT) -> str:
    label = "BEGIN: " if entry.is_begin else "END:   "
    return label + format_instant(entry.timestamp, tz, fmt)


def format_duration(duration: timedelta) -> str:
    """H:MM, truncating to whole minutes. Hours are not padded."""
    total_minutes = int(duration.total_seconds()) // 60
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}:{minutes:02d}"


def format_today_total(duration: timedelta) -> str:
    return f"Total time spent today: {format_duration(duration)}"


def format_transition(transition: Transition, tz: Optional[tzinfo] = None, fmt: str = DT_FMT) -> str:
    previous = transition.previous
    if transition.entry.is_begin:
        if previous is None:
            return "Starting new period."
        return f"Starting new period. Last one ended at {format_instant(previous.timestamp, tz, fmt)}"
    return f"Ending period started at {format_instant(previous.timestamp, tz, fmt)}"


def format_error(err: TraccError, tz: Optional[tzinfo] = None, fmt: str = DT_FMT) -> str:
    """User-facing message for an error, with instants rendered in local time."""
    if isinstance(err, AlreadyRunningError):
        return f"Cannot start period. Current period started at {format_instant(err.started_at, tz, fmt)} is still running."
    if isinstance(err, AlreadyIdleError):
        return f"Cannot end period. Last period has already been ended at {format_instant(err.ended_at, tz, fmt)}."
    if isinstance(err, EntryOutOfOrderError):
        return (
            f"Cannot record entry at {format_instant(err.attempted_at, tz, fmt)}. "
            f"The last entry is already at {format_instant(err.last_at, tz, fmt)}."
        )
    if isinstance(err, CorruptedLedgerError):
        if err.dangling_end_at is not None:
            return f"Corrupted database. End at {format_instant(err.dangling_end_at, tz, fmt)} without previous period begin."
        if err.duplicate_begin_at is not None:
            return f"Corrupted database. Begin at {format_instant(err.duplicate_begin_at, tz, fmt)} while another period is still open."
    return str(err)
