"""
Tracking engine: the Begin/End state machine and the time aggregation.

The engine holds no state of its own. Whether a period is running is
re-derived from the most recent ledger entry on every call, and the
current instant is always passed in by the caller.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import List, Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict

from Tracc.errors import (
    AlreadyIdleError,
    AlreadyRunningError,
    CorruptedLedgerError,
    EntryOutOfOrderError,
    NoPeriodToEndError,
)
from Tracc.models import Entry, EntryKind, to_epoch_seconds

log = logging.getLogger(__name__)


class LedgerBackend(Protocol):
    def insert(self, timestamp: datetime, kind: EntryKind) -> int: ...
    def most_recent(self) -> Optional[Entry]: ...
    def range(self, start: datetime, end: datetime) -> List[Entry]: ...
    def all(self) -> List[Entry]: ...


class Transition(BaseModel):
    """Result of a successful start or end: the new entry and the one it follows."""
    model_config = ConfigDict(frozen=True)

    entry: Entry
    previous: Optional[Entry] = None


def day_bounds(now: datetime, tz: Optional[tzinfo] = None) -> Tuple[datetime, datetime]:
    """
    Local midnight of the day ``now`` falls on, and the following midnight.

    ``tz`` None means the system zone. Each midnight is then resolved on its
    own so it gets the offset in force at that instant, not the one of ``now``.
    """
    if now.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    if tz is None:
        midnight = now.astimezone().replace(tzinfo=None, hour=0, minute=0, second=0, microsecond=0)
        return midnight.astimezone(), (midnight + timedelta(days=1)).astimezone()
    start = now.astimezone(tz).replace(hour=0, minute=0, second=0, microsecond=0)
    # Wall-clock arithmetic on the same tzinfo: lands on the next local midnight across DST changes.
    return start, start + timedelta(days=1)


def start_of_local_day(now: datetime, tz: Optional[tzinfo] = None) -> datetime:
    return day_bounds(now, tz)[0]


class TrackingEngine:
    def __init__(self, store: LedgerBackend):
        self.store = store

    # --- Transitions ---

    def start_period(self, now: datetime) -> Transition:
        last = self.store.most_recent()
        if last is not None and last.is_begin:
            raise AlreadyRunningError(last.timestamp)
        return self._append(now, EntryKind.BEGIN, last)

    def end_period(self, now: datetime) -> Transition:
        last = self.store.most_recent()
        if last is None:
            raise NoPeriodToEndError()
        if last.is_end:
            raise AlreadyIdleError(last.timestamp)
        return self._append(now, EntryKind.END, last)

    def _append(self, now: datetime, kind: EntryKind, previous: Optional[Entry]) -> Transition:
        if previous is not None and to_epoch_seconds(now) <= to_epoch_seconds(previous.timestamp):
            raise EntryOutOfOrderError(now, previous.timestamp)
        entry_id = self.store.insert(now, kind)
        entry = Entry(id=entry_id, timestamp=now, kind=kind)
        log.info(f"Recorded {kind.name} entry {entry_id} at {entry.timestamp.isoformat()}")
        return Transition(entry=entry, previous=previous)

    # --- Reads ---

    def list_all(self) -> List[Entry]:
        return self.store.all()

    def summarize_range(self, now: datetime, start: datetime, end: datetime) -> timedelta:
        """
        Total work time between ``start`` (inclusive) and ``end`` (exclusive).

        A period still open at the end of the window counts up to ``now``,
        or up to ``end`` if ``now`` lies beyond the window. Alternation
        violations inside the window raise CorruptedLedgerError.
        """
        if end <= start:
            raise ValueError(f"Empty summary range: {start.isoformat()} .. {end.isoformat()}")
        now_utc = now.astimezone(timezone.utc)
        start_utc = start.astimezone(timezone.utc)
        end_utc = end.astimezone(timezone.utc)

        accumulated = timedelta(0)
        open_begin: Optional[datetime] = None
        entries = self.store.range(start, end)

        for entry in entries:
            if entry.is_begin:
                if open_begin is not None:
                    raise CorruptedLedgerError(
                        f"Corrupted database. Begin at {entry.timestamp.isoformat()} while the "
                        f"period started at {open_begin.isoformat()} is still open.",
                        duplicate_begin_at=entry.timestamp,
                    )
                open_begin = entry.timestamp
            else:
                if open_begin is None:
                    raise CorruptedLedgerError(
                        f"Corrupted database. End at {entry.timestamp.isoformat()} without previous period begin.",
                        dangling_end_at=entry.timestamp,
                    )
                accumulated += entry.timestamp - open_begin
                open_begin = None

        if open_begin is not None:
            accumulated += min(now_utc, end_utc) - open_begin

        span = end_utc - start_utc
        if accumulated < timedelta(0) or accumulated > span:
            raise CorruptedLedgerError(
                f"Error with timedelta calculation. {accumulated} is outside 0..{span}; "
                "this must be a database corruption issue."
            )
        log.debug(f"Summarized {len(entries)} entries between {start.isoformat()} and {end.isoformat()}: {accumulated}")
        return accumulated

    def summarize_today(self, now: datetime, tz: Optional[tzinfo] = None) -> timedelta:
        start, end = day_bounds(now, tz)
        return self.summarize_range(now, start, end)
