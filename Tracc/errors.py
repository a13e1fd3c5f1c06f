"""
Exception hierarchy for Tracc.

Every failure the engine or the store can report is a ``TraccError``; the
CLI catches that base class once, prints the message and exits non-zero.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional


class TraccError(Exception):
    """Base class for all Tracc failures."""


# --- Store ---

class StoreError(TraccError):
    """A query or write against the ledger store failed."""


class StoreUnavailable(StoreError):
    """The store could not be opened, created or migrated."""


# --- User protocol violations (no mutation performed) ---

class PeriodStateError(TraccError):
    """The requested transition is not allowed in the current state."""


class AlreadyRunningError(PeriodStateError):
    def __init__(self, started_at: datetime, message: Optional[str] = None):
        self.started_at = started_at
        super().__init__(message or f"Current period started at {started_at.isoformat()} is still running.")


class EntryOutOfOrderError(PeriodStateError):
    """
    ``now`` is not strictly after the last entry, at second resolution.

    Recording it would leave two entries competing for "most recent".
    """

    def __init__(self, attempted_at: datetime, last_at: datetime):
        self.attempted_at = attempted_at
        self.last_at = last_at
        super().__init__(
            f"Cannot record entry at {attempted_at.isoformat()}; the last entry is at {last_at.isoformat()}."
        )


class AlreadyIdleError(PeriodStateError):
    def __init__(self, ended_at: datetime, message: Optional[str] = None):
        self.ended_at = ended_at
        super().__init__(message or f"Last period has already been ended at {ended_at.isoformat()}.")


class NoPeriodToEndError(PeriodStateError):
    def __init__(self, message: str = "Cannot insert end entry as first entry"):
        super().__init__(message)


# --- Ledger integrity (fatal for the current operation) ---

class LedgerIntegrityError(TraccError):
    """The stored ledger violates one of its invariants. Never auto-repaired."""


class AmbiguousLedgerStateError(LedgerIntegrityError):
    def __init__(self, timestamp: datetime, count: int):
        self.timestamp = timestamp
        self.count = count
        super().__init__(
            f"{count} entries share the most recent timestamp {timestamp.isoformat()}. "
            "Refusing to pick one."
        )


class CorruptedLedgerError(LedgerIntegrityError):
    """
    Alternation violated inside a summarized window, or the aggregated
    duration is out of bounds.

    ``dangling_end_at`` is set when an End was found with no open Begin,
    ``duplicate_begin_at`` when a second Begin arrived while one was open.
    """

    def __init__(
        self,
        message: str,
        dangling_end_at: Optional[datetime] = None,
        duplicate_begin_at: Optional[datetime] = None,
    ):
        self.dangling_end_at = dangling_end_at
        self.duplicate_begin_at = duplicate_begin_at
        super().__init__(message)


class UnknownEntryKindError(LedgerIntegrityError):
    def __init__(self, kind: object, entry_id: Optional[int] = None):
        self.kind = kind
        self.entry_id = entry_id
        if entry_id is not None:
            msg = f"Corrupted database contents: Found entry kind {kind} at id {entry_id}. Expected 0 (Begin) or 1 (End)."
        else:
            msg = f"Corrupted database contents: Found entry kind {kind}. Expected 0 (Begin) or 1 (End)."
        super().__init__(msg)
