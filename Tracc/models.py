from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from Tracc.errors import UnknownEntryKindError


class EntryKind(enum.IntEnum):
    """Discriminant stored in the ``kind`` column."""
    BEGIN = 0
    END = 1


class Entry(BaseModel):
    """
    One immutable ledger fact: an instant tagged Begin or End.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Store-assigned sequence id")
    timestamp: datetime = Field(..., description="UTC instant, whole seconds")
    kind: EntryKind

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            raise ValueError("Entry timestamps must be timezone-aware.")
        return value.astimezone(timezone.utc).replace(microsecond=0)

    @property
    def is_begin(self) -> bool:
        return self.kind is EntryKind.BEGIN

    @property
    def is_end(self) -> bool:
        return self.kind is EntryKind.END


def to_epoch_seconds(instant: datetime) -> int:
    """Truncate an aware datetime to whole seconds since the epoch."""
    if instant.tzinfo is None:
        raise ValueError("Naive datetimes are ambiguous; pass an aware datetime.")
    return int(instant.timestamp())


def from_epoch_seconds(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def decode_kind(raw: Any, entry_id: Optional[int] = None) -> EntryKind:
    # bool is an int subclass; a stored True/False is not a valid discriminant
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise UnknownEntryKindError(raw, entry_id)
    try:
        return EntryKind(raw)
    except ValueError:
        raise UnknownEntryKindError(raw, entry_id) from None


def entry_from_row(row: Sequence[Any]) -> Entry:
    """Decode an ``(id, recorded_at, kind)`` row into an ``Entry``."""
    entry_id, recorded_at, raw_kind = row
    kind = decode_kind(raw_kind, entry_id)
    return Entry(id=entry_id, timestamp=from_epoch_seconds(recorded_at), kind=kind)
