# DuckDB-backed ledger store for Tracc

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

import duckdb

from Tracc.errors import AmbiguousLedgerStateError, StoreError, StoreUnavailable
from Tracc.models import Entry, EntryKind, entry_from_row, from_epoch_seconds, to_epoch_seconds

log = logging.getLogger(__name__)

TABLE_NAME = "entries"

SCHEMA_QUERIES = [
    "CREATE SEQUENCE IF NOT EXISTS entries_id_seq START 1;",
    f'''
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        id BIGINT PRIMARY KEY DEFAULT nextval('entries_id_seq'),
        recorded_at BIGINT NOT NULL, -- seconds since the epoch
        kind INTEGER NOT NULL        -- 0 = Begin, 1 = End
    );
    ''',
    f'CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_recorded_at ON {TABLE_NAME}(recorded_at);',
]

COLUMNS = "id, recorded_at, kind"


class LedgerStore:
    """
    Append-only ledger of Begin/End entries.

    The store knows nothing about alternation; it inserts whatever it is
    given and answers ordered queries. One connection is held for the
    lifetime of the object; use it as a context manager to release it.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        try:
            self.conn = duckdb.connect(self.db_path)
        except duckdb.Error as e:
            raise StoreUnavailable(f"Could not open database connection: {e}") from e
        try:
            self.init_schema()
        except duckdb.Error as e:
            self.conn.close()
            raise StoreUnavailable(f"Could not create {TABLE_NAME} table: {e}") from e
        log.debug(f"Ledger store opened at {self.db_path}")

    def init_schema(self) -> None:
        for query in SCHEMA_QUERIES:
            self.conn.execute(query)

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "LedgerStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- Writes ---

    def insert(self, timestamp: datetime, kind: EntryKind) -> int:
        """Append one entry and return the id the store assigned to it."""
        try:
            row = self.conn.execute(
                f"INSERT INTO {TABLE_NAME} (recorded_at, kind) VALUES (?, ?) RETURNING id",
                [to_epoch_seconds(timestamp), int(kind)],
            ).fetchone()
        except duckdb.Error as e:
            raise StoreError(f"Could not insert new {kind.name.lower()} entry: {e}") from e
        if row is None:
            raise StoreError(f"Insert of {kind.name.lower()} entry returned no id.")
        log.debug(f"Inserted {kind.name} entry {row[0]} at {timestamp.isoformat()}")
        return int(row[0])

    # --- Reads ---

    def most_recent(self) -> Optional[Entry]:
        """
        The entry with the greatest timestamp, or None for an empty ledger.

        Raises AmbiguousLedgerStateError when several entries share that
        timestamp.
        """
        rows = self._fetch(
            f"SELECT {COLUMNS} FROM {TABLE_NAME} "
            f"WHERE recorded_at = (SELECT MAX(recorded_at) FROM {TABLE_NAME}) ORDER BY id",
            [],
            "Could not get last entry",
        )
        if not rows:
            return None
        if len(rows) > 1:
            raise AmbiguousLedgerStateError(from_epoch_seconds(rows[0][1]), len(rows))
        return entry_from_row(rows[0])

    def range(self, start: datetime, end: datetime) -> List[Entry]:
        """Entries with ``start <= timestamp < end``, ascending."""
        rows = self._fetch(
            f"SELECT {COLUMNS} FROM {TABLE_NAME} "
            "WHERE recorded_at >= ? AND recorded_at < ? ORDER BY recorded_at, id",
            [to_epoch_seconds(start), to_epoch_seconds(end)],
            "Could not query entries",
        )
        return [entry_from_row(row) for row in rows]

    def all(self) -> List[Entry]:
        rows = self._fetch(
            f"SELECT {COLUMNS} FROM {TABLE_NAME} ORDER BY recorded_at, id",
            [],
            "Could not query entries",
        )
        return [entry_from_row(row) for row in rows]

    def _fetch(self, query: str, params: list, error_context: str) -> list:
        try:
            return self.conn.execute(query, params).fetchall()
        except duckdb.Error as e:
            raise StoreError(f"{error_context}: {e}") from e
