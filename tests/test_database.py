import pytest
import duckdb
from datetime import datetime, timezone

from Tracc.database import LedgerStore, TABLE_NAME
from Tracc.errors import AmbiguousLedgerStateError, StoreUnavailable, UnknownEntryKindError
from Tracc.models import EntryKind


@pytest.fixture
def store(tmp_path):
    with LedgerStore(tmp_path / "tracc.duckdb") as st:
        yield st


def at(hour, minute=0, second=0, microsecond=0):
    return datetime(2025, 6, 12, hour, minute, second, microsecond, tzinfo=timezone.utc)


def test_schema_creation(tmp_path):
    db_path = tmp_path / "tracc.duckdb"
    LedgerStore(db_path).close()
    assert db_path.exists()
    with duckdb.connect(str(db_path)) as conn:
        tables = set(row[0] for row in conn.execute("SHOW TABLES").fetchall())
        assert TABLE_NAME in tables
        columns = set(row[0] for row in conn.execute(f"DESCRIBE {TABLE_NAME}").fetchall())
        assert columns == {"id", "recorded_at", "kind"}


def test_reopen_keeps_entries(tmp_path):
    db_path = tmp_path / "tracc.duckdb"
    with LedgerStore(db_path) as st:
        st.insert(at(9), EntryKind.BEGIN)
    with LedgerStore(db_path) as st:
        entries = st.all()
    assert [e.kind for e in entries] == [EntryKind.BEGIN]


def test_insert_assigns_increasing_ids(store):
    first = store.insert(at(9), EntryKind.BEGIN)
    second = store.insert(at(10), EntryKind.END)
    assert second > first


def test_round_trip_truncates_to_seconds(store):
    store.insert(at(9, 15, 30, 999_999), EntryKind.BEGIN)
    (entry,) = store.all()
    assert entry.kind is EntryKind.BEGIN
    assert entry.timestamp == at(9, 15, 30)
    assert entry.timestamp.tzinfo is not None


def test_most_recent_empty(store):
    assert store.most_recent() is None


def test_most_recent_uses_timestamp_not_insert_order(store):
    store.insert(at(12), EntryKind.END)
    store.insert(at(9), EntryKind.BEGIN)
    last = store.most_recent()
    assert last.kind is EntryKind.END
    assert last.timestamp == at(12)


def test_most_recent_ambiguous(store):
    store.insert(at(9), EntryKind.BEGIN)
    store.insert(at(9), EntryKind.END)
    with pytest.raises(AmbiguousLedgerStateError) as excinfo:
        store.most_recent()
    assert excinfo.value.count == 2
    assert excinfo.value.timestamp == at(9)


def test_range_is_half_open_and_sorted(store):
    store.insert(at(13), EntryKind.BEGIN)
    store.insert(at(8), EntryKind.BEGIN)
    store.insert(at(12), EntryKind.END)
    store.insert(at(9), EntryKind.END)
    entries = store.range(at(8), at(13))
    assert [e.timestamp for e in entries] == [at(8), at(9), at(12)]


def test_unknown_kind_reports_id(store):
    store.conn.execute(f"INSERT INTO {TABLE_NAME} (recorded_at, kind) VALUES (?, 7)", [1_750_000_000])
    with pytest.raises(UnknownEntryKindError) as excinfo:
        store.all()
    assert excinfo.value.kind == 7
    assert excinfo.value.entry_id is not None
    assert "Found entry kind 7 at id" in str(excinfo.value)


def test_open_directory_as_database_fails(tmp_path):
    with pytest.raises(StoreUnavailable):
        LedgerStore(tmp_path)
