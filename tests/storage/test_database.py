"""Tests for the SQLite database."""

from datetime import UTC, datetime

import pytest

from tribelist.core.types import SyncSource, SyncStatus
from tribelist.domain.models import ListItem, SyncConfig, TribeList
from tribelist.storage import Database, InMemoryStorage, create_storage


class TestDatabaseCreation:
    """Tests for database initialization."""

    def test_creates_db_file(self, tmp_path) -> None:
        """Database should create SQLite file."""
        db_path = tmp_path / "nested" / "test.db"
        db = Database(db_path)
        assert db_path.exists()
        assert db.location == f"SQLite: {db_path}"
        db.close()

    def test_uses_wal_mode(self, tmp_path) -> None:
        """Database should use WAL mode for concurrency."""
        db = Database(tmp_path / "test.db")
        with db._engine.connect() as conn:
            result = conn.exec_driver_sql("PRAGMA journal_mode").fetchone()
        assert result is not None
        assert result[0].lower() == "wal"
        db.close()

    def test_data_survives_reopen(self, tmp_path) -> None:
        """Lists, items and sync fields persist across connections."""
        db_path = tmp_path / "test.db"
        db = Database(db_path)
        tribe_list = db.create_list(TribeList(name="Dinners", type="activity"))
        db.add_item(ListItem(list_id=tribe_list.id, name="Tacos", external_id="e1"))
        db.update_sync_fields(
            tribe_list.id,
            SyncConfig(
                source=SyncSource.IMPORTED,
                external_id="dinners",
                status=SyncStatus.SYNCED,
                last_sync_at=datetime(2024, 1, 1, tzinfo=UTC),
            ),
            expected_version=1,
        )
        db.close()

        reopened = Database(db_path)
        fetched = reopened.get_list(tribe_list.id)
        assert fetched.sync.status == SyncStatus.SYNCED
        assert fetched.sync.last_sync_at == datetime(2024, 1, 1, tzinfo=UTC)
        assert fetched.version == 2
        (item,) = reopened.get_items([tribe_list.id])
        assert item.external_id == "e1"
        reopened.close()


class TestCreateStorage:
    """Tests for the storage factory."""

    def test_memory(self) -> None:
        """type=memory gives in-memory storage."""
        assert isinstance(create_storage({"type": "memory"}), InMemoryStorage)

    def test_sqlite(self, tmp_path) -> None:
        """type=sqlite gives a database at db_path."""
        storage = create_storage({"type": "sqlite", "db_path": str(tmp_path / "x.db")})
        assert isinstance(storage, Database)
        storage.close()

    def test_unknown(self) -> None:
        """Unknown types are rejected."""
        with pytest.raises(ValueError, match="Unknown storage type"):
            create_storage({"type": "floppy"})
