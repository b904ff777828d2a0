"""Storage database using SQLAlchemy with SQLite.

This module provides:
- List, item and conflict persistence
- Version compare-and-swap for sync fields
- Atomic item statistics increments
- Compare-and-set conflict resolution
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, select, update
from sqlalchemy.orm import Session

from tribelist.core.errors import (
    ConcurrentModificationError,
    ConflictAlreadyResolvedError,
    ConflictNotFoundError,
    ItemNotFoundError,
    ListNotFoundError,
)
from tribelist.domain.models import ListItem, SyncConfig, SyncConflict, TribeList, utcnow
from tribelist.storage.base import ListStorage
from tribelist.storage.models import Base, ConflictRecord, ItemRecord, ListRecord

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def record_to_list(record: ListRecord) -> TribeList:
    """Convert ListRecord to a detached TribeList."""
    return TribeList(
        id=record.id,
        type=record.type,
        name=record.name,
        description=record.description,
        visibility=record.visibility,
        default_weight=record.default_weight,
        max_items=record.max_items,
        cooldown_days=record.cooldown_days,
        sync=SyncConfig(
            source=record.sync_source,
            external_id=record.sync_external_id,
            status=record.sync_status,
            last_sync_at=record.last_sync_at,
        ),
        version=record.version,
        created_at=record.created_at,
        updated_at=record.updated_at,
        deleted_at=record.deleted_at,
    )


def record_to_item(record: ItemRecord) -> ListItem:
    """Convert ItemRecord to a detached ListItem."""
    return ListItem(
        id=record.id,
        list_id=record.list_id,
        name=record.name,
        description=record.description,
        weight=record.weight,
        available=record.available,
        seasonal=record.seasonal,
        start_date=record.start_date,
        end_date=record.end_date,
        cooldown=record.cooldown,
        last_chosen=record.last_chosen,
        chosen_count=record.chosen_count,
        last_used=record.last_used,
        use_count=record.use_count,
        latitude=record.latitude,
        longitude=record.longitude,
        address=record.address,
        external_id=record.external_id,
        metadata=dict(record.item_metadata or {}),
        created_at=record.created_at,
        updated_at=record.updated_at,
        deleted_at=record.deleted_at,
    )


def record_to_conflict(record: ConflictRecord) -> SyncConflict:
    """Convert ConflictRecord to a detached SyncConflict."""
    return SyncConflict(
        id=record.id,
        list_id=record.list_id,
        item_id=record.item_id,
        type=record.type,
        local_data=record.local_data,
        remote_data=record.remote_data,
        resolution=record.resolution,
        created_at=record.created_at,
        resolved_at=record.resolved_at,
    )


def _item_columns(item: ListItem) -> dict[str, object]:
    """Editable item columns (statistics excluded)."""
    return {
        "name": item.name,
        "description": item.description,
        "weight": item.weight,
        "available": item.available,
        "seasonal": item.seasonal,
        "start_date": item.start_date,
        "end_date": item.end_date,
        "cooldown": item.cooldown,
        "latitude": item.latitude,
        "longitude": item.longitude,
        "address": item.address,
        "external_id": item.external_id,
        "item_metadata": dict(item.metadata),
    }


class Database(ListStorage):
    """SQLAlchemy database for lists, items and conflicts.

    Uses SQLite with WAL mode for better concurrency with multiple readers.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Initialize the database.

        Args:
            db_path: Path to the SQLite database file.
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # check_same_thread=False for multi-threaded access
        self._engine: Engine = create_engine(
            f"sqlite:///{self._db_path}",
            connect_args={"check_same_thread": False},
            echo=False,
        )

        with self._engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            conn.exec_driver_sql("PRAGMA foreign_keys=ON")

        Base.metadata.create_all(self._engine)

    @property
    def location(self) -> str:
        return f"SQLite: {self._db_path}"

    def close(self) -> None:
        """Close the database connection."""
        self._engine.dispose()

    def _session(self) -> Session:
        """Create a new database session."""
        return Session(self._engine)

    @staticmethod
    def _live_list(session: Session, list_id: str) -> ListRecord:
        stmt = select(ListRecord).where(
            ListRecord.id == list_id, ListRecord.deleted_at.is_(None)
        )
        record = session.execute(stmt).scalar_one_or_none()
        if record is None:
            raise ListNotFoundError(f"List not found: {list_id}")
        return record

    @staticmethod
    def _live_item(session: Session, item_id: str) -> ItemRecord:
        stmt = select(ItemRecord).where(
            ItemRecord.id == item_id, ItemRecord.deleted_at.is_(None)
        )
        record = session.execute(stmt).scalar_one_or_none()
        if record is None:
            raise ItemNotFoundError(f"Item not found: {item_id}")
        return record

    # === List operations ===

    def create_list(self, tribe_list: TribeList) -> TribeList:
        tribe_list.validate()
        with self._session() as session:
            record = ListRecord(
                id=tribe_list.id,
                type=tribe_list.type.value,
                name=tribe_list.name,
                description=tribe_list.description,
                visibility=tribe_list.visibility.value,
                default_weight=tribe_list.default_weight,
                max_items=tribe_list.max_items,
                cooldown_days=tribe_list.cooldown_days,
                sync_source=tribe_list.sync.source.value,
                sync_external_id=tribe_list.sync.external_id,
                sync_status=tribe_list.sync.status.value,
                last_sync_at=tribe_list.sync.last_sync_at,
                version=tribe_list.version,
                created_at=tribe_list.created_at,
                updated_at=tribe_list.updated_at,
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            logger.debug("Created list %s (%s)", record.id, record.name)
            return record_to_list(record)

    def get_list(self, list_id: str) -> TribeList:
        with self._session() as session:
            return record_to_list(self._live_list(session, list_id))

    def list_lists(self) -> list[TribeList]:
        with self._session() as session:
            stmt = (
                select(ListRecord)
                .where(ListRecord.deleted_at.is_(None))
                .order_by(ListRecord.seq)
            )
            return [record_to_list(r) for r in session.execute(stmt).scalars().all()]

    def delete_list(self, list_id: str, at: datetime) -> None:
        with self._session() as session:
            record = self._live_list(session, list_id)
            record.deleted_at = at
            record.updated_at = at
            session.execute(
                update(ItemRecord)
                .where(ItemRecord.list_id == list_id, ItemRecord.deleted_at.is_(None))
                .values(deleted_at=at, updated_at=at)
            )
            session.commit()

    def update_sync_fields(
        self,
        list_id: str,
        config: SyncConfig,
        expected_version: int,
    ) -> TribeList:
        with self._session() as session:
            result = session.execute(
                update(ListRecord)
                .where(
                    ListRecord.id == list_id,
                    ListRecord.deleted_at.is_(None),
                    ListRecord.version == expected_version,
                )
                .values(
                    sync_source=config.source.value,
                    sync_external_id=config.external_id,
                    sync_status=config.status.value,
                    last_sync_at=config.last_sync_at,
                    version=ListRecord.version + 1,
                    updated_at=utcnow(),
                )
            )
            if result.rowcount == 0:
                session.rollback()
                current = self._live_list(session, list_id)
                raise ConcurrentModificationError(
                    f"List {list_id} changed: expected version {expected_version}, "
                    f"current version is {current.version}"
                )
            session.commit()
            return record_to_list(self._live_list(session, list_id))

    # === Item operations ===

    def add_item(self, item: ListItem) -> ListItem:
        item.validate()
        with self._session() as session:
            self._live_list(session, item.list_id)
            record = ItemRecord(
                id=item.id,
                list_id=item.list_id,
                chosen_count=item.chosen_count,
                last_chosen=item.last_chosen,
                use_count=item.use_count,
                last_used=item.last_used,
                created_at=item.created_at,
                updated_at=item.updated_at,
                **_item_columns(item),
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            return record_to_item(record)

    def update_item(self, item: ListItem) -> ListItem:
        item.validate()
        with self._session() as session:
            record = self._live_item(session, item.id)
            for column, value in _item_columns(item).items():
                setattr(record, column, value)
            record.updated_at = utcnow()
            session.commit()
            session.refresh(record)
            return record_to_item(record)

    def remove_item(self, item_id: str, at: datetime) -> None:
        with self._session() as session:
            record = self._live_item(session, item_id)
            record.deleted_at = at
            record.updated_at = at
            session.commit()

    def get_items(self, list_ids: Iterable[str]) -> list[ListItem]:
        wanted = list(dict.fromkeys(list_ids))
        if not wanted:
            return []
        with self._session() as session:
            stmt = (
                select(ItemRecord)
                .join(ListRecord, ItemRecord.list_id == ListRecord.id)
                .where(
                    ItemRecord.list_id.in_(wanted),
                    ItemRecord.deleted_at.is_(None),
                    ListRecord.deleted_at.is_(None),
                )
                .order_by(ItemRecord.seq)
            )
            items = [record_to_item(r) for r in session.execute(stmt).scalars().all()]
        # Group by list in the requested order
        position = {list_id: index for index, list_id in enumerate(wanted)}
        return sorted(items, key=lambda item: position[item.list_id])

    def update_item_stats(self, item_id: str, chosen: bool, at: datetime) -> ListItem:
        if chosen:
            values = {
                "chosen_count": ItemRecord.chosen_count + 1,
                "last_chosen": at,
            }
        else:
            values = {
                "use_count": ItemRecord.use_count + 1,
                "last_used": at,
            }
        with self._session() as session:
            # Single UPDATE so concurrent increments are never lost
            result = session.execute(
                update(ItemRecord)
                .where(ItemRecord.id == item_id, ItemRecord.deleted_at.is_(None))
                .values(updated_at=at, **values)
            )
            if result.rowcount == 0:
                session.rollback()
                raise ItemNotFoundError(f"Item not found: {item_id}")
            session.commit()
            return record_to_item(self._live_item(session, item_id))

    # === Conflict operations ===

    def create_conflict(self, conflict: SyncConflict) -> SyncConflict:
        conflict.validate()
        with self._session() as session:
            stmt = select(ListRecord.id).where(ListRecord.id == conflict.list_id)
            if session.execute(stmt).scalar_one_or_none() is None:
                raise ListNotFoundError(f"List not found: {conflict.list_id}")
            record = ConflictRecord(
                id=conflict.id,
                list_id=conflict.list_id,
                item_id=conflict.item_id,
                type=conflict.type,
                local_data=conflict.local_data,
                remote_data=conflict.remote_data,
                resolution=conflict.resolution,
                created_at=conflict.created_at,
                resolved_at=conflict.resolved_at,
            )
            session.add(record)
            session.commit()
            session.refresh(record)
            return record_to_conflict(record)

    def get_conflict(self, conflict_id: str) -> SyncConflict:
        with self._session() as session:
            stmt = select(ConflictRecord).where(ConflictRecord.id == conflict_id)
            record = session.execute(stmt).scalar_one_or_none()
            if record is None:
                raise ConflictNotFoundError(f"Conflict not found: {conflict_id}")
            return record_to_conflict(record)

    def get_conflicts(self, list_id: str) -> list[SyncConflict]:
        with self._session() as session:
            stmt = (
                select(ConflictRecord)
                .where(ConflictRecord.list_id == list_id)
                .order_by(ConflictRecord.seq)
            )
            return [record_to_conflict(r) for r in session.execute(stmt).scalars().all()]

    def mark_conflict_resolved(
        self,
        conflict_id: str,
        resolution: str,
        at: datetime,
    ) -> SyncConflict:
        with self._session() as session:
            result = session.execute(
                update(ConflictRecord)
                .where(
                    ConflictRecord.id == conflict_id,
                    ConflictRecord.resolved_at.is_(None),
                )
                .values(resolution=resolution, resolved_at=at)
            )
            if result.rowcount == 0:
                session.rollback()
                # Distinguish unknown from already resolved
                self.get_conflict(conflict_id)
                raise ConflictAlreadyResolvedError(f"Conflict already resolved: {conflict_id}")
            session.commit()
        return self.get_conflict(conflict_id)
