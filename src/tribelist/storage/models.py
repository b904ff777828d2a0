"""SQLAlchemy models for tribelist storage.

This module defines the database schema using SQLAlchemy ORM.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """Timestamp column stored as naive UTC, read back as aware UTC.

    SQLite has no timezone storage, so offsets are normalised on the way in.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        return value.replace(tzinfo=UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class ListRecord(Base):
    """A list, with its sync fields stored inline."""

    __tablename__ = "lists"

    # Insertion order; ids are uuid strings
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    visibility: Mapped[str] = mapped_column(String(16), nullable=False)
    default_weight: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    max_items: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cooldown_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    sync_source: Mapped[str] = mapped_column(String(32), default="none", nullable=False)
    sync_external_id: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    sync_status: Mapped[str] = mapped_column(String(16), default="none", nullable=False)
    last_sync_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Relationships
    items: Mapped[list[ItemRecord]] = relationship("ItemRecord", back_populates="tribe_list")
    conflicts: Mapped[list[ConflictRecord]] = relationship(
        "ConflictRecord", back_populates="tribe_list", order_by="ConflictRecord.seq"
    )

    # Indexes
    __table_args__ = (
        Index("idx_lists_id", "id"),
        Index("idx_lists_deleted", "deleted_at"),
    )


class ItemRecord(Base):
    """A candidate entry in a list."""

    __tablename__ = "list_items"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    list_id: Mapped[str] = mapped_column(String(36), ForeignKey("lists.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    seasonal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    start_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    cooldown: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_chosen: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    chosen_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_used: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    use_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    external_id: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    item_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, default=dict, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Relationships
    tribe_list: Mapped[ListRecord] = relationship("ListRecord", back_populates="items")

    # Indexes
    __table_args__ = (
        Index("idx_items_id", "id"),
        Index("idx_items_list", "list_id"),
    )


class ConflictRecord(Base):
    """A sync conflict. Resolved conflicts are kept, never deleted."""

    __tablename__ = "sync_conflicts"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    list_id: Mapped[str] = mapped_column(String(36), ForeignKey("lists.id"), nullable=False)
    item_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    local_data: Mapped[Any] = mapped_column(JSON, nullable=False)
    remote_data: Mapped[Any] = mapped_column(JSON, nullable=False)
    resolution: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    resolved_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Relationships
    tribe_list: Mapped[ListRecord] = relationship("ListRecord", back_populates="conflicts")

    # Indexes
    __table_args__ = (
        Index("idx_conflicts_id", "id"),
        Index("idx_conflicts_list", "list_id"),
    )
