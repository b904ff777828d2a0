"""Storage module - List, item and conflict persistence.

This module provides:
- ListStorage: abstract interface consumed by the domain services
- InMemoryStorage: thread-safe implementation for tests and embedding
- Database: SQLAlchemy/SQLite implementation
"""

from __future__ import annotations

from pathlib import Path

from tribelist.storage.base import ListStorage
from tribelist.storage.database import Database
from tribelist.storage.memory import InMemoryStorage


def create_storage(config: dict[str, str | None]) -> ListStorage:
    """Factory function to create storage from configuration.

    Args:
        config: Storage configuration dict with keys:
            - type: "sqlite" or "memory"
            - For sqlite: db_path

    Returns:
        Configured ListStorage instance.

    Raises:
        ValueError: If storage type is unknown.
    """
    storage_type = config.get("type", "sqlite")

    if storage_type == "memory":
        return InMemoryStorage()

    if storage_type == "sqlite":
        db_path = config.get("db_path") or "tribelist.db"
        return Database(Path(db_path))

    raise ValueError(f"Unknown storage type: {storage_type}")


__all__ = [
    "Database",
    "InMemoryStorage",
    "ListStorage",
    "create_storage",
]
