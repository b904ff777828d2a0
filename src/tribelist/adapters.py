"""Sync source adapters.

This module provides:
- Abstract interface for sync sources
- JsonFileAdapter serving the "imported" source from local JSON exports
- create_adapters factory keyed by SyncSource

A JSON export is either a list of item objects or an object with an
"items" key holding that list. Each item needs "external_id" and "name";
every other key is kept as item data:

    {"items": [{"external_id": "p-1", "name": "Tacos", "cuisine": "mexican"}]}
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from tribelist.core.config import EngineConfig
from tribelist.core.errors import ExternalSourceError, ExternalSourceUnavailableError
from tribelist.core.types import SyncSource
from tribelist.domain.models import ExternalItem

logger = logging.getLogger(__name__)


class SyncAdapter(ABC):
    """Abstract interface for an external list source."""

    @property
    @abstractmethod
    def source(self) -> SyncSource:
        """Sync source served by this adapter."""

    @abstractmethod
    def fetch(self, external_id: str) -> list[ExternalItem]:
        """Fetch the items of an external list.

        Args:
            external_id: Identifier of the list in the external source.

        Returns:
            Items as reported by the source.

        Raises:
            ExternalSourceUnavailableError: If the source can't be reached.
            ExternalSourceTimeoutError: If the source didn't answer in time.
            ExternalSourceError: If the source answered with an error.
        """

    @abstractmethod
    def push(self, external_id: str, items: Sequence[ExternalItem]) -> bool:
        """Replace the items of an external list.

        Returns:
            True if the source accepted the items.
        """


def _parse_item(raw: Any, path: Path) -> ExternalItem:
    if not isinstance(raw, dict):
        raise ExternalSourceError(f"Malformed item in {path}: expected an object")
    external_id = raw.get("external_id")
    name = raw.get("name")
    if not external_id or not isinstance(external_id, str):
        raise ExternalSourceError(f"Item without external_id in {path}")
    if not name or not isinstance(name, str):
        raise ExternalSourceError(f"Item {external_id} without name in {path}")
    data = {k: v for k, v in raw.items() if k not in ("external_id", "name")}
    return ExternalItem(external_id=external_id, name=name, data=data)


class JsonFileAdapter(SyncAdapter):
    """Serves lists from ``<import_dir>/<external_id>.json`` files."""

    def __init__(self, import_dir: Path | str) -> None:
        self._import_dir = Path(import_dir)

    @property
    def source(self) -> SyncSource:
        return SyncSource.IMPORTED

    @property
    def import_dir(self) -> Path:
        return self._import_dir

    def _path(self, external_id: str) -> Path:
        """Get the export file for an external id."""
        if not external_id or "/" in external_id or "\\" in external_id or external_id.startswith("."):
            raise ExternalSourceError(f"Invalid external id: {external_id!r}")
        return self._import_dir / f"{external_id}.json"

    def _check_available(self) -> None:
        if not self._import_dir.is_dir():
            raise ExternalSourceUnavailableError(
                f"Import directory not found: {self._import_dir}"
            )

    def fetch(self, external_id: str) -> list[ExternalItem]:
        self._check_available()
        path = self._path(external_id)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise ExternalSourceError(f"No export for {external_id} in {self._import_dir}") from None
        except (OSError, json.JSONDecodeError) as e:
            raise ExternalSourceError(f"Cannot read {path}: {e}") from e

        if isinstance(payload, dict):
            payload = payload.get("items")
        if not isinstance(payload, list):
            raise ExternalSourceError(f"Malformed export {path}: expected a list of items")

        items = [_parse_item(raw, path) for raw in payload]
        logger.debug("Fetched %d items from %s", len(items), path)
        return items

    def push(self, external_id: str, items: Sequence[ExternalItem]) -> bool:
        self._check_available()
        path = self._path(external_id)
        payload = {
            "items": [{**item.data, "external_id": item.external_id, "name": item.name} for item in items]
        }

        # Use temporary file for atomic write
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp_path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")
            # Atomic rename: tmp -> final path
            tmp_path.replace(path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise ExternalSourceError(f"Cannot write {path}: {e}") from e

        logger.debug("Pushed %d items to %s", len(items), path)
        return True


def create_adapters(config: EngineConfig) -> dict[SyncSource, SyncAdapter]:
    """Build the adapters available for a configuration.

    Only the imported source has a local adapter; lists tied to other
    sources can still be transitioned, but not fetched or pushed.
    """
    return {SyncSource.IMPORTED: JsonFileAdapter(config.import_dir)}
