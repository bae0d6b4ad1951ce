"""
Metadata store for categories and galleries.

Both collections are kept as full JSON snapshots in the synchronous
key-value store: one key per collection, rewritten in full on every save.
Reads never fail the caller; a missing or unreadable snapshot loads as an
empty collection.
"""

import json
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

import duckdb

from ..errors import MetadataError
from ..logging_config import get_logger
from ..models.database import KeyValueStore
from ..models.entities import Category, Gallery

logger = get_logger(__name__)

CATEGORIES_KEY = "pg_categories"
GALLERIES_KEY = "pg_galleries"

T = TypeVar("T")


class MetadataStore:
    """Snapshot persistence of the Category and Gallery collections."""

    def __init__(self, kv_store: KeyValueStore):
        self.kv_store = kv_store

    def load_categories(self) -> list[Category]:
        return self._load(CATEGORIES_KEY, Category.from_dict)

    def load_galleries(self) -> list[Gallery]:
        return self._load(GALLERIES_KEY, Gallery.from_dict)

    def save_categories(self, categories: Sequence[Category]) -> None:
        self._save(CATEGORIES_KEY, [category.to_dict() for category in categories])

    def save_galleries(self, galleries: Sequence[Gallery]) -> None:
        self._save(GALLERIES_KEY, [gallery.to_dict() for gallery in galleries])

    def _load(self, key: str, factory: Callable[[dict[str, Any]], T]) -> list[T]:
        try:
            raw = self.kv_store.get_item(key)
        except duckdb.Error as e:
            logger.warning("metadata_snapshot_unreadable", key=key, error=str(e))
            return []

        if raw is None:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            items = [factory(entry) for entry in data]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning("metadata_snapshot_corrupt", key=key, error=str(e))
            return []

        logger.debug("metadata_snapshot_loaded", key=key, item_count=len(items))
        return items

    def _save(self, key: str, data: list[dict[str, Any]]) -> None:
        try:
            self.kv_store.set_item(key, json.dumps(data, ensure_ascii=False))
        except duckdb.Error as e:
            raise MetadataError(
                f"Failed to save metadata snapshot '{key}': {e}",
                details={"key": key, "item_count": len(data)},
                original_exception=e,
            ) from e

        logger.debug("metadata_snapshot_saved", key=key, item_count=len(data))

    def close(self) -> None:
        """Close the underlying key-value connection; it reopens on next use."""
        self.kv_store.close()
