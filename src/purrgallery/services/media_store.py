"""
Media store: the hierarchical gallery model consumers talk to.

MediaStore composes the synchronous metadata store (categories, galleries)
and the asynchronous blob store (media payloads) into one observable model.
It owns the in-memory collections and the display reference registry,
cascades deletes down the hierarchy and notifies subscribers after every
change.

Ordering rules:
- add_media writes the payload before anything becomes visible.
- Deletes update metadata, revoke display references and drop items from
  the collections before the blob delete is awaited. If the blob delete
  fails, the error propagates but nothing is rolled back; the unreachable
  payloads are reclaimed by collect_orphans().

Collections are tuples of frozen dataclasses. Every mutation computes a new
tuple and replaces the old one, so a snapshot handed out earlier never
changes.
"""

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import Any

from ..errors import StorageError
from ..logging_config import get_logger, log_performance
from ..models.entities import Category, Gallery, MediaItem, MediaItemRecord, MediaType
from .blob_store import BlobStore
from .display_refs import DisplayReferenceRegistry
from .metadata import MetadataStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class StoreSnapshot:
    """Read-only view of the store state passed to subscribers."""

    categories: tuple[Category, ...]
    galleries: tuple[Gallery, ...]
    media_items: tuple[MediaItem, ...]
    is_loading: bool


Subscriber = Callable[[StoreSnapshot], Any]


class MediaStore:
    """
    Observable Category -> Gallery -> MediaItem store.

    Attributes:
        metadata_store: Snapshot persistence for categories and galleries
        blob_store: Payload persistence for media items
        references: Registry of live display references, one per media item
        retain_payloads: Whether display items keep their payload bytes by default
    """

    def __init__(
        self,
        metadata_store: MetadataStore,
        blob_store: BlobStore,
        references: DisplayReferenceRegistry | None = None,
        retain_payloads: bool = False,
    ) -> None:
        self.metadata_store = metadata_store
        self.blob_store = blob_store
        self.references = references or DisplayReferenceRegistry()
        self.retain_payloads = retain_payloads

        self._categories: tuple[Category, ...] = ()
        self._galleries: tuple[Gallery, ...] = ()
        self._media_items: tuple[MediaItem, ...] = ()
        self._is_loading = False
        self._is_ready = False
        self._subscribers: list[Subscriber] = []

    # --- Read access ---

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    @property
    def galleries(self) -> tuple[Gallery, ...]:
        return self._galleries

    @property
    def media_items(self) -> tuple[MediaItem, ...]:
        return self._media_items

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            categories=self._categories,
            galleries=self._galleries,
            media_items=self._media_items,
            is_loading=self._is_loading,
        )

    def get_category(self, category_id: str) -> Category | None:
        return next((c for c in self._categories if c.id == category_id), None)

    def get_gallery(self, gallery_id: str) -> Gallery | None:
        return next((g for g in self._galleries if g.id == gallery_id), None)

    def get_media(self, item_id: str) -> MediaItem | None:
        return next((m for m in self._media_items if m.id == item_id), None)

    def galleries_for(self, category_id: str) -> tuple[Gallery, ...]:
        return tuple(g for g in self._galleries if g.category_id == category_id)

    def media_for(self, gallery_id: str, media_type: MediaType | None = None) -> tuple[MediaItem, ...]:
        """Media items of one gallery in add order, optionally only photos or only videos."""
        return tuple(
            m for m in self._media_items if m.gallery_id == gallery_id and (media_type is None or m.type is media_type)
        )

    def resolve(self, url: str) -> bytes:
        """Resolve a display reference URL to payload bytes."""
        return self.references.resolve(url)

    # --- Subscriptions ---

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with a StoreSnapshot after every change.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("subscriber_failed", subscriber=repr(callback))

    # --- Internal collection updates ---

    def _set_categories(self, categories: Iterable[Category]) -> None:
        new_categories = tuple(categories)
        self.metadata_store.save_categories(new_categories)
        self._categories = new_categories

    def _set_galleries(self, galleries: Iterable[Gallery]) -> None:
        new_galleries = tuple(galleries)
        self.metadata_store.save_galleries(new_galleries)
        self._galleries = new_galleries

    def _materialize(self, record: MediaItemRecord, retain_payload: bool) -> MediaItem:
        reference = self.references.acquire(record.id, record.payload)
        return MediaItem.from_record(record, reference.url, retain_payload=retain_payload)

    def _drop_media(self, item_ids: list[str]) -> None:
        """Revoke references and remove items from the collection."""
        self.references.release_many(item_ids)
        doomed = set(item_ids)
        self._media_items = tuple(m for m in self._media_items if m.id not in doomed)

    async def _delete_blobs(self, item_ids: list[str], operation: str, **context: Any) -> None:
        try:
            await self.blob_store.delete_many(item_ids)
        except StorageError:
            logger.error(
                "blob_cascade_delete_failed",
                operation=operation,
                orphaned_item_count=len(item_ids),
                **context,
            )
            raise

    # --- Session lifecycle ---

    async def load(self) -> None:
        """
        Load the session: metadata snapshots first, then every blob record.

        The store is ready only after both reads complete. A blob store
        failure propagates and leaves the store not ready.
        """
        start_time = time.perf_counter()
        self._is_loading = True
        self._is_ready = False
        self._notify()

        try:
            self._categories = tuple(self.metadata_store.load_categories())
            self._galleries = tuple(self.metadata_store.load_galleries())

            records = await self.blob_store.get_all()

            self.references.release_all()
            self._media_items = tuple(self._materialize(record, self.retain_payloads) for record in records)
            self._is_ready = True
        finally:
            self._is_loading = False
            self._notify()

        log_performance(
            "session_load",
            time.perf_counter() - start_time,
            category_count=len(self._categories),
            gallery_count=len(self._galleries),
            media_count=len(self._media_items),
        )

    def close(self) -> int:
        """
        End the session: revoke every outstanding display reference once.

        Returns:
            Number of references revoked
        """
        revoked = self.references.release_all()
        self._media_items = ()
        self._is_ready = False
        self._notify()
        logger.info("session_closed", revoked_references=revoked)
        return revoked

    async def aclose(self) -> None:
        """End the session and close both storage tiers."""
        self.close()
        await self.blob_store.close()
        self.metadata_store.close()

    async def __aenter__(self) -> "MediaStore":
        await self.load()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    # --- Categories ---

    def add_category(self, name: str, description: str, cover_image: str | None = None) -> Category:
        category = Category.create_new(name, description, cover_image)
        self._set_categories((*self._categories, category))
        self._notify()
        logger.info("category_added", category_id=category.id, name=name)
        return category

    def update_category(
        self, category_id: str, name: str, description: str, cover_image: str | None = None
    ) -> Category | None:
        """
        Replace name and description of a category.

        A falsy ``cover_image`` keeps the current cover. Unknown ids are ignored.
        """
        current = self.get_category(category_id)
        if current is None:
            logger.debug("category_update_ignored", category_id=category_id)
            return None

        updated = replace(current, name=name, description=description, cover_image=cover_image or current.cover_image)
        self._set_categories(updated if c.id == category_id else c for c in self._categories)
        self._notify()
        logger.info("category_updated", category_id=category_id)
        return updated

    async def delete_category(self, category_id: str) -> None:
        """
        Delete a category with its galleries and their media items.

        Metadata and display state are updated before the blob batch delete
        is awaited; a failed batch delete raises BlobDeleteError without
        restoring anything.
        """
        if self.get_category(category_id) is None:
            logger.debug("category_delete_ignored", category_id=category_id)
            return

        gallery_ids = {g.id for g in self._galleries if g.category_id == category_id}
        media_ids = [m.id for m in self._media_items if m.gallery_id in gallery_ids]

        self._set_categories(c for c in self._categories if c.id != category_id)
        if gallery_ids:
            self._set_galleries(g for g in self._galleries if g.id not in gallery_ids)
        self._drop_media(media_ids)
        self._notify()

        logger.info(
            "category_deleted",
            category_id=category_id,
            gallery_count=len(gallery_ids),
            media_count=len(media_ids),
        )
        await self._delete_blobs(media_ids, "delete_category", category_id=category_id)

    # --- Galleries ---

    def add_gallery(
        self, category_id: str, title: str, description: str | None = None, cover_image: str | None = None
    ) -> Gallery:
        if self.get_category(category_id) is None:
            logger.warning("gallery_parent_missing", category_id=category_id)

        gallery = Gallery.create_new(category_id, title, description, cover_image)
        self._set_galleries((*self._galleries, gallery))
        self._notify()
        logger.info("gallery_added", gallery_id=gallery.id, category_id=category_id, title=title)
        return gallery

    def update_gallery(
        self, gallery_id: str, title: str, description: str | None = None, cover_image: str | None = None
    ) -> Gallery | None:
        """
        Replace title and description of a gallery.

        A falsy ``cover_image`` keeps the current cover. Unknown ids are ignored.
        """
        current = self.get_gallery(gallery_id)
        if current is None:
            logger.debug("gallery_update_ignored", gallery_id=gallery_id)
            return None

        updated = replace(current, title=title, description=description, cover_image=cover_image or current.cover_image)
        self._set_galleries(updated if g.id == gallery_id else g for g in self._galleries)
        self._notify()
        logger.info("gallery_updated", gallery_id=gallery_id)
        return updated

    async def delete_gallery(self, gallery_id: str) -> None:
        """Delete a gallery and its media items. The parent category is untouched."""
        if self.get_gallery(gallery_id) is None:
            logger.debug("gallery_delete_ignored", gallery_id=gallery_id)
            return

        media_ids = [m.id for m in self._media_items if m.gallery_id == gallery_id]

        self._set_galleries(g for g in self._galleries if g.id != gallery_id)
        self._drop_media(media_ids)
        self._notify()

        logger.info("gallery_deleted", gallery_id=gallery_id, media_count=len(media_ids))
        await self._delete_blobs(media_ids, "delete_gallery", gallery_id=gallery_id)

    # --- Media items ---

    async def add_media(self, record: MediaItemRecord, retain_payload: bool | None = None) -> MediaItem:
        """
        Store a media item and add its display form to the collection.

        The payload is written first; if that fails the error propagates and
        nothing is added. Re-adding an existing id replaces the item in place.

        Args:
            record: Persisted form of the item, payload included
            retain_payload: Keep the payload on the display item (defaults to ``retain_payloads``)

        Returns:
            The display form of the stored item
        """
        if self.get_gallery(record.gallery_id) is None:
            logger.warning("media_parent_missing", item_id=record.id, gallery_id=record.gallery_id)

        await self.blob_store.put(record)

        retain = self.retain_payloads if retain_payload is None else retain_payload
        item = self._materialize(record, retain)

        if any(m.id == record.id for m in self._media_items):
            self._media_items = tuple(item if m.id == record.id else m for m in self._media_items)
        else:
            self._media_items = (*self._media_items, item)
        self._notify()

        logger.info(
            "media_added",
            item_id=record.id,
            gallery_id=record.gallery_id,
            media_type=record.type.value,
            file_name=record.file_name,
            size=record.size,
        )
        return item

    async def delete_media(self, item_id: str) -> None:
        """
        Delete one media item.

        The display reference is revoked and the item removed from the
        collection before the blob delete runs. Deleting an absent id is a
        no-op apart from the idempotent blob delete.
        """
        if self.get_media(item_id) is not None or item_id in self.references:
            self._drop_media([item_id])
            self._notify()
            logger.info("media_deleted", item_id=item_id)

        try:
            await self.blob_store.delete(item_id)
        except StorageError:
            logger.error("blob_delete_failed", item_id=item_id)
            raise

    # --- Maintenance ---

    async def collect_orphans(self) -> list[str]:
        """
        Remove data no live parent points to.

        Galleries whose category no longer exists are dropped from the
        metadata, then every blob record whose gallery no longer exists is
        deleted in one batch.

        Returns:
            Ids of the deleted media records
        """
        category_ids = {c.id for c in self._categories}
        stray_galleries = [g.id for g in self._galleries if g.category_id not in category_ids]
        if stray_galleries:
            self._set_galleries(g for g in self._galleries if g.category_id in category_ids)

        gallery_ids = {g.id for g in self._galleries}
        index = await self.blob_store.get_index()
        orphan_ids = [item_id for item_id, gallery_id in index if gallery_id not in gallery_ids]

        self._drop_media(orphan_ids)
        if stray_galleries or orphan_ids:
            self._notify()

        logger.info("orphans_collected", gallery_count=len(stray_galleries), media_count=len(orphan_ids))
        await self._delete_blobs(orphan_ids, "collect_orphans")
        return orphan_ids
