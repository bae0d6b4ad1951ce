"""Blob store for media payloads.

Media item records, payload included, live in one DuckDB table keyed by item
id. DuckDB calls are blocking, so every call runs on a dedicated
single-thread executor and the public API is ``async``. The connection is
opened lazily on first use and cached; concurrent first callers await the
same pending open.
"""

import asyncio
import functools
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, TypeVar

import duckdb

from ..errors import BlobDeleteError, BlobReadError, BlobWriteError, StorageUnavailableError
from ..logging_config import get_logger, log_performance
from ..models.database import DatabaseManager
from ..models.entities import MediaItemRecord, MediaType
from ..models.schema import get_media_schema_statements

logger = get_logger(__name__)

T = TypeVar("T")

_SELECT_COLUMNS = "id, gallery_id, type, file_name, created_at, payload"

_UPSERT_SQL = """
INSERT INTO media (id, gallery_id, type, file_name, created_at, payload)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT (id) DO UPDATE SET
    gallery_id = excluded.gallery_id,
    type = excluded.type,
    file_name = excluded.file_name,
    created_at = excluded.created_at,
    payload = excluded.payload
"""


def _row_to_record(row: tuple) -> MediaItemRecord:
    return MediaItemRecord(
        id=row[0],
        gallery_id=row[1],
        type=MediaType(row[2]),
        file_name=row[3],
        created_at=int(row[4]),
        payload=bytes(row[5]),
    )


class BlobStore:
    """Asynchronous key-value store of media item records."""

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize the blob store.

        Args:
            db_path: DuckDB file holding the ``media`` table, or ``:memory:``
        """
        self.db_path = str(db_path)
        self.db_manager = DatabaseManager(self.db_path, get_media_schema_statements())
        self._executor: ThreadPoolExecutor | None = None
        self._open_task: asyncio.Future[None] | None = None

    @property
    def is_open(self) -> bool:
        return self.db_manager.is_connected

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="blob-store")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args))

    def _connect(self) -> None:
        self.db_manager.connect()

    async def _open(self) -> None:
        start_time = time.perf_counter()
        try:
            await self._run(self._connect)
        except (duckdb.Error, OSError) as e:
            raise StorageUnavailableError(
                f"Failed to open blob store at {self.db_path}: {e}",
                details={"db_path": self.db_path},
                original_exception=e,
            ) from e

        log_performance("blob_store_open", time.perf_counter() - start_time, db_path=self.db_path)

    async def _ensure_open(self) -> None:
        if self._open_task is None:
            self._open_task = asyncio.ensure_future(self._open())

        task = self._open_task
        try:
            # Cancelling one caller must not cancel the open shared with the others
            await asyncio.shield(task)
        except BaseException:
            # A failed or cancelled open is retried by the next caller
            if self._open_task is task and task.done() and (task.cancelled() or task.exception() is not None):
                self._open_task = None
            raise

    async def get_all(self) -> list[MediaItemRecord]:
        """
        Read every stored record in insertion order.

        Raises:
            StorageUnavailableError: If the store cannot be opened
            BlobReadError: If the read fails
        """
        await self._ensure_open()
        start_time = time.perf_counter()

        try:
            rows = await self._run(
                self.db_manager.execute_query, f"SELECT {_SELECT_COLUMNS} FROM media ORDER BY seq"
            )
            records = [_row_to_record(row) for row in rows]
        except (duckdb.Error, ValueError, TypeError) as e:
            raise BlobReadError(f"Failed to read media records: {e}", original_exception=e) from e

        log_performance("blob_get_all", time.perf_counter() - start_time, record_count=len(records))
        return records

    async def get(self, item_id: str) -> MediaItemRecord | None:
        """Read one record, or None if it does not exist."""
        await self._ensure_open()

        try:
            rows = await self._run(
                self.db_manager.execute_query, f"SELECT {_SELECT_COLUMNS} FROM media WHERE id = ?", (item_id,)
            )
            return _row_to_record(rows[0]) if rows else None
        except (duckdb.Error, ValueError, TypeError) as e:
            raise BlobReadError(
                f"Failed to read media record '{item_id}': {e}", details={"item_id": item_id}, original_exception=e
            ) from e

    async def get_index(self) -> list[tuple[str, str]]:
        """Read ``(id, gallery_id)`` pairs of every record without loading payloads."""
        await self._ensure_open()

        try:
            rows = await self._run(self.db_manager.execute_query, "SELECT id, gallery_id FROM media ORDER BY seq")
        except duckdb.Error as e:
            raise BlobReadError(f"Failed to read media index: {e}", original_exception=e) from e

        return [(row[0], row[1]) for row in rows]

    async def put(self, record: MediaItemRecord) -> None:
        """
        Insert or overwrite a record by id.

        Raises:
            StorageUnavailableError: If the store cannot be opened
            BlobWriteError: If the write fails
        """
        await self._ensure_open()

        parameters = (
            record.id,
            record.gallery_id,
            record.type.value,
            record.file_name,
            record.created_at,
            record.payload,
        )
        try:
            await self._run(self.db_manager.execute_query, _UPSERT_SQL, parameters)
        except duckdb.Error as e:
            raise BlobWriteError(
                f"Failed to store media record '{record.id}': {e}",
                details={"item_id": record.id, "file_name": record.file_name},
                original_exception=e,
            ) from e

        logger.debug("blob_stored", item_id=record.id, gallery_id=record.gallery_id, size=record.size)

    async def delete(self, item_id: str) -> None:
        """
        Remove one record. Removing an absent id is not an error.

        Raises:
            StorageUnavailableError: If the store cannot be opened
            BlobDeleteError: If the delete fails
        """
        await self._ensure_open()

        try:
            await self._run(self.db_manager.execute_query, "DELETE FROM media WHERE id = ?", (item_id,))
        except duckdb.Error as e:
            raise BlobDeleteError(
                f"Failed to delete media record '{item_id}': {e}", details={"item_id": item_id}, original_exception=e
            ) from e

        logger.debug("blob_deleted", item_id=item_id)

    def _delete_many_sync(self, ids: list[str]) -> None:
        with self.db_manager.transaction() as conn:
            conn.executemany("DELETE FROM media WHERE id = ?", [(item_id,) for item_id in ids])

    async def delete_many(self, ids: Iterable[str]) -> None:
        """
        Remove a batch of records in one transaction.

        Either every record is removed or none is. An empty batch returns
        immediately without touching storage.

        Raises:
            StorageUnavailableError: If the store cannot be opened
            BlobDeleteError: If the transaction fails and was rolled back
        """
        unique_ids = list(dict.fromkeys(ids))
        if not unique_ids:
            return

        await self._ensure_open()

        try:
            await self._run(self._delete_many_sync, unique_ids)
        except duckdb.Error as e:
            raise BlobDeleteError(
                f"Failed to delete {len(unique_ids)} media records: {e}",
                details={"item_count": len(unique_ids)},
                original_exception=e,
            ) from e

        logger.info("blobs_deleted", item_count=len(unique_ids))

    async def close(self) -> None:
        """Close the connection and the worker thread. The store reopens on next use."""
        if self._open_task is not None and not self._open_task.done():
            try:
                await self._open_task
            except StorageUnavailableError as e:
                logger.debug("blob_store_close_after_failed_open", db_path=self.db_path, error=str(e))
        self._open_task = None

        if self._executor is not None:
            if self.db_manager.is_connected:
                await self._run(self.db_manager.close)
            self._executor.shutdown(wait=True)
            self._executor = None

        logger.debug("blob_store_closed", db_path=self.db_path)
