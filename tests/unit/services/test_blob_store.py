"""
Unit tests for the blob store.
"""

import asyncio
import time
from unittest.mock import patch

import duckdb
import pytest

from purrgallery.errors import BlobDeleteError, BlobReadError, BlobWriteError, StorageUnavailableError
from purrgallery.models.entities import MediaType
from purrgallery.services.blob_store import BlobStore


class TestBlobStore:
    """Test cases for BlobStore."""

    @pytest.mark.asyncio
    async def test_empty_store(self, blob_store):
        assert await blob_store.get_all() == []

    @pytest.mark.asyncio
    async def test_put_and_get_all_round_trip(self, blob_store, test_data_factory, sample_image_data):
        record = test_data_factory.create_record(item_id="m1", file_name="a.jpg")

        await blob_store.put(record)
        records = await blob_store.get_all()

        assert records == [record]
        assert records[0].payload == sample_image_data
        assert records[0].type is MediaType.PHOTO

    @pytest.mark.asyncio
    async def test_get_all_preserves_insertion_order(self, blob_store, test_data_factory):
        ids = ["zzz", "aaa", "mmm"]
        for item_id in ids:
            await blob_store.put(test_data_factory.create_record(item_id=item_id))

        assert [r.id for r in await blob_store.get_all()] == ids

    @pytest.mark.asyncio
    async def test_put_overwrites_silently(self, blob_store, test_data_factory):
        await blob_store.put(test_data_factory.create_record(item_id="m1", payload=b"old"))
        await blob_store.put(test_data_factory.create_record(item_id="m2"))
        await blob_store.put(
            test_data_factory.create_record(item_id="m1", payload=b"new", file_name="b.mp4", media_type=MediaType.VIDEO)
        )

        records = await blob_store.get_all()

        assert [r.id for r in records] == ["m1", "m2"]
        assert records[0].payload == b"new"
        assert records[0].file_name == "b.mp4"
        assert records[0].type is MediaType.VIDEO

    @pytest.mark.asyncio
    async def test_get_single_record(self, blob_store, test_data_factory):
        record = test_data_factory.create_record(item_id="m1")
        await blob_store.put(record)

        assert await blob_store.get("m1") == record
        assert await blob_store.get("missing") is None

    @pytest.mark.asyncio
    async def test_get_index_skips_payloads(self, blob_store, test_data_factory):
        await blob_store.put(test_data_factory.create_record(item_id="m1", gallery_id="g1"))
        await blob_store.put(test_data_factory.create_record(item_id="m2", gallery_id="g2"))

        assert await blob_store.get_index() == [("m1", "g1"), ("m2", "g2")]

    @pytest.mark.asyncio
    async def test_delete(self, blob_store, test_data_factory):
        await blob_store.put(test_data_factory.create_record(item_id="m1"))
        await blob_store.put(test_data_factory.create_record(item_id="m2"))

        await blob_store.delete("m1")

        assert [r.id for r in await blob_store.get_all()] == ["m2"]

    @pytest.mark.asyncio
    async def test_delete_absent_id_is_not_an_error(self, blob_store):
        await blob_store.delete("missing")
        await blob_store.delete("missing")

    @pytest.mark.asyncio
    async def test_delete_many(self, blob_store, test_data_factory):
        for item_id in ["m1", "m2", "m3"]:
            await blob_store.put(test_data_factory.create_record(item_id=item_id))

        await blob_store.delete_many(["m1", "m3", "m1", "missing"])

        assert [r.id for r in await blob_store.get_all()] == ["m2"]

    @pytest.mark.asyncio
    async def test_delete_many_empty_does_not_touch_storage(self, blob_store):
        with patch.object(blob_store, "_connect", wraps=blob_store._connect) as spy:
            await blob_store.delete_many([])

        spy.assert_not_called()
        assert not blob_store.is_open

    @pytest.mark.asyncio
    async def test_delete_many_failure_rolls_back_partial_batch(self, blob_store, test_data_factory):
        for item_id in ["m1", "m2", "m3"]:
            await blob_store.put(test_data_factory.create_record(item_id=item_id))

        def fail_after_first_delete(ids):
            with blob_store.db_manager.transaction() as conn:
                conn.execute("DELETE FROM media WHERE id = ?", (ids[0],))
                raise duckdb.Error("transaction aborted")

        with patch.object(blob_store, "_delete_many_sync", side_effect=fail_after_first_delete):
            with pytest.raises(BlobDeleteError, match="Failed to delete 3 media records"):
                await blob_store.delete_many(["m1", "m2", "m3"])

        assert [r.id for r in await blob_store.get_all()] == ["m1", "m2", "m3"]

    @pytest.mark.asyncio
    async def test_put_failure_raises_write_error(self, blob_store, test_data_factory):
        await blob_store.get_all()

        with patch.object(blob_store.db_manager, "execute_query", side_effect=duckdb.Error("disk full")):
            with pytest.raises(BlobWriteError) as exc_info:
                await blob_store.put(test_data_factory.create_record(item_id="m1"))

        assert exc_info.value.code == "blob_write_failed"
        assert exc_info.value.details["item_id"] == "m1"

    @pytest.mark.asyncio
    async def test_delete_failure_raises_delete_error(self, blob_store):
        await blob_store.get_all()

        with patch.object(blob_store.db_manager, "execute_query", side_effect=duckdb.Error("locked")):
            with pytest.raises(BlobDeleteError):
                await blob_store.delete("m1")

    @pytest.mark.asyncio
    async def test_open_is_lazy(self, blob_store):
        assert not blob_store.is_open

        await blob_store.get_all()

        assert blob_store.is_open

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_open(self, blob_store):
        with patch.object(blob_store, "_connect", wraps=blob_store._connect) as spy:
            results = await asyncio.gather(*(blob_store.get_all() for _ in range(5)))

        spy.assert_called_once()
        assert results == [[]] * 5

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_open(self, blob_store):
        real_connect = blob_store._connect

        def slow_connect():
            time.sleep(0.2)
            real_connect()

        with patch.object(blob_store, "_connect", side_effect=slow_connect) as mock_connect:
            first = asyncio.ensure_future(blob_store.get_all())
            await asyncio.sleep(0.01)
            first.cancel()
            with pytest.raises(asyncio.CancelledError):
                await first

            assert await blob_store.get_all() == []

        mock_connect.assert_called_once()
        assert blob_store.is_open

    @pytest.mark.asyncio
    async def test_cancelled_open_is_retried(self, blob_store, test_data_factory):
        real_connect = blob_store._connect

        def slow_connect():
            time.sleep(0.2)
            real_connect()

        with patch.object(blob_store, "_connect", side_effect=slow_connect):
            first = asyncio.ensure_future(blob_store.get_all())
            await asyncio.sleep(0.01)
            blob_store._open_task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await first

        await blob_store.put(test_data_factory.create_record(item_id="m1"))

        assert [r.id for r in await blob_store.get_all()] == ["m1"]

    @pytest.mark.asyncio
    async def test_unreadable_row_raises_read_error(self, blob_store):
        await blob_store.get_all()
        blob_store.db_manager.execute_query(
            "INSERT INTO media (id, gallery_id, type, file_name, created_at, payload) VALUES (?, ?, ?, ?, ?, ?)",
            ("m1", "g1", "AUDIO", "a.mp3", 0, b"data"),
        )

        with pytest.raises(BlobReadError):
            await blob_store.get_all()
        with pytest.raises(BlobReadError) as exc_info:
            await blob_store.get("m1")

        assert exc_info.value.details["item_id"] == "m1"

    @pytest.mark.asyncio
    async def test_open_failure_is_retried(self, temp_dir, test_data_factory):
        blocker = temp_dir / "blocker"
        blocker.write_text("not a directory")
        store = BlobStore(blocker / "media.duckdb")

        try:
            with pytest.raises(StorageUnavailableError) as exc_info:
                await store.get_all()
            assert exc_info.value.code == "storage_unavailable"
            assert not store.is_open

            blocker.unlink()
            await store.put(test_data_factory.create_record(item_id="m1"))

            assert [r.id for r in await store.get_all()] == ["m1"]
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_records_survive_close_and_reopen(self, temp_dir, test_data_factory, sample_image_data):
        db_path = temp_dir / "persist.duckdb"
        store = BlobStore(db_path)
        await store.put(test_data_factory.create_record(item_id="m1", file_name="a.jpg"))
        await store.close()

        reopened = BlobStore(db_path)
        try:
            records = await reopened.get_all()
        finally:
            await reopened.close()

        assert [(r.id, r.file_name, r.payload) for r in records] == [("m1", "a.jpg", sample_image_data)]

    @pytest.mark.asyncio
    async def test_close_then_reuse(self, blob_store, test_data_factory):
        await blob_store.put(test_data_factory.create_record(item_id="m1"))
        await blob_store.close()

        assert not blob_store.is_open
        assert [r.id for r in await blob_store.get_all()] == ["m1"]
