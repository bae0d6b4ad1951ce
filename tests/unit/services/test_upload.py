"""
Unit tests for the upload pipeline.
"""

from unittest.mock import AsyncMock

import pytest

from purrgallery.errors import BlobWriteError
from purrgallery.models.entities import MediaType
from purrgallery.services.upload import UploadFile, UploadProgress, upload_files


class TestUploadFile:
    """Test cases for UploadFile."""

    def test_explicit_content_type(self):
        assert UploadFile("a.bin", b"", content_type="video/mp4").guess_content_type() == "video/mp4"

    def test_content_type_from_extension(self):
        assert UploadFile("a.jpg", b"").guess_content_type() == "image/jpeg"
        assert UploadFile("noext", b"").guess_content_type() is None


class TestUploadProgress:
    """Test cases for UploadProgress."""

    def test_initial_state(self):
        progress = UploadProgress("a.jpg", 10)

        assert progress.status == UploadProgress.PENDING
        assert progress.progress == 0

    def test_progress_is_clamped(self):
        progress = UploadProgress("a.jpg")

        progress.update(150)
        assert progress.progress == 100
        progress.update(-5)
        assert progress.progress == 0

    def test_fail(self):
        progress = UploadProgress("a.jpg")
        progress.update(40)

        progress.fail(RuntimeError("boom"))

        assert progress.status == UploadProgress.ERROR
        assert progress.progress == 0
        assert progress.to_dict()["error"] == "boom"


class TestUploadFiles:
    """Test cases for upload_files."""

    @pytest.mark.asyncio
    async def test_uploads_in_order(self, media_store, sample_image_data):
        cats = media_store.add_category("Cats", "")
        gallery = media_store.add_gallery(cats.id, "Summer")
        files = [
            UploadFile("a.jpg", sample_image_data),
            UploadFile("b.mp4", b"\x00\x00\x00\x18ftypmp42"),
        ]

        results = await upload_files(media_store, gallery.id, files)

        assert [r.status for r in results] == [UploadProgress.COMPLETE, UploadProgress.COMPLETE]
        assert [r.progress for r in results] == [100, 100]
        items = media_store.media_for(gallery.id)
        assert [(m.file_name, m.type) for m in items] == [("a.jpg", MediaType.PHOTO), ("b.mp4", MediaType.VIDEO)]
        assert results[0].item == items[0]

    @pytest.mark.asyncio
    async def test_failed_file_does_not_stop_batch(self, media_store, sample_image_data):
        real_add = media_store.add_media

        async def flaky_add(record, retain_payload=None):
            if record.file_name == "a.jpg":
                raise BlobWriteError("disk full")
            return await real_add(record, retain_payload)

        media_store.add_media = AsyncMock(side_effect=flaky_add)

        results = await upload_files(
            media_store, "g1", [UploadFile("a.jpg", sample_image_data), UploadFile("b.jpg", sample_image_data)]
        )

        assert [r.status for r in results] == [UploadProgress.ERROR, UploadProgress.COMPLETE]
        assert results[0].error == "disk full"
        assert [m.file_name for m in media_store.media_items] == ["b.jpg"]

    @pytest.mark.asyncio
    async def test_progress_callback_sees_every_step(self, media_store, sample_image_data):
        reports = []

        await upload_files(
            media_store,
            "g1",
            [UploadFile("a.jpg", sample_image_data)],
            progress_callback=lambda uploads: reports.append((uploads[0].progress, uploads[0].status)),
        )

        assert reports == [
            (0, UploadProgress.PENDING),
            (10, UploadProgress.PENDING),
            (40, UploadProgress.PENDING),
            (100, UploadProgress.COMPLETE),
        ]

    @pytest.mark.asyncio
    async def test_empty_batch(self, media_store):
        assert await upload_files(media_store, "g1", []) == []
