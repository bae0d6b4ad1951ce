"""Upload pipeline: sequential import of files into one gallery with progress tracking."""

import mimetypes
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..errors import PurrGalleryError
from ..logging_config import get_logger
from ..models.entities import MediaItem, MediaItemRecord
from .media_store import MediaStore

logger = get_logger(__name__)

ProgressCallback = Callable[[list["UploadProgress"]], None]


@dataclass
class UploadFile:
    """A file handed to the upload pipeline."""

    file_name: str
    data: bytes
    content_type: str | None = None

    def guess_content_type(self) -> str | None:
        if self.content_type:
            return self.content_type
        return mimetypes.guess_type(self.file_name)[0]


class UploadProgress:
    """Progress of one file in an upload batch."""

    PENDING = "pending"
    COMPLETE = "complete"
    ERROR = "error"

    def __init__(self, file_name: str, total_bytes: int = 0):
        self.file_name = file_name
        self.total_bytes = total_bytes
        self.progress = 0
        self.status = self.PENDING
        self.error: str | None = None
        self.item: MediaItem | None = None
        self.start_time = datetime.now()

    def update(self, progress: int, status: str = PENDING) -> None:
        self.progress = max(0, min(100, progress))
        self.status = status

    def complete(self, item: MediaItem) -> None:
        self.item = item
        self.update(100, self.COMPLETE)

    def fail(self, error: Exception) -> None:
        self.error = str(error)
        self.update(0, self.ERROR)

    @property
    def elapsed_time(self) -> timedelta:
        return datetime.now() - self.start_time

    def to_dict(self) -> dict:
        return {
            "file_name": self.file_name,
            "total_bytes": self.total_bytes,
            "progress": self.progress,
            "status": self.status,
            "error": self.error,
            "elapsed_time": self.elapsed_time.total_seconds(),
        }


async def upload_files(
    store: MediaStore,
    gallery_id: str,
    files: Sequence[UploadFile],
    progress_callback: ProgressCallback | None = None,
) -> list[UploadProgress]:
    """
    Add several files to one gallery, one after another.

    Each file gets its own UploadProgress. A failing file is marked as
    ``error`` and the batch continues with the next one.

    Args:
        store: Media store receiving the items
        gallery_id: Target gallery
        files: Files to upload, in order
        progress_callback: Called with the full progress list after every change

    Returns:
        Final progress of every file, in input order
    """
    uploads = [UploadProgress(f.file_name, len(f.data)) for f in files]

    def report() -> None:
        if progress_callback:
            progress_callback(uploads)

    report()

    for upload_file, progress in zip(files, uploads, strict=True):
        progress.update(10)
        report()

        try:
            record = MediaItemRecord.create_new(
                gallery_id=gallery_id,
                payload=upload_file.data,
                file_name=upload_file.file_name,
                content_type=upload_file.guess_content_type(),
            )
            progress.update(40)
            report()

            item = await store.add_media(record)
            progress.complete(item)
        except PurrGalleryError as e:
            logger.error("upload_failed", file_name=upload_file.file_name, gallery_id=gallery_id, error=str(e))
            progress.fail(e)

        report()

    successful = sum(1 for p in uploads if p.status == UploadProgress.COMPLETE)
    logger.info("upload_batch_completed", gallery_id=gallery_id, successful=successful, total=len(uploads))
    return uploads
