"""Invoke tasks for importing and maintaining a local gallery.

Examples:
    invoke -c purrgallery.cli.batch_upload batch-upload --directory ./photos --gallery-id <id>
    invoke -c purrgallery.cli.batch_upload collect-orphans
"""

import asyncio
import mimetypes
import os

import structlog
from dotenv import load_dotenv
from invoke import Context, task

from purrgallery.logging_config import configure_structured_logging
from purrgallery.services import MediaStore, UploadFile, create_media_store, upload_files
from purrgallery.services.upload import UploadProgress

logger = structlog.get_logger()


def _load_environment(env_file: str) -> None:
    if os.path.exists(env_file):
        logger.info(f"Loading environment variables from {env_file}")
        load_dotenv(dotenv_path=env_file)
    else:
        logger.warning(f"Environment file not found at {env_file}. Using existing environment.")


def is_media_file(path: str) -> bool:
    """True for files whose guessed MIME type is an image or a video."""
    content_type = mimetypes.guess_type(path)[0] or ""
    return content_type.startswith(("image/", "video/"))


def find_media_files(directory: str, recursive: bool = False) -> list[str]:
    """List media files in a directory, sorted by path."""
    media_files = []
    if recursive:
        for root, _, files in os.walk(directory):
            for name in files:
                if is_media_file(name):
                    media_files.append(os.path.join(root, name))
    else:
        for name in os.listdir(directory):
            path = os.path.join(directory, name)
            if os.path.isfile(path) and is_media_file(name):
                media_files.append(path)
    return sorted(media_files)


async def _upload(store: MediaStore, gallery_id: str, paths: list[str]) -> list[UploadProgress]:
    async with store:
        if store.get_gallery(gallery_id) is None:
            logger.error("Gallery not found", gallery_id=gallery_id)
            return []

        files = []
        for path in paths:
            with open(path, "rb") as f:
                files.append(UploadFile(file_name=os.path.basename(path), data=f.read()))

        return await upload_files(store, gallery_id, files)


async def _collect_orphans(store: MediaStore) -> list[str]:
    async with store:
        return await store.collect_orphans()


@task
def batch_upload(
    c: Context,
    directory: str,
    gallery_id: str,
    env_file: str = ".env",
    recursive: bool = False,
    dry_run: bool = False,
):
    """
    Upload photos and videos from a local directory into a gallery.

    Args:
        c (Context): Invoke context.
        directory (str): Path to the directory containing media files.
        gallery_id (str): Gallery receiving the files.
        env_file (str): Path to the environment file. Default is '.env'.
        recursive (bool): Search for files in subdirectories. Default is False.
        dry_run (bool): If True, lists files to be processed without uploading. Default is False.
    """
    _load_environment(env_file)
    configure_structured_logging()

    if not os.path.isdir(directory):
        logger.error(f"Directory not found: {directory}")
        return

    media_files = find_media_files(directory, recursive)
    if not media_files:
        logger.warning("No media files found to process.")
        return

    logger.info(f"Found {len(media_files)} media file(s) to process.", gallery_id=gallery_id)

    if dry_run:
        print("\n--- Dry Run Mode: Files to be processed ---")
        for file_path in media_files:
            print(f"- {file_path}")
        print("--- End of Dry Run ---")
        return

    results = asyncio.run(_upload(create_media_store(), gallery_id, media_files))

    successful = sum(1 for r in results if r.status == UploadProgress.COMPLETE)
    failed = len(results) - successful
    logger.info("Batch upload finished.", successful=successful, failed=failed, total=len(results))
    print(f"\nBatch upload complete. Successful: {successful}, Failed: {failed}")


@task
def collect_orphans(c: Context, env_file: str = ".env"):
    """
    Delete stored media whose gallery no longer exists.

    Args:
        c (Context): Invoke context.
        env_file (str): Path to the environment file. Default is '.env'.
    """
    _load_environment(env_file)
    configure_structured_logging()

    removed = asyncio.run(_collect_orphans(create_media_store()))
    print(f"Removed {len(removed)} orphaned media record(s).")
