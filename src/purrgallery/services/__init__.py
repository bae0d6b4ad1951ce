"""
Services module for purrgallery.

This module contains the storage tiers and the store built on them:
- BlobStore: asynchronous payload storage in DuckDB
- MetadataStore: category and gallery snapshots in the key-value store
- DisplayReferenceRegistry: revocable display references for payloads
- MediaStore: the hierarchical model consumers use
- SessionStore: session markers for the authentication gate
- upload_files: batch upload with progress tracking
"""

from pathlib import Path

from ..config import get_blob_db_path, get_metadata_db_path
from ..logging_config import get_logger
from ..models.database import create_key_value_store
from .blob_store import BlobStore
from .display_refs import DisplayReference, DisplayReferenceRegistry
from .media_store import MediaStore, StoreSnapshot
from .metadata import MetadataStore
from .session import SessionStore, User, UserRole
from .upload import UploadFile, UploadProgress, upload_files

logger = get_logger(__name__)


def create_media_store(
    blob_db_path: str | Path | None = None,
    metadata_db_path: str | Path | None = None,
    retain_payloads: bool = False,
) -> MediaStore:
    """
    Build a MediaStore over the configured storage files.

    Args:
        blob_db_path: DuckDB file for payloads (defaults to PURRGALLERY_BLOB_DB)
        metadata_db_path: DuckDB file for snapshots (defaults to PURRGALLERY_METADATA_DB)
        retain_payloads: Keep payload bytes on display items

    Returns:
        A MediaStore that still has to be loaded
    """
    blob_path = str(blob_db_path or get_blob_db_path())
    metadata_path = str(metadata_db_path or get_metadata_db_path())

    store = MediaStore(
        metadata_store=MetadataStore(create_key_value_store(metadata_path)),
        blob_store=BlobStore(blob_path),
        retain_payloads=retain_payloads,
    )
    logger.info("media_store_created", blob_db_path=blob_path, metadata_db_path=metadata_path)
    return store


def create_session_store(metadata_db_path: str | Path | None = None) -> SessionStore:
    """Build a SessionStore on the metadata key-value file."""
    return SessionStore(create_key_value_store(str(metadata_db_path or get_metadata_db_path())))


__all__ = [
    "BlobStore",
    "DisplayReference",
    "DisplayReferenceRegistry",
    "MediaStore",
    "MetadataStore",
    "SessionStore",
    "StoreSnapshot",
    "UploadFile",
    "UploadProgress",
    "User",
    "UserRole",
    "create_media_store",
    "create_session_store",
    "upload_files",
]
