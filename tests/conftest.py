"""
Pytest configuration and fixtures for purrgallery tests.
"""

import tempfile
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
import pytest_asyncio

import purrgallery.config
from purrgallery.models.database import create_key_value_store
from purrgallery.models.entities import MediaItemRecord, MediaType
from purrgallery.services.blob_store import BlobStore
from purrgallery.services.media_store import MediaStore
from purrgallery.services.metadata import MetadataStore

# 1x1 pixel PNG
SAMPLE_PNG = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010802000000907753de"
    "0000000c4944415408d763f80000000001000100000000000049454e44ae426082"
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def sample_image_data() -> bytes:
    """Provide sample image data for testing."""
    return SAMPLE_PNG


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
    """Point configuration at a throwaway data directory."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("PURRGALLERY_DATA_DIR", str(temp_dir / "data"))
    monkeypatch.delenv("PURRGALLERY_BLOB_DB", raising=False)
    monkeypatch.delenv("PURRGALLERY_METADATA_DB", raising=False)
    monkeypatch.setattr(purrgallery.config, "_config", None)


@pytest.fixture
def metadata_store() -> Generator[MetadataStore, None, None]:
    """Metadata store on an in-memory key-value database."""
    store = MetadataStore(create_key_value_store(":memory:"))
    yield store
    store.close()


@pytest_asyncio.fixture
async def blob_store(temp_dir: Path) -> AsyncGenerator[BlobStore, None]:
    """Blob store on a temporary DuckDB file."""
    store = BlobStore(temp_dir / "media.duckdb")
    yield store
    await store.close()


@pytest_asyncio.fixture
async def media_store(metadata_store: MetadataStore, blob_store: BlobStore) -> AsyncGenerator[MediaStore, None]:
    """Loaded media store over the metadata and blob fixtures."""
    store = MediaStore(metadata_store, blob_store)
    await store.load()
    yield store
    store.close()


class TestDataFactory:
    """Factory class for creating test data objects."""

    @staticmethod
    def create_record(
        gallery_id: str = "gallery-1",
        payload: bytes = SAMPLE_PNG,
        file_name: str = "a.jpg",
        media_type: MediaType = MediaType.PHOTO,
        item_id: str | None = None,
        created_at: int = 1_700_000_000_000,
    ) -> MediaItemRecord:
        """Create a MediaItemRecord for testing."""
        if item_id is None:
            return MediaItemRecord.create_new(gallery_id, payload, file_name, media_type=media_type)
        return MediaItemRecord(
            id=item_id,
            gallery_id=gallery_id,
            type=media_type,
            payload=payload,
            file_name=file_name,
            created_at=created_at,
        )


@pytest.fixture
def test_data_factory() -> TestDataFactory:
    """Provide test data factory."""
    return TestDataFactory()
