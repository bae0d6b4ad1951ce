"""
Database schema definitions for purrgallery.

Two DuckDB files back the two storage tiers: the blob store keeps media
records in ``media``; the metadata tier keeps JSON snapshots and session
markers in ``kv_store``.
"""

# Insertion order of media records; preserved across upserts
MEDIA_SEQUENCE_SCHEMA = "CREATE SEQUENCE IF NOT EXISTS media_seq START 1;"

MEDIA_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS media (
    id TEXT PRIMARY KEY,
    gallery_id TEXT NOT NULL,
    type TEXT NOT NULL,
    file_name TEXT NOT NULL,
    created_at BIGINT NOT NULL,
    payload BLOB NOT NULL,
    seq BIGINT NOT NULL DEFAULT nextval('media_seq')
);
"""

KV_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

MEDIA_COLUMNS = ("id", "gallery_id", "type", "file_name", "created_at", "payload")

MEDIA_SCHEMA_STATEMENTS = [MEDIA_SEQUENCE_SCHEMA, MEDIA_TABLE_SCHEMA]

KV_SCHEMA_STATEMENTS = [KV_TABLE_SCHEMA]


def get_media_schema_statements() -> list[str]:
    """Statements creating the blob store table."""
    return MEDIA_SCHEMA_STATEMENTS


def get_kv_schema_statements() -> list[str]:
    """Statements creating the key-value table."""
    return KV_SCHEMA_STATEMENTS


def validate_media_schema() -> bool:
    """
    Check that the media table declares every column a record needs.

    Returns:
        True if schema is compatible, False otherwise
    """
    schema_lower = MEDIA_TABLE_SCHEMA.lower()
    return all(column in schema_lower for column in MEDIA_COLUMNS)
