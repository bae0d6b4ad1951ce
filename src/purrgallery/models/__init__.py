"""
Models module for purrgallery.

This module contains data models and schemas:
- Category, Gallery, MediaItemRecord, MediaItem: hierarchy entities
- DatabaseManager, KeyValueStore: DuckDB connection and key-value access
- Schema statements for the blob and key-value tables
"""

from .database import DatabaseManager, KeyValueStore, create_key_value_store
from .entities import Category, Gallery, MediaItem, MediaItemRecord, MediaType, generate_id, now_millis
from .schema import get_kv_schema_statements, get_media_schema_statements, validate_media_schema

__all__ = [
    "Category",
    "Gallery",
    "MediaItem",
    "MediaItemRecord",
    "MediaType",
    "generate_id",
    "now_millis",
    "DatabaseManager",
    "KeyValueStore",
    "create_key_value_store",
    "get_kv_schema_statements",
    "get_media_schema_statements",
    "validate_media_schema",
]
