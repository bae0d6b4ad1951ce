"""
purrgallery - Local-first photo and video gallery store

A local media library organized as Category -> Gallery -> MediaItem with:
- Binary payload storage in an embedded DuckDB blob table
- Category and gallery metadata kept as JSON snapshots
- Cascading deletes across the hierarchy
- Revocable display references for stored payloads
"""

__version__ = "0.1.0"
__author__ = "purrgallery"
__description__ = "Local-first hierarchical photo and video gallery store"
