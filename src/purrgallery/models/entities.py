"""
Entity models for purrgallery.

Categories own galleries and galleries own media items. Categories and
galleries are persisted as JSON snapshots by the metadata store; media item
records are persisted, payload included, by the blob store. MediaItem is the
display form handed to consumers: the record without its payload plus a
display reference URL.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def generate_id() -> str:
    """Generate a new entity identifier (uuid4, collisions are negligible)."""
    return str(uuid.uuid4())


def now_millis() -> int:
    """Current time as milliseconds since the epoch."""
    return int(time.time() * 1000)


class MediaType(str, Enum):
    """Coarse media type tag."""

    PHOTO = "PHOTO"
    VIDEO = "VIDEO"

    @classmethod
    def from_content_type(cls, content_type: str | None) -> "MediaType":
        """
        Derive the type tag from a MIME type.

        Anything that is not ``image/*`` is treated as a video.
        """
        if content_type and content_type.lower().startswith("image"):
            return cls.PHOTO
        return cls.VIDEO


@dataclass(frozen=True)
class Category:
    """Top-level grouping of galleries."""

    id: str
    name: str
    description: str
    cover_image: str | None = None
    created_at: int = 0

    @classmethod
    def create_new(cls, name: str, description: str, cover_image: str | None = None) -> "Category":
        """Create a Category with a generated id and the current timestamp."""
        return cls(
            id=generate_id(),
            name=name,
            description=description,
            cover_image=cover_image,
            created_at=now_millis(),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
        }
        if self.cover_image is not None:
            data["coverImage"] = self.cover_image
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Category":
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            cover_image=data.get("coverImage"),
            created_at=int(data.get("createdAt", 0)),
        )


@dataclass(frozen=True)
class Gallery:
    """A named collection of media items owned by one category."""

    id: str
    category_id: str
    title: str
    description: str | None = None
    cover_image: str | None = None
    created_at: int = 0

    @classmethod
    def create_new(
        cls,
        category_id: str,
        title: str,
        description: str | None = None,
        cover_image: str | None = None,
    ) -> "Gallery":
        """Create a Gallery with a generated id and the current timestamp."""
        return cls(
            id=generate_id(),
            category_id=category_id,
            title=title,
            description=description,
            cover_image=cover_image,
            created_at=now_millis(),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "categoryId": self.category_id,
            "title": self.title,
            "createdAt": self.created_at,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.cover_image is not None:
            data["coverImage"] = self.cover_image
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Gallery":
        return cls(
            id=data["id"],
            category_id=data["categoryId"],
            title=data["title"],
            description=data.get("description"),
            cover_image=data.get("coverImage"),
            created_at=int(data.get("createdAt", 0)),
        )


@dataclass(frozen=True)
class MediaItemRecord:
    """
    Persisted form of a media item.

    This is what the blob store reads and writes; ``payload`` holds the raw
    file bytes.
    """

    id: str
    gallery_id: str
    type: MediaType
    payload: bytes = field(repr=False)
    file_name: str
    created_at: int

    @classmethod
    def create_new(
        cls,
        gallery_id: str,
        payload: bytes,
        file_name: str,
        content_type: str | None = None,
        media_type: MediaType | None = None,
    ) -> "MediaItemRecord":
        """
        Create a record with a generated id and the current timestamp.

        Args:
            gallery_id: Owning gallery
            payload: Raw file bytes
            file_name: Original file name
            content_type: MIME type used to derive the type tag
            media_type: Explicit type tag, overrides ``content_type``

        Returns:
            New MediaItemRecord instance
        """
        return cls(
            id=generate_id(),
            gallery_id=gallery_id,
            type=media_type or MediaType.from_content_type(content_type),
            payload=bytes(payload),
            file_name=file_name,
            created_at=now_millis(),
        )

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass(frozen=True)
class MediaItem:
    """
    Display form of a media item.

    ``url`` is the display reference minted for this item by the media
    store; it stays valid until the item is deleted or the session closes.
    ``payload`` is only set when the store was asked to retain it.
    """

    id: str
    gallery_id: str
    type: MediaType
    file_name: str
    created_at: int
    url: str
    payload: bytes | None = field(default=None, repr=False)

    @classmethod
    def from_record(cls, record: MediaItemRecord, url: str, retain_payload: bool = False) -> "MediaItem":
        return cls(
            id=record.id,
            gallery_id=record.gallery_id,
            type=record.type,
            file_name=record.file_name,
            created_at=record.created_at,
            url=url,
            payload=record.payload if retain_payload else None,
        )

    @property
    def is_photo(self) -> bool:
        return self.type is MediaType.PHOTO

    @property
    def is_video(self) -> bool:
        return self.type is MediaType.VIDEO
