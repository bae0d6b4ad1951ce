"""
Display references for stored media payloads.

A display reference is a revocable handle: a ``blob:`` style URL a renderer
can resolve to the payload bytes for as long as the reference is live. The
registry keeps at most one live reference per media item and releases each
reference exactly once.
"""

import uuid

from ..errors import DisplayReferenceError
from ..logging_config import get_logger

logger = get_logger(__name__)

REFERENCE_PREFIX = "blob:purrgallery/"


class DisplayReference:
    """Revocable handle to one item's payload."""

    def __init__(self, item_id: str, payload: bytes):
        self.item_id = item_id
        self.url = f"{REFERENCE_PREFIX}{uuid.uuid4()}"
        self._payload: bytes | None = payload
        self._size = len(payload)

    @property
    def revoked(self) -> bool:
        return self._payload is None

    @property
    def size(self) -> int:
        return self._size

    def read(self) -> bytes:
        """Return the payload bytes, failing once the reference is revoked."""
        if self._payload is None:
            raise DisplayReferenceError(
                f"Display reference {self.url} has been revoked", details={"item_id": self.item_id}
            )
        return self._payload

    def revoke(self) -> bool:
        """
        Release the payload.

        Returns:
            True if this call revoked the reference, False if it was already revoked
        """
        if self._payload is None:
            return False
        self._payload = None
        return True

    def __repr__(self) -> str:
        state = "revoked" if self.revoked else "live"
        return f"DisplayReference(item_id={self.item_id!r}, url={self.url!r}, {state})"


class DisplayReferenceRegistry:
    """Maps media item ids to their single live display reference."""

    def __init__(self) -> None:
        self._by_item: dict[str, DisplayReference] = {}
        self._by_url: dict[str, DisplayReference] = {}

    def acquire(self, item_id: str, payload: bytes) -> DisplayReference:
        """
        Mint the display reference for an item.

        An item that already holds a live reference has it revoked first, so
        the registry never holds two live references for one item.
        """
        previous = self._by_item.get(item_id)
        if previous is not None:
            logger.warning("display_reference_replaced", item_id=item_id, url=previous.url)
            self._drop(previous)

        reference = DisplayReference(item_id, payload)
        self._by_item[item_id] = reference
        self._by_url[reference.url] = reference
        return reference

    def _drop(self, reference: DisplayReference) -> None:
        self._by_item.pop(reference.item_id, None)
        self._by_url.pop(reference.url, None)
        reference.revoke()

    def release(self, item_id: str) -> bool:
        """Revoke the reference of one item. Returns False if it had none."""
        reference = self._by_item.get(item_id)
        if reference is None:
            return False
        self._drop(reference)
        return True

    def release_many(self, item_ids: list[str]) -> int:
        return sum(1 for item_id in item_ids if self.release(item_id))

    def release_all(self) -> int:
        """Revoke every outstanding reference. Returns how many were revoked."""
        references = list(self._by_item.values())
        for reference in references:
            self._drop(reference)
        if references:
            logger.debug("display_references_released", count=len(references))
        return len(references)

    def get(self, item_id: str) -> DisplayReference | None:
        return self._by_item.get(item_id)

    def resolve(self, url: str) -> bytes:
        """
        Resolve a reference URL to payload bytes.

        Raises:
            DisplayReferenceError: If the URL is unknown or was revoked
        """
        reference = self._by_url.get(url)
        if reference is None:
            raise DisplayReferenceError(f"Unknown or revoked display reference {url}", details={"url": url})
        return reference.read()

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._by_item

    def __len__(self) -> int:
        return len(self._by_item)
