"""
Pending upload queue.

Only the batch processor and the upload coordinator mutate the queue.
Everything else reads it through ``items()`` or the event dispatcher.
"""

from ..errors import InvalidTransitionError, PendingItemNotFoundError
from .naming import validate_name
from .types import PendingItem, UploadState

MISSING_PAYLOAD = "file data missing"


class PendingQueue:
    """Ordered collection of pending items, kept in arrival order."""

    def __init__(self):
        self._items: dict[str, PendingItem] = {}

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def add(self, source_name: str, payload: bytes | None, mime_type: str = "") -> PendingItem:
        """Queue a selected file. The name becomes part of a storage path, so
        path-like names are refused."""
        item = PendingItem(
            source_name=validate_name(source_name),
            payload=payload,
            size=len(payload) if payload is not None else 0,
            mime_type=mime_type,
        )
        self._items[item.id] = item
        return item

    def get(self, item_id: str) -> PendingItem:
        item = self._items.get(item_id)
        if item is None:
            raise PendingItemNotFoundError(item_id)
        return item

    def items(self) -> list[PendingItem]:
        return list(self._items.values())

    def queued(self) -> list[PendingItem]:
        """Items waiting for the next dispatch, in arrival order."""
        return [item for item in self._items.values() if item.state == UploadState.QUEUED]

    def in_flight_names(self) -> set[str]:
        """Resolved names of items currently transferring."""
        return {
            item.resolved_name
            for item in self._items.values()
            if item.in_flight and item.resolved_name is not None
        }

    def remove(self, item_id: str) -> PendingItem:
        item = self.get(item_id)
        if item.in_flight:
            raise InvalidTransitionError(
                f"Cannot remove '{item.source_name}' while it is transferring"
            )
        del self._items[item_id]
        return item

    def discard(self, item_id: str) -> None:
        """Drop an item regardless of state, used once it has been promoted."""
        self._items.pop(item_id, None)

    def reject(self, item_id: str, reason: str) -> PendingItem:
        """Flag an item as failed before it reaches the store."""
        item = self.get(item_id)
        item.state = UploadState.FAILED
        item.progress = 0
        item.error = reason
        return item

    def retry(self, item_id: str) -> PendingItem:
        """Put a failed item back in the queue for the next dispatch."""
        item = self.get(item_id)
        if item.state != UploadState.FAILED:
            raise InvalidTransitionError(
                f"Only failed items can be retried, '{item.source_name}' is {item.state.value}"
            )
        item.state = UploadState.QUEUED
        item.progress = None
        item.error = None
        item.resolved_name = None
        return item

    def clear(self) -> None:
        self._items = {
            item_id: item for item_id, item in self._items.items() if item.in_flight
        }
