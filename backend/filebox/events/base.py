"""Base event model for all events."""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from .types import EventType


class BaseEvent(BaseModel):
    """Base class for all events."""

    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# Pending queue events
class PendingAddedEvent(BaseEvent):
    """Fired when files are added to the pending queue."""

    event_type: EventType = EventType.PENDING_ADDED
    item_ids: list[str] = Field(..., description="IDs of the new pending items")


class PendingRemovedEvent(BaseEvent):
    """Fired when an item leaves the pending queue."""

    event_type: EventType = EventType.PENDING_REMOVED
    item_id: str = Field(..., description="Pending item ID")
    reason: Literal["cancelled", "dropped", "uploaded"] = Field(
        ..., description="Why the item was removed"
    )


# Upload events
class UploadProgressEvent(BaseEvent):
    """Fired when an upload reports progress."""

    event_type: EventType = EventType.UPLOAD_PROGRESS
    item_id: str = Field(..., description="Pending item ID")
    progress: int = Field(..., ge=0, le=100, description="Clamped progress percent")


class UploadFailedEvent(BaseEvent):
    """Fired when an upload reaches the failed state."""

    event_type: EventType = EventType.UPLOAD_FAILED
    item_id: str = Field(..., description="Pending item ID")
    reason: str = Field(..., description="Human-readable failure reason")


class UploadSucceededEvent(BaseEvent):
    """Fired when an upload is confirmed and promoted into the registry."""

    event_type: EventType = EventType.UPLOAD_SUCCEEDED
    item_id: str = Field(..., description="Pending item ID")
    record_id: str = Field(..., description="ID of the new file record")
    name: str = Field(..., description="Stored file name")


# Registry events
class FileDeletedEvent(BaseEvent):
    """Fired after a file is removed from the registry."""

    event_type: EventType = EventType.FILE_DELETED
    record_id: str = Field(..., description="File record ID")
    name: str = Field(..., description="File name")


class FileRenamedEvent(BaseEvent):
    """Fired after a file record is renamed."""

    event_type: EventType = EventType.FILE_RENAMED
    record_id: str = Field(..., description="File record ID")
    old_name: str
    new_name: str


class FilesLoadedEvent(BaseEvent):
    """Fired when the registry is reloaded from the object store."""

    event_type: EventType = EventType.FILES_LOADED
    count: int = Field(..., description="Number of files loaded")
