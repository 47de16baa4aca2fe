"""Event type definitions."""

from enum import Enum


class EventType(str, Enum):
    """All event types in the system."""

    # Pending queue events
    PENDING_ADDED = "pending.added"
    PENDING_REMOVED = "pending.removed"

    # Upload events
    UPLOAD_PROGRESS = "upload.progress"
    UPLOAD_FAILED = "upload.failed"
    UPLOAD_SUCCEEDED = "upload.succeeded"

    # Registry events
    FILE_DELETED = "file.deleted"
    FILE_RENAMED = "file.renamed"
    FILES_LOADED = "files.loaded"
