"""
Event system for FileBox.

Provides the dispatcher that UI bindings subscribe to for pending queue,
upload and registry changes.
"""

from .base import (
    BaseEvent,
    FileDeletedEvent,
    FileRenamedEvent,
    FilesLoadedEvent,
    PendingAddedEvent,
    PendingRemovedEvent,
    UploadFailedEvent,
    UploadProgressEvent,
    UploadSucceededEvent,
)
from .dispatcher import EventDispatcher
from .types import EventType

__all__ = [
    "BaseEvent",
    "EventDispatcher",
    "EventType",
    "FileDeletedEvent",
    "FileRenamedEvent",
    "FilesLoadedEvent",
    "PendingAddedEvent",
    "PendingRemovedEvent",
    "UploadFailedEvent",
    "UploadProgressEvent",
    "UploadSucceededEvent",
]
