"""Event dispatcher - dispatches typed events to registered handlers.

UI bindings observe the pending queue and the file registry through this
dispatcher instead of mutating either collection directly.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, TypeVar

from ..logger import logger
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
from .types import EventType

EventT = TypeVar("EventT", bound=BaseEvent)

# Handlers can be sync or async
EventHandler = Callable[[EventT], None] | Callable[[EventT], Awaitable[None]]


class EventDispatcher:
    """Dispatches events to registered handlers.

    Handlers of one event run concurrently. A failing handler is logged and
    does not affect the other handlers or the caller.
    """

    def __init__(self):
        self._handlers: dict[EventType, list[Callable]] = {
            event_type: [] for event_type in EventType
        }

    # Registration methods

    def on_pending_added(self, handler: EventHandler[PendingAddedEvent]) -> None:
        self._handlers[EventType.PENDING_ADDED].append(handler)

    def on_pending_removed(self, handler: EventHandler[PendingRemovedEvent]) -> None:
        self._handlers[EventType.PENDING_REMOVED].append(handler)

    def on_upload_progress(self, handler: EventHandler[UploadProgressEvent]) -> None:
        self._handlers[EventType.UPLOAD_PROGRESS].append(handler)

    def on_upload_failed(self, handler: EventHandler[UploadFailedEvent]) -> None:
        self._handlers[EventType.UPLOAD_FAILED].append(handler)

    def on_upload_succeeded(
        self, handler: EventHandler[UploadSucceededEvent]
    ) -> None:
        self._handlers[EventType.UPLOAD_SUCCEEDED].append(handler)

    def on_file_deleted(self, handler: EventHandler[FileDeletedEvent]) -> None:
        self._handlers[EventType.FILE_DELETED].append(handler)

    def on_file_renamed(self, handler: EventHandler[FileRenamedEvent]) -> None:
        self._handlers[EventType.FILE_RENAMED].append(handler)

    def on_files_loaded(self, handler: EventHandler[FilesLoadedEvent]) -> None:
        self._handlers[EventType.FILES_LOADED].append(handler)

    # Dispatch

    async def dispatch(self, event: BaseEvent) -> None:
        """Dispatch event to all handlers registered for its type."""
        handlers = self._handlers.get(event.event_type, [])

        if not handlers:
            logger.debug(f"No handlers registered for event: {event.event_type}")
            return

        tasks = []
        for handler in handlers:
            if inspect.iscoroutinefunction(handler):
                tasks.append(asyncio.create_task(handler(event)))
            else:
                tasks.append(asyncio.create_task(asyncio.to_thread(handler, event)))

        results = await asyncio.gather(*tasks, return_exceptions=True)
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Handler {getattr(handler, '__name__', handler)!r} failed "
                    f"for event {event.event_type.value}: {result}",
                    exc_info=result,
                )
