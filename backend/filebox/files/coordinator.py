import asyncio

from ..errors import InvalidTransitionError
from ..events import (
    EventDispatcher,
    PendingRemovedEvent,
    UploadFailedEvent,
    UploadProgressEvent,
    UploadSucceededEvent,
)
from ..identity import IdentityProvider
from ..logger import logger
from ..storage import ObjectStore
from .pending import PendingQueue
from .registry import FileRegistry
from .task import TaskFailed, TaskProgress, TaskSucceeded, UploadTask
from .types import PendingItem, UploadState


class UploadCoordinator:
    """Runs resolved uploads concurrently and reconciles their results.

    Each item runs in its own asyncio task. A failure only ever affects the
    item it belongs to: it stays pending with an error while the others
    carry on.
    """

    def __init__(
        self,
        pending: PendingQueue,
        registry: FileRegistry,
        store: ObjectStore,
        identity: IdentityProvider,
        dispatcher: EventDispatcher,
    ):
        self._pending = pending
        self._registry = registry
        self._store = store
        self._identity = identity
        self._dispatcher = dispatcher

        self._tasks: dict[str, UploadTask] = {}
        self._asyncio_tasks: dict[str, asyncio.Task] = {}

    @property
    def active_count(self) -> int:
        return len(self._asyncio_tasks)

    def dispatch(self, batch: list[PendingItem]) -> list[asyncio.Task]:
        """Start one upload per item and return immediately.

        Every item is claimed before this returns, so it is no longer queued
        and its resolved name counts as in flight.
        """
        for item in batch:
            if item.id in self._tasks or item.state != UploadState.QUEUED:
                raise InvalidTransitionError(
                    f"'{item.source_name}' has already been dispatched"
                )

        identity = self._identity.current_user()
        started = []
        for item in batch:
            task = UploadTask(item, identity)
            task.begin()
            self._tasks[item.id] = task
            asyncio_task = asyncio.create_task(self._run(task))
            self._asyncio_tasks[item.id] = asyncio_task
            started.append(asyncio_task)
            logger.info(
                f"Dispatched upload {item.id} ('{item.source_name}' as '{item.resolved_name}')"
            )
        return started

    async def wait_idle(self) -> None:
        """Wait until every dispatched upload has reached a terminal state."""
        while self._asyncio_tasks:
            await asyncio.gather(*self._asyncio_tasks.values(), return_exceptions=True)

    async def _run(self, task: UploadTask) -> None:
        item = task.item
        try:
            async for event in task.run(self._store):
                if isinstance(event, TaskProgress):
                    await self._dispatcher.dispatch(
                        UploadProgressEvent(item_id=item.id, progress=event.progress)
                    )
                elif isinstance(event, TaskFailed):
                    await self._on_failed(item, event.reason)
                elif isinstance(event, TaskSucceeded):
                    self._registry.add(event.record)
                    self._pending.discard(item.id)
                    logger.info(f"Upload {item.id} stored as '{event.record.name}'")
                    await self._dispatcher.dispatch(
                        UploadSucceededEvent(
                            item_id=item.id,
                            record_id=event.record.id,
                            name=event.record.name,
                        )
                    )
                    await self._dispatcher.dispatch(
                        PendingRemovedEvent(item_id=item.id, reason="uploaded")
                    )
        except Exception as e:
            logger.exception(f"Upload {item.id} ('{item.source_name}') crashed: {e}")
            if item.id in self._pending and not task.terminal:
                failed = task.fail(str(e) or type(e).__name__)
                await self._on_failed(item, failed.reason)
        finally:
            self._tasks.pop(item.id, None)
            self._asyncio_tasks.pop(item.id, None)

    async def _on_failed(self, item: PendingItem, reason: str) -> None:
        logger.warning(f"Upload {item.id} ('{item.source_name}') failed: {reason}")
        await self._dispatcher.dispatch(UploadFailedEvent(item_id=item.id, reason=reason))
