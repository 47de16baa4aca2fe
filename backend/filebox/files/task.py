"""
Upload task state machine.

    queued -> transferring -> succeeded | failed

The coordinator claims a task with ``begin()`` when it dispatches it, so the
item leaves the queue and its name is reserved before any await. The task is
then driven by iterating ``run()``, which yields one event per observable
change: ``TaskProgress`` while transferring, then exactly one ``TaskFailed``
or ``TaskSucceeded``.
"""

import asyncio
from datetime import datetime
from typing import AsyncGenerator

from pydantic import BaseModel

from ..errors import InvalidFileNameError, InvalidTransitionError
from ..identity import Identity
from ..logger import logger
from ..storage import ObjectStore
from .naming import validate_name
from .types import FileRecord, PendingItem, UploadState

MISSING_INPUT = "missing file or unauthenticated"
URL_UNAVAILABLE = "failed to get download URL"


class TaskProgress(BaseModel):
    progress: int


class TaskFailed(BaseModel):
    reason: str


class TaskSucceeded(BaseModel):
    record: FileRecord


TaskEvent = TaskProgress | TaskFailed | TaskSucceeded


def _percent(transferred: int, total: int) -> int:
    if total <= 0:
        return 100
    return round(transferred * 100 / total)


class UploadTask:
    def __init__(self, item: PendingItem, identity: Identity | None):
        if item.resolved_name is None:
            raise InvalidTransitionError(
                f"'{item.source_name}' has not been through name resolution"
            )
        self.item = item
        self.identity = identity
        self._dispatched = False
        self._running = False
        self._last_progress: int | None = None

    @property
    def state(self) -> UploadState:
        return self.item.state

    @property
    def terminal(self) -> bool:
        return self.state in (UploadState.SUCCEEDED, UploadState.FAILED)

    def report_progress(self, value: int) -> int:
        """Record a progress value, clamped to be non-decreasing within 0..100."""
        value = max(0, min(100, int(value)))
        if self._last_progress is not None and value < self._last_progress:
            value = self._last_progress
        self._last_progress = value
        self.item.progress = value
        return value

    def fail(self, reason: str) -> TaskFailed:
        if self.terminal:
            raise InvalidTransitionError(
                f"'{self.item.source_name}' already reached {self.state.value}"
            )
        self.item.state = UploadState.FAILED
        self.item.progress = 0
        self.item.error = reason
        return TaskFailed(reason=reason)

    def begin(self) -> None:
        """Move the item out of the queue: ``transferring``, or ``failed``
        when there is nothing to send or nobody to send it as.

        Synchronous, so the claim is visible before the caller next awaits.
        """
        if self._dispatched or self.state != UploadState.QUEUED:
            raise InvalidTransitionError(
                f"'{self.item.source_name}' was already dispatched"
            )
        self._dispatched = True

        if self.item.payload is None or self.identity is None:
            self.fail(MISSING_INPUT)
            return
        try:
            validate_name(self.item.resolved_name)
        except InvalidFileNameError as e:
            self.fail(str(e))
            return

        self.item.state = UploadState.TRANSFERRING
        self.item.error = None
        self.report_progress(0)

    async def run(self, store: ObjectStore) -> AsyncGenerator[TaskEvent, None]:
        if self._running:
            raise InvalidTransitionError(
                f"'{self.item.source_name}' is already running"
            )
        self._running = True
        if not self._dispatched:
            self.begin()

        item = self.item
        if self.state == UploadState.FAILED:
            yield TaskFailed(reason=item.error or MISSING_INPUT)
            return

        path = f"{self.identity.storage_prefix}/{item.resolved_name}"
        progress_queue: asyncio.Queue[int | None] = asyncio.Queue()

        def on_progress(transferred: int, total: int) -> None:
            progress_queue.put_nowait(_percent(transferred, total))

        async def transfer() -> str:
            try:
                return await store.put(path, item.payload, on_progress)
            finally:
                progress_queue.put_nowait(None)

        transfer_task = asyncio.create_task(transfer())
        while (percent := await progress_queue.get()) is not None:
            yield TaskProgress(progress=self.report_progress(percent))

        try:
            storage_path = await transfer_task
        except Exception as e:
            logger.warning(f"Upload of '{item.resolved_name}' failed: {e}")
            yield self.fail(str(e) or type(e).__name__)
            return

        try:
            url = await store.get_url(storage_path)
        except Exception as e:
            # The bytes stay in the store without a registry entry
            logger.error(
                f"Stored '{storage_path}' but could not get its download URL: {e}"
            )
            yield self.fail(URL_UNAVAILABLE)
            return

        record = FileRecord(
            id=item.id,
            name=item.resolved_name,
            size=item.size,
            mime_type=item.mime_type,
            uploaded_at=datetime.now(),
            url=url,
            storage_path=storage_path,
        )
        self.report_progress(100)
        yield TaskSucceeded(record=record)
        # Resumed only once the consumer has taken the record
        item.state = UploadState.SUCCEEDED
