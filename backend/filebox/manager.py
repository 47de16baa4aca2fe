"""
FileManager ties the pending queue, batch processor, upload coordinator and
file registry together for one signed-in client.
"""

import asyncio

from .config import Settings
from .errors import NotAuthenticatedError
from .events import EventDispatcher, PendingAddedEvent, PendingRemovedEvent
from .files import (
    BatchProcessor,
    BatchResult,
    CollisionReport,
    FilePage,
    FileRegistry,
    FileSort,
    PendingItem,
    PendingQueue,
    PolicyPrompt,
    StorageUsage,
    UploadCoordinator,
    validate_name,
)
from .identity import Identity, IdentityProvider, LocalIdentityProvider
from .logger import log_exception, logger
from .preferences import PreferenceStore
from .storage import LocalObjectStore, ObjectStore


class FileManager:
    def __init__(
        self,
        store: ObjectStore,
        identity: IdentityProvider,
        preferences: PreferenceStore,
        storage_limit: int = 5 * 1024 * 1024 * 1024,
        dispatcher: EventDispatcher | None = None,
    ):
        self.store = store
        self.identity = identity
        self.preferences = preferences
        self.storage_limit = storage_limit
        self.events = dispatcher or EventDispatcher()

        self.pending = PendingQueue()
        self.registry = FileRegistry(store, self.events)
        self.batches = BatchProcessor(self.pending)
        self.uploads = UploadCoordinator(
            self.pending, self.registry, store, identity, self.events
        )
        self._upload_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileManager":
        return cls(
            store=LocalObjectStore(
                settings.storage_root,
                settings.public_base_url,
                chunk_size=settings.upload_chunk_size,
            ),
            identity=LocalIdentityProvider(settings.accounts),
            preferences=PreferenceStore(settings.preferences_file),
            storage_limit=settings.storage_limit,
        )

    def require_user(self) -> Identity:
        user = self.identity.current_user()
        if user is None:
            raise NotAuthenticatedError()
        return user

    # Session

    async def sign_in(self, email: str, password: str) -> Identity:
        user = await self.identity.sign_in(email, password)
        await self.load_files()
        return user

    async def sign_out(self) -> None:
        await self.identity.sign_out()
        self.registry.clear()
        self.pending.clear()

    async def delete_account(self, password: str) -> None:
        await self.identity.delete_account(password)
        self.registry.clear()
        self.pending.clear()

    @log_exception("Loading files from storage", default_return=None)
    async def load_files(self) -> int | None:
        """Reload the registry from the store. Failures are logged, not raised."""
        user = self.require_user()
        return await self.registry.load(user.storage_prefix)

    # Pending queue

    async def add_files(self, files: list[tuple[str, bytes | None, str]]) -> list[PendingItem]:
        """Queue selected files given as ``(name, payload, mime_type)``.

        Names are checked before anything is queued, so one bad name rejects
        the whole selection.
        """
        files = [(validate_name(name), payload, mime_type) for name, payload, mime_type in files]
        items = [self.pending.add(name, payload, mime_type) for name, payload, mime_type in files]
        logger.info(f"Queued {len(items)} file(s) for upload")
        await self.events.dispatch(PendingAddedEvent(item_ids=[item.id for item in items]))
        return items

    async def cancel_pending(self, item_id: str) -> None:
        """Remove a pending item that has not been dispatched."""
        self.pending.remove(item_id)
        await self.events.dispatch(PendingRemovedEvent(item_id=item_id, reason="cancelled"))

    def retry_pending(self, item_id: str) -> PendingItem:
        return self.pending.retry(item_id)

    def check_collisions(self) -> CollisionReport:
        return self.batches.check()

    async def upload_pending(self, ask_policy: PolicyPrompt) -> BatchResult:
        """Resolve names for every queued item and dispatch the uploads.

        Calls are serialized so each pass sees the names claimed by the one
        before it.
        """
        async with self._upload_lock:
            taken = self.registry.names() | self.pending.in_flight_names()
            result = await self.batches.prepare(taken, ask_policy)
            if result.aborted:
                logger.info("Upload aborted by collision policy")
                return result

            self.uploads.dispatch(result.resolved)

        for item_id in result.dropped:
            await self.events.dispatch(PendingRemovedEvent(item_id=item_id, reason="dropped"))
        return result

    # Registry

    def list_files(
        self, search: str = "", sort: FileSort | None = None, page: int = 1, page_size: int | None = None
    ) -> FilePage:
        preferences = self.preferences.load()
        return self.registry.page(
            search,
            sort or preferences.sort_order.to_file_sort(),
            page,
            page_size or preferences.files_per_page,
        )

    async def rename_file(self, record_id: str, new_name: str) -> str:
        return await self.registry.rename(
            record_id, new_name, reserved=self.pending.in_flight_names()
        )

    async def delete_file(self, record_id: str) -> None:
        await self.registry.delete(record_id)

    def usage(self) -> StorageUsage:
        return self.registry.usage(self.storage_limit)
