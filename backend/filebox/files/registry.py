"""
Registry of confirmed files.

Records are kept most-recent-first. Deletion goes through the object store
before the local record is removed.
"""

import asyncio
import unicodedata
from datetime import datetime
from typing import Any, Callable, Iterable

from ..errors import FileBoxError, RecordNotFoundError, StorageError
from ..events import EventDispatcher, FileDeletedEvent, FileRenamedEvent, FilesLoadedEvent
from ..logger import logger
from ..storage import ObjectStore, StoredObject
from .naming import resolve_name, validate_name
from .types import FilePage, FileRecord, FileSort, SortDirection, SortField, StorageUsage
from .utils import format_bytes


def _collate(value: str) -> tuple[str, str]:
    """Order by the letters without accents first, so "éclair" sorts
    between "Eagle" and "zeta" whatever the process locale is."""
    decomposed = unicodedata.normalize("NFD", value.casefold())
    base = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return base, decomposed


_SORT_KEYS: dict[SortField, Callable[[FileRecord], Any]] = {
    SortField.NAME: lambda record: _collate(record.name),
    SortField.TYPE: lambda record: _collate(record.mime_type),
    SortField.SIZE: lambda record: record.size,
    SortField.UPLOAD_DATE: lambda record: record.uploaded_at.timestamp(),
}


class FileRegistry:
    def __init__(self, store: ObjectStore, dispatcher: EventDispatcher | None = None):
        self._store = store
        self._dispatcher = dispatcher or EventDispatcher()
        self._records: list[FileRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: str) -> bool:
        return any(record.id == record_id for record in self._records)

    def get(self, record_id: str) -> FileRecord:
        for record in self._records:
            if record.id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    def names(self, exclude_id: str | None = None) -> set[str]:
        return {record.name for record in self._records if record.id != exclude_id}

    def add(self, record: FileRecord) -> None:
        """Insert a newly confirmed record at the front."""
        if record.name in self.names():
            raise FileBoxError(f"A file named '{record.name}' is already registered")
        self._records.insert(0, record)

    def clear(self) -> None:
        self._records = []

    # Projections

    def list(self, search: str = "", sort: FileSort | None = None) -> list[FileRecord]:
        """Filter by case-insensitive substring on the name and sort.

        Records that compare equal keep their registry order.
        """
        sort = sort or FileSort()
        needle = search.casefold()
        matches = [record for record in self._records if needle in record.name.casefold()]
        return sorted(
            matches,
            key=_SORT_KEYS[sort.field],
            reverse=sort.direction == SortDirection.DESC,
        )

    def page(
        self,
        search: str = "",
        sort: FileSort | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> FilePage:
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be positive")
        records = self.list(search, sort)
        start = (page - 1) * page_size
        return FilePage(
            items=records[start : start + page_size],
            total_count=len(records),
            page=page,
            page_size=page_size,
        )

    def usage(self, limit: int) -> StorageUsage:
        used = sum(record.size for record in self._records)
        percent = round(used / limit * 100, 2) if limit > 0 else 0.0
        return StorageUsage(
            used=used,
            limit=limit,
            percent=percent,
            used_display=format_bytes(used),
            limit_display=format_bytes(limit),
        )

    # Mutations

    async def rename(
        self, record_id: str, new_name: str, reserved: Iterable[str] = ()
    ) -> str:
        """Rename a record, suffixing the name if another file already uses it.

        Args:
            record_id: Record to rename
            new_name: Requested name
            reserved: Extra names to avoid, such as in-flight uploads

        Returns:
            The name actually assigned
        """
        record = self.get(record_id)
        taken = self.names(exclude_id=record_id) | set(reserved)
        final_name = resolve_name(validate_name(new_name), taken)

        old_name = record.name
        record.name = final_name
        logger.info(f"Renamed file {record_id} from '{old_name}' to '{final_name}'")
        await self._dispatcher.dispatch(
            FileRenamedEvent(record_id=record_id, old_name=old_name, new_name=final_name)
        )
        return final_name

    async def delete(self, record_id: str) -> FileRecord:
        """Delete a record from the store, then from the registry.

        Raises:
            RecordNotFoundError: No record has this id
            StorageError: The store refused the delete; the record is kept
        """
        record = self.get(record_id)

        if not record.storage_path:
            logger.warning(
                f"File '{record.name}' has no storage path, removing it locally only"
            )
        else:
            try:
                await self._store.delete(record.storage_path)
            except Exception as e:
                logger.error(f"Failed to delete '{record.storage_path}' from storage: {e}")
                raise StorageError(f"Failed to delete '{record.name}': {e}") from e

        self._records = [r for r in self._records if r.id != record_id]
        logger.info(f"Deleted file '{record.name}'")
        await self._dispatcher.dispatch(
            FileDeletedEvent(record_id=record.id, name=record.name)
        )
        return record

    async def load(self, prefix: str) -> int:
        """Replace the registry with the objects listed under ``prefix``.

        Objects whose download URL cannot be fetched are skipped.
        """
        try:
            objects = await self._store.list(prefix)
        except Exception as e:
            raise StorageError(f"Failed to list files under '{prefix}': {e}") from e

        urls = await asyncio.gather(
            *(self._store.get_url(obj.storage_path) for obj in objects),
            return_exceptions=True,
        )

        records = []
        for obj, url in zip(objects, urls):
            if isinstance(url, Exception):
                logger.warning(f"Skipping '{obj.storage_path}': {url}")
                continue
            records.append(self._record_from_object(obj, url))

        self._records = records
        logger.info(f"Loaded {len(records)} file(s) from '{prefix}'")
        await self._dispatcher.dispatch(FilesLoadedEvent(count=len(records)))
        return len(records)

    @staticmethod
    def _record_from_object(obj: StoredObject, url: str) -> FileRecord:
        return FileRecord(
            id=obj.storage_path,
            name=obj.name,
            size=obj.size,
            mime_type=obj.mime_type,
            uploaded_at=obj.updated_at or datetime.now(),
            url=url,
            storage_path=obj.storage_path,
        )
