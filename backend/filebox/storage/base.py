"""Object store interface consumed by the file manager."""

from datetime import datetime
from typing import Callable, Protocol

from pydantic import BaseModel

# (bytes_transferred, total_bytes)
ProgressCallback = Callable[[int, int], None]


class StoredObject(BaseModel):
    """An entry returned by an object store listing."""

    name: str
    storage_path: str
    size: int = 0
    mime_type: str = ""
    updated_at: datetime | None = None


class ObjectStore(Protocol):
    async def put(
        self, path: str, data: bytes, on_progress: ProgressCallback | None = None
    ) -> str:
        """Store ``data`` at ``path`` and return the canonical storage path."""
        ...

    async def get_url(self, storage_path: str) -> str: ...

    async def list(self, prefix: str) -> list[StoredObject]: ...

    async def delete(self, storage_path: str) -> None: ...
