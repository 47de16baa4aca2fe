"""
Filesystem-backed object store.

Objects live under ``root`` at their storage path. Retrieval URLs are built
from ``public_base_url``.
"""

import asyncio
import mimetypes
import os
from datetime import datetime
from pathlib import Path
from urllib.parse import quote

import aiofiles
from aiofiles import os as aioos
from asyncer import asyncify

from ..logger import logger
from .base import ProgressCallback, StoredObject


@asyncify
def _scan_files(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as entries:
        return [entry for entry in entries if entry.is_file()]


class LocalObjectStore:
    def __init__(self, root: Path, public_base_url: str, chunk_size: int = 256 * 1024):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")
        self.chunk_size = chunk_size

    def _resolve(self, storage_path: str) -> Path:
        root = self.root.resolve()
        target = (root / storage_path.lstrip("/")).resolve()
        if not target.is_relative_to(root):
            raise ValueError(f"Invalid storage path '{storage_path}'")
        return target

    async def put(
        self, path: str, data: bytes, on_progress: ProgressCallback | None = None
    ) -> str:
        target = self._resolve(path)
        await aioos.makedirs(target.parent, exist_ok=True)

        total = len(data)
        written = 0
        async with aiofiles.open(target, "wb") as f:
            while written < total:
                chunk = data[written : written + self.chunk_size]
                await f.write(chunk)
                written += len(chunk)
                if on_progress is not None:
                    on_progress(written, total)
                # Let other transfers advance between chunks
                await asyncio.sleep(0)

        if total == 0 and on_progress is not None:
            on_progress(0, 0)

        storage_path = target.relative_to(self.root.resolve()).as_posix()
        logger.debug(f"Stored {total} bytes at {storage_path}")
        return storage_path

    async def get_url(self, storage_path: str) -> str:
        target = self._resolve(storage_path)
        if not await aioos.path.isfile(target):
            raise FileNotFoundError(f"Object '{storage_path}' does not exist")
        return f"{self.public_base_url}/{quote(storage_path)}"

    async def list(self, prefix: str) -> list[StoredObject]:
        directory = self._resolve(prefix)
        if not await aioos.path.isdir(directory):
            return []

        objects = []
        for entry in await _scan_files(directory):
            stat_result = await aioos.stat(entry.path)
            mime_type, _ = mimetypes.guess_type(entry.name)
            objects.append(
                StoredObject(
                    name=entry.name,
                    storage_path=f"{prefix.strip('/')}/{entry.name}",
                    size=stat_result.st_size,
                    mime_type=mime_type or "",
                    updated_at=datetime.fromtimestamp(stat_result.st_mtime),
                )
            )
        return objects

    async def delete(self, storage_path: str) -> None:
        target = self._resolve(storage_path)
        if not await aioos.path.isfile(target):
            raise FileNotFoundError(f"Object '{storage_path}' does not exist")
        await aioos.remove(target)
        logger.debug(f"Deleted object {storage_path}")
