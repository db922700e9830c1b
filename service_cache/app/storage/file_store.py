"""
Disk-backed key store for cached images.
"""

import asyncio
import os
import uuid
from pathlib import Path
from typing import Protocol, Union

from shared.errors import NotFoundError, StorageError
from shared.logging import get_logger
from ..keys import CacheKey


class KeyStore(Protocol):
    """Byte store addressed by a validated cache key."""

    async def exists(self, key: CacheKey) -> bool:
        ...

    async def read(self, key: CacheKey) -> bytes:
        ...

    async def write(self, key: CacheKey, data: bytes) -> None:
        ...

    async def delete(self, key: CacheKey) -> None:
        ...


class FileKeyStore:
    """One raw file per key at ``<root>/<key>.jpg``, no metadata wrapper.

    Blocking file I/O runs in worker threads so the event loop keeps serving
    other requests. Writes land in a uniquely named temporary file first and
    are renamed into place, so readers never observe a partial entry and
    concurrent writers to one key resolve as "last completed write wins".
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self.logger = get_logger("cache.file_store")

    def path_for(self, key: CacheKey) -> Path:
        """Return the file path backing ``key``."""
        return self.root / key.filename

    def ensure_root(self) -> bool:
        """Create the root directory if needed; return True when it was created."""
        if self.root.is_dir():
            self.logger.info("Cache directory exists", path=str(self.root))
            return False
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(details={"path": str(self.root), "error": str(exc)}) from exc
        self.logger.info("Cache directory created", path=str(self.root))
        return True

    async def exists(self, key: CacheKey) -> bool:
        return await asyncio.to_thread(self.path_for(key).is_file)

    async def read(self, key: CacheKey) -> bytes:
        path = self.path_for(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise NotFoundError(details={"key": key.value}) from exc
        except OSError as exc:
            self.logger.error("Cache read failed", key=key.value, path=str(path), error=str(exc))
            raise StorageError(details={"key": key.value, "error": str(exc)}) from exc

    async def write(self, key: CacheKey, data: bytes) -> None:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(self._write_atomic, path, data)
        except OSError as exc:
            self.logger.error("Cache write failed", key=key.value, path=str(path), error=str(exc))
            raise StorageError(details={"key": key.value, "error": str(exc)}) from exc

    async def delete(self, key: CacheKey) -> None:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError as exc:
            raise NotFoundError(details={"key": key.value}) from exc
        except OSError as exc:
            self.logger.error("Cache delete failed", key=key.value, path=str(path), error=str(exc))
            raise StorageError(details={"key": key.value, "error": str(exc)}) from exc

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
