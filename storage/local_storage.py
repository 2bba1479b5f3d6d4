"""
Filesystem storage backend for development and tests.
"""

import asyncio
import logging
from pathlib import Path
from typing import Union

from .base import StorageBackend, StorageError, StorageRecord

logger = logging.getLogger(__name__)


class LocalStorage(StorageBackend):
    """Stores objects under a root directory and serves them from `base_url`."""

    def __init__(self, root: Union[str, Path], base_url: str = ""):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return "local"

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if self.root.resolve() not in target.parents:
            raise StorageError(f"Path escapes storage root: {path}")
        return target

    def public_url(self, path: str) -> str:
        path = path.lstrip("/")
        return f"{self.base_url}/{path}" if self.base_url else self._resolve(path).as_uri()

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> StorageRecord:
        target = self._resolve(path)
        if target.exists() and not upsert:
            raise StorageError(f"The resource already exists: {path}")

        def _write():
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError(str(e)) from e

        logger.info(f"Stored {path} ({len(data)} bytes) under {self.root}")
        return StorageRecord(path=path, url=self.public_url(path), content_type=content_type, size=len(data))

    async def remove(self, path: str) -> None:
        target = self._resolve(path)
        try:
            await asyncio.to_thread(target.unlink, True)
        except OSError as e:
            raise StorageError(str(e)) from e
        logger.info(f"Removed {path} from {self.root}")
