"""
Base Storage Interface

Abstract base class for object storage backends (Supabase Storage, local disk).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


class StorageError(Exception):
    """A backend rejected an upload or removal."""


@dataclass
class StorageRecord:
    """Where an uploaded object ended up."""
    path: str
    url: str
    content_type: Optional[str] = None
    size: Optional[int] = None


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    Paths are bucket-relative, e.g. "ras-al-khaimah/<listing-id>.webp".
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for logging."""
        pass

    @abstractmethod
    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> StorageRecord:
        """
        Store bytes under a path.

        Args:
            path: Bucket-relative object path
            data: Object bytes
            content_type: MIME type to serve the object with
            cache_control: Max-age in seconds, as a string
            upsert: Overwrite an existing object instead of failing

        Returns:
            StorageRecord with the public URL

        Raises:
            StorageError: if the backend rejects the upload
        """
        pass

    @abstractmethod
    async def remove(self, path: str) -> None:
        """
        Remove an object.

        Raises:
            StorageError: if the backend rejects the removal
        """
        pass

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Public URL an object is (or would be) served from."""
        pass
