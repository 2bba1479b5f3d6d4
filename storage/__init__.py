"""
Object storage for generated plate images.

Usage:
    from storage import get_storage

    storage = get_storage("local", local_dir="/tmp/plates")
    record = await storage.upload("dubai/123.webp", data, "image/webp", upsert=True)
"""

from typing import Optional

from .base import StorageBackend, StorageError, StorageRecord
from .local_storage import LocalStorage
from .supabase_storage import SupabaseStorage


def get_storage(
    backend: str = "supabase",
    supabase_url: Optional[str] = None,
    supabase_service_key: Optional[str] = None,
    bucket: str = "plate-images",
    local_dir: str = "/tmp/plate-images",
    local_base_url: str = "",
    timeout: float = 30.0,
) -> StorageBackend:
    """Build the configured storage backend."""
    if backend == "local":
        return LocalStorage(local_dir, base_url=local_base_url)
    if backend == "supabase":
        return SupabaseStorage(supabase_url, supabase_service_key, bucket=bucket, timeout=timeout)
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    "StorageBackend",
    "StorageError",
    "StorageRecord",
    "LocalStorage",
    "SupabaseStorage",
    "get_storage",
]
