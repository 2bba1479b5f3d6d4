"""
Supabase Storage backend.

Talks to the Storage REST API directly over httpx with the service key:
- upload:  POST   /storage/v1/object/{bucket}/{path}   (x-upsert header)
- remove:  DELETE /storage/v1/object/{bucket}          ({"prefixes": [path]})
- public:         /storage/v1/object/public/{bucket}/{path}
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from .base import StorageBackend, StorageError, StorageRecord

logger = logging.getLogger(__name__)


class SupabaseStorage(StorageBackend):
    """Public-bucket object storage on Supabase."""

    def __init__(
        self,
        url: str,
        service_key: str,
        bucket: str = "plate-images",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not url or not service_key:
            raise ValueError("Supabase storage needs both a project URL and a service key")
        self.base_url = url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout
        self._client = client
        logger.info(f"SupabaseStorage initialized: {self.base_url} bucket={bucket}")

    @property
    def name(self) -> str:
        return "supabase"

    def _headers(self, **extra) -> dict:
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }
        headers.update(extra)
        return headers

    def _object_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{self.bucket}/{quote(path.lstrip('/'))}"

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{quote(path.lstrip('/'))}"

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, **kwargs)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or body)
        return str(body)

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> StorageRecord:
        headers = self._headers(**{
            "Content-Type": content_type,
            "cache-control": f"max-age={cache_control}",
            "x-upsert": "true" if upsert else "false",
        })
        try:
            response = await self._send("POST", self._object_url(path), content=data, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Supabase upload error for {path}: {e}")
            raise StorageError(str(e)) from e

        if response.is_error:
            message = self._error_message(response)
            logger.error(f"Supabase upload rejected for {path}: {response.status_code} {message}")
            raise StorageError(message)

        logger.info(f"Uploaded {path} ({len(data)} bytes) to bucket {self.bucket}")
        return StorageRecord(path=path, url=self.public_url(path), content_type=content_type, size=len(data))

    async def remove(self, path: str) -> None:
        url = f"{self.base_url}/storage/v1/object/{self.bucket}"
        try:
            response = await self._send("DELETE", url, json={"prefixes": [path]}, headers=self._headers())
        except httpx.HTTPError as e:
            raise StorageError(str(e)) from e
        if response.is_error:
            raise StorageError(self._error_message(response))
        logger.info(f"Removed {path} from bucket {self.bucket}")
