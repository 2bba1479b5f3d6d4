"""
AssetLoader - async image loading from paths, URLs and data URLs.

Every load either returns a fully decoded RGBA image or raises
AssetLoadFailure. Caching is opt-in through an injected AssetCache.
"""

import io
import base64
import asyncio
import logging
from pathlib import Path
from typing import Dict, Optional, Union

import httpx
from PIL import Image, UnidentifiedImageError

from .errors import AssetLoadFailure

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, Image.Image]


class AssetCache:
    """
    Decoded-image cache with explicit eviction.

    Owned by whoever creates it (usually a PlateImageService), never shared
    through module state. Stored images are treated as read-only; callers get
    copies.
    """

    def __init__(self, max_entries: int = 64):
        self.max_entries = max_entries
        self._entries: Dict[str, Image.Image] = {}

    def get(self, key: str) -> Optional[Image.Image]:
        image = self._entries.get(key)
        return image.copy() if image is not None else None

    def put(self, key: str, image: Image.Image) -> None:
        if key not in self._entries and len(self._entries) >= self.max_entries:
            # Oldest insertion goes first
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = image.copy()

    def evict(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _describe(source: ImageSource) -> str:
    if isinstance(source, Image.Image):
        return f"<image {source.width}x{source.height}>"
    if isinstance(source, bytes):
        return f"<{len(source)} bytes>"
    return str(source)


def decode_image(data: bytes, source: str = "<bytes>") -> Image.Image:
    """Decode image bytes into an RGBA image, raising AssetLoadFailure."""
    if not data:
        raise AssetLoadFailure(source, "empty image data")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise AssetLoadFailure(source, str(e)) from e
    if image.width == 0 or image.height == 0:
        raise AssetLoadFailure(source, "image has zero size")
    return image.convert("RGBA")


def decode_data_url(data_url: str) -> bytes:
    """Extract the payload of a base64 `data:` URL."""
    header, sep, payload = data_url.partition(",")
    if not sep:
        raise AssetLoadFailure(data_url, "malformed data URL")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True)
        return payload.encode("latin-1")
    except ValueError as e:
        raise AssetLoadFailure(data_url, f"invalid base64 payload: {e}") from e


class AssetLoader:
    """
    Loads raster assets for the compositor.

    Supported sources:
    - PIL images (copied, converted to RGBA)
    - raw bytes
    - `data:` URLs
    - `http://` / `https://` URLs (fetched with httpx)
    - filesystem paths
    """

    def __init__(
        self,
        cache: Optional[AssetCache] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize loader.

        Args:
            cache: Optional decoded-image cache (keyed by source string)
            timeout: HTTP timeout in seconds for remote assets
            client: Optional shared httpx client (tests inject a mock transport)
        """
        self.cache = cache
        self.timeout = timeout
        self._client = client

    async def load_image(self, source: ImageSource) -> Image.Image:
        """
        Load and decode an image.

        Args:
            source: Path, URL, data URL, bytes or PIL image

        Returns:
            Decoded RGBA image

        Raises:
            AssetLoadFailure: if the asset cannot be fetched or decoded
        """
        if isinstance(source, Image.Image):
            if source.width == 0 or source.height == 0:
                raise AssetLoadFailure(_describe(source), "image has zero size")
            return source.convert("RGBA")
        if isinstance(source, bytes):
            return decode_image(source)

        key = str(source)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Asset cache hit: {key[:80]}")
                return cached

        if key.startswith("data:"):
            image = decode_image(decode_data_url(key), key)
        elif key.startswith(("http://", "https://")):
            image = decode_image(await self.fetch_bytes(key), key)
        else:
            image = decode_image(await self._read_file(key), key)

        if self.cache is not None and not key.startswith("data:"):
            self.cache.put(key, image)
        return image

    async def fetch_bytes(self, url: str) -> bytes:
        """GET a remote resource, raising AssetLoadFailure on any HTTP error."""
        logger.info(f"Fetching asset: {url[:80]}")
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise AssetLoadFailure(url, str(e)) from e
        return response.content

    async def _read_file(self, path: str) -> bytes:
        try:
            return await asyncio.to_thread(Path(path).read_bytes)
        except OSError as e:
            raise AssetLoadFailure(path, str(e)) from e
