"""
FontCache - explicit, injectable typeface cache.

Font bytes are fetched once per cache instance and sized faces are built on
demand. Sources can be:
- "builtin": Pillow's bundled scalable face
- a filesystem path
- an http(s) URL to a font file
- a Google Fonts CSS URL (the first font `url(...)` in the stylesheet is used)
"""

import io
import re
import asyncio
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import httpx
from PIL import ImageFont

from .errors import FontLoadFailure

logger = logging.getLogger(__name__)

BUILTIN = "builtin"

DISPLAY_FONT = "Cinzel Decorative:700"
DISPLAY_FONT_CSS_URL = "https://fonts.googleapis.com/css2?family=Cinzel+Decorative:wght@700&display=swap"

_CSS_URL_RE = re.compile(r"url\((['\"]?)(https?://[^)'\"]+)\1\)")


class FontCache:
    """
    Cache of font bytes keyed by logical font name.

    Usage:
        cache = FontCache({"Cinzel Decorative:700": DISPLAY_FONT_CSS_URL})
        await cache.ensure_loaded("Cinzel Decorative:700")
        font = cache.get_font("Cinzel Decorative:700", 368)
    """

    def __init__(
        self,
        sources: Optional[Mapping[str, str]] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize cache.

        Args:
            sources: Logical font name -> source (see module docstring)
            timeout: HTTP timeout for remote fonts
            client: Optional shared httpx client
        """
        self.sources: Dict[str, str] = dict(sources or {})
        self.timeout = timeout
        self._client = client
        self._data: Dict[str, Optional[bytes]] = {}  # None means builtin
        self._faces: Dict[Tuple[str, int], ImageFont.FreeTypeFont] = {}

    def register(self, name: str, source: str) -> None:
        """Set (or replace) the source for a font, dropping anything cached."""
        self.sources[name] = source
        self.evict(name)

    def is_loaded(self, name: str) -> bool:
        return name in self._data

    async def ensure_loaded(self, name: str, required: bool = True) -> None:
        """
        Make sure a font's bytes are in the cache.

        Args:
            name: Logical font name
            required: If False, a failed load logs a warning and the builtin
                face is used instead. If True, the failure is raised.

        Raises:
            FontLoadFailure: if a required font cannot be loaded
        """
        if name in self._data:
            return

        source = self.sources.get(name)
        try:
            if source is None:
                raise FontLoadFailure(name, "no source registered")
            data = await self._load_source(source)
            if data is not None:
                # Validate once so a corrupt file fails here, not mid-render
                ImageFont.truetype(io.BytesIO(data), 12)
        except (FontLoadFailure, OSError, ValueError) as e:
            if required:
                if isinstance(e, FontLoadFailure):
                    raise
                raise FontLoadFailure(source or name, str(e)) from e
            logger.warning(f"Failed to load font {name} ({source}): {e}; using builtin face")
            data = None

        self._data[name] = data
        logger.info(f"Font ready: {name} ({'builtin' if data is None else f'{len(data)} bytes'})")

    def get_font(self, name: str, size: int) -> ImageFont.FreeTypeFont:
        """
        Sized face for a loaded font.

        Raises:
            FontLoadFailure: if `ensure_loaded` was never awaited for `name`
        """
        if name not in self._data:
            raise FontLoadFailure(name, "font not loaded")
        size = max(1, int(size))
        key = (name, size)
        face = self._faces.get(key)
        if face is None:
            data = self._data[name]
            if data is None:
                face = ImageFont.load_default(size=size)
            else:
                face = ImageFont.truetype(io.BytesIO(data), size)
            self._faces[key] = face
        return face

    def evict(self, name: str) -> None:
        self._data.pop(name, None)
        for key in [k for k in self._faces if k[0] == name]:
            del self._faces[key]

    def clear(self) -> None:
        self._data.clear()
        self._faces.clear()

    async def _load_source(self, source: str) -> Optional[bytes]:
        if source == BUILTIN:
            return None
        if source.startswith(("http://", "https://")):
            if "fonts.googleapis.com/css" in source or source.endswith(".css"):
                css = (await self._fetch(source)).decode("utf-8", errors="replace")
                match = _CSS_URL_RE.search(css)
                if not match:
                    raise FontLoadFailure(source, "no font url in stylesheet")
                return await self._fetch(match.group(2))
            return await self._fetch(source)
        try:
            return await asyncio.to_thread(Path(source).read_bytes)
        except OSError as e:
            raise FontLoadFailure(source, str(e)) from e

    async def _fetch(self, url: str) -> bytes:
        try:
            if self._client is not None:
                response = await self._client.get(url)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FontLoadFailure(url, str(e)) from e
        return response.content


def plate_font_sources(font_files, font_dir: Optional[str]) -> Dict[str, str]:
    """
    Map plate font file names to sources under `font_dir`.

    Without a font directory every plate font resolves to the builtin face.
    """
    if not font_dir:
        return {name: BUILTIN for name in font_files}
    if font_dir.startswith(("http://", "https://")):
        return {name: f"{font_dir.rstrip('/')}/{name.replace(' ', '%20')}" for name in font_files}
    return {name: str(Path(font_dir) / name) for name in font_files}
