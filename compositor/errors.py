"""
Compositor error taxonomy.

Every failure in the pipeline surfaces as one of these. Nothing is retried
internally; the caller owns user-facing messaging.
"""

from typing import Optional


class CompositorError(Exception):
    """Base class for all compositor failures."""


class TemplateNotFound(CompositorError):
    """Neither the class-suffixed nor the bare-region template could be loaded."""

    def __init__(self, key: str, fallback_key: Optional[str] = None):
        self.key = key
        self.fallback_key = fallback_key
        message = f"No template image found for {key}"
        if fallback_key and fallback_key != key:
            message += f" (fallback {fallback_key} also failed)"
        super().__init__(message)


class AssetLoadFailure(CompositorError):
    """A background, plate overlay or template image failed to load or decode."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        label = source if len(source) <= 120 else source[:117] + "..."
        super().__init__(f"Failed to load asset {label}: {reason}" if reason else f"Failed to load asset {label}")


class FontLoadFailure(AssetLoadFailure):
    """A required typeface could not be fetched or parsed."""


class AnchorNotFound(CompositorError):
    """No text-anchor layout is registered for a region/class combination."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No plate layout registered for {key}")


class EncodeFailure(CompositorError):
    """The raster could not be serialized to the target format."""


class UploadFailure(CompositorError):
    """The storage collaborator rejected a generated image."""
