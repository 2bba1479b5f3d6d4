# Plate Compositor Module
# Blank templates + plate text, and "plate on a vehicle" preview scenes

from .errors import (
    CompositorError,
    TemplateNotFound,
    AssetLoadFailure,
    FontLoadFailure,
    AnchorNotFound,
    EncodeFailure,
    UploadFailure,
)
from .geometry import StylingDescriptor, PlacementDescriptor, resolve_placement
from .templates import TemplateLoader, TemplateRegistry, VehicleClass
from .anchors import AnchorTable
from .fonts import FontCache
from .plate_renderer import PlateRenderer, PlateSpec
from .scene import SceneCompositor, SceneRequest
from .encoder import ImageFormat, EncodedImage, encode, decode, save_export
from .previews import PreviewLayout, get_preview_layout, get_preview_options
from .generator import PlateImageService, ListingRecord, MigrationResult

__all__ = [
    "CompositorError",
    "TemplateNotFound",
    "AssetLoadFailure",
    "FontLoadFailure",
    "AnchorNotFound",
    "EncodeFailure",
    "UploadFailure",
    "StylingDescriptor",
    "PlacementDescriptor",
    "resolve_placement",
    "TemplateLoader",
    "TemplateRegistry",
    "VehicleClass",
    "AnchorTable",
    "FontCache",
    "PlateRenderer",
    "PlateSpec",
    "SceneCompositor",
    "SceneRequest",
    "ImageFormat",
    "EncodedImage",
    "encode",
    "decode",
    "save_export",
    "PreviewLayout",
    "get_preview_layout",
    "get_preview_options",
    "PlateImageService",
    "ListingRecord",
    "MigrationResult",
]
