"""
PlateImageService - main orchestrator for plate images and previews.

Combines:
- TemplateLoader: blank plate art with class fallback
- PlateRenderer: code/number burned into the template
- SceneCompositor: plate mounted on a vehicle background
- Encoder: WebP/JPEG/PNG bytes
- StorageBackend: public object storage for listing artwork

This is the main entry point for the HTTP layer and batch jobs.
"""

import time
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from PIL import Image

from storage import StorageBackend, StorageError

from .anchors import AnchorTable
from .assets import AssetCache, AssetLoader, ImageSource
from .encoder import (
    PLATE_WEBP_QUALITY,
    PREVIEW_JPEG_QUALITY,
    EncodedImage,
    ImageFormat,
    coerce_format,
    encode,
)
from .errors import UploadFailure
from .fonts import DISPLAY_FONT, DISPLAY_FONT_CSS_URL, FontCache, plate_font_sources
from .plate_renderer import PlateRenderer, PlateSpec
from .previews import PreviewKind, PreviewLayout
from .scene import SCENE_WIDTH, SceneCompositor, SceneRequest
from .templates import TemplateLoader, TemplateRegistry, VehicleClass, region_folder

logger = logging.getLogger(__name__)

LISTING_CACHE_CONTROL = "31536000"  # one year
MIGRATION_CACHE_CONTROL = "3600"  # short, so the CDN picks up regenerated art quickly

ProgressCallback = Callable[[int, int, str], None]


@dataclass
class ListingRecord:
    """The listing columns a regeneration run needs."""
    id: str
    plate_number: str
    emirate: str
    plate_style: Optional[str] = None


@dataclass
class MigrationError:
    id: str
    plate_number: str
    error: str


@dataclass
class MigratedImage:
    id: str
    url: str  # versioned public URL
    path: str


@dataclass
class MigrationResult:
    """Summary of a regeneration run."""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: List[MigrationError] = field(default_factory=list)
    records: List[MigratedImage] = field(default_factory=list)


def export_filename(spec: PlateSpec, fmt: Union[str, ImageFormat] = ImageFormat.PNG) -> str:
    """`UAE_Plate_{region}_{class}_{code}_{number}_v{version}.{ext}`"""
    ext = coerce_format(fmt).extension
    return (f"UAE_Plate_{spec.region}_{spec.vehicle_class.value}_"
            f"{spec.code}_{spec.number}_v{spec.version}.{ext}")


def preview_filename(spec: PlateSpec, kind: PreviewKind = PreviewKind.CAR) -> str:
    """`Plate-{code}-{number}-{Car|Bike|Classic}Preview.jpg`"""
    return f"Plate-{spec.code}-{spec.number}-{kind.value.capitalize()}Preview.jpg"


class PlateImageService:
    """
    Main orchestrator for plate image generation.

    Workflow (listing artwork):
    1. Load the template (class-specific, falling back to the bare region)
    2. Render the plate text at the template's native size
    3. Encode as WebP 0.85
    4. Upsert to storage under `{region-folder}/{listing_id}.webp`

    Workflow (preview download):
    1. Render or load the plate raster
    2. Compose it onto a vehicle background with price/phone text
    3. Encode as JPEG 0.95
    """

    def __init__(
        self,
        templates: TemplateLoader,
        renderer: PlateRenderer,
        compositor: SceneCompositor,
        storage: Optional[StorageBackend] = None,
        preview_base: str = "",
        webp_quality: float = PLATE_WEBP_QUALITY,
        jpeg_quality: float = PREVIEW_JPEG_QUALITY,
    ):
        self.templates = templates
        self.renderer = renderer
        self.compositor = compositor
        self.storage = storage
        self.preview_base = preview_base
        self.webp_quality = webp_quality
        self.jpeg_quality = jpeg_quality

    @classmethod
    def create(
        cls,
        template_base: str = "",
        preview_base: str = "",
        plate_font_dir: Optional[str] = None,
        display_font_source: str = DISPLAY_FONT_CSS_URL,
        storage: Optional[StorageBackend] = None,
        scene_width: int = SCENE_WIDTH,
        webp_quality: float = PLATE_WEBP_QUALITY,
        jpeg_quality: float = PREVIEW_JPEG_QUALITY,
        timeout: float = 30.0,
    ) -> "PlateImageService":
        """
        Wire up a service with its own asset and font caches.

        Args:
            template_base: Directory or URL prefix holding the blank plates
            preview_base: Directory or URL prefix holding preview backgrounds
            plate_font_dir: Directory or URL prefix holding plate fonts
                (None uses the builtin face for every plate font)
            display_font_source: Source for the gold display face
            storage: Storage backend for listing artwork
            scene_width: Preview export width
            webp_quality: Listing artwork quality
            jpeg_quality: Preview download quality
            timeout: HTTP timeout for remote assets and fonts
        """
        anchors = AnchorTable()
        sources = plate_font_sources(anchors.font_files(), plate_font_dir)
        sources[DISPLAY_FONT] = display_font_source
        fonts = FontCache(sources, timeout=timeout)
        loader = AssetLoader(cache=AssetCache(), timeout=timeout)

        return cls(
            templates=TemplateLoader(TemplateRegistry(template_base), loader),
            renderer=PlateRenderer(fonts, anchors),
            compositor=SceneCompositor(fonts, loader, target_width=scene_width),
            storage=storage,
            preview_base=preview_base,
            webp_quality=webp_quality,
            jpeg_quality=jpeg_quality,
        )

    @property
    def fonts(self) -> FontCache:
        return self.renderer.fonts

    async def render_plate(self, spec: PlateSpec) -> Image.Image:
        """Load the template for a plate and draw its text."""
        template = await self.templates.load(spec.region, spec.vehicle_class, spec.version)
        return await self.renderer.render(spec, template)

    async def export_plate(self, spec: PlateSpec, fmt: Union[str, ImageFormat] = ImageFormat.PNG) -> EncodedImage:
        """Render a plate as a named download (PNG unless asked otherwise)."""
        image_format = coerce_format(fmt)
        plate = await self.render_plate(spec)
        quality = self.jpeg_quality if image_format is ImageFormat.JPEG else self.webp_quality
        return encode(plate, image_format, quality, filename=export_filename(spec, image_format))

    def _require_storage(self) -> StorageBackend:
        if self.storage is None:
            raise UploadFailure("No storage backend configured")
        return self.storage

    async def _upload_plate(self, listing_id: str, spec: PlateSpec, cache_control: str):
        storage = self._require_storage()
        plate = await self.render_plate(spec)
        encoded = encode(plate, ImageFormat.WEBP, self.webp_quality)
        path = f"{region_folder(spec.region)}/{listing_id}.webp"
        try:
            return await storage.upload(
                path,
                encoded.data,
                content_type=encoded.content_type,
                cache_control=cache_control,
                upsert=True,
            )
        except StorageError as e:
            raise UploadFailure(f"Upload failed: {e}") from e

    async def generate_and_upload(self, listing_id: str, spec: PlateSpec):
        """
        Generate listing artwork and upsert it to storage.

        Args:
            listing_id: Listing identifier (the object name)
            spec: Plate data

        Returns:
            StorageRecord with the public URL and the storage path

        Raises:
            TemplateNotFound, AssetLoadFailure, EncodeFailure: from rendering
            UploadFailure: if storage rejects the upload
        """
        record = await self._upload_plate(listing_id, spec, LISTING_CACHE_CONTROL)
        logger.info(f"Plate image for listing {listing_id}: {record.url}")
        return record

    async def delete_plate_image(self, path: Optional[str]) -> None:
        """Best-effort removal; failures are logged, never raised."""
        if not path:
            return
        try:
            await self._require_storage().remove(path)
        except (StorageError, UploadFailure) as e:
            logger.error(f"Failed to delete plate image {path}: {e}")

    def preview_background(self, image: str) -> str:
        """
        Background location resolved against the preview base.

        URLs and data URLs pass through; anything else is treated as a file
        name inside the preview base.
        """
        if image.startswith(("http://", "https://", "data:")):
            return image
        name = Path(image).name
        if self.preview_base.startswith(("http://", "https://")):
            return f"{self.preview_base.rstrip('/')}/{name}"
        return str(Path(self.preview_base or ".") / name)

    def scene_for_layout(
        self,
        layout: PreviewLayout,
        plate: ImageSource,
        region: str,
        vehicle_class: Union[str, VehicleClass, None] = None,
        price=None,
        phone: str = "",
    ) -> SceneRequest:
        """Scene inputs for a built-in layout (RAK classic overrides applied)."""
        primary, secondary = layout.plate_stylings(region, vehicle_class)
        return SceneRequest(
            background=self.preview_background(layout.image),
            plate=plate,
            plate_styling=primary,
            plate_styling_secondary=secondary,
            price=price,
            phone=phone or "",
            price_styling=layout.price_styling,
            phone_styling=layout.phone_styling,
            is_bike=layout.is_bike,
        )

    async def render_preview(self, request: SceneRequest, filename: str = "Plate-Preview.jpg") -> EncodedImage:
        """Compose a preview scene and encode it as a JPEG download."""
        scene = await self.compositor.compose(request)
        return encode(scene, ImageFormat.JPEG, self.jpeg_quality, filename=filename)

    async def regenerate_all(
        self,
        listings: Iterable[ListingRecord],
        on_progress: Optional[ProgressCallback] = None,
    ) -> MigrationResult:
        """
        Regenerate and re-upload artwork for every listing.

        Failures are collected per listing; one bad row never stops the run.
        All URLs from one run share a `?v=<timestamp>` cache-buster.

        Args:
            listings: Listing rows (id, plate_number, emirate, plate_style)
            on_progress: Called as (done, total, label) before each listing
                and once more with "Done" at the end

        Returns:
            MigrationResult with the versioned URLs of every upload
        """
        rows = list(listings)
        result = MigrationResult(total=len(rows))
        if not rows:
            logger.info("No listings to regenerate")
            return result

        # Fonts first, so a missing face shows up once instead of per listing
        for name in self.renderer.anchors.font_files():
            await self.fonts.ensure_loaded(name, required=False)

        version = int(time.time() * 1000)
        for index, listing in enumerate(rows):
            label = f"{listing.emirate} {listing.plate_number}"
            if on_progress:
                on_progress(index, result.total, label)

            try:
                spec = PlateSpec.from_plate_number(listing.emirate, listing.plate_number, listing.plate_style)
                record = await self._upload_plate(listing.id, spec, MIGRATION_CACHE_CONTROL)
                url = f"{record.url}?v={version}"
                result.records.append(MigratedImage(id=listing.id, url=url, path=record.path))
                result.succeeded += 1
                logger.info(f"Regenerated {label} -> {url}")
            except Exception as e:
                result.failed += 1
                result.errors.append(MigrationError(id=listing.id, plate_number=listing.plate_number, error=str(e)))
                logger.error(f"Failed to regenerate {label}: {e}")

        if on_progress:
            on_progress(result.total, result.total, "Done")
        logger.info(f"Regeneration finished: {result.succeeded}/{result.total} succeeded, {result.failed} failed")
        return result
