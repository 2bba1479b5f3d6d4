from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import ConfigDict
from pydantic_settings import BaseSettings
from typing import Optional
from pathlib import Path
import logging
import uuid

from compositor import (
    CompositorError,
    TemplateNotFound,
    AnchorNotFound,
    AssetLoadFailure,
    UploadFailure,
    PlateImageService,
    SceneRequest,
    VehicleClass,
    get_preview_layout,
    get_preview_options,
    save_export,
)
from compositor.api_models import (
    PlateOptionsResponse,
    PlateRenderRequest,
    PlateUploadRequest,
    PlateImageResponse,
    PreviewRequest,
    RegenerateRequest,
    RegenerateResponse,
)
from compositor.fonts import DISPLAY_FONT_CSS_URL
from compositor.generator import preview_filename
from compositor.previews import PreviewKind
from storage import StorageBackend, get_storage

# Logging setup
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    template_base: str = "public"  # Directory or URL prefix with the blank plates
    preview_base: str = "public"  # Directory or URL prefix with the preview backgrounds
    plate_font_dir: Optional[str] = None  # None = builtin face for plate text
    display_font_source: str = DISPLAY_FONT_CSS_URL
    scene_width: int = 7680
    plate_webp_quality: float = 0.85
    preview_jpeg_quality: float = 0.95
    export_dir: str = "/tmp/plate-exports"

    storage_backend: str = "supabase"  # supabase or local
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    storage_bucket: str = "plate-images"
    local_storage_dir: str = "/tmp/plate-images"
    local_storage_base_url: str = ""

    http_timeout: float = 30.0

    model_config = ConfigDict(env_file=".env", extra="ignore")


def build_storage(settings: Settings) -> Optional[StorageBackend]:
    """Configured storage backend, or None if Supabase credentials are missing."""
    if settings.storage_backend == "supabase" and not (settings.supabase_url and settings.supabase_service_key):
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_KEY not set, plate uploads are disabled")
        return None
    return get_storage(
        settings.storage_backend,
        supabase_url=settings.supabase_url,
        supabase_service_key=settings.supabase_service_key,
        bucket=settings.storage_bucket,
        local_dir=settings.local_storage_dir,
        local_base_url=settings.local_storage_base_url,
        timeout=settings.http_timeout,
    )


def build_service(settings: Settings) -> PlateImageService:
    return PlateImageService.create(
        template_base=settings.template_base,
        preview_base=settings.preview_base,
        plate_font_dir=settings.plate_font_dir,
        display_font_source=settings.display_font_source,
        storage=build_storage(settings),
        scene_width=settings.scene_width,
        webp_quality=settings.plate_webp_quality,
        jpeg_quality=settings.preview_jpeg_quality,
        timeout=settings.http_timeout,
    )


settings = Settings()
app = FastAPI(title="Plate Compositor", version="1.0.0")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services
service = build_service(settings)


def http_error(e: CompositorError) -> HTTPException:
    """Map a compositor failure onto an HTTP status."""
    if isinstance(e, (TemplateNotFound, AnchorNotFound)):
        status = 404
    elif isinstance(e, (AssetLoadFailure, UploadFailure)):
        status = 502
    else:
        status = 500  # EncodeFailure and anything unexpected
    logger.error(f"{type(e).__name__}: {e}")
    return HTTPException(status_code=status, detail=str(e))


def download_response(encoded) -> FileResponse:
    """Write an export to its own temp folder and serve it as an attachment."""
    output_dir = Path(settings.export_dir) / uuid.uuid4().hex[:8]
    output_path = save_export(encoded, output_dir)
    return FileResponse(
        path=str(output_path),
        media_type=encoded.content_type,
        filename=encoded.filename,
    )


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "plate-compositor"}


@app.get("/")
async def root():
    return {
        "service": "Plate Compositor",
        "version": "1.0.0",
        "storage": service.storage.name if service.storage else None,
        "endpoints": [
            "/plate/options",
            "/plate/render",
            "/plate/images",
            "/plate/preview",
            "/plate/regenerate",
        ],
    }


@app.get("/plate/options", response_model=PlateOptionsResponse)
async def get_plate_options():
    """
    Get available options for plate rendering and previews.
    """
    registry = service.templates.registry
    return PlateOptionsResponse(
        templates=registry.keys(),
        regions=registry.regions(),
        vehicle_classes=[vc.value for vc in VehicleClass],
        previews=get_preview_options(),
    )


@app.post("/plate/render")
async def render_plate(request: PlateRenderRequest):
    """
    Render a plate and return it as a download.

    Returns:
        `UAE_Plate_{region}_{class}_{code}_{number}_v{version}.png` (or the
        requested format)
    """
    try:
        spec = request.to_spec()
        logger.info(f"Rendering plate {spec.region}/{spec.vehicle_class.value} '{spec.code} {spec.number}'")
        encoded = await service.export_plate(spec, request.format)
    except CompositorError as e:
        raise http_error(e)
    return download_response(encoded)


@app.post("/plate/images", response_model=PlateImageResponse)
async def create_plate_image(request: PlateUploadRequest):
    """
    Generate listing artwork and upsert it to storage.

    Returns:
        Public URL and storage path (keep the path for later deletion)
    """
    try:
        record = await service.generate_and_upload(request.listing_id, request.plate.to_spec())
    except CompositorError as e:
        raise http_error(e)
    return PlateImageResponse(url=record.url, path=record.path)


@app.delete("/plate/images")
async def delete_plate_image(path: str = ""):
    """Best-effort removal of stored artwork; always succeeds."""
    await service.delete_plate_image(path)
    return {"status": "ok", "path": path}


@app.post("/plate/preview")
async def render_preview(request: PreviewRequest):
    """
    Compose a "plate on a vehicle" preview and return it as a JPEG download.

    Uses a built-in layout when `layout_id` is given, otherwise the explicit
    background and stylings from the request.
    """
    layout = None
    if request.layout_id:
        layout = get_preview_layout(request.layout_id)
        if layout is None:
            raise HTTPException(status_code=404, detail=f"Unknown preview layout: {request.layout_id}")
        layout = layout.for_device(request.mobile)
    elif not request.background:
        raise HTTPException(status_code=422, detail="Either layout_id or background is required")

    if not request.plate and not request.plate_data_url:
        raise HTTPException(status_code=422, detail="Either plate or plate_data_url is required")

    try:
        spec = request.plate.to_spec() if request.plate else None
        plate = request.plate_data_url or await service.render_plate(spec)

        if layout is not None:
            scene = service.scene_for_layout(
                layout,
                plate,
                region=spec.region if spec else "",
                vehicle_class=spec.vehicle_class if spec else None,
                price=request.price,
                phone=request.phone or "",
            )
            kind = layout.kind
        else:
            scene = SceneRequest(
                background=service.preview_background(request.background),
                plate=plate,
                plate_styling=request.plate_styling.to_descriptor() if request.plate_styling else None,
                plate_styling_secondary=(
                    request.plate_styling_secondary.to_descriptor() if request.plate_styling_secondary else None
                ),
                price=request.price,
                phone=request.phone or "",
                price_styling=request.price_styling.to_descriptor() if request.price_styling else None,
                phone_styling=request.phone_styling.to_descriptor() if request.phone_styling else None,
                is_bike=request.is_bike,
            )
            kind = PreviewKind.BIKE if request.is_bike else PreviewKind.CAR

        filename = request.filename or (preview_filename(spec, kind) if spec else "Plate-Preview.jpg")
        logger.info(f"Rendering preview {filename} (layout={request.layout_id})")
        encoded = await service.render_preview(scene, filename=Path(filename).name)
    except CompositorError as e:
        raise http_error(e)
    return download_response(encoded)


@app.post("/plate/regenerate", response_model=RegenerateResponse)
async def regenerate_plates(request: RegenerateRequest):
    """
    Regenerate artwork for a batch of listings.

    Per-listing failures are reported in the summary; persisting the new
    URLs is up to the caller.
    """
    logger.info(f"Regenerating {len(request.listings)} plate images")
    result = await service.regenerate_all([listing.to_record() for listing in request.listings])
    return RegenerateResponse(
        total=result.total,
        succeeded=result.succeeded,
        failed=result.failed,
        errors=[vars(error) for error in result.errors],
        records=[vars(record) for record in result.records],
    )

