"""
Plate compositor API models for FastAPI endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional, List, Union

from .generator import ListingRecord
from .geometry import StylingDescriptor
from .plate_renderer import PlateSpec


class PlateSpecModel(BaseModel):
    """Plate data as sent by clients."""
    region: str  # key ("rak") or display name ("Ras Al Khaimah")
    code: str = ""
    number: str
    vehicle_class: str = "private"  # private, bike, classic
    version: int = 1  # 2 = new Abu Dhabi art

    def to_spec(self) -> PlateSpec:
        return PlateSpec(
            region=self.region,
            code=self.code,
            number=self.number,
            vehicle_class=self.vehicle_class,
            version=self.version,
        )


class StylingModel(BaseModel):
    """CSS-like overlay styling (percent strings, transform, filter)."""
    model_config = ConfigDict(populate_by_name=True)

    top: Optional[str] = None
    left: Optional[str] = None
    width: Optional[str] = None
    transform: Optional[str] = None
    rotate: Optional[str] = None
    filter: Optional[str] = None
    text_scale: Optional[float] = Field(default=None, alias="textScale")
    align: Optional[Literal["left", "center", "right"]] = None
    direction: Optional[Literal["ltr", "rtl"]] = None

    def to_descriptor(self) -> StylingDescriptor:
        return StylingDescriptor.from_css(self.model_dump(exclude_none=True))


class PlateRenderRequest(PlateSpecModel):
    """Request for a raw plate download."""
    format: Literal["png", "webp", "jpeg", "jpg"] = "png"


class PlateUploadRequest(BaseModel):
    """Request to generate and store listing artwork."""
    listing_id: str
    plate: PlateSpecModel


class PlateImageResponse(BaseModel):
    """Where listing artwork was stored."""
    url: str
    path: str


class PreviewRequest(BaseModel):
    """
    Request for a vehicle preview download.

    Either `layout_id` (a built-in layout) or `background` plus explicit
    stylings. The plate comes from `plate` (rendered here) or from
    `plate_data_url` (already rendered by the client).
    """
    layout_id: Optional[str] = None
    mobile: bool = False
    background: Optional[str] = None
    plate: Optional[PlateSpecModel] = None
    plate_data_url: Optional[str] = None
    plate_styling: Optional[StylingModel] = None
    plate_styling_secondary: Optional[StylingModel] = None
    price_styling: Optional[StylingModel] = None
    phone_styling: Optional[StylingModel] = None
    price: Optional[Union[float, str]] = None
    phone: Optional[str] = None
    is_bike: bool = False
    filename: Optional[str] = None


class ListingModel(BaseModel):
    """Listing row for regeneration."""
    id: str
    plate_number: str
    emirate: str
    plate_style: Optional[str] = None

    def to_record(self) -> ListingRecord:
        return ListingRecord(**self.model_dump())


class RegenerateRequest(BaseModel):
    listings: List[ListingModel]


class MigrationErrorModel(BaseModel):
    id: str
    plate_number: str
    error: str


class MigratedImageModel(BaseModel):
    id: str
    url: str
    path: str


class RegenerateResponse(BaseModel):
    """Summary of a regeneration run."""
    total: int
    succeeded: int
    failed: int
    errors: List[MigrationErrorModel]
    records: List[MigratedImageModel]


class PlateOptionsResponse(BaseModel):
    """Response with available plate and preview options."""
    templates: List[str]
    regions: List[str]
    vehicle_classes: List[str]
    previews: List[dict]
