"""
Built-in "plate on a vehicle" preview layouts.

Each layout names a background image (relative to the preview base) and the
stylings for the plate overlays and the price/phone text. RAK classic plates
are physically wider, so most layouts carry dedicated overrides for them.

The table lives in config/preview-layouts.yaml; a layout's `mobile` block
only lists what differs from the desktop art.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from .geometry import StylingDescriptor
from .templates import VehicleClass, coerce_vehicle_class, normalize_region

LAYOUTS_FILE = Path(__file__).parent / "config" / "preview-layouts.yaml"

STYLING_FIELDS = (
    "plate_styling",
    "plate_styling_secondary",
    "rak_classic_styling",
    "rak_classic_styling_secondary",
    "price_styling",
    "phone_styling",
)


class PreviewKind(Enum):
    """Which listings a layout is meant for."""
    CAR = "car"
    BIKE = "bike"
    CLASSIC = "classic"


@dataclass
class PreviewLayout:
    """One preview background and where everything goes on it."""
    id: str
    kind: PreviewKind
    image: str
    plate_styling: StylingDescriptor
    plate_styling_secondary: Optional[StylingDescriptor] = None
    rak_classic_styling: Optional[StylingDescriptor] = None
    rak_classic_styling_secondary: Optional[StylingDescriptor] = None
    price_styling: Optional[StylingDescriptor] = None
    phone_styling: Optional[StylingDescriptor] = None
    mobile: Optional["PreviewLayout"] = field(default=None, repr=False)

    @property
    def is_bike(self) -> bool:
        return self.kind == PreviewKind.BIKE

    def plate_stylings(
        self,
        region: str,
        vehicle_class: Union[str, VehicleClass, None] = None,
    ) -> Tuple[StylingDescriptor, Optional[StylingDescriptor]]:
        """
        Primary and secondary plate stylings for a plate.

        RAK classic plates use the dedicated overrides where the layout has
        them; everything else uses the regular stylings.
        """
        rak_classic = (
            normalize_region(region) == "rak"
            and coerce_vehicle_class(vehicle_class) == VehicleClass.CLASSIC
        )
        if not rak_classic:
            return self.plate_styling, self.plate_styling_secondary
        return (
            self.rak_classic_styling or self.plate_styling,
            self.rak_classic_styling_secondary or self.plate_styling_secondary,
        )

    def for_device(self, mobile: bool = False) -> "PreviewLayout":
        """The mobile variant when asked for and available, otherwise self."""
        if mobile and self.mobile is not None:
            return self.mobile
        return self


def _stylings(config: Mapping[str, Any]) -> Dict[str, StylingDescriptor]:
    return {name: StylingDescriptor.from_css(config[name]) for name in STYLING_FIELDS if config.get(name)}


def layout_from_config(config: Mapping[str, Any], kind: PreviewKind) -> PreviewLayout:
    """
    Build one layout (and its mobile variant) from a config entry.

    Raises:
        ValueError: if the entry has no id, image or plate styling
    """
    layout_id = str(config.get("id") or "")
    stylings = _stylings(config)
    if not layout_id or not config.get("image") or "plate_styling" not in stylings:
        raise ValueError(f"Preview layout {layout_id or '<unnamed>'} needs an id, an image and a plate_styling")

    layout = PreviewLayout(id=layout_id, kind=kind, image=str(config["image"]), **stylings)
    mobile = config.get("mobile")
    if mobile:
        layout.mobile = replace(layout, image=str(mobile.get("image") or layout.image), **_stylings(mobile))
    return layout


def load_preview_layouts(path: Union[str, Path] = LAYOUTS_FILE) -> Dict[str, PreviewLayout]:
    """Load the layout table (car, classic, then bike sections)."""
    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    layouts: Dict[str, PreviewLayout] = {}
    for kind in (PreviewKind.CAR, PreviewKind.CLASSIC, PreviewKind.BIKE):
        for entry in config.get(kind.value) or []:
            layout = layout_from_config(entry, kind)
            if layout.id in layouts:
                raise ValueError(f"Duplicate preview layout id: {layout.id}")
            layouts[layout.id] = layout
    return layouts


PREVIEW_LAYOUTS: Dict[str, PreviewLayout] = load_preview_layouts()


def get_preview_layout(layout_id: str) -> Optional[PreviewLayout]:
    """Look up a preview layout by id (None if unknown)."""
    return PREVIEW_LAYOUTS.get(layout_id)


def layouts_for(vehicle_class: Union[str, VehicleClass, None]) -> List[PreviewLayout]:
    """Layouts meant for a plate class (classic plates get the classic cars)."""
    kind = {
        VehicleClass.BIKE: PreviewKind.BIKE,
        VehicleClass.CLASSIC: PreviewKind.CLASSIC,
    }.get(coerce_vehicle_class(vehicle_class), PreviewKind.CAR)
    return [layout for layout in PREVIEW_LAYOUTS.values() if layout.kind == kind]


def get_preview_options() -> List[dict]:
    """Get preview layouts for the options endpoint."""
    return [
        {
            "id": layout.id,
            "kind": layout.kind.value,
            "image": layout.image,
            "has_mobile": layout.mobile is not None,
        }
        for layout in PREVIEW_LAYOUTS.values()
    ]
