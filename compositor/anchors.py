"""
Per-region text anchor table for plate rendering.

Each layout says where the series code and the plate number are drawn on a
blank template, as ratios of the template size. This is data, not geometry:
adding an emirate means adding a row here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Union

from .errors import AnchorNotFound
from .templates import VehicleClass, coerce_vehicle_class, normalize_region

GL_NUMMERNSCHILD = "GL-Nummernschild-Mtl.ttf"
ROUGH_MOTION = "Rough Motion.otf"
DIN_1451 = "DIN-1451.ttf"
AMIRI_BOLD = "Amiri-Bold.ttf"

DEFAULT_PLATE_FONT = GL_NUMMERNSCHILD


class ComponentType(Enum):
    CODE = "code"
    NUMBER = "number"
    ARABIC_NUMBER = "arabic_number"


class Align(Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True)
class TextComponent:
    """One text run on the plate."""
    type: ComponentType
    x_ratio: float
    align: Align = Align.CENTER
    emboss: bool = True
    font_size_ratio: Optional[float] = None
    letter_spacing_ratio: Optional[float] = None
    baseline_offset_ratio: Optional[float] = None
    y_ratio: Optional[float] = None  # overrides the layout baseline
    color: Optional[str] = None


@dataclass(frozen=True)
class PlateLayout:
    """Text layout for one template."""
    has_code: bool
    font_height_ratio: float
    letter_spacing_ratio: float
    vertical_center: bool
    components: List[TextComponent] = field(default_factory=list)
    font_file: Optional[str] = None
    arabic_font_file: Optional[str] = None
    baseline_ratio: Optional[float] = None

    @property
    def plate_font(self) -> str:
        return self.font_file or DEFAULT_PLATE_FONT


C = ComponentType


def _bike(**kwargs) -> PlateLayout:
    base = dict(font_height_ratio=0.28, letter_spacing_ratio=0.015, vertical_center=False, baseline_ratio=0.5)
    base.update(kwargs)
    return PlateLayout(**base)


ANCHOR_TABLE: Dict[str, PlateLayout] = {
    # --- Private plates ---
    "ajman": PlateLayout(
        has_code=True, font_height_ratio=0.22, letter_spacing_ratio=0.001, vertical_center=True,
        components=[
            TextComponent(C.CODE, 0.10, y_ratio=0.77, font_size_ratio=0.19),
            TextComponent(C.NUMBER, 0.42, y_ratio=0.81),
        ],
    ),
    "abudhabi": PlateLayout(
        has_code=True, font_height_ratio=0.18, letter_spacing_ratio=0.02, vertical_center=True,
        font_file=GL_NUMMERNSCHILD, baseline_ratio=0.50,
        components=[
            TextComponent(C.CODE, 0.09, y_ratio=0.46, font_size_ratio=0.12, letter_spacing_ratio=0.0001, baseline_offset_ratio=-0.23),
            TextComponent(C.NUMBER, 0.70, y_ratio=0.81, font_size_ratio=0.24, letter_spacing_ratio=0.0001, baseline_offset_ratio=-0.03),
        ],
    ),
    "abudhabi2": PlateLayout(
        has_code=True, font_height_ratio=0.18, letter_spacing_ratio=0.02, vertical_center=True,
        font_file=GL_NUMMERNSCHILD, baseline_ratio=0.50,
        components=[
            TextComponent(C.CODE, 0.085, y_ratio=0.71, font_size_ratio=0.165, letter_spacing_ratio=0.0001, baseline_offset_ratio=-0.23, color="#ffffff"),
            TextComponent(C.NUMBER, 0.70, y_ratio=0.80, font_size_ratio=0.23, letter_spacing_ratio=0.0001, baseline_offset_ratio=-0.03),
        ],
    ),
    "dubai": PlateLayout(
        has_code=True, font_height_ratio=0.20, letter_spacing_ratio=0.015, vertical_center=True,
        font_file=ROUGH_MOTION,
        components=[
            TextComponent(C.CODE, 0.13, font_size_ratio=0.12, letter_spacing_ratio=0.0001, baseline_offset_ratio=0.04),
            TextComponent(C.NUMBER, 0.62),
        ],
    ),
    "sharjah": PlateLayout(
        has_code=True, font_height_ratio=0.133, letter_spacing_ratio=0.015, vertical_center=False,
        baseline_ratio=0.70,
        components=[
            TextComponent(C.CODE, 0.165),
            TextComponent(C.NUMBER, 0.760, y_ratio=0.74, font_size_ratio=0.18, letter_spacing_ratio=0.0001),
        ],
    ),
    "rak": PlateLayout(
        has_code=True, font_height_ratio=0.168, letter_spacing_ratio=0.001, vertical_center=True,
        font_file=ROUGH_MOTION,
        components=[
            TextComponent(C.CODE, 0.31, y_ratio=0.82, font_size_ratio=0.20),
            TextComponent(C.NUMBER, 0.65, y_ratio=0.82, font_size_ratio=0.20),
        ],
    ),
    "fujairah": PlateLayout(
        has_code=True, font_height_ratio=0.18, letter_spacing_ratio=0.001, vertical_center=True,
        font_file=ROUGH_MOTION,
        components=[
            TextComponent(C.CODE, 0.13, y_ratio=0.74, font_size_ratio=0.15),
            TextComponent(C.NUMBER, 0.70, y_ratio=0.74, font_size_ratio=0.15),
        ],
    ),
    "umm_al_quwain": PlateLayout(
        has_code=True, font_height_ratio=0.17, letter_spacing_ratio=0.01, vertical_center=False,
        font_file=ROUGH_MOTION, baseline_ratio=0.80,
        components=[
            TextComponent(C.CODE, 0.124),
            TextComponent(C.NUMBER, 0.68, letter_spacing_ratio=0.003),
        ],
    ),

    # --- Bike plates (square, two lines) ---
    "abudhabi_bike": _bike(
        has_code=True, font_file=GL_NUMMERNSCHILD,
        components=[
            TextComponent(C.CODE, 0.87, y_ratio=0.39, font_size_ratio=0.19),
            TextComponent(C.NUMBER, 0.51, y_ratio=0.90, font_size_ratio=0.22),
        ],
    ),
    "dubai_bike": _bike(
        has_code=True, font_file=ROUGH_MOTION, letter_spacing_ratio=0.001,
        components=[
            TextComponent(C.CODE, 0.877, y_ratio=0.44, font_size_ratio=0.20),
            TextComponent(C.NUMBER, 0.5, y_ratio=0.875, font_size_ratio=0.25),
        ],
    ),
    "sharjah_bike": _bike(
        has_code=True, font_file=DIN_1451, letter_spacing_ratio=0.01,
        components=[
            TextComponent(C.CODE, 0.177, y_ratio=0.44, font_size_ratio=0.20),
            TextComponent(C.NUMBER, 0.66, y_ratio=0.885, font_size_ratio=0.20),
        ],
    ),
    "ajman_bike": _bike(
        has_code=True, font_file=DIN_1451,
        components=[
            TextComponent(C.CODE, 0.177, y_ratio=0.44, font_size_ratio=0.20),
            TextComponent(C.NUMBER, 0.64, y_ratio=0.895, font_size_ratio=0.20),
        ],
    ),
    "umm_al_quwain_bike": _bike(
        has_code=True, font_file=ROUGH_MOTION, letter_spacing_ratio=0.01,
        components=[
            TextComponent(C.CODE, 0.171, y_ratio=0.87, font_size_ratio=0.18),
            TextComponent(C.NUMBER, 0.62, y_ratio=0.87, font_size_ratio=0.18),
        ],
    ),
    "rak_bike": _bike(
        has_code=True, font_file=ROUGH_MOTION, letter_spacing_ratio=0.01,
        components=[
            TextComponent(C.CODE, 0.12, y_ratio=0.43, font_size_ratio=0.18),
            TextComponent(C.NUMBER, 0.52, y_ratio=0.87, font_size_ratio=0.18),
        ],
    ),
    "fujairah_bike": _bike(
        has_code=False, font_file=ROUGH_MOTION, letter_spacing_ratio=0.01,
        components=[
            TextComponent(C.NUMBER, 0.5, y_ratio=0.89, font_size_ratio=0.20),
        ],
    ),

    # --- Classic plates ---
    "abudhabi_classic": PlateLayout(
        has_code=False, font_height_ratio=0.22, letter_spacing_ratio=0.01, vertical_center=True,
        font_file=GL_NUMMERNSCHILD, arabic_font_file=AMIRI_BOLD,
        components=[
            TextComponent(C.NUMBER, 0.20, y_ratio=0.68, font_size_ratio=0.14, letter_spacing_ratio=0.001),
            TextComponent(C.ARABIC_NUMBER, 0.79, y_ratio=0.64, font_size_ratio=0.125, letter_spacing_ratio=-0.01),
        ],
    ),
    "dubai_classic": PlateLayout(
        has_code=False, font_height_ratio=0.20, letter_spacing_ratio=-0.0001, vertical_center=True,
        font_file=ROUGH_MOTION,
        components=[
            TextComponent(C.NUMBER, 0.60, font_size_ratio=0.2),
        ],
    ),
    "ajman_classic": PlateLayout(
        has_code=False, font_height_ratio=0.22, letter_spacing_ratio=0.001, vertical_center=True,
        font_file=GL_NUMMERNSCHILD,
        components=[
            TextComponent(C.NUMBER, 0.50, y_ratio=0.69, font_size_ratio=0.16, color="white"),
        ],
    ),
    "sharjah_classic": PlateLayout(
        has_code=True, font_height_ratio=0.22, letter_spacing_ratio=0.005, vertical_center=True,
        font_file=DIN_1451,
        components=[
            TextComponent(C.CODE, 0.10, y_ratio=0.82, font_size_ratio=0.10, color="white"),
            TextComponent(C.NUMBER, 0.72, y_ratio=0.69, font_size_ratio=0.13),
        ],
    ),
    "rak_classic": PlateLayout(
        has_code=False, font_height_ratio=0.22, letter_spacing_ratio=0.015, vertical_center=True,
        font_file=GL_NUMMERNSCHILD,
        components=[
            TextComponent(C.NUMBER, 0.50, y_ratio=0.84, font_size_ratio=0.3, color="white"),
        ],
    ),
}

del C


class AnchorTable:
    """
    Lookup over a layout table.

    Search order for (region, class, version):
    `{region}{v}_{class}`, `{region}{v}`, `{region}_{class}`, `{region}`.
    """

    def __init__(self, layouts: Optional[Mapping[str, PlateLayout]] = None):
        self._layouts = dict(ANCHOR_TABLE if layouts is None else layouts)

    def candidate_keys(
        self,
        region: str,
        vehicle_class: Union[str, VehicleClass] = VehicleClass.PRIVATE,
        version: int = 1,
    ) -> List[str]:
        region = normalize_region(region)
        vehicle_class = coerce_vehicle_class(vehicle_class)
        version_suffix = "2" if version == 2 else ""
        class_suffix = f"_{vehicle_class.value}" if vehicle_class != VehicleClass.PRIVATE else ""

        keys = [
            f"{region}{version_suffix}{class_suffix}",
            f"{region}{version_suffix}",
            f"{region}{class_suffix}",
            region,
        ]
        # Keep order, drop duplicates
        return list(dict.fromkeys(keys))

    def resolve_key(
        self,
        region: str,
        vehicle_class: Union[str, VehicleClass] = VehicleClass.PRIVATE,
        version: int = 1,
    ) -> str:
        """First registered key in search order; AnchorNotFound if none."""
        candidates = self.candidate_keys(region, vehicle_class, version)
        for key in candidates:
            if key in self._layouts:
                return key
        raise AnchorNotFound(candidates[0])

    def lookup(
        self,
        region: str,
        vehicle_class: Union[str, VehicleClass] = VehicleClass.PRIVATE,
        version: int = 1,
    ) -> PlateLayout:
        return self._layouts[self.resolve_key(region, vehicle_class, version)]

    def register(self, key: str, layout: PlateLayout) -> None:
        self._layouts[key] = layout

    def keys(self) -> List[str]:
        return sorted(self._layouts)

    def font_files(self) -> List[str]:
        """Every font file referenced by the table."""
        files = {DEFAULT_PLATE_FONT}
        for layout in self._layouts.values():
            if layout.font_file:
                files.add(layout.font_file)
            if layout.arabic_font_file:
                files.add(layout.arabic_font_file)
        return sorted(files)

    def validate(self) -> List[str]:
        """
        Check every layout for out-of-range ratios and missing number runs.

        Returns:
            List of human-readable problems (empty when the table is sound)
        """
        problems = []
        for key, layout in sorted(self._layouts.items()):
            if not any(c.type in (ComponentType.NUMBER, ComponentType.ARABIC_NUMBER) for c in layout.components):
                problems.append(f"{key}: no number component")
            if layout.has_code != any(c.type == ComponentType.CODE for c in layout.components):
                problems.append(f"{key}: has_code does not match components")
            if not 0 < layout.font_height_ratio <= 1:
                problems.append(f"{key}: font_height_ratio out of range")
            if layout.baseline_ratio is not None and not 0 <= layout.baseline_ratio <= 1:
                problems.append(f"{key}: baseline_ratio out of range")
            for i, comp in enumerate(layout.components):
                if not 0 <= comp.x_ratio <= 1:
                    problems.append(f"{key}[{i}]: x_ratio out of range")
                if comp.y_ratio is not None and not 0 <= comp.y_ratio <= 1:
                    problems.append(f"{key}[{i}]: y_ratio out of range")
                if comp.font_size_ratio is not None and not 0 < comp.font_size_ratio <= 1:
                    problems.append(f"{key}[{i}]: font_size_ratio out of range")
            if layout.arabic_font_file is None and any(c.type == ComponentType.ARABIC_NUMBER for c in layout.components):
                problems.append(f"{key}: arabic component without arabic font")
        return problems
