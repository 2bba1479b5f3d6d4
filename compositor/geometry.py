"""
Geometry Resolver - percentage descriptors to pixel-space draw parameters.

Handles:
1. Parsing CSS-like percentage strings ("67%") into fractions
2. Extracting rotation degrees from transform strings
3. Parsing brightness/contrast filter strings
4. Resolving a placement against a concrete canvas size
5. Deciding text alignment for overlay text

Positions are always the CENTER of the element, never its top-left corner.
"""

import math
import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_POSITION = 0.5
DEFAULT_PLATE_WIDTH = 0.15
DEFAULT_TEXT_TOP = 0.9
DEFAULT_TEXT_LEFT = 0.5

# Applied to every plate overlay that has no filter of its own, to ground it
# against the vehicle photo.
DEFAULT_PLATE_FILTER = "brightness(0.92) contrast(1.05)"

_PERCENT_RE = re.compile(r"(-?\d*\.?\d+)\s*%")
_ROTATE_RE = re.compile(r"rotate(?:Z)?\(\s*(-?\d*\.?\d+)\s*deg\s*\)", re.IGNORECASE)
_DEGREES_RE = re.compile(r"^\s*(-?\d*\.?\d+)\s*deg\s*$", re.IGNORECASE)
_FILTER_RE = re.compile(r"([a-z-]+)\(\s*(-?\d*\.?\d+)\s*(%?)\s*\)", re.IGNORECASE)
_CENTER_TRANSLATE_TOKEN = "translate(-50%"

SUPPORTED_FILTERS = ("brightness", "contrast")


class TextAlign(Enum):
    """Horizontal alignment of overlay text about its anchor."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class TextDirection(Enum):
    """Writing direction of the preview's locale."""
    LTR = "ltr"
    RTL = "rtl"


@dataclass(frozen=True)
class StylingDescriptor:
    """
    CSS-like positioning config for one overlay element.

    This is the legacy shape the preview configs are written in. Use
    `to_placement()` to get the validated, typed form.
    """
    top: Optional[str] = None
    left: Optional[str] = None
    width: Optional[str] = None
    transform: Optional[str] = None
    rotate: Optional[str] = None  # CSS individual `rotate` property, e.g. "-6deg"
    filter: Optional[str] = None
    text_scale: float = 1.0
    align: Optional[TextAlign] = None
    direction: TextDirection = TextDirection.LTR

    @classmethod
    def from_css(cls, styling: Optional[Mapping[str, Any]]) -> Optional["StylingDescriptor"]:
        """
        Build a descriptor from a raw CSS-style mapping.

        Accepts both `textScale` and `text_scale` keys. Unknown keys
        (color, textShadow, ...) are ignored.
        """
        if styling is None:
            return None
        if isinstance(styling, StylingDescriptor):
            return styling

        def _str(key: str) -> Optional[str]:
            value = styling.get(key)
            return str(value) if value is not None else None

        scale = styling.get("text_scale", styling.get("textScale"))
        align = styling.get("align") or styling.get("textAlign")
        direction = styling.get("direction")

        return cls(
            top=_str("top"),
            left=_str("left"),
            width=_str("width"),
            transform=_str("transform"),
            rotate=_str("rotate"),
            filter=_str("filter"),
            text_scale=float(scale) if scale else 1.0,
            align=TextAlign(align) if align else None,
            direction=TextDirection(direction) if direction else TextDirection.LTR,
        )

    def to_placement(
        self,
        default_width: float = DEFAULT_PLATE_WIDTH,
        default_top: float = DEFAULT_POSITION,
        default_left: float = DEFAULT_POSITION,
    ) -> "PlacementDescriptor":
        """Adapt the CSS strings into a typed placement."""
        # The individual `rotate` property composes with the transform
        rotation = parse_rotation(self.transform) + parse_degrees(self.rotate)

        return PlacementDescriptor(
            position_x=parse_percent(self.left, default_left),
            position_y=parse_percent(self.top, default_top),
            width_fraction=parse_percent(self.width, default_width),
            rotation_degrees=rotation,
            filter=self.filter if isinstance(self.filter, str) and self.filter.strip() else None,
        )


@dataclass(frozen=True)
class PlacementDescriptor:
    """Typed, validated placement of an overlay (fractions of the canvas)."""
    position_x: float
    position_y: float
    width_fraction: float = DEFAULT_PLATE_WIDTH
    rotation_degrees: float = 0.0
    filter: Optional[str] = None

    def __post_init__(self):
        for name in ("position_x", "position_y", "width_fraction", "rotation_degrees"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value!r}")
        if self.width_fraction <= 0:
            raise ValueError(f"width_fraction must be positive, got {self.width_fraction}")

    @property
    def rotation_radians(self) -> float:
        return self.rotation_degrees * (math.pi / 180)


@dataclass
class ResolvedPlacement:
    """Pixel-space draw parameters for one overlay."""
    center_x: float
    center_y: float
    width: float
    rotation_radians: float
    filter: str

    def size_for(self, aspect: float) -> Tuple[int, int]:
        """Overlay size in whole pixels for a source with height/width `aspect`."""
        w = max(1, round_half_up(self.width))
        h = max(1, round_half_up(self.width * aspect))
        return w, h


def round_half_up(value: float) -> int:
    """Round like a browser canvas does (halves go up, not to even)."""
    return int(math.floor(value + 0.5))


def parse_percent(value: Optional[str], default: float) -> float:
    """
    Parse a CSS percentage string into a fraction.

    Examples:
        "67%" -> 0.67
        "0%" -> 0.0
        "auto" -> default

    Args:
        value: Raw string (may be None)
        default: Fraction returned when nothing parseable is present

    Returns:
        Fraction clamped to [0, 1]
    """
    if not value:
        return default
    match = _PERCENT_RE.search(str(value))
    if not match:
        return default
    fraction = float(match.group(1)) / 100
    return min(1.0, max(0.0, fraction))


def parse_degrees(value: Optional[str]) -> float:
    """Parse a bare degree value such as "-6deg"."""
    if not value:
        return 0.0
    match = _DEGREES_RE.match(str(value))
    return float(match.group(1)) if match else 0.0


def parse_rotation(transform: Optional[str]) -> float:
    """
    Extract the in-plane rotation (degrees) from a transform string.

    Only rotateZ()/rotate() count, and successive ones add up;
    rotateX/rotateY perspective tilts are not reproduced on a flat raster.
    """
    if not transform:
        return 0.0
    return sum((float(degrees) for degrees in _ROTATE_RE.findall(transform)), 0.0)


def parse_filter(filter_str: Optional[str]) -> List[Tuple[str, float]]:
    """
    Parse a CSS filter string into ordered (function, amount) pairs.

    "brightness(0.92) contrast(105%)" -> [("brightness", 0.92), ("contrast", 1.05)]
    """
    if not filter_str or filter_str.strip() == "none":
        return []

    ops = []
    for name, amount, percent in _FILTER_RE.findall(filter_str):
        name = name.lower()
        if name not in SUPPORTED_FILTERS:
            logger.debug(f"Ignoring unsupported filter function: {name}")
            continue
        value = float(amount)
        if percent:
            value /= 100
        ops.append((name, value))
    return ops


def resolve_placement(
    placement: PlacementDescriptor,
    canvas_width: int,
    canvas_height: int,
) -> ResolvedPlacement:
    """
    Resolve a placement for a concrete canvas.

    Args:
        placement: Typed placement descriptor
        canvas_width: Target canvas width in pixels
        canvas_height: Target canvas height in pixels

    Returns:
        ResolvedPlacement with the element center, width and rotation
    """
    return ResolvedPlacement(
        center_x=placement.position_x * canvas_width,
        center_y=placement.position_y * canvas_height,
        width=placement.width_fraction * canvas_width,
        rotation_radians=placement.rotation_radians,
        filter=placement.filter or DEFAULT_PLATE_FILTER,
    )


def resolve_styling(
    styling: StylingDescriptor,
    canvas_width: int,
    canvas_height: int,
) -> ResolvedPlacement:
    """Shortcut: legacy descriptor straight to pixel space."""
    return resolve_placement(styling.to_placement(), canvas_width, canvas_height)


def resolve_text_anchor(
    styling: StylingDescriptor,
    canvas_width: int,
    canvas_height: int,
) -> Tuple[float, float]:
    """Anchor point for overlay text (defaults: 50% across, 90% down)."""
    x = parse_percent(styling.left, DEFAULT_TEXT_LEFT) * canvas_width
    y = parse_percent(styling.top, DEFAULT_TEXT_TOP) * canvas_height
    return x, y


def resolve_text_alignment(styling: StylingDescriptor) -> TextAlign:
    """
    Alignment for overlay text.

    An explicit `align` wins. Otherwise a horizontal-centering translate
    token means center, and anything else aligns to the start edge of the
    writing direction.
    """
    if styling.align is not None:
        return styling.align
    if styling.transform and _CENTER_TRANSLATE_TOKEN in styling.transform.replace(" ", ""):
        return TextAlign.CENTER
    return TextAlign.RIGHT if styling.direction == TextDirection.RTL else TextAlign.LEFT
