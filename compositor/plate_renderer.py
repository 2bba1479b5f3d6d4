"""
PlateRenderer - burns the series code and plate number into a blank template.

Handles:
1. Resolving the text layout for a region/class
2. Computing baselines, font sizes and letter spacing from the layout ratios
3. Drawing embossed ("pressed metal") or flat glyphs
4. Returning the composed plate raster at the template's native size
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from PIL import Image, ImageColor, ImageDraw

from .anchors import Align, AnchorTable, ComponentType, PlateLayout, TextComponent
from .errors import AssetLoadFailure
from .fonts import FontCache
from .geometry import round_half_up
from .templates import TemplateAsset, VehicleClass, coerce_vehicle_class, normalize_region

logger = logging.getLogger(__name__)

EMBOSS_SHADOW = (0, 0, 0, 128)
EMBOSS_OUTLINE = (255, 255, 255, 140)
EMBOSS_FILL = "#0a0a0a"
FLAT_FILL = "#000000"

_ARABIC_INDIC = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")


def to_arabic_indic(text: str) -> str:
    """Replace Western digits with Arabic-Indic digits."""
    return text.translate(_ARABIC_INDIC)


def emboss_metrics(height: int) -> Tuple[int, int]:
    """
    Depth-shadow offset and outline stroke width for a plate `height` px tall.

    The outline is specified as a centred line width; Pillow strokes only
    outward, so half of that width is drawn.
    """
    shadow_offset = max(3, round_half_up(height * 0.005))
    line_width = max(2, round_half_up(height * 0.003))
    return shadow_offset, max(1, round_half_up(line_width / 2))


@dataclass(frozen=True)
class PlateSpec:
    """Everything needed to pick a template and draw the plate text."""
    region: str
    code: str
    number: str
    vehicle_class: VehicleClass = VehicleClass.PRIVATE
    version: int = 1

    def __post_init__(self):
        object.__setattr__(self, "region", normalize_region(self.region))
        object.__setattr__(self, "vehicle_class", coerce_vehicle_class(self.vehicle_class))
        object.__setattr__(self, "code", (self.code or "").strip())
        object.__setattr__(self, "number", (self.number or "").strip())

    @classmethod
    def from_plate_number(
        cls,
        region: str,
        plate_number: str,
        vehicle_class: Union[str, VehicleClass, None] = None,
        version: int = 1,
    ) -> "PlateSpec":
        """
        Split a stored plate string into code and number.

        "A 12345" -> code "A", number "12345"; "12345" -> no code.
        """
        parts = (plate_number or "").split()
        if len(parts) > 1:
            code, number = parts[0], "".join(parts[1:])
        else:
            code, number = "", parts[0] if parts else ""
        return cls(region=region, code=code, number=number,
                   vehicle_class=coerce_vehicle_class(vehicle_class), version=version)


@dataclass
class _TextRun:
    text: str
    font_name: str
    font_size: int
    spacing: float
    x: float
    y: float
    component: TextComponent


class PlateRenderer:
    """
    Renders plate text onto templates with Pillow.

    The anchor table and the font cache are injected so tests can swap in
    their own layouts and faces.
    """

    def __init__(self, fonts: FontCache, anchors: Optional[AnchorTable] = None):
        self.fonts = fonts
        self.anchors = anchors or AnchorTable()

    async def render(
        self,
        spec: PlateSpec,
        template: Union[TemplateAsset, Image.Image],
        output_width: Optional[int] = None,
    ) -> Image.Image:
        """
        Draw a plate.

        Args:
            spec: Plate data
            template: Loaded blank template
            output_width: Optional width to resample the template to first
                (aspect preserved). Defaults to the template's native width.

        Returns:
            Composed plate raster (RGBA)
        """
        base = template.image if isinstance(template, TemplateAsset) else template
        if base.width == 0 or base.height == 0:
            raise AssetLoadFailure(getattr(template, "key", "<template>"), "invalid blank plate image")

        layout = self.anchors.lookup(spec.region, spec.vehicle_class, spec.version)
        canvas = base.convert("RGBA")
        if output_width and output_width != canvas.width:
            height = round_half_up(output_width * canvas.height / canvas.width)
            canvas = canvas.resize((output_width, height), Image.Resampling.LANCZOS)

        await self.fonts.ensure_loaded(layout.plate_font, required=False)
        if layout.arabic_font_file:
            await self.fonts.ensure_loaded(layout.arabic_font_file, required=False)

        runs = self._layout_runs(spec, layout, canvas.width, canvas.height)
        self._draw_runs(canvas, runs)

        logger.info(f"Rendered plate {spec.region}/{spec.vehicle_class.value} "
                    f"'{spec.code} {spec.number}' at {canvas.width}x{canvas.height}")
        return canvas

    def _component_text(self, spec: PlateSpec, component: TextComponent) -> str:
        if component.type == ComponentType.CODE:
            return spec.code.upper()
        if component.type == ComponentType.ARABIC_NUMBER:
            return to_arabic_indic(spec.number)
        return spec.number

    def _layout_runs(self, spec: PlateSpec, layout: PlateLayout, width: int, height: int) -> List[_TextRun]:
        global_font_height = width * layout.font_height_ratio
        if layout.vertical_center:
            baseline = height / 2 + global_font_height * 0.35
        else:
            baseline = height * (layout.baseline_ratio or 0.5)

        runs = []
        for component in layout.components:
            text = self._component_text(spec, component)
            if not text:
                continue

            font_size = width * component.font_size_ratio if component.font_size_ratio else global_font_height
            spacing_ratio = component.letter_spacing_ratio or layout.letter_spacing_ratio
            if component.y_ratio is not None:
                y = height * component.y_ratio
            elif component.baseline_offset_ratio:
                y = baseline + height * component.baseline_offset_ratio
            else:
                y = baseline

            use_arabic = component.type == ComponentType.ARABIC_NUMBER and layout.arabic_font_file
            runs.append(_TextRun(
                text=text,
                font_name=layout.arabic_font_file if use_arabic else layout.plate_font,
                font_size=round_half_up(font_size),
                spacing=width * spacing_ratio,
                x=width * component.x_ratio,
                y=y,
                component=component,
            ))
        return runs

    def _draw_runs(self, canvas: Image.Image, runs: List[_TextRun]) -> None:
        shadow_offset, stroke_width = emboss_metrics(canvas.height)

        # Layers composite bottom-up: depth shadow, raised outline, face
        shadow = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        outline = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        face = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        shadow_draw = ImageDraw.Draw(shadow)
        outline_draw = ImageDraw.Draw(outline)
        face_draw = ImageDraw.Draw(face)

        for run in runs:
            font = self.fonts.get_font(run.font_name, run.font_size)
            comp = run.component
            total = font.getlength(run.text) + (len(run.text) - 1) * run.spacing

            cursor = run.x
            if comp.align == Align.CENTER:
                cursor = run.x - total / 2
            elif comp.align == Align.RIGHT:
                cursor = run.x - total

            fill = ImageColor.getrgb(comp.color or (EMBOSS_FILL if comp.emboss else FLAT_FILL))
            for char in run.text:
                if comp.emboss:
                    shadow_draw.text((cursor + shadow_offset, run.y + shadow_offset), char,
                                     font=font, fill=EMBOSS_SHADOW, anchor="ls")
                    outline_draw.text((cursor, run.y), char, font=font, fill=EMBOSS_OUTLINE,
                                      stroke_width=stroke_width, stroke_fill=EMBOSS_OUTLINE, anchor="ls")
                face_draw.text((cursor, run.y), char, font=font, fill=fill, anchor="ls")
                cursor += font.getlength(char) + run.spacing

        canvas.alpha_composite(shadow)
        canvas.alpha_composite(outline)
        canvas.alpha_composite(face)
