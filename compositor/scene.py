"""
SceneCompositor - "plate mounted on a vehicle" marketing previews.

Workflow:
1. Load the vehicle background and normalize it to a fixed export width
2. Overlay one or two positioned/rotated copies of the plate
3. Overlay gold price and phone text (bike previews use a fixed layout)

Every step is awaited in order; any failure aborts the whole scene.
"""

import math
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from PIL import Image, ImageEnhance

from .assets import AssetLoader, ImageSource
from .fonts import DISPLAY_FONT, FontCache
from .geometry import (
    StylingDescriptor,
    TextAlign,
    parse_filter,
    resolve_placement,
    resolve_text_alignment,
    resolve_text_anchor,
    round_half_up,
)
from .text import alpha_composite_at, draw_gold_text, format_phone, format_price, parse_price

logger = logging.getLogger(__name__)

SCENE_WIDTH = 7680

PRICED_FONT_SCALE = 2.4
UNPRICED_FONT_SCALE = 1.4
PHONE_FONT_SCALE = 1.6

BIKE_FONT_RATIO = 0.048
BIKE_TEXT_TOP = 0.94
BIKE_PHONE_LEFT = 0.30
BIKE_PRICE_LEFT = 0.70


@dataclass
class SceneRequest:
    """Inputs for one marketing preview."""
    background: ImageSource
    plate: ImageSource  # composed plate raster, data URL, path or bytes
    plate_styling: Optional[StylingDescriptor] = None
    plate_styling_secondary: Optional[StylingDescriptor] = None
    price: Union[int, float, str, None] = None
    phone: str = ""
    price_styling: Optional[StylingDescriptor] = None
    phone_styling: Optional[StylingDescriptor] = None
    is_bike: bool = False


@dataclass
class TextDraw:
    """One positioned text overlay."""
    text: str
    x: float
    y: float
    font_size: int
    align: TextAlign


def contrast_table(amount: float) -> List[int]:
    """Per-band lookup table for CSS contrast(): a linear map pivoting at mid grey."""
    return [max(0, min(255, round_half_up((v - 127.5) * amount + 127.5))) for v in range(256)]


def apply_filter(image: Image.Image, filter_str: str) -> Image.Image:
    """
    Apply a brightness/contrast filter string to a copy of the image.

    Both functions work per pixel on the colour bands, so transparent
    pixels never influence the result and alpha is left untouched.
    """
    result = image
    for name, amount in parse_filter(filter_str):
        alpha = result.getchannel("A") if result.mode == "RGBA" else None
        rgb = result.convert("RGB")
        if name == "brightness":
            rgb = ImageEnhance.Brightness(rgb).enhance(amount)
        elif name == "contrast":
            rgb = rgb.point(contrast_table(amount) * 3)
        result = rgb.convert("RGBA")
        if alpha is not None:
            result.putalpha(alpha)
    return result if result is not image else image.copy()


class SceneCompositor:
    """
    Builds scene rasters with Pillow.

    The loader and font cache are injected so one service can share caches
    across calls, and tests can reset them.
    """

    def __init__(
        self,
        fonts: FontCache,
        loader: Optional[AssetLoader] = None,
        target_width: int = SCENE_WIDTH,
        display_font: str = DISPLAY_FONT,
    ):
        self.fonts = fonts
        self.loader = loader or AssetLoader()
        self.target_width = target_width
        self.display_font = display_font

    async def compose(self, request: SceneRequest) -> Image.Image:
        """
        Compose a full preview.

        Args:
            request: Scene inputs

        Returns:
            RGBA scene raster, `target_width` pixels wide
        """
        background = await self.loader.load_image(request.background)
        canvas = self.create_canvas(background)
        width, height = canvas.size
        logger.info(f"Composing scene at {width}x{height}")

        if request.plate_styling is not None or request.plate_styling_secondary is not None:
            plate = await self.loader.load_image(request.plate)
            for styling in (request.plate_styling, request.plate_styling_secondary):
                if styling is not None:
                    self.draw_plate(canvas, plate, styling)

        # Make sure the display face is in memory before any text is measured
        await self.fonts.ensure_loaded(self.display_font, required=True)

        for draw in self.plan_text(request, width, height):
            self.draw_text(canvas, draw)

        return canvas

    def create_canvas(self, background: Image.Image) -> Image.Image:
        """Scale the background to the target width, keeping its aspect."""
        scale = self.target_width / background.width
        size = (round_half_up(background.width * scale), round_half_up(background.height * scale))
        return background.convert("RGBA").resize(size, Image.Resampling.LANCZOS)

    def draw_plate(self, canvas: Image.Image, plate: Image.Image, styling: StylingDescriptor) -> None:
        """Draw one plate overlay centered on its resolved position."""
        placement = resolve_placement(styling.to_placement(), canvas.width, canvas.height)
        size = placement.size_for(plate.height / plate.width)

        overlay = plate.convert("RGBA").resize(size, Image.Resampling.LANCZOS)
        overlay = apply_filter(overlay, placement.filter)
        if placement.rotation_radians:
            degrees = math.degrees(placement.rotation_radians)
            # Canvas rotation is clockwise for positive angles; Pillow's is counter-clockwise
            overlay = overlay.rotate(-degrees, resample=Image.Resampling.BICUBIC, expand=True)

        x = round_half_up(placement.center_x - overlay.width / 2)
        y = round_half_up(placement.center_y - overlay.height / 2)
        alpha_composite_at(canvas, overlay, x, y)

    def font_size_for(self, canvas_width: int, base_scale: float, text_scale: float = 1.0) -> int:
        """Font size tied to canvas width (1 unit = 1% of the width)."""
        return max(1, round_half_up(base_scale * text_scale * (canvas_width / 100)))

    def plan_text(self, request: SceneRequest, width: int, height: int) -> List[TextDraw]:
        """
        Work out every text overlay for a canvas size without drawing.

        Bike previews ignore the price/phone stylings entirely.
        """
        if request.is_bike:
            return self._plan_bike_text(request.price, request.phone, width, height)

        draws = []
        if request.price_styling is not None:
            priced = parse_price(request.price) is not None
            draws.append(self._plan_styled(
                request.price_styling,
                format_price(request.price),
                PRICED_FONT_SCALE if priced else UNPRICED_FONT_SCALE,
                width,
                height,
            ))
        if request.phone_styling is not None and request.phone:
            draws.append(self._plan_styled(request.phone_styling, format_phone(request.phone),
                                           PHONE_FONT_SCALE, width, height))
        return draws

    def draw_text(self, canvas: Image.Image, draw: TextDraw) -> None:
        font = self.fonts.get_font(self.display_font, draw.font_size)
        draw_gold_text(canvas, draw.text, draw.x, draw.y, font, draw.font_size, align=draw.align)

    def _plan_styled(
        self,
        styling: StylingDescriptor,
        text: str,
        base_scale: float,
        width: int,
        height: int,
    ) -> TextDraw:
        x, y = resolve_text_anchor(styling, width, height)
        return TextDraw(
            text=text,
            x=x,
            y=y,
            font_size=self.font_size_for(width, base_scale, styling.text_scale),
            align=resolve_text_alignment(styling),
        )

    def _plan_bike_text(
        self,
        price: Union[int, float, str, None],
        phone: str,
        width: int,
        height: int,
    ) -> List[TextDraw]:
        font_size = max(1, round_half_up(width * BIKE_FONT_RATIO))
        y = height * BIKE_TEXT_TOP
        price_text = format_price(price)

        if phone:
            return [
                TextDraw(format_phone(phone), width * BIKE_PHONE_LEFT, y, font_size, TextAlign.CENTER),
                TextDraw(price_text, width * BIKE_PRICE_LEFT, y, font_size, TextAlign.CENTER),
            ]
        return [TextDraw(price_text, width / 2, y, font_size, TextAlign.CENTER)]
