"""
Gold gradient text for marketing previews.

Also owns the price and phone formatting used in the overlays.
"""

import re
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from .geometry import TextAlign, round_half_up

logger = logging.getLogger(__name__)

CONTACT_SELLER = "Contact Seller"
CURRENCY = "AED"

GOLD_STOPS: List[Tuple[float, Tuple[int, int, int]]] = [
    (0.0, (0xF6, 0xD9, 0x72)),
    (0.4, (0xC3, 0x9A, 0x31)),
    (0.5, (0xF9, 0xEE, 0xA2)),
    (1.0, (0x8C, 0x6C, 0x16)),
]

_ANCHORS = {
    TextAlign.LEFT: "lm",
    TextAlign.CENTER: "mm",
    TextAlign.RIGHT: "rm",
}


@dataclass(frozen=True)
class ShadowStyle:
    """Drop shadow (canvas semantics: blur is twice the Gaussian sigma)."""
    color: Tuple[int, int, int] = (0, 0, 0)
    opacity: float = 0.6
    blur: float = 16
    offset_x: int = 0
    offset_y: int = 8


GOLD_SHADOW = ShadowStyle()


def parse_price(price: Union[int, float, str, None]) -> Optional[Decimal]:
    """Numeric price, or None for missing/zero/unparseable values."""
    if price is None or isinstance(price, bool):
        return None
    try:
        value = Decimal(str(price).replace(",", "").strip())
    except InvalidOperation:
        return None
    if not value.is_finite() or value == 0:
        return None
    return value


def format_price(price: Union[int, float, str, None]) -> str:
    """
    Price overlay text.

    Examples:
        >>> format_price(550000)
        'AED 550,000'
        >>> format_price(None)
        'Contact Seller'
    """
    value = parse_price(price)
    if value is None:
        return CONTACT_SELLER
    if value == value.to_integral_value():
        return f"{CURRENCY} {int(value):,}"
    # Up to three fraction digits, trailing zeros dropped
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return f"{CURRENCY} {text}"


def format_phone(phone: str) -> str:
    """
    Space out a UAE phone number for display.

    Examples:
        >>> format_phone("+971501234567")
        '+971 50 123 4567'
        >>> format_phone("0501234567")
        '050 123 4567'
    """
    if not phone:
        return ""
    cleaned = re.sub(r"[^\d+]", "", phone)
    if cleaned.startswith("+971"):
        rest = cleaned[4:]
        if len(rest) >= 2:
            return f"+971 {rest[:2]} {rest[2:5]} {rest[5:]}".strip()
    elif cleaned.startswith("05"):
        return f"{cleaned[:3]} {cleaned[3:6]} {cleaned[6:]}".strip()
    return phone


def _gradient_color(t: float) -> Tuple[int, int, int]:
    t = min(1.0, max(0.0, t))
    for (t0, c0), (t1, c1) in zip(GOLD_STOPS, GOLD_STOPS[1:]):
        if t <= t1:
            span = (t - t0) / (t1 - t0) if t1 > t0 else 0.0
            return tuple(round_half_up(a + (b - a) * span) for a, b in zip(c0, c1))
    return GOLD_STOPS[-1][1]


def gold_gradient(width: int, height: int, top: int, center_y: float, span: float) -> Image.Image:
    """
    Vertical gold gradient for a box whose top edge sits at canvas row `top`.

    The gradient runs over `span` pixels centered on `center_y`; rows
    outside it take the end colors.
    """
    column = Image.new("RGB", (1, height))
    start = center_y - span / 2
    pixels = column.load()
    for row in range(height):
        pixels[0, row] = _gradient_color(((top + row + 0.5) - start) / span if span else 0.0)
    return column.resize((width, height), Image.Resampling.NEAREST)


def alpha_composite_at(canvas: Image.Image, overlay: Image.Image, x: int, y: int) -> None:
    """Source-over composite at (x, y), clipping to the canvas (negative offsets allowed)."""
    left, top = max(x, 0), max(y, 0)
    right = min(x + overlay.width, canvas.width)
    bottom = min(y + overlay.height, canvas.height)
    if right <= left or bottom <= top:
        return
    region = overlay.crop((left - x, top - y, right - x, bottom - y))
    canvas.alpha_composite(region, (left, top))


def draw_gold_text(
    canvas: Image.Image,
    text: str,
    x: float,
    y: float,
    font: ImageFont.FreeTypeFont,
    font_size: int,
    align: TextAlign = TextAlign.LEFT,
    shadow: Optional[ShadowStyle] = GOLD_SHADOW,
) -> None:
    """
    Draw gradient-filled text centered vertically on `y`.

    Args:
        canvas: RGBA canvas, modified in place
        text: Text to draw
        x: Anchor x (left edge, center or right edge depending on align)
        y: Anchor y (vertical middle of the text)
        font: Sized face
        font_size: Nominal size, which is also the gradient span
        align: Horizontal alignment about x
        shadow: Drop shadow, or None
    """
    if not text:
        return

    anchor = _ANCHORS[align]
    left, top, right, bottom = font.getbbox(text, anchor=anchor)
    pad = 2
    if shadow is not None:
        pad += int(shadow.blur * 1.5) + max(abs(shadow.offset_x), abs(shadow.offset_y))

    origin_x = int(x + left) - pad
    origin_y = int(y + top) - pad
    size = (int(right - left) + 2 * pad + 1, int(bottom - top) + 2 * pad + 1)
    local = (x - origin_x, y - origin_y)

    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).text(local, text, font=font, fill=255, anchor=anchor)

    if shadow is not None:
        shadow_mask = Image.new("L", size, 0)
        ImageDraw.Draw(shadow_mask).text(
            (local[0] + shadow.offset_x, local[1] + shadow.offset_y),
            text, font=font, fill=round_half_up(255 * shadow.opacity), anchor=anchor,
        )
        if shadow.blur > 0:
            shadow_mask = shadow_mask.filter(ImageFilter.GaussianBlur(shadow.blur / 2))
        shadow_layer = Image.new("RGBA", size, shadow.color + (0,))
        shadow_layer.putalpha(shadow_mask)
        alpha_composite_at(canvas, shadow_layer, origin_x, origin_y)

    fill = gold_gradient(size[0], size[1], origin_y, y, font_size).convert("RGBA")
    fill.putalpha(mask)
    alpha_composite_at(canvas, fill, origin_x, origin_y)
