"""Synthetic images for tests (no real plate art or photos needed)."""

import io

from PIL import Image, ImageDraw

TEMPLATE_SIZE = (520, 110)
BIKE_TEMPLATE_SIZE = (300, 200)
BACKGROUND_SIZE = (320, 180)


def make_template(size=TEMPLATE_SIZE, color=(245, 245, 245, 255)):
    image = Image.new("RGBA", size, color)
    draw = ImageDraw.Draw(image)
    draw.rectangle([2, 2, size[0] - 3, size[1] - 3], outline=(0, 0, 0, 255), width=2)
    return image


def make_background(size=BACKGROUND_SIZE):
    image = Image.new("RGB", size, (30, 60, 90))
    ImageDraw.Draw(image).rectangle([0, size[1] // 2, size[0], size[1]], fill=(80, 80, 80))
    return image


def png_bytes(size=(4, 3), color=(255, 0, 0, 255)):
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()
