"""
Encoder/Exporter - turns composed rasters into WebP, JPEG or PNG bytes.

Quality is given as a fraction in (0, 1], the way browser canvas encoders
take it, and mapped onto Pillow's 1-100 scale.
"""

import io
import base64
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from .errors import EncodeFailure

logger = logging.getLogger(__name__)

PLATE_WEBP_QUALITY = 0.85
PREVIEW_JPEG_QUALITY = 0.95


class ImageFormat(str, Enum):
    """Supported export formats."""
    WEBP = "webp"
    JPEG = "jpeg"
    PNG = "png"

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        return "jpg" if self is ImageFormat.JPEG else self.value


@dataclass
class EncodedImage:
    """Encoded bytes plus what a download or upload needs to label them."""
    data: bytes
    format: ImageFormat
    filename: str = ""

    @property
    def content_type(self) -> str:
        return self.format.content_type

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


def coerce_format(fmt: Union[str, ImageFormat]) -> ImageFormat:
    """Accept "jpg", "JPEG", "image/webp" and friends."""
    if isinstance(fmt, ImageFormat):
        return fmt
    value = str(fmt).lower().strip()
    if value.startswith("image/"):
        value = value[len("image/"):]
    if value == "jpg":
        value = "jpeg"
    try:
        return ImageFormat(value)
    except ValueError as e:
        raise EncodeFailure(f"Unsupported image format: {fmt}") from e


def _quality_percent(quality: float) -> int:
    if not 0 < quality <= 1:
        raise EncodeFailure(f"Quality must be in (0, 1], got {quality}")
    return max(1, min(100, round(quality * 100)))


def encode(
    image: Image.Image,
    fmt: Union[str, ImageFormat] = ImageFormat.PNG,
    quality: float = 1.0,
    filename: str = "",
) -> EncodedImage:
    """
    Encode a raster.

    Args:
        image: Composed raster (any mode; RGBA expected)
        fmt: Target format
        quality: Lossy quality as a fraction in (0, 1]; ignored for PNG
        filename: Optional name carried on the result

    Returns:
        EncodedImage with non-empty bytes

    Raises:
        EncodeFailure: unsupported format, bad quality, codec error or empty output
    """
    image_format = coerce_format(fmt)
    if image.width == 0 or image.height == 0:
        raise EncodeFailure("Cannot encode an empty image")

    options = {}
    if image_format is ImageFormat.PNG:
        source = image
    else:
        options["quality"] = _quality_percent(quality)
        if image_format is ImageFormat.JPEG:
            # JPEG has no alpha: transparent pixels come out black
            source = Image.new("RGB", image.size, (0, 0, 0))
            if image.mode == "RGBA":
                source.paste(image, mask=image.getchannel("A"))
            else:
                source.paste(image.convert("RGB"))
        else:
            source = image if image.mode in ("RGB", "RGBA") else image.convert("RGBA")

    buffer = io.BytesIO()
    try:
        source.save(buffer, format=image_format.name, **options)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeFailure(f"Failed to encode {image_format.value}: {e}") from e

    data = buffer.getvalue()
    if not data:
        raise EncodeFailure(f"Encoder produced no {image_format.value} data")

    logger.info(f"Encoded {image.width}x{image.height} as {image_format.value} ({len(data)} bytes)")
    return EncodedImage(data=data, format=image_format, filename=filename)


def decode(data: bytes) -> Image.Image:
    """Decode encoded bytes back into a fully loaded raster."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (OSError, ValueError) as e:
        raise EncodeFailure(f"Failed to decode image: {e}") from e
    return image


def save_export(encoded: EncodedImage, directory: Union[str, Path], filename: Optional[str] = None) -> Path:
    """
    Write an encoded image to `directory` under its own (or the given) name.

    Returns:
        Path of the written file
    """
    name = filename or encoded.filename
    if not name:
        raise EncodeFailure("No filename given for export")
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    path = target / Path(name).name
    path.write_bytes(encoded.data)
    logger.info(f"Saved export: {path}")
    return path
