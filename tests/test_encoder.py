import base64

import pytest
from PIL import Image

from compositor.encoder import (
    EncodedImage,
    ImageFormat,
    coerce_format,
    decode,
    encode,
    save_export,
)
from compositor.errors import EncodeFailure


@pytest.fixture
def raster():
    image = Image.new("RGBA", (64, 32), (0, 0, 0, 0))
    image.paste((250, 250, 250, 255), (0, 0, 32, 32))
    return image


@pytest.mark.parametrize("fmt, quality", [
    (ImageFormat.WEBP, 0.85),
    (ImageFormat.JPEG, 0.95),
    (ImageFormat.PNG, 1.0),
])
def test_encode_keeps_dimensions(raster, fmt, quality):
    encoded = encode(raster, fmt, quality)
    assert encoded.data
    assert encoded.content_type == f"image/{fmt.value}"
    assert decode(encoded.data).size == (64, 32)


def test_png_is_lossless(raster):
    decoded = decode(encode(raster, "png").data).convert("RGBA")
    assert decoded.tobytes() == raster.tobytes()


def test_jpeg_flattens_transparency_onto_black(raster):
    decoded = decode(encode(raster, "jpg", 0.95).data)
    assert decoded.mode == "RGB"
    r, g, b = decoded.getpixel((60, 16))
    assert max(r, g, b) < 16
    assert min(decoded.getpixel((8, 16))) > 230


def test_unsupported_format(raster):
    with pytest.raises(EncodeFailure):
        encode(raster, "gif")


def test_bad_quality(raster):
    with pytest.raises(EncodeFailure):
        encode(raster, ImageFormat.WEBP, 0)
    with pytest.raises(EncodeFailure):
        encode(raster, ImageFormat.JPEG, 1.5)


def test_empty_image():
    with pytest.raises(EncodeFailure):
        encode(Image.new("RGBA", (0, 0)), "png")


def test_decode_garbage():
    with pytest.raises(EncodeFailure):
        decode(b"definitely not an image")


def test_coerce_format():
    assert coerce_format("JPG") is ImageFormat.JPEG
    assert coerce_format("image/webp") is ImageFormat.WEBP
    assert ImageFormat.JPEG.extension == "jpg"


def test_data_url():
    encoded = EncodedImage(data=b"\x89PNG", format=ImageFormat.PNG)
    url = encoded.to_data_url()
    assert url.startswith("data:image/png;base64,")
    assert base64.b64decode(url.split(",", 1)[1]) == b"\x89PNG"


def test_save_export(raster, tmp_path):
    encoded = encode(raster, "png", filename="UAE_Plate_dubai_private_A_12345_v1.png")
    path = save_export(encoded, tmp_path / "out")
    assert path.name == "UAE_Plate_dubai_private_A_12345_v1.png"
    assert path.read_bytes() == encoded.data


def test_save_export_needs_a_name(raster, tmp_path):
    with pytest.raises(EncodeFailure):
        save_export(encode(raster, "png"), tmp_path)
