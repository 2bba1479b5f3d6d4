import pytest

from compositor.anchors import AnchorTable
from compositor.assets import AssetCache, AssetLoader
from compositor.fonts import BUILTIN, DISPLAY_FONT, FontCache
from compositor.generator import PlateImageService
from storage import LocalStorage
from synthetic import BIKE_TEMPLATE_SIZE, TEMPLATE_SIZE, make_background, make_template


@pytest.fixture
def template_dir(tmp_path):
    """Blank templates for dubai (private + bike) and rak (private only)."""
    directory = tmp_path / "templates"
    directory.mkdir()
    make_template(TEMPLATE_SIZE).save(directory / "dubai-plate.webp", format="WEBP", lossless=True)
    make_template(BIKE_TEMPLATE_SIZE).save(directory / "Dubai-B-plate.webp", format="WEBP", lossless=True)
    make_template(TEMPLATE_SIZE).save(directory / "rak-plate.webp", format="WEBP", lossless=True)
    return directory


@pytest.fixture
def preview_dir(tmp_path):
    directory = tmp_path / "previews"
    directory.mkdir()
    make_background().save(directory / "Preview-Plate.png", format="PNG")
    make_background().save(directory / "Preview-Plate-Bike.webp", format="WEBP", lossless=True)
    make_background().save(directory / "Preview-Plate-RAK1.png", format="PNG")
    return directory


@pytest.fixture
def fonts():
    """Font cache that resolves every face to Pillow's bundled font."""
    sources = {name: BUILTIN for name in AnchorTable().font_files()}
    sources[DISPLAY_FONT] = BUILTIN
    return FontCache(sources)


@pytest.fixture
def loader():
    return AssetLoader(cache=AssetCache())


@pytest.fixture
def bucket_dir(tmp_path):
    return tmp_path / "bucket"


@pytest.fixture
def local_storage(bucket_dir):
    return LocalStorage(bucket_dir, base_url="https://cdn.test/plate-images")


@pytest.fixture
def service(template_dir, preview_dir, local_storage):
    return PlateImageService.create(
        template_base=str(template_dir),
        preview_base=str(preview_dir),
        plate_font_dir=None,
        display_font_source=BUILTIN,
        storage=local_storage,
        scene_width=640,
    )
