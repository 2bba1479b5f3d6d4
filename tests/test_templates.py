import base64

import httpx
import pytest
from PIL import Image

from compositor.assets import AssetCache, AssetLoader
from compositor.errors import AssetLoadFailure, TemplateNotFound
from compositor.templates import (
    TemplateLoader,
    TemplateRegistry,
    VehicleClass,
    normalize_region,
    region_folder,
    template_key,
)

from synthetic import BIKE_TEMPLATE_SIZE, TEMPLATE_SIZE, png_bytes


def test_template_key():
    assert template_key("dubai") == "dubai"
    assert template_key("dubai", VehicleClass.BIKE) == "dubai_bike"
    assert template_key("Ras Al Khaimah", "classic") == "rak_classic"
    assert template_key("abudhabi", "private", version=2) == "abudhabi2"
    assert template_key("dubai", "something-else") == "dubai"


def test_region_names():
    assert normalize_region("Umm Al Quwain") == "umm_al_quwain"
    assert normalize_region(" Dubai ") == "dubai"
    assert region_folder("rak") == "ras-al-khaimah"
    assert region_folder("Abu Dhabi") == "abu-dhabi"
    assert region_folder("new_region") == "new-region"


def test_registry_location():
    assert TemplateRegistry("/srv/plates").location("dubai") == "/srv/plates/dubai-plate.webp"
    assert TemplateRegistry("https://cdn.test/plates/").location("rak_bike") == "https://cdn.test/plates/RAK-B-plate.webp"
    assert TemplateRegistry("/srv/plates").location("narnia") is None


def test_registry_regions():
    regions = TemplateRegistry().regions()
    assert "dubai" in regions
    assert "umm_al_quwain" in regions
    assert "dubai_bike" not in regions


@pytest.mark.asyncio
async def test_loads_class_specific_template(template_dir):
    loader = TemplateLoader(TemplateRegistry(template_dir))
    asset = await loader.load("dubai", VehicleClass.BIKE)
    assert asset.key == "dubai_bike"
    assert asset.size == BIKE_TEMPLATE_SIZE


@pytest.mark.asyncio
async def test_falls_back_to_bare_region(template_dir):
    loader = TemplateLoader(TemplateRegistry(template_dir))
    # rak_classic is registered but its file is missing
    asset = await loader.load("rak", VehicleClass.CLASSIC)
    assert asset.key == "rak"
    assert asset.size == TEMPLATE_SIZE


@pytest.mark.asyncio
async def test_unregistered_version_falls_back(template_dir):
    loader = TemplateLoader(TemplateRegistry(template_dir))
    asset = await loader.load("dubai", VehicleClass.PRIVATE, version=2)
    assert asset.key == "dubai"


@pytest.mark.asyncio
async def test_template_not_found(template_dir):
    loader = TemplateLoader(TemplateRegistry(template_dir))
    with pytest.raises(TemplateNotFound) as exc_info:
        await loader.load("sharjah", VehicleClass.BIKE)
    assert exc_info.value.key == "sharjah_bike"
    assert "No template image found for sharjah_bike" in str(exc_info.value)

    with pytest.raises(TemplateNotFound):
        await loader.load("narnia")


@pytest.mark.asyncio
async def test_template_cache_survives_file_removal(template_dir):
    cache = AssetCache()
    loader = TemplateLoader(TemplateRegistry(template_dir), AssetLoader(cache=cache))
    await loader.load("dubai")
    (template_dir / "dubai-plate.webp").unlink()

    asset = await loader.load("dubai")
    assert asset.size == TEMPLATE_SIZE

    cache.clear()
    with pytest.raises(TemplateNotFound):
        await loader.load("dubai")


@pytest.mark.asyncio
async def test_asset_loader_sources():
    loader = AssetLoader()
    data = png_bytes()
    data_url = "data:image/png;base64," + base64.b64encode(data).decode("ascii")

    from_bytes = await loader.load_image(data)
    from_url = await loader.load_image(data_url)
    assert from_bytes.size == (4, 3)
    assert from_url.mode == "RGBA"
    assert from_url.getpixel((0, 0)) == (255, 0, 0, 255)


@pytest.mark.asyncio
async def test_asset_loader_rejects_garbage(tmp_path):
    loader = AssetLoader()
    with pytest.raises(AssetLoadFailure):
        await loader.load_image(b"not an image")
    with pytest.raises(AssetLoadFailure):
        await loader.load_image(b"")
    with pytest.raises(AssetLoadFailure):
        await loader.load_image(str(tmp_path / "missing.png"))


@pytest.mark.asyncio
async def test_asset_loader_fetches_over_http():
    def handler(request):
        if request.url.path == "/ok.png":
            return httpx.Response(200, content=png_bytes((8, 8)))
        return httpx.Response(404)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        loader = AssetLoader(client=client)
        image = await loader.load_image("https://assets.test/ok.png")
        assert image.size == (8, 8)
        with pytest.raises(AssetLoadFailure):
            await loader.load_image("https://assets.test/missing.png")


def test_asset_cache_evicts_oldest():
    cache = AssetCache(max_entries=2)
    image = Image.new("RGBA", (1, 1))
    cache.put("a", image)
    cache.put("b", image)
    cache.put("c", image)
    assert "a" not in cache
    assert len(cache) == 2
    assert cache.evict("b") is True
    assert cache.evict("b") is False
