import httpx
import pytest

from compositor.anchors import ROUGH_MOTION
from compositor.errors import FontLoadFailure
from compositor.fonts import BUILTIN, FontCache, plate_font_sources

CSS_URL = "https://fonts.googleapis.com/css2?family=Cinzel+Decorative:wght@700&display=swap"
FONT_URL = "https://fonts.gstatic.test/cinzel.woff2"


@pytest.mark.asyncio
async def test_builtin_face():
    cache = FontCache({"display": BUILTIN})
    await cache.ensure_loaded("display")
    assert cache.is_loaded("display")

    face = cache.get_font("display", 40)
    assert face.getlength("AED") > 0
    assert cache.get_font("display", 40) is face


def test_get_font_requires_load():
    with pytest.raises(FontLoadFailure):
        FontCache({"display": BUILTIN}).get_font("display", 12)


@pytest.mark.asyncio
async def test_required_font_without_source_fails():
    with pytest.raises(FontLoadFailure):
        await FontCache().ensure_loaded("display", required=True)


@pytest.mark.asyncio
async def test_optional_font_falls_back_to_builtin(tmp_path):
    cache = FontCache({ROUGH_MOTION: str(tmp_path / "missing.otf")})
    await cache.ensure_loaded(ROUGH_MOTION, required=False)
    assert cache.is_loaded(ROUGH_MOTION)
    assert cache.get_font(ROUGH_MOTION, 20).getlength("12345") > 0


@pytest.mark.asyncio
async def test_google_css_is_followed_to_the_font_file():
    requested = []

    def handler(request):
        requested.append(str(request.url))
        if request.url.host == "fonts.googleapis.com":
            css = f"@font-face {{ font-family: 'Cinzel Decorative'; src: url({FONT_URL}) format('woff2'); }}"
            return httpx.Response(200, text=css)
        return httpx.Response(200, content=b"not really a font")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        cache = FontCache({"display": CSS_URL}, client=client)
        # The bytes are not a valid face, so a required load fails
        with pytest.raises(FontLoadFailure):
            await cache.ensure_loaded("display", required=True)

    assert len(requested) == 2
    assert requested[0].startswith("https://fonts.googleapis.com/css2")
    assert requested[1] == FONT_URL
    assert not cache.is_loaded("display")


@pytest.mark.asyncio
async def test_http_error_on_optional_font():
    def handler(request):
        return httpx.Response(500)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        cache = FontCache({"plate": "https://cdn.test/fonts/plate.ttf"}, client=client)
        await cache.ensure_loaded("plate", required=False)
    assert cache.is_loaded("plate")


@pytest.mark.asyncio
async def test_register_and_evict():
    cache = FontCache({"display": BUILTIN})
    await cache.ensure_loaded("display")
    cache.get_font("display", 10)

    cache.register("display", BUILTIN)
    assert not cache.is_loaded("display")

    await cache.ensure_loaded("display")
    cache.clear()
    assert not cache.is_loaded("display")


def test_plate_font_sources():
    assert plate_font_sources([ROUGH_MOTION], None) == {ROUGH_MOTION: BUILTIN}
    assert plate_font_sources([ROUGH_MOTION], "/srv/fonts") == {ROUGH_MOTION: "/srv/fonts/Rough Motion.otf"}
    assert plate_font_sources([ROUGH_MOTION], "https://cdn.test/fonts/") == {
        ROUGH_MOTION: "https://cdn.test/fonts/Rough%20Motion.otf"
    }
