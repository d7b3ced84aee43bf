import base64
import io

import pytest
from PIL import Image

from memento import MementoComposer, RenderRequest, Track
from memento.assets import AssetLoader


def solid_rasterizer(svg: str, width: int, height: int) -> Image.Image:
    """Stand-in rasterizer: a translucent white layer of the requested size."""
    return Image.new("RGBA", (width, height), (255, 255, 255, 64))


def failing_rasterizer(svg: str, width: int, height: int) -> Image.Image:
    raise RuntimeError("renderer unavailable")


def cairo_available() -> bool:
    try:
        import cairosvg  # noqa: F401
    except (ImportError, OSError):
        return False
    return True


def magick_available() -> bool:
    try:
        import wand.api  # noqa: F401  (raises ImportError when MagickWand is missing)
        from wand.version import formats
    except (ImportError, OSError):
        return False
    return bool(formats("SVG"))


def make_png(size=(8, 6), color=(200, 40, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def photo_data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def sample_tracks():
    return [
        Track(artist="Deadmau5", title="Strobe", mix="Club Edit"),
        Track(artist="Daft Punk", title="One More Time"),
        Track(artist="Bicep", title="Glue"),
    ]


@pytest.fixture
def make_request(sample_tracks):
    def _make(**overrides):
        fields = {
            "template_id": "portrait",
            "party_name": "Rooftop Sessions",
            "subtitle_variant": "from",
            "date": "2025-08-29",
            "location": "NYC",
            "tracks": sample_tracks,
            "preview": True,
        }
        fields.update(overrides)
        return RenderRequest(**fields)
    return _make


@pytest.fixture
def composer(tmp_path):
    return MementoComposer(
        assets=AssetLoader(tmp_path),
        primary_rasterizer=solid_rasterizer,
        fallback_rasterizer=solid_rasterizer,
    )
