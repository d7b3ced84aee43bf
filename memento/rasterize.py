"""
SVG rasterization with a primary and a fallback path.

Primary: CairoSVG straight at the target pixel size, which keeps text
shaping crisp at 2x.
Fallback: ImageMagick (through Wand) at the SVG's nominal (1x) size, then a
Pillow resize to the target size. The two paths share no native library, so
a missing cairo only costs sharpness. Output dimensions are identical on
both paths.

Either rasterizer can be swapped out (or the primary disabled) by passing
callables to rasterize_with_fallback.
"""

import io
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PIL import Image

from .errors import MalformedPhotoError, RasterizeError
from .photo import parse_data_url

logger = logging.getLogger(__name__)

Rasterizer = Callable[[str, int, int], Image.Image]

PRIMARY = "primary"
FALLBACK = "fallback"


@dataclass
class RasterResult:
    """Rasterized layer and which path produced it."""
    image: Image.Image
    path: str
    primary_error: Optional[str] = None


def _data_url_fetcher(url: str, resource_type: str = "resource", *_, **__) -> bytes:
    """Resolve embedded data URIs only; overlays never reference the network."""
    if url.startswith("data:"):
        try:
            return parse_data_url(url)[1]
        except MalformedPhotoError as e:
            logger.warning(f"Ignoring unreadable embedded {resource_type}: {e}")
            return b""
    logger.warning(f"Ignoring non-embedded {resource_type} reference: {url[:60]}")
    return b""


def _svg_to_png(svg: str, width: int, height: int) -> bytes:
    # Imported here so a missing native cairo only fails the call that needs it
    import cairosvg

    return cairosvg.svg2png(
        bytestring=svg.encode("utf-8"),
        output_width=width,
        output_height=height,
        url_fetcher=_data_url_fetcher,
    )


def _magick_svg_to_png(svg: str) -> bytes:
    # Imported here so a missing MagickWand library only fails the fallback
    from wand.color import Color as WandColor
    from wand.image import Image as WandImage

    with WandImage(blob=svg.encode("utf-8"), format="svg", background=WandColor("transparent")) as img:
        img.format = "png"
        return img.make_blob()


def _open_rgba(png: bytes) -> Image.Image:
    with Image.open(io.BytesIO(png)) as img:
        return img.convert("RGBA")


def cairo_rasterizer(svg: str, width: int, height: int) -> Image.Image:
    """Render the SVG directly at width x height with CairoSVG."""
    return _open_rgba(_svg_to_png(svg, width, height))


def magick_rasterizer(svg: str, width: int, height: int) -> Image.Image:
    """Render the SVG at its nominal size with ImageMagick, then resize to width x height."""
    image = _open_rgba(_magick_svg_to_png(svg))
    if image.size != (width, height):
        image = image.resize((width, height), Image.Resampling.LANCZOS)
    return image


def _fit(image: Image.Image, width: int, height: int) -> Image.Image:
    if image.size != (width, height):
        logger.warning(f"Rasterizer returned {image.size}, resizing to {width}x{height}")
        image = image.resize((width, height), Image.Resampling.LANCZOS)
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return image


def rasterize_with_fallback(
    svg: str,
    width: int,
    height: int,
    primary: Optional[Rasterizer] = cairo_rasterizer,
    fallback: Rasterizer = magick_rasterizer,
) -> RasterResult:
    """
    Rasterize an SVG, trying the primary rasterizer before the fallback.

    Args:
        svg: SVG document
        width: Target width in px
        height: Target height in px
        primary: Preferred rasterizer, or None to skip straight to the fallback
        fallback: Rasterizer used when the primary is missing or fails

    Returns:
        RasterResult holding a width x height RGBA image

    Raises:
        RasterizeError: if the fallback fails as well
    """
    primary_error = None
    if primary is not None:
        try:
            return RasterResult(image=_fit(primary(svg, width, height), width, height), path=PRIMARY)
        except Exception as e:
            primary_error = f"{type(e).__name__}: {e}"
            logger.warning(f"Primary rasterizer failed ({primary_error}), using fallback")
    else:
        primary_error = "disabled"

    try:
        image = fallback(svg, width, height)
    except Exception as e:
        raise RasterizeError(f"SVG rasterization failed on both paths: {e}") from e

    return RasterResult(image=_fit(image, width, height), path=FALLBACK, primary_error=primary_error)
