"""
MementoComposer - Main orchestrator for memento rendering.

Combines:
- Template registry: canvas size, photo placement, SVG generators
- Color estimation: tint for overlay gradients
- AssetLoader: optional logo and embedded fonts
- Rasterizers: CairoSVG primary path, ImageMagick fallback

This is the main entry point for the composition engine.
"""

import asyncio
import dataclasses
import io
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
from PIL import Image

from .api_models import RenderRequest
from .assets import AssetLoader, embed_fonts
from .color import estimate_dominant_color
from .config import settings
from .errors import EncodeError, RasterizeError
from .photo import ResolvedPhoto, apply_background_effects, resolve_photo
from .rasterize import Rasterizer, cairo_rasterizer, magick_rasterizer, rasterize_with_fallback
from .shapes import CoverPlacement
from .templates import Template, TemplateInput, get_template

logger = logging.getLogger(__name__)

BASE_COLOR = (0, 0, 0, 255)


@dataclass
class RenderResult:
    """Encoded render plus what happened along the way."""
    png: bytes
    width: int
    height: int
    raster_path: str
    dominant_color: Optional[str] = None
    has_photo: bool = False
    fonts_embedded: bool = False
    logo_embedded: bool = False


def encode_png(image: Image.Image) -> bytes:
    """
    Encode the final canvas as PNG at maximum compression.

    Raises:
        EncodeError: if Pillow cannot encode the image
    """
    try:
        buffer = io.BytesIO()
        image.convert("RGB").save(buffer, format="PNG", compress_level=9)
        return buffer.getvalue()
    except (OSError, ValueError) as e:
        raise EncodeError(f"PNG encoding failed: {e}") from e


class MementoComposer:
    """
    Composes a render request into a PNG.

    Workflow:
    1. Look up the template (unknown id is fatal)
    2. Build the base canvas and composite the background layer
    3. Sample the dominant color of the base canvas
    4. Load logo, fonts and photo
    5. Build the overlay SVG (photo embedded, clipped by the template)
    6. Embed fonts into the overlay
    7. Rasterize the overlay (primary, then fallback)
    8. Composite and encode
    """

    def __init__(
        self,
        assets: Optional[AssetLoader] = None,
        primary_rasterizer: Optional[Rasterizer] = cairo_rasterizer,
        fallback_rasterizer: Rasterizer = magick_rasterizer,
        http_client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        photo_timeout: Optional[float] = None,
    ):
        """
        Initialize composer.

        Args:
            assets: Asset loader; defaults to one rooted at settings.assets_dir
            primary_rasterizer: Preferred SVG rasterizer, None to disable it
            fallback_rasterizer: Rasterizer used when the primary fails
            http_client_factory: Creates an httpx client per remote photo fetch
            photo_timeout: Remote photo fetch timeout in seconds
        """
        self.assets = assets or AssetLoader(settings.assets_dir)
        self.primary_rasterizer = primary_rasterizer
        self.fallback_rasterizer = fallback_rasterizer

        timeout = photo_timeout if photo_timeout is not None else settings.photo_fetch_timeout
        self.http_client_factory = http_client_factory or (lambda: httpx.AsyncClient(timeout=timeout))

    def _rasterize(self, svg: str, width: int, height: int):
        return rasterize_with_fallback(
            svg, width, height,
            primary=self.primary_rasterizer,
            fallback=self.fallback_rasterizer,
        )

    async def _background(self, template: Template, data: TemplateInput, width: int, height: int) -> Image.Image:
        canvas = Image.new("RGBA", (width, height), BASE_COLOR)
        background_svg = template.render_background(data)
        if background_svg is None:
            return canvas

        try:
            layer = await asyncio.to_thread(self._rasterize, background_svg, width, height)
        except RasterizeError as e:
            logger.warning(f"Background layer skipped: {e}")
            return canvas

        canvas.alpha_composite(layer.image)
        return canvas

    def _photo_with_effects(self, template: Template, photo: ResolvedPhoto, scale: int) -> ResolvedPhoto:
        effects = template.background_effects
        if not isinstance(template.photo_placement, CoverPlacement) or not effects or not effects.blur:
            return photo

        size = (template.width * scale, template.height * scale)
        try:
            return apply_background_effects(photo, size, effects.blur * scale)
        except (OSError, ValueError) as e:
            logger.warning(f"Photo blur skipped: {e}")
            return photo

    async def render(self, request: RenderRequest) -> RenderResult:
        """
        Render a request.

        Args:
            request: Render request; never modified

        Returns:
            RenderResult with PNG bytes

        Raises:
            UnknownTemplateError: template id is not registered
            MalformedPhotoError: photo data URI is malformed
            RasterizeError: overlay could not be rasterized on either path
            EncodeError: PNG encoding failed
        """
        # Step 1: Lookup
        template = get_template(request.template_id)

        scale = 1 if request.preview else 2
        width, height = template.width * scale, template.height * scale
        logger.info(
            f"Rendering template={request.template_id} at {width}x{height} "
            f"(preview={request.preview}, tracks={len(request.tracks)})"
        )

        base_input = TemplateInput(
            party_name=request.party_name,
            subtitle_variant=request.subtitle_variant,
            date=request.date,
            location=request.location,
            notes=request.notes,
            tracks=tuple(request.tracks),
        )

        # Step 2: Base canvas + background layer
        canvas = await self._background(template, base_input, width, height)

        # Step 3: Color sample (post-background, pre-overlay)
        dominant_color = estimate_dominant_color(canvas)

        # Step 4: Assets and photo
        logo, fonts, photo = await asyncio.gather(
            self.assets.load_logo(request.show_logo),
            self.assets.load_fonts(),
            resolve_photo(request.photo, self.http_client_factory),
        )
        if photo is not None:
            photo = await asyncio.to_thread(self._photo_with_effects, template, photo, scale)
        elif request.photo is not None:
            logger.info("Photo unavailable, rendering without it")

        # Step 5: Overlay
        overlay_input = dataclasses.replace(
            base_input,
            dominant_color=dominant_color,
            photo=photo.data_url if photo else None,
            logo=logo,
            title_font_path=fonts.sans_path if fonts else None,
        )
        overlay_svg = template.render_overlay(overlay_input)

        # Step 6: Font embed
        overlay_svg = embed_fonts(overlay_svg, fonts)

        # Steps 7-8: Rasterize, primary then fallback
        layer = await asyncio.to_thread(self._rasterize, overlay_svg, width, height)
        if layer.primary_error:
            logger.info(f"Overlay rendered on fallback path ({layer.primary_error})")
        canvas.alpha_composite(layer.image)

        # Step 9: Encode
        png = encode_png(canvas)
        logger.info(f"Render complete: {len(png)} bytes via {layer.path} path")

        return RenderResult(
            png=png,
            width=width,
            height=height,
            raster_path=layer.path,
            dominant_color=dominant_color,
            has_photo=photo is not None,
            fonts_embedded=fonts is not None,
            logo_embedded=logo is not None,
        )

    async def compose(self, request: RenderRequest) -> bytes:
        """Render a request and return the PNG bytes."""
        result = await self.render(request)
        return result.png


_default_composer: Optional[MementoComposer] = None


async def compose_memento(request: RenderRequest) -> bytes:
    """Render with a process-wide default composer."""
    global _default_composer
    if _default_composer is None:
        _default_composer = MementoComposer()
    return await _default_composer.compose(request)
