"""
AssetLoader - optional static files for memento renders.

Handles:
1. Watermark logo (SVG preferred, PNG fallback)
2. Sans and monospace variable fonts, embedded into overlays as @font-face

Every file is optional. Missing files mean "no logo" or "no embedded font",
never an error.
"""

import asyncio
import base64
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles

from .photo import to_data_url

logger = logging.getLogger(__name__)

LOGO_PATHS = (
    ("public/logo.svg", "image/svg+xml"),
    ("public/logo.png", "image/png"),
)
SANS_FONT_PATH = "public/fonts/Inter-Variable.ttf"
MONO_FONT_PATH = "public/fonts/JetBrainsMono-Variable.ttf"

SANS_FAMILY = "Inter"
MONO_FAMILY = "JetBrains Mono"

_SVG_ROOT = re.compile(r"<svg\b[^>]*>")


@dataclass(frozen=True)
class EmbeddedFonts:
    """Font binaries to inline into an overlay."""
    sans: Optional[bytes] = None
    mono: Optional[bytes] = None
    sans_path: Optional[str] = None  # On-disk file, used for title measurement


class AssetLoader:
    """
    Reads logo and font files relative to a base directory.

    Successful reads are cached in memory, keyed by path.
    """

    def __init__(self, base_dir: Union[str, Path] = "."):
        self.base_dir = Path(base_dir)
        self._cache: Dict[Path, bytes] = {}

    async def read(self, relative_path: str) -> Optional[bytes]:
        """Read a file under base_dir; None if it is missing or unreadable."""
        path = self.base_dir / relative_path
        cached = self._cache.get(path)
        if cached is not None:
            return cached

        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except FileNotFoundError:
            logger.debug(f"Asset not found: {path}")
            return None
        except OSError as e:
            logger.warning(f"Failed to read asset {path}: {e}")
            return None

        if data:
            self._cache[path] = data
        return data or None

    async def load_logo(self, show_logo: bool) -> Optional[str]:
        """
        Load the watermark logo as a data URI.

        Args:
            show_logo: When False nothing is read

        Returns:
            Data URI, or None if disabled or no logo file exists
        """
        if not show_logo:
            return None

        for relative_path, mime in LOGO_PATHS:
            data = await self.read(relative_path)
            if data:
                return to_data_url(data, mime)

        logger.info("Logo requested but no logo file found, rendering without it")
        return None

    async def load_fonts(self) -> Optional[EmbeddedFonts]:
        """Load the sans/mono font pair; None when neither file exists."""
        sans, mono = await asyncio.gather(self.read(SANS_FONT_PATH), self.read(MONO_FONT_PATH))
        if not sans and not mono:
            return None
        return EmbeddedFonts(
            sans=sans,
            mono=mono,
            sans_path=str(self.base_dir / SANS_FONT_PATH) if sans else None,
        )


def _font_face(family: str, data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return (
        f"@font-face{{font-family:'{family}';"
        f"src:url(data:font/ttf;base64,{encoded}) format('truetype');"
        f"font-weight:100 900;font-style:normal;}}"
    )


def font_face_css(fonts: EmbeddedFonts) -> str:
    """Build a <style> element declaring the embedded fonts."""
    rules = []
    if fonts.sans:
        rules.append(_font_face(SANS_FAMILY, fonts.sans))
    if fonts.mono:
        rules.append(_font_face(MONO_FAMILY, fonts.mono))
    return f'<style type="text/css"><![CDATA[{"".join(rules)}]]></style>'


def embed_fonts(svg: str, fonts: Optional[EmbeddedFonts]) -> str:
    """
    Splice @font-face declarations right after the root <svg> start tag.

    Returns the SVG unchanged when there are no fonts or no root element.
    """
    if not fonts or not (fonts.sans or fonts.mono):
        return svg

    match = _SVG_ROOT.search(svg)
    if not match:
        logger.warning("Overlay has no <svg> root element, skipping font embedding")
        return svg

    return svg[:match.end()] + font_face_css(fonts) + svg[match.end():]
