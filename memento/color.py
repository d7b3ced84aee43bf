"""
Dominant color estimation for overlay tinting.

Samples the rendered base canvas (background composited, overlay not yet
drawn) so overlays can tint their gradients for contrast.
"""

import logging
from typing import Optional, Tuple

from PIL import Image, ImageStat

logger = logging.getLogger(__name__)

SAMPLE_SIZE = (32, 32)


def estimate_dominant_color(image: Image.Image) -> Optional[str]:
    """
    Estimate the average color of an image (code-based, no AI).

    Args:
        image: Canvas to sample

    Returns:
        Hex color like "#1a2b3c", or None if sampling failed
    """
    try:
        thumb = image.convert("RGB").resize(SAMPLE_SIZE, Image.Resampling.BILINEAR)
        r, g, b = (round(channel) for channel in ImageStat.Stat(thumb).mean)
        return f"#{r:02x}{g:02x}{b:02x}"
    except Exception as e:
        logger.warning(f"Dominant color estimate failed: {e}")
        return None


def parse_hex(color: str) -> Tuple[int, int, int]:
    """Parse hex color to RGB tuple."""
    color = color.lstrip('#')
    if len(color) == 3:
        color = ''.join(c * 2 for c in color)
    return tuple(int(color[i:i+2], 16) for i in (0, 2, 4))


def mix_hex(color: str, other: str, ratio: float) -> str:
    """Blend two hex colors; ratio 0 gives color, 1 gives other."""
    ratio = max(0.0, min(1.0, ratio))
    c1 = parse_hex(color)
    c2 = parse_hex(other)
    r, g, b = (round(a + (b - a) * ratio) for a, b in zip(c1, c2))
    return f"#{r:02x}{g:02x}{b:02x}"
