"""
SVG building blocks shared by the template generators.

Every helper takes explicit geometry; nothing here knows about a specific
template's canvas.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from .text import escape_xml, num

SVG_NS = 'xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink"'


@dataclass(frozen=True)
class CoverPlacement:
    """Photo fills the whole canvas, cropped to fill."""
    mode: str = "cover"


@dataclass(frozen=True)
class RectPlacement:
    """Photo sits in a rectangle of the canvas."""
    x: float
    y: float
    width: float
    height: float
    fit: str = "cover"  # "cover" crops to fill, "contain" never crops
    rotate: Optional[float] = None  # Degrees, around the rect center
    corner_radius: Optional[float] = None
    mode: str = "rect"


PhotoPlacement = Union[CoverPlacement, RectPlacement]


@dataclass(frozen=True)
class GradientStop:
    offset: float  # 0..1
    color: str
    opacity: Optional[float] = None


def svg_open(width: int, height: int) -> str:
    return f'<svg {SVG_NS} width="{width}" height="{height}" viewBox="0 0 {width} {height}">'


def linear_gradient(gradient_id: str, stops: List[GradientStop], horizontal: bool = False) -> str:
    """Build a linearGradient definition; stops are emitted in offset order."""
    x2, y2 = ("1", "0") if horizontal else ("0", "1")
    tags = []
    for stop in sorted(stops, key=lambda s: s.offset):
        opacity = f' stop-opacity="{num(stop.opacity)}"' if stop.opacity is not None else ""
        tags.append(f'<stop offset="{round(stop.offset * 100)}%" stop-color="{stop.color}"{opacity}/>')
    return f'<linearGradient id="{gradient_id}" x1="0" y1="0" x2="{x2}" y2="{y2}">{"".join(tags)}</linearGradient>'


def photo_clip_path(clip_id: str, placement: PhotoPlacement, width: int, height: int) -> str:
    """clipPath matching the placement rectangle, or the full canvas for cover mode."""
    if isinstance(placement, RectPlacement):
        radius = placement.corner_radius or 0
        rounded = f' rx="{num(radius)}" ry="{num(radius)}"' if radius > 0 else ""
        return (
            f'<clipPath id="{clip_id}"><rect x="{num(placement.x)}" y="{num(placement.y)}" '
            f'width="{num(placement.width)}" height="{num(placement.height)}"{rounded}/></clipPath>'
        )
    return f'<clipPath id="{clip_id}"><rect x="0" y="0" width="{width}" height="{height}"/></clipPath>'


def photo_element(photo: Optional[str], placement: PhotoPlacement, width: int, height: int, clip_id: str = "photo-clip") -> str:
    """
    Embedded photo image, clipped to its placement.

    Args:
        photo: Data URI of the photo, or None for no photo
        placement: Cover or rect placement
        width: Canvas width (cover mode)
        height: Canvas height (cover mode)
        clip_id: Id of the clipPath built by photo_clip_path

    Returns:
        SVG markup, empty when there is no photo
    """
    if not photo:
        return ""

    href = escape_xml(photo)
    if isinstance(placement, RectPlacement):
        aspect = "xMidYMid meet" if placement.fit == "contain" else "xMidYMid slice"
        image = (
            f'<image x="{num(placement.x)}" y="{num(placement.y)}" width="{num(placement.width)}" '
            f'height="{num(placement.height)}" preserveAspectRatio="{aspect}" '
            f'clip-path="url(#{clip_id})" xlink:href="{href}"/>'
        )
        if placement.rotate:
            cx = placement.x + placement.width / 2
            cy = placement.y + placement.height / 2
            return f'<g transform="rotate({num(placement.rotate)} {num(cx)} {num(cy)})">{image}</g>'
        return image

    return (
        f'<image x="0" y="0" width="{width}" height="{height}" preserveAspectRatio="xMidYMid slice" '
        f'clip-path="url(#{clip_id})" xlink:href="{href}"/>'
    )


def dim_rect(width: int, height: int, dim: Optional[float]) -> str:
    """Translucent black rect darkening a cover photo; empty when dim is unset."""
    if not dim:
        return ""
    level = max(0.0, min(1.0, dim))
    return f'<rect x="0" y="0" width="{width}" height="{height}" fill="#000" fill-opacity="{num(level)}"/>'


def logo_element(logo: Optional[str], x: float, y: float, size: float, opacity: float = 0.85) -> str:
    """Watermark logo in a size x size box; empty when no logo was loaded."""
    if not logo:
        return ""
    return (
        f'<image x="{num(x)}" y="{num(y)}" width="{num(size)}" height="{num(size)}" '
        f'preserveAspectRatio="xMidYMid meet" opacity="{num(opacity)}" xlink:href="{escape_xml(logo)}"/>'
    )
