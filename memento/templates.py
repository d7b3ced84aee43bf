"""
Template registry for memento posters.

Each template is a fixed, declarative record: canvas size, photo placement,
optional photo effects, an optional background generator and the overlay
generator. Generators are pure functions of (template, TemplateInput); the
template's own width/height are the only geometry they use.
"""

from dataclasses import dataclass
from functools import partial
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Tuple

from .api_models import Track
from .color import mix_hex
from .errors import UnknownTemplateError
from .presets import SubtitleVariant, TemplateId, parse_template_id, subtitle_for
from .shapes import (
    CoverPlacement,
    GradientStop,
    PhotoPlacement,
    RectPlacement,
    dim_rect,
    linear_gradient,
    logo_element,
    photo_clip_path,
    photo_element,
    svg_open,
)
from .text import FlowBox, ellipsize, escape_xml, fit_font_size, flow_tracks, measure_text_width, num, to_tspans

SANS = "Inter, system-ui, 'DejaVu Sans', sans-serif"
MONO = "'JetBrains Mono', ui-monospace, Menlo, 'DejaVu Sans Mono', monospace"


@dataclass(frozen=True)
class BackgroundEffects:
    """Effects applied to a cover-mode photo."""
    blur: Optional[float] = None  # Gaussian radius in template px
    dim: Optional[float] = None   # 0..1 black overlay opacity


@dataclass(frozen=True)
class TemplateInput:
    """Everything a generator may read besides its template's constants."""
    party_name: str
    subtitle_variant: SubtitleVariant = SubtitleVariant.FROM
    date: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    tracks: Tuple[Track, ...] = ()
    dominant_color: Optional[str] = None
    photo: Optional[str] = None   # Data URI
    logo: Optional[str] = None    # Data URI
    title_font_path: Optional[str] = None


@dataclass(frozen=True)
class Template:
    """Static description of one template."""
    name: str
    width: int
    height: int
    aspect_ratio: str
    photo_placement: PhotoPlacement
    overlay_svg: Callable[["Template", TemplateInput], str]
    background_svg: Optional[Callable[["Template", TemplateInput], str]] = None
    background_effects: Optional[BackgroundEffects] = None

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def render_overlay(self, data: TemplateInput) -> str:
        return self.overlay_svg(self, data)

    def render_background(self, data: TemplateInput) -> Optional[str]:
        if self.background_svg is None:
            return None
        return self.background_svg(self, data)


# ==================== SHARED PIECES ====================

def _title(
    data: TemplateInput,
    x: float,
    y: float,
    max_width: float,
    base_size: int,
    min_size: int,
    fill: str,
    max_chars: int = 40,
) -> str:
    text = ellipsize(data.party_name.strip(), max_chars)
    measure = partial(measure_text_width, font_path=data.title_font_path)
    size = fit_font_size(text, max_width, base_size, min_size, measure=measure)
    return (
        f'<text x="{num(x)}" y="{num(y)}" font-family="{SANS}" font-size="{size}" '
        f'font-weight="800" fill="{fill}">{escape_xml(text)}</text>'
    )


def _subtitle(data: TemplateInput, x: float, y: float, size: int, fill: str, opacity: float = 0.9) -> str:
    return (
        f'<text x="{num(x)}" y="{num(y)}" font-family="{SANS}" font-size="{size}" letter-spacing="1.5" '
        f'fill="{fill}" opacity="{num(opacity)}">{escape_xml(subtitle_for(data.subtitle_variant))}</text>'
    )


def _track_list(data: TemplateInput, box: FlowBox, fill: str, base: int, floor: int, max_columns: int = 2) -> str:
    result = flow_tracks(
        data.tracks,
        box,
        base_font_size=base,
        min_font_size=floor,
        line_height_em=1.4,
        gap=32,
        max_columns=max_columns,
    )
    if not result.columns:
        return ""
    return (
        f'<text font-family="{MONO}" font-size="{result.font_size_used}" fill="{fill}" '
        f'opacity="0.95">{to_tspans(result)}</text>'
    )


def _footer(data: TemplateInput, x: float, y: float, size: int, fill: str, max_chars: int = 80) -> str:
    parts: List[str] = []
    meta = " • ".join(p.strip() for p in (data.date, data.location) if p and p.strip())
    if meta:
        parts.append(
            f'<text x="{num(x)}" y="{num(y)}" font-family="{SANS}" font-size="{size}" '
            f'fill="{fill}" opacity="0.9">{escape_xml(ellipsize(meta, max_chars))}</text>'
        )
    if data.notes and data.notes.strip():
        note_y = y + size * 1.5 if meta else y
        parts.append(
            f'<text x="{num(x)}" y="{num(note_y)}" font-family="{SANS}" font-size="{round(size * 0.8)}" '
            f'fill="{fill}" opacity="0.75">{escape_xml(ellipsize(data.notes.strip(), max_chars))}</text>'
        )
    return "".join(parts)


# ==================== PORTRAIT (4:5) ====================

def _portrait_overlay(t: Template, data: TemplateInput) -> str:
    # No background layer: the sample is the black base canvas, so the tint is
    # #000000. The untinted stops only apply when sampling fails.
    if data.dominant_color:
        stops = [GradientStop(0, data.dominant_color, 0.15), GradientStop(1, "#000", 0.65)]
    else:
        stops = [GradientStop(0, "#000", 0.1), GradientStop(1, "#000", 0.6)]

    return "".join([
        svg_open(t.width, t.height),
        "<defs>",
        linear_gradient("shade", stops),
        photo_clip_path("photo-clip", t.photo_placement, t.width, t.height),
        "</defs>",
        photo_element(data.photo, t.photo_placement, t.width, t.height),
        f'<rect x="0" y="0" width="{t.width}" height="{t.height}" fill="url(#shade)"/>',
        _title(data, 64, 120, t.width - 128, 64, 36, "#fff", max_chars=36),
        _subtitle(data, 64, 172, 24, "#fff"),
        _track_list(data, FlowBox(64, 210, t.width - 128, 990), "#fff", base=20, floor=12),
        _footer(data, 64, 1284, 20, "#fff", max_chars=70),
        logo_element(data.logo, t.width - 64 - 72, t.height - 64 - 72, 72),
        "</svg>",
    ])


# ==================== LANDSCAPE (16:9) ====================

def _landscape_background(t: Template, data: TemplateInput) -> str:
    vertical = "".join(
        f'<line x1="{x}" y1="0" x2="{x}" y2="{t.height}"/>' for x in range(0, t.width, 80)
    )
    horizontal = "".join(
        f'<line x1="0" y1="{y}" x2="{t.width}" y2="{y}"/>' for y in range(0, t.height, 75)
    )
    return "".join([
        svg_open(t.width, t.height),
        "<defs>",
        linear_gradient("bg", [GradientStop(0, "#0b1020"), GradientStop(1, "#12001f")], horizontal=True),
        "</defs>",
        f'<rect x="0" y="0" width="{t.width}" height="{t.height}" fill="url(#bg)"/>',
        f'<g stroke="#0ff" stroke-opacity="0.35" stroke-width="1">{vertical}{horizontal}</g>',
        "</svg>",
    ])


def _landscape_overlay(t: Template, data: TemplateInput) -> str:
    placement = t.photo_placement
    accent = mix_hex(data.dominant_color, "#a5b4fc", 0.7) if data.dominant_color else "#a5b4fc"
    text_width = placement.x - 80 - 70

    frame = ""
    if data.photo:
        cx = placement.x + placement.width / 2
        cy = placement.y + placement.height / 2
        frame = (
            f'<g transform="rotate({num(placement.rotate or 0)} {num(cx)} {num(cy)})">'
            f'<rect x="{num(placement.x - 6)}" y="{num(placement.y - 6)}" width="{num(placement.width + 12)}" '
            f'height="{num(placement.height + 12)}" rx="{num((placement.corner_radius or 0) + 4)}" '
            f'fill="none" stroke="{accent}" stroke-opacity="0.8" stroke-width="3"/></g>'
        )

    return "".join([
        svg_open(t.width, t.height),
        "<defs>",
        photo_clip_path("photo-clip", placement, t.width, t.height),
        "</defs>",
        photo_element(data.photo, placement, t.width, t.height),
        frame,
        _title(data, 80, 120, text_width, 64, 32, "#e0e8ff"),
        _subtitle(data, 80, 172, 22, "#c7d2fe", opacity=1),
        _track_list(data, FlowBox(80, 200, text_width, 600), accent, base=20, floor=11),
        _footer(data, 80, 850, 18, "#c7d2fe", max_chars=70),
        logo_element(data.logo, t.width - 80 - 64, t.height - 40 - 64, 64),
        "</svg>",
    ])


# ==================== SQUARE (1:1) ====================

def _square_overlay(t: Template, data: TemplateInput) -> str:
    effects = t.background_effects or BackgroundEffects()
    # Sampled from the black base canvas (no background layer); white card when sampling fails
    card_fill = mix_hex(data.dominant_color, "#ffffff", 0.9) if data.dominant_color else "#ffffff"

    return "".join([
        svg_open(t.width, t.height),
        "<defs>",
        photo_clip_path("photo-clip", t.photo_placement, t.width, t.height),
        "</defs>",
        photo_element(data.photo, t.photo_placement, t.width, t.height),
        dim_rect(t.width, t.height, effects.dim),
        f'<rect x="80" y="120" width="{t.width - 160}" height="840" rx="24" fill="{card_fill}" fill-opacity="0.92"/>',
        _title(data, 120, 200, t.width - 240, 56, 30, "#111", max_chars=28),
        _subtitle(data, 120, 246, 22, "#444", opacity=1),
        _track_list(data, FlowBox(120, 270, t.width - 240, 620), "#111", base=20, floor=11),
        _footer(data, 120, 924, 18, "#444", max_chars=70),
        logo_element(data.logo, t.width - 80 - 64, 36, 64),
        "</svg>",
    ])


# ==================== STORY (9:16) ====================

def _story_background(t: Template, data: TemplateInput) -> str:
    return "".join([
        svg_open(t.width, t.height),
        "<defs>",
        linear_gradient("bg", [GradientStop(0, "#1f2937"), GradientStop(1, "#030712")]),
        "</defs>",
        f'<rect x="0" y="0" width="{t.width}" height="{t.height}" fill="url(#bg)"/>',
        "</svg>",
    ])


def _story_overlay(t: Template, data: TemplateInput) -> str:
    panel = mix_hex(data.dominant_color, "#111111", 0.8) if data.dominant_color else "#111111"

    return "".join([
        svg_open(t.width, t.height),
        "<defs>",
        photo_clip_path("photo-clip", t.photo_placement, t.width, t.height),
        "</defs>",
        photo_element(data.photo, t.photo_placement, t.width, t.height),
        _title(data, 64, 140, t.width - 128, 60, 32, "#fff", max_chars=32),
        _subtitle(data, 64, 196, 24, "#fff"),
        f'<rect x="40" y="1290" width="{t.width - 80}" height="560" rx="24" fill="{panel}" fill-opacity="0.6"/>',
        _track_list(data, FlowBox(72, 1316, t.width - 144, 500), "#fff", base=22, floor=12),
        _footer(data, 64, 1878, 20, "#fff", max_chars=70),
        logo_element(data.logo, t.width - 64 - 72, 60, 72),
        "</svg>",
    ])


# ==================== REGISTRY ====================

TEMPLATES: Mapping[TemplateId, Template] = MappingProxyType({
    TemplateId.PORTRAIT: Template(
        name="Portrait",
        width=1080,
        height=1350,
        aspect_ratio="4:5",
        photo_placement=CoverPlacement(),
        overlay_svg=_portrait_overlay,
    ),
    TemplateId.LANDSCAPE: Template(
        name="Landscape",
        width=1600,
        height=900,
        aspect_ratio="16:9",
        photo_placement=RectPlacement(x=950, y=140, width=600, height=620, fit="cover", rotate=-2, corner_radius=16),
        overlay_svg=_landscape_overlay,
        background_svg=_landscape_background,
    ),
    TemplateId.SQUARE: Template(
        name="Square",
        width=1080,
        height=1080,
        aspect_ratio="1:1",
        photo_placement=CoverPlacement(),
        overlay_svg=_square_overlay,
        background_effects=BackgroundEffects(blur=18, dim=0.45),
    ),
    TemplateId.STORY: Template(
        name="Story",
        width=1080,
        height=1920,
        aspect_ratio="9:16",
        photo_placement=RectPlacement(x=64, y=260, width=952, height=980, fit="contain", corner_radius=28),
        overlay_svg=_story_overlay,
        background_svg=_story_background,
    ),
})


def get_template(template_id: str) -> Template:
    """
    Look up a template by id.

    Raises:
        UnknownTemplateError: if the id is not registered
    """
    key = parse_template_id(template_id)
    if key is None or key not in TEMPLATES:
        raise UnknownTemplateError(template_id)
    return TEMPLATES[key]


def get_template_options() -> list:
    """Get list of available templates for user selection."""
    return [
        {
            "id": template_id.value,
            "name": template.name,
            "dimensions": f"{template.width}x{template.height}",
            "aspect_ratio": template.aspect_ratio,
            "photo_mode": template.photo_placement.mode,
        }
        for template_id, template in TEMPLATES.items()
    ]
