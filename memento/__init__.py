# Memento Poster Composition Engine
# Templates describe SVG overlays, code composites and rasterizes them

from .api_models import RenderRequest, Track, PhotoInput
from .compose import MementoComposer, RenderResult, compose_memento
from .errors import (
    MementoError,
    UnknownTemplateError,
    MalformedPhotoError,
    RasterizeError,
    EncodeError,
    RenderValidationError,
)
from .presets import TemplateId, SubtitleVariant
from .templates import TEMPLATES, get_template, get_template_options
from .text import flow_lines, flow_tracks, fit_font_size

__all__ = [
    "RenderRequest",
    "Track",
    "PhotoInput",
    "MementoComposer",
    "RenderResult",
    "compose_memento",
    "MementoError",
    "UnknownTemplateError",
    "MalformedPhotoError",
    "RasterizeError",
    "EncodeError",
    "RenderValidationError",
    "TemplateId",
    "SubtitleVariant",
    "TEMPLATES",
    "get_template",
    "get_template_options",
    "flow_lines",
    "flow_tracks",
    "fit_font_size",
]
