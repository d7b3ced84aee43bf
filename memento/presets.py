"""
Template identifiers and subtitle phrasings.

Supports the fixed memento catalog:
- Portrait (4:5 feed post)
- Landscape (16:9 widescreen)
- Square (1:1 feed post)
- Story (9:16 vertical)
"""

from enum import Enum
from typing import Optional


class TemplateId(str, Enum):
    """Identifiers of the registered templates."""

    PORTRAIT = "portrait"      # 4:5
    LANDSCAPE = "landscape"    # 16:9
    SQUARE = "square"          # 1:1
    STORY = "story"            # 9:16


class SubtitleVariant(str, Enum):
    """The two fixed subtitle phrasings."""

    FROM = "from"
    AFTERPARTY = "afterparty"


SUBTITLES = {
    SubtitleVariant.FROM: "From DJ Ziff",
    SubtitleVariant.AFTERPARTY: "DJ Ziff Afterparty Setlist",
}


def subtitle_for(variant: SubtitleVariant) -> str:
    """Return the display phrasing for a subtitle variant."""
    return SUBTITLES[SubtitleVariant(variant)]


def parse_template_id(value: str) -> Optional[TemplateId]:
    """
    Normalise a caller-supplied template id.

    Accepts case variations and surrounding whitespace (" Portrait ", "STORY").

    Returns:
        The matching TemplateId, or None if nothing matches
    """
    normalised = (value or "").strip().lower().replace("-", "_").replace(" ", "_")
    for template_id in TemplateId:
        if template_id.value == normalised:
            return template_id
    return None
