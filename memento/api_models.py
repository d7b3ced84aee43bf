"""
Memento API models for FastAPI endpoints and the composition engine.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Tuple

from .presets import SubtitleVariant


class Track(BaseModel):
    """A single setlist entry. Order in the request is display order."""
    model_config = ConfigDict(frozen=True)

    artist: str = ""
    title: str = ""
    mix: Optional[str] = None


class PhotoInput(BaseModel):
    """Photo reference: an embedded data URI or a fetchable URL."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    data_url: Optional[str] = Field(default=None, alias="dataUrl")
    url: Optional[str] = None


class RenderRequest(BaseModel):
    """Complete input to one render call. Never mutated by the engine."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Kept as a plain string so unknown ids reach the engine's registry lookup
    template_id: str = Field(alias="templateId")
    party_name: str = Field(default="", alias="partyName")
    subtitle_variant: SubtitleVariant = Field(default=SubtitleVariant.FROM, alias="subtitleVariant")
    date: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    tracks: Tuple[Track, ...] = ()
    photo: Optional[PhotoInput] = None
    preview: bool = False  # 1x when True, 2x otherwise
    show_logo: bool = Field(default=False, alias="showLogo")


class TemplateOptionsResponse(BaseModel):
    """Response with available memento templates."""
    templates: List[dict]
    subtitles: List[dict]
    max_tracks: int


class TracklistParseRequest(BaseModel):
    """Raw pasted tracklist text."""
    text: str
    max_tracks: Optional[int] = None


class TracklistParseResponse(BaseModel):
    """Tracks parsed from pasted text."""
    tracks: List[Track]
    count: int
