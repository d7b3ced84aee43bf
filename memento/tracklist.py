"""
Tracklist parser for pasted setlists.

Handles:
1. Plain lines like "01. Artist – Title (Extended Mix)"
2. Trailing mix suffixes like "Title - Radio Edit"
3. Tab-separated exports with "Track Title" and "Artist" header columns
"""

import re
import unicodedata
from typing import List, Optional, Tuple

from .api_models import Track
from .config import MAX_TRACKS

_LEADING_MARKER = re.compile(r'^\s*(\d+\.|[-•])\s*')
_ARTIST_SEPARATOR = re.compile(r'\s[–—-]\s')
_PAREN_MIX = re.compile(r'^(.*?)(\s*\(([^)]*)\))?\s*$')
_BRACKET_SUFFIX = re.compile(r'\s*\[([^\]]+)\]\s*$')
_MIX_WORDS = re.compile(r'mix|edit|remix|version|bootleg|dub|vip|rework|instrumental|radio|extended', re.IGNORECASE)


def _split_artist_title(raw: str) -> Tuple[str, str]:
    parts = _ARTIST_SEPARATOR.split(raw)
    if len(parts) >= 2:
        return parts[0].strip(), " - ".join(parts[1:]).strip()
    return "", raw.strip()


def separate_mix(title_with_mix: str) -> Tuple[str, Optional[str]]:
    """
    Split a mix name off a title.

    Examples:
        "Strobe (Club Edit)" -> ("Strobe", "Club Edit")
        "Strobe - Radio Edit" -> ("Strobe", "Radio Edit")
        "Strobe - Live" -> ("Strobe - Live", None)
    """
    match = _PAREN_MIX.match(title_with_mix)
    if match:
        title = (match.group(1) or "").strip()
        mix = (match.group(3) or "").strip()
        if mix:
            return title, mix
        title_with_mix = title

    parts = title_with_mix.split(" - ")
    if len(parts) > 1:
        maybe_mix = parts[-1].strip()
        if _MIX_WORDS.search(maybe_mix):
            return " - ".join(parts[:-1]).strip(), maybe_mix

    return title_with_mix.strip(), None


def _looks_like_tsv_header(line: str) -> bool:
    columns = line.split('\t')
    return 'Track Title' in columns and 'Artist' in columns


def _parse_tsv(lines: List[str], max_tracks: int) -> List[Track]:
    header = lines[0].split('\t')
    idx_title = header.index('Track Title')
    idx_artist = header.index('Artist')

    tracks = []
    for row in lines[1:]:
        if len(tracks) >= max_tracks:
            break
        columns = row.split('\t')
        title_raw = columns[idx_title].strip() if idx_title < len(columns) else ""
        artist = columns[idx_artist].strip() if idx_artist < len(columns) else ""
        if not title_raw and not artist:
            continue
        title, mix = separate_mix(_BRACKET_SUFFIX.sub(lambda m: f" ({m.group(1)})", title_raw))
        tracks.append(Track(artist=artist, title=title, mix=mix))
    return tracks


def parse_tracklist(text: str, max_tracks: int = MAX_TRACKS) -> List[Track]:
    """
    Parse pasted tracklist text into tracks.

    Args:
        text: One track per line, or a TSV export with a header row
        max_tracks: Parsing stops after this many tracks

    Returns:
        Tracks in input order
    """
    lines = [line.strip() for line in re.split(r'\r?\n', text)]
    lines = [line for line in lines if line]
    if lines and _looks_like_tsv_header(lines[0]):
        return _parse_tsv(lines, max_tracks)

    tracks = []
    for raw in lines:
        if len(tracks) >= max_tracks:
            break
        cleaned = _LEADING_MARKER.sub('', raw).strip()
        cleaned = re.sub(r'\s{2,}', ' ', cleaned)
        cleaned = re.sub(r'\s*–\s*', ' – ', cleaned)
        cleaned = re.sub(r'\s+-\s*|\s*-\s+', ' - ', cleaned)

        artist, title_with_mix = _split_artist_title(cleaned)
        title, mix = separate_mix(title_with_mix)
        tracks.append(Track(artist=artist, title=title, mix=mix))
    return tracks


def slugify(text: str) -> str:
    """Lowercase ASCII slug for download filenames, e.g. "Café Night!" -> "cafe-night"."""
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = "".join(c for c in normalized if not unicodedata.combining(c))
    ascii_text = re.sub(r'[^a-zA-Z0-9\s-]', '', ascii_text).strip()
    ascii_text = re.sub(r'\s+', '-', ascii_text)
    return re.sub(r'-+', '-', ascii_text).lower()
