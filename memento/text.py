"""
Text layout for memento overlays.

Handles:
1. Track line formatting ("NN. Artist – Title (Mix)")
2. Multi-column flow with an auto-shrinking font size
3. "+K more" marker when the floor size still cannot fit every line
4. Single-line title shrink to a max pixel width

Everything here is a pure function of its arguments: the same input always
gives the same font size, column count and text, whatever the output scale.
"""

import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, List, Optional, Sequence, Tuple

from PIL import ImageFont

logger = logging.getLogger(__name__)

# Horizontal advance of one monospace glyph, as a fraction of the font size
MONO_ADVANCE_EM = 0.6

# Columns narrower than this are skipped unless max_columns forces them
DEFAULT_MIN_COLUMN_WIDTH = 240

ELLIPSIS = "…"


@dataclass(frozen=True)
class FlowBox:
    """Bounding box the track list must fit in (template pixels, 1x)."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class FlowColumn:
    """One column of flowed text."""
    x: float            # Left edge
    y: float            # Baseline of the first line
    lines: Tuple[str, ...]


@dataclass(frozen=True)
class TextFlowResult:
    """Outcome of flowing lines into a box."""
    rendered_lines: Tuple[str, ...]  # Display order, overflow marker included
    font_size_used: int
    column_count: int
    rendered_count: int              # Source lines shown, marker excluded
    omitted_count: int
    lines_per_column: int
    line_height: float
    columns: Tuple[FlowColumn, ...]

    @property
    def capacity(self) -> int:
        return self.lines_per_column * self.column_count


def escape_xml(text: str) -> str:
    """Escape text for use inside SVG element content or attribute values."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def ellipsize(text: str, max_chars: int) -> str:
    """Truncate text to at most max_chars characters, ending with an ellipsis."""
    if len(text) <= max_chars:
        return text
    return text[:max(0, max_chars - 1)].rstrip() + ELLIPSIS


def format_track_line(index: int, track: Any) -> str:
    """
    Format a track as a numbered display line.

    Args:
        index: Zero-based position in the track list
        track: Object with artist, title and optional mix attributes

    Returns:
        Line like "07. Artist – Title (Mix)"; empty parts are skipped
    """
    artist = (getattr(track, "artist", "") or "").strip()
    title = (getattr(track, "title", "") or "").strip()
    mix = (getattr(track, "mix", None) or "").strip()

    body = " – ".join(part for part in (artist, title) if part)
    if mix:
        body = f"{body} ({mix})" if body else f"({mix})"
    return f"{index + 1:02d}. {body}".rstrip()


def lines_per_column(height: float, font_size: int, line_height_em: float) -> int:
    """Number of lines a column of the given height holds at a font size."""
    if font_size <= 0 or line_height_em <= 0:
        return 0
    return max(0, math.floor(height / (font_size * line_height_em)))


def column_width(width: float, gap: float, columns: int) -> float:
    """Width of each column when the box is split into equal columns."""
    return (width - gap * (columns - 1)) / columns


def _usable_column_counts(box: FlowBox, gap: float, max_columns: int, min_column_width: float) -> List[int]:
    counts = []
    for columns in range(1, max_columns + 1):
        if column_width(box.width, gap, columns) < min_column_width and columns < max_columns:
            continue
        counts.append(columns)
    return counts


def _choose_column_count(
    line_count: int,
    box: FlowBox,
    font_size: int,
    line_height_em: float,
    gap: float,
    max_columns: int,
    min_column_width: float,
) -> Optional[int]:
    per_column = lines_per_column(box.height, font_size, line_height_em)
    for columns in _usable_column_counts(box, gap, max_columns, min_column_width):
        if per_column * columns >= line_count:
            return columns
    return None


def _split_columns(lines: Sequence[str], per_column: int, columns: int) -> List[List[str]]:
    chunks = [list(lines[i * per_column:(i + 1) * per_column]) for i in range(columns)]
    return chunks


def _add_overflow_marker(chunks: List[List[str]], omitted: int) -> Tuple[List[List[str]], int]:
    """
    Put "+K more" in the last slot; returns the chunks and the final K.

    Overflow only happens with every column full, so the marker always
    replaces the last line, which then counts as omitted too.
    """
    last = chunks[-1]
    last.pop()
    omitted += 1
    last.append(f"+{omitted} more")
    return chunks, omitted


def _place(
    chunks: List[List[str]],
    box: FlowBox,
    font_size: int,
    line_height_em: float,
    gap: float,
    columns: int,
) -> Tuple[FlowColumn, ...]:
    col_width = column_width(box.width, gap, columns)
    max_chars = max(1, math.floor(col_width / (font_size * MONO_ADVANCE_EM)))
    placed = []
    for i, chunk in enumerate(chunks):
        if not chunk:
            continue
        placed.append(
            FlowColumn(
                x=box.x + i * (col_width + gap),
                y=box.y + font_size,
                lines=tuple(ellipsize(line, max_chars) for line in chunk),
            )
        )
    return tuple(placed)


def flow_lines(
    lines: Sequence[str],
    box: FlowBox,
    base_font_size: int,
    min_font_size: int,
    line_height_em: float = 1.4,
    gap: float = 32,
    max_columns: int = 2,
    min_column_width: float = DEFAULT_MIN_COLUMN_WIDTH,
) -> TextFlowResult:
    """
    Flow lines into up to max_columns columns, shrinking the font to fit.

    Starting at base_font_size, the smallest usable column count whose
    capacity holds every line wins. If none does, the font shrinks by 1px
    and the search repeats, down to min_font_size. At the floor the widest
    usable layout is filled and the last slot becomes "+K more".

    Args:
        lines: Display lines in order
        box: Target region
        base_font_size: Starting font size in px
        min_font_size: Floor font size in px
        line_height_em: Line pitch as a multiple of the font size
        gap: Horizontal gap between columns in px
        max_columns: Upper bound on the number of columns
        min_column_width: Narrower columns are skipped unless forced

    Returns:
        TextFlowResult with positioned columns
    """
    if min_font_size > base_font_size:
        raise ValueError(f"min_font_size ({min_font_size}) > base_font_size ({base_font_size})")
    lines = list(lines)
    max_columns = max(1, max_columns)

    if not lines:
        return TextFlowResult(
            rendered_lines=(),
            font_size_used=base_font_size,
            column_count=1,
            rendered_count=0,
            omitted_count=0,
            lines_per_column=lines_per_column(box.height, base_font_size, line_height_em),
            line_height=base_font_size * line_height_em,
            columns=(),
        )

    font_size = base_font_size
    while True:
        columns = _choose_column_count(
            len(lines), box, font_size, line_height_em, gap, max_columns, min_column_width
        )
        if columns is not None:
            per_column = lines_per_column(box.height, font_size, line_height_em)
            chunks = _split_columns(lines, per_column, columns)
            placed = _place(chunks, box, font_size, line_height_em, gap, columns)
            return TextFlowResult(
                rendered_lines=tuple(line for column in placed for line in column.lines),
                font_size_used=font_size,
                column_count=columns,
                rendered_count=len(lines),
                omitted_count=0,
                lines_per_column=per_column,
                line_height=font_size * line_height_em,
                columns=placed,
            )
        if font_size <= min_font_size:
            break
        font_size -= 1

    # Still too many lines at the floor size
    columns = _usable_column_counts(box, gap, max_columns, min_column_width)[-1]
    per_column = lines_per_column(box.height, font_size, line_height_em)
    capacity = per_column * columns

    if capacity == 0:
        logger.warning(f"Text box {box.width}x{box.height} cannot hold a single line at {font_size}px")
        return TextFlowResult(
            rendered_lines=(),
            font_size_used=font_size,
            column_count=columns,
            rendered_count=0,
            omitted_count=len(lines),
            lines_per_column=0,
            line_height=font_size * line_height_em,
            columns=(),
        )

    chunks = _split_columns(lines[:capacity], per_column, columns)
    chunks, omitted = _add_overflow_marker(chunks, len(lines) - capacity)
    placed = _place(chunks, box, font_size, line_height_em, gap, columns)
    logger.info(f"Track list overflow: showing {len(lines) - omitted} of {len(lines)} at {font_size}px")

    return TextFlowResult(
        rendered_lines=tuple(line for column in placed for line in column.lines),
        font_size_used=font_size,
        column_count=columns,
        rendered_count=len(lines) - omitted,
        omitted_count=omitted,
        lines_per_column=per_column,
        line_height=font_size * line_height_em,
        columns=placed,
    )


def flow_tracks(tracks: Sequence[Any], box: FlowBox, **kwargs) -> TextFlowResult:
    """Format tracks as numbered lines and flow them into the box."""
    lines = [format_track_line(i, track) for i, track in enumerate(tracks)]
    return flow_lines(lines, box, **kwargs)


def num(value: float) -> str:
    """Compact, stable number formatting for SVG attributes."""
    return f"{round(value, 2):g}"


def to_tspans(result: TextFlowResult) -> str:
    """
    Render flowed columns as SVG tspan runs.

    The first run of each column carries absolute x/y; the following runs
    in that column advance by one line height via dy.
    """
    runs = []
    for column in result.columns:
        for i, line in enumerate(column.lines):
            if i == 0:
                runs.append(f'<tspan x="{num(column.x)}" y="{num(column.y)}">{escape_xml(line)}</tspan>')
            else:
                runs.append(f'<tspan x="{num(column.x)}" dy="{num(result.line_height)}">{escape_xml(line)}</tspan>')
    return "".join(runs)


@lru_cache(maxsize=256)
def _load_font(font_path: Optional[str], size: int):
    if font_path:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError as e:
            logger.warning(f"Failed to load font {font_path}: {e}")
    return ImageFont.load_default(size=size)


def measure_text_width(text: str, size: int, font_path: Optional[str] = None) -> float:
    """
    Measure the rendered width of a single line of text.

    Args:
        text: Text to measure
        size: Font size in px
        font_path: Optional TrueType/OpenType file; Pillow's default font otherwise

    Returns:
        Advance width in px
    """
    font = _load_font(font_path, size)
    if isinstance(font, ImageFont.FreeTypeFont):
        return font.getlength(text)
    # Bitmap fallback ignores size; estimate from a typical sans advance
    return len(text) * size * 0.55


def fit_font_size(
    text: str,
    max_width: float,
    base_size: int,
    min_size: int,
    measure: Callable[[str, int], float] = measure_text_width,
) -> int:
    """
    Shrink a single line until it fits max_width, never below min_size.

    Text that still overflows at min_size is returned at min_size.
    """
    size = base_size
    while size > min_size and measure(text, size) > max_width:
        size -= 1
    return max(size, min_size)
