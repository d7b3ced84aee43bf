import pytest

from memento.api_models import Track
from memento.text import (
    FlowBox,
    ellipsize,
    escape_xml,
    fit_font_size,
    flow_lines,
    flow_tracks,
    format_track_line,
    measure_text_width,
    to_tspans,
)

# 2 columns x 20 lines at 20px / 1.4em
TWO_BY_TWENTY = FlowBox(x=64, y=200, width=1000, height=560)


def _lines(count):
    return [f"{i + 1:02d}. Artist {i} – Title {i}" for i in range(count)]


def test_format_track_line_with_mix():
    line = format_track_line(0, Track(artist="Deadmau5", title="Strobe", mix="Club Edit"))
    assert line == "01. Deadmau5 – Strobe (Club Edit)"


def test_format_track_line_skips_empty_parts():
    assert format_track_line(9, Track(title="Untitled")) == "10. Untitled"
    assert format_track_line(99, Track(artist="Bicep", title="Glue")) == "100. Bicep – Glue"


def test_flow_fits_in_one_column_at_base_size():
    result = flow_lines(_lines(10), TWO_BY_TWENTY, base_font_size=20, min_font_size=12)

    assert result.font_size_used == 20
    assert result.column_count == 1
    assert result.rendered_count == 10
    assert result.omitted_count == 0


def test_flow_uses_second_column_before_shrinking():
    result = flow_lines(_lines(30), TWO_BY_TWENTY, base_font_size=20, min_font_size=12)

    assert result.font_size_used == 20
    assert result.column_count == 2
    assert [len(c.lines) for c in result.columns] == [20, 10]


def test_fifty_tracks_shrink_font_until_they_fit():
    result = flow_lines(_lines(50), TWO_BY_TWENTY, base_font_size=20, min_font_size=12)

    # 16px * 1.4 = 22.4px pitch -> 25 lines per column
    assert result.font_size_used == 16
    assert result.column_count == 2
    assert result.rendered_count == 50
    assert result.omitted_count == 0
    assert result.capacity >= 50


def test_fifty_tracks_show_more_marker_at_floor():
    result = flow_lines(_lines(50), TWO_BY_TWENTY, base_font_size=20, min_font_size=18)

    # 18px -> 22 lines per column, 44 slots, last slot is the marker
    assert result.font_size_used == 18
    assert result.column_count == 2
    assert result.rendered_count == 43
    assert result.omitted_count == 7
    assert result.rendered_lines[-1] == "+7 more"
    assert result.rendered_count + 1 <= result.capacity


def test_marker_only_when_single_slot():
    box = FlowBox(0, 0, 500, 30)
    result = flow_lines(_lines(5), box, base_font_size=20, min_font_size=20, max_columns=1)

    assert result.rendered_count == 0
    assert result.omitted_count == 5
    assert result.rendered_lines == ("+5 more",)


def test_box_too_small_for_any_line():
    box = FlowBox(0, 0, 500, 10)
    result = flow_lines(_lines(3), box, base_font_size=20, min_font_size=20)

    assert result.rendered_count == 0
    assert result.omitted_count == 3
    assert result.columns == ()


@pytest.mark.parametrize("count", [0, 1, 7, 40, 41, 55, 80, 120, 200])
def test_flow_invariants(count):
    result = flow_lines(_lines(count), TWO_BY_TWENTY, base_font_size=20, min_font_size=12)

    assert 12 <= result.font_size_used <= 20
    assert result.rendered_count + result.omitted_count <= count
    if count:
        marker = 1 if result.omitted_count > 0 else 0
        assert result.rendered_count + marker <= result.capacity


def test_flow_preserves_order():
    lines = _lines(30)
    result = flow_lines(lines, TWO_BY_TWENTY, base_font_size=20, min_font_size=12)
    assert list(result.rendered_lines) == lines


def test_flow_is_deterministic():
    first = flow_lines(_lines(77), TWO_BY_TWENTY, base_font_size=20, min_font_size=12)
    second = flow_lines(_lines(77), TWO_BY_TWENTY, base_font_size=20, min_font_size=12)

    assert first == second
    assert to_tspans(first) == to_tspans(second)


def test_narrow_columns_skipped_unless_forced_by_max_columns():
    # 2 columns would be 184px wide (skipped), 3 columns are forced
    box = FlowBox(0, 0, 400, 280)
    result = flow_lines(_lines(15), box, base_font_size=20, min_font_size=20, max_columns=3)
    assert result.column_count == 3

    wide = FlowBox(0, 0, 1000, 280)
    result = flow_lines(_lines(15), wide, base_font_size=20, min_font_size=20, max_columns=3)
    assert result.column_count == 2


def test_empty_input():
    result = flow_lines([], TWO_BY_TWENTY, base_font_size=20, min_font_size=12)

    assert result.rendered_lines == ()
    assert result.rendered_count == 0
    assert result.omitted_count == 0
    assert result.font_size_used == 20
    assert to_tspans(result) == ""


def test_min_above_base_is_rejected():
    with pytest.raises(ValueError):
        flow_lines(_lines(3), TWO_BY_TWENTY, base_font_size=12, min_font_size=20)


def test_columns_are_positioned():
    result = flow_lines(_lines(30), TWO_BY_TWENTY, base_font_size=20, min_font_size=12, gap=32)

    first, second = result.columns
    assert (first.x, first.y) == (64, 220)
    assert second.x == 64 + 484 + 32
    assert second.y == first.y


def test_tspans_use_absolute_first_line_then_dy():
    result = flow_lines(["01. A – B", "02. C & D"], TWO_BY_TWENTY, base_font_size=20, min_font_size=12)
    tspans = to_tspans(result)

    assert tspans.startswith('<tspan x="64" y="220">01. A – B</tspan>')
    assert '<tspan x="64" dy="28">02. C &amp; D</tspan>' in tspans


def test_long_lines_are_ellipsized_to_column_width():
    box = FlowBox(0, 0, 300, 200)
    result = flow_lines(["01. " + "x" * 200], box, base_font_size=20, min_font_size=20)

    # 300px / (20px * 0.6) = 25 characters
    line = result.rendered_lines[0]
    assert len(line) == 25
    assert line.endswith("…")


def test_flow_tracks_formats_lines(sample_tracks):
    result = flow_tracks(sample_tracks, TWO_BY_TWENTY, base_font_size=20, min_font_size=12)
    assert result.rendered_lines[0] == "01. Deadmau5 – Strobe (Club Edit)"


def test_ellipsize_and_escape():
    assert ellipsize("short", 10) == "short"
    assert ellipsize("a very long party name", 8) == "a very…"
    assert escape_xml("<R&B \"night\">") == "&lt;R&amp;B &quot;night&quot;&gt;"


def _fake_measure(text, size):
    return len(text) * size * 0.5


def test_fit_font_size_shrinks_to_width():
    # 20 chars * 0.5em <= 200px once size <= 20
    assert fit_font_size("x" * 20, 200, base_size=40, min_size=10, measure=_fake_measure) == 20


def test_fit_font_size_keeps_base_when_it_fits():
    assert fit_font_size("short", 1000, base_size=64, min_size=36, measure=_fake_measure) == 64


def test_fit_font_size_never_goes_below_floor():
    assert fit_font_size("x" * 200, 10, base_size=64, min_size=36, measure=_fake_measure) == 36


def test_measure_text_width_grows_with_size():
    small = measure_text_width("Rooftop Sessions", 20)
    large = measure_text_width("Rooftop Sessions", 40)
    assert 0 < small < large


def test_measure_text_width_with_missing_font_file_falls_back(tmp_path):
    width = measure_text_width("Rooftop", 24, font_path=str(tmp_path / "missing.ttf"))
    assert width > 0
