"""Tests for text layout and glyph coverage rasterization."""

import numpy as np
import pytest

from haloforge.errors import ConfigError
from haloforge.font import Scale
from haloforge.raster import Layout
from haloforge.text import TextRun, rasterize, rasterize_coverage


class ZeroAdvance:
    """Wraps a font so every glyph is drawn at the same pen position."""

    def __init__(self, font):
        self.font = font

    def glyph_id(self, char):
        return self.font.glyph_id(char)

    def h_advance(self, glyph_id, scale):
        return 0.0

    def outline(self, glyph_id, scale):
        return self.font.outline(glyph_id, scale)


def test_placements_accumulate_advance(svg_font):
    run = TextRun("HiL", svg_font, Scale.uniform(40), x=10.0, y=5.0)
    xs = [p.x for p in run.placements()]
    assert xs == pytest.approx([10.0, 34.0, 46.0])
    assert all(p.y == 5.0 for p in run.placements())
    assert run.end_pen() == pytest.approx((70.0, 5.0))
    assert run.width() == pytest.approx(60.0)


@pytest.mark.parametrize("text", ["H", "HI", "I I", "LLLL", "? H"])
def test_pen_moves_forward(svg_font, text):
    run = TextRun(text, svg_font, Scale.uniform(12), x=3.0)
    assert run.end_pen()[0] > 3.0


def test_whitespace_advances_without_drawing(svg_font):
    scale = Scale.uniform(40)
    plain = rasterize_coverage(TextRun("H", svg_font, scale, 0, 0), 120, 50)
    spaced = rasterize_coverage(TextRun(" H", svg_font, scale, 0, 0), 120, 50)
    assert plain.sum() == pytest.approx(spaced.sum())
    assert not spaced[:, :20].any()
    np.testing.assert_array_equal(spaced[:, 20:], plain[:, :100])


def test_placement_origin_is_rounded(svg_font):
    run = TextRun("H", svg_font, Scale.uniform(40), x=9.6, y=0.4)
    assert run.placements()[0].origin == (10, 0)
    coverage = rasterize_coverage(run, 60, 50)
    # Left stem starts 2px right of the rounded pen
    assert coverage[10, 12] == pytest.approx(1.0)
    assert coverage[10, 11] == 0.0


def test_overlapping_glyphs_combine_by_maximum(svg_font):
    scale = Scale.uniform(40)
    once = rasterize_coverage(TextRun("H", svg_font, scale), 40, 40)
    twice = rasterize_coverage(TextRun("HH", ZeroAdvance(svg_font), scale),
                               40, 40)
    np.testing.assert_array_equal(once, twice)
    assert twice.max() <= 1.0


def test_text_off_canvas_is_clipped(svg_font):
    run = TextRun("HHHH", svg_font, Scale.uniform(40), x=-30, y=20)
    coverage = rasterize_coverage(run, 50, 30)
    assert coverage.shape == (30, 50)
    assert coverage.any()


def test_text_entirely_off_canvas(svg_font):
    run = TextRun("HI", svg_font, Scale.uniform(40), x=500, y=500)
    assert not rasterize_coverage(run, 50, 30).any()


def test_empty_text_gives_empty_coverage(svg_font):
    coverage, fill = rasterize(TextRun("", svg_font, Scale.uniform(40)),
                               32, 16, (255, 0, 0, 255))
    assert coverage.layout is Layout.L
    assert coverage.size == (32, 16)
    assert not coverage.data.any()
    assert not fill.data.any()


@pytest.mark.parametrize("scale", [Scale(0, 10), Scale(-5, -5), Scale(10, 0)])
def test_bad_scale_rejected_before_drawing(svg_font, scale):
    with pytest.raises(ConfigError) as info:
        rasterize(TextRun("H", svg_font, scale), 10, 10, (0, 0, 0, 255))
    assert info.value.parameter == "scale"


def test_fill_layer_alpha_follows_coverage(svg_font):
    run = TextRun("HI", svg_font, Scale.uniform(37), x=2, y=2)
    coverage, fill = rasterize(run, 80, 50, (255, 0, 0, 128))
    assert fill.layout is Layout.RGBA
    cov = coverage.data[:, :, 0].astype(np.float64)
    expected = np.rint(cov / 255.0 * 128)
    np.testing.assert_array_equal(fill.data[:, :, 3], expected)
    covered = fill.data[:, :, 3] > 0
    assert (fill.data[covered][:, :3] == (255, 0, 0)).all()
    assert not fill.data[~covered].any()

