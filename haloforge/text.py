"""Text layout and glyph coverage rasterization."""

import logging
from dataclasses import dataclass

import numpy as np

from .font import Scale
from .raster import RasterImage, blit_max, colorize

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlyphPlacement:
    """A glyph anchored at a pen position.

    ``y`` is the top of the text line; the glyph's local box is offset
    from the pen by its bearing.
    """
    glyph_id: object
    x: float
    y: float
    scale: Scale

    @property
    def origin(self):
        """Pen position rounded to the pixel grid."""
        return int(round(self.x)), int(round(self.y))


@dataclass
class TextRun:
    """A string laid out left to right from a starting pen position."""
    text: str
    font: object
    scale: Scale
    x: float = 0.0
    y: float = 0.0

    def placements(self):
        """Return the GlyphPlacement of every character, in order."""
        return list(self._layout()[0])

    def end_pen(self):
        """Pen position after the last glyph's advance."""
        return self._layout()[1]

    def width(self):
        return self.end_pen()[0] - self.x

    def _layout(self):
        self.scale.validate()
        pen_x = self.x
        out = []
        for ch in self.text:
            gid = self.font.glyph_id(ch)
            out.append(GlyphPlacement(gid, pen_x, self.y, self.scale))
            pen_x += self.font.h_advance(gid, self.scale)
        return out, (pen_x, self.y)


def rasterize_coverage(run, width, height):
    """Draw every glyph of ``run`` into a float coverage array.

    Glyphs without an outline only advance the pen. Overlapping glyphs
    combine by maximum; pixels outside the canvas are dropped.
    """
    coverage = np.zeros((height, width), dtype=np.float32)
    drawn = 0
    for placement in run.placements():
        rendered = run.font.outline(placement.glyph_id, placement.scale)
        if rendered is None:
            continue
        mask, (left, top) = rendered
        px, py = placement.origin
        blit_max(coverage, mask, px + left, py + top)
        drawn += 1
    log.debug("Rasterized %d of %d glyphs onto %dx%d canvas",
              drawn, len(run.text), width, height)
    return coverage


def rasterize(run, width, height, fill_color):
    """Rasterize a TextRun onto a width x height canvas.

    Returns:
        (coverage, fill): an ``L`` coverage image and the same coverage
        colored with ``fill_color`` as RGBA.
    """
    coverage = RasterImage.from_coverage(rasterize_coverage(run, width, height))
    return coverage, colorize(coverage, fill_color)
