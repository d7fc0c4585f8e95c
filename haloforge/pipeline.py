"""Main caption rendering pipeline.

Decodes an image, rasterizes a line of text, grows the glyph coverage
into a halo, and composites background, halo and fill into a PNG.
"""

import logging
from dataclasses import dataclass, fields
from numbers import Real

from .codec import decode, encode_png
from .compositor import Layer, composite
from .errors import ConfigError
from .font import Scale, load_font
from .morphology import Norm, dilate
from .raster import Layout, RasterImage
from .text import TextRun, rasterize

log = logging.getLogger(__name__)


@dataclass
class Style:
    """Configuration for caption rendering.

    ``scale`` and each ``anchor`` component are read as a fraction of the
    image size when at most 1 (scale) or below 1 (anchor), and as
    absolute pixels otherwise. Fractions use the image width for x and
    the image height for y.
    """

    # Colors (R, G, B, A)
    fill_color: tuple = (255, 128, 0, 255)
    outline_color: tuple = (0, 0, 0, 255)

    # Halo
    outline_radius: int = 4
    norm: Norm = Norm.LINF

    # Placement
    scale: object = 0.10  # float or (sx, sy)
    anchor: tuple = (0.10, 0.10)

    @classmethod
    def from_kwargs(cls, **kwargs):
        """Build a Style, rejecting unknown parameter names."""
        known = {f.name for f in fields(cls)}
        for key in kwargs:
            if key not in known:
                raise ConfigError("unknown style parameter", parameter=key)
        return cls(**kwargs).validate()

    def validate(self):
        for name in ('fill_color', 'outline_color'):
            _check_color(name, getattr(self, name))

        radius = self.outline_radius
        if isinstance(radius, bool) or not isinstance(radius, int) or radius < 0:
            raise ConfigError(f"must be a non-negative integer, got {radius!r}",
                              parameter="outline_radius")
        try:
            self.norm = Norm(self.norm)
        except ValueError:
            raise ConfigError(f"unknown norm {self.norm!r}",
                              parameter="norm") from None

        for value in _pair(self.scale, "scale"):
            if not value > 0:
                raise ConfigError(f"must be positive, got {self.scale!r}",
                                  parameter="scale")
        for value in _pair(self.anchor, "anchor"):
            if value < 0:
                raise ConfigError(f"must not be negative, got {self.anchor!r}",
                                  parameter="anchor")
        return self


def _check_color(name, color):
    try:
        ok = len(color) == 4 and all(
            isinstance(c, int) and 0 <= c <= 255 for c in color)
    except TypeError:
        ok = False
    if not ok:
        raise ConfigError(f"expected four integers in 0-255, got {color!r}",
                          parameter=name)


def _pair(value, name):
    if isinstance(value, Real) and not isinstance(value, bool):
        return (float(value), float(value))
    try:
        x, y = value
        if isinstance(x, bool) or isinstance(y, bool):
            raise TypeError
        return (float(x), float(y))
    except (TypeError, ValueError):
        raise ConfigError(f"expected a number or (x, y) pair, got {value!r}",
                          parameter=name) from None


def resolve_scale(style, width, height):
    """Glyph scale in pixels per em for a width x height image."""
    sx, sy = _pair(style.scale, "scale")
    sx = sx * width if sx <= 1 else sx
    sy = sy * height if sy <= 1 else sy
    return Scale(sx, sy).validate()


def resolve_anchor(style, width, height):
    """Pen start position in pixels for a width x height image."""
    ax, ay = _pair(style.anchor, "anchor")
    x = ax * width if ax < 1 else ax
    y = ay * height if ay < 1 else ay
    return int(x), int(y)


def render_image(background, text, font, style=None):
    """Render captioned text over an RGBA RasterImage.

    Args:
        background: Decoded RasterImage; L images are promoted to RGBA.
        text: Caption to draw on one line.
        font: Loaded font object.
        style: Style instance (defaults used if None).

    Returns:
        New RGBA RasterImage with the same dimensions as ``background``.
    """
    if style is None:
        style = Style()
    style.validate()
    background = background.to_rgba()
    w, h = background.size

    scale = resolve_scale(style, w, h)
    x, y = resolve_anchor(style, w, h)
    run = TextRun(text, font, scale, x, y)
    log.debug("Laying out %d chars at (%d, %d), scale %.1fx%.1f",
              len(text), x, y, scale.x, scale.y)

    coverage, fill = rasterize(run, w, h, style.fill_color)
    if style.outline_radius > 0:
        halo = dilate(coverage, style.outline_radius, style.norm)
    else:
        # No outline: an empty halo leaves the fill edges untouched
        halo = RasterImage.blank(w, h, Layout.L)

    # Halo under fill: the fill covers the glyph interior of the halo
    return composite([
        Layer(background, z=0),
        Layer(halo, color=style.outline_color, z=1),
        Layer(fill, z=2),
    ])


def render(image_bytes, text, font, style=None):
    """Render text with a colored halo onto an image.

    Args:
        image_bytes: Encoded source image in any Pillow-readable format.
        text: Caption text.
        font: Font object, or a path accepted by ``load_font``.
        style: Style instance (defaults used if None).

    Returns:
        PNG-encoded bytes of the composited image.

    Raises:
        ConfigError: on invalid style, before any decoding happens.
        DecodeError, FontError, EncodeError: from the respective stage.
    """
    if style is None:
        style = Style()
    style.validate()
    if not hasattr(font, 'glyph_id'):
        font = load_font(font)

    background = decode(image_bytes)
    result = render_image(background, text, font, style)
    data = encode_png(result)
    log.debug("Rendered %r onto %dx%d image (%d bytes)",
              text, result.width, result.height, len(data))
    return data


def convert(image_bytes):
    """Re-encode any readable image as RGBA PNG."""
    return encode_png(decode(image_bytes))
