"""HaloForge - Caption images with outlined, anti-aliased text."""

from .errors import (ConfigError, DecodeError, EncodeError, FontError,
                     HaloForgeError)
from .font import load_font
from .pipeline import Style, convert, render, render_image

__version__ = "0.1.0"
__all__ = [
    "caption", "render", "render_image", "convert", "Style", "load_font",
    "HaloForgeError", "DecodeError", "FontError", "ConfigError",
    "EncodeError",
]


def caption(image_bytes, text, font, **kwargs):
    """Caption an image with haloed text.

    Args:
        image_bytes: Encoded source image (PNG, JPEG, GIF, ...).
        text: Text to draw on one line.
        font: Path to a TrueType/OpenType file or a directory of
            glyph_*.svg files, or an already loaded font.
        **kwargs: Style parameters (fill_color, outline_color,
            outline_radius, norm, scale, anchor).

    Returns:
        PNG-encoded bytes.
    """
    style = Style.from_kwargs(**kwargs)
    return render(image_bytes, text, font, style=style)
