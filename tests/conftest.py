import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

FONT_DIR = Path(__file__).parent / "fixtures" / "font"

TRUETYPE_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/Library/Fonts/Arial.ttf",
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "C:/Windows/Fonts/arial.ttf",
]


@pytest.fixture(scope="session")
def svg_font():
    from haloforge.font import load_font
    return load_font(FONT_DIR)


@pytest.fixture(scope="session")
def truetype_path():
    for candidate in TRUETYPE_CANDIDATES:
        if Path(candidate).is_file():
            return Path(candidate)
    pytest.skip("no TrueType font available on this system")


def png_bytes(width, height, color=(255, 255, 255, 255), mode="RGBA"):
    img = Image.new(mode, (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def decode_png(data):
    with Image.open(io.BytesIO(data)) as img:
        assert img.format == "PNG"
        return np.array(img.convert("RGBA"))
