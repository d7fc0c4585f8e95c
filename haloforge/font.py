"""Font loading and per-glyph coverage rasterization.

Two font sources are supported:

* a directory of ``glyph_*.svg`` files made of ``<polygon>`` elements,
* a TrueType/OpenType file, rasterized through Pillow's FreeType binding.

Fonts are loaded once and only read afterwards, so a single instance can
be shared by concurrent renders.
"""

import io
import logging
import math
import threading
import xml.etree.ElementTree as ET
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .errors import ConfigError, FontError

log = logging.getLogger(__name__)

SUPERSAMPLE = 4
SPACE_ADVANCE = 0.5
MAX_FACES = 8
TRUETYPE_EXTS = ('.ttf', '.otf', '.ttc')


@dataclass(frozen=True)
class Scale:
    """Pixels per em, horizontally and vertically."""
    x: float
    y: float

    @classmethod
    def uniform(cls, size):
        return cls(float(size), float(size))

    def validate(self):
        if not (self.x > 0 and self.y > 0):
            raise ConfigError(f"scale must be positive, got ({self.x}, {self.y})",
                              parameter="scale")
        return self


@dataclass(frozen=True)
class Glyph:
    """A single glyph loaded from SVG."""
    label: str
    polygons: tuple  # Tuple of tuples of (x, y), normalized to 0-1
    viewbox_w: float
    viewbox_h: float
    advance: float   # In em


NOTDEF = Glyph(label='.notdef', polygons=(), viewbox_w=0.0, viewbox_h=0.0,
               advance=SPACE_ADVANCE)
SPACE = Glyph(label=' ', polygons=(), viewbox_w=0.0, viewbox_h=0.0,
              advance=SPACE_ADVANCE)


def load_glyph(svg_path):
    """Load a single glyph from an SVG file.

    Parses <polygon> elements and normalizes coordinates to [0, 1]. The
    advance is ``horiz-adv-x`` on the root element when present, otherwise
    the viewBox width, both expressed in em (viewBox height).
    """
    try:
        tree = ET.parse(svg_path)
    except (ET.ParseError, OSError) as exc:
        raise FontError(f"cannot parse glyph {svg_path}: {exc}") from exc
    root = tree.getroot()

    # Strip namespace prefixes for simpler querying
    for elem in root.iter():
        if '}' in elem.tag:
            elem.tag = elem.tag.split('}', 1)[1]
        for key in list(elem.attrib):
            if '}' in key:
                elem.attrib[key.split('}', 1)[1]] = elem.attrib.pop(key)

    try:
        parts = [float(p) for p in
                 root.get('viewBox', '0 0 200 200').replace(',', ' ').split()]
        vb_w, vb_h = parts[2], parts[3]
        advance = float(root.get('horiz-adv-x', vb_w))
    except (ValueError, IndexError) as exc:
        raise FontError(f"bad viewBox in {svg_path}") from exc
    if vb_w <= 0 or vb_h <= 0:
        raise FontError(f"empty viewBox in {svg_path}")

    polygons = []
    for poly in root.iter('polygon'):
        points = []
        for pair in poly.get('points', '').strip().split():
            coords = pair.split(',')
            if len(coords) != 2:
                continue
            try:
                points.append((float(coords[0]) / vb_w,
                               float(coords[1]) / vb_h))
            except ValueError as exc:
                raise FontError(f"bad point {pair!r} in {svg_path}") from exc
        if len(points) >= 3:
            polygons.append(tuple(points))

    # glyph_a.svg -> A
    label = Path(svg_path).stem
    if label.startswith('glyph_'):
        label = label[6:]
    label = label.upper()

    return Glyph(label=label, polygons=tuple(polygons),
                 viewbox_w=vb_w, viewbox_h=vb_h, advance=advance / vb_h)


def rasterize_glyph(glyph, scale):
    """Rasterize a glyph to anti-aliased coverage.

    The glyph's em box is ``scale.x`` by ``scale.y`` pixels with its
    origin at the pen. Polygons are drawn at SUPERSAMPLE times the
    resolution and box-filtered down.

    Returns:
        (coverage, (left, top)): float32 array of shape (h, w) in [0, 1]
        and the integer offset of its top-left corner from the pen, or
        None if the glyph has no outline.
    """
    if not glyph.polygons:
        return None

    sx = scale.x * glyph.viewbox_w / glyph.viewbox_h
    sy = scale.y
    scaled = [[(x * sx, y * sy) for x, y in poly] for poly in glyph.polygons]
    xs = [x for poly in scaled for x, _ in poly]
    ys = [y for poly in scaled for _, y in poly]
    left, top = math.floor(min(xs)), math.floor(min(ys))
    w = max(1, math.ceil(max(xs)) - left)
    h = max(1, math.ceil(max(ys)) - top)

    ss = SUPERSAMPLE
    img = Image.new('L', (w * ss, h * ss), 0)
    draw = ImageDraw.Draw(img)
    for poly in scaled:
        draw.polygon([((x - left) * ss, (y - top) * ss) for x, y in poly],
                     fill=255)
    img = img.reduce(ss)

    coverage = np.asarray(img, dtype=np.float32) / 255.0
    if not coverage.any():
        return None
    return coverage, (left, top)


class SvgFont:
    """A font assembled from a directory of SVG glyphs.

    Glyph id 0 is ``.notdef`` (no outline); ids are stable for a given
    directory listing.
    """

    def __init__(self, glyphs, name=''):
        self.name = name
        table = [NOTDEF]
        cmap = {}
        if ' ' not in glyphs:
            glyphs = dict(glyphs, **{' ': SPACE})
        for label in sorted(glyphs):
            cmap[label] = len(table)
            table.append(glyphs[label])
        self._glyphs = tuple(table)
        self._cmap = MappingProxyType(cmap)

    def __len__(self):
        return len(self._glyphs) - 1

    def __contains__(self, char):
        return self.glyph_id(char) != 0

    def glyph(self, glyph_id):
        return self._glyphs[glyph_id]

    def glyph_id(self, char):
        gid = self._cmap.get(char)
        if gid is None:
            gid = self._cmap.get(char.upper(), 0)
        return gid

    def h_advance(self, glyph_id, scale):
        return self._glyphs[glyph_id].advance * scale.x

    def outline(self, glyph_id, scale):
        return rasterize_glyph(self._glyphs[glyph_id], scale)


class TrueTypeFont:
    """A TrueType/OpenType font rendered with FreeType via Pillow.

    Glyph ids are the characters themselves; FreeType resolves them
    through the font's cmap. Shaping is disabled (BASIC layout).
    """

    def __init__(self, data, name='', index=0, max_faces=MAX_FACES):
        self.name = name
        self._data = bytes(data)
        self._index = index
        self._max_faces = max(1, max_faces)
        self._sizes = OrderedDict()
        self._lock = threading.Lock()
        # Fail early on bad data rather than on first render
        self._face(16.0)

    def _face(self, size):
        """FreeType face for ``size``, least recently used sizes evicted."""
        face = self._sizes.get(size)
        if face is not None:
            self._sizes.move_to_end(size)
        else:
            try:
                face = ImageFont.truetype(io.BytesIO(self._data), size,
                                          index=self._index,
                                          layout_engine=ImageFont.Layout.BASIC)
            except OSError as exc:
                raise FontError(f"cannot load font {self.name}: {exc}") from exc
            self._sizes[size] = face
            while len(self._sizes) > self._max_faces:
                self._sizes.popitem(last=False)
        return face

    @property
    def cached_sizes(self):
        with self._lock:
            return tuple(self._sizes)

    def glyph_id(self, char):
        return char

    def h_advance(self, glyph_id, scale):
        with self._lock:
            face = self._face(scale.y)
            return face.getlength(glyph_id) * scale.x / scale.y

    def outline(self, glyph_id, scale):
        if glyph_id.isspace():
            return None
        with self._lock:
            face = self._face(scale.y)
            left, top, right, bottom = face.getbbox(glyph_id, anchor='la')
            if right <= left or bottom <= top:
                return None
            img = Image.new('L', (right - left, bottom - top), 0)
            ImageDraw.Draw(img).text((-left, -top), glyph_id, font=face,
                                     fill=255, anchor='la')

        stretch = scale.x / scale.y
        if stretch != 1.0:
            w = max(1, round(img.width * stretch))
            img = img.resize((w, img.height), Image.Resampling.BILINEAR)
            left = math.floor(left * stretch)

        coverage = np.asarray(img, dtype=np.float32) / 255.0
        if not coverage.any():
            return None
        return coverage, (left, top)


def load_svg_font(font_dir):
    """Load all glyphs from a directory of SVG files.

    Looks for files named glyph_*.svg.
    """
    font_dir = Path(font_dir)
    glyphs = {}

    for svg_file in sorted(font_dir.glob('glyph_*.svg')):
        glyph = load_glyph(svg_file)
        glyphs[glyph.label] = glyph

    if not glyphs:
        raise FontError(f"no glyph_*.svg files in {font_dir}")
    log.debug("Loaded %d SVG glyphs from %s", len(glyphs), font_dir)
    return SvgFont(glyphs, name=font_dir.name)


def load_truetype_font(path, index=0):
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise FontError(f"cannot read font {path}: {exc}") from exc
    font = TrueTypeFont(data, name=path.name, index=index)
    log.debug("Loaded TrueType font %s (%d bytes)", path, len(data))
    return font


def load_font(path):
    """Load a font from an SVG glyph directory or a TrueType file."""
    path = Path(path)
    if path.is_dir():
        return load_svg_font(path)
    if not path.exists():
        raise FontError(f"font not found: {path}")
    if path.suffix.lower() not in TRUETYPE_EXTS:
        log.warning("Unrecognized font extension %r, trying FreeType",
                    path.suffix)
    return load_truetype_font(path)
