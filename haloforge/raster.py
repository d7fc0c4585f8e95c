"""Dense 2-D pixel buffers.

A RasterImage wraps a numpy ``uint8`` array of shape
``(height, width, channels)``. Every write helper in this module clips
to the canvas; coordinates outside it are discarded rather than rejected.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np
from PIL import Image

from .errors import ConfigError


class Layout(Enum):
    """Channel layout of a RasterImage."""

    L = 1      # single-channel coverage / luma
    RGBA = 4

    @property
    def channels(self):
        return self.value


@dataclass
class RasterImage:
    """A width x height grid of 8-bit pixels in a fixed channel layout."""

    data: np.ndarray
    layout: Layout

    def __post_init__(self):
        data = self.data
        if data.ndim == 2:
            data = data[:, :, np.newaxis]
        if data.ndim != 3 or data.shape[2] != self.layout.channels:
            raise ConfigError(
                f"buffer shape {self.data.shape} does not match "
                f"{self.layout.name} layout", parameter="data")
        if data.dtype != np.uint8:
            raise ConfigError(f"expected uint8 buffer, got {data.dtype}",
                              parameter="data")
        if data.shape[0] < 1 or data.shape[1] < 1:
            raise ConfigError(
                f"dimensions must be positive, got "
                f"{data.shape[1]}x{data.shape[0]}", parameter="data")
        self.data = data

    @classmethod
    def blank(cls, width, height, layout=Layout.RGBA, fill=0):
        """Create a canvas filled with a constant value (or RGBA tuple)."""
        if width < 1 or height < 1:
            raise ConfigError(
                f"dimensions must be positive, got {width}x{height}",
                parameter="size")
        data = np.empty((height, width, layout.channels), dtype=np.uint8)
        data[...] = fill
        return cls(data, layout)

    @classmethod
    def from_coverage(cls, coverage):
        """Quantize a float array in [0, 1] into an ``L`` image."""
        q = np.rint(np.clip(coverage, 0.0, 1.0) * 255.0).astype(np.uint8)
        return cls(q, Layout.L)

    @classmethod
    def from_pil(cls, img):
        """Convert a PIL image, promoting anything that is not L to RGBA."""
        if img.mode != 'L' and img.mode != 'RGBA':
            img = img.convert('RGBA')
        return cls(np.array(img, dtype=np.uint8), Layout[img.mode])

    def to_pil(self):
        if self.layout is Layout.L:
            return Image.fromarray(self.data[:, :, 0])
        return Image.fromarray(self.data)

    def to_rgba(self):
        """Return an RGBA copy. Coverage becomes opaque gray."""
        if self.layout is Layout.RGBA:
            return RasterImage(self.data.copy(), Layout.RGBA)
        out = np.empty((self.height, self.width, 4), dtype=np.uint8)
        out[:, :, :3] = self.data
        out[:, :, 3] = 255
        return RasterImage(out, Layout.RGBA)

    def copy(self):
        return RasterImage(self.data.copy(), self.layout)

    def coverage(self):
        """Single-channel values as float64 in [0, 1]."""
        if self.layout is not Layout.L:
            raise ConfigError("coverage() requires an L image",
                              parameter="layout")
        return self.data[:, :, 0].astype(np.float64) / 255.0

    @property
    def width(self):
        return self.data.shape[1]

    @property
    def height(self):
        return self.data.shape[0]

    @property
    def size(self):
        return (self.width, self.height)

    @property
    def channels(self):
        return self.layout.channels

    def __len__(self):
        return self.data.size


def blit_max(dest, src, x, y):
    """Write ``src`` into ``dest`` at (x, y) keeping the per-pixel maximum.

    Both arrays are 2-D. The paste region is clipped to ``dest``; pixels
    falling outside it are dropped. Returns the number of pixels written.
    """
    dest_h, dest_w = dest.shape
    src_h, src_w = src.shape

    # Compute paste region (clipped to canvas)
    y1, y2 = y, y + src_h
    x1, x2 = x, x + src_w
    gy1, gx1 = max(0, -y1), max(0, -x1)
    gy2 = src_h - max(0, y2 - dest_h)
    gx2 = src_w - max(0, x2 - dest_w)
    cy1, cx1 = max(0, y1), max(0, x1)
    cy2, cx2 = min(dest_h, y2), min(dest_w, x2)

    if cy2 <= cy1 or cx2 <= cx1:
        return 0

    dest[cy1:cy2, cx1:cx2] = np.maximum(dest[cy1:cy2, cx1:cx2],
                                        src[gy1:gy2, gx1:gx2])
    return (cy2 - cy1) * (cx2 - cx1)


def colorize(coverage, color):
    """Recolor a coverage mask as straight-alpha RGBA.

    Alpha is ``coverage * color alpha``; RGB is the color wherever alpha
    is non-zero and 0 elsewhere.
    """
    if isinstance(coverage, RasterImage):
        coverage = coverage.coverage()
    r, g, b, a = color
    alpha = np.rint(coverage * a).astype(np.uint8)
    out = np.zeros(coverage.shape + (4,), dtype=np.uint8)
    covered = alpha > 0
    out[covered, 0] = r
    out[covered, 1] = g
    out[covered, 2] = b
    out[:, :, 3] = alpha
    return RasterImage(out, Layout.RGBA)
