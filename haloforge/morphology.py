"""Grayscale dilation of coverage masks.

Each output pixel is the maximum input value inside a neighborhood of
the given radius. Pixels beyond the canvas edge count as 0.
"""

from enum import Enum

import numpy as np

from .errors import ConfigError
from .raster import Layout, RasterImage


class Norm(Enum):
    """Distance metric defining the dilation neighborhood."""

    L1 = 'l1'      # diamond
    L2 = 'l2'      # disk
    LINF = 'linf'  # square of side 2r+1


def _max_filter_1d(arr, radius, axis):
    """Sliding maximum of width 2r+1 along one axis (van Herk/Gil-Werman).

    The padded signal is cut into blocks of the window length; the
    maximum over any window is the max of one block suffix and the next
    block prefix, so the cost per pixel is constant in the radius.
    """
    a = np.moveaxis(arr, axis, -1)
    n = a.shape[-1]
    k = 2 * radius + 1
    length = -(-(n + 2 * radius) // k) * k

    padded = np.zeros(a.shape[:-1] + (length,), dtype=a.dtype)
    padded[..., radius:radius + n] = a
    blocks = padded.reshape(a.shape[:-1] + (length // k, k))

    prefix = np.maximum.accumulate(blocks, axis=-1).reshape(padded.shape)
    suffix = np.maximum.accumulate(blocks[..., ::-1], axis=-1)[..., ::-1]
    suffix = suffix.reshape(padded.shape)

    out = np.maximum(suffix[..., :n], prefix[..., k - 1:k - 1 + n])
    return np.moveaxis(out, -1, axis)


def _shift_max(dest, src, dy, dx):
    """dest[y, x] = max(dest[y, x], src[y + dy, x + dx]) where in bounds."""
    h, w = src.shape
    if abs(dy) >= h or abs(dx) >= w:
        return
    ys, yd = (slice(dy, h), slice(0, h - dy)) if dy >= 0 else \
        (slice(0, h + dy), slice(-dy, h))
    xs, xd = (slice(dx, w), slice(0, w - dx)) if dx >= 0 else \
        (slice(0, w + dx), slice(-dx, w))
    np.maximum(dest[yd, xd], src[ys, xs], out=dest[yd, xd])


def max_filter(mask, radius, norm=Norm.LINF):
    """Dilate a 2-D array by ``radius`` under ``norm``."""
    if radius == 0:
        return mask.copy()

    if norm is Norm.LINF:
        rows = _max_filter_1d(mask, radius, axis=1)
        return _max_filter_1d(rows, radius, axis=0)

    if norm is Norm.L1:
        # r steps of the 3x3 cross are exactly the radius-r diamond
        out = mask.copy()
        for _ in range(radius):
            src = out.copy()
            for dy, dx in ((-1, 0), (1, 0), (0, -1), (0, 1)):
                _shift_max(out, src, dy, dx)
        return out

    out = mask.copy()
    r2 = radius * radius
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            if (dy or dx) and dy * dy + dx * dx <= r2:
                _shift_max(out, mask, dy, dx)
    return out


def dilate(coverage, radius, norm=Norm.LINF):
    """Expand a coverage image outward by ``radius`` pixels.

    Args:
        coverage: RasterImage in ``L`` layout.
        radius: Non-negative integer radius in pixels.
        norm: Neighborhood metric; L-infinity gives uniform thickening
            in every direction, corners included.

    Returns:
        A new ``L`` RasterImage; the input is left untouched.
    """
    if isinstance(radius, bool) or not isinstance(radius, (int, np.integer)) \
            or radius < 0:
        raise ConfigError(f"must be a non-negative integer, got {radius!r}",
                          parameter="outline_radius")
    if coverage.layout is not Layout.L:
        raise ConfigError("dilation needs a single-channel coverage image",
                          parameter="coverage")
    norm = Norm(norm)
    out = max_filter(coverage.data[:, :, 0], int(radius), norm)
    return RasterImage(out, Layout.L)
