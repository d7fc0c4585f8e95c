"""Source-over compositing of RGBA layers."""

import logging
from dataclasses import dataclass

import numpy as np

from .errors import ConfigError
from .raster import Layout, RasterImage, colorize

log = logging.getLogger(__name__)


@dataclass
class Layer:
    """An image in the stack.

    ``color`` is applied when ``image`` is an ``L`` coverage mask; RGBA
    images are used as they are. Lower ``z`` is drawn first.
    """
    image: RasterImage
    color: tuple = (0, 0, 0, 255)
    z: int = 0

    def to_rgba(self):
        if self.image.layout is Layout.RGBA:
            return self.image
        return colorize(self.image, self.color)

    @property
    def size(self):
        return self.image.size


def _to_float(image):
    return image.data.astype(np.float64) / 255.0


def blend_over(dst, src):
    """Blend normalized straight-alpha RGBA ``src`` over ``dst``.

    Premultiplied, this is ``out = src + dst * (1 - src.alpha)``. Where
    the result is fully transparent the destination color is kept.
    """
    sa = src[:, :, 3:4]
    da = dst[:, :, 3:4]
    out_a = sa + da * (1.0 - sa)
    premul = src[:, :, :3] * sa + dst[:, :, :3] * da * (1.0 - sa)

    out = np.empty_like(dst)
    np.divide(premul, out_a, out=out[:, :, :3], where=out_a > 0)
    np.copyto(out[:, :, :3], dst[:, :, :3], where=out_a <= 0)
    out[:, :, 3:4] = out_a
    return out


def composite(layers, canvas=None):
    """Composite ``layers`` bottom to top, lowest z-order first.

    Args:
        layers: Iterable of Layer. Ties in ``z`` keep list order.
        canvas: Optional RGBA RasterImage drawn beneath every layer.

    Returns:
        A new RGBA RasterImage.

    Raises:
        ConfigError: if the stack is empty or any dimensions differ. The
            check happens before any blending.
    """
    stack = sorted(layers, key=lambda layer: layer.z)
    sizes = [layer.size for layer in stack]
    if canvas is not None:
        sizes.insert(0, canvas.size)
    if not sizes:
        raise ConfigError("nothing to composite", parameter="layers")
    if any(size != sizes[0] for size in sizes):
        raise ConfigError(f"mismatched layer dimensions {sizes}",
                          parameter="layers")

    rgba = [layer.to_rgba() for layer in stack]
    if canvas is not None:
        rgba.insert(0, canvas.to_rgba())

    out = _to_float(rgba[0])
    for image in rgba[1:]:
        out = blend_over(out, _to_float(image))

    log.debug("Composited %d layers at %dx%d", len(rgba), *sizes[0])
    return RasterImage(np.rint(out * 255.0).astype(np.uint8), Layout.RGBA)
