"""Image container decoding and PNG encoding via Pillow."""

import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, EncodeError
from .raster import RasterImage

log = logging.getLogger(__name__)

WIDE_GRAY_MODES = ('I', 'I;16', 'I;16B', 'I;16L')


def _narrow_gray(img):
    """Rescale 16-bit grayscale to 8 bits; Pillow's convert() clips."""
    arr = np.clip(np.asarray(img, dtype=np.int64), 0, 65535) >> 8
    return Image.fromarray(arr.astype(np.uint8))


def decode(data):
    """Decode image bytes in any format Pillow can sniff into RGBA.

    Raises:
        DecodeError: if the bytes are empty, unrecognized, truncated or
            too large to decode safely.
    """
    if not data:
        raise DecodeError("empty image data")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            fmt = img.format
            if img.mode in WIDE_GRAY_MODES:
                img = _narrow_gray(img)
            rgba = img.convert('RGBA')
    except UnidentifiedImageError as exc:
        raise DecodeError(f"unrecognized image format: {exc}") from exc
    except Image.DecompressionBombError as exc:
        raise DecodeError(f"image too large: {exc}") from exc
    except (OSError, ValueError, SyntaxError) as exc:
        raise DecodeError(f"cannot decode image: {exc}") from exc

    image = RasterImage.from_pil(rgba)
    log.debug("Decoded %s image %dx%d", fmt, image.width, image.height)
    return image


def encode_png(image):
    """Encode a RasterImage as PNG with maximum compression."""
    buf = io.BytesIO()
    try:
        image.to_pil().save(buf, format='PNG', compress_level=9)
    except (OSError, ValueError, MemoryError) as exc:
        raise EncodeError(f"cannot encode PNG: {exc}") from exc
    data = buf.getvalue()
    log.debug("Encoded %dx%d %s image as %d PNG bytes",
              image.width, image.height, image.layout.name, len(data))
    return data
