"""Tests for the raster buffer."""

import numpy as np
import pytest

from haloforge.errors import ConfigError
from haloforge.raster import Layout, RasterImage, blit_max, colorize


def test_blank_buffer_length():
    img = RasterImage.blank(7, 3, Layout.RGBA, fill=(1, 2, 3, 4))
    assert img.size == (7, 3)
    assert len(img) == 7 * 3 * 4
    assert tuple(img.data[2, 6]) == (1, 2, 3, 4)


def test_two_dimensional_coverage_is_accepted():
    img = RasterImage(np.zeros((4, 5), dtype=np.uint8), Layout.L)
    assert img.data.shape == (4, 5, 1)
    assert len(img) == 20


@pytest.mark.parametrize("data, layout", [
    (np.zeros((4, 5, 3), dtype=np.uint8), Layout.RGBA),
    (np.zeros((4, 5, 4), dtype=np.uint8), Layout.L),
    (np.zeros((4, 5), dtype=np.float32), Layout.L),
    (np.zeros((0, 5), dtype=np.uint8), Layout.L),
])
def test_invalid_buffers_rejected(data, layout):
    with pytest.raises(ConfigError):
        RasterImage(data, layout)


def test_blank_rejects_zero_size():
    with pytest.raises(ConfigError) as info:
        RasterImage.blank(0, 10)
    assert info.value.parameter == "size"


def test_from_coverage_rounds():
    img = RasterImage.from_coverage(np.array([[0.0, 0.5, 1.0, 2.0]]))
    np.testing.assert_array_equal(img.data[0, :, 0], [0, 128, 255, 255])


def test_to_rgba_from_coverage():
    img = RasterImage(np.full((2, 2), 77, dtype=np.uint8), Layout.L)
    rgba = img.to_rgba()
    assert rgba.layout is Layout.RGBA
    assert tuple(rgba.data[1, 1]) == (77, 77, 77, 255)


def test_pil_round_trip_preserves_pixels():
    img = RasterImage.blank(3, 2, fill=(10, 20, 30, 40))
    again = RasterImage.from_pil(img.to_pil())
    np.testing.assert_array_equal(again.data, img.data)


def test_blit_max_keeps_brighter_pixel():
    dest = np.full((4, 4), 0.5)
    src = np.array([[0.2, 0.9], [1.0, 0.0]])
    written = blit_max(dest, src, 1, 1)
    assert written == 4
    np.testing.assert_array_equal(dest[1:3, 1:3], [[0.5, 0.9], [1.0, 0.5]])


def test_blit_max_clips_at_edges():
    dest = np.zeros((4, 4))
    src = np.ones((3, 3))
    assert blit_max(dest, src, -1, 2) == 4
    assert dest.sum() == 4
    assert dest[2:4, 0:2].all()


def test_blit_max_fully_outside_is_noop():
    dest = np.zeros((4, 4))
    assert blit_max(dest, np.ones((2, 2)), 10, -10) == 0
    assert blit_max(dest, np.ones((2, 2)), -2, 0) == 0
    assert not dest.any()


def test_colorize_full_coverage():
    coverage = np.array([[0.0, 1.0]])
    out = colorize(coverage, (1, 2, 3, 255))
    assert out.layout is Layout.RGBA
    assert tuple(out.data[0, 0]) == (0, 0, 0, 0)
    assert tuple(out.data[0, 1]) == (1, 2, 3, 255)


def test_colorize_coverage_image_scales_alpha():
    mask = RasterImage(np.array([[0, 51, 255]], dtype=np.uint8), Layout.L)
    out = colorize(mask, (10, 20, 30, 100))
    np.testing.assert_array_equal(out.data[0, :, 3], [0, 20, 100])
    assert tuple(out.data[0, 1, :3]) == (10, 20, 30)
    assert tuple(out.data[0, 0]) == (0, 0, 0, 0)
