import numpy as np
import pytest

from rastersolid.errors import InvalidSource, MalformedTraceInput, NoImageLoaded
from rastersolid.raster import (
    PixelBuffer,
    apply_threshold,
    box_blur,
    clear_border,
    luminance,
    median_filter,
    preprocess,
    smooth_mask,
    to_grayscale,
)


def test_pixel_buffer_owns_a_read_only_copy():
    arr = np.zeros((4, 5), dtype=np.uint8)
    buf = PixelBuffer(arr)
    arr[0, 0] = 200
    assert buf.data[0, 0] == 0
    assert buf.width == 5 and buf.height == 4
    with pytest.raises(ValueError):
        buf.data[0, 0] = 1


def test_pixel_buffer_rejects_bad_shapes():
    with pytest.raises(InvalidSource):
        PixelBuffer(np.zeros((4, 4, 2), dtype=np.uint8))
    with pytest.raises(InvalidSource):
        PixelBuffer(np.zeros(4, dtype=np.uint8))


def test_luminance_weights():
    rgb = np.zeros((1, 3, 3), dtype=np.uint8)
    rgb[0, 0] = (255, 0, 0)
    rgb[0, 1] = (0, 255, 0)
    rgb[0, 2] = (0, 0, 255)
    lum = luminance(rgb)
    assert lum[0].tolist() == pytest.approx([76.245, 149.685, 29.07])


def test_luminance_ignores_alpha():
    rgba = np.full((2, 2, 4), 255, dtype=np.uint8)
    rgba[..., 3] = 0
    assert np.allclose(luminance(rgba), 255.0)


def test_to_grayscale_returns_uint8():
    gray = to_grayscale(np.full((2, 2, 3), 100, dtype=np.uint8))
    assert gray.data.dtype == np.uint8
    assert np.all(gray.data == 100)


def test_threshold_is_strictly_below():
    gray = np.array([[0, 127, 128, 255]], dtype=np.uint8)
    mask = apply_threshold(gray, 128)
    assert mask.is_binary
    assert mask.data.tolist() == [[True, True, False, False]]


def test_threshold_does_not_touch_input():
    gray = np.array([[0, 255]], dtype=np.uint8)
    apply_threshold(gray, 128)
    assert gray.tolist() == [[0, 255]]


def test_box_blur_preserves_constant_field():
    values = np.full((5, 6), 42.0)
    assert np.allclose(box_blur(values, 2), 42.0)


def test_median_filter_removes_isolated_pixel():
    mask = np.zeros((7, 7), dtype=bool)
    mask[3, 3] = True
    assert median_filter(mask).ink_count == 0


def test_median_filter_keeps_solid_block():
    mask = np.zeros((9, 9), dtype=bool)
    mask[2:7, 2:7] = True
    out = median_filter(mask)
    assert out.data[4, 4]
    assert not out.data[0, 0]


def test_clear_border():
    mask = np.ones((6, 6), dtype=bool)
    cleared = clear_border(mask, 2)
    assert cleared.ink_count == 4
    assert cleared.data[2:4, 2:4].all()


def test_smooth_mask_drops_specks_and_fills_pin_holes():
    speck = np.zeros((5, 5), dtype=bool)
    speck[2, 2] = True
    assert smooth_mask(speck).ink_count == 0

    pin = np.ones((5, 5), dtype=bool)
    pin[2, 2] = False
    assert smooth_mask(pin).data[2, 2]


def test_preprocess_requires_an_image():
    with pytest.raises(NoImageLoaded) as excinfo:
        preprocess(None)
    assert excinfo.value.stage == "preprocess"


def test_preprocess_rejects_empty_image():
    with pytest.raises(MalformedTraceInput):
        preprocess(np.zeros((0, 5), dtype=np.uint8))


def test_preprocess_clears_edge_ink():
    gray = np.full((12, 12), 255, dtype=np.uint8)
    gray[:, :4] = 0
    mask = preprocess(gray, 128)
    assert not mask.data[:, :2].any()
    assert mask.data[5, 2]
