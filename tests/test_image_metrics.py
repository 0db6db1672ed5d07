import math

import numpy as np
import pytest

from grainscope.core.utils.image_metrics import (
    calculate_aspect_ratio,
    calculate_circularity,
    edge_density,
    laplacian_variance,
    normalize_image,
    pixel_intensity_variance,
    sobel_gradient_magnitude,
    tenengrad,
    to_grayscale,
)


def test_constant_buffer_has_zero_laplacian_variance():
    flat = np.full((50, 50), 128, dtype=np.uint8)
    assert laplacian_variance(flat) == 0.0
    assert sobel_gradient_magnitude(flat) == 0.0
    assert tenengrad(flat) == 0.0
    assert pixel_intensity_variance(flat) == 0.0
    assert edge_density(flat) == 0.0


def test_metrics_are_non_negative_on_noise():
    rng = np.random.default_rng(0)
    noise = rng.integers(0, 256, size=(64, 64), dtype=np.uint8)
    for metric in (laplacian_variance, sobel_gradient_magnitude, tenengrad,
                   pixel_intensity_variance, edge_density):
        assert metric(noise) >= 0.0


@pytest.mark.parametrize("buf", [None, np.zeros((0, 0), dtype=np.uint8),
                                 np.zeros((4, 4, 3), dtype=np.uint8)])
def test_degenerate_buffers_fail_closed(buf):
    assert laplacian_variance(buf) == 0.0
    assert sobel_gradient_magnitude(buf) == 0.0
    assert tenengrad(buf) == 0.0
    assert pixel_intensity_variance(buf) == 0.0
    assert edge_density(buf) == 0.0


def test_sharp_pattern_scores_higher_than_blurred(checkerboard):
    import cv2
    blurred = cv2.GaussianBlur(checkerboard, (15, 15), 5)
    assert laplacian_variance(checkerboard) > laplacian_variance(blurred)
    assert sobel_gradient_magnitude(checkerboard) > sobel_gradient_magnitude(blurred)
    assert tenengrad(checkerboard) > tenengrad(blurred)
    assert 0.0 < edge_density(checkerboard) <= 1.0


def test_to_grayscale_handles_rgb_rgba_and_gray():
    rgb = np.zeros((10, 12, 3), dtype=np.uint8)
    rgba = np.zeros((10, 12, 4), dtype=np.uint8)
    gray = np.zeros((10, 12), dtype=np.uint8)
    for image in (rgb, rgba, gray):
        assert to_grayscale(image).shape == (10, 12)


def test_to_grayscale_rejects_two_channels():
    with pytest.raises(ValueError):
        to_grayscale(np.zeros((5, 5, 2), dtype=np.uint8))


def test_normalize_image_converts_uint16_and_float():
    assert normalize_image(np.full((2, 2), 65535, dtype=np.uint16)).max() == 255
    assert normalize_image(np.ones((2, 2), dtype=np.float32)).dtype == np.uint8


def test_shape_descriptors():
    r = 10.0
    assert calculate_circularity(math.pi * r * r, 2 * math.pi * r) == pytest.approx(1.0)
    assert calculate_circularity(100.0, 0.0) == 0.0
    assert calculate_aspect_ratio(10, 20) == 2.0
    assert calculate_aspect_ratio(20, 10) == 2.0
    assert calculate_aspect_ratio(0, 5) == 0.0
