import math

import cv2
import numpy as np
import pytest

from grainscope.core.analysis.blur_classifier import BlurClassifier
from grainscope.core.models.region import ObjectBlurProfile
from grainscope.core.models.restoration import (
    METHOD_RICHARDSON_LUCY,
    METHOD_UNSHARP,
    METHOD_WIENER,
    PSFEstimate,
)
from grainscope.core.restoration.deconvolver import Deconvolver, quality_improvement
from grainscope.core.restoration.detail_enhancer import (
    DetailEnhancer,
    histogram_matching_lut,
    recombine_color,
)
from grainscope.core.restoration.psf_estimator import PSFEstimator, gaussian_psf


def _profile(lap=10.0, sobel=10.0, pix_var=500.0, ten=500.0, blurred=True):
    return ObjectBlurProfile(lap, sobel, pix_var, ten, blurred)


@pytest.fixture
def blurred_roi():
    roi = np.full((48, 48), 230, dtype=np.uint8)
    cv2.circle(roi, (24, 24), 14, 40, -1)
    return cv2.GaussianBlur(roi, (15, 15), 4)


# ----------------------------------------------------------------------
# PSF
# ----------------------------------------------------------------------

@pytest.mark.parametrize("area, lap", [(50, 0.0), (400, 40.0), (10000, 90.0), (1e6, 5000.0)])
def test_psf_is_normalized_odd_and_bounded(region_factory, area, lap):
    psf = PSFEstimator().estimate(region_factory((0, 0, 10, 10), area=area), _profile(lap=lap))
    assert psf.coefficient_sum == pytest.approx(1.0, abs=1e-6)
    assert psf.size % 2 == 1
    assert 3 <= psf.size <= 15
    assert 0.5 <= psf.sigma <= 3.0


def test_psf_size_and_sigma_follow_formula():
    estimator = PSFEstimator()
    assert estimator.estimate_size(400) == 3
    assert estimator.estimate_size(10000) == 11
    assert estimator.estimate_size(1e6) == 15
    assert estimator.estimate_sigma(0.0) == 3.0
    assert estimator.estimate_sigma(100.0) == pytest.approx(2.0)
    assert estimator.estimate_sigma(400.0) == pytest.approx(0.5)


def test_psf_falls_back_on_degenerate_input(region_factory):
    psf = PSFEstimator().estimate(region_factory((0, 0, 5, 5), area=math.nan), _profile())
    assert psf.size == 5
    assert psf.sigma == 1.0


# ----------------------------------------------------------------------
# Deconvolver
# ----------------------------------------------------------------------

def test_method_selection():
    d = Deconvolver()
    assert d.select_method(_profile(lap=10)) == METHOD_RICHARDSON_LUCY
    assert d.select_method(_profile(lap=80, sobel=10)) == METHOD_WIENER
    assert d.select_method(_profile(lap=80, sobel=80)) == METHOD_UNSHARP
    assert d.select_method(_profile(lap=0, sobel=0, pix_var=0.0)) == METHOD_UNSHARP


def test_all_white_roi_is_left_unchanged(white_roi, region_factory):
    region = region_factory((0, 0, 100, 100))
    profile = BlurClassifier().profile(cv2.cvtColor(white_roi, cv2.COLOR_RGB2GRAY))
    assert profile.laplacian_variance == 0.0
    assert profile.is_blurred

    result = Deconvolver().restore(white_roi, region, profile)

    assert result.psf.sigma == 3.0
    assert result.method == METHOD_UNSHARP
    assert np.array_equal(result.restored, white_roi)
    assert result.quality_improvement == 0.0


def test_richardson_lucy_stays_in_observed_range(blurred_roi, region_factory):
    d = Deconvolver()
    psf = d.psf_estimator.estimate(region_factory((0, 0, 48, 48), area=600), _profile(lap=5))
    out = d.richardson_lucy(blurred_roi, psf)
    assert out.dtype == np.uint8
    assert out.shape == blurred_roi.shape
    assert out.min() >= blurred_roi.min()
    assert out.max() <= blurred_roi.max()


def test_wiener_keeps_shape_for_non_square_roi(region_factory):
    rng = np.random.default_rng(1)
    roi = cv2.GaussianBlur(rng.integers(0, 256, size=(37, 53), dtype=np.uint8), (7, 7), 2)
    d = Deconvolver()
    psf = d.psf_estimator.estimate(region_factory((0, 0, 53, 37), area=1500), _profile(lap=60))
    out = d.wiener(roi, psf, d.wiener_nsr(_profile(pix_var=800, ten=5e5)))
    assert out.shape == roi.shape
    assert out.dtype == np.uint8


@pytest.fixture
def sharp_pattern():
    """Rectángulo y círculo claros sobre fondo medio (gris 64x64)."""
    img = np.full((64, 64), 60, dtype=np.uint8)
    cv2.rectangle(img, (10, 12), (30, 50), 200, -1)
    cv2.circle(img, (46, 32), 10, 140, -1)
    return img


def _mae(a, b):
    return float(np.mean(np.abs(a.astype(np.float64) - b.astype(np.float64))))


def test_deconvolution_recovers_known_blur(sharp_pattern):
    psf = PSFEstimate(gaussian_psf(7, 1.5), 1.5)
    blurred = cv2.filter2D(sharp_pattern.astype(np.float64), -1, psf.kernel,
                           borderType=cv2.BORDER_REFLECT)
    blurred = np.clip(np.round(blurred), 0, 255).astype(np.uint8)
    blurred_error = _mae(blurred, sharp_pattern)
    assert blurred_error > 1.0

    d = Deconvolver()
    assert _mae(d.wiener(blurred, psf, 0.01), sharp_pattern) < blurred_error
    assert _mae(d.richardson_lucy(blurred, psf), sharp_pattern) < blurred_error


def test_wiener_nsr_is_clamped():
    d = Deconvolver()
    assert d.wiener_nsr(_profile(pix_var=0.0)) == 0.001
    assert d.wiener_nsr(_profile(pix_var=1e9, ten=0.0)) == 0.1


def test_fallback_chain_moves_to_next_method(blurred_roi, region_factory, monkeypatch):
    d = Deconvolver()

    def boom(*args, **kwargs):
        raise FloatingPointError("sin convergencia")

    monkeypatch.setattr(d, "richardson_lucy", boom)
    psf = d.psf_estimator.estimate(region_factory((0, 0, 48, 48), area=600), _profile(lap=5))
    out, method = d.deblur(blurred_roi, METHOD_RICHARDSON_LUCY, psf, _profile(lap=5))
    assert method == METHOD_WIENER
    assert out.shape == blurred_roi.shape


def test_restore_color_roi_keeps_shape_and_improvement_non_negative(blurred_roi, region_factory):
    color = cv2.cvtColor(blurred_roi, cv2.COLOR_GRAY2RGB)
    profile = BlurClassifier().profile(blurred_roi)
    result = Deconvolver().restore(color, region_factory((0, 0, 48, 48), area=600), profile)
    assert result.restored.shape == color.shape
    assert result.restored.dtype == np.uint8
    assert result.quality_improvement >= 0.0


def test_quality_improvement_never_negative(checkerboard):
    flat = np.full_like(checkerboard, 128)
    assert quality_improvement(checkerboard, flat) == 0.0
    assert quality_improvement(flat, checkerboard) > 0.0


# ----------------------------------------------------------------------
# DetailEnhancer
# ----------------------------------------------------------------------

def test_enhancer_returns_flat_input_unchanged():
    flat = np.full((20, 20), 77, dtype=np.uint8)
    assert np.array_equal(DetailEnhancer().enhance(flat, 0.0), flat)


def test_enhancer_output_shape(blurred_roi):
    out = DetailEnhancer().enhance(blurred_roi, 10.0)
    assert out.shape == blurred_roi.shape
    assert out.dtype == np.uint8


def test_histogram_matching_lut_identity_for_same_distribution():
    ramp = np.arange(256, dtype=np.uint8).reshape(16, 16)
    assert np.array_equal(histogram_matching_lut(ramp, ramp), np.arange(256))


def test_histogram_matching_lut_identity_for_empty_histogram():
    empty = np.zeros((0,), dtype=np.uint8)
    assert np.array_equal(histogram_matching_lut(empty, empty), np.arange(256))


def test_recombine_color_keeps_alpha():
    rgba = np.zeros((10, 10, 4), dtype=np.uint8)
    rgba[..., :3] = 100
    rgba[..., 3] = 200
    gray = np.full((10, 10), 50, dtype=np.uint8)
    out = recombine_color(rgba, gray)
    assert out.shape == rgba.shape
    assert np.all(out[..., 3] == 200)
