import numpy as np
import pytest

from grainscope.core.analysis.blur_classifier import ANALYSIS_FAILED_DESCRIPTION, BlurClassifier
from grainscope.core.models.pipeline_config import PipelineConfig


def test_flat_image_is_blurred_by_weighted_vote():
    flat = np.full((120, 120), 128, dtype=np.uint8)
    assessment = BlurClassifier().assess_image(flat)
    assert assessment.blur_score == pytest.approx(1.0)
    assert assessment.is_blurred
    assert assessment.description == "Severely Blurred"


def test_sharp_pattern_is_not_blurred(checkerboard):
    assessment = BlurClassifier().assess_image(checkerboard)
    assert assessment.blur_score == 0.0
    assert not assessment.is_blurred
    assert assessment.description == "Very Sharp"


def test_invalid_image_reports_analysis_failed():
    assessment = BlurClassifier().assess_image(None)
    assert assessment.is_blurred
    assert assessment.description == ANALYSIS_FAILED_DESCRIPTION


@pytest.mark.parametrize("lap, expected", [
    (400, "Severely Blurred"),
    (700, "Moderately Blurred"),
    (1200, "Slightly Blurred"),
    (1500, "Acceptable Sharpness"),
    (2500, "Sharp"),
    (3500, "Very Sharp"),
])
def test_focus_description_bands(lap, expected):
    assert BlurClassifier().describe_focus(lap) == expected


def test_region_profile_on_sharp_crop(checkerboard, region_factory):
    region = region_factory((40, 40, 64, 64))
    profile = BlurClassifier().classify_region(checkerboard, region)
    assert not profile.is_blurred
    assert profile.laplacian_variance >= 100
    assert profile.tenengrad > 0


def test_region_profile_on_flat_crop(region_factory):
    gray = np.full((100, 100), 200, dtype=np.uint8)
    profile = BlurClassifier().classify_region(gray, region_factory((10, 10, 30, 30)))
    assert profile.is_blurred
    assert profile.laplacian_variance == 0.0
    assert profile.blur_severity == 1.0


def test_per_object_gate_is_an_or(checkerboard, region_factory):
    config = PipelineConfig()
    config.object_blur.pixel_variance_threshold = 1e9
    profile = BlurClassifier(config).classify_region(checkerboard, region_factory((0, 0, 64, 64)))
    # Laplaciano y Sobel pasan, pero basta una métrica por debajo
    assert profile.laplacian_variance >= config.object_blur.laplacian_threshold
    assert profile.is_blurred


def test_pixel_variance_weight_participates_in_vote(checkerboard):
    config = PipelineConfig()
    config.image_blur.laplacian_weight = 0.0
    config.image_blur.sobel_weight = 0.0
    config.image_blur.edge_density_weight = 0.0
    config.image_blur.pixel_variance_weight = 1.0
    config.image_blur.pixel_variance_threshold = 1e9
    assessment = BlurClassifier(config).assess_image(checkerboard)
    assert assessment.is_blurred
