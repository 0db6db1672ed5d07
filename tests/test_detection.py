import cv2
import numpy as np
import pytest

from grainscope.core.detection.blob_strategy import BlobStrategy
from grainscope.core.detection.contour_strategy import ContourStrategy, solidity
from grainscope.core.detection.watershed_strategy import WatershedStrategy
from grainscope.core.models.pipeline_config import ContourStrategyConfig
from grainscope.core.models.region import STRATEGY_BLOB, STRATEGY_WATERSHED
from grainscope.core.utils.image_metrics import to_grayscale


@pytest.fixture
def touching_circles():
    """Dos círculos negros r=20 con centros a 35 px (se solapan)."""
    gray = np.full((200, 200), 255, dtype=np.uint8)
    cv2.circle(gray, (80, 100), 20, 0, -1)
    cv2.circle(gray, (115, 100), 20, 0, -1)
    return gray


@pytest.fixture
def cross_image():
    """Cruz blanca (brazos 60x20) sobre fondo negro: solidez ~0.71."""
    gray = np.zeros((200, 200), dtype=np.uint8)
    cv2.rectangle(gray, (70, 90), (129, 109), 255, -1)
    cv2.rectangle(gray, (90, 70), (109, 129), 255, -1)
    return gray


def test_blob_finds_circle_centre(circle_image):
    regions = BlobStrategy().detect(to_grayscale(circle_image))
    assert len(regions) >= 1
    region = regions[0]
    assert region.strategy == STRATEGY_BLOB
    cx, cy = region.centroid
    assert abs(cx - 100) <= 3 and abs(cy - 100) <= 3
    assert 15 <= region.w <= 45


def test_watershed_single_circle_gives_one_basin(circle_image):
    regions = WatershedStrategy().detect(to_grayscale(circle_image))
    assert len(regions) == 1
    assert regions[0].strategy == STRATEGY_WATERSHED
    assert 50 <= regions[0].area <= 5000


def test_watershed_separates_touching_circles(touching_circles):
    regions = WatershedStrategy().detect(touching_circles)
    assert len(regions) == 2
    centres = sorted(r.centroid[0] for r in regions)
    assert centres[0] < 97 < centres[1]


def test_solidity_of_convex_and_concave_shapes(cross_image):
    contours, _ = cv2.findContours(cross_image, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    cross = contours[0]
    assert solidity(cross, cv2.contourArea(cross)) == pytest.approx(0.71, abs=0.05)

    square = np.array([[[0, 0]], [[0, 20]], [[20, 20]], [[20, 0]]], dtype=np.int32)
    assert solidity(square, cv2.contourArea(square)) == pytest.approx(1.0)


def test_contour_solidity_gate(cross_image):
    assert len(ContourStrategy().detect(cross_image)) == 1
    strict = ContourStrategyConfig(min_solidity=0.8)
    assert ContourStrategy(strict).detect(cross_image) == []
