"""Fixtures compartidas: imágenes sintéticas generadas con OpenCV."""

import cv2
import numpy as np
import pytest

from grainscope.core.models.pipeline_config import PipelineConfig
from grainscope.core.models.region import Region


@pytest.fixture
def config():
    return PipelineConfig()


@pytest.fixture
def circle_image():
    """Círculo negro nítido de radio 20 sobre fondo blanco (RGB 200x200)."""
    img = np.full((200, 200, 3), 255, dtype=np.uint8)
    cv2.circle(img, (100, 100), 20, (0, 0, 0), -1)
    return img


@pytest.fixture
def blurred_circle_image(circle_image):
    return cv2.GaussianBlur(circle_image, (31, 31), 8)


@pytest.fixture
def checkerboard():
    """Tablero 0/255 de casillas de 8 px (gris 200x200)."""
    yy, xx = np.mgrid[0:200, 0:200]
    return (((yy // 8) + (xx // 8)) % 2 * 255).astype(np.uint8)


@pytest.fixture
def white_roi():
    return np.full((100, 100, 3), 255, dtype=np.uint8)


def make_region(bbox, area=None, strategy="CONTOUR", circularity=0.8, aspect_ratio=1.0):
    x, y, w, h = bbox
    if area is None:
        area = float(w * h)
    return Region(bbox=bbox, strategy=strategy, area=float(area),
                  perimeter=2.0 * (w + h), circularity=circularity,
                  aspect_ratio=aspect_ratio)


@pytest.fixture
def region_factory():
    return make_region
