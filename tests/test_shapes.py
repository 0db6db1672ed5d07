import cv2
import numpy as np
import pytest

from grainscope.core.models.region import STRATEGY_BLOB
from grainscope.core.shapes.renderer import color_for, render_objects
from grainscope.core.shapes.shape_classifier import build_objects, classify_shape, count_vertices


@pytest.mark.parametrize("vertices, roundness, aspect, area, expected", [
    (4, 0.78, 1.0, 500, "Small Square Object"),
    (4, 0.6, 2.0, 5000, "Medium Rectangular Object"),
    (4, 0.4, 4.0, 20000, "Large Elongated Object"),
    (16, 0.9, 1.0, 1256, "Medium Round Object"),
    (16, 0.8, 1.5, 800, "Small Oval Object"),
    (3, 0.5, 1.1, 300, "Small Triangular Object"),
    (6, 0.6, 1.1, 2000, "Medium Polygonal Object"),
    (12, 0.6, 1.4, 3000, "Medium Curved Object"),
    (12, 0.3, 2.5, 3000, "Medium Irregular Object"),
])
def test_shape_labels(vertices, roundness, aspect, area, expected):
    assert classify_shape(vertices, roundness, aspect, area) == expected


def test_size_bucket_boundaries():
    assert classify_shape(3, 0.5, 1.0, 999).startswith("Small")
    assert classify_shape(3, 0.5, 1.0, 1000).startswith("Medium")
    assert classify_shape(3, 0.5, 1.0, 10000).startswith("Large")


def test_count_vertices_of_square_contour():
    contour = np.array([[[0, 0]], [[0, 49]], [[49, 49]], [[49, 0]]], dtype=np.int32)
    assert count_vertices(contour, 0.01) == 4


def test_build_objects_numbers_from_one(region_factory):
    regions = [
        region_factory((10, 10, 20, 20), area=400),
        region_factory((60, 60, 30, 10), area=300, strategy=STRATEGY_BLOB,
                       circularity=0.5, aspect_ratio=3.0),
    ]
    objects = build_objects(regions, [True, False])

    assert [o.id for o in objects] == [1, 2]
    assert objects[0].is_blurred and not objects[1].is_blurred
    assert objects[0].centroid == (20, 20)
    assert objects[1].source_strategy == STRATEGY_BLOB
    # Sin contorno se usa el rectángulo del bbox
    assert objects[0].shape_type == "Small Square Object"
    assert objects[0].shape_type.endswith(" Object")


def test_build_objects_without_flags(region_factory):
    objects = build_objects([region_factory((0, 0, 10, 10))])
    assert len(objects) == 1
    assert objects[0].is_blurred is False


def test_palette_wraps_every_ten_objects():
    assert color_for(1) == (0, 255, 0)
    assert color_for(11) == color_for(1)
    assert color_for(2) != color_for(1)


def test_render_returns_annotated_copy(circle_image, region_factory):
    contour = cv2.ellipse2Poly((100, 100), (20, 20), 0, 0, 360, 10).reshape(-1, 1, 2)
    region = region_factory((80, 80, 40, 40), area=1256, circularity=0.9)
    objects = build_objects([region])
    objects[0].contour = contour
    original = circle_image.copy()

    annotated = render_objects(circle_image, objects)

    assert annotated.shape == (200, 200, 3)
    assert np.array_equal(circle_image, original)
    assert tuple(annotated[100, 100]) == (255, 255, 255)
    assert not np.array_equal(annotated, circle_image)


def test_render_accepts_grayscale_input(checkerboard):
    annotated = render_objects(checkerboard, [])
    assert annotated.shape == (200, 200, 3)
