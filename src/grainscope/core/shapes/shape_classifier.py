"""
Clasificador de Forma y Tamaño
==============================

Etiqueta cada objeto final como "<Tamaño> <Forma> Object" a partir del
número de vértices de su aproximación poligonal (ε = 0.01·perímetro),
la redondez, el aspect ratio y el área.
"""

import logging
from typing import List, Optional, Sequence

import cv2
import numpy as np

from grainscope.core.models.detected_object import DetectedObject
from grainscope.core.models.pipeline_config import ShapeConfig
from grainscope.core.models.region import Region

logger = logging.getLogger('GrainScope')


def size_bucket(area: float, config: ShapeConfig) -> str:
    if area < config.small_area:
        return "Small"
    if area < config.large_area:
        return "Medium"
    return "Large"


def classify_shape(vertices: int, roundness: float, aspect_ratio: float,
                   area: float, config: Optional[ShapeConfig] = None) -> str:
    """
    Etiqueta de forma/tamaño.

    Args:
        vertices: Vértices de la aproximación poligonal
        roundness: 4π·área/perímetro²
        aspect_ratio: max(w, h) / min(w, h)
        area: Área en píxeles

    Returns:
        Etiqueta, p.ej. "Small Round Object"
    """
    cfg = config or ShapeConfig()

    if vertices == 4:
        if aspect_ratio < cfg.square_aspect_max:
            shape = "Square"
        elif aspect_ratio < cfg.rectangle_aspect_max:
            shape = "Rectangular"
        else:
            shape = "Elongated"
    elif roundness > cfg.round_roundness_min:
        shape = "Round" if aspect_ratio < cfg.round_aspect_max else "Oval"
    elif vertices == 3:
        shape = "Triangular"
    elif 5 <= vertices <= 8:
        shape = "Polygonal"
    elif vertices > 8 and roundness > cfg.curved_roundness_min:
        shape = "Curved"
    else:
        shape = "Irregular"

    return f"{size_bucket(area, cfg)} {shape} Object"


def _region_contour(region: Region) -> np.ndarray:
    if region.contour is not None and len(region.contour) > 0:
        return region.contour
    x, y, w, h = region.bbox
    return np.array([[[x, y]], [[x + w - 1, y]], [[x + w - 1, y + h - 1]], [[x, y + h - 1]]],
                    dtype=np.int32)


def count_vertices(contour: np.ndarray, epsilon_ratio: float) -> int:
    perimeter = cv2.arcLength(contour, True)
    approx = cv2.approxPolyDP(contour, epsilon_ratio * perimeter, True)
    return len(approx)


def build_objects(regions: Sequence[Region],
                  blurred_flags: Optional[Sequence[bool]] = None,
                  config: Optional[ShapeConfig] = None) -> List[DetectedObject]:
    """
    Convierte las regiones finales en objetos clasificados numerados 1..N.

    Args:
        regions: Regiones deduplicadas (en el orden del DetectionSet)
        blurred_flags: Flag de desenfoque por región (opcional)

    Returns:
        Lista de DetectedObject
    """
    cfg = config or ShapeConfig()
    if blurred_flags is None:
        blurred_flags = [False] * len(regions)

    objects = []
    for index, (region, blurred) in enumerate(zip(regions, blurred_flags), start=1):
        contour = _region_contour(region)
        vertices = count_vertices(contour, cfg.approx_epsilon_ratio)
        shape_type = classify_shape(vertices, region.circularity, region.aspect_ratio,
                                    region.area, cfg)
        objects.append(DetectedObject(
            id=index,
            bbox=region.bbox,
            area=region.area,
            perimeter=region.perimeter,
            roundness=region.circularity,
            aspect_ratio=region.aspect_ratio,
            centroid=region.centroid,
            shape_type=shape_type,
            contour=contour,
            source_strategy=region.strategy,
            is_blurred=bool(blurred),
        ))
        logger.debug(f"[ShapeClassifier] Obj{index}: {shape_type} "
                     f"(vértices={vertices}, redondez={region.circularity:.2f})")

    return objects
