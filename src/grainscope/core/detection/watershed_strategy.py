"""
Estrategia Watershed - Separación de objetos que se tocan.

Marcadores a partir de la transformada de distancia sobre la máscara
de Otsu (objetos oscuros sobre fondo claro), con marcador de fondo
seguro tomado fuera de la máscara dilatada.
"""

import logging
from typing import List

import cv2
import numpy as np

from grainscope.core.detection.base import DetectionStrategy, region_from_contour
from grainscope.core.models.pipeline_config import WatershedStrategyConfig
from grainscope.core.models.region import Region, STRATEGY_WATERSHED

logger = logging.getLogger('GrainScope')


class WatershedStrategy(DetectionStrategy):
    """Una Region por cuenca con área dentro de [min_area, max_area]."""

    name = STRATEGY_WATERSHED

    def __init__(self, config: WatershedStrategyConfig = None):
        self.config = config or WatershedStrategyConfig()

    def _detect(self, gray: np.ndarray) -> List[Region]:
        cfg = self.config
        k = cfg.blur_size
        processed = cv2.GaussianBlur(gray, (k, k), 0)
        _, binary = cv2.threshold(processed, 0, 255, cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)

        dist = cv2.distanceTransform(binary, cv2.DIST_L2, 3)
        max_dist = float(dist.max())
        if max_dist <= 0:
            return []

        sure_fg = np.uint8(dist > cfg.marker_distance_ratio * max_dist) * 255
        kernel = cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (3, 3))
        sure_bg = cv2.dilate(binary, kernel, iterations=cfg.background_dilate_iterations)
        unknown = cv2.subtract(sure_bg, sure_fg)

        # Semillas 2..n+1, fondo = 1, desconocido = 0
        n_labels, markers = cv2.connectedComponents(sure_fg)
        markers = markers + 1
        markers[unknown == 255] = 0

        color = cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
        markers = cv2.watershed(color, markers.astype(np.int32))

        regions = []
        for label in range(2, n_labels + 1):
            basin = np.uint8(markers == label) * 255
            contours, _ = cv2.findContours(basin, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
            for cnt in contours:
                area = float(cv2.contourArea(cnt))
                if cfg.min_area <= area <= cfg.max_area:
                    regions.append(region_from_contour(cnt, STRATEGY_WATERSHED, area=area))

        logger.info(f"[WATERSHED] {n_labels - 1} semillas, {len(regions)} cuencas válidas")
        return regions
