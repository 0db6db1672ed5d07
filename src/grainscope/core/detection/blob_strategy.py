"""
Estrategia de Blobs - Transformada de Hough circular sobre la imagen
suavizada con un gaussiano 5x5.

Pensada para objetos pequeños y redondeados (granos, semillas).
"""

import logging
import math
from typing import List

import cv2
import numpy as np

from grainscope.core.detection.base import DetectionStrategy
from grainscope.core.models.pipeline_config import BlobStrategyConfig
from grainscope.core.models.region import Region, STRATEGY_BLOB

logger = logging.getLogger('GrainScope')


class BlobStrategy(DetectionStrategy):
    """Cada círculo de Hough se convierte en una Region circular."""

    name = STRATEGY_BLOB

    def __init__(self, config: BlobStrategyConfig = None):
        self.config = config or BlobStrategyConfig()

    def _detect(self, gray: np.ndarray) -> List[Region]:
        cfg = self.config
        k = cfg.blur_size
        smoothed = cv2.GaussianBlur(gray, (k, k), 0)
        circles = cv2.HoughCircles(
            smoothed, cv2.HOUGH_GRADIENT,
            dp=cfg.dp, minDist=cfg.min_dist,
            param1=cfg.param1, param2=cfg.param2,
            minRadius=cfg.min_radius, maxRadius=cfg.max_radius
        )
        if circles is None:
            return []

        img_h, img_w = gray.shape[:2]
        regions = []
        for cx, cy, r in circles[0]:
            cx, cy, radius = int(round(cx)), int(round(cy)), int(round(r))
            if radius <= 0:
                continue

            # Bounding box recortado a la imagen
            x = max(0, cx - radius)
            y = max(0, cy - radius)
            w = min(cx + radius, img_w) - x
            h = min(cy + radius, img_h) - y
            if w <= cfg.min_box_size or h <= cfg.min_box_size:
                continue

            contour = cv2.ellipse2Poly((cx, cy), (radius, radius), 0, 0, 360, 5)
            contour = np.clip(contour, 0, [img_w - 1, img_h - 1]).reshape(-1, 1, 2).astype(np.int32)

            regions.append(Region(
                bbox=(x, y, w, h),
                strategy=STRATEGY_BLOB,
                area=math.pi * radius * radius,
                perimeter=2 * math.pi * radius,
                circularity=1.0,
                aspect_ratio=1.0,
                contour=contour,
            ))

        logger.info(f"[BLOB] {len(circles[0])} círculos, {len(regions)} válidos")
        return regions
