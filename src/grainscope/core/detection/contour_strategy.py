"""
Estrategia de Contornos - Brillo de fondo + umbral adaptativo
==============================================================

Detecta objetos que contrastan con el fondo:

1. Filtro bilateral (suaviza textura, preserva bordes)
2. Normalización de polaridad: los objetos quedan más claros que el fondo
3. Máscara de brillo fijo: max(fondo + offset, floor)
4. Umbral adaptativo gaussiano (variaciones locales)
5. Intersección de ambas máscaras + apertura morfológica elíptica
6. Contornos externos filtrados por área, tamaño, brillo y forma
   (circularidad, aspect ratio y solidez)
"""

import logging
from typing import List

import cv2
import numpy as np

from grainscope.core.detection.base import DetectionStrategy, region_from_contour
from grainscope.core.models.pipeline_config import ContourStrategyConfig
from grainscope.core.models.region import Region, STRATEGY_CONTOUR

logger = logging.getLogger('GrainScope')


def solidity(contour: np.ndarray, area: float) -> float:
    """Área / área de la envolvente convexa (0 si la envolvente es degenerada)."""
    hull_area = float(cv2.contourArea(cv2.convexHull(contour)))
    return area / hull_area if hull_area > 0 else 0.0


class ContourStrategy(DetectionStrategy):
    """Detección por contornos sobre la intersección brillo/adaptativo."""

    name = STRATEGY_CONTOUR

    def __init__(self, config: ContourStrategyConfig = None):
        self.config = config or ContourStrategyConfig()

    def normalize_polarity(self, gray: np.ndarray) -> np.ndarray:
        """
        Devuelve la imagen con los objetos más claros que el fondo.

        En modo 'auto' se invierte si la mediana (fondo) supera el gris medio.
        """
        polarity = self.config.polarity
        if polarity == 'dark':
            return cv2.bitwise_not(gray)
        if polarity == 'auto' and float(np.median(gray)) > 127:
            logger.debug("[CONTOUR] Fondo claro, invirtiendo polaridad")
            return cv2.bitwise_not(gray)
        return gray

    def build_mask(self, gray: np.ndarray) -> tuple:
        """
        Genera la máscara binaria de objetos.

        Returns:
            (mask, normalized, background_brightness)
        """
        cfg = self.config
        filtered = cv2.bilateralFilter(gray, cfg.bilateral_d,
                                       cfg.bilateral_sigma_color, cfg.bilateral_sigma_space)
        normalized = self.normalize_polarity(filtered)

        background = float(np.median(normalized))
        threshold_value = max(background + cfg.brightness_offset, cfg.brightness_floor)
        _, bright = cv2.threshold(normalized, threshold_value, 255, cv2.THRESH_BINARY)

        adaptive = cv2.adaptiveThreshold(
            normalized, 255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY,
            cfg.adaptive_block_size, cfg.adaptive_c
        )

        # El objeto debe pasar ambos tests
        mask = cv2.bitwise_and(bright, adaptive)

        kernel = cv2.getStructuringElement(
            cv2.MORPH_ELLIPSE, (cfg.open_kernel_size, cfg.open_kernel_size))
        mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel)

        return mask, normalized, background

    def _detect(self, gray: np.ndarray) -> List[Region]:
        cfg = self.config
        mask, normalized, background = self.build_mask(gray)

        contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        image_area = gray.shape[0] * gray.shape[1]
        min_area = cfg.min_area_ratio * image_area
        max_area = cfg.max_area_ratio * image_area

        regions = []
        for cnt in contours:
            area = float(cv2.contourArea(cnt))
            if area < min_area or area > max_area:
                continue

            x, y, w, h = cv2.boundingRect(cnt)
            if w < cfg.min_object_size or h < cfg.min_object_size:
                continue

            # Brillo medio dentro del contorno vs fondo
            contour_mask = np.zeros(normalized.shape, dtype=np.uint8)
            cv2.drawContours(contour_mask, [cnt], -1, 255, -1)
            brightness = cv2.mean(normalized, mask=contour_mask)[0]
            if brightness - background < cfg.min_brightness_difference:
                continue

            region = region_from_contour(cnt, STRATEGY_CONTOUR, area=area)
            if region.circularity < cfg.min_circularity:
                continue
            if region.aspect_ratio > cfg.max_aspect_ratio:
                continue
            if solidity(cnt, area) < cfg.min_solidity:
                continue

            regions.append(region)

        logger.info(f"[CONTOUR] {len(contours)} contornos, {len(regions)} válidos "
                    f"(fondo={background:.0f}, área=[{min_area:.0f}, {max_area:.0f}])")
        return regions
