"""
Interfaz común de las estrategias de detección de candidatas.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import cv2
import numpy as np

from grainscope.core.models.region import Region
from grainscope.core.utils.image_metrics import calculate_aspect_ratio, calculate_circularity

logger = logging.getLogger('GrainScope')


class DetectionStrategy(ABC):
    """
    Estrategia de detección sin estado.

    Cada estrategia recibe la imagen gris (solo lectura), no comparte
    intermedios con las demás y crea sus propias Region. Si falla
    internamente registra el error y devuelve una lista vacía.
    """

    name: str = ""

    def detect(self, gray: np.ndarray) -> List[Region]:
        """
        Detecta regiones candidatas.

        Args:
            gray: Imagen en escala de grises uint8

        Returns:
            Lista de Region (vacía si no hay candidatas o hubo error)
        """
        if gray is None or gray.size == 0 or gray.ndim != 2:
            logger.warning(f"[{self.name}] Imagen inválida, sin candidatas")
            return []
        try:
            regions = self._detect(gray)
        except (cv2.error, ValueError, FloatingPointError) as e:
            logger.error(f"[{self.name}] Error en detección: {e}")
            return []
        logger.debug(f"[{self.name}] {len(regions)} candidatas")
        return regions

    @abstractmethod
    def _detect(self, gray: np.ndarray) -> List[Region]:
        ...


def region_from_contour(contour: np.ndarray, strategy: str,
                        area: Optional[float] = None) -> Region:
    """Construye una Region a partir de un contorno OpenCV."""
    if area is None:
        area = float(cv2.contourArea(contour))
    perimeter = float(cv2.arcLength(contour, True))
    x, y, w, h = cv2.boundingRect(contour)
    return Region(
        bbox=(int(x), int(y), int(w), int(h)),
        strategy=strategy,
        area=float(area),
        perimeter=perimeter,
        circularity=calculate_circularity(area, perimeter),
        aspect_ratio=calculate_aspect_ratio(w, h),
        contour=contour,
    )
