"""
Realce de Detalle posterior a la restauración
=============================================

1. Filtro bilateral (suprime el ringing de la deconvolución)
2. CLAHE (contraste local con límite de recorte)
3. Inyección de bordes condicional: si la energía Tenengrad de la
   región es baja, se mezcla un mapa de magnitud de Sobel normalizado

Para ROIs a color todo se procesa sobre gris y luego cada canal se
remapea por histogram matching contra el resultado gris.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from grainscope.core.models.pipeline_config import EnhanceConfig

logger = logging.getLogger('GrainScope')

FLAT_VARIANCE_EPSILON = 1e-6


def _cdf(channel: np.ndarray) -> Optional[np.ndarray]:
    hist = np.bincount(channel.ravel(), minlength=256).astype(np.float64)
    total = hist.sum()
    if total <= 0:
        return None
    return np.cumsum(hist) / total


def histogram_matching_lut(channel: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """
    LUT de 256 entradas que lleva la distribución de `channel` a la de
    `reference` (valor de CDF de referencia más cercano).

    Un histograma vacío da la LUT identidad.
    """
    src_cdf = _cdf(channel)
    ref_cdf = _cdf(reference)
    if src_cdf is None or ref_cdf is None:
        return np.arange(256, dtype=np.uint8)
    # argmin devuelve el primer índice ante empates
    diff = np.abs(src_cdf[:, None] - ref_cdf[None, :])
    return np.argmin(diff, axis=1).astype(np.uint8)


def match_histogram(channel: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """Remapea un canal uint8 para que adopte la distribución de reference."""
    return cv2.LUT(channel, histogram_matching_lut(channel, reference))


def recombine_color(color_roi: np.ndarray, enhanced_gray: np.ndarray) -> np.ndarray:
    """
    Aplica histogram matching por canal contra el resultado gris.

    Con 4 canales el canal alfa se conserva sin cambios.
    """
    if color_roi.ndim == 2:
        return enhanced_gray
    channels = cv2.split(color_roi)
    n_color = 3 if len(channels) == 4 else len(channels)
    out = [match_histogram(c, enhanced_gray) for c in channels[:n_color]]
    out.extend(channels[n_color:])
    return cv2.merge(out)


class DetailEnhancer:
    """Refinamiento de contraste y bordes sobre ROIs grises uint8."""

    def __init__(self, config: Optional[EnhanceConfig] = None):
        self.config = config or EnhanceConfig()

    def inject_edges(self, gray: np.ndarray) -> np.ndarray:
        """Mezcla el mapa de magnitud de Sobel normalizado (min-max)."""
        grad_x = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=3)
        grad_y = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=3)
        magnitude = cv2.magnitude(grad_x, grad_y)
        if float(magnitude.max()) <= 0:
            return gray  # sin bordes que inyectar
        magnitude = cv2.normalize(magnitude, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
        weight = self.config.edge_weight
        return cv2.addWeighted(gray, 1.0 - weight, magnitude, weight, 0)

    def enhance(self, gray: np.ndarray, region_tenengrad: float) -> np.ndarray:
        """
        Bilateral -> CLAHE -> inyección de bordes condicional.

        Args:
            gray: ROI gris uint8 ya restaurado
            region_tenengrad: Tenengrad del perfil de la región

        Returns:
            ROI realzado (copia del original si la entrada es plana)
        """
        if gray.size == 0 or float(np.var(gray.astype(np.float64))) <= FLAT_VARIANCE_EPSILON:
            return gray.copy()

        cfg = self.config
        try:
            smoothed = cv2.bilateralFilter(gray, cfg.bilateral_d,
                                           cfg.bilateral_sigma_color, cfg.bilateral_sigma_space)
            clahe = cv2.createCLAHE(clipLimit=cfg.clahe_clip_limit,
                                    tileGridSize=(cfg.clahe_tile_size, cfg.clahe_tile_size))
            enhanced = clahe.apply(smoothed)
            if region_tenengrad < cfg.edge_tenengrad_threshold:
                enhanced = self.inject_edges(enhanced)
        except cv2.error as e:
            logger.warning(f"[DetailEnhancer] Realce falló, se devuelve la entrada: {e}")
            return gray.copy()
        return enhanced
