"""
Estimador de PSF (Point Spread Function) gaussiana por región.

- Tamaño: proporcional a sqrt(área)/10, impar, en [3, 15] px
- Sigma: inversamente proporcional a la varianza del Laplaciano,
  sigma = 2 / (max(1, lap_var) / 100), acotada a [0.5, 3.0]

A menor nitidez, mayor sigma. Un ROI completamente plano (lap_var = 0)
da la sigma máxima.
"""

import logging
import math
from typing import Optional

import cv2
import numpy as np

from grainscope.core.models.pipeline_config import RestorationConfig
from grainscope.core.models.region import ObjectBlurProfile, Region
from grainscope.core.models.restoration import PSFEstimate

logger = logging.getLogger('GrainScope')

DEFAULT_PSF_SIZE = 5
DEFAULT_PSF_SIGMA = 1.0


def gaussian_psf(size: int, sigma: float) -> np.ndarray:
    """Kernel gaussiano 2-D cuadrado normalizado (suma 1)."""
    k = cv2.getGaussianKernel(size, sigma, cv2.CV_64F)
    psf = k @ k.T
    return psf / psf.sum()


class PSFEstimator:
    """Estima una PSF gaussiana a partir del área y la nitidez de la región."""

    def __init__(self, config: Optional[RestorationConfig] = None):
        self.config = config or RestorationConfig()

    def estimate_size(self, area: float) -> int:
        cfg = self.config
        size = max(cfg.psf_min_size, min(cfg.psf_max_size, int(math.sqrt(area)) // 10))
        if size % 2 == 0:
            size += 1
        return size

    def estimate_sigma(self, lap_var: float) -> float:
        cfg = self.config
        normalized = max(1.0, lap_var) / 100.0
        return max(cfg.sigma_min, min(cfg.sigma_max, 2.0 / normalized))

    def estimate(self, region: Region, profile: ObjectBlurProfile) -> PSFEstimate:
        """
        Estima la PSF de una región.

        Ante entrada degenerada (área o sigma no finitos) devuelve el
        kernel por defecto 5x5, sigma 1.0.
        """
        area = region.area
        lap_var = profile.laplacian_variance
        if not (math.isfinite(area) and area >= 0 and math.isfinite(lap_var)):
            logger.warning(f"[PSFEstimator] Entrada degenerada (área={area}, lap={lap_var}), "
                           f"usando PSF por defecto")
            return PSFEstimate(gaussian_psf(DEFAULT_PSF_SIZE, DEFAULT_PSF_SIGMA), DEFAULT_PSF_SIGMA)

        size = self.estimate_size(area)
        sigma = self.estimate_sigma(lap_var)
        psf = gaussian_psf(size, sigma)
        logger.debug(f"[PSFEstimator] PSF {size}x{size}, sigma={sigma:.2f}")
        return PSFEstimate(psf, sigma)
