"""
Clasificador de Desenfoque
==========================

Dos modos con reglas de decisión distintas:

- Imagen completa (assess_image): voto ponderado. Cada métrica por
  debajo de su umbral aporta su peso; score > 0.5 => desenfocada.
  Se usa como compuerta previa a la captura/procesado.
- Por objeto (classify_region): compuerta OR. Basta una métrica por
  debajo de su umbral para marcar el objeto como desenfocado.

La asimetría es intencional: el voto tolera una métrica baja en escenas
con poca textura y la compuerta OR es estricta con cada objeto.
"""

import logging
from typing import Optional

import numpy as np

from grainscope.core.models.analysis_result import ImageBlurAssessment
from grainscope.core.models.pipeline_config import PipelineConfig
from grainscope.core.models.region import ObjectBlurProfile, Region
from grainscope.core.utils.image_metrics import (
    edge_density,
    laplacian_variance,
    pixel_intensity_variance,
    sobel_gradient_magnitude,
    tenengrad,
)

logger = logging.getLogger('GrainScope')

ANALYSIS_FAILED_DESCRIPTION = "Analysis failed"


class BlurClassifier:
    """Decide si una imagen o una región está desenfocada."""

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()

    def describe_focus(self, lap_var: float) -> str:
        """Banda descriptiva según la varianza del Laplaciano."""
        bands = self.config.image_blur
        if lap_var < bands.acceptable_band:
            if lap_var < bands.severe_band:
                return "Severely Blurred"
            if lap_var < bands.moderate_band:
                return "Moderately Blurred"
            return "Slightly Blurred"
        if lap_var > bands.very_sharp_band:
            return "Very Sharp"
        if lap_var > bands.sharp_band:
            return "Sharp"
        return "Acceptable Sharpness"

    def assess_image(self, gray: np.ndarray) -> ImageBlurAssessment:
        """
        Evalúa la imagen completa con el voto ponderado.

        Args:
            gray: Imagen en escala de grises

        Returns:
            ImageBlurAssessment (desenfocada con "Analysis failed" si la
            entrada es inválida)
        """
        if gray is None or gray.size == 0 or gray.ndim != 2:
            logger.warning("[BlurClassifier] Imagen inválida para evaluación global")
            return ImageBlurAssessment(
                laplacian_variance=0.0, sobel_magnitude=0.0, edge_density=0.0,
                pixel_variance=0.0, blur_score=1.0, is_blurred=True,
                description=ANALYSIS_FAILED_DESCRIPTION,
            )

        cfg = self.config.image_blur
        metrics = self.config.metrics
        lap = laplacian_variance(gray, metrics.laplacian_ksize)
        sobel = sobel_gradient_magnitude(gray, metrics.sobel_ksize)
        edges = edge_density(gray, metrics.canny_low, metrics.canny_high)
        pix_var = pixel_intensity_variance(gray)

        score = 0.0
        if lap < cfg.laplacian_threshold:
            score += cfg.laplacian_weight
        if sobel < cfg.sobel_threshold:
            score += cfg.sobel_weight
        if edges < cfg.edge_density_threshold:
            score += cfg.edge_density_weight
        if pix_var < cfg.pixel_variance_threshold:
            score += cfg.pixel_variance_weight

        is_blurred = score > cfg.score_threshold
        description = self.describe_focus(lap)

        logger.info(f"[BlurClassifier] Imagen: lap={lap:.1f}, sobel={sobel:.1f}, "
                    f"edges={edges:.3f}, score={score:.2f} -> "
                    f"{'DESENFOCADA' if is_blurred else 'NÍTIDA'} ({description})")

        return ImageBlurAssessment(
            laplacian_variance=lap,
            sobel_magnitude=sobel,
            edge_density=edges,
            pixel_variance=pix_var,
            blur_score=score,
            is_blurred=is_blurred,
            description=description,
        )

    def profile(self, roi_gray: np.ndarray) -> ObjectBlurProfile:
        """
        Calcula las métricas de nitidez sobre un recorte gris y aplica
        la compuerta OR por objeto.
        """
        cfg = self.config.object_blur
        metrics = self.config.metrics
        lap = laplacian_variance(roi_gray, metrics.laplacian_ksize)
        sobel = sobel_gradient_magnitude(roi_gray, metrics.sobel_ksize)
        pix_var = pixel_intensity_variance(roi_gray)
        ten = tenengrad(roi_gray, metrics.sobel_ksize)

        is_blurred = (lap < cfg.laplacian_threshold or
                      sobel < cfg.sobel_threshold or
                      pix_var < cfg.pixel_variance_threshold)

        return ObjectBlurProfile(
            laplacian_variance=lap,
            sobel_magnitude=sobel,
            pixel_variance=pix_var,
            tenengrad=ten,
            is_blurred=is_blurred,
        )

    def classify_region(self, gray: np.ndarray, region: Region) -> ObjectBlurProfile:
        """
        Clasifica una región sobre su recorte exacto de la imagen gris.

        Args:
            gray: Imagen completa en escala de grises
            region: Región a evaluar

        Returns:
            ObjectBlurProfile de la región
        """
        profile = self.profile(region.crop(gray))
        logger.debug(f"[BlurClassifier] {region.strategy} bbox={region.bbox}: "
                     f"lap={profile.laplacian_variance:.1f}, sobel={profile.sobel_magnitude:.1f}, "
                     f"var={profile.pixel_variance:.1f} -> "
                     f"{'borroso' if profile.is_blurred else 'nítido'}")
        return profile
