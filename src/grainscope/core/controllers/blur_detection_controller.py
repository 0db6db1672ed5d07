"""
Controlador del pipeline de detección y restauración de desenfoque.

Flujo por imagen:
1. Evaluación global (voto ponderado) - también usable sola como pre-check
2. Detección de candidatas con tres estrategias + deduplicación
3. Clasificación de desenfoque por objeto (compuerta OR)
4. Restauración de objetos borrosos (PSF -> deconvolución -> realce)
5. Clasificación de forma y overlay anotado

Nunca lanza excepciones por la imagen de entrada: ante entrada inválida
o error inesperado devuelve status "ANALYSIS_FAILED".
"""

import logging
import time
from typing import List, Optional, Tuple

import numpy as np

from grainscope.core.analysis.blur_classifier import ANALYSIS_FAILED_DESCRIPTION, BlurClassifier
from grainscope.core.detection.candidate_detector import CandidateDetector
from grainscope.core.detection.deduplicator import Deduplicator
from grainscope.core.models.analysis_result import (
    STATUS_ANALYSIS_FAILED,
    STATUS_NO_OBJECTS,
    STATUS_OK,
    BlurAnalysisSummary,
    ImageBlurAssessment,
    PipelineResult,
)
from grainscope.core.models.pipeline_config import PipelineConfig
from grainscope.core.models.region import DetectionSet
from grainscope.core.models.restoration import RegionAnalysis
from grainscope.core.restoration.deconvolver import Deconvolver
from grainscope.core.shapes.renderer import render_objects
from grainscope.core.shapes.shape_classifier import build_objects
from grainscope.core.utils.image_metrics import normalize_image, to_grayscale

logger = logging.getLogger('GrainScope')


class InvalidInputError(ValueError):
    """Imagen nula, vacía, de dimensión cero o con forma no soportada."""


def prepare_image(image: Optional[np.ndarray]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Valida y normaliza la imagen de entrada.

    Returns:
        (imagen uint8, imagen gris uint8)

    Raises:
        InvalidInputError: Si la imagen no es utilizable
    """
    if image is None or not isinstance(image, np.ndarray):
        raise InvalidInputError("imagen nula")
    if image.size == 0 or 0 in image.shape:
        raise InvalidInputError(f"imagen vacía (shape={image.shape})")
    if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] not in (1, 3, 4)):
        raise InvalidInputError(f"forma no soportada: {image.shape}")
    image = normalize_image(image)
    return image, to_grayscale(image)


class BlurDetectionController:
    """
    Orquestador del pipeline completo.

    Uso:
        controller = BlurDetectionController(config)
        result = controller.process_image(rgb)
        if result.is_success:
            show(result.annotated_image)
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        is_valid, error = self.config.validate()
        if not is_valid:
            raise ValueError(f"Configuración inválida: {error}")

        self.classifier = BlurClassifier(self.config)
        self.detector = CandidateDetector(self.config)
        self.deduplicator = Deduplicator(self.config.dedup)
        self.deconvolver = Deconvolver(self.config)

        logger.info(f"[BlurDetectionController] Inicializado: "
                    f"restaurar={self.config.restore_blurred}, "
                    f"pregate={self.config.pregate_enabled}, "
                    f"paralelo={self.detector.parallel}")

    # ------------------------------------------------------------------
    # Entradas ligeras
    # ------------------------------------------------------------------

    def assess_image(self, image: np.ndarray) -> ImageBlurAssessment:
        """Solo modo imagen completa, para decidir si habilitar la captura."""
        try:
            _, gray = prepare_image(image)
        except InvalidInputError as e:
            logger.warning(f"[BlurDetectionController] Evaluación global: {e}")
            return ImageBlurAssessment(0.0, 0.0, 0.0, 0.0, 1.0, True, ANALYSIS_FAILED_DESCRIPTION)
        return self.classifier.assess_image(gray)

    def _detect(self, gray: np.ndarray) -> DetectionSet:
        candidates = self.detector.detect(gray)
        return self.deduplicator.merge(candidates)

    def detect_objects(self, image: np.ndarray) -> DetectionSet:
        """Detección + deduplicación (DetectionSet vacío si la entrada es inválida)."""
        try:
            _, gray = prepare_image(image)
        except InvalidInputError as e:
            logger.warning(f"[BlurDetectionController] Detección: {e}")
            return DetectionSet()
        return self._detect(gray)

    def classify_objects(self, image: np.ndarray,
                         detection_set: Optional[DetectionSet] = None) -> List[RegionAnalysis]:
        """Perfil de nitidez por región (sin restaurar)."""
        try:
            _, gray = prepare_image(image)
        except InvalidInputError as e:
            logger.warning(f"[BlurDetectionController] Clasificación: {e}")
            return []
        if detection_set is None:
            detection_set = self._detect(gray)
        return [RegionAnalysis(region, self.classifier.classify_region(gray, region))
                for region in detection_set.regions]

    def analyze_blur(self, image: np.ndarray) -> BlurAnalysisSummary:
        """
        Resumen de desenfoque sin restaurar.

        La severidad media se calcula solo sobre los objetos borrosos.
        """
        return self.summarize(self.classify_objects(image))

    @staticmethod
    def summarize(analyses: List[RegionAnalysis]) -> BlurAnalysisSummary:
        blurred = [a for a in analyses if a.is_blurred]
        severity = (sum(a.profile.blur_severity for a in blurred) / len(blurred)
                    if blurred else 0.0)
        return BlurAnalysisSummary(
            total_objects=len(analyses),
            blurred_objects=len(blurred),
            average_blur_severity=severity,
        )

    def has_blurred_objects(self, image: np.ndarray) -> bool:
        return self.analyze_blur(image).has_blurred_objects

    # ------------------------------------------------------------------
    # Pipeline completo
    # ------------------------------------------------------------------

    def _should_restore(self, assessment: ImageBlurAssessment) -> bool:
        if not self.config.restore_blurred:
            return False
        if self.config.pregate_enabled and not assessment.is_blurred:
            logger.info("[BlurDetectionController] Pre-gate: imagen nítida, sin restauración")
            return False
        return True

    def _restore(self, image: np.ndarray, analyses: List[RegionAnalysis]) -> np.ndarray:
        """Restaura los objetos borrosos y los pega sobre una copia de la imagen."""
        recomposed = image.copy()
        for analysis in analyses:
            if not analysis.is_blurred:
                continue
            region = analysis.region
            result = self.deconvolver.restore(region.crop(image), region, analysis.profile)
            analysis.restoration = result
            region.crop(recomposed)[...] = result.restored
        return recomposed

    def process_image(self, image: np.ndarray) -> PipelineResult:
        """
        Ejecuta el pipeline completo sobre una imagen.

        Args:
            image: Imagen RGB, RGBA o gris

        Returns:
            PipelineResult (nunca lanza)
        """
        t0 = time.perf_counter()
        try:
            image, gray = prepare_image(image)
        except InvalidInputError as e:
            logger.error(f"[BlurDetectionController] Entrada inválida: {e}")
            return PipelineResult(status=STATUS_ANALYSIS_FAILED,
                                  message=f"Análisis fallido: {e}")

        try:
            result = self._run(image, gray)
        except Exception as e:
            logger.exception(f"[BlurDetectionController] Error en el pipeline: {e}")
            result = PipelineResult(
                status=STATUS_ANALYSIS_FAILED,
                message=f"Análisis fallido: {e}",
                recomposed_image=image,
                annotated_image=image,
            )

        result.elapsed_ms = (time.perf_counter() - t0) * 1000.0
        logger.info(f"[BlurDetectionController] {result.status}: {result.message} "
                    f"({result.elapsed_ms:.0f} ms)")
        return result

    def _run(self, image: np.ndarray, gray: np.ndarray) -> PipelineResult:
        assessment = self.classifier.assess_image(gray)
        detection_set = self._detect(gray)

        if detection_set.is_empty:
            return PipelineResult(
                status=STATUS_NO_OBJECTS,
                message="No se detectaron objetos",
                detection_set=detection_set,
                recomposed_image=image.copy(),
                annotated_image=render_objects(image, [], self.config.render),
                image_assessment=assessment,
            )

        analyses = [RegionAnalysis(region, self.classifier.classify_region(gray, region))
                    for region in detection_set.regions]
        summary = self.summarize(analyses)

        if summary.has_blurred_objects and self._should_restore(assessment):
            recomposed = self._restore(image, analyses)
        else:
            recomposed = image.copy()

        objects = build_objects(detection_set.regions,
                                [a.is_blurred for a in analyses],
                                self.config.shape)
        annotated = render_objects(recomposed, objects, self.config.render)

        restored = [a.restoration for a in analyses if a.restoration is not None]
        avg_improvement = (sum(r.quality_improvement for r in restored) / len(restored)
                           if restored else 0.0)

        message = f"{len(objects)} objetos detectados, {summary.blurred_objects} borrosos"
        if restored:
            message += (f". {len(restored)} restaurados, mejora media de calidad: "
                        f"{avg_improvement:.1f}%")

        return PipelineResult(
            status=STATUS_OK,
            message=message,
            detection_set=detection_set,
            analyses=analyses,
            recomposed_image=recomposed,
            annotated_image=annotated,
            objects=objects,
            image_assessment=assessment,
            average_quality_improvement=avg_improvement,
        )
