"""
AnalysisResult - Modelos unificados para resultados del pipeline.

Centraliza las definiciones de la evaluación de imagen completa, el
resumen de desenfoque por objeto y el resultado final del pipeline.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from .detected_object import DetectedObject
from .region import DetectionSet
from .restoration import RegionAnalysis

STATUS_OK = "OK"
STATUS_NO_OBJECTS = "NO_OBJECTS"
STATUS_ANALYSIS_FAILED = "ANALYSIS_FAILED"


@dataclass
class ImageBlurAssessment:
    """
    Resultado del modo imagen completa (voto ponderado).

    Usado para decidir si vale la pena capturar/procesar la imagen.
    """
    laplacian_variance: float
    sobel_magnitude: float
    edge_density: float
    pixel_variance: float
    blur_score: float
    is_blurred: bool
    description: str

    def to_dict(self) -> Dict:
        return {
            'laplacian_variance': self.laplacian_variance,
            'sobel_magnitude': self.sobel_magnitude,
            'edge_density': self.edge_density,
            'pixel_variance': self.pixel_variance,
            'blur_score': self.blur_score,
            'is_blurred': self.is_blurred,
            'description': self.description,
        }


@dataclass
class BlurAnalysisSummary:
    """
    Resumen de desenfoque sobre los objetos detectados.

    average_blur_severity se promedia solo sobre los objetos borrosos
    (0.0 si no hay ninguno).
    """
    total_objects: int = 0
    blurred_objects: int = 0
    average_blur_severity: float = 0.0

    @property
    def blur_percentage(self) -> float:
        if self.total_objects == 0:
            return 0.0
        return 100.0 * self.blurred_objects / self.total_objects

    @property
    def has_blurred_objects(self) -> bool:
        return self.blurred_objects > 0

    def to_dict(self) -> Dict:
        return {
            'total_objects': self.total_objects,
            'blurred_objects': self.blurred_objects,
            'average_blur_severity': self.average_blur_severity,
            'blur_percentage': self.blur_percentage,
        }


@dataclass
class PipelineResult:
    """
    Resultado completo de procesar una imagen.

    Attributes:
        status: "OK", "NO_OBJECTS" o "ANALYSIS_FAILED"
        message: Mensaje legible para la UI
        detection_set: Regiones deduplicadas
        analyses: Perfil (y restauración) por región, en el orden del DetectionSet
        recomposed_image: Imagen con los ROIs restaurados pegados en su lugar
        annotated_image: Overlay con contornos, centroides y números
        objects: Objetos finales clasificados
        image_assessment: Evaluación de imagen completa (si se calculó)
        average_quality_improvement: Mejora media (%) sobre las regiones restauradas
        elapsed_ms: Tiempo total de procesamiento
    """
    status: str
    message: str = ""
    detection_set: DetectionSet = field(default_factory=DetectionSet)
    analyses: List[RegionAnalysis] = field(default_factory=list)
    recomposed_image: Optional[np.ndarray] = field(default=None, repr=False)
    annotated_image: Optional[np.ndarray] = field(default=None, repr=False)
    objects: List[DetectedObject] = field(default_factory=list)
    image_assessment: Optional[ImageBlurAssessment] = None
    average_quality_improvement: float = 0.0
    elapsed_ms: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.status != STATUS_ANALYSIS_FAILED

    @property
    def object_count(self) -> int:
        return len(self.objects)

    @property
    def restored_count(self) -> int:
        return sum(1 for a in self.analyses if a.restoration is not None)

    def to_dict(self) -> Dict:
        """Convierte a diccionario para serialización (sin buffers de imagen)."""
        return {
            'status': self.status,
            'message': self.message,
            'raw_candidate_count': self.detection_set.raw_candidate_count,
            'region_count': len(self.detection_set),
            'by_strategy': self.detection_set.count_by_strategy(),
            'blurred_count': sum(1 for a in self.analyses if a.is_blurred),
            'restored_count': self.restored_count,
            'average_quality_improvement': self.average_quality_improvement,
            'image_assessment': (self.image_assessment.to_dict()
                                 if self.image_assessment else None),
            'objects': [o.to_dict() for o in self.objects],
            'elapsed_ms': self.elapsed_ms,
        }
