"""
Modelos de datos unificados del pipeline.

Este módulo centraliza las dataclasses usadas en todo el proyecto
para evitar duplicación y conflictos de nombres.
"""

from .region import (
    Region, ObjectBlurProfile, DetectionSet,
    STRATEGY_CONTOUR, STRATEGY_BLOB, STRATEGY_WATERSHED, STRATEGIES,
)
from .restoration import (
    PSFEstimate, RestorationResult, RegionAnalysis,
    METHOD_RICHARDSON_LUCY, METHOD_WIENER, METHOD_UNSHARP, METHOD_IDENTITY,
)
from .detected_object import DetectedObject
from .analysis_result import (
    ImageBlurAssessment, BlurAnalysisSummary, PipelineResult,
    STATUS_OK, STATUS_NO_OBJECTS, STATUS_ANALYSIS_FAILED,
)
from .pipeline_config import PipelineConfig

__all__ = [
    'Region',
    'ObjectBlurProfile',
    'DetectionSet',
    'STRATEGY_CONTOUR',
    'STRATEGY_BLOB',
    'STRATEGY_WATERSHED',
    'STRATEGIES',
    'PSFEstimate',
    'RestorationResult',
    'RegionAnalysis',
    'METHOD_RICHARDSON_LUCY',
    'METHOD_WIENER',
    'METHOD_UNSHARP',
    'METHOD_IDENTITY',
    'DetectedObject',
    'ImageBlurAssessment',
    'BlurAnalysisSummary',
    'PipelineResult',
    'STATUS_OK',
    'STATUS_NO_OBJECTS',
    'STATUS_ANALYSIS_FAILED',
    'PipelineConfig',
]
