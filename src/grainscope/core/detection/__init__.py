"""
Módulo de Detección de Regiones Candidatas.

Tres estrategias independientes (contornos, blobs, watershed) y la
fusión por solape.
"""

from .base import DetectionStrategy
from .contour_strategy import ContourStrategy
from .blob_strategy import BlobStrategy
from .watershed_strategy import WatershedStrategy
from .candidate_detector import CandidateDetector
from .deduplicator import Deduplicator, overlap_ratio

__all__ = [
    'DetectionStrategy',
    'ContourStrategy',
    'BlobStrategy',
    'WatershedStrategy',
    'CandidateDetector',
    'Deduplicator',
    'overlap_ratio',
]
