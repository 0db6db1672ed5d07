"""
Módulo de análisis de desenfoque.

Clasificación global (voto ponderado) y por objeto (compuerta OR).
"""

from .blur_classifier import BlurClassifier, ANALYSIS_FAILED_DESCRIPTION

__all__ = ['BlurClassifier', 'ANALYSIS_FAILED_DESCRIPTION']
