"""
Módulo de restauración de regiones desenfocadas.

PSF gaussiana, deconvolución (Richardson-Lucy, Wiener, unsharp masking)
y realce de detalle posterior.
"""

from .psf_estimator import PSFEstimator, gaussian_psf
from .deconvolver import Deconvolver, quality_improvement
from .detail_enhancer import (
    DetailEnhancer,
    histogram_matching_lut,
    match_histogram,
    recombine_color,
)

__all__ = [
    'PSFEstimator',
    'gaussian_psf',
    'Deconvolver',
    'quality_improvement',
    'DetailEnhancer',
    'histogram_matching_lut',
    'match_histogram',
    'recombine_color',
]
