"""
Clasificación de forma/tamaño y overlay de anotaciones.
"""

from .shape_classifier import classify_shape, build_objects, size_bucket
from .renderer import render_objects, color_for, OBJECT_PALETTE

__all__ = [
    'classify_shape',
    'build_objects',
    'size_bucket',
    'render_objects',
    'color_for',
    'OBJECT_PALETTE',
]
