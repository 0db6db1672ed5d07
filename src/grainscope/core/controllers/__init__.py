"""
Módulo de controladores del sistema.

Contiene el orquestador del pipeline de desenfoque.
"""

from .blur_detection_controller import BlurDetectionController, InvalidInputError, prepare_image

__all__ = ['BlurDetectionController', 'InvalidInputError', 'prepare_image']
