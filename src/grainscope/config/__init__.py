"""Módulo de configuración del sistema."""

from .constants import (
    SUPPORTED_IMAGE_EXTENSIONS,
    DEFAULT_CONFIG_FILE,
    load_pipeline_config,
    save_pipeline_config,
)
from .settings import setup_logging, LOGGER_NAME

__all__ = [
    'SUPPORTED_IMAGE_EXTENSIONS',
    'DEFAULT_CONFIG_FILE',
    'load_pipeline_config',
    'save_pipeline_config',
    'setup_logging',
    'LOGGER_NAME',
]
