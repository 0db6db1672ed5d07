"""
Constantes del sistema y carga de la configuración del pipeline.

- Configuración cargada desde pipeline.json (NO hardcodeada)
- Si el archivo no existe o es inválido se usan los valores por defecto
"""

import json
import os
import logging
from datetime import datetime
from typing import Optional

from grainscope.core.models.pipeline_config import PipelineConfig

logger = logging.getLogger('GrainScope')

# =============================================================================
# CONSTANTES GENERALES
# =============================================================================

SUPPORTED_IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff')

# =============================================================================
# CARGA DINÁMICA DE CONFIGURACIÓN DESDE JSON
# =============================================================================

_CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_CONFIG_FILE = os.path.join(_CONFIG_DIR, 'pipeline.json')


def load_pipeline_config(path: Optional[str] = None) -> PipelineConfig:
    """
    Carga la configuración del pipeline desde un archivo JSON.

    Las secciones ausentes usan valores por defecto. Si el archivo no
    existe o es inválido se registra un warning y se devuelve la
    configuración por defecto.

    Args:
        path: Ruta del JSON (por defecto config/pipeline.json)

    Returns:
        PipelineConfig validada
    """
    path = path or DEFAULT_CONFIG_FILE
    if not os.path.exists(path):
        logger.warning(f"⚠️ No existe {path}. Usando valores por defecto.")
        return PipelineConfig()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        config = PipelineConfig.from_dict(data)
    except (OSError, json.JSONDecodeError, ValueError, TypeError) as e:
        logger.warning(f"⚠️ Error cargando {path}: {e}. Usando valores por defecto.")
        return PipelineConfig()

    logger.info(f"✅ Configuración cargada desde {path}")
    return config


def save_pipeline_config(config: PipelineConfig, path: Optional[str] = None) -> bool:
    """
    Guarda la configuración en un archivo JSON.

    Returns:
        True si se guardó correctamente
    """
    path = path or DEFAULT_CONFIG_FILE
    is_valid, error = config.validate()
    if not is_valid:
        logger.error(f"❌ Configuración inválida, no se guarda: {error}")
        return False

    data = {
        "_comment": "Umbrales del pipeline de detección y restauración.",
        "_updated": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    }
    data.update(config.to_dict())

    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4, ensure_ascii=False)
    except OSError as e:
        logger.error(f"❌ Error guardando configuración: {e}")
        return False

    logger.info(f"✅ Configuración guardada en {path}")
    return True
