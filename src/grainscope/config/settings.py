"""Configuración del sistema de logging."""
import logging
import sys
from typing import Optional, Union

LOGGER_NAME = 'GrainScope'


def setup_logging(level: Union[int, str] = logging.INFO,
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Configura el sistema de logging de la aplicación.

    El archivo de log (si se indica) se REINICIA en cada ejecución
    (mode='w') para facilitar la revisión de la sesión actual.

    Args:
        level: Nivel de logging (int o nombre, p.ej. 'DEBUG')
        log_file: Ruta opcional del archivo de log

    Returns:
        logging.Logger: Logger configurado para la aplicación
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    logging.basicConfig(
        level=level,
        format='%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers,
        force=True  # Forzar reconfiguración si ya existe
    )

    return logging.getLogger(LOGGER_NAME)
