"""
Renderer - Overlay de objetos detectados.

Dibuja sobre una copia RGB: contorno grueso, marcador de centroide
(relleno blanco + borde de color) y número del objeto sobre una placa
oscura. El color rota por una paleta fija de 10 entradas.
"""

import logging
from typing import Optional, Sequence

import cv2
import numpy as np

from grainscope.core.models.detected_object import DetectedObject
from grainscope.core.models.pipeline_config import RenderConfig
from grainscope.core.utils.image_metrics import normalize_image

logger = logging.getLogger('GrainScope')

# Paleta RGB, indexada por (id - 1) % 10
OBJECT_PALETTE = (
    (0, 255, 0),        # Verde brillante
    (255, 0, 0),        # Rojo
    (0, 0, 255),        # Azul
    (255, 255, 0),      # Amarillo
    (255, 0, 255),      # Magenta
    (0, 255, 255),      # Cian
    (255, 165, 0),      # Naranja
    (128, 0, 128),      # Púrpura
    (255, 192, 203),    # Rosa
    (0, 128, 0),        # Verde oscuro
)

WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def color_for(object_id: int):
    return OBJECT_PALETTE[(object_id - 1) % len(OBJECT_PALETTE)]


def _to_rgb(image: np.ndarray) -> np.ndarray:
    image = normalize_image(image)
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2RGB)
    if image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2RGB)
    return image.copy()


def render_objects(image: np.ndarray, objects: Sequence[DetectedObject],
                   config: Optional[RenderConfig] = None) -> np.ndarray:
    """
    Genera el overlay anotado.

    Args:
        image: Imagen RGB, RGBA o gris (no se modifica)
        objects: Objetos clasificados

    Returns:
        Imagen RGB anotada
    """
    cfg = config or RenderConfig()
    canvas = _to_rgb(image)

    for obj in objects:
        color = color_for(obj.id)
        cx, cy = int(obj.centroid[0]), int(obj.centroid[1])

        if obj.contour is not None:
            cv2.drawContours(canvas, [obj.contour], -1, color, cfg.contour_thickness)

        cv2.circle(canvas, (cx, cy), cfg.centroid_radius, WHITE, -1)
        cv2.circle(canvas, (cx, cy), cfg.centroid_radius, color, 2)

        # Etiqueta sobre placa oscura
        tx, ty = obj.x, obj.y - 10
        cv2.rectangle(canvas, (tx - 3, ty - 20), (tx + 25, ty + 5), BLACK, -1)
        cv2.putText(canvas, str(obj.id), (tx, ty), cv2.FONT_HERSHEY_SIMPLEX,
                    cfg.font_scale, WHITE, cfg.label_thickness)

    logger.debug(f"[Renderer] {len(objects)} objetos dibujados")
    return canvas
