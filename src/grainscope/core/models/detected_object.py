"""
DetectedObject - Modelo unificado para objetos finales clasificados.

Es el contrato de salida del pipeline: lo que la UI muestra y cuenta.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple, Optional
import numpy as np


@dataclass
class DetectedObject:
    """
    Objeto final separado y clasificado por forma/tamaño.

    Attributes:
        id: Número del objeto (1..N) usado en la etiqueta
        bbox: Bounding box (x, y, w, h) - NOMBRE ESTÁNDAR
        area: Área del objeto en píxeles
        perimeter: Perímetro del contorno
        roundness: 4π·área/perímetro² (1 = círculo)
        aspect_ratio: max(w, h) / min(w, h)
        centroid: Centro del objeto (cx, cy)
        shape_type: Etiqueta de forma, p.ej. "Small Round Object"
        contour: Contorno OpenCV del objeto (opcional)
        source_strategy: Estrategia de detección de origen
        is_blurred: Si el objeto se clasificó como desenfocado
    """
    id: int
    bbox: Tuple[int, int, int, int]  # (x, y, w, h)
    area: float
    perimeter: float
    roundness: float
    aspect_ratio: float
    centroid: Tuple[int, int]
    shape_type: str
    contour: Optional[np.ndarray] = field(default=None, repr=False)
    source_strategy: str = ""
    is_blurred: bool = False

    @property
    def x(self) -> int:
        """Coordenada X del bounding box."""
        return self.bbox[0]

    @property
    def y(self) -> int:
        """Coordenada Y del bounding box."""
        return self.bbox[1]

    @property
    def w(self) -> int:
        """Ancho del bounding box."""
        return self.bbox[2]

    @property
    def h(self) -> int:
        """Alto del bounding box."""
        return self.bbox[3]

    def to_dict(self) -> Dict:
        """Convierte a diccionario plano para tablas/serialización."""
        return {
            'id': self.id,
            'shape_type': self.shape_type,
            'area': self.area,
            'perimeter': self.perimeter,
            'roundness': self.roundness,
            'aspect_ratio': self.aspect_ratio,
            'centroid_x': self.centroid[0],
            'centroid_y': self.centroid[1],
            'bbox_x': self.x,
            'bbox_y': self.y,
            'bbox_w': self.w,
            'bbox_h': self.h,
            'source_strategy': self.source_strategy,
            'is_blurred': self.is_blurred,
        }
