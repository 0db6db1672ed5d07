"""
Region - Modelo de regiones candidatas (ROI).

Cada estrategia de detección crea sus propias instancias de Region;
la fusión solo copia la ganadora. Una Region es inmutable.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

STRATEGY_CONTOUR = "CONTOUR"
STRATEGY_BLOB = "BLOB"
STRATEGY_WATERSHED = "WATERSHED"

STRATEGIES = (STRATEGY_CONTOUR, STRATEGY_BLOB, STRATEGY_WATERSHED)


@dataclass(frozen=True)
class Region:
    """
    Región de interés alineada a los ejes.

    Attributes:
        bbox: Bounding box (x, y, w, h)
        strategy: Estrategia que la produjo ("CONTOUR" | "BLOB" | "WATERSHED")
        area: Área del objeto en píxeles (contorno o πr²)
        perimeter: Perímetro en píxeles
        circularity: 4π·área/perímetro²
        aspect_ratio: max(w, h) / min(w, h)
        contour: Contorno OpenCV (opcional, no participa en la igualdad)
    """
    bbox: Tuple[int, int, int, int]  # (x, y, w, h)
    strategy: str
    area: float
    perimeter: float
    circularity: float
    aspect_ratio: float
    contour: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    @property
    def x(self) -> int:
        return self.bbox[0]

    @property
    def y(self) -> int:
        return self.bbox[1]

    @property
    def w(self) -> int:
        return self.bbox[2]

    @property
    def h(self) -> int:
        return self.bbox[3]

    @property
    def bbox_area(self) -> int:
        """Área del bounding box (no del objeto)."""
        return self.w * self.h

    @property
    def centroid(self) -> Tuple[int, int]:
        """Centro del bounding box (cx, cy)."""
        return (self.x + self.w // 2, self.y + self.h // 2)

    def crop(self, image: np.ndarray) -> np.ndarray:
        """Recorte (vista) de la imagen en el bounding box."""
        x, y, w, h = self.bbox
        return image[y:y + h, x:x + w]


@dataclass
class ObjectBlurProfile:
    """
    Métricas de nitidez de una Region, calculadas sobre su recorte gris.

    Los cuatro valores son no negativos. Tenengrad y la varianza de
    píxeles no se normalizan entre ROIs de distinto tamaño.
    """
    laplacian_variance: float
    sobel_magnitude: float
    pixel_variance: float
    tenengrad: float
    is_blurred: bool

    @property
    def blur_severity(self) -> float:
        """Severidad [0, 1] según la varianza del Laplaciano (menor = más borroso)."""
        return max(0.0, 100.0 - self.laplacian_variance) / 100.0


@dataclass(frozen=True)
class DetectionSet:
    """
    Conjunto deduplicado de regiones de una imagen. Inmutable tras la fusión.

    Attributes:
        regions: Regiones finales tras la fusión (tupla)
        raw_candidate_count: Candidatas existentes antes de fusionar (diagnóstico)
    """
    regions: Tuple[Region, ...] = ()
    raw_candidate_count: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'regions', tuple(self.regions))

    def __len__(self) -> int:
        return len(self.regions)

    @property
    def is_empty(self) -> bool:
        return not self.regions

    def count_by_strategy(self) -> dict:
        counts = {name: 0 for name in STRATEGIES}
        for region in self.regions:
            counts[region.strategy] = counts.get(region.strategy, 0) + 1
        return counts
