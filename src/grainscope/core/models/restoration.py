"""
Modelos de restauración: PSF estimada y resultado por región.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .region import Region, ObjectBlurProfile

METHOD_RICHARDSON_LUCY = "richardson_lucy"
METHOD_WIENER = "wiener"
METHOD_UNSHARP = "unsharp_mask"
METHOD_IDENTITY = "identity"


@dataclass
class PSFEstimate:
    """
    Point Spread Function gaussiana.

    Attributes:
        kernel: Kernel cuadrado de tamaño impar (3-15 px), suma 1
        sigma: Sigma gaussiana usada
    """
    kernel: np.ndarray = field(repr=False)
    sigma: float

    @property
    def size(self) -> int:
        return int(self.kernel.shape[0])

    @property
    def coefficient_sum(self) -> float:
        return float(self.kernel.sum())


@dataclass
class RestorationResult:
    """
    Resultado de restaurar una región borrosa.

    Attributes:
        region: Región restaurada
        restored: Píxeles restaurados (misma forma que el ROI de entrada)
        method: Método aplicado (richardson_lucy, wiener, unsharp_mask, identity)
        quality_improvement: Mejora de bordes en % (>= 0)
    """
    region: Region
    restored: np.ndarray = field(repr=False)
    method: str
    quality_improvement: float = 0.0
    psf: Optional[PSFEstimate] = field(default=None, repr=False)


@dataclass
class RegionAnalysis:
    """Region con su perfil de nitidez y, si aplica, su restauración."""
    region: Region
    profile: ObjectBlurProfile
    restoration: Optional[RestorationResult] = None

    @property
    def is_blurred(self) -> bool:
        return self.profile.is_blurred
