"""
Deduplicador - Fusión de candidatas por intersección sobre área mínima.

Las tres estrategias suelen encontrar el mismo objeto. Se ordenan las
candidatas por área descendente (desempate por prioridad de estrategia
y luego orden de llegada) y se acepta cada una solo si no solapa con
ninguna ya aceptada. El resultado es determinista e idempotente, y la
región de mayor área siempre sobrevive.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from grainscope.core.models.pipeline_config import DedupConfig
from grainscope.core.models.region import DetectionSet, Region

logger = logging.getLogger('GrainScope')


def overlap_ratio(a: Tuple[int, int, int, int], b: Tuple[int, int, int, int]) -> float:
    """
    Intersección / min(área_a, área_b) de dos bounding boxes (x, y, w, h).

    Returns:
        Ratio en [0, 1]; 0 si no se tocan o alguna caja es degenerada
    """
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    x1, y1 = max(ax, bx), max(ay, by)
    x2, y2 = min(ax + aw, bx + bw), min(ay + ah, by + bh)
    if x1 >= x2 or y1 >= y2:
        return 0.0
    min_area = min(aw * ah, bw * bh)
    if min_area <= 0:
        return 0.0
    return float((x2 - x1) * (y2 - y1)) / float(min_area)


class Deduplicator:
    """Fusión de candidatas multi-estrategia."""

    def __init__(self, config: Optional[DedupConfig] = None):
        self.config = config or DedupConfig()

    def threshold_for(self, region: Region) -> float:
        """Umbral de solape según el tamaño del objeto candidato."""
        if region.area < self.config.small_object_area:
            return self.config.small_overlap_threshold
        return self.config.large_overlap_threshold

    def _sort_key(self, indexed: Tuple[int, Region]):
        index, region = indexed
        priority = self.config.strategy_priority
        rank = priority.index(region.strategy) if region.strategy in priority else len(priority)
        return (-region.area, rank, index)

    def merge(self, candidates: Sequence[Region]) -> DetectionSet:
        """
        Elimina detecciones duplicadas.

        Args:
            candidates: Regiones de todas las estrategias

        Returns:
            DetectionSet con las regiones supervivientes
        """
        ordered = [r for _, r in sorted(enumerate(candidates), key=self._sort_key)]

        accepted: List[Region] = []
        for candidate in ordered:
            threshold = self.threshold_for(candidate)
            is_duplicate = any(
                overlap_ratio(candidate.bbox, existing.bbox) > threshold
                for existing in accepted
            )
            if not is_duplicate:
                accepted.append(candidate)

        logger.info(f"[Deduplicator] {len(candidates)} -> {len(accepted)} regiones")
        return DetectionSet(regions=tuple(accepted), raw_candidate_count=len(candidates))
