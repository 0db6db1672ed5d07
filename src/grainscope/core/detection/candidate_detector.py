"""
CandidateDetector - Ejecuta las tres estrategias de detección.

Las estrategias solo comparten la imagen gris de entrada (solo lectura),
por lo que pueden ejecutarse en paralelo. El orden de salida es siempre
CONTOUR, BLOB, WATERSHED.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import numpy as np

from grainscope.core.detection.base import DetectionStrategy
from grainscope.core.detection.blob_strategy import BlobStrategy
from grainscope.core.detection.contour_strategy import ContourStrategy
from grainscope.core.detection.watershed_strategy import WatershedStrategy
from grainscope.core.models.pipeline_config import PipelineConfig
from grainscope.core.models.region import Region

logger = logging.getLogger('GrainScope')


class CandidateDetector:
    """
    Detector de regiones candidatas multi-estrategia.

    Uso:
        detector = CandidateDetector(config)
        candidates = detector.detect(gray)
    """

    def __init__(self, config: Optional[PipelineConfig] = None,
                 parallel: Optional[bool] = None,
                 strategies: Optional[Sequence[DetectionStrategy]] = None):
        config = config or PipelineConfig()
        self.parallel = config.parallel_detection if parallel is None else parallel
        if strategies is None:
            strategies = (
                ContourStrategy(config.contour),
                BlobStrategy(config.blob),
                WatershedStrategy(config.watershed),
            )
        self.strategies = list(strategies)

    def detect(self, gray: np.ndarray) -> List[Region]:
        """
        Ejecuta todas las estrategias y concatena sus candidatas.

        Args:
            gray: Imagen en escala de grises uint8

        Returns:
            Lista de candidatas en orden fijo de estrategia
        """
        if self.parallel and len(self.strategies) > 1:
            with ThreadPoolExecutor(max_workers=len(self.strategies)) as exe:
                results = list(exe.map(lambda s: s.detect(gray), self.strategies))
        else:
            results = [s.detect(gray) for s in self.strategies]

        candidates = []
        for regions in results:
            candidates.extend(regions)

        summary = ", ".join(f"{s.name}={len(r)}" for s, r in zip(self.strategies, results))
        logger.info(f"[CandidateDetector] {len(candidates)} candidatas ({summary})")
        return candidates
