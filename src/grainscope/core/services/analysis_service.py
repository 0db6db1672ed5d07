"""
Analysis Service - Servicio de Análisis Asíncrono
=================================================

Worker para ejecutar el pipeline de desenfoque en background sin
bloquear la UI. Mantiene como máximo un frame pendiente (el más
reciente gana) y emite los resultados via señales PyQt.
"""

import logging
import time
from queue import Empty, Full, Queue
from typing import Optional, Union

import numpy as np
from PyQt5.QtCore import QThread, pyqtSignal

from grainscope.core.controllers.blur_detection_controller import BlurDetectionController
from grainscope.core.models.analysis_result import ImageBlurAssessment, PipelineResult
from grainscope.core.models.pipeline_config import PipelineConfig

logger = logging.getLogger('GrainScope')

MODE_FULL = 'full'
MODE_ASSESS = 'assess'


class AnalysisService(QThread):
    """
    Servicio de análisis asíncrono.

    Modos:
        'full': pipeline completo (PipelineResult)
        'assess': solo evaluación global, para habilitar la captura
                  (ImageBlurAssessment)

    Signals:
        analysis_ready: Emitido con cada resultado
        status_changed: Emitido cuando cambia el estado del servicio
    """

    # Señales
    analysis_ready = pyqtSignal(object)  # PipelineResult | ImageBlurAssessment
    status_changed = pyqtSignal(str)  # mensaje de estado

    def __init__(self, config: Optional[PipelineConfig] = None,
                 mode: str = MODE_FULL, parent=None):
        super().__init__(parent)
        if mode not in (MODE_FULL, MODE_ASSESS):
            raise ValueError(f"Modo desconocido: {mode}")

        self.controller = BlurDetectionController(config)
        self.mode = mode

        # Cola de frames (solo 1 frame pendiente)
        self.frame_queue = Queue(maxsize=1)

        # Control
        self.running = False
        self.paused = False

        # Estadísticas
        self.frames_processed = 0
        self.frames_dropped = 0
        self.last_analysis_time_ms = 0.0
        self.last_status = ""

        logger.info(f"[AnalysisService] Inicializado (modo={mode})")

    def submit_frame(self, frame: np.ndarray) -> bool:
        """
        Envía un frame para análisis (no bloqueante).

        Si hay un frame pendiente, se descarta el anterior.

        Args:
            frame: Imagen RGB, RGBA o grayscale

        Returns:
            True si el frame fue aceptado
        """
        if not self.running or self.paused or frame is None:
            return False

        try:
            self.frame_queue.get_nowait()
            self.frames_dropped += 1
        except Empty:
            pass

        try:
            self.frame_queue.put_nowait(frame.copy())
        except Full:
            return False
        return True

    def start_analysis(self):
        """Inicia el servicio de análisis."""
        if self.isRunning():
            return

        self.running = True
        self.paused = False
        self.start()
        self.status_changed.emit(f"Análisis activo ({self.mode})")
        logger.info(f"[AnalysisService] Iniciado (modo={self.mode})")

    def stop_analysis(self):
        """Detiene el servicio de análisis."""
        self.running = False
        self.wait(1000)  # Esperar hasta 1 segundo
        self.status_changed.emit("Análisis detenido")
        logger.info("[AnalysisService] Detenido")

    def pause(self):
        """Pausa el análisis (no procesa frames)."""
        self.paused = True
        self.status_changed.emit("Análisis pausado")

    def resume(self):
        """Reanuda el análisis."""
        self.paused = False
        self.status_changed.emit("Análisis activo")

    def process_frame(self, frame: np.ndarray) -> Union[PipelineResult, ImageBlurAssessment]:
        """
        Analiza un frame de forma síncrona y emite el resultado.

        Lo usa el loop del worker; también sirve para análisis puntuales.
        """
        t_start = time.perf_counter()
        if self.mode == MODE_ASSESS:
            result = self.controller.assess_image(frame)
            self.last_status = result.description
        else:
            result = self.controller.process_image(frame)
            self.last_status = result.status
        self.last_analysis_time_ms = (time.perf_counter() - t_start) * 1000
        self.frames_processed += 1

        self.analysis_ready.emit(result)
        return result

    def run(self):
        """Loop principal del worker."""
        while self.running:
            if self.paused:
                time.sleep(0.05)
                continue

            try:
                frame = self.frame_queue.get(timeout=0.1)
            except Empty:
                continue

            self.process_frame(frame)

    def get_stats(self) -> dict:
        """Retorna estadísticas del servicio."""
        return {
            'frames_processed': self.frames_processed,
            'frames_dropped': self.frames_dropped,
            'last_analysis_ms': self.last_analysis_time_ms,
            'last_status': self.last_status,
            'mode': self.mode,
        }
