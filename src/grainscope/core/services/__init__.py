"""
Servicios de Procesamiento Asíncrono.

El servicio ejecuta el pipeline en un thread separado (QThread) para no
bloquear la UI.

- AnalysisService: Pipeline completo o evaluación global en background
"""

from .analysis_service import AnalysisService, MODE_FULL, MODE_ASSESS

__all__ = ['AnalysisService', 'MODE_FULL', 'MODE_ASSESS']
