"""
Utilidades para exportación de resultados a CSV.

Tablas de objetos clasificados y de análisis de desenfoque por región
construidas con pandas.
"""

import logging
from typing import Sequence, Tuple

import pandas as pd

from grainscope.core.models.detected_object import DetectedObject
from grainscope.core.models.restoration import RegionAnalysis

logger = logging.getLogger('GrainScope')

OBJECT_COLUMNS = [
    'id', 'shape_type', 'area', 'perimeter', 'roundness', 'aspect_ratio',
    'centroid_x', 'centroid_y', 'bbox_x', 'bbox_y', 'bbox_w', 'bbox_h',
    'source_strategy', 'is_blurred',
]

ANALYSIS_COLUMNS = [
    'strategy', 'bbox_x', 'bbox_y', 'bbox_w', 'bbox_h',
    'laplacian_variance', 'sobel_magnitude', 'pixel_variance', 'tenengrad',
    'is_blurred', 'method', 'quality_improvement',
]


def objects_to_dataframe(objects: Sequence[DetectedObject]) -> pd.DataFrame:
    """Tabla de objetos (una fila por objeto, columnas fijas)."""
    return pd.DataFrame([obj.to_dict() for obj in objects], columns=OBJECT_COLUMNS)


def analyses_to_dataframe(analyses: Sequence[RegionAnalysis]) -> pd.DataFrame:
    """Tabla de perfiles de nitidez y restauración por región."""
    rows = []
    for a in analyses:
        x, y, w, h = a.region.bbox
        rows.append({
            'strategy': a.region.strategy,
            'bbox_x': x, 'bbox_y': y, 'bbox_w': w, 'bbox_h': h,
            'laplacian_variance': a.profile.laplacian_variance,
            'sobel_magnitude': a.profile.sobel_magnitude,
            'pixel_variance': a.profile.pixel_variance,
            'tenengrad': a.profile.tenengrad,
            'is_blurred': a.is_blurred,
            'method': a.restoration.method if a.restoration else '',
            'quality_improvement': a.restoration.quality_improvement if a.restoration else 0.0,
        })
    return pd.DataFrame(rows, columns=ANALYSIS_COLUMNS)


def _export(df: pd.DataFrame, filename: str, what: str) -> Tuple[bool, str]:
    if df.empty:
        return False, f"No hay {what} para exportar"

    try:
        df.to_csv(filename, index=False, float_format='%.4f')
    except OSError as e:
        logger.error(f"Error exportando {what}: {e}")
        return False, f"Error exportando: {e}"

    logger.info(f"✅ {what.capitalize()} exportados a {filename}: {len(df)} filas")
    return True, f"{what.capitalize()} exportados: {len(df)} filas guardadas"


def export_objects_csv(objects: Sequence[DetectedObject], filename: str) -> Tuple[bool, str]:
    """
    Exporta los objetos clasificados a CSV.

    Returns:
        Tuple (success: bool, message: str)
    """
    return _export(objects_to_dataframe(objects), filename, "objetos")


def export_analyses_csv(analyses: Sequence[RegionAnalysis], filename: str) -> Tuple[bool, str]:
    """Exporta el análisis de desenfoque por región a CSV."""
    return _export(analyses_to_dataframe(analyses), filename, "análisis")


def get_object_stats(objects: Sequence[DetectedObject]) -> dict:
    """
    Estadísticas de los objetos.

    Returns:
        Dict con n_objects, n_blurred, mean_area, by_shape
    """
    df = objects_to_dataframe(objects)
    if df.empty:
        return {'n_objects': 0, 'n_blurred': 0, 'mean_area': 0.0, 'by_shape': {}}
    return {
        'n_objects': int(len(df)),
        'n_blurred': int(df['is_blurred'].sum()),
        'mean_area': float(df['area'].mean()),
        'by_shape': {k: int(v) for k, v in df['shape_type'].value_counts().items()},
    }
