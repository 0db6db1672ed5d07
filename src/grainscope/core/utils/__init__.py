"""
Utilidades compartidas del core.

Contiene las métricas de nitidez y de forma reutilizables y la
exportación de resultados.
"""

from .image_metrics import (
    laplacian_variance,
    sobel_gradient_magnitude,
    tenengrad,
    pixel_intensity_variance,
    edge_density,
    normalize_image,
    to_grayscale,
    calculate_circularity,
    calculate_aspect_ratio,
)
from .csv_utils import (
    objects_to_dataframe,
    analyses_to_dataframe,
    export_objects_csv,
    export_analyses_csv,
    get_object_stats,
)

__all__ = [
    'laplacian_variance',
    'sobel_gradient_magnitude',
    'tenengrad',
    'pixel_intensity_variance',
    'edge_density',
    'normalize_image',
    'to_grayscale',
    'calculate_circularity',
    'calculate_aspect_ratio',
    'objects_to_dataframe',
    'analyses_to_dataframe',
    'export_objects_csv',
    'export_analyses_csv',
    'get_object_stats',
]
