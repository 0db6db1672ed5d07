"""
Métricas de Imagen - Funciones Compartidas
==========================================

Funciones puras de nitidez (focus measures) y de forma reutilizables
en todo el proyecto:

- Varianza del Laplaciano
- Magnitud media del gradiente de Sobel
- Tenengrad (energía total del gradiente)
- Varianza de intensidad de píxeles
- Densidad de bordes (Canny)

Todas las métricas "fallan cerradas": ante un buffer vacío o un error
numérico devuelven 0.0, que queda siempre del lado "desenfocado" de
cualquier umbral positivo. La lógica de decisión aguas abajo siempre
llega a un veredicto.

NOTA: Tenengrad y la varianza de píxeles NO se normalizan por el tamaño
del ROI. No son comparables entre ROIs de distinto tamaño; los umbrales
por objeto asumen valores absolutos sobre el recorte.
"""

import logging
from typing import Optional

import cv2
import numpy as np

logger = logging.getLogger('GrainScope')

# Constante para evitar división por cero
EPSILON = 1e-10

# Valor centinela del lado "desenfocado"
BLURRED_SENTINEL = 0.0


def normalize_image(image: np.ndarray) -> np.ndarray:
    """
    Normaliza una imagen a uint8.

    Maneja imágenes uint16 (cámaras científicas) y float en rango [0, 1].

    Args:
        image: Imagen de entrada (uint8, uint16, o float)

    Returns:
        Imagen normalizada como uint8
    """
    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16:
        return (image / 256).astype(np.uint8)
    if image.dtype in (np.float32, np.float64):
        return np.clip(image * 255.0, 0, 255).astype(np.uint8)
    return np.clip(image, 0, 255).astype(np.uint8)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """
    Convierte imagen RGB, RGBA o gris a escala de grises uint8.

    El core trabaja en orden RGB (el buffer lo entrega el colaborador
    externo que decodifica la imagen).

    Args:
        image: Imagen RGB(A) o grayscale

    Returns:
        Imagen en escala de grises (copia)
    """
    image = normalize_image(image)
    if image.ndim == 2:
        return image.copy()
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    if image.shape[2] == 1:
        return image[:, :, 0].copy()
    raise ValueError(f"Número de canales no soportado: {image.shape[2]}")


def _is_degenerate(buf: Optional[np.ndarray]) -> bool:
    return buf is None or buf.size == 0 or buf.ndim != 2


def laplacian_variance(buf: np.ndarray, ksize: int = 1) -> float:
    """
    Calcula la varianza del Laplaciano como métrica de nitidez.

    El Laplaciano detecta cambios de intensidad. Una región enfocada
    tiene alta varianza (bordes definidos); una desenfocada, baja.
    Para un buffer de intensidad constante el resultado es exactamente 0.

    Args:
        buf: Imagen en escala de grises
        ksize: Tamaño del kernel Laplaciano (1, 3, 5, 7)

    Returns:
        Varianza del Laplaciano (desviación estándar al cuadrado)
    """
    if _is_degenerate(buf):
        return BLURRED_SENTINEL
    try:
        laplacian = cv2.Laplacian(normalize_image(buf), cv2.CV_64F, ksize=ksize)
        _, stddev = cv2.meanStdDev(laplacian)
        value = float(stddev[0, 0]) ** 2
    except cv2.error as e:
        logger.warning(f"[BlurMetrics] Laplaciano falló: {e}")
        return BLURRED_SENTINEL
    return value if np.isfinite(value) else BLURRED_SENTINEL


def _sobel_pair(buf: np.ndarray, ksize: int):
    gray = normalize_image(buf)
    grad_x = cv2.Sobel(gray, cv2.CV_64F, 1, 0, ksize=ksize)
    grad_y = cv2.Sobel(gray, cv2.CV_64F, 0, 1, ksize=ksize)
    return grad_x, grad_y


def sobel_gradient_magnitude(buf: np.ndarray, ksize: int = 3) -> float:
    """
    Magnitud media del gradiente de Sobel (dx, dy).

    Args:
        buf: Imagen en escala de grises
        ksize: Tamaño del kernel Sobel

    Returns:
        Media de la magnitud euclídea por píxel
    """
    if _is_degenerate(buf):
        return BLURRED_SENTINEL
    try:
        grad_x, grad_y = _sobel_pair(buf, ksize)
        value = float(np.mean(cv2.magnitude(grad_x, grad_y)))
    except cv2.error as e:
        logger.warning(f"[BlurMetrics] Sobel falló: {e}")
        return BLURRED_SENTINEL
    return value if np.isfinite(value) else BLURRED_SENTINEL


def tenengrad(buf: np.ndarray, ksize: int = 3) -> float:
    """
    Tenengrad: suma de gradientes de Sobel al cuadrado (sin normalizar).

    Args:
        buf: Imagen en escala de grises
        ksize: Tamaño del kernel Sobel

    Returns:
        Energía total del gradiente sobre todos los píxeles
    """
    if _is_degenerate(buf):
        return BLURRED_SENTINEL
    try:
        grad_x, grad_y = _sobel_pair(buf, ksize)
        value = float(np.sum(grad_x ** 2 + grad_y ** 2))
    except cv2.error as e:
        logger.warning(f"[BlurMetrics] Tenengrad falló: {e}")
        return BLURRED_SENTINEL
    return value if np.isfinite(value) else BLURRED_SENTINEL


def pixel_intensity_variance(buf: np.ndarray) -> float:
    """Varianza de las intensidades crudas."""
    if _is_degenerate(buf):
        return BLURRED_SENTINEL
    value = float(np.var(buf.astype(np.float64)))
    return value if np.isfinite(value) else BLURRED_SENTINEL


def edge_density(buf: np.ndarray, low: float = 50, high: float = 150) -> float:
    """
    Fracción de píxeles marcados como borde por Canny.

    Args:
        buf: Imagen en escala de grises
        low: Umbral bajo de histéresis
        high: Umbral alto de histéresis

    Returns:
        Densidad de bordes en [0, 1]
    """
    if _is_degenerate(buf):
        return BLURRED_SENTINEL
    try:
        edges = cv2.Canny(normalize_image(buf), low, high)
    except cv2.error as e:
        logger.warning(f"[BlurMetrics] Canny falló: {e}")
        return BLURRED_SENTINEL
    return float(cv2.countNonZero(edges)) / float(edges.size)


def calculate_circularity(area: float, perimeter: float) -> float:
    """
    Circularidad = 4π × Área / Perímetro²

    - 1.0 = círculo perfecto
    - < 1.0 = formas más irregulares

    Returns:
        Circularidad (0 si el perímetro es degenerado)
    """
    if perimeter < EPSILON:
        return 0.0
    return float((4 * np.pi * area) / (perimeter ** 2))


def calculate_aspect_ratio(w: int, h: int) -> float:
    """
    Aspect ratio max(w, h) / min(w, h) (1.0 = cuadrado).

    Returns:
        Aspect ratio >= 1.0, o 0.0 si la caja es degenerada
    """
    if w < 1 or h < 1:
        return 0.0
    return float(max(w, h)) / float(min(w, h))
