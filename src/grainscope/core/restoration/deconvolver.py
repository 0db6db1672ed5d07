"""
Deconvolver - Restauración de regiones desenfocadas
===================================================

Selección de método según la severidad del desenfoque:

- ROI plano (varianza ~0): no hay nada que deconvolucionar, unsharp
  masking (el contenido no cambia)
- Laplaciano < 50 (severo): Richardson-Lucy, 15 iteraciones
- Sobel < 30 (moderado): filtro de Wiener en frecuencia
- Resto (leve): unsharp masking, amount 1.5

Ante un fallo numérico se recorre la cadena RL -> Wiener -> unsharp ->
identidad. Nunca lanza excepciones hacia el llamador.

Tras el método se aplica siempre DetailEnhancer; los ROIs a color se
procesan en gris y se recombinan por histogram matching.
"""

import logging
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np
from scipy import fft as sp_fft

from grainscope.core.models.pipeline_config import PipelineConfig
from grainscope.core.models.region import ObjectBlurProfile, Region
from grainscope.core.models.restoration import (
    METHOD_IDENTITY,
    METHOD_RICHARDSON_LUCY,
    METHOD_UNSHARP,
    METHOD_WIENER,
    PSFEstimate,
    RestorationResult,
)
from grainscope.core.restoration.detail_enhancer import DetailEnhancer, recombine_color
from grainscope.core.restoration.psf_estimator import PSFEstimator
from grainscope.core.utils.image_metrics import sobel_gradient_magnitude, to_grayscale

logger = logging.getLogger('GrainScope')

FALLBACK_CHAIN = (METHOD_RICHARDSON_LUCY, METHOD_WIENER, METHOD_UNSHARP, METHOD_IDENTITY)


def quality_improvement(original: np.ndarray, restored: np.ndarray) -> float:
    """
    Mejora relativa (%) de la fuerza media de bordes (Sobel).

    max(0, (restaurada - original) / max(1, original)) * 100
    """
    before = sobel_gradient_magnitude(original)
    after = sobel_gradient_magnitude(restored)
    return max(0.0, (after - before) / max(1.0, before)) * 100.0


def _check_finite(result: np.ndarray, method: str) -> np.ndarray:
    if not np.all(np.isfinite(result)):
        raise FloatingPointError(f"{method}: resultado no finito")
    return result


class Deconvolver:
    """
    Restaura ROIs desenfocados con PSF gaussiana estimada.

    Uso:
        deconvolver = Deconvolver(config)
        result = deconvolver.restore(roi, region, profile)
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        config = config or PipelineConfig()
        self.config = config.restoration
        self.psf_estimator = PSFEstimator(config.restoration)
        self.enhancer = DetailEnhancer(config.enhance)

    # ------------------------------------------------------------------
    # Selección
    # ------------------------------------------------------------------

    def select_method(self, profile: ObjectBlurProfile) -> str:
        cfg = self.config
        if profile.pixel_variance <= cfg.flat_variance_epsilon:
            return METHOD_UNSHARP
        if profile.laplacian_variance < cfg.severe_laplacian_threshold:
            return METHOD_RICHARDSON_LUCY
        if profile.sobel_magnitude < cfg.moderate_sobel_threshold:
            return METHOD_WIENER
        return METHOD_UNSHARP

    # ------------------------------------------------------------------
    # Métodos
    # ------------------------------------------------------------------

    def richardson_lucy(self, gray: np.ndarray, psf: PSFEstimate) -> np.ndarray:
        """
        Deconvolución Richardson-Lucy (actualización multiplicativa).

        La salida se recorta al rango [min, max] del ROI observado.
        """
        cfg = self.config
        observed = gray.astype(np.float64) / 255.0
        kernel = psf.kernel
        kernel_flipped = cv2.flip(kernel, -1)

        estimate = observed.copy()
        for _ in range(cfg.rl_iterations):
            convolved = cv2.filter2D(estimate, -1, kernel, borderType=cv2.BORDER_REFLECT)
            ratio = observed / np.maximum(convolved, cfg.rl_min_divisor)
            correction = cv2.filter2D(ratio, -1, kernel_flipped, borderType=cv2.BORDER_REFLECT)
            estimate = estimate * correction

        _check_finite(estimate, METHOD_RICHARDSON_LUCY)
        result = np.clip(estimate * 255.0, float(gray.min()), float(gray.max()))
        return np.round(result).astype(np.uint8)

    def wiener_nsr(self, profile: ObjectBlurProfile) -> float:
        cfg = self.config
        nsr = profile.pixel_variance / max(1.0, profile.tenengrad / 1000.0)
        return max(cfg.nsr_min, min(cfg.nsr_max, nsr / 10000.0))

    def wiener(self, gray: np.ndarray, psf: PSFEstimate, nsr: float) -> np.ndarray:
        """
        Filtro de Wiener: W = conj(H) / (|H|² + NSR).

        El ROI se extiende por reflexión hasta un tamaño FFT eficiente y
        la PSF se centra en el origen antes de transformarla.
        """
        h, w = gray.shape
        kh, kw = psf.kernel.shape
        pad_h = sp_fft.next_fast_len(h + kh)
        pad_w = sp_fft.next_fast_len(w + kw)

        top, left = kh // 2, kw // 2
        padded = cv2.copyMakeBorder(gray.astype(np.float64),
                                    top, pad_h - h - top, left, pad_w - w - left,
                                    cv2.BORDER_REFLECT)

        psf_full = np.zeros((pad_h, pad_w), dtype=np.float64)
        psf_full[:kh, :kw] = psf.kernel
        psf_full = np.roll(psf_full, (-(kh // 2), -(kw // 2)), axis=(0, 1))

        H = sp_fft.fft2(psf_full)
        G = sp_fft.fft2(padded)
        W = np.conj(H) / (np.abs(H) ** 2 + nsr)
        restored = np.real(sp_fft.ifft2(W * G))

        _check_finite(restored, METHOD_WIENER)
        restored = restored[top:top + h, left:left + w]
        return np.clip(np.round(restored), 0, 255).astype(np.uint8)

    def unsharp_mask(self, gray: np.ndarray) -> np.ndarray:
        """result = roi + amount * (roi - gaussian(roi)), calculado en float."""
        cfg = self.config
        k = cfg.unsharp_kernel_size
        roi = gray.astype(np.float64)
        blurred = cv2.GaussianBlur(roi, (k, k), 0)
        result = roi + cfg.unsharp_amount * (roi - blurred)
        _check_finite(result, METHOD_UNSHARP)
        return np.clip(np.round(result), 0, 255).astype(np.uint8)

    # ------------------------------------------------------------------
    # Orquestación
    # ------------------------------------------------------------------

    def _method_table(self, psf: PSFEstimate,
                      profile: ObjectBlurProfile) -> dict:
        return {
            METHOD_RICHARDSON_LUCY: lambda g: self.richardson_lucy(g, psf),
            METHOD_WIENER: lambda g: self.wiener(g, psf, self.wiener_nsr(profile)),
            METHOD_UNSHARP: self.unsharp_mask,
            METHOD_IDENTITY: lambda g: g.copy(),
        }

    def deblur(self, gray: np.ndarray, method: str, psf: PSFEstimate,
               profile: ObjectBlurProfile) -> Tuple[np.ndarray, str]:
        """
        Aplica el método y, si falla, los siguientes de la cadena.

        Returns:
            (roi_gris_restaurado, método_efectivo)
        """
        table = self._method_table(psf, profile)
        chain: List[str] = list(FALLBACK_CHAIN[FALLBACK_CHAIN.index(method):])
        for name in chain:
            func: Callable = table[name]
            try:
                return func(gray), name
            except (cv2.error, FloatingPointError, ValueError, ZeroDivisionError) as e:
                logger.warning(f"[Deconvolver] {name} falló ({e}), probando siguiente método")
        return gray.copy(), METHOD_IDENTITY

    def restore(self, image_roi: np.ndarray, region: Region,
                profile: ObjectBlurProfile) -> RestorationResult:
        """
        Restaura el ROI de una región desenfocada.

        Args:
            image_roi: Recorte RGB, RGBA o gris de la región
            region: Región de origen
            profile: Perfil de nitidez de la región

        Returns:
            RestorationResult con el ROI restaurado (misma forma que la entrada)
        """
        gray = to_grayscale(image_roi)
        if gray.size == 0:
            logger.warning(f"[Deconvolver] ROI vacío en bbox={region.bbox}, sin restaurar")
            return RestorationResult(region=region, restored=image_roi.copy(),
                                     method=METHOD_IDENTITY)

        psf = self.psf_estimator.estimate(region, profile)
        method = self.select_method(profile)

        with np.errstate(divide='raise', invalid='raise', over='raise'):
            deblurred, method = self.deblur(gray, method, psf, profile)

        enhanced = self.enhancer.enhance(deblurred, profile.tenengrad)
        if image_roi.ndim == 3 and image_roi.shape[2] > 1:
            restored = recombine_color(image_roi, enhanced)
        else:
            restored = enhanced.reshape(image_roi.shape)

        improvement = quality_improvement(gray, enhanced)
        logger.info(f"[Deconvolver] bbox={region.bbox}: {method}, "
                    f"PSF {psf.size}x{psf.size} sigma={psf.sigma:.2f}, "
                    f"mejora={improvement:.1f}%")

        return RestorationResult(
            region=region,
            restored=restored,
            method=method,
            quality_improvement=improvement,
            psf=psf,
        )
