"""
Configuración del Pipeline - Dataclasses
========================================

Centraliza todos los umbrales ajustables del pipeline de detección,
clasificación de desenfoque y restauración. Se pasa explícitamente a
cada etapa (no hay estado global mutable), lo que permite ajustar por
dominio/iluminación y testear sin efectos secundarios.
"""

from dataclasses import MISSING, dataclass, field, asdict, fields
from typing import Optional, Tuple


@dataclass
class MetricConfig:
    """Parámetros de las métricas de nitidez."""
    laplacian_ksize: int = 1                # kernel del Laplaciano
    sobel_ksize: int = 3                    # kernel de Sobel
    canny_low: float = 50.0                 # histéresis baja (densidad de bordes)
    canny_high: float = 150.0               # histéresis alta


@dataclass
class ImageBlurConfig:
    """
    Modo imagen completa: voto ponderado.

    Cada métrica por debajo de su umbral aporta su peso; los pesos
    suman 1.0. Score > score_threshold => imagen desenfocada.
    """
    laplacian_threshold: float = 50.0
    sobel_threshold: float = 15.0
    edge_density_threshold: float = 0.05
    pixel_variance_threshold: float = 30.0
    laplacian_weight: float = 0.4
    sobel_weight: float = 0.3
    edge_density_weight: float = 0.3
    pixel_variance_weight: float = 0.0
    score_threshold: float = 0.5
    # Bandas descriptivas por varianza del Laplaciano
    severe_band: float = 500.0
    moderate_band: float = 1000.0
    acceptable_band: float = 1500.0
    sharp_band: float = 2000.0
    very_sharp_band: float = 3000.0


@dataclass
class ObjectBlurConfig:
    """Modo por objeto: compuerta OR sobre tres métricas."""
    laplacian_threshold: float = 100.0
    sobel_threshold: float = 50.0
    pixel_variance_threshold: float = 30.0


@dataclass
class ContourStrategyConfig:
    """Estrategia de contornos (brillo fijo AND umbral adaptativo)."""
    min_area_ratio: float = 0.0002
    max_area_ratio: float = 0.85
    min_object_size: int = 8                # px - lado mínimo del bbox
    min_circularity: float = 0.3
    min_solidity: float = 0.3               # área / área de la envolvente convexa
    max_aspect_ratio: float = 3.0
    bilateral_d: int = 9
    bilateral_sigma_color: float = 75.0
    bilateral_sigma_space: float = 75.0
    polarity: str = 'auto'                  # 'auto' | 'bright' | 'dark'
    brightness_offset: float = 25.0         # sobre el brillo de fondo
    brightness_floor: float = 180.0         # umbral fijo mínimo
    min_brightness_difference: float = 30.0 # objeto vs fondo (media dentro del contorno)
    adaptive_block_size: int = 15
    adaptive_c: float = 8.0
    open_kernel_size: int = 2


@dataclass
class BlobStrategyConfig:
    """Estrategia de blobs circulares (Hough)."""
    blur_size: int = 5                      # suavizado gaussiano previo
    dp: float = 1.0
    min_dist: float = 20.0
    param1: float = 50.0                    # umbral alto de Canny interno
    param2: float = 30.0                    # umbral del acumulador
    min_radius: int = 5
    max_radius: int = 50
    min_box_size: int = 10


@dataclass
class WatershedStrategyConfig:
    """Estrategia watershed con marcadores por transformada de distancia."""
    blur_size: int = 3
    marker_distance_ratio: float = 0.7      # fracción del máximo de distancia
    background_dilate_iterations: int = 3
    min_area: float = 50.0
    max_area: float = 5000.0


@dataclass
class DedupConfig:
    """Fusión por intersección sobre el área mínima."""
    small_object_area: float = 100.0
    small_overlap_threshold: float = 0.1
    large_overlap_threshold: float = 0.3
    strategy_priority: Tuple[str, ...] = ("CONTOUR", "WATERSHED", "BLOB")


@dataclass
class RestorationConfig:
    """PSF, selección de método y deconvolución."""
    severe_laplacian_threshold: float = 50.0    # => Richardson-Lucy
    moderate_sobel_threshold: float = 30.0      # => Wiener
    flat_variance_epsilon: float = 1e-6         # ROI plano => unsharp
    rl_iterations: int = 15
    rl_min_divisor: float = 1e-10
    unsharp_kernel_size: int = 5
    unsharp_amount: float = 1.5
    nsr_min: float = 0.001
    nsr_max: float = 0.1
    psf_min_size: int = 3
    psf_max_size: int = 15
    sigma_min: float = 0.5
    sigma_max: float = 3.0


@dataclass
class EnhanceConfig:
    """Realce de detalle posterior a la restauración."""
    bilateral_d: int = 5
    bilateral_sigma_color: float = 50.0
    bilateral_sigma_space: float = 50.0
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 4
    edge_tenengrad_threshold: float = 1000.0
    edge_weight: float = 0.2


@dataclass
class ShapeConfig:
    """Clasificación de forma/tamaño."""
    approx_epsilon_ratio: float = 0.01
    small_area: float = 1000.0
    large_area: float = 10000.0
    square_aspect_max: float = 1.3
    rectangle_aspect_max: float = 3.0
    round_roundness_min: float = 0.7
    round_aspect_max: float = 1.2
    curved_roundness_min: float = 0.5


@dataclass
class RenderConfig:
    """Overlay de anotaciones."""
    contour_thickness: int = 3
    centroid_radius: int = 6
    font_scale: float = 0.6
    label_thickness: int = 2


@dataclass
class PipelineConfig:
    """
    Configuración consolidada del pipeline.

    Secciones:
        metrics: Métricas de nitidez
        image_blur: Voto ponderado de imagen completa (pre-gate)
        object_blur: Compuerta OR por objeto
        contour / blob / watershed: Estrategias de detección
        dedup: Fusión de candidatas
        restoration: PSF y deconvolución
        enhance: Realce de detalle
        shape / render: Clasificación y overlay

    Flags:
        restore_blurred: Restaurar objetos borrosos
        pregate_enabled: Si la imagen completa es nítida, omitir restauración
        parallel_detection: Ejecutar las tres estrategias en paralelo
    """
    metrics: MetricConfig = field(default_factory=MetricConfig)
    image_blur: ImageBlurConfig = field(default_factory=ImageBlurConfig)
    object_blur: ObjectBlurConfig = field(default_factory=ObjectBlurConfig)
    contour: ContourStrategyConfig = field(default_factory=ContourStrategyConfig)
    blob: BlobStrategyConfig = field(default_factory=BlobStrategyConfig)
    watershed: WatershedStrategyConfig = field(default_factory=WatershedStrategyConfig)
    dedup: DedupConfig = field(default_factory=DedupConfig)
    restoration: RestorationConfig = field(default_factory=RestorationConfig)
    enhance: EnhanceConfig = field(default_factory=EnhanceConfig)
    shape: ShapeConfig = field(default_factory=ShapeConfig)
    render: RenderConfig = field(default_factory=RenderConfig)

    restore_blurred: bool = True
    pregate_enabled: bool = False
    parallel_detection: bool = False

    def validate(self) -> Tuple[bool, Optional[str]]:
        """
        Valida la configuración.

        Returns:
            (is_valid, error_message)
        """
        errors = []

        ib = self.image_blur
        weight_sum = (ib.laplacian_weight + ib.sobel_weight +
                      ib.edge_density_weight + ib.pixel_variance_weight)
        if abs(weight_sum - 1.0) > 1e-6:
            errors.append(f"los pesos de imagen completa deben sumar 1.0 (suman {weight_sum:.3f})")
        if min(ib.laplacian_weight, ib.sobel_weight,
               ib.edge_density_weight, ib.pixel_variance_weight) < 0:
            errors.append("los pesos de imagen completa deben ser >= 0")

        c = self.contour
        if not 0 <= c.min_area_ratio < c.max_area_ratio <= 1:
            errors.append("contour: se requiere 0 <= min_area_ratio < max_area_ratio <= 1")
        if c.polarity not in ('auto', 'bright', 'dark'):
            errors.append("contour.polarity debe ser 'auto', 'bright' o 'dark'")
        if not 0 <= c.min_solidity <= 1:
            errors.append("contour.min_solidity debe estar en [0, 1]")
        if c.adaptive_block_size < 3 or c.adaptive_block_size % 2 == 0:
            errors.append("contour.adaptive_block_size debe ser impar y >= 3")

        b = self.blob
        if b.min_radius < 0 or b.max_radius <= b.min_radius:
            errors.append("blob: se requiere 0 <= min_radius < max_radius")
        if b.blur_size < 1 or b.blur_size % 2 == 0:
            errors.append("blob.blur_size debe ser impar y >= 1")

        w = self.watershed
        if not 0 < w.marker_distance_ratio < 1:
            errors.append("watershed.marker_distance_ratio debe estar en (0, 1)")
        if w.max_area <= w.min_area:
            errors.append("watershed: max_area debe ser > min_area")

        d = self.dedup
        for name in ('small_overlap_threshold', 'large_overlap_threshold'):
            if not 0 <= getattr(d, name) <= 1:
                errors.append(f"dedup.{name} debe estar en [0, 1]")

        r = self.restoration
        if r.rl_iterations < 1:
            errors.append("restoration.rl_iterations debe ser >= 1")
        if not 0 < r.nsr_min <= r.nsr_max:
            errors.append("restoration: se requiere 0 < nsr_min <= nsr_max")
        if not 0 < r.sigma_min <= r.sigma_max:
            errors.append("restoration: se requiere 0 < sigma_min <= sigma_max")
        if r.psf_min_size < 1 or r.psf_max_size < r.psf_min_size or r.psf_max_size % 2 == 0:
            errors.append("restoration: tamaños de PSF inválidos (max impar y >= min)")
        if r.unsharp_kernel_size % 2 == 0:
            errors.append("restoration.unsharp_kernel_size debe ser impar")

        e = self.enhance
        if not 0 <= e.edge_weight <= 1:
            errors.append("enhance.edge_weight debe estar en [0, 1]")
        if e.clahe_tile_size < 1:
            errors.append("enhance.clahe_tile_size debe ser >= 1")

        if errors:
            return False, "; ".join(errors)

        return True, None

    def to_dict(self) -> dict:
        """Convierte a diccionario serializable a JSON."""
        data = asdict(self)
        data['dedup']['strategy_priority'] = list(self.dedup.strategy_priority)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'PipelineConfig':
        """
        Construye una configuración desde un diccionario (p.ej. JSON).

        Las secciones ausentes usan los valores por defecto.

        Raises:
            ValueError: Claves desconocidas o configuración inválida
        """
        section_types = {f.name: f.default_factory for f in fields(cls)
                         if f.default_factory is not MISSING}
        known_keys = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key.startswith('_'):
                continue  # comentarios en JSON
            if key not in known_keys:
                raise ValueError(f"Sección de configuración desconocida: {key}")
            section_type = section_types.get(key)
            if isinstance(value, dict) and section_type is not None:
                known = {f.name for f in fields(section_type)}
                unknown = set(value) - known
                if unknown:
                    raise ValueError(f"Parámetros desconocidos en '{key}': {sorted(unknown)}")
                if key == 'dedup' and 'strategy_priority' in value:
                    value = dict(value, strategy_priority=tuple(value['strategy_priority']))
                kwargs[key] = section_type(**value)
            else:
                kwargs[key] = value

        config = cls(**kwargs)
        is_valid, error = config.validate()
        if not is_valid:
            raise ValueError(f"Configuración inválida: {error}")
        return config
