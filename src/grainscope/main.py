"""
GrainScope - Detección y restauración de desenfoque en objetos pequeños
=======================================================================

Front-end de línea de comandos: lee imágenes con OpenCV, ejecuta el
pipeline y guarda la imagen recompuesta, el overlay anotado y
(opcionalmente) las tablas CSV.

Uso:
    grainscope foto.jpg --output-dir resultados --csv
    grainscope foto.jpg --assess-only
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import cv2

from grainscope.config.constants import SUPPORTED_IMAGE_EXTENSIONS, load_pipeline_config
from grainscope.config.settings import setup_logging
from grainscope.core.controllers.blur_detection_controller import BlurDetectionController
from grainscope.core.models.pipeline_config import PipelineConfig
from grainscope.core.utils.csv_utils import export_analyses_csv, export_objects_csv

logger = logging.getLogger('GrainScope')


def read_image_rgb(path: str):
    """Lee una imagen del disco y la convierte a RGB/RGBA (None si falla)."""
    image = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if image is None:
        return None
    if image.ndim == 3 and image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return image


def write_image_rgb(path: str, image) -> bool:
    if image.ndim == 3 and image.shape[2] == 3:
        image = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    elif image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)
    return bool(cv2.imwrite(path, image))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grainscope",
        description="Detecta objetos pequeños, evalúa su desenfoque y restaura los borrosos.")
    parser.add_argument("images", nargs="+", help="Imágenes a procesar.")
    parser.add_argument("-o", "--output-dir", default="grainscope_output",
                        help="Directorio de salida (default: grainscope_output).")
    parser.add_argument("-c", "--config", default=None,
                        help="Archivo JSON de configuración del pipeline.")
    parser.add_argument("--assess-only", action="store_true",
                        help="Solo evaluación global de desenfoque (sin detección).")
    parser.add_argument("--csv", action="store_true",
                        help="Exportar tablas de objetos y de análisis por región.")
    parser.add_argument("--no-restore", action="store_true",
                        help="No restaurar los objetos borrosos.")
    parser.add_argument("--parallel", action="store_true",
                        help="Ejecutar las estrategias de detección en paralelo.")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="Archivo de log opcional.")
    return parser


def process_file(controller: BlurDetectionController, path: str, out_dir: Path,
                 assess_only: bool, export_csv: bool) -> Optional[dict]:
    """
    Procesa un archivo y escribe sus salidas.

    Returns:
        Resumen serializable, o None si la imagen no se pudo leer
    """
    image = read_image_rgb(path)
    if image is None:
        logger.error(f"No se pudo leer la imagen: {path}")
        return None

    stem = Path(path).stem
    if assess_only:
        assessment = controller.assess_image(image)
        return {'file': path, **assessment.to_dict()}

    result = controller.process_image(image)
    summary = {'file': path, **result.to_dict()}

    if result.recomposed_image is not None:
        write_image_rgb(str(out_dir / f"{stem}_restored.png"), result.recomposed_image)
    if result.annotated_image is not None:
        write_image_rgb(str(out_dir / f"{stem}_annotated.png"), result.annotated_image)

    if export_csv:
        ok, msg = export_objects_csv(result.objects, str(out_dir / f"{stem}_objects.csv"))
        if not ok:
            logger.warning(msg)
        ok, msg = export_analyses_csv(result.analyses, str(out_dir / f"{stem}_regions.csv"))
        if not ok:
            logger.warning(msg)

    return summary


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    config = load_pipeline_config(args.config) if args.config else PipelineConfig()
    if args.no_restore:
        config.restore_blurred = False
    if args.parallel:
        config.parallel_detection = True

    controller = BlurDetectionController(config)

    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    summaries = []
    failures = 0
    for path in args.images:
        if os.path.splitext(path)[1].lower() not in SUPPORTED_IMAGE_EXTENSIONS:
            logger.warning(f"Extensión no soportada, se omite: {path}")
            failures += 1
            continue
        summary = process_file(controller, path, out_dir, args.assess_only, args.csv)
        if summary is None or summary.get('status') == 'ANALYSIS_FAILED':
            failures += 1
        if summary is not None:
            summaries.append(summary)
            print(json.dumps(summary, ensure_ascii=False))

    report_path = out_dir / "report.json"
    with open(report_path, 'w', encoding='utf-8') as f:
        json.dump(summaries, f, indent=2, ensure_ascii=False)
    logger.info(f"✅ Reporte guardado en {report_path}")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
