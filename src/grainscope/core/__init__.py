"""Núcleo del pipeline: detección, análisis de desenfoque y restauración."""
