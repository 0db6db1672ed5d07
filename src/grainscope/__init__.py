"""
GrainScope - Detección y restauración de desenfoque en fotografías de
objetos pequeños (granos, semillas, piezas).
"""

__version__ = "1.0.0"
