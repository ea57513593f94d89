"""
MetroGuide: spoken guidance for visually-impaired riders on a metro line.

Fuses object detections, recognized speech and OCR'd signage into a single
de-duplicated stream of spoken guidance about the closest obstacle and the
turn to take at each wayfinding sign.
"""

__version__ = "1.0.0"
__description__ = "Guidance fusion core for metro wayfinding"

from .utils.logging_config import setup_logger

logger = setup_logger(__name__)

__all__ = ["logger"]
