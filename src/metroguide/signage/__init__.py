"""Signage module: sign cropping, OCR validation and turn inference."""
from .cropping import crop_model_box, fill_center_transform, map_box_to_frame, model_view
from .turn_inference import format_nav_phrase, infer_by_geometry, override_with_text, wrong_direction_phrase
from .validator import (
    OcrReport,
    SignageJob,
    SignageOutcome,
    SignageValidator,
    names_terminal,
    read_direction,
)

__all__ = [
    'SignageValidator',
    'SignageJob',
    'SignageOutcome',
    'OcrReport',
    'read_direction',
    'names_terminal',
    'crop_model_box',
    'fill_center_transform',
    'map_box_to_frame',
    'model_view',
    'infer_by_geometry',
    'override_with_text',
    'format_nav_phrase',
    'wrong_direction_phrase',
]
