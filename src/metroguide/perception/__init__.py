"""Perception module: detections to position/distance guidance."""
from .adapters import detections_from_yolo
from .distance import meters_bucket, pinhole_distance, position_bucket, pov_distance, ratio_bucket
from .fusion_engine import PerceptionFusionEngine
from .labels import LabelTable, display_label
from .phrases import distance_phrase, format_guidance

__all__ = [
    'PerceptionFusionEngine',
    'LabelTable',
    'display_label',
    'detections_from_yolo',
    'distance_phrase',
    'format_guidance',
    'meters_bucket',
    'pinhole_distance',
    'position_bucket',
    'pov_distance',
    'ratio_bucket',
]
