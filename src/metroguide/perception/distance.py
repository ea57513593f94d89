"""
Geometry-to-bucket conversions and metric distance estimators.

Two estimators are available; the pinhole model is preferred and the
point-of-view model is the fallback. They are never averaged.
"""

import math
from typing import Optional

from ..types import DistanceBucket, PositionBucket

NUM_ZONES = 5


def position_bucket(center_x: float, frame_width: float) -> PositionBucket:
    """
    Zone of a horizontal center among 5 equal-width zones.

    Zone ``floor(5 * cx / width)`` clamped to [0, 4]; a center exactly on a
    boundary belongs to the zone on its right.
    """
    if frame_width <= 0:
        raise ValueError(f"frame_width must be positive, got {frame_width}")
    zone = math.floor(NUM_ZONES * center_x / frame_width)
    zone = min(max(zone, 0), NUM_ZONES - 1)
    return PositionBucket(zone)


def ratio_bucket(box_height: float, frame_height: float, near_ratio: float, mid_ratio: float) -> DistanceBucket:
    """Box-height heuristic used when no metric estimate exists."""
    rel = box_height / frame_height if frame_height > 0 else 0.0
    if rel >= near_ratio:
        return DistanceBucket.NEAR
    if rel >= mid_ratio:
        return DistanceBucket.MID
    return DistanceBucket.FAR


def meters_bucket(meters: float, near_threshold: float, mid_threshold: float) -> DistanceBucket:
    """Bucket for a metric distance."""
    if meters < near_threshold:
        return DistanceBucket.NEAR
    if meters < mid_threshold:
        return DistanceBucket.MID
    return DistanceBucket.FAR


def _valid(value: float) -> Optional[float]:
    return value if math.isfinite(value) and value > 0 else None


def pinhole_distance(
    known_height_m: Optional[float],
    focal_length_px: Optional[float],
    box_height_px: float,
    box_center_x: float,
    frame_width: float,
) -> Optional[float]:
    """
    Pinhole estimate corrected for the off-axis angle.

    ``d = H * f / h`` then ``d *= cos(atan((cx - W/2) / f))``.
    """
    if not known_height_m or not focal_length_px or box_height_px <= 0:
        return None
    distance = known_height_m * focal_length_px / box_height_px
    angle = math.atan((box_center_x - frame_width / 2.0) / focal_length_px)
    return _valid(distance * math.cos(angle))


def pov_distance(pov_k: Optional[float], frame_height: float, box_bottom: float) -> Optional[float]:
    """Point-of-view estimate ``K / (frame_height - bottom)``."""
    if not pov_k:
        return None
    divisor = frame_height - box_bottom
    if divisor <= 0:
        return None
    return _valid(pov_k / divisor)
