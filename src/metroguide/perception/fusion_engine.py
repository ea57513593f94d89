"""
Perception Fusion Engine - detections to positional/distance guidance.

Converts one frame's detections into GuidanceResults (position bucket,
distance bucket, smoothed meters) and picks the single best target.

Best-target policy: minimum distance score with strict target filtering. When
a target label is set and nothing in the frame matches it, there is no target;
the engine never falls back to a different object.
"""

import logging
from typing import List, Optional, Sequence

from ..config import PerceptionConfig
from ..temporal import DistanceSmoother
from ..types import Detection, GuidanceResult
from .distance import (
    meters_bucket,
    pinhole_distance,
    position_bucket,
    pov_distance,
    ratio_bucket,
)
from .labels import LabelTable
from .phrases import format_guidance

logger = logging.getLogger(__name__)

# Confidence weight in the distance score; only breaks equal-distance ties
CONFIDENCE_EPSILON = 1e-3


class PerceptionFusionEngine:
    """
    Per-frame perception-to-language conversion.

    Usage:
        engine = PerceptionFusionEngine(PerceptionConfig())
        results = engine.analyze(detections, 640, 640, frame_id=12)
        best = engine.select_best(results)
        phrase = engine.format_phrase(best) if best else ""
    """

    def __init__(
        self,
        config: Optional[PerceptionConfig] = None,
        label_table: Optional[LabelTable] = None,
        target_label: Optional[str] = None,
    ):
        self.config = config or PerceptionConfig()
        if label_table is None:
            label_table = LabelTable.from_file(self.config.label_file)
        self.label_table = label_table
        self.smoother = DistanceSmoother(self.config.smoothing_alpha)
        self.target_label = target_label
        self.last_frame_id: Optional[int] = None
        self.dropped_frames = 0

    @property
    def target_label(self) -> Optional[str]:
        return self._target_label

    @target_label.setter
    def target_label(self, label: Optional[str]):
        label = label.strip().lower() if label else None
        self._target_label = label or None

    def estimate_meters(self, detection: Detection, label: str, frame_width: float, frame_height: float) -> Optional[float]:
        """Pinhole estimate if available, else point-of-view estimate, else None."""
        box = detection.box
        meters = pinhole_distance(
            self.config.known_height_for(label),
            self.config.focal_length_px,
            box.height,
            box.center_x,
            frame_width,
        )
        if meters is None:
            meters = pov_distance(self.config.pov_k, frame_height, box.bottom)
        return meters

    def analyze(
        self,
        detections: Sequence[Detection],
        frame_width: int,
        frame_height: int,
        frame_id: Optional[int] = None,
    ) -> List[GuidanceResult]:
        """
        Interpret all detections of one frame.

        Args:
            detections: Detector output for the frame (model-space boxes)
            frame_width: Width of the coordinate space
            frame_height: Height of the coordinate space
            frame_id: Monotonic frame number; stale or repeated ids are dropped

        Returns:
            One GuidanceResult per detection (empty for dropped frames)
        """
        if frame_width <= 0 or frame_height <= 0 or not detections:
            return []

        if frame_id is not None:
            if self.last_frame_id is not None and frame_id <= self.last_frame_id:
                self.dropped_frames += 1
                logger.debug(f"Dropping out-of-order frame {frame_id} (last {self.last_frame_id})")
                return []
            self.last_frame_id = frame_id

        staged = []
        samples = []
        for det in detections:
            label = self.label_table.resolve(det.label)
            position = position_bucket(det.box.center_x, frame_width)
            meters = self.estimate_meters(det, label, frame_width, frame_height)
            if meters is not None:
                samples.append(((label.lower(), position), meters))
            staged.append((det, label, position, meters is not None))

        smoothed = iter(self.smoother.update_batch(samples))

        results = []
        for det, label, position, has_meters in staged:
            if has_meters:
                meters = next(smoothed)
                distance = meters_bucket(meters, self.config.near_threshold_m, self.config.mid_threshold_m)
            else:
                meters = None
                distance = ratio_bucket(
                    det.box.height, frame_height, self.config.near_ratio, self.config.mid_ratio
                )
            results.append(GuidanceResult(
                label=label,
                confidence=det.confidence,
                position=position,
                distance=distance,
                distance_meters=meters,
                box=det.box,
            ))
        return results

    @staticmethod
    def distance_score(result: GuidanceResult) -> float:
        """Meters (or bucket ordinal) minus a tiny confidence bonus."""
        base = result.distance_meters if result.distance_meters is not None else float(result.distance.value)
        return base - result.confidence * CONFIDENCE_EPSILON

    def select_best(self, results: Sequence[GuidanceResult]) -> Optional[GuidanceResult]:
        """
        Closest candidate, restricted to the target label when one is set.

        Returns:
            Best GuidanceResult, or None if there is no (matching) candidate
        """
        candidates = list(results)
        if self.target_label:
            candidates = [r for r in candidates if r.label.strip().lower() == self.target_label]
        if not candidates:
            return None
        return min(candidates, key=self.distance_score)

    def format_phrase(self, result: GuidanceResult) -> str:
        return format_guidance(
            result,
            display_names=self.config.display_names,
            suppress_unless_far=self.config.suppress_unless_far,
        )

    def reset(self):
        """Reset smoothing state and frame ordering."""
        self.smoother.reset()
        self.last_frame_id = None
        self.dropped_frames = 0
