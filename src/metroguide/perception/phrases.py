"""Spoken phrasing of guidance results."""

from typing import Dict, Iterable, Optional

from ..types import DistanceBucket, GuidanceResult, PositionBucket
from .labels import display_label

POSITION_PHRASES = {
    PositionBucket.FAR_LEFT: "to the left",
    PositionBucket.LEFT_CENTER: "to the left",
    PositionBucket.CENTER: "ahead",
    PositionBucket.RIGHT_CENTER: "to the right",
    PositionBucket.FAR_RIGHT: "to the right",
}

BUCKET_PHRASES = {
    DistanceBucket.NEAR: "near",
    DistanceBucket.MID: "mid",
    DistanceBucket.FAR: "far",
}


def distance_phrase(result: GuidanceResult) -> str:
    """Metric bands when meters are known, otherwise the bucket name."""
    meters = result.distance_meters
    if meters is None:
        return BUCKET_PHRASES[result.distance]
    if meters < 1.0:
        return "very close"
    if meters < 2.0:
        return "close"
    if meters < 4.0:
        return "medium distance"
    return f"far ({round(meters)} meters)"


def format_guidance(
    result: GuidanceResult,
    display_names: Optional[Dict[str, str]] = None,
    suppress_unless_far: Iterable[str] = (),
) -> str:
    """
    "<label> <position>, <distance>." for one result.

    Returns "" (nothing to say) for labels that are only announced when FAR,
    such as tactile paving the rider is already standing on.
    """
    raw = result.label.lower()
    if raw in {s.lower() for s in suppress_unless_far} and result.distance is not DistanceBucket.FAR:
        return ""
    name = display_label(result.label, display_names)
    return f"{name} {POSITION_PHRASES[result.position]}, {distance_phrase(result)}."
