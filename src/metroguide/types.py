"""
Shared types and dataclasses for the MetroGuide guidance core.

Boxes, detections, position and distance buckets, and navigation instructions
exchanged between perception, signage and speech.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle in model space (0..model_input_size)."""
    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center_x(self) -> float:
        return (self.left + self.right) / 2.0

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)


@dataclass(frozen=True)
class Detection:
    """One labeled box produced by the external detector for a frame."""
    label: str
    confidence: float
    box: Box


class PositionBucket(Enum):
    """Horizontal zone of the frame, left to right."""
    FAR_LEFT = 0
    LEFT_CENTER = 1
    CENTER = 2
    RIGHT_CENTER = 3
    FAR_RIGHT = 4


class DistanceBucket(Enum):
    """Coarse distance class; value is the ranking ordinal."""
    NEAR = 0
    MID = 1
    FAR = 2


@dataclass(frozen=True)
class GuidanceResult:
    """Position/distance interpretation of a single detection."""
    label: str  # Resolved raw label (e.g. "escalera_norm")
    confidence: float
    position: PositionBucket
    distance: DistanceBucket
    distance_meters: Optional[float]  # Smoothed estimate, None when unavailable
    box: Box

    @property
    def cooldown_key(self) -> str:
        """Composite anti-flood key: label + position + distance bucket."""
        return f"{self.label.lower()}|{self.position.name}|{self.distance.name}"


class NavType(Enum):
    """Turn instruction at a wayfinding sign."""
    GO_STRAIGHT = "GO_STRAIGHT"
    TURN_LEFT = "TURN_LEFT"
    TURN_RIGHT = "TURN_RIGHT"


@dataclass(frozen=True)
class NavInstruction:
    """Turn instruction with a confidence in [0, 1]."""
    type: NavType
    confidence: float = 1.0
