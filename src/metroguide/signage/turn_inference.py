"""
Turn inference at wayfinding signs.

Geometry gives a first guess from where the sign sits horizontally; arrows or
direction words read by OCR override it.
"""

from ..types import Box, DistanceBucket, NavInstruction, NavType
from ..utils.text import normalize_text

RIGHT_ARROWS = ("→", "⇒", "➔", "➜")
LEFT_ARROWS = ("←", "⇐")
UP_ARROWS = ("↑", "⇑")

RIGHT_WORDS = {"right", "derecha"}
LEFT_WORDS = {"left", "izquierda"}
STRAIGHT_WORDS = {"straight", "ahead", "recto", "frente"}


def infer_by_geometry(box: Box, frame_width: float, threshold: float = 0.15, hysteresis: float = 0.05) -> NavInstruction:
    """
    Turn from the sign's offset to the frame center.

    The offset is normalized to [-1, 1]; beyond ``threshold + hysteresis``
    either way is a turn, anything closer to the center is straight ahead.
    """
    center = frame_width / 2.0
    offset = (box.center_x - center) / center
    offset = min(max(offset, -1.0), 1.0)
    limit = threshold + hysteresis
    if offset > limit:
        return NavInstruction(NavType.TURN_RIGHT, confidence=offset)
    if offset < -limit:
        return NavInstruction(NavType.TURN_LEFT, confidence=-offset)
    return NavInstruction(NavType.GO_STRAIGHT, confidence=1.0 - abs(offset))


def override_with_text(raw_text: str, fallback: NavInstruction) -> NavInstruction:
    """Arrows / direction words in the OCR text win over geometry."""
    if not raw_text or not raw_text.strip():
        return fallback
    words = set(normalize_text(raw_text).split(" "))
    if any(a in raw_text for a in RIGHT_ARROWS) or words & RIGHT_WORDS:
        return NavInstruction(NavType.TURN_RIGHT, 1.0)
    if any(a in raw_text for a in LEFT_ARROWS) or words & LEFT_WORDS:
        return NavInstruction(NavType.TURN_LEFT, 1.0)
    if any(a in raw_text for a in UP_ARROWS) or words & STRAIGHT_WORDS:
        return NavInstruction(NavType.GO_STRAIGHT, 1.0)
    return fallback


def format_nav_phrase(nav: NavInstruction, distance: DistanceBucket) -> str:
    """Turn plus urgency from how far away the sign is."""
    if nav.type is NavType.GO_STRAIGHT:
        if distance is DistanceBucket.FAR:
            return "Continue straight toward the sign."
        if distance is DistanceBucket.NEAR:
            return "Now, continue straight."
        return "In a few meters, continue straight."

    side = "right" if nav.type is NavType.TURN_RIGHT else "left"
    if distance is DistanceBucket.NEAR:
        return f"Now, turn {side}."
    if distance is DistanceBucket.MID:
        return f"In a few meters, turn {side}."
    return f"Continue straight toward the sign, then turn {side}."


def wrong_direction_phrase(terminal: str) -> str:
    return f"Wrong platform direction. Head toward {terminal}."
