"""
Model-space to frame-pixel mapping for sign crops.

The preview is displayed fill-center: the square model space is scaled by the
larger of the two axis factors and centered, so part of it may fall outside
the frame. Crops use the same transform so they line up with the overlay.
"""

from typing import Optional, Tuple

import cv2
import numpy as np

from ..types import Box


def fill_center_transform(frame_width: int, frame_height: int, model_size: int = 640) -> Tuple[float, float, float]:
    """
    Uniform scale and centering offsets from model space to frame pixels.

    Returns:
        (scale, offset_x, offset_y)
    """
    scale = max(frame_width / float(model_size), frame_height / float(model_size))
    offset_x = (frame_width - model_size * scale) / 2.0
    offset_y = (frame_height - model_size * scale) / 2.0
    return scale, offset_x, offset_y


def map_box_to_frame(box: Box, frame_width: int, frame_height: int, model_size: int = 640) -> Tuple[int, int, int, int]:
    """Model-space box to clamped integer pixel bounds (left, top, right, bottom)."""
    scale, off_x, off_y = fill_center_transform(frame_width, frame_height, model_size)

    def clamp(v: float, hi: int) -> int:
        return int(min(max(v, 0), hi))

    return (
        clamp(off_x + box.left * scale, frame_width),
        clamp(off_y + box.top * scale, frame_height),
        clamp(off_x + box.right * scale, frame_width),
        clamp(off_y + box.bottom * scale, frame_height),
    )


def crop_model_box(frame: np.ndarray, box: Box, model_size: int = 640) -> Optional[np.ndarray]:
    """
    Crop a model-space box out of the full-resolution frame.

    Returns:
        A copy of the region, or None if it is empty after clamping
    """
    if frame is None or frame.size == 0:
        return None
    height, width = frame.shape[:2]
    left, top, right, bottom = map_box_to_frame(box, width, height, model_size)
    if right <= left or bottom <= top:
        return None
    return frame[top:bottom, left:right].copy()


def model_view(frame: np.ndarray, model_size: int = 640) -> np.ndarray:
    """
    Square model-space image of a frame, under the same transform as the crops.

    The frame is centered on a black square of side max(width, height) and
    resized to ``model_size``, so detector boxes on this image map back to the
    frame through ``map_box_to_frame``.
    """
    height, width = frame.shape[:2]
    side = max(width, height)
    pad_x = (side - width) // 2
    pad_y = (side - height) // 2
    squared = cv2.copyMakeBorder(
        frame,
        pad_y, side - height - pad_y,
        pad_x, side - width - pad_x,
        cv2.BORDER_CONSTANT,
        value=0,
    )
    return cv2.resize(squared, (model_size, model_size), interpolation=cv2.INTER_AREA)
