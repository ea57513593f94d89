"""
Detector output adapters.

Maps ultralytics-style results (``boxes`` with ``cls``, ``conf``, ``xyxy``)
into Detection lists in the square model coordinate space.
"""

from typing import List, Optional, Tuple

from ..types import Box, Detection

MAX_DETECTIONS = 50


def detections_from_yolo(
    yolo_results,
    model_input_size: int = 640,
    min_confidence: float = 0.30,
    image_size: Optional[Tuple[int, int]] = None,
) -> List[Detection]:
    """
    Convert one frame of YOLO results to Detections.

    Boxes are rescaled from image pixels to ``model_input_size`` on each
    axis. Classes the model cannot name are emitted as ``obj<N>`` so the
    label table can resolve them later.

    Args:
        yolo_results: Single ultralytics Results object (or None)
        model_input_size: Side of the square model coordinate space
        min_confidence: Detections at or below this score are dropped
        image_size: (width, height) of the source image; read from
                    ``orig_shape`` when omitted

    Returns:
        Up to 50 detections, highest confidence first
    """
    if yolo_results is None or not hasattr(yolo_results, "boxes"):
        return []
    boxes = yolo_results.boxes
    if boxes is None or len(boxes) == 0:
        return []

    if image_size is None:
        orig_h, orig_w = getattr(yolo_results, "orig_shape", (model_input_size, model_input_size))[:2]
    else:
        orig_w, orig_h = image_size
    sx = model_input_size / float(orig_w)
    sy = model_input_size / float(orig_h)
    names = getattr(yolo_results, "names", None) or {}

    detections = []
    for box in boxes:
        class_id = int(box.cls.cpu().item())
        confidence = float(box.conf.cpu().item())
        if confidence <= min_confidence:
            continue
        x1, y1, x2, y2 = box.xyxy.cpu().numpy()[0].tolist()
        label = names.get(class_id, f"obj{class_id}") if isinstance(names, dict) else f"obj{class_id}"
        detections.append(Detection(
            label=str(label),
            confidence=confidence,
            box=Box(x1 * sx, y1 * sy, x2 * sx, y2 * sy),
        ))

    detections.sort(key=lambda d: d.confidence, reverse=True)
    return detections[:MAX_DETECTIONS]
