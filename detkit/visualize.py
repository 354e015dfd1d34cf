from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from .errors import BackendError, InvalidInput
from .types import Detection

# Fallback label when no class names are known.
PLACEHOLDER_LABEL = "A"


def _color_for_class_index(class_index: int) -> Tuple[int, int, int]:
    """
    Deterministic BGR color for a class index (OpenCV expects BGR).
    """

    palette = [
        (255, 56, 56),
        (255, 157, 151),
        (255, 112, 31),
        (255, 178, 29),
        (207, 210, 49),
        (72, 249, 10),
        (146, 204, 23),
        (61, 219, 134),
        (26, 147, 52),
        (0, 212, 187),
        (44, 153, 168),
        (0, 194, 255),
        (52, 69, 147),
        (100, 115, 255),
        (0, 24, 236),
        (132, 56, 255),
    ]
    return palette[class_index % len(palette)]


def _label_for(det: Detection, class_names: Optional[Sequence[str]], show_score: bool) -> str:
    if det.class_name is not None:
        label = det.class_name
    elif class_names is not None and 0 <= det.class_index < len(class_names):
        label = class_names[det.class_index]
    else:
        label = PLACEHOLDER_LABEL
    if show_score:
        label = f"{label} {det.score:.2f}"
    return label


def render_detections(
    image: np.ndarray,
    detections: Iterable[Detection],
    *,
    class_names: Optional[Sequence[str]] = None,
    show_labels: bool = False,
    show_score: bool = True,
    color: Optional[Tuple[int, int, int]] = None,
    box_thickness: int = 1,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw detection rectangles on a copy of `image` and return the copy.

    Boxes are drawn as given; pass detections in the same coordinate space
    as `image` (letterboxed canvas or original image).
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for render_detections(). Install with `pip install opencv-python`.") from e

    if image is None or not hasattr(image, "shape") or image.ndim not in (2, 3):
        raise InvalidInput(f"Expected an image array (H, W[, C]), got {getattr(image, 'shape', None)}")

    out = image.copy()
    h, w = out.shape[:2]

    try:
        for det in detections:
            if color is not None:
                box_color = color
            elif show_labels:
                box_color = _color_for_class_index(det.class_index)
            else:
                box_color = (0, 0, 0)
            cv2.rectangle(out, det.box.as_xywh(), box_color, thickness=box_thickness, lineType=cv2.LINE_8)

            if not show_labels:
                continue

            label = _label_for(det, class_names, show_score)
            (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
            x1i = int(np.clip(det.box.x, 0, w - 1))
            y1i = int(np.clip(det.box.y, 0, h - 1))
            # Place label above the box if possible, else inside.
            y_text_top = y1i - th - baseline
            if y_text_top < 0:
                y_text_top = y1i

            x_text_right = min(x1i + tw, w - 1)
            y_text_bottom = min(y_text_top + th + baseline, h - 1)

            cv2.rectangle(out, (x1i, y_text_top), (x_text_right, y_text_bottom), box_color, thickness=-1)
            cv2.putText(
                out,
                label,
                (x1i, min(y_text_top + th, h - 1)),
                cv2.FONT_HERSHEY_SIMPLEX,
                font_scale,
                (255, 255, 255),
                thickness=font_thickness,
                lineType=cv2.LINE_AA,
            )
    except cv2.error as e:
        raise BackendError(f"Drawing detections failed: {e}") from e

    return out
