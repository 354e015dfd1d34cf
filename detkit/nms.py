from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .errors import InvalidThreshold, ShapeError
from .types import Rect


@dataclass(frozen=True)
class NMSConfig:
    confidence_threshold: float = 0.5
    iou_threshold: float = 0.5
    max_detections: Optional[int] = None


def check_threshold(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise InvalidThreshold(f"{name} must be within [0, 1], got {value}")


def iou(a: Rect, b: Rect) -> float:
    ax1, ay1, ax2, ay2 = a.as_xyxy()
    bx1, by1, bx2, by2 = b.as_xyxy()
    inter = max(0, min(ax2, bx2) - max(ax1, bx1)) * max(0, min(ay2, by2) - max(ay1, by1))
    union = a.area + b.area - inter
    if union <= 0:
        return 0.0
    return inter / union


def _iou_one_to_many(boxes: np.ndarray, i: int, others: np.ndarray) -> np.ndarray:
    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 0] + boxes[:, 2]
    y2 = boxes[:, 1] + boxes[:, 3]
    areas = np.maximum(boxes[:, 2], 0) * np.maximum(boxes[:, 3], 0)

    xx1 = np.maximum(x1[i], x1[others])
    yy1 = np.maximum(y1[i], y1[others])
    xx2 = np.minimum(x2[i], x2[others])
    yy2 = np.minimum(y2[i], y2[others])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    union = areas[i] + areas[others] - inter
    out = np.zeros(others.shape[0], dtype=np.float64)
    np.divide(inter, union, out=out, where=union > 0)
    return out


def suppress(
    boxes: np.ndarray,
    scores: np.ndarray,
    confidence_threshold: float,
    iou_threshold: float,
    max_detections: Optional[int] = None,
) -> List[int]:
    """
    Greedy NMS. Expects boxes shape (N, 4) as x, y, width, height and scores shape (N,).

    Returns the indices (into `boxes`) of the kept boxes, best score first.
    Equal scores keep their input order.
    """

    check_threshold("confidence_threshold", confidence_threshold)
    check_threshold("iou_threshold", iou_threshold)

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.shape[0] != scores.shape[0]:
        raise ShapeError(f"Got {boxes.shape[0]} boxes but {scores.shape[0]} scores")

    candidates = np.flatnonzero(scores >= confidence_threshold)
    # stable sort keeps ascending index among equal scores
    order = candidates[np.argsort(-scores[candidates], kind="stable")]

    keep: List[int] = []
    while order.size > 0:
        if max_detections is not None and len(keep) >= max_detections:
            break
        i = int(order[0])
        keep.append(i)

        rest = order[1:]
        overlaps = _iou_one_to_many(boxes, i, rest)
        order = rest[overlaps <= iou_threshold]

    return keep


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> List[int]:
    return suppress(
        boxes,
        scores,
        confidence_threshold=cfg.confidence_threshold,
        iou_threshold=cfg.iou_threshold,
        max_detections=cfg.max_detections,
    )
