from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from .errors import ShapeError
from .tensor import TensorView
from .types import Detection, Rect

# cx, cy, w, h, objectness
BOX_ATTRIBUTES = 5


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr.flags.writeable = False
    return arr


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return (np.sign(values) * np.floor(np.abs(values) + 0.5)).astype(np.int64)


@dataclass(frozen=True, eq=False)
class Candidates:
    """
    Every decoded anchor, in anchor order.

    boxes:         (N, 4) int64 as x, y, width, height
    scores:        (N,) float64, objectness * best class score
    class_indices: (N,) int64, argmax over the class channels

    Arrays are read-only; filtering produces new objects.
    """

    boxes: np.ndarray
    scores: np.ndarray
    class_indices: np.ndarray

    def __len__(self) -> int:
        return int(self.scores.shape[0])

    @property
    def anchor_indices(self) -> np.ndarray:
        return np.arange(len(self), dtype=np.int64)

    def box(self, anchor_index: int) -> Rect:
        x, y, w, h = (int(v) for v in self.boxes[anchor_index])
        return Rect(x=x, y=y, width=w, height=h)

    def detection(self, anchor_index: int, class_names: Optional[Sequence[str]] = None) -> Detection:
        class_index = int(self.class_indices[anchor_index])
        name = None
        if class_names is not None and 0 <= class_index < len(class_names):
            name = class_names[class_index]
        return Detection(
            box=self.box(anchor_index),
            score=float(self.scores[anchor_index]),
            class_index=class_index,
            anchor_index=int(anchor_index),
            class_name=name,
        )

    def select(self, anchor_indices: Iterable[int], class_names: Optional[Sequence[str]] = None) -> List[Detection]:
        """
        Build detections for the given original anchor indices, in that order.
        """

        return [self.detection(int(i), class_names) for i in anchor_indices]


def decode(raw_output: object, num_anchors: int, num_attributes: int) -> Candidates:
    """
    Decode an (anchors, 5 + C) prediction matrix:
    [cx, cy, w, h, objectness, class_0 ... class_C-1].

    No thresholding happens here; every anchor yields a candidate.
    """

    if num_attributes <= BOX_ATTRIBUTES:
        raise ShapeError(f"num_attributes must be > {BOX_ATTRIBUTES} (4 box values + objectness + classes), got {num_attributes}")

    view = TensorView.from_array(raw_output, num_anchors, num_attributes)

    cx = view.column(0).astype(np.float64)
    cy = view.column(1).astype(np.float64)
    w = view.column(2).astype(np.float64)
    h = view.column(3).astype(np.float64)
    objectness = view.column(4).astype(np.float64)

    class_scores = view.columns(BOX_ATTRIBUTES, num_attributes).astype(np.float64) * objectness[:, None]
    # argmax returns the first maximum, so ties go to the lower class index
    class_indices = np.argmax(class_scores, axis=1).astype(np.int64)
    scores = class_scores[np.arange(num_anchors), class_indices]

    boxes = np.stack(
        [
            _round_half_away(cx - w / 2),
            _round_half_away(cy - h / 2),
            _round_half_away(w),
            _round_half_away(h),
        ],
        axis=1,
    ).reshape(num_anchors, 4)

    return Candidates(boxes=_frozen(boxes), scores=_frozen(scores), class_indices=_frozen(class_indices))


def decode_output(
    outputs: Union[np.ndarray, Sequence[np.ndarray]],
    num_classes: Optional[int] = None,
) -> Candidates:
    """
    Decode the primary output of a forward pass.

    Accepts a single array or the list of arrays returned by a backend (the
    first one is used). Shapes (N, 5 + C) and (1, N, 5 + C) are supported.
    """

    if isinstance(outputs, (list, tuple)):
        if not outputs:
            raise ShapeError("Network returned no outputs.")
        outputs = outputs[0]

    p = np.asarray(outputs)
    if p.ndim == 3:
        if p.shape[0] != 1:
            raise ShapeError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
        p = p[0]
    if p.ndim != 2:
        raise ShapeError(f"Unsupported output shape: {p.shape}")

    num_anchors, num_attributes = p.shape
    if num_classes is not None:
        expected = BOX_ATTRIBUTES + num_classes
        if num_attributes != expected:
            raise ShapeError(
                f"Output has {num_attributes} attributes per anchor, expected {expected} for {num_classes} classes"
            )
    return decode(p, num_anchors, num_attributes)
