from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .decode import Candidates, decode_output
from .errors import InvalidInput
from .nms import NMSConfig, check_threshold, nms
from .types import Detection, PadInfo, Rect

COORDINATE_SPACES = ("padded", "original")


@dataclass(frozen=True)
class DetectPostConfig:
    """
    Post-processing settings.

    coordinate_space: "padded" reports boxes on the letterboxed canvas;
    "original" removes the padding offsets and scale and clamps to the
    original image.
    """

    conf_threshold: float = 0.5
    iou_threshold: float = 0.5
    max_detections: Optional[int] = 300
    # If False, runs NMS per class then merges results by score.
    class_agnostic_nms: bool = True
    # Optional list of class IDs to keep; None keeps all.
    class_ids: Optional[Sequence[int]] = None
    coordinate_space: str = "padded"

    def __post_init__(self) -> None:
        check_threshold("conf_threshold", self.conf_threshold)
        check_threshold("iou_threshold", self.iou_threshold)
        if self.max_detections is not None and self.max_detections < 0:
            raise InvalidInput("max_detections must be >= 0")
        if self.coordinate_space not in COORDINATE_SPACES:
            raise InvalidInput(f"coordinate_space must be one of {COORDINATE_SPACES}, got {self.coordinate_space!r}")


@dataclass(frozen=True, eq=False)
class DetectionResult:
    candidates: Candidates
    # Original anchor indices that survived NMS, best first.
    keep: Tuple[int, ...]
    detections: Tuple[Detection, ...]
    coordinate_space: str = "padded"
    pad_info: Optional[PadInfo] = None

    def __len__(self) -> int:
        return len(self.detections)


def to_original(box: Rect, pad_info: PadInfo) -> Rect:
    """
    Map a box from letterbox canvas coordinates back onto the original image.
    """

    orig_w, orig_h = pad_info.orig_size
    r = pad_info.ratio if pad_info.ratio > 0 else 1.0
    x1, y1, x2, y2 = box.as_xyxy()

    x1 = float(np.clip((x1 - pad_info.left) / r, 0, orig_w))
    x2 = float(np.clip((x2 - pad_info.left) / r, 0, orig_w))
    y1 = float(np.clip((y1 - pad_info.top) / r, 0, orig_h))
    y2 = float(np.clip((y2 - pad_info.top) / r, 0, orig_h))

    x, y = int(round(x1)), int(round(y1))
    return Rect(x=x, y=y, width=int(round(x2)) - x, height=int(round(y2)) - y)


def scale_detections(detections: Sequence[Detection], pad_info: PadInfo) -> List[Detection]:
    return [
        Detection(
            box=to_original(d.box, pad_info),
            score=d.score,
            class_index=d.class_index,
            anchor_index=d.anchor_index,
            class_name=d.class_name,
        )
        for d in detections
    ]


class DetectPostprocessor:
    """
    Raw network output -> final detections.

    Supported layouts (per image):
    - (N, 5 + C): [cx, cy, w, h, obj, class_scores...]
    - (1, N, 5 + C): same with a batch axis
    """

    def __init__(self, cfg: DetectPostConfig = DetectPostConfig()):
        self.cfg = cfg

    def process(
        self,
        outputs: Union[np.ndarray, Sequence[np.ndarray]],
        pad_info: Optional[PadInfo] = None,
        class_names: Optional[Sequence[str]] = None,
    ) -> DetectionResult:
        num_classes = len(class_names) if class_names else None
        candidates = decode_output(outputs, num_classes=num_classes)

        keep = self.suppress(candidates)
        # keep holds original anchor indices; class lookups go through them
        detections = candidates.select(keep, class_names)

        space = self.cfg.coordinate_space
        if space == "original":
            if pad_info is None:
                raise InvalidInput("coordinate_space='original' needs the PadInfo from letterbox().")
            detections = scale_detections(detections, pad_info)

        return DetectionResult(
            candidates=candidates,
            keep=tuple(keep),
            detections=tuple(detections),
            coordinate_space=space,
            pad_info=pad_info,
        )

    def suppress(self, candidates: Candidates) -> List[int]:
        if len(candidates) == 0:
            return []

        eligible = np.ones(len(candidates), dtype=bool)
        if self.cfg.class_ids is not None:
            eligible &= np.isin(candidates.class_indices, np.asarray(list(self.cfg.class_ids), dtype=np.int64))

        nms_cfg = NMSConfig(
            confidence_threshold=self.cfg.conf_threshold,
            iou_threshold=self.cfg.iou_threshold,
            max_detections=self.cfg.max_detections,
        )

        if self.cfg.class_agnostic_nms:
            return self._suppress_subset(candidates, np.flatnonzero(eligible), nms_cfg)

        kept: List[int] = []
        for cls in np.unique(candidates.class_indices[eligible]):
            idx = np.flatnonzero(eligible & (candidates.class_indices == cls))
            kept.extend(self._suppress_subset(candidates, idx, nms_cfg))

        # merge: score descending, anchor index ascending on ties
        kept.sort(key=lambda i: (-float(candidates.scores[i]), i))
        if self.cfg.max_detections is not None:
            kept = kept[: self.cfg.max_detections]
        return kept

    @staticmethod
    def _suppress_subset(candidates: Candidates, idx: np.ndarray, nms_cfg: NMSConfig) -> List[int]:
        if idx.size == 0:
            return []
        local = nms(candidates.boxes[idx], candidates.scores[idx], nms_cfg)
        return [int(idx[k]) for k in local]
