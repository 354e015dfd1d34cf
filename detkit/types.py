from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned box in pixel coordinates (top-left corner + size).

    Coordinates are not clamped: x / y may be negative or past the canvas.
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return max(self.width, 0) * max(self.height, 0)

    def as_xywh(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height

    def as_xyxy(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True, eq=False)
class PadInfo:
    """
    Result of letterboxing.

    `top` / `left` are the offsets of row/col 0 of the resized content inside
    `image`; `ratio` is the scale applied to the original image.
    """

    image: np.ndarray
    top: int
    left: int
    bottom: int = 0
    right: int = 0
    ratio: float = 1.0
    orig_size: Tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class Detection:
    box: Rect
    score: float
    class_index: int
    # Row of the raw output tensor this detection was decoded from.
    anchor_index: int
    class_name: Optional[str] = None
