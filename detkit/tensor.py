from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .errors import ShapeError


@dataclass(frozen=True, eq=False)
class TensorView:
    """
    Read-only 2-D view over a raw network output.

    The element count is checked against (rows, cols) before any indexed read,
    so a mismatched layout fails up front instead of reading the wrong cells.
    """

    data: np.ndarray
    rows: int
    cols: int

    @classmethod
    def from_array(cls, raw: object, rows: int, cols: int) -> "TensorView":
        if rows < 0 or cols <= 0:
            raise ShapeError(f"Invalid tensor layout ({rows}, {cols})")

        arr = np.asarray(raw)
        if arr.size != rows * cols:
            raise ShapeError(
                f"Tensor has {arr.size} elements, expected {rows} x {cols} = {rows * cols} (shape {arr.shape})"
            )

        view = arr.reshape(rows, cols).view()
        view.flags.writeable = False
        return cls(data=view, rows=rows, cols=cols)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.cols

    def columns(self, start: int, stop: int) -> np.ndarray:
        if not 0 <= start <= stop <= self.cols:
            raise IndexError(f"Column range [{start}, {stop}) out of bounds for {self.cols} columns")
        return self.data[:, start:stop]

    def column(self, index: int) -> np.ndarray:
        if not 0 <= index < self.cols:
            raise IndexError(f"Column {index} out of bounds for {self.cols} columns")
        return self.data[:, index]

    def row(self, index: int) -> np.ndarray:
        if not 0 <= index < self.rows:
            raise IndexError(f"Row {index} out of bounds for {self.rows} rows")
        return self.data[index]
