from __future__ import annotations

from pathlib import Path
from typing import Union

import cv2
import numpy as np

from .errors import BackendError, InvalidInput

PathLike = Union[str, Path]


def read_image(path: PathLike) -> np.ndarray:
    img = cv2.imread(str(path))
    if img is None:
        raise InvalidInput(f"Could not read image at path: {path}")
    return img


def write_image(path: PathLike, image: np.ndarray) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    try:
        ok = cv2.imwrite(str(out), image)
    except cv2.error as e:
        raise BackendError(f"Failed to write output image: {out}: {e}") from e
    if not ok:
        raise BackendError(f"Failed to write output image: {out}")
    return out
