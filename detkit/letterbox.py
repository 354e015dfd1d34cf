from __future__ import annotations

import numbers
from typing import Tuple, Union

import numpy as np

from .errors import BackendError, InvalidInput
from .types import PadInfo


def _side(value: object, target_size: object) -> int:
    if not isinstance(value, numbers.Integral):
        raise InvalidInput(f"target_size must be an int or (width, height) of ints, got {target_size!r}")
    return int(value)


def _target_wh(target_size: Union[int, Tuple[int, int]]) -> Tuple[int, int]:
    if isinstance(target_size, numbers.Integral):
        side = _side(target_size, target_size)
        return side, side
    if not isinstance(target_size, (tuple, list)) or len(target_size) != 2:
        raise InvalidInput(f"target_size must be an int or (width, height), got {target_size!r}")
    return _side(target_size[0], target_size), _side(target_size[1], target_size)


def _round_half_away(value: float) -> int:
    return int(np.floor(value + 0.5))


def letterbox(
    image: np.ndarray,
    target_size: Union[int, Tuple[int, int]] = (640, 640),
    allow_upscale: bool = True,
    color: Tuple[int, int, int] = (114, 114, 114),
) -> PadInfo:
    """
    Resize keeping aspect ratio, then pad to exactly `target_size` (width, height).

    Padding is split with a -0.1/+0.1 bias before rounding so that
    top + bottom and left + right always add up to the total padding.
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    if image is None or not hasattr(image, "shape") or image.ndim not in (2, 3):
        raise InvalidInput(f"Expected an image array (H, W[, C]), got {getattr(image, 'shape', None)}")

    h, w = image.shape[:2]
    new_w, new_h = _target_wh(target_size)
    if w <= 0 or h <= 0:
        raise InvalidInput(f"Image dimensions must be positive, got {w}x{h}")
    if new_w <= 0 or new_h <= 0:
        raise InvalidInput(f"Target size must be positive, got {new_w}x{new_h}")

    # Scale ratio (new / old)
    r = min(new_w / w, new_h / h)
    if not allow_upscale:  # only scale down
        r = min(r, 1.0)

    resized_w = max(_round_half_away(w * r), 1)
    resized_h = max(_round_half_away(h * r), 1)
    dw, dh = new_w - resized_w, new_h - resized_h

    top, bottom = int(round(dh / 2 - 0.1)), int(round(dh / 2 + 0.1))
    left, right = int(round(dw / 2 - 0.1)), int(round(dw / 2 + 0.1))

    try:
        if (w, h) != (resized_w, resized_h):
            image = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)
        padded = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=color)
    except cv2.error as e:
        raise BackendError(f"letterbox failed for {w}x{h} -> {new_w}x{new_h}: {e}") from e

    return PadInfo(
        image=padded,
        top=top,
        left=left,
        bottom=bottom,
        right=right,
        ratio=r,
        orig_size=(w, h),
    )


def to_blob(pad_info: PadInfo, swap_rb: bool = True) -> np.ndarray:
    """
    Build the (1, 3, H, W) float32 network input in [0, 1] from a letterboxed image.
    """

    img = pad_info.image
    if img.ndim == 2:
        img = np.repeat(img[:, :, None], 3, axis=2)
    if img.shape[2] != 3:
        raise InvalidInput(f"Expected a 3-channel image, got shape {img.shape}")

    # BGR -> RGB, normalize, HWC -> CHW, add batch
    if swap_rb:
        img = img[:, :, ::-1]
    blob = img.astype(np.float32) / 255.0
    return np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])
