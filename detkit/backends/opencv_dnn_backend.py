from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np

from ..errors import BackendError


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OpenCvDnnBackendConfig:
    """
    Configuration for OpenCV DNN inference.

    - config_path: companion file for formats that need one (Darknet .cfg, Caffe .prototxt)
    - output_names: layers to fetch (default: all unconnected output layers)
    """

    config_path: Optional[str] = None
    output_names: Optional[Sequence[str]] = None


class OpenCvDnnBackend:
    """
    Network runner on top of `cv2.dnn`.

    Accepts any format `cv2.dnn.readNet` understands (ONNX, Darknet, Caffe,
    TensorFlow). Returns one array per requested output layer.
    """

    def __init__(self, model_path: PathLike, cfg: OpenCvDnnBackendConfig = OpenCvDnnBackendConfig()):
        try:
            import cv2  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("OpenCV is required for the DNN backend. Install with `pip install opencv-python`.") from e

        self._cv2 = cv2
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        try:
            if cfg.config_path:
                self.net = cv2.dnn.readNet(str(self.model_path), str(cfg.config_path))
            else:
                self.net = cv2.dnn.readNet(str(self.model_path))
        except cv2.error as e:
            raise BackendError(f"Failed to load model {self.model_path}: {e}") from e

        self.output_names = list(cfg.output_names or self.net.getUnconnectedOutLayersNames())

    def infer(self, blob: np.ndarray) -> List[np.ndarray]:
        cv2 = self._cv2
        try:
            self.net.setInput(blob)
            outputs = self.net.forward(self.output_names)
        except cv2.error as e:
            raise BackendError(f"OpenCV DNN forward pass failed: {e}") from e
        return [np.asarray(o) for o in outputs]
