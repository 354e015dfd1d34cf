from __future__ import annotations

import importlib.util
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np

from .config import ModelConfig, load_model_config
from .errors import BackendError, DetectError, InvalidInput
from .letterbox import letterbox, to_blob
from .postprocess import DetectionResult, DetectPostConfig, DetectPostprocessor
from .types import PadInfo
from .visualize import render_detections


PathLike = Union[str, Path]
InferFn = Callable[[np.ndarray], Union[np.ndarray, Sequence[np.ndarray]]]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery.

    Useful when model paths in a config are written relative to the repo root.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against:
      - `root` if provided
      - project root (auto) otherwise
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class LetterboxConfig:
    new_shape: Tuple[int, int] = (640, 640)
    color: Tuple[int, int, int] = (114, 114, 114)
    allow_upscale: bool = True
    # BGR -> RGB when building the network input
    swap_rb: bool = True


class DetectionPipeline:
    """
    Single-image pipeline: letterbox -> inference -> decode + NMS.

    The pipeline expects BGR images (OpenCV-style) as `np.ndarray`. Detections
    are in letterboxed-canvas coordinates unless the post config asks for
    coordinate_space="original".
    """

    def __init__(
        self,
        infer_fn: InferFn,
        *,
        class_names: Optional[Sequence[str]] = None,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
        letterbox_cfg: LetterboxConfig = LetterboxConfig(),
        post_cfg: DetectPostConfig = DetectPostConfig(),
    ):
        self._infer_fn = infer_fn
        self.class_names = tuple(class_names) if class_names is not None else None
        self.backend = backend
        self.backend_name = backend_name
        self.letterbox_cfg = letterbox_cfg
        self.post = DetectPostprocessor(post_cfg)

    def preprocess(self, image_bgr: np.ndarray) -> Tuple[PadInfo, np.ndarray]:
        pad_info = letterbox(
            image_bgr,
            target_size=self.letterbox_cfg.new_shape,
            allow_upscale=self.letterbox_cfg.allow_upscale,
            color=self.letterbox_cfg.color,
        )
        return pad_info, to_blob(pad_info, swap_rb=self.letterbox_cfg.swap_rb)

    def infer(self, blob: np.ndarray) -> Union[np.ndarray, Sequence[np.ndarray]]:
        try:
            return self._infer_fn(blob)
        except DetectError:
            raise
        except Exception as e:
            raise BackendError(f"Inference failed ({self.backend_name or 'custom'}): {e}") from e

    def __call__(self, image_bgr: np.ndarray) -> DetectionResult:
        pad_info, blob = self.preprocess(image_bgr)
        outputs = self.infer(blob)
        return self.post.process(outputs, pad_info=pad_info, class_names=self.class_names)

    def render(
        self,
        result: DetectionResult,
        image_bgr: Optional[np.ndarray] = None,
        *,
        show_labels: bool = False,
    ) -> np.ndarray:
        """
        Draw `result` on a copy of the image matching its coordinate space:
        the letterboxed canvas for "padded", `image_bgr` for "original".
        """

        if result.coordinate_space == "original":
            if image_bgr is None:
                raise InvalidInput("Rendering original-space detections needs the original image.")
            canvas = image_bgr
        else:
            if result.pad_info is None:
                raise InvalidInput("DetectionResult carries no letterboxed image to draw on.")
            canvas = result.pad_info.image
        return render_detections(canvas, result.detections, class_names=self.class_names, show_labels=show_labels)


def _default_backend(model_path: Path) -> str:
    if model_path.suffix.lower() == ".onnx" and importlib.util.find_spec("onnxruntime") is not None:
        return "onnxruntime"
    return "opencv"


def load_pipeline(
    config: Union[ModelConfig, PathLike],
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    allow_upscale: bool = True,
    post_cfg: DetectPostConfig = DetectPostConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    dnn_config_path: Optional[str] = None,
) -> DetectionPipeline:
    """
    Create a pipeline from a `ModelConfig` or the path of its JSON file.

    Typical usage:
        pipe = load_pipeline("data/config.json")
        result = pipe(cv2.imread("street.jpg"))

    Args:
        config: ModelConfig, or a JSON path; relative model paths in a file are
            tried against the file's directory before `root`
        backend: "opencv" or "onnxruntime"; None picks onnxruntime for .onnx
            when it is installed and OpenCV DNN otherwise
        root: base directory for resolving relative model paths ("auto" uses best-effort project root)
    """

    if not isinstance(config, ModelConfig):
        config_path = Path(config)
        config = load_model_config(config_path)
        beside = config_path.resolve().parent / config.model_path
        if not Path(config.model_path).is_absolute() and beside.exists():
            root = config_path.resolve().parent

    resolved = resolve_path(config.model_path, root=root)
    chosen = (backend or _default_backend(resolved)).lower()

    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        net = OnnxRuntimeBackend(resolved, OnnxRuntimeBackendConfig(providers=onnx_providers))
    elif chosen == "opencv":
        from .backends.opencv_dnn_backend import OpenCvDnnBackend, OpenCvDnnBackendConfig

        net = OpenCvDnnBackend(resolved, OpenCvDnnBackendConfig(config_path=dnn_config_path))
    else:
        raise InvalidInput(f"Unsupported backend: {backend!r}")

    size = config.input_size
    return DetectionPipeline(
        net.infer,
        class_names=config.class_names,
        backend=net,
        backend_name=chosen,
        letterbox_cfg=LetterboxConfig(new_shape=(size, size), allow_upscale=allow_upscale),
        post_cfg=post_cfg,
    )

