"""
Single-image object detection helpers.

Letterbox an image, run a detection network, decode its (anchors, 5 + C)
output, apply greedy NMS and draw the surviving boxes. Core pre/post
processing needs only NumPy and OpenCV; inference runtimes live in
`detkit.backends`.
"""

from .types import Detection, PadInfo, Rect
from .errors import BackendError, DetectError, InvalidInput, InvalidThreshold, ShapeError
from .letterbox import letterbox, to_blob
from .decode import Candidates, decode, decode_output
from .nms import NMSConfig, iou, nms, suppress
from .postprocess import DetectionResult, DetectPostConfig, DetectPostprocessor, scale_detections, to_original
from .config import ModelConfig, load_model_config
from .runtime import DetectionPipeline, LetterboxConfig, find_project_root, load_pipeline, resolve_path
from .visualize import render_detections
from .image_io import read_image, write_image

__all__ = [
    "Detection",
    "PadInfo",
    "Rect",
    "BackendError",
    "DetectError",
    "InvalidInput",
    "InvalidThreshold",
    "ShapeError",
    "letterbox",
    "to_blob",
    "Candidates",
    "decode",
    "decode_output",
    "NMSConfig",
    "iou",
    "nms",
    "suppress",
    "DetectionResult",
    "DetectPostConfig",
    "DetectPostprocessor",
    "scale_detections",
    "to_original",
    "ModelConfig",
    "load_model_config",
    "DetectionPipeline",
    "LetterboxConfig",
    "find_project_root",
    "load_pipeline",
    "resolve_path",
    "render_detections",
    "read_image",
    "write_image",
]
