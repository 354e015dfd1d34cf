from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from .errors import InvalidInput

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ModelConfig:
    model_path: str
    class_names: Tuple[str, ...]
    input_size: int

    def __post_init__(self) -> None:
        if not self.model_path:
            raise InvalidInput("model_path must be a non-empty string")
        if not self.class_names:
            raise InvalidInput("class_names must not be empty")
        if self.input_size <= 0:
            raise InvalidInput("input_size must be > 0")

    @property
    def num_classes(self) -> int:
        return len(self.class_names)


def _require_str(payload: Dict[str, Any], key: str) -> str:
    if key not in payload:
        raise InvalidInput(f"Missing required key: {key}")
    value = payload[key]
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{key} must be a non-empty string")
    return value


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise InvalidInput(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{key} must be an integer")
    return int(value)


def _require_names(payload: Dict[str, Any], key: str) -> Tuple[str, ...]:
    if key not in payload:
        raise InvalidInput(f"Missing required key: {key}")
    value = payload[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidInput(f"{key} must be a list of strings")
    return tuple(value)


def parse_model_config(payload: object) -> ModelConfig:
    if not isinstance(payload, dict):
        raise InvalidInput("Model config must be a JSON object")

    allowed = {"model_path", "class_names", "input_size"}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise InvalidInput(f"Unknown model config keys: {unknown}")

    return ModelConfig(
        model_path=_require_str(payload, "model_path"),
        class_names=_require_names(payload, "class_names"),
        input_size=_require_int(payload, "input_size"),
    )


def load_model_config(path: PathLike) -> ModelConfig:
    """
    Load the model config JSON:

        {"model_path": "models/yolov5s.onnx", "class_names": ["person", ...], "input_size": 640}
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Model config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidInput(f"Invalid model config JSON: {path}") from exc
    return parse_model_config(payload)
