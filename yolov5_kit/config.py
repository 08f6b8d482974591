from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .postprocess import YoloPostConfig


@dataclass(frozen=True)
class DetectConfig:
    score_threshold: float = 0.4
    iou_threshold: float = 0.5
    max_detections: Optional[int] = None
    class_names: Optional[str] = None
    backend: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.max_detections is not None and self.max_detections < 0:
            raise ValueError("max_detections must be >= 0")

    def post_config(self) -> YoloPostConfig:
        return YoloPostConfig(
            score_threshold=self.score_threshold,
            iou_threshold=self.iou_threshold,
            max_detections=self.max_detections,
        )


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    if key not in payload:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_int(payload: Dict[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{key} must be a string if provided")
    return value


def load_detect_config(path: Path) -> DetectConfig:
    """
    Read a JSON detection config, e.g.

        {"score_threshold": 0.4, "iou_threshold": 0.5, "class_names": "coco.names"}
    """

    if not path.exists():
        raise FileNotFoundError(f"Detect config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detect config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detect config must be a JSON object")

    allowed = {
        "score_threshold",
        "iou_threshold",
        "max_detections",
        "class_names",
        "backend",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detect config keys: {unknown}")

    return DetectConfig(
        score_threshold=_optional_number(payload, "score_threshold", 0.4),
        iou_threshold=_optional_number(payload, "iou_threshold", 0.5),
        max_detections=_optional_int(payload, "max_detections"),
        class_names=_optional_str(payload, "class_names"),
        backend=_optional_str(payload, "backend"),
    )
