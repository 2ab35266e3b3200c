from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class PipelineConfig:
    side: int = 640
    confidence_threshold: float = 0.45
    iou_threshold: float = 0.5
    # False reproduces the legacy normalizer bound (last row/column left at 0).
    full_coverage: bool = True
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if self.side < 1:
            raise ValueError("side must be >= 1")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1 if provided")


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def load_pipeline_config(path: Path) -> PipelineConfig:
    """
    Read a `PipelineConfig` from a JSON object. Missing keys keep their defaults.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pipeline config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid pipeline config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Pipeline config must be a JSON object")

    allowed = {
        "side",
        "confidence_threshold",
        "iou_threshold",
        "full_coverage",
        "max_detections",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown pipeline config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    if "side" in payload:
        kwargs["side"] = _require_int(payload, "side")
    if "confidence_threshold" in payload:
        kwargs["confidence_threshold"] = _require_number(payload, "confidence_threshold")
    if "iou_threshold" in payload:
        kwargs["iou_threshold"] = _require_number(payload, "iou_threshold")
    if "full_coverage" in payload:
        if not isinstance(payload["full_coverage"], bool):
            raise ValueError("full_coverage must be a boolean")
        kwargs["full_coverage"] = payload["full_coverage"]
    if payload.get("max_detections") is not None:
        kwargs["max_detections"] = _require_int(payload, "max_detections")

    return PipelineConfig(**kwargs)
