from dataclasses import dataclass
from typing import List, Tuple

import numpy as np

from .errors import PreconditionError
from .types import BoundingBox, Detection


@dataclass(frozen=True)
class DecodeConfig:
    """
    Decoder settings for one model input size.
    """

    side: int = 640
    confidence_threshold: float = 0.45


def transpose_output(raw: np.ndarray, label_count: int) -> np.ndarray:
    """
    Turn the class-major `(4 + C, N)` output into a per-box `(N, 4 + C)` view.

    Row `i` of the result is `[cx, cy, w, h, score_0, ..., score_{C-1}]` for
    candidate `i`. A leading batch axis of size 1 is dropped.
    """
    if label_count < 1:
        raise PreconditionError(f"label_count must be >= 1, got {label_count}")

    p = np.asarray(raw)
    if p.ndim == 3:
        if p.shape[0] != 1:
            raise PreconditionError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one frame at a time.")
        p = p[0]
    if p.ndim != 2:
        raise PreconditionError(f"Expected a (4 + C, N) output tensor, got shape {p.shape}")

    rows = label_count + 4
    if p.shape[0] != rows:
        raise PreconditionError(
            f"Output has {p.shape[0]} rows but {label_count} labels need {rows} (4 box params + 1 per class)."
        )
    return p.T


def best_class(class_scores: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Best class per candidate for an (N, C) score matrix.

    Ties resolve to the lowest class index. Returns (class_ids, max_scores).
    """
    class_ids = np.argmax(class_scores, axis=1)
    max_scores = class_scores[np.arange(class_scores.shape[0]), class_ids]
    return class_ids, max_scores


def decode(
    raw: np.ndarray,
    label_count: int,
    side: int = 640,
    confidence_threshold: float = 0.45,
) -> List[Detection]:
    """
    Decode raw YOLOv8 output into thresholded detections in model input space.

    Args:
        raw: model output shaped (4 + C, N) or (1, 4 + C, N)
        label_count: number of classes C
        side: model input side; boxes are clamped to [0, side - 1]
        confidence_threshold: candidates need a best-class score strictly above it

    Returns:
        unordered list of `Detection`; empty when nothing clears the threshold.
    """
    per_box = transpose_output(raw, label_count)
    if per_box.shape[0] == 0:
        return []

    class_ids, max_scores = best_class(per_box[:, 4:])
    # A candidate whose scores are all <= 0 never gets a class; non-finite boxes are dropped.
    keep = (max_scores > confidence_threshold) & (max_scores > 0) & np.isfinite(per_box[:, :4]).all(axis=1)
    if not np.any(keep):
        return []

    cx, cy, w, h = per_box[keep, :4].astype(np.float64).T
    hi = float(side - 1)
    left = np.clip(cx - w / 2.0, 0.0, hi)
    top = np.clip(cy - h / 2.0, 0.0, hi)
    right = np.maximum(np.clip(cx + w / 2.0, 0.0, hi), left)
    bottom = np.maximum(np.clip(cy + h / 2.0, 0.0, hi), top)

    return [
        Detection(
            class_index=int(cls_id),
            score=float(score),
            box=BoundingBox(left=float(x1), top=float(y1), right=float(x2), bottom=float(y2)),
        )
        for x1, y1, x2, y2, score, cls_id in zip(left, top, right, bottom, max_scores[keep], class_ids[keep])
    ]


class YoloDecoder:
    """
    Config-bound wrapper around `decode`, one instance per model session.
    """

    def __init__(self, cfg: DecodeConfig = DecodeConfig()):
        self.cfg = cfg

    def __call__(self, raw: np.ndarray, label_count: int) -> List[Detection]:
        return decode(
            raw,
            label_count,
            side=self.cfg.side,
            confidence_threshold=self.cfg.confidence_threshold,
        )
