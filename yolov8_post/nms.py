from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .errors import PreconditionError
from .geometry import iou
from .types import Detection


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.5
    # Per-class cap on accepted boxes; None keeps every survivor.
    max_detections: Optional[int] = None


def _group_by_class(candidates: Sequence[Detection], label_count: int) -> Dict[int, List[Detection]]:
    pools: Dict[int, List[Detection]] = {c: [] for c in range(label_count)}
    for det in candidates:
        if det.class_index not in pools:
            raise PreconditionError(
                f"Detection class_index {det.class_index} is outside the label set (0..{label_count - 1})."
            )
        pools[det.class_index].append(det)
    return pools


def suppress_class(pool: Sequence[Detection], cfg: NMSConfig = NMSConfig()) -> List[Detection]:
    """
    Greedy NMS over detections of a single class.

    Highest score first; every remaining box with IoU >= threshold against the
    accepted one is dropped. Returns survivors in descending score order.
    """
    # Stable sort: equal scores keep their input order.
    remaining = sorted(pool, key=lambda d: d.score, reverse=True)
    kept: List[Detection] = []

    while remaining:
        if cfg.max_detections is not None and len(kept) >= cfg.max_detections:
            break
        best = remaining[0]
        kept.append(best)
        remaining = [d for d in remaining[1:] if iou(best.box, d.box) < cfg.iou_threshold]

    return kept


def suppress(
    candidates: Sequence[Detection],
    label_count: int,
    iou_threshold: float = 0.5,
    max_detections: Optional[int] = None,
) -> List[Detection]:
    """
    Per-class non-max suppression.

    Classes are processed in label-index order and their survivors concatenated;
    within a class the output is sorted by descending score.
    """
    cfg = NMSConfig(iou_threshold=iou_threshold, max_detections=max_detections)
    pools = _group_by_class(candidates, label_count)

    out: List[Detection] = []
    for cls in range(label_count):
        if pools[cls]:
            out.extend(suppress_class(pools[cls], cfg))
    return out
