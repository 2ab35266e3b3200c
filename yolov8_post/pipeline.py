from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from .config import PipelineConfig
from .decode import DecodeConfig, YoloDecoder
from .errors import PreconditionError
from .labels import load_label_set
from .nms import suppress
from .normalize import input_shape, normalize, pack_rgb, scale_frame
from .types import Detection, LabelSet


PathLike = Union[str, Path]

LOGGER = logging.getLogger(__name__)


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery, used to resolve relative model paths.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

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

    Absolute paths are returned as-is; relative ones resolve against `root`,
    or the project root when `root` is "auto"/None.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


class DetectionPipeline:
    """
    One camera frame in, de-duplicated detections out:
    scale -> pack -> normalize -> inference -> decode -> suppress.

    Frames are RGB `np.ndarray` (H, W, 3); output boxes are in model input
    space [0, side - 1]. Every stage returns a fresh value, so a pass can be
    abandoned between stages without cleanup.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        labels: LabelSet,
        cfg: PipelineConfig = PipelineConfig(),
        *,
        backend: Optional[object] = None,
    ):
        if len(labels) == 0:
            raise PreconditionError("Label set must not be empty.")
        self._infer_fn = infer_fn
        self.labels = labels
        self.cfg = cfg
        self.backend = backend
        self.decoder = YoloDecoder(
            DecodeConfig(side=cfg.side, confidence_threshold=cfg.confidence_threshold)
        )

    @property
    def num_classes(self) -> int:
        return len(self.labels)

    def preprocess(self, image_rgb: np.ndarray) -> np.ndarray:
        if image_rgb is None or not hasattr(image_rgb, "shape"):
            raise PreconditionError("image_rgb must be a NumPy array (RGB), got no frame.")
        if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
            raise PreconditionError(f"Expected image shape (H, W, 3), got {getattr(image_rgb, 'shape', None)}")

        side = self.cfg.side
        frame = pack_rgb(scale_frame(image_rgb, side))
        return normalize(frame, side, full_coverage=self.cfg.full_coverage)

    def postprocess(self, raw: np.ndarray) -> List[Detection]:
        candidates = self.decoder(raw, self.num_classes)
        detections = suppress(
            candidates,
            self.num_classes,
            iou_threshold=self.cfg.iou_threshold,
            max_detections=self.cfg.max_detections,
        )
        LOGGER.debug("Decoded %d candidates, %d kept after NMS", len(candidates), len(detections))
        return detections

    def __call__(self, image_rgb: np.ndarray) -> List[Detection]:
        tensor = self.preprocess(image_rgb)
        raw = self._infer_fn(tensor)
        return self.postprocess(raw)

    def process_frame(self, image_rgb: np.ndarray) -> List[Detection]:
        """
        Like `__call__`, but a contract violation only costs this frame: it is
        logged and an empty result is returned.
        """
        try:
            return self(image_rgb)
        except PreconditionError as exc:
            LOGGER.warning("Skipping frame: %s", exc)
            return []


def load_pipeline(
    model_path: PathLike,
    labels_path: PathLike,
    *,
    root: Optional[PathLike] = "auto",
    cfg: PipelineConfig = PipelineConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
) -> DetectionPipeline:
    """
    Create a pipeline for an ONNX model and its label file on disk.

        pipe = load_pipeline("models/best_8n.onnx", "models/Labels.txt")

    Relative paths resolve against the project root by default.
    """
    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    labels = load_label_set(resolve_path(labels_path, root=root))
    backend = OnnxRuntimeBackend(
        resolve_path(model_path, root=root),
        OnnxRuntimeBackendConfig(providers=onnx_providers),
    )

    expected = input_shape(cfg.side)
    declared = backend.input_shape
    if len(declared) == 4 and all(isinstance(d, int) for d in declared) and tuple(declared) != expected:
        raise PreconditionError(f"Model expects input {tuple(declared)}, pipeline produces {expected}.")

    LOGGER.info(
        "Loaded %s (%d classes, input %s, providers %s)",
        backend.model_path.name,
        len(labels),
        expected,
        ", ".join(backend.providers_in_use),
    )
    return DetectionPipeline(backend.infer, labels, cfg, backend=backend)
