"""
Post-processing for YOLOv8 detectors running on camera frames.

Turns a frame into the (1, 3, S, S) input tensor, and the raw (4 + C, N)
output back into labeled, de-duplicated boxes. Inference itself is a plain
callable; only NumPy is needed for the core, OpenCV for resizing/drawing and
onnxruntime for the bundled backend.
"""

from .types import BoundingBox, Detection, LabelSet
from .errors import PreconditionError
from .normalize import normalize, pack_rgb, scale_frame
from .decode import DecodeConfig, YoloDecoder, decode, transpose_output
from .geometry import intersection_area, iou, union_area
from .nms import NMSConfig, suppress
from .labels import load_class_names, load_label_set, load_labels
from .config import PipelineConfig, load_pipeline_config
from .pipeline import DetectionPipeline, find_project_root, load_pipeline, resolve_path
from .frames import LatestFrameSlot
from .visualize import draw_detections, scale_to_display

__all__ = [
    "BoundingBox",
    "Detection",
    "LabelSet",
    "PreconditionError",
    "normalize",
    "pack_rgb",
    "scale_frame",
    "DecodeConfig",
    "YoloDecoder",
    "decode",
    "transpose_output",
    "intersection_area",
    "iou",
    "union_area",
    "NMSConfig",
    "suppress",
    "load_class_names",
    "load_label_set",
    "load_labels",
    "PipelineConfig",
    "load_pipeline_config",
    "DetectionPipeline",
    "find_project_root",
    "load_pipeline",
    "resolve_path",
    "LatestFrameSlot",
    "draw_detections",
    "scale_to_display",
]
