from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

import numpy as np

from .types import BoundingBox, Detection, LabelSet


_PALETTE = [
    (255, 56, 56),
    (255, 157, 151),
    (255, 112, 31),
    (255, 178, 29),
    (207, 210, 49),
    (72, 249, 10),
    (146, 204, 23),
    (61, 219, 134),
    (26, 147, 52),
    (0, 212, 187),
    (44, 153, 168),
    (0, 194, 255),
    (52, 69, 147),
    (100, 115, 255),
    (0, 24, 236),
    (132, 56, 255),
    (82, 0, 133),
    (203, 56, 255),
    (255, 149, 200),
    (255, 55, 199),
]


def color_for_class(class_index: int) -> Tuple[int, int, int]:
    """
    Deterministic BGR color for a class index (OpenCV expects BGR).
    """
    if 0 <= class_index < len(_PALETTE):
        return _PALETTE[class_index]

    rng = np.random.default_rng(int(class_index))
    bgr = rng.integers(0, 256, size=3, dtype=np.uint8)
    return int(bgr[0]), int(bgr[1]), int(bgr[2])


def scale_to_display(
    detections: Iterable[Detection],
    side: int,
    display_size: Tuple[int, int],
) -> List[Detection]:
    """
    Map detections from model input space ([0, side - 1]) to display pixels.

    Args:
        side: model input side the boxes were decoded against
        display_size: (width, height) of the target surface
    """
    disp_w, disp_h = display_size
    sx = disp_w / float(side)
    sy = disp_h / float(side)
    return [
        Detection(
            class_index=det.class_index,
            score=det.score,
            box=BoundingBox(
                left=det.box.left * sx,
                top=det.box.top * sy,
                right=det.box.right * sx,
                bottom=det.box.bottom * sy,
            ),
        )
        for det in detections
    ]


def format_label(det: Detection, labels: Optional[LabelSet] = None, show_score: bool = True) -> str:
    name = labels.name_for(det.class_index) if labels is not None else str(det.class_index)
    if show_score:
        return f"{name} {det.score:.2f}"
    return name


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    labels: Optional[LabelSet] = None,
    *,
    side: Optional[int] = None,
    show_score: bool = True,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw boxes + labels on an OpenCV BGR image and return a copy.

    Args:
        image_bgr: display image in BGR (H, W, 3)
        detections: detections from the pipeline
        labels: class names; indices are printed when omitted
        side: when given, boxes are in model input space and get scaled to the image first
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]
    if side is not None:
        detections = scale_to_display(detections, side, (w, h))

    for det in detections:
        x1, y1, x2, y2 = det.as_xyxy()
        x1i = int(np.clip(round(x1), 0, w - 1))
        y1i = int(np.clip(round(y1), 0, h - 1))
        x2i = int(np.clip(round(x2), 0, w - 1))
        y2i = int(np.clip(round(y2), 0, h - 1))

        color = color_for_class(det.class_index)
        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), color, thickness=box_thickness)

        label = format_label(det, labels, show_score)
        (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Label above the box when it fits, else inside.
        y_text_top = y1i - th - baseline
        if y_text_top < 0:
            y_text_top = y1i

        x_text_right = min(x1i + tw, w - 1)
        y_text_bottom = min(y_text_top + th + baseline, h - 1)

        cv2.rectangle(out, (x1i, y_text_top), (x_text_right, y_text_bottom), color, thickness=-1)
        cv2.putText(
            out,
            label,
            (x1i, min(y_text_top + th, h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (255, 255, 255),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
