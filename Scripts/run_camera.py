from __future__ import annotations

import argparse
import logging
import threading
from pathlib import Path

import cv2

from yolov8_post import (
    LatestFrameSlot,
    PipelineConfig,
    draw_detections,
    load_pipeline,
    load_pipeline_config,
)


LOGGER = logging.getLogger("run_camera")


def _capture_loop(cap: "cv2.VideoCapture", slot: LatestFrameSlot, stop: threading.Event) -> None:
    try:
        while not stop.is_set():
            ok, frame = cap.read()
            if not ok or frame is None:
                LOGGER.info("Capture ended")
                break
            slot.put(frame)
    finally:
        slot.close()


def _build_config(args: argparse.Namespace) -> PipelineConfig:
    base = load_pipeline_config(Path(args.config)) if args.config else PipelineConfig()
    return PipelineConfig(
        side=args.side if args.side is not None else base.side,
        confidence_threshold=args.conf if args.conf is not None else base.confidence_threshold,
        iou_threshold=args.iou if args.iou is not None else base.iou_threshold,
        full_coverage=base.full_coverage,
        max_detections=base.max_detections,
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Run YOLOv8 detection on a camera stream and overlay the boxes.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (default 0).")
    parser.add_argument("--model", default="Models/best_8n.onnx", help="Path to the YOLOv8 ONNX model.")
    parser.add_argument("--labels", default="Models/Labels.txt", help="Label file (one per line, or metadata.yaml).")
    parser.add_argument("--config", default=None, help="Optional pipeline config JSON.")
    parser.add_argument("--side", type=int, default=None, help="Model input side (default 640).")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold (default 0.45).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (default 0.5).")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CPUExecutionProvider".',
    )
    parser.add_argument("--show", action="store_true", help="Show a window with the overlay.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N analysed frames (0 = no limit).")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...).")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")

    cfg = _build_config(args)
    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    pipeline = load_pipeline(args.model, args.labels, cfg=cfg, onnx_providers=onnx_providers)

    if args.video is not None:
        cap = cv2.VideoCapture(args.video)
        if not cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {args.video}")
    else:
        cam_index = 0 if args.webcam is None else int(args.webcam)
        cap = cv2.VideoCapture(cam_index)
        if not cap.isOpened():
            raise RuntimeError(f"Could not open webcam index: {cam_index}")

    slot = LatestFrameSlot()
    stop = threading.Event()
    reader = threading.Thread(target=_capture_loop, args=(cap, slot, stop), daemon=True)
    reader.start()

    processed = 0
    try:
        while True:
            item = slot.get(timeout=1.0)
            if item is None:
                if slot.closed:
                    break
                continue

            frame_idx, frame_bgr = item
            detections = pipeline.process_frame(cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB))
            for det in detections:
                LOGGER.debug(
                    "frame %d: %s %.2f %s",
                    frame_idx,
                    pipeline.labels.name_for(det.class_index),
                    det.score,
                    det.as_xyxy(),
                )

            if args.show:
                vis = draw_detections(frame_bgr, detections, pipeline.labels, side=cfg.side)
                cv2.imshow("detections", vis)
                key = cv2.waitKey(1) & 0xFF
                if key in (27, ord("q")):
                    break

            processed += 1
            if args.max_frames and processed >= args.max_frames:
                break
    finally:
        stop.set()
        reader.join(timeout=2.0)
        cap.release()
        if args.show:
            cv2.destroyAllWindows()

    LOGGER.info("Analysed %d frames, dropped %d stale frames", processed, slot.dropped)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
