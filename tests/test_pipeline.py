import sys
import tempfile
import types
import unittest
from pathlib import Path
from unittest import mock

import numpy as np

from yolov8_post.config import PipelineConfig
from yolov8_post.errors import PreconditionError
from yolov8_post.pipeline import DetectionPipeline, find_project_root, load_pipeline, resolve_path
from yolov8_post.types import LabelSet


SIDE = 16


def _fake_model(seen: list):
    """Inference stand-in: records the input and returns a fixed (1, 6, 3) output."""

    def infer(blob: np.ndarray) -> np.ndarray:
        seen.append(blob)
        per_box = np.array(
            [
                [5, 5, 4, 4, 0.9, 0.1],  # class 0
                [5.2, 5.2, 4, 4, 0.8, 0.2],  # duplicate of the first
                [12, 12, 2, 2, 0.1, 0.7],  # class 1
            ],
            dtype=np.float32,
        )
        return per_box.T[None, ...]

    return infer


class TestDetectionPipeline(unittest.TestCase):
    def setUp(self) -> None:
        self.seen: list = []
        self.labels = LabelSet(["person", "car"])
        self.pipe = DetectionPipeline(_fake_model(self.seen), self.labels, PipelineConfig(side=SIDE))

    def test_end_to_end(self) -> None:
        frame = np.zeros((SIDE, SIDE, 3), dtype=np.uint8)
        frame[..., 0] = 255
        dets = self.pipe(frame)

        self.assertEqual(len(self.seen), 1)
        blob = self.seen[0]
        self.assertEqual(blob.shape, (1, 3, SIDE, SIDE))
        self.assertTrue(np.all(blob[0, 0] == 1.0))
        self.assertTrue(np.all(blob[0, 1:] == 0.0))

        self.assertEqual([d.class_index for d in dets], [0, 1])
        self.assertAlmostEqual(dets[0].score, 0.9, places=6)
        self.assertEqual(dets[0].as_xyxy(), (3.0, 3.0, 7.0, 7.0))
        self.assertEqual(dets[1].as_xyxy(), (11.0, 11.0, 13.0, 13.0))
        self.assertEqual(self.pipe.num_classes, 2)

    def test_bad_output_shape_raises(self) -> None:
        pipe = DetectionPipeline(lambda blob: np.zeros((1, 9, 4), dtype=np.float32), self.labels, PipelineConfig(side=SIDE))
        frame = np.zeros((SIDE, SIDE, 3), dtype=np.uint8)
        with self.assertRaises(PreconditionError):
            pipe(frame)

    def test_process_frame_skips_bad_frame(self) -> None:
        pipe = DetectionPipeline(lambda blob: np.zeros((1, 9, 4), dtype=np.float32), self.labels, PipelineConfig(side=SIDE))
        frame = np.zeros((SIDE, SIDE, 3), dtype=np.uint8)
        with self.assertLogs("yolov8_post.pipeline", level="WARNING") as logs:
            self.assertEqual(pipe.process_frame(frame), [])
        self.assertIn("Skipping frame", logs.output[0])

    def test_process_frame_skips_missing_frame(self) -> None:
        with self.assertRaises(PreconditionError):
            self.pipe(None)
        with self.assertLogs("yolov8_post.pipeline", level="WARNING"):
            self.assertEqual(self.pipe.process_frame(None), [])
        self.assertEqual(self.seen, [])

    def test_process_frame_rejects_non_rgb(self) -> None:
        with self.assertLogs("yolov8_post.pipeline", level="WARNING"):
            self.assertEqual(self.pipe.process_frame(np.zeros((SIDE, SIDE), dtype=np.uint8)), [])
        self.assertEqual(self.seen, [])

    def test_legacy_bound_propagates(self) -> None:
        pipe = DetectionPipeline(_fake_model(self.seen), self.labels, PipelineConfig(side=SIDE, full_coverage=False))
        pipe(np.full((SIDE, SIDE, 3), 255, dtype=np.uint8))
        blob = self.seen[-1]
        self.assertTrue(np.all(blob[0, :, SIDE - 1, :] == 0.0))
        self.assertTrue(np.all(blob[0, :, : SIDE - 1, : SIDE - 1] == 1.0))

    def test_nothing_detected(self) -> None:
        pipe = DetectionPipeline(
            lambda blob: np.zeros((1, 6, 100), dtype=np.float32), self.labels, PipelineConfig(side=SIDE)
        )
        self.assertEqual(pipe(np.zeros((SIDE, SIDE, 3), dtype=np.uint8)), [])


def _fake_onnxruntime(input_shape, calls: list) -> types.ModuleType:
    """Minimal stand-in for the onnxruntime module: one input, one (1, 6, 1) output."""

    class _Node:
        def __init__(self, name, shape):
            self.name = name
            self.shape = shape

    class InferenceSession:
        def __init__(self, path, sess_options=None, providers=None):
            calls.append(("session", path, providers))

        def get_inputs(self):
            return [_Node("images", list(input_shape))]

        def get_outputs(self):
            return [_Node("output0", [1, 6, 1])]

        def get_providers(self):
            return ["CPUExecutionProvider"]

        def run(self, output_names, feed):
            calls.append(("run", output_names, feed))
            out = np.array([[4.0], [4.0], [2.0], [2.0], [0.2], [0.9]], dtype=np.float32)
            return [out[None, ...]]

    module = types.ModuleType("onnxruntime")
    module.InferenceSession = InferenceSession
    module.SessionOptions = lambda: object()
    return module


class TestLoadPipeline(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name).resolve()
        (self.root / "models").mkdir()
        (self.root / "models" / "best_8n.onnx").write_bytes(b"onnx")
        (self.root / "models" / "Labels.txt").write_text("person\ncar\n", encoding="utf-8")
        self.calls: list = []

    def _load(self, input_shape, side: int = SIDE) -> DetectionPipeline:
        fake = _fake_onnxruntime(input_shape, self.calls)
        with mock.patch.dict(sys.modules, {"onnxruntime": fake}):
            return load_pipeline(
                "models/best_8n.onnx",
                "models/Labels.txt",
                root=self.root,
                cfg=PipelineConfig(side=side),
                onnx_providers=["CPUExecutionProvider"],
            )

    def test_matching_input_shape(self) -> None:
        pipe = self._load((1, 3, SIDE, SIDE))
        self.assertEqual(list(pipe.labels), ["person", "car"])
        self.assertEqual(self.calls[0], ("session", str(self.root / "models" / "best_8n.onnx"), ["CPUExecutionProvider"]))

        dets = pipe(np.zeros((SIDE, SIDE, 3), dtype=np.uint8))
        _, output_names, feed = self.calls[-1]
        self.assertEqual(output_names, ["output0"])
        self.assertEqual(feed["images"].dtype, np.float32)
        self.assertEqual(feed["images"].shape, (1, 3, SIDE, SIDE))
        self.assertEqual([(d.class_index, d.as_xyxy()) for d in dets], [(1, (3.0, 3.0, 5.0, 5.0))])

    def test_dynamic_axes_accepted(self) -> None:
        pipe = self._load(("batch", 3, "height", "width"))
        self.assertEqual(pipe.backend.input_shape, ("batch", 3, "height", "width"))

    def test_mismatched_input_shape_rejected(self) -> None:
        with self.assertRaises(PreconditionError):
            self._load((1, 3, 320, 320), side=SIDE)

    def test_missing_model(self) -> None:
        (self.root / "models" / "best_8n.onnx").unlink()
        with self.assertRaises(FileNotFoundError):
            self._load((1, 3, SIDE, SIDE))


class TestResolvePath(unittest.TestCase):
    def test_absolute_passthrough(self) -> None:
        p = Path(tempfile.gettempdir()).resolve() / "model.onnx"
        self.assertEqual(resolve_path(p), p)

    def test_relative_to_project_root(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        root = Path(tmpdir.name).resolve()
        (root / "pyproject.toml").write_text("", encoding="utf-8")
        nested = root / "a" / "b"
        nested.mkdir(parents=True)

        self.assertEqual(find_project_root(nested), root)
        self.assertEqual(resolve_path("models/x.onnx", root=root), root / "models" / "x.onnx")


if __name__ == "__main__":
    unittest.main()
