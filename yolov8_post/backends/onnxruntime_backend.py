from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Session options for the detector model.

    - providers: ORT execution providers in priority order; None lets ORT pick
    - input_name/output_name: override the first graph input/output
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


class OnnxRuntimeBackend:
    """
    Runs a YOLOv8 ONNX export on the (1, 3, S, S) tensor built by `normalize`.

    `infer` returns the detection head output, typically (1, 4 + C, N).
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required to load a detector model. Install it with `pip install onnxruntime`."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(f"Model not found: {self.model_path}")

        self.session = ort.InferenceSession(
            str(self.model_path),
            sess_options=ort.SessionOptions(),
            providers=list(cfg.providers) if cfg.providers is not None else None,
        )

        graph_input = self.session.get_inputs()[0]
        self.input_name = cfg.input_name or graph_input.name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        # Dynamic axes come back as strings or None.
        self.input_shape: Tuple = tuple(graph_input.shape)

    @property
    def providers_in_use(self) -> Sequence[str]:
        return tuple(self.session.get_providers())

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        feed = {self.input_name: np.ascontiguousarray(tensor, dtype=np.float32)}
        (raw,) = self.session.run([self.output_name], feed)
        return raw
