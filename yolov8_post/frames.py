from __future__ import annotations

import threading
from typing import Optional, Tuple

import numpy as np


class LatestFrameSlot:
    """
    Single-slot hand-off between a capture thread and the analysis worker.

    `put` overwrites a frame that has not been picked up yet, so the worker
    always gets the newest frame and never queues behind a slow inference.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._frame: Optional[np.ndarray] = None
        self._index = 0
        self._closed = False
        self.dropped = 0

    def put(self, frame: np.ndarray) -> None:
        with self._cond:
            if self._closed:
                return
            if self._frame is not None:
                self.dropped += 1
            self._frame = frame
            self._index += 1
            self._cond.notify()

    def get(self, timeout: Optional[float] = None) -> Optional[Tuple[int, np.ndarray]]:
        """
        Take the pending frame as (frame_index, frame).

        Returns None on timeout, or once the slot is closed and drained.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._frame is not None or self._closed, timeout=timeout):
                return None
            if self._frame is None:
                return None
            frame, self._frame = self._frame, None
            return self._index, frame

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed
