# camera.py
"""Thin VideoCapture wrapper and the pipeline's frame source."""

from __future__ import annotations

import threading
import time
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from eye_tracking.common import END_OF_STREAM, AcquisitionFailure, Frame, _EndOfStream
from eye_tracking.config import CameraConfig


class Camera:
    def __init__(self, config: CameraConfig) -> None:
        self.config = config
        self.cap: Optional[cv2.VideoCapture] = None

        # Exposed runtime-queryable values
        self.actual_width: int = 0
        self.actual_height: int = 0
        self.actual_fps: float = 0.0

    # ------------------------------------------------------------------ #
    #   P U B L I C   A P I
    # ------------------------------------------------------------------ #
    def open(self) -> bool:
        """Open the device (or video file) and apply resolution/fps."""
        src = self.config.source
        if isinstance(src, int) and self.config.use_v4l2:
            self.cap = cv2.VideoCapture(src, cv2.CAP_V4L2)
        else:
            self.cap = cv2.VideoCapture(src)
        if not self.cap or not self.cap.isOpened():
            print(f"[Camera] Could not open source {src!r}")
            self.cap = None
            return False

        if isinstance(src, int):
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
            if self.config.fps_request > 0:
                self.cap.set(cv2.CAP_PROP_FPS, self.config.fps_request)

        self.actual_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self.actual_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self.actual_fps = self.cap.get(cv2.CAP_PROP_FPS)

        print(
            f"[Camera] {self.actual_width}x{self.actual_height}"
            f"@{self.actual_fps:.1f} FPS from {src!r}"
        )
        if self.actual_width == 0 or self.actual_height == 0:
            print("[Camera] Error: source returned zero resolution")
            self.release()
            return False
        return True

    # ------------------------------------------------------------------ #
    #   S T A N D A R D   W R A P P E R S
    # ------------------------------------------------------------------ #
    def read(self) -> Tuple[float, Optional[np.ndarray]]:
        if not self.is_opened():
            return time.time(), None
        ts = time.time()
        ret, frame = self.cap.read()
        return (ts, frame) if ret and frame is not None else (ts, None)

    def is_opened(self) -> bool:
        return bool(self.cap and self.cap.isOpened())

    def release(self) -> None:
        if self.cap:
            print("[Camera] Releasing capture device")
            self.cap.release()
            self.cap = None

    def get_properties(self) -> Tuple[int, int, float]:
        return self.actual_width, self.actual_height, self.actual_fps


class CameraFrameSource:
    """
    ``pull()`` → :class:`Frame` or ``END_OF_STREAM``.

    A failed read is terminal: the source releases the device and keeps
    answering ``END_OF_STREAM``.  No reconnection is attempted.
    """
    def __init__(self, camera: Camera) -> None:
        self.camera = camera
        self._lock = threading.Lock()
        self._exhausted = False
        self.frames_read = 0

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def open(self) -> None:
        if not self.camera.is_opened() and not self.camera.open():
            self._exhausted = True
            raise AcquisitionFailure(f"cannot open source {self.camera.config.source!r}")

    def pull(self) -> Union[Frame, _EndOfStream]:
        with self._lock:
            if self._exhausted:
                return END_OF_STREAM
            ts, image = self.camera.read()
            if image is None:
                print(f"[Camera] End of stream after {self.frames_read} frames")
                self._exhausted = True
                self.camera.release()
                return END_OF_STREAM
            self.frames_read += 1
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        elif image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        return Frame(image=image, timestamp=ts)

    def close(self) -> None:
        with self._lock:
            self._exhausted = True
            self.camera.release()
