# presenter.py
"""cv2 window that consumes finished frames from the handoff queue."""
from __future__ import annotations

import time
from typing import Callable, Optional

import cv2

from eye_tracking.common import Frame
from eye_tracking.handoff import HandoffQueue


class FramePresenter:
    def __init__(
        self,
        handoff: HandoffQueue,
        window_name: str = "Eye Tracking",
        headless: bool = False,
        on_frame: Optional[Callable[[Frame], None]] = None,
    ):
        self.handoff = handoff
        self.window_name = window_name
        self.headless = headless
        self.on_frame = on_frame

        # Runtime metrics
        self.frames_shown = 0
        self.frame_count = 0
        self.fps_timer_start = time.time()
        self.disp_fps = 0.0
        self.disp_latency_ms = 0.0

    def open(self, width: int, height: int) -> None:
        if self.headless:
            return
        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(self.window_name, width, height)

    def close(self) -> None:
        if not self.headless:
            cv2.destroyAllWindows()

    def _update_stats(self, frame: Frame) -> None:
        now = time.time()
        self.frame_count += 1
        self.frames_shown += 1
        if now - self.fps_timer_start >= 1.0:
            self.disp_fps = self.frame_count / (now - self.fps_timer_start)
            self.disp_latency_ms = (now - frame.timestamp) * 1000.0
            self.frame_count = 0
            self.fps_timer_start = now

    def _draw_overlay(self, frame: Frame) -> None:
        img = frame.image
        cv2.putText(img, f"FPS:{self.disp_fps:.1f}", (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2)
        cv2.putText(img, f"Lat:{self.disp_latency_ms:.0f}ms", (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2)
        if not frame.annotations:
            cv2.putText(img, "NO FACE", (img.shape[1] - 130, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 165, 255), 2)

    def poll(self, timeout: float = 0.05) -> Optional[Frame]:
        """Show the next finished frame, if one arrives within ``timeout``."""
        frame = self.handoff.pop(timeout)
        if frame is None:
            return None
        self._update_stats(frame)
        if self.on_frame is not None:
            self.on_frame(frame)
        if not self.headless:
            self._draw_overlay(frame)
            cv2.imshow(self.window_name, frame.image)
        return frame

    def quit_requested(self) -> bool:
        if self.headless:
            return False
        return (cv2.waitKey(1) & 0xFF) in (ord("q"), 27)
