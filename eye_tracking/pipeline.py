# pipeline.py
"""
Seven-stage frame pipeline.

    acquire → gray → downscale → equalize → detect → annotate → handoff

Each stage runs on its own thread and stages are linked by ``queue.Queue``
channels of size 1, so every stage sees frames in admission order while
different stages work on different frames at the same time.  A bounded
semaphore caps the number of frames in flight; the bounded
:class:`HandoffQueue` at the end throttles acquisition to the presenter.

Cancellation is a single ``threading.Event``.  Once set, stage 1 admits
nothing new, in-flight frames still run through the stages, and stage 7
discards them instead of handing them off.
"""
from __future__ import annotations

import queue
import threading
from enum import Enum
from typing import Callable, List, Optional, Protocol, Union

import cv2

from eye_tracking.annotator import FrameAnnotator
from eye_tracking.common import Frame, HandoffFailure, _EndOfStream
from eye_tracking.config import DetectorConfig, PipelineConfig
from eye_tracking.detector import ObjectDetector
from eye_tracking.handoff import HandoffQueue

_STOP = object()


class FrameSource(Protocol):
    def pull(self) -> Union[Frame, _EndOfStream]:
        ...


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    STOPPED = "stopped"


class FramePipeline:
    def __init__(
        self,
        source: FrameSource,
        face_detector: ObjectDetector,
        annotator: FrameAnnotator,
        handoff: HandoffQueue,
        detector_cfg: DetectorConfig | None = None,
        pipeline_cfg: PipelineConfig | None = None,
    ):
        self.source = source
        self.face_detector = face_detector
        self.annotator = annotator
        self.handoff = handoff
        self.detector_cfg = detector_cfg or DetectorConfig()
        self.cfg = pipeline_cfg or PipelineConfig()
        if self.detector_cfg.downscale <= 0:
            raise ValueError("downscale must be positive")
        if self.cfg.max_tokens <= 0:
            raise ValueError("max_tokens must be positive")

        self.state = PipelineState.IDLE
        self.cancel_reason: Optional[str] = None
        self._cancelled = threading.Event()
        self._gate = threading.RLock()
        self._tokens = threading.BoundedSemaphore(self.cfg.max_tokens)
        self._done = threading.Event()
        self._threads: List[threading.Thread] = []

        self._stats_lock = threading.Lock()
        self.frames_admitted = 0
        self.frames_emitted = 0
        self.frames_dropped = 0

    # ------------------------------------------------------------------ #
    #   S T A G E   B O D I E S
    # ------------------------------------------------------------------ #
    def _to_gray(self, frame: Frame) -> None:
        frame.gray = cv2.cvtColor(frame.image, cv2.COLOR_BGR2GRAY)

    def _downscale(self, frame: Frame) -> None:
        fx = 1.0 / self.detector_cfg.downscale
        frame.small = cv2.resize(frame.gray, None, fx=fx, fy=fx, interpolation=cv2.INTER_LINEAR)

    def _equalize(self, frame: Frame) -> None:
        frame.small = cv2.equalizeHist(frame.small)

    def _detect(self, frame: Frame) -> None:
        cfg = self.detector_cfg
        frame.faces = list(
            self.face_detector.detect(
                frame.small, cfg.scale_factor, cfg.min_neighbors, cfg.min_size
            )
        )

    def _annotate(self, frame: Frame) -> None:
        self.annotator.annotate(frame)

    # ------------------------------------------------------------------ #
    #   C A N C E L L A T I O N
    # ------------------------------------------------------------------ #
    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self, reason: str) -> None:
        with self._gate:
            if self._cancelled.is_set():
                return
            self.cancel_reason = reason
            self._cancelled.set()
            if self.state == PipelineState.RUNNING:
                self.state = PipelineState.DRAINING
        print(f"[Pipeline] Cancelled: {reason}")

    def stop(self) -> None:
        self.cancel("shutdown requested")

    def _discard(self, frame: Frame) -> None:
        with self._stats_lock:
            self.frames_dropped += 1
        self._tokens.release()

    # ------------------------------------------------------------------ #
    #   W O R K E R S
    # ------------------------------------------------------------------ #
    def _run_acquire(self, outbox: queue.Queue) -> None:
        next_index = 0
        try:
            while not self._cancelled.is_set():
                if not self._tokens.acquire(timeout=self.cfg.poll_interval_s):
                    continue
                if self._cancelled.is_set():
                    self._tokens.release()
                    break
                try:
                    item = self.source.pull()
                except Exception as exc:
                    self._tokens.release()
                    self.cancel(f"acquisition failed: {exc}")
                    break
                if isinstance(item, _EndOfStream):
                    self._tokens.release()
                    self.cancel("end of stream")
                    break
                item.index = next_index
                next_index += 1
                with self._stats_lock:
                    self.frames_admitted += 1
                outbox.put(item)
        finally:
            outbox.put(_STOP)

    def _run_stage(
        self,
        name: str,
        body: Callable[[Frame], None],
        inbox: queue.Queue,
        outbox: queue.Queue,
    ) -> None:
        while True:
            item = inbox.get()
            if item is _STOP:
                outbox.put(_STOP)
                return
            try:
                body(item)
            except Exception as exc:
                print(f"[Pipeline] Stage '{name}' failed on frame {item.index}: {exc}")
                self._discard(item)
                self.cancel(f"stage '{name}' failed")
                continue
            outbox.put(item)

    def _run_handoff(self, inbox: queue.Queue) -> None:
        try:
            while True:
                item = inbox.get()
                if item is _STOP:
                    return
                try:
                    pushed = self.handoff.push(
                        item,
                        should_abort=self._cancelled.is_set,
                        poll_s=self.cfg.poll_interval_s,
                        gate=self._gate,
                    )
                except HandoffFailure as exc:
                    print(f"[Pipeline] Handoff failed on frame {item.index}: {exc}")
                    self._discard(item)
                    self.cancel("handoff failed")
                    continue
                if pushed:
                    with self._stats_lock:
                        self.frames_emitted += 1
                    self._tokens.release()
                else:
                    self._discard(item)
        finally:
            with self._gate:
                self.state = PipelineState.STOPPED
            self._done.set()
            print(
                f"[Pipeline] Stopped. admitted={self.frames_admitted} "
                f"emitted={self.frames_emitted} dropped={self.frames_dropped}"
            )

    # ------------------------------------------------------------------ #
    #   P U B L I C   A P I
    # ------------------------------------------------------------------ #
    def start(self) -> None:
        if self.state != PipelineState.IDLE:
            raise RuntimeError(f"pipeline already {self.state.value}")
        self.state = PipelineState.RUNNING

        bodies = [
            ("gray", self._to_gray),
            ("downscale", self._downscale),
            ("equalize", self._equalize),
            ("detect", self._detect),
            ("annotate", self._annotate),
        ]
        channels = [queue.Queue(maxsize=1) for _ in range(len(bodies) + 1)]

        self._threads = [
            threading.Thread(
                target=self._run_acquire, args=(channels[0],), name="pipe-acquire", daemon=True
            )
        ]
        for i, (name, body) in enumerate(bodies):
            self._threads.append(
                threading.Thread(
                    target=self._run_stage,
                    args=(name, body, channels[i], channels[i + 1]),
                    name=f"pipe-{name}",
                    daemon=True,
                )
            )
        self._threads.append(
            threading.Thread(
                target=self._run_handoff, args=(channels[-1],), name="pipe-handoff", daemon=True
            )
        )
        for t in self._threads:
            t.start()
        print(f"[Pipeline] Started with {self.cfg.max_tokens} tokens")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the last stage has exited."""
        return self._done.wait(timeout)

    def join(self, timeout: float | None = None) -> bool:
        for t in self._threads:
            t.join(timeout)
        return not any(t.is_alive() for t in self._threads)

    @property
    def running(self) -> bool:
        return self.state in (PipelineState.RUNNING, PipelineState.DRAINING)
