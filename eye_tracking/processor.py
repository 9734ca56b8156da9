# processor.py
"""Glue logic that wires camera → pipeline → presenter."""
from __future__ import annotations

import traceback
from typing import Optional

from eye_tracking.annotator import FrameAnnotator
from eye_tracking.camera import Camera, CameraFrameSource
from eye_tracking.common import AcquisitionFailure, ModelLoadFailure
from eye_tracking.config import (
    CameraConfig,
    DetectorConfig,
    EyeCenterConfig,
    EyeRegionConfig,
    PipelineConfig,
    SmoothingConfig,
)
from eye_tracking.detector import CascadeDetector, ObjectDetector
from eye_tracking.eye_center import EyeCenterEstimator
from eye_tracking.handoff import HandoffQueue
from eye_tracking.live_tuning import RuntimeParamWatcher
from eye_tracking.pipeline import FramePipeline
from eye_tracking.presenter import FramePresenter


def build_face_detector(cfg: DetectorConfig) -> ObjectDetector:
    """Raises ModelLoadFailure when the model cannot be loaded."""
    if cfg.backend == "mediapipe":
        try:
            from eye_tracking.mediapipe_detector import MediaPipeFaceDetector
        except ImportError as exc:
            raise ModelLoadFailure(
                "mediapipe backend requested but mediapipe is not installed"
            ) from exc
        return MediaPipeFaceDetector(cfg)
    if cfg.backend != "haar":
        raise ModelLoadFailure(f"unknown detector backend {cfg.backend!r}")
    return CascadeDetector(cfg.face_cascade_path)


class EyeTrackingProcessor:
    """The main high-level orchestrator."""

    def __init__(
        self,
        camera_cfg: CameraConfig,
        detector_cfg: DetectorConfig,
        eye_cfg: EyeCenterConfig,
        region_cfg: EyeRegionConfig,
        smoothing_cfg: SmoothingConfig,
        pipeline_cfg: PipelineConfig,
        headless: bool = False,
        runtime_params: Optional[str] = "runtime_params.json",
    ):
        # Save configs
        self.camera_cfg = camera_cfg
        self.detector_cfg = detector_cfg
        self.eye_cfg = eye_cfg
        self.region_cfg = region_cfg
        self.smoothing_cfg = smoothing_cfg
        self.pipeline_cfg = pipeline_cfg

        # Build sub-systems
        self.camera = Camera(camera_cfg)
        self.source = CameraFrameSource(self.camera)
        self.estimator = EyeCenterEstimator(eye_cfg)
        self.handoff = HandoffQueue(pipeline_cfg.handoff_capacity)
        self.presenter = FramePresenter(self.handoff, headless=headless)
        self.watcher = RuntimeParamWatcher(runtime_params) if runtime_params else None

        self.face_detector: Optional[ObjectDetector] = None
        self.eye_detector: Optional[ObjectDetector] = None
        self.pipeline: Optional[FramePipeline] = None

    # ---------------------------------------------------------------------
    #                         Setup / teardown
    # ---------------------------------------------------------------------
    def setup(self) -> bool:
        """Load models, open the source and build the pipeline."""
        try:
            self.face_detector = build_face_detector(self.detector_cfg)
            if self.detector_cfg.eye_cascade_path:
                self.eye_detector = CascadeDetector(self.detector_cfg.eye_cascade_path)
        except ModelLoadFailure as exc:
            print(f"[Processor] Model load failed: {exc}")
            return False

        try:
            self.source.open()
        except AcquisitionFailure as exc:
            print(f"[Processor] {exc}")
            return False

        if self.watcher is not None:
            self.watcher.apply(self.estimator)

        annotator = FrameAnnotator(
            self.estimator,
            self.region_cfg,
            self.smoothing_cfg,
            self.detector_cfg,
            eye_detector=self.eye_detector,
            draw=self.pipeline_cfg.draw_annotations,
        )
        self.pipeline = FramePipeline(
            self.source,
            self.face_detector,
            annotator,
            self.handoff,
            self.detector_cfg,
            self.pipeline_cfg,
        )
        w, h, _ = self.camera.get_properties()
        self.presenter.open(w, h)
        print("[Processor] Setup complete – press 'q' to quit.")
        return True

    def cleanup(self) -> None:
        print("[Processor] Cleaning up...")
        if self.pipeline is not None:
            self.pipeline.stop()
            if not self.pipeline.join(timeout=5.0):
                print("[Processor] Warning: pipeline threads still alive")
        self.handoff.clear()
        self.source.close()
        for det in (self.face_detector, self.eye_detector):
            if det is not None:
                det.close()
        self.presenter.close()
        print(f"[Processor] Exited. Frames shown: {self.presenter.frames_shown}")

    # ---------------------------------------------------------------------
    #                             Public run()
    # ---------------------------------------------------------------------
    def run(self) -> None:
        if not self.setup():
            self.cleanup()
            return

        try:
            self.pipeline.start()
            while self.pipeline.running or len(self.handoff):
                self.presenter.poll(self.pipeline_cfg.poll_interval_s)
                if self.watcher is not None and self.watcher.maybe_reload():
                    self.watcher.apply(self.estimator)
                if self.presenter.quit_requested():
                    break
        except KeyboardInterrupt:
            print("\n[Processor] Stopped by user.")
        except Exception as exc:
            print(f"[Processor] Main loop error: {exc}")
            traceback.print_exc()
        finally:
            self.cleanup()
