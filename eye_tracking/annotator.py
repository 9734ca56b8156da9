# annotator.py
"""Annotation stage: face box, eye boxes and smoothed eye centers."""
from __future__ import annotations

from typing import List, Optional

import cv2

from eye_tracking.common import DegenerateRegion, FaceAnnotation, Frame, Point, Rect, Space
from eye_tracking.config import DetectorConfig, EyeRegionConfig, SmoothingConfig
from eye_tracking.detector import ObjectDetector
from eye_tracking.eye_center import EyeCenterEstimator, eye_regions
from eye_tracking.helpers import SmootherRegistry

_COLORS = (
    (255, 0, 0),
    (255, 128, 0),
    (255, 255, 0),
    (0, 255, 0),
    (0, 128, 255),
    (0, 255, 255),
    (0, 0, 255),
    (255, 0, 255),
)
_EYE_CENTER_COLOR = (0, 0, 255)


class FrameAnnotator:
    """
    Runs inside a single pipeline stage, so the smoother state it owns is
    only ever touched by one thread.
    """

    def __init__(
        self,
        estimator: EyeCenterEstimator,
        region_cfg: EyeRegionConfig,
        smoothing_cfg: SmoothingConfig,
        detector_cfg: DetectorConfig,
        eye_detector: Optional[ObjectDetector] = None,
        draw: bool = True,
    ):
        self.estimator = estimator
        self.region_cfg = region_cfg
        self.detector_cfg = detector_cfg
        self.eye_detector = eye_detector
        self.draw = draw
        self.smoothers = SmootherRegistry(smoothing_cfg)
        self.skipped_eyes = 0

    # ------------------------------------------------------------------ #
    #   E Y E   C A N D I D A T E S   (detection space)
    # ------------------------------------------------------------------ #
    def _detect_eye_candidates(self, frame: Frame, face: Rect) -> List[Rect]:
        """Nested cascade over the upper band of ``face`` (DETECTION space)."""
        if self.eye_detector is None or frame.small is None:
            return []
        rows, cols = frame.small.shape[:2]
        band = Rect(
            face.x, face.y + face.height // 4, face.width, face.height // 2, Space.DETECTION
        ).clipped(cols, rows)
        if band.area == 0:
            return []
        roi = frame.small[band.y:band.y + band.height, band.x:band.x + band.width]
        found = self.eye_detector.detect(
            roi,
            self.detector_cfg.eye_scale_factor,
            self.detector_cfg.eye_min_neighbors,
            self.detector_cfg.eye_min_size,
        )
        return [r.translated(band.origin) for r in found]

    # ------------------------------------------------------------------ #
    #   E Y E   C E N T E R S   (frame space)
    # ------------------------------------------------------------------ #
    def _eye_center(self, frame: Frame, region: Rect, side: str, slot: int) -> Optional[Point]:
        try:
            raw = self.estimator.estimate(frame.gray, region)
        except DegenerateRegion as exc:
            self.skipped_eyes += 1
            print(f"[Annotator] frame {frame.index}: {side} eye skipped ({exc})")
            return None
        return self.smoothers.bank(slot).eye(side).push(raw)

    def annotate(self, frame: Frame) -> Frame:
        if frame.gray is None:
            raise ValueError("annotate() needs the grayscale buffer")
        rows, cols = frame.gray.shape[:2]
        to_frame = self.detector_cfg.downscale

        for slot, face_det in enumerate(frame.faces):
            color = _COLORS[slot % len(_COLORS)]
            face_raw = face_det.scaled(to_frame, Space.FRAME).clipped(cols, rows)
            if face_raw.area == 0:
                print(f"[Annotator] frame {frame.index}: face {slot} outside frame")
                continue
            face = self.smoothers.bank(slot).face.push(face_raw).clipped(cols, rows)
            ann = FaceAnnotation(face=face)

            candidates = self._detect_eye_candidates(frame, face_det)
            frame.eye_candidates.extend(candidates)

            left, right = eye_regions(face, self.region_cfg)
            ann.left_region, ann.right_region = left, right
            ann.left_center = self._eye_center(frame, left, "left", slot)
            ann.right_center = self._eye_center(frame, right, "right", slot)
            frame.annotations.append(ann)

            if self.draw:
                self._draw(frame, ann, candidates, color)
        return frame

    # ------------------------------------------------------------------ #
    #   D R A W I N G
    # ------------------------------------------------------------------ #
    def _draw(
        self, frame: Frame, ann: FaceAnnotation, candidates: List[Rect], color
    ) -> None:
        img = frame.image
        f = ann.face
        cv2.rectangle(img, (f.x, f.y), (f.x + f.width - 1, f.y + f.height - 1), color, 3)

        for eye in candidates:
            e = eye.scaled(self.detector_cfg.downscale, Space.FRAME)
            cv2.rectangle(img, (e.x, e.y), (e.x + e.width, e.y + e.height), color, 1)

        for region, center in (
            (ann.left_region, ann.left_center),
            (ann.right_region, ann.right_center),
        ):
            if region is not None:
                cv2.rectangle(
                    img,
                    (region.x, region.y),
                    (region.x + region.width, region.y + region.height),
                    (200, 200, 200),
                    1,
                )
            if center is not None:
                cv2.circle(img, (center.x, center.y), 3, _EYE_CENTER_COLOR, -1)
