# detector.py
"""Haar-cascade object-detection adapter."""
from __future__ import annotations

import os
from typing import List, Protocol, Tuple

import cv2
import numpy as np

from eye_tracking.common import ModelLoadFailure, Rect, Space


class ObjectDetector(Protocol):
    def detect(
        self,
        gray: np.ndarray,
        scale_factor: float,
        min_neighbors: int,
        min_size: Tuple[int, int],
    ) -> List[Rect]:
        """Rects in the coordinate space of ``gray`` (DETECTION in the pipeline)."""
        ...

    def close(self) -> None:
        ...


class CascadeDetector:
    """cv2.CascadeClassifier with the pipeline's detect() contract."""

    def __init__(self, model_path: str, space: Space = Space.DETECTION):
        self.model_path = model_path
        self.space = space
        if not model_path or not os.path.isfile(model_path):
            raise ModelLoadFailure(f"cascade model not found: {model_path!r}")
        self.classifier = cv2.CascadeClassifier()
        try:
            loaded = self.classifier.load(model_path)
        except cv2.error as exc:
            raise ModelLoadFailure(f"cannot parse cascade {model_path!r}: {exc}") from exc
        if not loaded or self.classifier.empty():
            raise ModelLoadFailure(f"cannot load cascade {model_path!r}")
        print(f"[Detector] Loaded cascade {os.path.basename(model_path)}")

    def detect(
        self,
        gray: np.ndarray,
        scale_factor: float = 1.05,
        min_neighbors: int = 3,
        min_size: Tuple[int, int] = (30, 30),
    ) -> List[Rect]:
        if gray.size == 0:
            return []
        found = self.classifier.detectMultiScale(
            gray,
            scaleFactor=scale_factor,
            minNeighbors=min_neighbors,
            flags=cv2.CASCADE_SCALE_IMAGE,
            minSize=tuple(min_size),
        )
        return [Rect(int(x), int(y), int(w), int(h), self.space) for (x, y, w, h) in found]

    def close(self) -> None:
        self.classifier = None
