# mediapipe_detector.py
"""MediaPipe face-detection adapter (optional ``mediapipe`` extra)."""
from typing import List, Tuple

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.framework.formats import location_data_pb2

from eye_tracking.common import Rect, Space
from eye_tracking.config import DetectorConfig


class MediaPipeFaceDetector:
    """
    Drop-in face detector for the pipeline.  ``scale_factor`` and
    ``min_neighbors`` are cascade knobs and are ignored here; ``min_size``
    is honoured.
    """
    def __init__(self, config: DetectorConfig):
        self.config = config
        self.detector = mp.solutions.face_detection.FaceDetection(
            model_selection=0,
            min_detection_confidence=config.min_detection_confidence,
        )

    def detect(
        self,
        gray: np.ndarray,
        scale_factor: float = 1.05,
        min_neighbors: int = 3,
        min_size: Tuple[int, int] = (30, 30),
    ) -> List[Rect]:
        out: List[Tuple[Rect, float]] = []
        rgb = cv2.cvtColor(gray, cv2.COLOR_GRAY2RGB)
        rgb.flags.writeable = False
        results = self.detector.process(rgb)
        ih, iw = rgb.shape[:2]

        if results.detections:
            for det in results.detections:
                ld = det.location_data
                if not ld or ld.format != location_data_pb2.LocationData.RELATIVE_BOUNDING_BOX:
                    continue
                bb = ld.relative_bounding_box
                w = bb.width * iw
                h = bb.height * ih
                # Clamp to valid region
                x = max(0.0, min(bb.xmin * iw, iw - w))
                y = max(0.0, min(bb.ymin * ih, ih - h))
                if w < min_size[0] or h < min_size[1]:
                    continue
                conf = float(det.score[0]) if det.score else 0.0
                out.append((Rect(int(x), int(y), int(w), int(h), Space.DETECTION), conf))

        out.sort(key=lambda t: t[1], reverse=True)
        return [rect for rect, _ in out]

    def close(self) -> None:
        self.detector.close()
