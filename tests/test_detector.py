from unittest.mock import Mock

import cv2
import numpy as np
import pytest

from eye_tracking.common import ModelLoadFailure, Rect, Space
from eye_tracking.config import DetectorConfig
from eye_tracking.detector import CascadeDetector
from eye_tracking.processor import build_face_detector

_FACE = cv2.data.haarcascades + "haarcascade_frontalface_alt.xml"


def test_missing_model_is_a_load_failure() -> None:
    with pytest.raises(ModelLoadFailure):
        CascadeDetector("/nonexistent/cascade.xml")


def test_corrupt_model_is_a_load_failure(tmp_path) -> None:
    bad = tmp_path / "bad.xml"
    bad.write_text("this is not a cascade")

    with pytest.raises(ModelLoadFailure):
        CascadeDetector(str(bad))


def test_blank_image_has_no_faces() -> None:
    det = CascadeDetector(_FACE)

    assert det.detect(np.full((120, 160), 128, dtype=np.uint8)) == []


def test_detect_wraps_boxes_in_detection_space() -> None:
    det = CascadeDetector(_FACE)
    det.classifier = Mock()
    det.classifier.detectMultiScale.return_value = np.array([[4, 5, 30, 31]])

    found = det.detect(np.zeros((60, 60), dtype=np.uint8), 1.05, 3, (30, 30))

    assert found == [Rect(4, 5, 30, 31, Space.DETECTION)]
    kwargs = det.classifier.detectMultiScale.call_args.kwargs
    assert kwargs["scaleFactor"] == 1.05
    assert kwargs["minNeighbors"] == 3
    assert kwargs["minSize"] == (30, 30)


def test_unknown_backend_is_a_load_failure() -> None:
    with pytest.raises(ModelLoadFailure):
        build_face_detector(DetectorConfig(backend="yolo"))


def test_mediapipe_backend_finds_nothing_on_blank_image() -> None:
    pytest.importorskip("mediapipe")
    from eye_tracking.mediapipe_detector import MediaPipeFaceDetector

    det = MediaPipeFaceDetector(DetectorConfig(backend="mediapipe"))
    try:
        assert det.detect(np.zeros((120, 160), dtype=np.uint8)) == []
    finally:
        det.close()
