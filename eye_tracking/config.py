# config.py
"""Typed configuration blobs for the whole system."""
from dataclasses import dataclass
from typing import Tuple

import cv2


def _cascade(name: str) -> str:
    return cv2.data.haarcascades + name


# ---------------------- Camera ----------------------
@dataclass
class CameraConfig:
    source: int | str = 0            # device index or video file path
    width: int = 640
    height: int = 480
    fps_request: int = 15
    use_v4l2: bool = False


# --------------------- Detector ---------------------
@dataclass
class DetectorConfig:
    backend: str = "haar"            # "haar" | "mediapipe"
    face_cascade_path: str = _cascade("haarcascade_frontalface_alt.xml")
    eye_cascade_path: str | None = _cascade("haarcascade_eye.xml")
    downscale: float = 1.0           # detection buffer = frame / downscale
    scale_factor: float = 1.05
    min_neighbors: int = 3
    min_size: Tuple[int, int] = (30, 30)
    eye_scale_factor: float = 1.1
    eye_min_neighbors: int = 3
    eye_min_size: Tuple[int, int] = (30, 30)
    min_detection_confidence: float = 0.5   # mediapipe only


# -------------------- Eye center --------------------
@dataclass
class EyeCenterConfig:
    fast_eye_width: int = 50
    weight_blur_size: int = 5
    enable_weight: bool = True
    weight_divisor: float = 1.0
    gradient_threshold: float = 50.0
    enable_post_process: bool = True
    post_process_threshold: float = 0.97


# ------------------- Eye regions --------------------
@dataclass
class EyeRegionConfig:
    # Percentages of the face box
    percent_top: float = 25.0
    percent_side: float = 13.0
    percent_height: float = 30.0
    percent_width: float = 35.0


# -------------------- Smoothing ---------------------
@dataclass
class SmoothingConfig:
    face_history: int = 5
    eye_history: int = 10
    count_valid_only: bool = False   # False = average over zero-filled slots
    share_eye_history: bool = False  # True = left/right eyes share one history


# --------------------- Pipeline ---------------------
@dataclass
class PipelineConfig:
    max_tokens: int = 7
    handoff_capacity: int = 2
    poll_interval_s: float = 0.05
    draw_annotations: bool = True
