import cv2
import numpy as np
import pytest

from eye_tracking.common import DegenerateRegion, Point, Rect, Space
from eye_tracking.config import EyeCenterConfig, EyeRegionConfig
from eye_tracking.eye_center import EyeCenterEstimator, eye_regions


def _gray_with_pupil(center=(150, 110), radius=7) -> np.ndarray:
    gray = np.full((240, 320), 200, dtype=np.uint8)
    cv2.circle(gray, center, radius, 30, -1)
    return gray


def test_eye_regions_follow_face_percentages() -> None:
    face = Rect(100, 50, 200, 200, Space.FRAME)

    left, right = eye_regions(face, EyeRegionConfig())

    assert left == Rect(126, 100, 70, 60, Space.FRAME)
    assert right == Rect(204, 100, 70, 60, Space.FRAME)


def test_estimate_returns_pupil_in_frame_coordinates() -> None:
    est = EyeCenterEstimator(EyeCenterConfig())

    center = est.estimate(_gray_with_pupil(), Rect(120, 80, 60, 50, Space.FRAME))

    assert center.space is Space.FRAME
    assert abs(center.x - 150) <= 2 and abs(center.y - 110) <= 2


def test_estimate_without_edge_filter() -> None:
    est = EyeCenterEstimator(EyeCenterConfig(enable_post_process=False))

    center = est.estimate(_gray_with_pupil((140, 100)), Rect(115, 80, 50, 40, Space.FRAME))

    assert abs(center.x - 140) <= 2 and abs(center.y - 100) <= 2


def test_working_buffer_keeps_aspect_ratio() -> None:
    est = EyeCenterEstimator(EyeCenterConfig(fast_eye_width=50))
    roi = np.zeros((30, 100), dtype=np.uint8)

    working = est.scale_to_fast_size(roi)

    assert working.shape == (15, 50)


def test_unscale_divides_by_working_ratio() -> None:
    est = EyeCenterEstimator(EyeCenterConfig(fast_eye_width=50))
    region = Rect(0, 0, 100, 80, Space.FRAME)

    p = est.unscale_point(Point(25, 10, Space.WORKING), region)

    assert p == Point(50, 20, Space.FRAME)


@pytest.mark.parametrize(
    "region",
    [
        Rect(10, 10, 0, 20, Space.FRAME),
        Rect(10, 10, 20, 0, Space.FRAME),
        Rect(300, 200, 50, 50, Space.FRAME),
        Rect(-5, 10, 20, 20, Space.FRAME),
    ],
)
def test_degenerate_regions_fail_fast(region: Rect) -> None:
    est = EyeCenterEstimator()

    with pytest.raises(DegenerateRegion):
        est.estimate(_gray_with_pupil(), region)


def test_degenerate_region_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        EyeCenterEstimator().estimate(_gray_with_pupil(), Rect(0, 0, 0, 0))


def test_apply_tuning_ignores_out_of_range_values() -> None:
    est = EyeCenterEstimator(EyeCenterConfig())

    est.apply_tuning(
        gradient_threshold=20,
        enable_post_process=False,
        weight_divisor=-1.0,
        post_process_threshold=1.5,
    )

    assert est.cfg.gradient_threshold == 20.0
    assert est.cfg.enable_post_process is False
    assert est.cfg.weight_divisor == 1.0
    assert est.cfg.post_process_threshold == 0.97


def test_apply_tuning_swaps_in_a_new_config() -> None:
    original = EyeCenterConfig()
    est = EyeCenterEstimator(original)

    est.apply_tuning(gradient_threshold=12)

    assert est.cfg is not original
    assert original.gradient_threshold == 50.0
    assert est.cfg.gradient_threshold == 12.0


def test_retune_during_estimate_does_not_mix_values(monkeypatch) -> None:
    est = EyeCenterEstimator(EyeCenterConfig())
    real_likelihood = est.likelihood
    seen = []

    def likelihood_then_retune(working, cfg=None):
        out = real_likelihood(working, cfg)
        est.apply_tuning(enable_post_process=False, post_process_threshold=0.5)
        return out

    def suppress(likelihood, threshold_ratio):
        seen.append(threshold_ratio)
        return 0, 0

    monkeypatch.setattr(est, "likelihood", likelihood_then_retune)
    monkeypatch.setattr("eye_tracking.eye_center.suppress_edges", suppress)

    est.estimate(_gray_with_pupil(), Rect(120, 80, 60, 50, Space.FRAME))

    assert seen == [0.97]
    assert est.cfg.enable_post_process is False
