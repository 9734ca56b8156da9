import cv2
import numpy as np

from eye_tracking.gradient import (
    compute_x_gradient,
    compute_y_gradient,
    dynamic_threshold,
    magnitude,
    normalize_gradients,
)
from eye_tracking.voting import locate_max, vote_centers


def _field(img: np.ndarray):
    gx = compute_x_gradient(img)
    gy = compute_y_gradient(img)
    mags = magnitude(gx, gy)
    normalize_gradients(gx, gy, mags, dynamic_threshold(mags, 50.0))
    return gx, gy


def test_dark_disk_votes_for_its_centroid() -> None:
    img = np.full((31, 31), 220, dtype=np.uint8)
    cv2.circle(img, (15, 15), 6, 40, -1)
    gx, gy = _field(img)
    weight = 255 - cv2.GaussianBlur(img, (5, 5), 0)

    out = vote_centers(gx, gy, weight)
    x, y = locate_max(out)

    assert abs(x - 15) <= 1 and abs(y - 15) <= 1


def test_off_center_disk() -> None:
    img = np.full((30, 40), 200, dtype=np.uint8)
    cv2.circle(img, (27, 12), 5, 30, -1)
    gx, gy = _field(img)
    weight = 255 - cv2.GaussianBlur(img, (5, 5), 0)

    x, y = locate_max(vote_centers(gx, gy, weight))

    assert abs(x - 27) <= 1 and abs(y - 12) <= 1


def test_flat_field_gives_zero_map() -> None:
    gx = np.zeros((5, 6))
    gy = np.zeros((5, 6))
    weight = np.full((5, 6), 255, dtype=np.uint8)

    out = vote_centers(gx, gy, weight)

    assert out.shape == (5, 6)
    assert not out.any()


def test_single_voter_scores_are_averaged_over_pixel_count() -> None:
    gx = np.zeros((3, 3))
    gy = np.zeros((3, 3))
    gx[1, 2] = 1.0  # voter at (x=2, y=1) pointing +x
    weight = np.ones((3, 3), dtype=np.uint8)

    out = vote_centers(gx, gy, weight)

    assert np.isclose(out[1, 0], 1.0 / 9)
    assert np.isclose(out[1, 1], 1.0 / 9)
    assert np.isclose(out[0, 0], 0.8 / 9)
    assert out[0, 2] == 0.0
    assert out[1, 2] == 0.0  # the voter itself


def test_anti_aligned_votes_are_discarded() -> None:
    gx = np.zeros((3, 3))
    gy = np.zeros((3, 3))
    gx[1, 2] = -1.0
    weight = np.ones((3, 3), dtype=np.uint8)

    out = vote_centers(gx, gy, weight)

    assert not out.any()


def test_weight_scales_votes_and_divisor_undoes_it() -> None:
    gx = np.zeros((3, 3))
    gy = np.zeros((3, 3))
    gx[1, 2] = 1.0
    ones = np.ones((3, 3), dtype=np.uint8)
    twos = np.full((3, 3), 2, dtype=np.uint8)

    base = vote_centers(gx, gy, ones)

    assert np.allclose(vote_centers(gx, gy, twos), 2 * base)
    assert np.allclose(vote_centers(gx, gy, twos, weight_divisor=2.0), base)
    assert np.allclose(vote_centers(gx, gy, twos, use_weight=False), base)


def test_locate_max_respects_mask() -> None:
    grid = np.array([[0.0, 5.0], [3.0, 1.0]])
    mask = np.array([[True, False], [True, True]])

    assert locate_max(grid) == (1, 0)
    assert locate_max(grid, mask) == (0, 1)
