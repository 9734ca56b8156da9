import math

import numpy as np

from eye_tracking.gradient import (
    compute_x_gradient,
    compute_y_gradient,
    dynamic_threshold,
    magnitude,
    normalize_gradients,
)


def test_x_gradient_uses_one_sided_edges_and_central_interior() -> None:
    buf = np.array([[1, 4, 9, 16]], dtype=np.uint8)

    grad = compute_x_gradient(buf)

    assert grad.tolist() == [[3.0, 4.0, 6.0, 7.0]]


def test_y_gradient_is_transposed_x_gradient() -> None:
    rng = np.random.default_rng(7)
    buf = rng.integers(0, 256, size=(9, 13)).astype(np.uint8)

    gy = compute_y_gradient(buf)

    assert np.array_equal(gy, compute_x_gradient(buf.T).T)
    assert gy.shape == buf.shape


def test_y_gradient_of_vertical_ramp() -> None:
    buf = np.array([[0, 0], [10, 10], [30, 30]], dtype=np.uint8)

    gy = compute_y_gradient(buf)

    assert gy[:, 0].tolist() == [10.0, 15.0, 20.0]


def test_single_column_has_zero_x_gradient() -> None:
    buf = np.array([[5], [9], [1]], dtype=np.uint8)

    assert not compute_x_gradient(buf).any()


def test_magnitude_is_euclidean_norm() -> None:
    dx = np.array([[3.0, 0.0]])
    dy = np.array([[4.0, 2.0]])

    assert magnitude(dx, dy).tolist() == [[5.0, 2.0]]


def test_dynamic_threshold_formula() -> None:
    mags = np.array([[0.0, 2.0], [4.0, 6.0]])

    threshold = dynamic_threshold(mags, 2.0)

    assert math.isclose(threshold, 3.0 + 2.0 * math.sqrt(5.0) / 2.0)


def test_threshold_decision_unchanged_under_uniform_scaling() -> None:
    rng = np.random.default_rng(3)
    mags = rng.uniform(0.0, 100.0, size=(20, 30))

    t1 = dynamic_threshold(mags, 50.0)
    for k in (4.0, 3.0, 0.25):
        tk = dynamic_threshold(mags * k, 50.0)
        assert math.isclose(tk, t1 * k, rel_tol=1e-12)
        assert np.array_equal(mags > t1, (mags * k) > tk)


def test_normalize_keeps_unit_vectors_above_threshold_only() -> None:
    dx = np.array([[3.0, 0.1]])
    dy = np.array([[4.0, 0.0]])
    mags = magnitude(dx, dy)

    normalize_gradients(dx, dy, mags, threshold=1.0)

    assert np.allclose(dx, [[0.6, 0.0]])
    assert np.allclose(dy, [[0.8, 0.0]])
