# gradient.py
"""Per-buffer gradient primitives used by the eye-center estimator."""
from __future__ import annotations

import math

import numpy as np


def compute_x_gradient(buf: np.ndarray) -> np.ndarray:
    """
    Central differences along each row.

    The first and last columns use one-sided differences
    (``p[1] - p[0]`` and ``p[n-1] - p[n-2]``); interior columns use
    ``(p[x+1] - p[x-1]) / 2``.  Buffers narrower than two columns have a
    zero gradient.
    """
    mat = np.asarray(buf, dtype=np.float64)
    out = np.zeros(mat.shape, dtype=np.float64)
    if mat.ndim != 2 or mat.shape[1] < 2:
        return out
    out[:, 0] = mat[:, 1] - mat[:, 0]
    out[:, -1] = mat[:, -1] - mat[:, -2]
    out[:, 1:-1] = (mat[:, 2:] - mat[:, :-2]) / 2.0
    return out


def compute_y_gradient(buf: np.ndarray) -> np.ndarray:
    # Same routine on the transpose, so dx and dy share numerics exactly.
    mat = np.asarray(buf, dtype=np.float64)
    return compute_x_gradient(mat.T).T


def magnitude(dx: np.ndarray, dy: np.ndarray) -> np.ndarray:
    return np.sqrt(dx * dx + dy * dy)


def dynamic_threshold(mags: np.ndarray, sensitivity: float) -> float:
    """``mean + sensitivity * std / sqrt(n)`` over the magnitude field."""
    n = mags.size
    if n == 0:
        return 0.0
    mean = float(np.mean(mags))
    std = float(np.std(mags))
    return sensitivity * std / math.sqrt(n) + mean


def normalize_gradients(
    dx: np.ndarray, dy: np.ndarray, mags: np.ndarray, threshold: float
) -> None:
    """
    In place: unit vectors where ``mags > threshold``, zero elsewhere.
    Zeroed pixels do not vote.
    """
    keep = mags > threshold
    np.divide(dx, mags, out=dx, where=keep)
    np.divide(dy, mags, out=dy, where=keep)
    dx[~keep] = 0.0
    dy[~keep] = 0.0
