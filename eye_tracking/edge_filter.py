# edge_filter.py
"""Flood-fill suppression of likelihood mass attached to the region border."""
from __future__ import annotations

from typing import Tuple

import cv2
import numpy as np

from eye_tracking.voting import locate_max


def flood_kill_edges(likelihood: np.ndarray, threshold_ratio: float = 0.97) -> np.ndarray:
    """
    Boolean mask of cells *not* reached by a flood seeded at the border.

    Only near-maximum cells (``> max * threshold_ratio``) are passable.  The
    border ring is painted passable and the flood starts from the four
    corners with 4-connectivity, so every blob touching the edge is removed
    together with the ring itself.
    """
    rows, cols = likelihood.shape
    if rows == 0 or cols == 0:
        return np.zeros((rows, cols), dtype=bool)

    flood_thresh = float(likelihood.max()) * threshold_ratio
    passable = (likelihood > flood_thresh) & (likelihood > 0.0)
    passable = passable.astype(np.uint8)
    passable[0, :] = 1
    passable[-1, :] = 1
    passable[:, 0] = 1
    passable[:, -1] = 1

    _, labels = cv2.connectedComponents(passable, connectivity=4)
    corners = {
        labels[0, 0],
        labels[0, cols - 1],
        labels[rows - 1, 0],
        labels[rows - 1, cols - 1],
    }
    reached = np.isin(labels, list(corners)) & (passable > 0)
    return ~reached


def suppress_edges(
    likelihood: np.ndarray, threshold_ratio: float = 0.97
) -> Tuple[int, int]:
    """
    Arg-max ``(x, y)`` of ``likelihood`` ignoring border-attached peaks.
    Falls back to the plain arg-max when nothing survives the flood.
    """
    mask = flood_kill_edges(likelihood, threshold_ratio)
    if not mask.any():
        return locate_max(likelihood)
    return locate_max(likelihood, mask)
