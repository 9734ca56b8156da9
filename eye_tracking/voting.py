# voting.py
"""Gradient voting for eye-center likelihood (Timm & Barth)."""
from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

_CHUNK = 256  # voters per broadcast block


def vote_centers(
    gx: np.ndarray,
    gy: np.ndarray,
    weight: np.ndarray,
    weight_divisor: float = 1.0,
    use_weight: bool = True,
) -> np.ndarray:
    """
    Build the likelihood map for a normalised gradient field.

    Every pixel ``p`` with a nonzero gradient votes for every candidate
    ``c != p`` with ``max(0, d·g)² * weight(p)``, where ``d`` is the unit
    displacement from ``c`` towards ``p``.  The result is averaged over the
    pixel count so scores are comparable across eye sizes.

    Cost is O(pixels²); callers keep the buffer small.
    """
    rows, cols = gx.shape
    out = np.zeros((rows, cols), dtype=np.float64)
    if rows == 0 or cols == 0:
        return out

    vy, vx = np.nonzero((gx != 0.0) | (gy != 0.0))
    if vx.size == 0:
        return out

    if use_weight:
        w = weight[vy, vx].astype(np.float64) / weight_divisor
    else:
        w = np.ones(vx.size, dtype=np.float64)
    g_x = gx[vy, vx]
    g_y = gy[vy, vx]

    cy, cx = np.mgrid[0:rows, 0:cols]
    cx = cx.ravel().astype(np.float64)
    cy = cy.ravel().astype(np.float64)
    acc = np.zeros(rows * cols, dtype=np.float64)

    for start in range(0, vx.size, _CHUNK):
        sl = slice(start, start + _CHUNK)
        dx = vx[sl, None] - cx[None, :]
        dy = vy[sl, None] - cy[None, :]
        norm = np.sqrt(dx * dx + dy * dy)
        # c == p: zero displacement, zero vote
        np.divide(dx, norm, out=dx, where=norm > 0)
        np.divide(dy, norm, out=dy, where=norm > 0)
        dot = dx * g_x[sl, None] + dy * g_y[sl, None]
        np.maximum(dot, 0.0, out=dot)
        acc += (dot * dot * w[sl, None]).sum(axis=0)

    out[:] = acc.reshape(rows, cols)
    out /= float(rows * cols)
    return out


def locate_max(
    likelihood: np.ndarray, mask: Optional[np.ndarray] = None
) -> Tuple[int, int]:
    """Return ``(x, y)`` of the largest cell, optionally restricted to ``mask``."""
    if mask is None:
        flat = int(np.argmax(likelihood))
    else:
        masked = np.where(mask, likelihood, -np.inf)
        flat = int(np.argmax(masked))
    y, x = np.unravel_index(flat, likelihood.shape)
    return int(x), int(y)
