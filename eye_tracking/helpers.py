# helpers.py
"""Small utility classes that don’t fit elsewhere."""
from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

import numpy as np

from eye_tracking.common import Point, Rect
from eye_tracking.config import SmoothingConfig

T = TypeVar("T", Rect, Point)


class TemporalSmoother(Generic[T]):
    """
    Fixed-depth circular moving average over Rects or Points.

    By default the mean runs over the whole zero-initialised history, so the
    first ``capacity - 1`` outputs are pulled towards the origin.  With
    ``count_valid_only`` only the filled slots are averaged.
    """
    def __init__(self, capacity: int, count_valid_only: bool = False):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.count_valid_only = count_valid_only
        self._history: Optional[np.ndarray] = None
        self._cursor = 0
        self._filled = 0

    @property
    def filled(self) -> int:
        return self._filled

    def reset(self) -> None:
        self._history = None
        self._cursor = 0
        self._filled = 0

    def push(self, sample: T) -> T:
        values = np.asarray(sample.components(), dtype=np.float64)
        if self._history is None:
            self._history = np.zeros((self.capacity, values.size), dtype=np.float64)
        elif self._history.shape[1] != values.size:
            raise TypeError("cannot mix Rect and Point samples in one history")

        self._history[self._cursor] = values
        self._cursor = (self._cursor + 1) % self.capacity
        self._filled = min(self._filled + 1, self.capacity)

        if self.count_valid_only and self._filled < self.capacity:
            # Slots [0, filled) are the written ones until the buffer wraps.
            mean = self._history[: self._filled].mean(axis=0)
        else:
            mean = self._history.mean(axis=0)
        return type(sample).from_components(np.floor(mean + 0.5), sample.space)


class SmootherBank:
    """Owned smoothing state for one tracked face: face box plus both eyes."""
    def __init__(self, cfg: SmoothingConfig):
        self.face: TemporalSmoother[Rect] = TemporalSmoother(
            cfg.face_history, cfg.count_valid_only
        )
        self.left_eye: TemporalSmoother[Point] = TemporalSmoother(
            cfg.eye_history, cfg.count_valid_only
        )
        if cfg.share_eye_history:
            self.right_eye = self.left_eye
        else:
            self.right_eye = TemporalSmoother(cfg.eye_history, cfg.count_valid_only)

    def eye(self, side: str) -> TemporalSmoother[Point]:
        return self.left_eye if side == "left" else self.right_eye


class SmootherRegistry:
    """One :class:`SmootherBank` per face slot, created on first use."""
    def __init__(self, cfg: SmoothingConfig):
        self.cfg = cfg
        self._banks: List[SmootherBank] = []

    def __len__(self) -> int:
        return len(self._banks)

    def bank(self, slot: int) -> SmootherBank:
        while len(self._banks) <= slot:
            self._banks.append(SmootherBank(self.cfg))
        return self._banks[slot]
