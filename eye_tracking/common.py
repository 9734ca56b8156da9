# common.py
"""Objects that are shared across multiple modules."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np


# ------------------- Exceptions -------------------
class TrackingError(RuntimeError):
    """Base class for every error raised by the tracking core."""


class AcquisitionFailure(TrackingError):
    """Capture device unavailable or stream exhausted."""


class ModelLoadFailure(TrackingError):
    """A detector model is missing or cannot be parsed."""


class HandoffFailure(TrackingError):
    """A finished frame could not be handed to the presenter."""


class DegenerateRegion(TrackingError, ValueError):
    """Zero-area or out-of-bounds region passed to the eye estimator."""


# ----------------- Coordinate spaces ----------------
class Space(str, Enum):
    FRAME = "frame"          # raw frame pixels
    DETECTION = "detection"  # downscaled detection buffer
    WORKING = "working"      # canonical eye working buffer


def _same_space(a: Space, b: Space) -> None:
    if a != b:
        raise ValueError(f"coordinate space mismatch: {a.value} vs {b.value}")


@dataclass(frozen=True)
class Point:
    x: int
    y: int
    space: Space = Space.FRAME

    def offset(self, dx: int, dy: int) -> "Point":
        return Point(self.x + dx, self.y + dy, self.space)

    def translated(self, origin: "Point") -> "Point":
        _same_space(self.space, origin.space)
        return self.offset(origin.x, origin.y)

    def components(self) -> Tuple[int, int]:
        return (self.x, self.y)

    @classmethod
    def from_components(cls, values, space: Space) -> "Point":
        x, y = values
        return cls(int(x), int(y), space)


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned integer box.  ``space`` names the coordinate system; the
    only way to move a rect between spaces is :meth:`scaled`.
    """
    x: int
    y: int
    width: int
    height: int
    space: Space = Space.FRAME

    @property
    def area(self) -> int:
        return max(0, self.width) * max(0, self.height)

    @property
    def origin(self) -> Point:
        return Point(self.x, self.y, self.space)

    def scaled(self, factor: float, space: Space) -> "Rect":
        """Multiply every component by ``factor``, landing in ``space``."""
        return Rect(
            int(round(self.x * factor)),
            int(round(self.y * factor)),
            int(round(self.width * factor)),
            int(round(self.height * factor)),
            space,
        )

    def offset(self, dx: int, dy: int) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height, self.space)

    def translated(self, origin: Point) -> "Rect":
        _same_space(self.space, origin.space)
        return self.offset(origin.x, origin.y)

    def clipped(self, width: int, height: int) -> "Rect":
        """Intersect with the buffer ``[0, width) x [0, height)``."""
        x0 = max(0, self.x)
        y0 = max(0, self.y)
        x1 = min(width, self.x + self.width)
        y1 = min(height, self.y + self.height)
        return Rect(x0, y0, max(0, x1 - x0), max(0, y1 - y0), self.space)

    def inside(self, width: int, height: int) -> bool:
        return (
            self.x >= 0
            and self.y >= 0
            and self.x + self.width <= width
            and self.y + self.height <= height
        )

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)

    def components(self) -> Tuple[int, int, int, int]:
        return self.as_tuple()

    @classmethod
    def from_components(cls, values, space: Space) -> "Rect":
        x, y, w, h = values
        return cls(int(x), int(y), int(w), int(h), space)


# ---------------------- Frames ----------------------
@dataclass
class FaceAnnotation:
    """Per-face result, all in FRAME space."""
    face: Rect
    left_region: Optional[Rect] = None
    right_region: Optional[Rect] = None
    left_center: Optional[Point] = None
    right_center: Optional[Point] = None


@dataclass
class Frame:
    """
    One unit of work travelling through the pipeline.  ``image`` is the
    colour buffer that gets annotated in place; ``faces`` and
    ``eye_candidates`` are in DETECTION space.
    """
    image: np.ndarray
    timestamp: float = field(default_factory=time.time)
    index: int = -1
    gray: Optional[np.ndarray] = None
    small: Optional[np.ndarray] = None
    faces: List[Rect] = field(default_factory=list)
    eye_candidates: List[Rect] = field(default_factory=list)
    annotations: List[FaceAnnotation] = field(default_factory=list)


class _EndOfStream:
    _instance: Optional["_EndOfStream"] = None

    def __new__(cls) -> "_EndOfStream":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END_OF_STREAM"

    def __bool__(self) -> bool:
        return False


END_OF_STREAM = _EndOfStream()
