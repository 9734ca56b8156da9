# eye_center.py
"""Gradient-based eye-center localisation for one eye region."""
from __future__ import annotations

import dataclasses
from typing import Tuple

import cv2
import numpy as np

from eye_tracking.common import DegenerateRegion, Point, Rect, Space
from eye_tracking.config import EyeCenterConfig, EyeRegionConfig
from eye_tracking.edge_filter import suppress_edges
from eye_tracking.gradient import (
    compute_x_gradient,
    compute_y_gradient,
    dynamic_threshold,
    magnitude,
    normalize_gradients,
)
from eye_tracking.voting import locate_max, vote_centers


def eye_regions(face: Rect, cfg: EyeRegionConfig) -> Tuple[Rect, Rect]:
    """
    Left/right eye search regions from fixed percentages of ``face``.
    Output is in the same space as ``face``.
    """
    width = int(face.width * (cfg.percent_width / 100.0))
    height = int(face.width * (cfg.percent_height / 100.0))
    top = int(face.height * (cfg.percent_top / 100.0))
    side = int(face.width * (cfg.percent_side / 100.0))
    left = Rect(side, top, width, height, face.space)
    right = Rect(face.width - width - side, top, width, height, face.space)
    return left.translated(face.origin), right.translated(face.origin)


class EyeCenterEstimator:
    """
    Rescale → gradients → vote → (edge filter) → arg-max → unscale.

    ``estimate`` takes and returns coordinates in the space of the
    grayscale buffer it is given (FRAME in the pipeline).
    """

    def __init__(self, cfg: EyeCenterConfig | None = None):
        self.cfg = cfg or EyeCenterConfig()

    # ------------------------------------------------------------------ #
    #   L I V E   T U N I N G   A P I
    # ------------------------------------------------------------------ #
    def apply_tuning(
        self,
        *,
        gradient_threshold: float | None = None,
        enable_weight: bool | None = None,
        weight_divisor: float | None = None,
        enable_post_process: bool | None = None,
        post_process_threshold: float | None = None,
    ) -> None:
        """
        Builds a new config and swaps it in with one assignment, so an
        ``estimate`` running on another thread sees either the old or the
        new values, never a mix.
        """
        changes = {}
        if gradient_threshold is not None:
            changes["gradient_threshold"] = float(gradient_threshold)
        if enable_weight is not None:
            changes["enable_weight"] = bool(enable_weight)
        if weight_divisor is not None and weight_divisor > 0:
            changes["weight_divisor"] = float(weight_divisor)
        if enable_post_process is not None:
            changes["enable_post_process"] = bool(enable_post_process)
        if post_process_threshold is not None and 0 < post_process_threshold <= 1:
            changes["post_process_threshold"] = float(post_process_threshold)
        if changes:
            self.cfg = dataclasses.replace(self.cfg, **changes)

    # ------------------------------------------------------------------ #
    #   S C A L I N G
    # ------------------------------------------------------------------ #
    def _ratio(self, region: Rect) -> float:
        return self.cfg.fast_eye_width / region.width

    def scale_to_fast_size(self, roi: np.ndarray) -> np.ndarray:
        rows, cols = roi.shape[:2]
        height = max(1, int(self.cfg.fast_eye_width / cols * rows))
        return cv2.resize(roi, (self.cfg.fast_eye_width, height))

    def unscale_point(self, p: Point, region: Rect) -> Point:
        """WORKING-space point → offset within ``region`` (region's space)."""
        ratio = self._ratio(region)
        return Point(int(round(p.x / ratio)), int(round(p.y / ratio)), region.space)

    # ------------------------------------------------------------------ #
    #   E S T I M A T E
    # ------------------------------------------------------------------ #
    def likelihood(
        self, working: np.ndarray, cfg: EyeCenterConfig | None = None
    ) -> np.ndarray:
        """Likelihood map for a WORKING-space uint8 buffer."""
        cfg = cfg or self.cfg
        gx = compute_x_gradient(working)
        gy = compute_y_gradient(working)
        mags = magnitude(gx, gy)
        threshold = dynamic_threshold(mags, cfg.gradient_threshold)
        normalize_gradients(gx, gy, mags, threshold)

        k = cfg.weight_blur_size
        blurred = cv2.GaussianBlur(working, (k, k), 0, 0)
        weight = 255 - blurred

        return vote_centers(
            gx,
            gy,
            weight,
            weight_divisor=cfg.weight_divisor,
            use_weight=cfg.enable_weight,
        )

    def estimate(self, gray: np.ndarray, region: Rect) -> Point:
        cfg = self.cfg
        if region.width <= 0 or region.height <= 0:
            raise DegenerateRegion(f"zero-area eye region {region.as_tuple()}")
        rows, cols = gray.shape[:2]
        if not region.inside(cols, rows):
            raise DegenerateRegion(
                f"eye region {region.as_tuple()} outside {cols}x{rows} buffer"
            )

        roi = gray[region.y:region.y + region.height, region.x:region.x + region.width]
        working = self.scale_to_fast_size(roi)
        out = self.likelihood(working, cfg)

        if cfg.enable_post_process:
            x, y = suppress_edges(out, cfg.post_process_threshold)
        else:
            x, y = locate_max(out)

        local = self.unscale_point(Point(x, y, Space.WORKING), region)
        return local.translated(region.origin)
