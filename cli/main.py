# main.py
"""
Entry-point for the eye-center tracking system.

Live-tuning
-----------
While the program is running you can edit ``runtime_params.json`` and the new
eye-center values (gradient threshold, weighting, edge filter) take effect on
the next frame.  See ``eye_tracking/live_tuning.py`` for the recognised keys.
"""
from __future__ import annotations

import argparse

from eye_tracking.config import (
    CameraConfig,
    DetectorConfig,
    EyeCenterConfig,
    EyeRegionConfig,
    PipelineConfig,
    SmoothingConfig,
)
from eye_tracking.processor import EyeTrackingProcessor


def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Face and eye-center tracker")
    p.add_argument("--device", type=int, default=0, help="camera index")
    p.add_argument("--video", default=None, help="read frames from a video file instead")
    p.add_argument("--width", type=int, default=640)
    p.add_argument("--height", type=int, default=480)
    p.add_argument("--fps", type=int, default=15)
    p.add_argument("--backend", choices=("haar", "mediapipe"), default="haar")
    p.add_argument("--face-cascade", default=None)
    p.add_argument("--eye-cascade", default=None)
    p.add_argument("--no-eye-cascade", action="store_true")
    p.add_argument("--downscale", type=float, default=1.0)
    p.add_argument("--no-edge-filter", action="store_true")
    p.add_argument("--share-eye-history", action="store_true")
    p.add_argument("--valid-only-average", action="store_true")
    p.add_argument("--headless", action="store_true")
    p.add_argument("--params", default="runtime_params.json")
    return p.parse_args(argv)


def main(argv=None) -> None:
    args = _parse_args(argv)

    print("Initializing Eye-Tracking System…")
    print(f"Hint: edit '{args.params}' at any time to tweak parameters.\n")

    # -------------------- Config blobs --------------------
    cam_cfg = CameraConfig(
        source=args.video if args.video else args.device,
        width=args.width,
        height=args.height,
        fps_request=args.fps,
    )
    det_cfg = DetectorConfig(backend=args.backend, downscale=args.downscale)
    if args.face_cascade:
        det_cfg.face_cascade_path = args.face_cascade
    if args.no_eye_cascade:
        det_cfg.eye_cascade_path = None
    elif args.eye_cascade:
        det_cfg.eye_cascade_path = args.eye_cascade
    eye_cfg = EyeCenterConfig(enable_post_process=not args.no_edge_filter)
    reg_cfg = EyeRegionConfig()
    smo_cfg = SmoothingConfig(
        count_valid_only=args.valid_only_average,
        share_eye_history=args.share_eye_history,
    )
    pip_cfg = PipelineConfig()

    # ------------------------ Banner ----------------------
    print(
        f"Camera: src={cam_cfg.source!r}, "
        f"{cam_cfg.width}x{cam_cfg.height}@{cam_cfg.fps_request} FPS"
    )
    print(
        f"Detector: backend={det_cfg.backend}, downscale={det_cfg.downscale}, "
        f"scale={det_cfg.scale_factor}, neighbors={det_cfg.min_neighbors}, "
        f"min={det_cfg.min_size}"
    )
    print(
        f"Eye center: width={eye_cfg.fast_eye_width}px, "
        f"threshold={eye_cfg.gradient_threshold}, "
        f"edge-filter={'ON' if eye_cfg.enable_post_process else 'OFF'}"
    )
    print(
        f"Smoothing: face={smo_cfg.face_history}, eyes={smo_cfg.eye_history}, "
        f"shared-eyes={smo_cfg.share_eye_history}"
    )
    print(f"Pipeline: tokens={pip_cfg.max_tokens}, handoff={pip_cfg.handoff_capacity}")

    # ------------------------ Run -------------------------
    EyeTrackingProcessor(
        cam_cfg,
        det_cfg,
        eye_cfg,
        reg_cfg,
        smo_cfg,
        pip_cfg,
        headless=args.headless,
        runtime_params=args.params,
    ).run()
    print("Main program finished.")


if __name__ == "__main__":
    main()
