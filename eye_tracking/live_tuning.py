# live_tuning.py
"""Hot-reload eye-center parameters from a JSON file while running."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Tuple

from eye_tracking.eye_center import EyeCenterEstimator

# Keys forwarded to EyeCenterEstimator.apply_tuning()
TUNABLE_KEYS = (
    "gradient_threshold",
    "enable_weight",
    "weight_divisor",
    "enable_post_process",
    "post_process_threshold",
)


class RuntimeParamWatcher:
    """
    Watch ``runtime_params.json``; when it changes, reload it and push the
    recognised keys into the estimator.  Unknown keys are ignored.
    """

    def __init__(self, path: str | Path = "runtime_params.json") -> None:
        self.path = Path(path).expanduser().resolve()
        self._stamp: Tuple[float, int] = (0.0, -1)  # (mtime, size)
        self.params: Dict[str, Any] = {}
        self._load(initial=True)

    def _load(self, *, initial: bool = False) -> bool:
        try:
            with self.path.open("r", encoding="utf-8") as fp:
                params = json.load(fp)
            stat = self.path.stat()
        except FileNotFoundError:
            if initial:
                print(f"[Runtime] {self.path} not found – live-tuning disabled.")
            else:
                print(f"[Runtime] {self.path} was deleted – keeping old params.")
            return False
        except json.JSONDecodeError as exc:
            print(f"[Runtime] JSON error in {self.path}: {exc}")
            return False
        if not isinstance(params, dict):
            print(f"[Runtime] {self.path} must hold a JSON object – ignored.")
            return False

        self.params = params
        self._stamp = (stat.st_mtime, stat.st_size)
        print(f"[Runtime] {'Loaded' if initial else 'Reloaded'} parameters from {self.path}")
        return True

    def maybe_reload(self) -> bool:
        """Reload if the file changed since the last call; True on reload."""
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return False

        mtime, fsize = self._stamp
        # Coarse filesystem timestamps: size change or >= 1 s counts.
        if stat.st_size != fsize or stat.st_mtime - mtime >= 1.0:
            return self._load()
        return False

    def tuning(self) -> Dict[str, Any]:
        return {k: self.params[k] for k in TUNABLE_KEYS if k in self.params}

    def apply(self, estimator: EyeCenterEstimator) -> None:
        values = self.tuning()
        if values:
            estimator.apply_tuning(**values)
