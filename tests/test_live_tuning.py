import json
import os

from eye_tracking.config import EyeCenterConfig
from eye_tracking.eye_center import EyeCenterEstimator
from eye_tracking.live_tuning import RuntimeParamWatcher


def test_loaded_params_are_applied_to_estimator(tmp_path) -> None:
    path = tmp_path / "runtime_params.json"
    path.write_text(json.dumps({
        "gradient_threshold": 20,
        "enable_post_process": False,
        "unrelated": 1,
    }))
    est = EyeCenterEstimator(EyeCenterConfig())

    watcher = RuntimeParamWatcher(path)
    watcher.apply(est)

    assert watcher.tuning() == {"gradient_threshold": 20, "enable_post_process": False}
    assert est.cfg.gradient_threshold == 20.0
    assert est.cfg.enable_post_process is False


def test_changed_file_is_reloaded(tmp_path) -> None:
    path = tmp_path / "runtime_params.json"
    path.write_text(json.dumps({"gradient_threshold": 20}))
    watcher = RuntimeParamWatcher(path)
    assert watcher.maybe_reload() is False

    path.write_text(json.dumps({"gradient_threshold": 35.5, "weight_divisor": 2.0}))
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 5))

    assert watcher.maybe_reload() is True
    assert watcher.params["gradient_threshold"] == 35.5


def test_missing_file_disables_tuning(tmp_path) -> None:
    watcher = RuntimeParamWatcher(tmp_path / "absent.json")

    assert watcher.params == {}
    assert watcher.maybe_reload() is False


def test_bad_json_keeps_previous_params(tmp_path) -> None:
    path = tmp_path / "runtime_params.json"
    path.write_text(json.dumps({"gradient_threshold": 20}))
    watcher = RuntimeParamWatcher(path)

    path.write_text("{not json")
    stat = path.stat()
    os.utime(path, (stat.st_atime, stat.st_mtime + 5))

    assert watcher.maybe_reload() is False
    assert watcher.params == {"gradient_threshold": 20}
