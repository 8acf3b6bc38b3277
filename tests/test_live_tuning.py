import json

from camera_direction.config import FusionConfig
from camera_direction.live_tuning import RuntimeParamWatcher


def test_missing_file_leaves_config_alone(tmp_path) -> None:
    watcher = RuntimeParamWatcher(tmp_path / "runtime_params.json")
    cfg = FusionConfig()

    assert watcher.params == {}
    assert watcher.maybe_reload() is False
    assert watcher.apply_to(cfg) == []


def test_apply_known_keys(tmp_path) -> None:
    path = tmp_path / "runtime_params.json"
    path.write_text(json.dumps({"min_blob_size": "450", "lifetime_threshold": 0.5, "unrelated": 1}))
    cfg = FusionConfig()

    changed = RuntimeParamWatcher(path).apply_to(cfg)

    assert sorted(changed) == ["lifetime_threshold", "min_blob_size"]
    assert cfg.min_blob_size == 450
    assert cfg.lifetime_threshold == 0.5


def test_reload_after_change(tmp_path) -> None:
    path = tmp_path / "runtime_params.json"
    path.write_text(json.dumps({"motion_noise": 0.05}))
    watcher = RuntimeParamWatcher(path)
    assert watcher.maybe_reload() is False

    path.write_text(json.dumps({"motion_noise": 0.5, "measurement_noise": 0.25}))

    assert watcher.maybe_reload() is True
    assert watcher.get("measurement_noise") == 0.25


def test_bad_values_are_ignored(tmp_path) -> None:
    path = tmp_path / "runtime_params.json"
    path.write_text(json.dumps({"min_blob_size": "many", "update_rate_hz": 0}))
    cfg = FusionConfig()

    assert RuntimeParamWatcher(path).apply_to(cfg) == []
    assert cfg.min_blob_size == 300
    assert cfg.update_rate_hz == 10.0


def test_invalid_json_keeps_previous_params(tmp_path) -> None:
    path = tmp_path / "runtime_params.json"
    path.write_text(json.dumps({"min_blob_size": 10}))
    watcher = RuntimeParamWatcher(path)

    path.write_text("{not json")
    watcher.maybe_reload()

    assert watcher.get("min_blob_size") == 10
