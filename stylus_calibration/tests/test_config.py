"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from stylus_calibration.configs.loader import (
    STORE_PATH_ENV,
    CalibrationConfig,
    default_config_path,
    load_config,
)
from stylus_calibration.errors import ConfigError
from stylus_calibration.store.curve_store import ApplyScope
from stylus_calibration.utils.fs import load_yaml


@pytest.fixture
def raw_config() -> dict[str, Any]:
    return load_yaml(default_config_path())


@pytest.fixture(autouse=True)
def _no_store_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(STORE_PATH_ENV, raising=False)


def _dump(tmp_path: Path, data: Any) -> Path:
    path = tmp_path / "calibration.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestDefaults:
    def test_shipped_config_loads(self) -> None:
        cfg = load_config()
        assert isinstance(cfg, CalibrationConfig)
        assert cfg.fitting.policy == "power"
        assert cfg.fitting.n_points == 8
        assert cfg.fitting.min_samples == 10
        assert cfg.fitting.default_exponent == 1.0
        assert (cfg.fitting.exponent_min, cfg.fitting.exponent_max) == (0.5, 6.0)
        assert cfg.session.clear_after_apply is True
        assert cfg.session.apply_to_all_devices is False
        assert cfg.session.default_scope is ApplyScope.CURRENT_BRUSH_ONLY
        assert cfg.storage.brush_key == "display_name"
        assert cfg.logging.level == "INFO"

    def test_store_path_expanded(self) -> None:
        path = load_config().storage.store_path
        assert "~" not in str(path)
        assert path.name == "curves.yaml"

    def test_env_overrides_store_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        target = tmp_path / "elsewhere.yaml"
        monkeypatch.setenv(STORE_PATH_ENV, str(target))
        assert load_config().storage.store_path == target

    def test_clamp_exponent(self) -> None:
        fitting = load_config().fitting
        assert fitting.clamp_exponent(9.0) == 6.0
        assert fitting.clamp_exponent(0.1) == 0.5
        assert fitting.clamp_exponent(2.0) == 2.0

    def test_logging_kwargs(self) -> None:
        kwargs = load_config().logging.as_kwargs()
        assert kwargs["log_level"] == "INFO"
        assert kwargs["rotate"]["mode"] == "size"


class TestValidation:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "calibration.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigError, match="Empty"):
            load_config(path)

    def test_root_must_be_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="mapping"):
            load_config(_dump(tmp_path, [1, 2]))

    def test_missing_storage(self, tmp_path: Path, raw_config: dict) -> None:
        del raw_config["storage"]
        with pytest.raises(ConfigError, match="Missing required"):
            load_config(_dump(tmp_path, raw_config))

    @pytest.mark.parametrize(
        "section, key, value",
        [
            ("fitting", "policy", "spline"),
            ("fitting", "n_points", 1),
            ("fitting", "min_samples", 0),
            ("fitting", "exponent_min", 7.0),
            ("fitting", "exponent_min", 0.1),
            ("fitting", "exponent_max", 8.0),
            ("fitting", "default_exponent", 9.0),
            ("fitting", "outlier_sigma", 0.0),
            ("fitting", "n_points", "many"),
            ("session", "default_scope", "every_brush"),
            ("storage", "brush_key", "path"),
            ("logging", "level", "LOUD"),
        ],
    )
    def test_invalid_values(
        self, tmp_path: Path, raw_config: dict, section: str, key: str, value: Any,
    ) -> None:
        raw_config[section][key] = value
        with pytest.raises(ConfigError):
            load_config(_dump(tmp_path, raw_config))

    def test_partial_sections_use_defaults(self, tmp_path: Path) -> None:
        cfg = load_config(_dump(tmp_path, {"storage": {"store_path": str(tmp_path / "c.yaml")}}))
        assert cfg.fitting.n_points == 8
        assert cfg.session.autosave is True
        assert cfg.storage.store_path == tmp_path / "c.yaml"
