"""Configuration loader for the calibration engine.

Loads and validates ``calibration.yaml`` into typed, frozen dataclasses.
Fit parameters, session behaviour, storage location and logging all come
from the config.

Usage::

    from stylus_calibration.configs.loader import load_config
    cfg = load_config()                            # shipped defaults
    cfg = load_config("/custom/calibration.yaml")  # explicit path
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from stylus_calibration.curves.fitter import FIT_POLICIES, MAX_EXPONENT, MIN_EXPONENT
from stylus_calibration.errors import ConfigError
from stylus_calibration.store.curve_store import ApplyScope
from stylus_calibration.store.keys import KEY_POLICIES
from stylus_calibration.utils.fs import load_yaml

logger = logging.getLogger(__name__)

STORE_PATH_ENV = "STYLUS_CALIBRATION_STORE"


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FittingConfig:
    """Curve fitting parameters."""

    policy: str = "power"
    n_points: int = 8
    min_samples: int = 10
    default_exponent: float = 1.0
    exponent_min: float = 0.5
    exponent_max: float = 6.0
    outlier_rejection: bool = True
    outlier_sigma: float = 3.0
    outlier_min_keep: int = 5

    def clamp_exponent(self, value: float) -> float:
        lo = max(self.exponent_min, MIN_EXPONENT)
        hi = min(self.exponent_max, MAX_EXPONENT)
        return min(hi, max(lo, float(value)))


@dataclass(frozen=True)
class SessionConfig:
    """Calibration session behaviour.

    Parameters
    ----------
    clear_after_apply : bool
        Empty the sample buffer after a successful apply.
    apply_to_all_devices : bool
        Write the fitted curve to every device with a pressure axis instead
        of only the recording device.
    default_scope : ApplyScope
        Scope used when the caller does not pass one.
    autosave : bool
        Persist the store after every change.
    """

    clear_after_apply: bool = True
    apply_to_all_devices: bool = False
    default_scope: ApplyScope = ApplyScope.CURRENT_BRUSH_ONLY
    autosave: bool = True


@dataclass(frozen=True)
class StorageConfig:
    """Curve store location and keying."""

    store_path: Path
    brush_key: str = "display_name"


@dataclass(frozen=True)
class LoggingConfig:
    """Arguments for :func:`stylus_calibration.utils.logging_config.setup_logging`."""

    level: str = "INFO"
    file: str | None = None
    json: bool = False
    color: bool = True
    rotate: dict[str, Any] | None = None

    def as_kwargs(self) -> dict[str, Any]:
        return {
            "log_level": self.level,
            "log_file": self.file,
            "json": self.json,
            "color": self.color,
            "rotate": self.rotate,
        }


@dataclass(frozen=True)
class CalibrationConfig:
    """Complete configuration loaded from ``calibration.yaml``."""

    fitting: FittingConfig
    session: SessionConfig
    storage: StorageConfig
    logging: LoggingConfig


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _parse_fitting(data: dict[str, Any]) -> FittingConfig:
    return FittingConfig(
        policy=str(data.get("policy", "power")),
        n_points=int(data.get("n_points", 8)),
        min_samples=int(data.get("min_samples", 10)),
        default_exponent=float(data.get("default_exponent", 1.0)),
        exponent_min=float(data.get("exponent_min", 0.5)),
        exponent_max=float(data.get("exponent_max", 6.0)),
        outlier_rejection=bool(data.get("outlier_rejection", True)),
        outlier_sigma=float(data.get("outlier_sigma", 3.0)),
        outlier_min_keep=int(data.get("outlier_min_keep", 5)),
    )


def _parse_scope(raw: str) -> ApplyScope:
    try:
        return ApplyScope(raw)
    except ValueError:
        choices = ", ".join(s.value for s in ApplyScope)
        raise ConfigError(f"session.default_scope must be one of {choices}, got {raw!r}") from None


def _parse_session(data: dict[str, Any]) -> SessionConfig:
    return SessionConfig(
        clear_after_apply=bool(data.get("clear_after_apply", True)),
        apply_to_all_devices=bool(data.get("apply_to_all_devices", False)),
        default_scope=_parse_scope(str(data.get("default_scope", "current_brush"))),
        autosave=bool(data.get("autosave", True)),
    )


def _parse_storage(data: dict[str, Any]) -> StorageConfig:
    raw_path = os.environ.get(STORE_PATH_ENV) or data["store_path"]
    return StorageConfig(
        store_path=Path(str(raw_path)).expanduser(),
        brush_key=str(data.get("brush_key", "display_name")),
    )


def _parse_logging(data: dict[str, Any]) -> LoggingConfig:
    rotate = data.get("rotate")
    return LoggingConfig(
        level=str(data.get("level", "INFO")).upper(),
        file=data.get("file"),
        json=bool(data.get("json", False)),
        color=bool(data.get("color", True)),
        rotate=dict(rotate) if rotate else None,
    )


def _validate_config(cfg: CalibrationConfig) -> None:
    """Validate cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    f = cfg.fitting
    if f.policy not in FIT_POLICIES:
        raise ConfigError(
            f"fitting.policy must be one of {sorted(FIT_POLICIES)}, got {f.policy!r}"
        )
    if f.n_points < 2:
        raise ConfigError(f"fitting.n_points must be >= 2, got {f.n_points}")
    if f.min_samples < 1:
        raise ConfigError(f"fitting.min_samples must be >= 1, got {f.min_samples}")
    if not (MIN_EXPONENT <= f.exponent_min <= f.exponent_max <= MAX_EXPONENT):
        raise ConfigError(
            f"fitting exponent range [{f.exponent_min}, {f.exponent_max}] must lie "
            f"within [{MIN_EXPONENT}, {MAX_EXPONENT}]"
        )
    if not (f.exponent_min <= f.default_exponent <= f.exponent_max):
        raise ConfigError(
            f"fitting.default_exponent {f.default_exponent} outside "
            f"[{f.exponent_min}, {f.exponent_max}]"
        )
    if f.outlier_sigma <= 0.0:
        raise ConfigError(f"fitting.outlier_sigma must be > 0, got {f.outlier_sigma}")
    if f.outlier_min_keep > f.min_samples:
        logger.warning(
            "fitting.outlier_min_keep (%d) exceeds min_samples (%d); "
            "outlier rejection will rarely apply",
            f.outlier_min_keep, f.min_samples,
        )

    if cfg.storage.brush_key not in KEY_POLICIES:
        raise ConfigError(
            f"storage.brush_key must be one of {sorted(KEY_POLICIES)}, "
            f"got {cfg.storage.brush_key!r}"
        )

    if cfg.logging.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"logging.level invalid: {cfg.logging.level!r}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def default_config_path() -> Path:
    return Path(__file__).parent / "calibration.yaml"


def load_config(path: str | Path | None = None) -> CalibrationConfig:
    """Load and validate calibration configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``calibration.yaml``. ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    CalibrationConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = default_config_path() if path is None else Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.debug("Loading configuration from %s", path)

    data: dict[str, Any] = load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    try:
        config = CalibrationConfig(
            fitting=_parse_fitting(data.get("fitting") or {}),
            session=_parse_session(data.get("session") or {}),
            storage=_parse_storage(data["storage"]),
            logging=_parse_logging(data.get("logging") or {}),
        )
    except KeyError as exc:
        raise ConfigError(
            f"Missing required configuration key: {exc}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid configuration value: {exc}"
        ) from exc

    _validate_config(config)
    return config
