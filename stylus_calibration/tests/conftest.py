"""Shared fixtures for the calibration engine tests."""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Callable

import pytest

from stylus_calibration.configs.loader import CalibrationConfig, load_config
from stylus_calibration.host import InMemoryDeviceManager
from stylus_calibration.session import CalibrationSession


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "curves.yaml"


@pytest.fixture
def config(store_path: Path, monkeypatch: pytest.MonkeyPatch) -> CalibrationConfig:
    """Shipped defaults with the store redirected into tmp_path."""
    monkeypatch.delenv("STYLUS_CALIBRATION_STORE", raising=False)
    base = load_config()
    storage = dataclasses.replace(base.storage, store_path=store_path)
    return dataclasses.replace(base, storage=storage)


@pytest.fixture
def host() -> InMemoryDeviceManager:
    manager = InMemoryDeviceManager()
    manager.add_device("stylus", make_current=True)
    manager.set_current_brush("Pencil 02")
    return manager


@pytest.fixture
def session(host: InMemoryDeviceManager, config: CalibrationConfig) -> CalibrationSession:
    return CalibrationSession.from_config(host, config)


@pytest.fixture
def draw() -> Callable[..., int]:
    """Feed strokes into a session: ``draw(session, strokes=2, samples=6)``.

    Each stroke moves 5 px every 10 ms (a constant 500 px/s) with pressure
    rising from ``base`` in steps of 0.05. Returns the number of samples fed.
    """

    def _draw(
        target: CalibrationSession,
        strokes: int = 2,
        samples: int = 6,
        base: float | None = 0.3,
    ) -> int:
        t = 0
        fed = 0
        for s in range(strokes):
            y = 20.0 * s
            target.begin_stroke(0.0, y)
            for i in range(samples):
                pressure = None if base is None else base + 0.05 * i
                target.record_sample(pressure, 5.0 * i, y, t)
                t += 10
                fed += 1
            target.end_stroke()
            t += 200
        return fed

    return _draw
