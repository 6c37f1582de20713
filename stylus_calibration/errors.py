"""Exceptions raised by the calibration engine.

Every failure the engine can report derives from :class:`CalibrationError`
so UI adapters can catch a single type and turn it into a status message.
"""

from __future__ import annotations


class CalibrationError(Exception):
    """Base class for recoverable calibration failures."""

    pass


class InsufficientSamples(CalibrationError):
    """Fewer pressure samples were collected than a fit needs."""

    def __init__(self, collected: int, required: int) -> None:
        self.collected = collected
        self.required = required
        super().__init__(
            f"Not enough samples: collected {collected}, need at least {required}"
        )


class InsufficientData(CalibrationError):
    """Statistics were requested over an empty sample set."""

    pass


class NoActiveBrush(CalibrationError):
    """A current-brush calibration was requested with no brush selected."""

    pass


class DegenerateInterval(CalibrationError):
    """Two consecutive samples share a timestamp (or go backwards)."""

    pass


class PersistenceError(CalibrationError):
    """The curve store could not be written or read."""

    pass


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass
