"""Stylus velocity derivation and summary.

Velocity is measured in **pixels per second** between consecutive motion
samples of the same stroke. Pairs with a non-positive time delta are
degenerate and must be skipped by the caller.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from stylus_calibration.errors import DegenerateInterval

# Used when a recording produced no velocity samples at all.
DEFAULT_MIN_VELOCITY = 0.0
DEFAULT_MAX_VELOCITY = 1000.0
DEFAULT_AVG_VELOCITY = 500.0

# Fastest average strokes thin the curve by at most this fraction.
MAX_VELOCITY_REDUCTION = 0.2


def velocity(distance: float, dt_seconds: float) -> float:
    """Return ``distance / dt_seconds``.

    Raises
    ------
    DegenerateInterval
        If ``dt_seconds <= 0``.
    """
    if dt_seconds <= 0.0:
        raise DegenerateInterval(f"Non-positive time delta: {dt_seconds:.4f} s")
    return distance / dt_seconds


def distance(x0: float, y0: float, x1: float, y1: float) -> float:
    """Euclidean distance between two positions (px)."""
    return math.hypot(x1 - x0, y1 - y0)


@dataclass(frozen=True)
class VelocitySummary:
    """Min / max / average velocity over a recording.

    Parameters
    ----------
    min : float
        Slowest velocity (px/s).
    max : float
        Fastest velocity (px/s).
    avg : float
        Arithmetic mean velocity (px/s).
    count : int
        Number of velocity samples; 0 when the defaults are in use.
    """

    min: float = DEFAULT_MIN_VELOCITY
    max: float = DEFAULT_MAX_VELOCITY
    avg: float = DEFAULT_AVG_VELOCITY
    count: int = 0

    @classmethod
    def from_samples(cls, samples: Sequence[float]) -> "VelocitySummary":
        if len(samples) == 0:
            return cls()
        return cls(
            min=float(min(samples)),
            max=float(max(samples)),
            avg=float(sum(samples) / len(samples)),
            count=len(samples),
        )

    def velocity_strength(self) -> float:
        """Scaling factor in ``[0.8, 1.0]``; faster average → lower factor.

        ``1 - 0.2 * (avg - min) / (max - min)``, or exactly 1.0 when there
        are no samples or the range is degenerate.
        """
        if self.count == 0 or self.max <= self.min:
            return 1.0
        normalized = (self.avg - self.min) / (self.max - self.min)
        strength = 1.0 - normalized * MAX_VELOCITY_REDUCTION
        return min(1.0, max(1.0 - MAX_VELOCITY_REDUCTION, strength))
