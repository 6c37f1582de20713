"""Curve fitting: recorded statistics → pressure response curve.

Each fit policy is a named strategy that shapes ``y`` for an input
pressure ``x``. :func:`fit` samples the chosen policy at ``n_points`` evenly
spaced x positions (``x_i = i / (n_points - 1)``) and clamps every y into
``[0, 1]`` before building the :class:`Curve`.

Policies
--------
``power``
    ``y = x**exponent * velocity_strength`` (canonical).
``normalize``
    Linear stretch of ``[min_pressure, max_pressure]`` onto ``[0, 1]``.
``squared``
    Square of the linear stretch.
``sigmoid``
    Logistic centred on the median pressure; steepness from the exponent
    and the interquartile spread (wider spread → gentler curve).

Usage::

    from stylus_calibration.curves.fitter import fit_samples
    curve = fit_samples(buffer.pressure_samples, buffer.velocity_samples,
                        exponent=2.0, policy="power")
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from stylus_calibration.analysis.statistics import (
    DEFAULT_MIN_KEEP,
    DEFAULT_OUTLIER_K,
    Statistics,
    describe,
    reject_outliers,
)
from stylus_calibration.analysis.velocity import VelocitySummary
from stylus_calibration.curves.curve import Curve
from stylus_calibration.errors import InsufficientSamples

logger = logging.getLogger(__name__)

MIN_SAMPLES = 10
DEFAULT_EXPONENT = 1.0
MIN_EXPONENT = 0.5
MAX_EXPONENT = 6.0
DEFAULT_N_POINTS = 8

SIGMOID_MIN_STEEPNESS = 4.0
SIGMOID_MAX_STEEPNESS = 12.0


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return min(hi, max(lo, value))


# ---------------------------------------------------------------------------
# Fit inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FitInputs:
    """Everything a policy may look at.

    Parameters
    ----------
    pressure : Statistics
        Statistics of the (outlier-filtered) pressure samples.
    velocity : VelocitySummary
        Velocity summary; the no-data defaults when nothing was recorded.
    exponent : float
        User power setting.
    """

    pressure: Statistics
    velocity: VelocitySummary
    exponent: float = DEFAULT_EXPONENT

    @property
    def velocity_strength(self) -> float:
        return self.velocity.velocity_strength()


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


class FitPolicy(ABC):
    """Maps an input pressure to an (unclamped) output pressure."""

    name: str = ""

    @abstractmethod
    def shape(self, x: float, inputs: FitInputs) -> float:
        ...

    def describe(self, inputs: FitInputs) -> str:
        return self.name


class PowerLawFit(FitPolicy):
    name = "power"

    def shape(self, x: float, inputs: FitInputs) -> float:
        return math.pow(x, inputs.exponent) * inputs.velocity_strength

    def describe(self, inputs: FitInputs) -> str:
        return f"y = (x^{inputs.exponent:.2f}) x {inputs.velocity_strength:.3f}"


class RangeNormalizeFit(FitPolicy):
    name = "normalize"

    def shape(self, x: float, inputs: FitInputs) -> float:
        lo, hi = inputs.pressure.min, inputs.pressure.max
        if hi <= lo:
            return x
        return (x - lo) / (hi - lo)

    def describe(self, inputs: FitInputs) -> str:
        return f"y = (x - {inputs.pressure.min:.3f}) / {inputs.pressure.range:.3f}"


class SquaredNormalizeFit(FitPolicy):
    name = "squared"

    def shape(self, x: float, inputs: FitInputs) -> float:
        lo, hi = inputs.pressure.min, inputs.pressure.max
        if hi <= lo:
            return x * x
        t = _clamp((x - lo) / (hi - lo))
        return t * t


class SigmoidFit(FitPolicy):
    name = "sigmoid"

    def steepness(self, inputs: FitInputs) -> float:
        p = inputs.pressure
        spread = p.iqr / p.range if p.range > 0.0 else 0.5
        spread = _clamp(spread)
        k = (SIGMOID_MAX_STEEPNESS - 8.0 * spread) * inputs.exponent
        return _clamp(k, SIGMOID_MIN_STEEPNESS, SIGMOID_MAX_STEEPNESS)

    def shape(self, x: float, inputs: FitInputs) -> float:
        k = self.steepness(inputs)
        x0 = inputs.pressure.median
        return inputs.velocity_strength / (1.0 + math.exp(-k * (x - x0)))

    def describe(self, inputs: FitInputs) -> str:
        return (
            f"y = {inputs.velocity_strength:.3f} / (1 + exp(-{self.steepness(inputs):.2f}"
            f" (x - {inputs.pressure.median:.3f})))"
        )


FIT_POLICIES: dict[str, FitPolicy] = {
    policy.name: policy
    for policy in (PowerLawFit(), RangeNormalizeFit(), SquaredNormalizeFit(), SigmoidFit())
}


def get_policy(name: str) -> FitPolicy:
    """Look up a fit policy by name.

    Raises
    ------
    ValueError
        If *name* is not registered.
    """
    try:
        return FIT_POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown fit policy {name!r}; choose from {sorted(FIT_POLICIES)}"
        ) from None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def fit(
    pressure: Statistics,
    velocity: VelocitySummary | None = None,
    exponent: float = DEFAULT_EXPONENT,
    n_points: int = DEFAULT_N_POINTS,
    policy: str = "power",
) -> Curve:
    """Build a curve from precomputed statistics.

    Parameters
    ----------
    pressure : Statistics
        Pressure statistics.
    velocity : VelocitySummary | None
        Velocity summary; ``None`` uses the no-data defaults.
    exponent : float
        Power setting in ``[0.5, 6.0]``.
    n_points : int
        Total number of emitted control points (>= 2), placed at
        ``x_i = i / (n_points - 1)``. This is a point count, not a segment
        count: ``n_points=8`` gives 8 points, where an ``x_i = i / n`` for
        ``i = 0..n`` reading with ``n=8`` would give 9.
    policy : str
        Name from :data:`FIT_POLICIES`.

    Returns
    -------
    Curve
        Curve tagged with the policy name.
    """
    if n_points < 2:
        raise ValueError(f"n_points must be >= 2, got {n_points}")
    if not (MIN_EXPONENT <= exponent <= MAX_EXPONENT):
        raise ValueError(
            f"exponent must be in [{MIN_EXPONENT}, {MAX_EXPONENT}], got {exponent}"
        )

    strategy = get_policy(policy)
    inputs = FitInputs(
        pressure=pressure,
        velocity=velocity if velocity is not None else VelocitySummary(),
        exponent=exponent,
    )

    last = n_points - 1
    points = []
    for i in range(n_points):
        x = i / last
        points.append((x, _clamp(strategy.shape(x, inputs))))

    logger.info("Created curve: %s (%d points)", strategy.describe(inputs), n_points)
    return Curve(points=tuple(points), fit_mode=strategy.name)


def analyze(
    pressure_samples: Sequence[float],
    velocity_samples: Sequence[float] = (),
    *,
    min_samples: int = MIN_SAMPLES,
    outlier_k: float | None = DEFAULT_OUTLIER_K,
    min_keep: int = DEFAULT_MIN_KEEP,
) -> tuple[Statistics, VelocitySummary]:
    """Guard the sample count, reject outliers and summarize a recording.

    Parameters
    ----------
    pressure_samples, velocity_samples : Sequence[float]
        Raw recording.
    min_samples : int
        Minimum raw pressure samples required.
    outlier_k : float | None
        Sigma threshold for outlier rejection; ``None`` disables it.
    min_keep : int
        Outlier rejection floor.

    Raises
    ------
    InsufficientSamples
        If fewer than *min_samples* pressure samples were recorded.
    """
    if len(pressure_samples) < min_samples:
        raise InsufficientSamples(len(pressure_samples), min_samples)

    pressures = list(pressure_samples)
    velocities = list(velocity_samples)
    if outlier_k is not None:
        pressures = reject_outliers(pressures, k=outlier_k, min_keep=min_keep)
        if velocities:
            velocities = reject_outliers(velocities, k=outlier_k, min_keep=min_keep)

    stats = describe(pressures)
    summary = VelocitySummary.from_samples(velocities)
    logger.info(
        "Pressure analysis: min=%.3f, max=%.3f, avg=%.3f, median=%.3f, samples=%d",
        stats.min, stats.max, stats.mean, stats.median, stats.count,
    )
    logger.info(
        "Velocity analysis: avg=%.2f px/s -> scaling factor=%.3f",
        summary.avg, summary.velocity_strength(),
    )
    return stats, summary


def fit_samples(
    pressure_samples: Sequence[float],
    velocity_samples: Sequence[float] = (),
    exponent: float = DEFAULT_EXPONENT,
    n_points: int = DEFAULT_N_POINTS,
    policy: str = "power",
    *,
    min_samples: int = MIN_SAMPLES,
    outlier_k: float | None = DEFAULT_OUTLIER_K,
    min_keep: int = DEFAULT_MIN_KEEP,
) -> Curve:
    """Fit a curve directly from recorded samples.

    See :func:`analyze` for the guards applied before fitting.

    Raises
    ------
    InsufficientSamples
        If fewer than *min_samples* pressure samples were recorded.
    """
    stats, summary = analyze(
        pressure_samples,
        velocity_samples,
        min_samples=min_samples,
        outlier_k=outlier_k,
        min_keep=min_keep,
    )
    return fit(stats, summary, exponent=exponent, n_points=n_points, policy=policy)
