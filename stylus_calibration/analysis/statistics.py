"""Descriptive statistics over pressure or velocity samples.

Order statistics (median, quartiles) are taken from a stable sort of the
input. Quartiles use the nearest-rank index without interpolation::

    q1 = sorted[n // 4]
    q3 = sorted[(3 * n) // 4]

Standard deviation is the population value (``ddof=0``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import ArrayLike

from stylus_calibration.errors import InsufficientData

logger = logging.getLogger(__name__)

DEFAULT_OUTLIER_K = 3.0
DEFAULT_MIN_KEEP = 5


@dataclass(frozen=True)
class Statistics:
    """Summary of one sample set.

    Parameters
    ----------
    count : int
        Number of samples described.
    min, max : float
        Extremes.
    mean : float
        Arithmetic mean.
    median : float
        Middle value (average of the two middle values for even ``count``).
    q1, q3 : float
        Nearest-rank first and third quartiles.
    iqr : float
        ``q3 - q1``.
    stddev : float
        Population standard deviation.
    """

    count: int
    min: float
    max: float
    mean: float
    median: float
    q1: float
    q3: float
    iqr: float
    stddev: float

    @property
    def range(self) -> float:
        return self.max - self.min

    def as_dict(self) -> dict[str, float]:
        return {
            "count": self.count,
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "median": self.median,
            "q1": self.q1,
            "q3": self.q3,
            "iqr": self.iqr,
            "stddev": self.stddev,
        }


def _to_1d_array(samples: ArrayLike) -> np.ndarray:
    arr = np.asarray(samples, dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"samples must be 1-D, got shape {arr.shape}")
    return arr


def describe(samples: Sequence[float]) -> Statistics:
    """Compute :class:`Statistics` for *samples*.

    Raises
    ------
    InsufficientData
        If *samples* is empty.
    """
    arr = _to_1d_array(samples)
    n = arr.size
    if n == 0:
        raise InsufficientData("Cannot describe an empty sample set")

    ordered = np.sort(arr, kind="stable")
    mid = n // 2
    if n % 2 == 0:
        median = (ordered[mid - 1] + ordered[mid]) / 2.0
    else:
        median = ordered[mid]

    q1 = ordered[n // 4]
    q3 = ordered[(3 * n) // 4]

    # Clamp guards against the mean drifting outside [min, max] by rounding.
    mean = float(np.clip(np.mean(arr), ordered[0], ordered[-1]))

    return Statistics(
        count=int(n),
        min=float(ordered[0]),
        max=float(ordered[-1]),
        mean=mean,
        median=float(median),
        q1=float(q1),
        q3=float(q3),
        iqr=float(q3 - q1),
        stddev=float(np.std(arr)),
    )


def reject_outliers(
    samples: Sequence[float],
    k: float = DEFAULT_OUTLIER_K,
    min_keep: int = DEFAULT_MIN_KEEP,
) -> list[float]:
    """Drop samples farther than ``k`` standard deviations from the mean.

    Parameters
    ----------
    samples : Sequence[float]
        Input samples; order is preserved in the result.
    k : float
        Rejection threshold in standard deviations.
    min_keep : int
        If fewer than this many samples would survive, nothing is removed.

    Returns
    -------
    list[float]
        Filtered samples, or the input unchanged.
    """
    arr = _to_1d_array(samples)
    if arr.size == 0:
        return []

    mean = np.mean(arr)
    std = np.std(arr)
    keep = np.abs(arr - mean) <= k * std
    kept = arr[keep]

    if kept.size < min_keep:
        logger.debug(
            "Outlier rejection skipped: only %d of %d samples would remain",
            kept.size, arr.size,
        )
        return [float(v) for v in arr]

    removed = arr.size - kept.size
    if removed:
        logger.info("Rejected %d outlier(s) beyond %.1f sigma", removed, k)
    return [float(v) for v in kept]
