"""Sample recording for a calibration session.

A :class:`SampleBuffer` collects every pressure reading of the strokes drawn
while recording, plus a derived velocity for each pair of consecutive motion
events inside the same stroke. The first event of a stroke has no
predecessor and therefore no velocity.

Timestamps are device-clock **milliseconds**; positions are pixels.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from stylus_calibration.analysis.velocity import distance, velocity
from stylus_calibration.errors import DegenerateInterval

logger = logging.getLogger(__name__)

# Recorded verbatim when the device reports no pressure axis.
DEFAULT_PRESSURE = 0.5


@dataclass(frozen=True, slots=True)
class Sample:
    """One motion event observed while recording."""

    pressure: float
    x: float
    y: float
    timestamp: int


class SampleBuffer:
    """Append-only pressure and velocity samples for one recording."""

    def __init__(self) -> None:
        self._pressure: list[float] = []
        self._velocity: list[float] = []
        self._previous: Sample | None = None
        self._stroke_count = 0

    # -- strokes -----------------------------------------------------------

    def begin_stroke(self, x: float, y: float) -> None:
        """Mark a new stroke starting at ``(x, y)``.

        The previous-sample pointer is reset so no velocity is computed
        against the last sample of an earlier stroke.
        """
        self._previous = None
        self._stroke_count += 1
        logger.debug("Stroke %d started at (%.1f, %.1f)", self._stroke_count, x, y)

    def end_stroke(self) -> None:
        self._previous = None

    # -- samples -----------------------------------------------------------

    def record(
        self,
        pressure: float | None,
        x: float,
        y: float,
        timestamp: int,
    ) -> Sample:
        """Append one motion event.

        Parameters
        ----------
        pressure : float | None
            Raw pressure; clamped to ``[0, 1]``. ``None`` means the device has
            no pressure axis and records :data:`DEFAULT_PRESSURE`.
        x, y : float
            Position in pixels.
        timestamp : int
            Event time in milliseconds.

        Returns
        -------
        Sample
            The stored sample.
        """
        if pressure is None:
            pressure = DEFAULT_PRESSURE
        pressure = min(1.0, max(0.0, float(pressure)))

        sample = Sample(pressure=pressure, x=float(x), y=float(y), timestamp=int(timestamp))
        self._pressure.append(pressure)

        prev = self._previous
        if prev is not None:
            dt = (sample.timestamp - prev.timestamp) / 1000.0
            dist = distance(prev.x, prev.y, sample.x, sample.y)
            try:
                v = velocity(dist, dt)
            except DegenerateInterval:
                logger.debug("Skipping velocity for dt=%.4f s at t=%d", dt, sample.timestamp)
            else:
                self._velocity.append(v)
                logger.debug(
                    "Time delta: %.4f s | Distance: %.2f px | Velocity: %.2f px/s | Pressure: %.3f",
                    dt, dist, v, pressure,
                )

        self._previous = sample
        return sample

    def clear(self) -> None:
        self._pressure.clear()
        self._velocity.clear()
        self._previous = None
        self._stroke_count = 0

    # -- accessors ---------------------------------------------------------

    def sample_count(self) -> int:
        return len(self._pressure)

    def velocity_count(self) -> int:
        return len(self._velocity)

    @property
    def stroke_count(self) -> int:
        return self._stroke_count

    @property
    def pressure_samples(self) -> tuple[float, ...]:
        return tuple(self._pressure)

    @property
    def velocity_samples(self) -> tuple[float, ...]:
        return tuple(self._velocity)

    def __len__(self) -> int:
        return len(self._pressure)
