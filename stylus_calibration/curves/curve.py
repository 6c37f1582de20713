"""Pressure response curve.

A :class:`Curve` is an ordered tuple of ``(x, y)`` control points mapping
raw input pressure ``x`` to output pressure ``y``. The host's curve
evaluator interpolates smoothly between points; :meth:`Curve.evaluate` is a
piecewise-linear stand-in used for previews and tests.

Invariants (checked on construction):
    - at least two points
    - x strictly increasing, first x == 0, last x == 1
    - every x and y inside ``[0, 1]``

Curves are immutable, so a stored curve can be handed out without any risk
of it being mutated through the live device curve.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

Point = tuple[float, float]

IDENTITY_MODE = "identity"


@dataclass(frozen=True)
class Curve:
    """Boundary-anchored control-point curve.

    Parameters
    ----------
    points : tuple[tuple[float, float], ...]
        Control points ordered by x.
    fit_mode : str
        Name of the fit policy that produced the curve (authoring hint only).
    """

    points: tuple[Point, ...]
    fit_mode: str = IDENTITY_MODE

    def __post_init__(self) -> None:
        pts = tuple((float(x), float(y)) for x, y in self.points)
        object.__setattr__(self, "points", pts)

        if len(pts) < 2:
            raise ValueError(f"Curve needs at least 2 points, got {len(pts)}")
        for x, y in pts:
            if not (0.0 <= x <= 1.0 and 0.0 <= y <= 1.0):
                raise ValueError(f"Point ({x}, {y}) outside [0, 1] x [0, 1]")
        xs = [x for x, _ in pts]
        if any(b <= a for a, b in zip(xs, xs[1:])):
            raise ValueError(f"x values must be strictly increasing: {xs}")
        if xs[0] != 0.0 or xs[-1] != 1.0:
            raise ValueError(f"Curve must span x=0 to x=1, got {xs[0]} to {xs[-1]}")

    @classmethod
    def identity(cls) -> "Curve":
        """Linear 1:1 response ``[(0, 0), (1, 1)]``."""
        return cls(points=((0.0, 0.0), (1.0, 1.0)), fit_mode=IDENTITY_MODE)

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]], fit_mode: str = IDENTITY_MODE) -> "Curve":
        return cls(points=tuple((p[0], p[1]) for p in points), fit_mode=fit_mode)

    @property
    def xs(self) -> tuple[float, ...]:
        return tuple(x for x, _ in self.points)

    @property
    def ys(self) -> tuple[float, ...]:
        return tuple(y for _, y in self.points)

    def is_identity(self, tol: float = 1e-9) -> bool:
        """True if every control point lies on ``y == x``."""
        return all(abs(x - y) <= tol for x, y in self.points)

    def evaluate(self, x: float | Sequence[float]) -> float | np.ndarray:
        """Piecewise-linear evaluation at *x* (clamped into ``[0, 1]``)."""
        xq = np.clip(np.asarray(x, dtype=float), 0.0, 1.0)
        result = np.interp(xq, self.xs, self.ys)
        if np.ndim(result) == 0:
            return float(result)
        return result

    def to_list(self) -> list[list[float]]:
        """Points as nested lists (YAML friendly)."""
        return [[x, y] for x, y in self.points]
