"""Per-brush and global pressure curve storage.

Resolution order when a brush becomes active::

    stored per-brush curve → global default curve → identity curve

The store owns every curve it holds. Curves are immutable, so handing one
out never lets a caller (or a live device curve) mutate the stored copy.

Usage::

    store = CurveStore()
    store.apply("Pencil 02", curve, ApplyScope.CURRENT_BRUSH_ONLY)
    store.resolve("Pencil 02")        # → curve
    store.resolve("Airbrush")         # → global default or identity
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Iterator

from stylus_calibration.curves.curve import Curve
from stylus_calibration.errors import NoActiveBrush
from stylus_calibration.store.keys import (
    BrushKeyPolicy,
    BrushLike,
    BrushRef,
    DisplayNameKey,
    as_brush_ref,
)

logger = logging.getLogger(__name__)


class ApplyScope(enum.Enum):
    """Where a newly fitted curve goes."""

    CURRENT_BRUSH_ONLY = "current_brush"
    ALL_BRUSHES = "all_brushes"


@dataclass(frozen=True)
class BrushEntry:
    """A stored curve together with the brush identity it was stored for."""

    brush: BrushRef
    curve: Curve


class CurveStore:
    """Mapping of brush key → curve plus an optional global default.

    Parameters
    ----------
    key_policy : BrushKeyPolicy, optional
        Keying strategy; display name by default.
    enabled : bool
        Whether custom curves are applied to the live device.
    """

    def __init__(
        self,
        key_policy: BrushKeyPolicy | None = None,
        enabled: bool = True,
    ) -> None:
        self.key_policy = key_policy or DisplayNameKey()
        self.enabled = enabled
        self._brushes: dict[str, BrushEntry] = {}
        self._global_default: Curve | None = None

    # -- queries -----------------------------------------------------------

    @property
    def global_default(self) -> Curve | None:
        return self._global_default

    @property
    def brush_curves(self) -> dict[str, Curve]:
        """Snapshot of key → curve."""
        return {key: entry.curve for key, entry in self._brushes.items()}

    def entries(self) -> Iterator[BrushEntry]:
        return iter(list(self._brushes.values()))

    def key_for(self, brush: BrushLike) -> str | None:
        ref = as_brush_ref(brush)
        return None if ref is None else self.key_policy.key(ref)

    def has_curve(self, brush: BrushLike) -> bool:
        key = self.key_for(brush)
        return key is not None and key in self._brushes

    def resolve(self, brush: BrushLike) -> Curve:
        """Curve for *brush*: per-brush → global default → identity."""
        key = self.key_for(brush)
        if key is not None and key in self._brushes:
            return self._brushes[key].curve
        if self._global_default is not None:
            return self._global_default
        return Curve.identity()

    def live_curve(self, brush: BrushLike) -> Curve:
        """Curve the live device should use: identity while disabled."""
        if not self.enabled:
            return Curve.identity()
        return self.resolve(brush)

    def is_empty(self) -> bool:
        return not self._brushes and self._global_default is None

    def __len__(self) -> int:
        return len(self._brushes)

    # -- mutation ----------------------------------------------------------

    def apply(self, brush: BrushLike, curve: Curve, scope: ApplyScope) -> None:
        """Store *curve* for the current brush or as the global default.

        Raises
        ------
        NoActiveBrush
            If ``scope`` is ``CURRENT_BRUSH_ONLY`` and *brush* is unknown.
        """
        if scope is ApplyScope.ALL_BRUSHES:
            cleared = len(self._brushes)
            self._brushes.clear()
            self._global_default = curve
            logger.info(
                "Stored global default curve (%s); cleared %d brush curve(s)",
                curve.fit_mode, cleared,
            )
            return

        ref = as_brush_ref(brush)
        if ref is None:
            raise NoActiveBrush("No active brush; calibration discarded")
        key = self.key_policy.key(ref)
        replaced = key in self._brushes
        self._brushes[key] = BrushEntry(brush=ref, curve=curve)
        logger.info(
            "%s curve for brush '%s' (%s)",
            "Replaced" if replaced else "Stored", ref.name, curve.fit_mode,
        )

    def set_global_default(self, curve: Curve | None) -> None:
        """Replace the global default without touching brush entries."""
        self._global_default = curve

    def restore(self, brush: BrushRef, curve: Curve) -> None:
        """Insert a persisted entry as-is (used when loading)."""
        self._brushes[self.key_policy.key(brush)] = BrushEntry(brush=brush, curve=curve)

    def reset_one(self, brush: BrushLike) -> bool:
        """Forget the curve stored for *brush*.

        Returns
        -------
        bool
            True if an entry was removed.
        """
        key = self.key_for(brush)
        if key is None or key not in self._brushes:
            return False
        entry = self._brushes.pop(key)
        logger.info("Reset curve for brush '%s'", entry.brush.name)
        return True

    def reset_all(self) -> None:
        self._brushes.clear()
        self._global_default = None
        logger.info("Reset all stored curves")

    def set_enabled(self, enabled: bool) -> bool:
        """Toggle custom curves; stored curves are never touched."""
        self.enabled = bool(enabled)
        logger.info("Custom curves %s", "enabled" if self.enabled else "disabled")
        return self.enabled

    # -- comparison --------------------------------------------------------

    def snapshot(self) -> dict:
        """Plain-data view used for equality and debugging."""
        return {
            "enabled": self.enabled,
            "global_default": self._global_default,
            "brushes": {
                key: (entry.brush, entry.curve) for key, entry in self._brushes.items()
            },
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CurveStore):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    def __repr__(self) -> str:
        return (
            f"CurveStore(brushes={len(self._brushes)}, "
            f"global_default={self._global_default is not None}, enabled={self.enabled})"
        )
