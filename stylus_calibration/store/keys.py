"""Brush identity and keying strategies for the curve store.

The host historically identifies brushes by display name, which breaks if
two brushes share a name or a brush is renamed. The keying strategy is
isolated here so a stable identifier can be used where the host exposes one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union


@dataclass(frozen=True)
class BrushRef:
    """Brush identity as reported by the host.

    Parameters
    ----------
    name : str
        Display name.
    uid : str | None
        Stable identifier, when the host has one.
    """

    name: str
    uid: str | None = None


BrushLike = Union[BrushRef, str, None]


def as_brush_ref(brush: BrushLike) -> BrushRef | None:
    """Normalize a name, a :class:`BrushRef` or ``None``."""
    if brush is None:
        return None
    if isinstance(brush, BrushRef):
        return brush if brush.name or brush.uid else None
    if not brush:
        return None
    return BrushRef(name=brush)


class BrushKeyPolicy(Protocol):
    """Maps a brush identity to the string key curves are stored under."""

    name: str

    def key(self, brush: BrushRef) -> str:
        ...


class DisplayNameKey:
    """Key by display name (the host's historical behaviour)."""

    name = "display_name"

    def key(self, brush: BrushRef) -> str:
        return brush.name


class StableIdKey:
    """Key by stable uid, falling back to the display name."""

    name = "stable_id"

    def key(self, brush: BrushRef) -> str:
        return brush.uid or brush.name


KEY_POLICIES: dict[str, BrushKeyPolicy] = {
    DisplayNameKey.name: DisplayNameKey(),
    StableIdKey.name: StableIdKey(),
}


def get_key_policy(name: str) -> BrushKeyPolicy:
    """Look up a keying policy by name."""
    try:
        return KEY_POLICIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown brush key policy {name!r}; choose from {sorted(KEY_POLICIES)}"
        ) from None
