"""Curve store persistence (``curve_store.v1`` YAML).

Document layout::

    schema: curve_store.v1
    enabled: true
    power: 1.5
    global_default:
      fit_mode: power
      points: [[0.0, 0.0], [0.5, 0.35], [1.0, 1.0]]
    brushes:
      - brush: Pencil 02
        uid: null
        fit_mode: sigmoid
        points: [[0.0, 0.02], ..., [1.0, 0.98]]

Writes go through :func:`stylus_calibration.utils.fs.atomic_yaml_dump`, so an
interrupted save leaves the previous file intact. Loading never fails hard:
a missing file is the normal first-run case and yields an empty store;
broken documents or records are skipped with a warning.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from stylus_calibration.curves.curve import Curve
from stylus_calibration.errors import PersistenceError
from stylus_calibration.store.curve_store import CurveStore
from stylus_calibration.store.keys import BrushKeyPolicy, BrushRef
from stylus_calibration.utils.fs import atomic_yaml_dump, load_yaml
from stylus_calibration.utils.validators import (
    STORE_SCHEMA,
    BrushCurveRecordV1,
    CurveRecordV1,
    CurveStoreFileV1,
)

logger = logging.getLogger(__name__)


@dataclass
class LoadedStore:
    """Result of :func:`load`.

    Parameters
    ----------
    store : CurveStore
        Reconstructed store (possibly empty).
    power : float | None
        Saved stylus editor power setting, if any.
    skipped : int
        Number of records dropped as malformed.
    """

    store: CurveStore
    power: float | None = None
    skipped: int = 0


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _curve_record(curve: Curve) -> dict[str, Any]:
    return {"fit_mode": curve.fit_mode, "points": curve.to_list()}


def encode(store: CurveStore, power: float | None = None) -> dict[str, Any]:
    """Build the YAML document for *store*."""
    doc: dict[str, Any] = {
        "schema": STORE_SCHEMA,
        "enabled": store.enabled,
    }
    if power is not None:
        doc["power"] = float(power)
    doc["global_default"] = (
        _curve_record(store.global_default) if store.global_default is not None else None
    )
    doc["brushes"] = [
        {"brush": entry.brush.name, "uid": entry.brush.uid, **_curve_record(entry.curve)}
        for entry in store.entries()
    ]
    return doc


def save(store: CurveStore, path: str | Path, *, power: float | None = None) -> Path:
    """Write *store* to *path* atomically.

    Raises
    ------
    PersistenceError
        If the file cannot be written.
    """
    path = Path(path)
    try:
        atomic_yaml_dump(encode(store, power), path)
    except (OSError, RuntimeError, yaml.YAMLError) as exc:
        raise PersistenceError(f"Failed to save curve store to {path}: {exc}") from exc
    logger.info(
        "Saved %d brush curve(s)%s to %s",
        len(store),
        " and global default" if store.global_default is not None else "",
        path,
    )
    return path


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _decode_curve(raw: Any, what: str) -> Curve | None:
    try:
        record = CurveRecordV1.model_validate(raw)
        return Curve.from_points(record.points, fit_mode=record.fit_mode)
    except (ValidationError, ValueError, TypeError) as exc:
        logger.warning("Skipping malformed %s: %s", what, exc)
        return None


def _decode_brush(raw: Any, index: int) -> tuple[BrushRef, Curve] | None:
    try:
        record = BrushCurveRecordV1.model_validate(raw)
        curve = Curve.from_points(record.points, fit_mode=record.fit_mode)
    except (ValidationError, ValueError, TypeError) as exc:
        logger.warning("Skipping malformed brush record #%d: %s", index, exc)
        return None
    return BrushRef(name=record.brush, uid=record.uid), curve


def _decode_enabled(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    logger.warning("Ignoring invalid 'enabled' value %r; custom curves stay enabled", raw)
    return True


def _decode_power(raw: Any) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        if math.isfinite(raw) and raw > 0.0:
            return float(raw)
    logger.warning("Ignoring invalid 'power' value %r", raw)
    return None


def decode(data: Any, key_policy: BrushKeyPolicy | None = None) -> LoadedStore:
    """Rebuild a store from a parsed YAML document."""
    store = CurveStore(key_policy=key_policy)
    if data is None:
        return LoadedStore(store=store)

    try:
        envelope = CurveStoreFileV1.model_validate(data)
    except ValidationError as exc:
        logger.warning("Ignoring unreadable curve store document: %s", exc)
        return LoadedStore(store=store)

    skipped = 0
    store.enabled = _decode_enabled(envelope.enabled)
    power = _decode_power(envelope.power)

    if envelope.global_default is not None:
        curve = _decode_curve(envelope.global_default, "global default curve")
        if curve is None:
            skipped += 1
        store.set_global_default(curve)

    brushes = envelope.brushes
    if not isinstance(brushes, list):
        logger.warning("Ignoring 'brushes': expected a list, got %s", type(brushes).__name__)
        brushes = []

    for index, raw in enumerate(brushes):
        decoded = _decode_brush(raw, index)
        if decoded is None:
            skipped += 1
            continue
        brush, curve = decoded
        if store.has_curve(brush):
            logger.warning("Duplicate curve for brush '%s'; keeping the later one", brush.name)
        store.restore(brush, curve)

    return LoadedStore(store=store, power=power, skipped=skipped)


def load(path: str | Path, key_policy: BrushKeyPolicy | None = None) -> LoadedStore:
    """Read the store at *path*.

    A missing file silently yields an empty store. Parse errors and
    malformed records are logged as warnings; this function does not raise
    for bad content.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("No curve store at %s; starting empty", path)
        return LoadedStore(store=CurveStore(key_policy=key_policy))

    try:
        data = load_yaml(path)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        logger.warning("Could not read curve store %s: %s", path, exc)
        return LoadedStore(store=CurveStore(key_policy=key_policy))

    loaded = decode(data, key_policy=key_policy)
    logger.info(
        "Loaded %d brush curve(s)%s from %s (%d skipped)",
        len(loaded.store),
        " and global default" if loaded.store.global_default is not None else "",
        path,
        loaded.skipped,
    )
    return loaded
