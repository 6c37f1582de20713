"""
Store module.

Per-brush and global curve storage, brush keying strategies and YAML
persistence.
"""

from stylus_calibration.store.curve_store import ApplyScope, BrushEntry, CurveStore
from stylus_calibration.store.keys import (
    BrushRef,
    DisplayNameKey,
    StableIdKey,
    get_key_policy,
)

__all__ = [
    "ApplyScope",
    "BrushEntry",
    "CurveStore",
    "BrushRef",
    "DisplayNameKey",
    "StableIdKey",
    "get_key_policy",
]
