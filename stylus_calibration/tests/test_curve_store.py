"""Tests for the curve store and brush keying."""

from __future__ import annotations

import pytest

from stylus_calibration.curves.curve import Curve
from stylus_calibration.errors import NoActiveBrush
from stylus_calibration.store.curve_store import ApplyScope, CurveStore
from stylus_calibration.store.keys import (
    BrushRef,
    DisplayNameKey,
    StableIdKey,
    as_brush_ref,
    get_key_policy,
)

SOFT = Curve.from_points([(0.0, 0.0), (0.5, 0.7), (1.0, 1.0)], fit_mode="power")
HARD = Curve.from_points([(0.0, 0.0), (0.5, 0.2), (1.0, 0.9)], fit_mode="power")


@pytest.fixture
def store() -> CurveStore:
    return CurveStore()


class TestResolution:
    def test_empty_store_resolves_identity(self, store: CurveStore) -> None:
        assert store.resolve("Pencil 02") == Curve.identity()
        assert store.resolve(None) == Curve.identity()
        assert store.is_empty()

    def test_brush_curve_then_global_then_identity(self, store: CurveStore) -> None:
        store.apply("Pencil 02", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        assert store.resolve("Pencil 02") == SOFT
        assert store.resolve("Airbrush") == Curve.identity()

        store.set_global_default(HARD)
        assert store.resolve("Pencil 02") == SOFT
        assert store.resolve("Airbrush") == HARD
        assert store.resolve(None) == HARD

    def test_live_curve_identity_when_disabled(self, store: CurveStore) -> None:
        store.apply("Pencil 02", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        store.set_enabled(False)
        assert store.live_curve("Pencil 02") == Curve.identity()
        assert store.resolve("Pencil 02") == SOFT
        store.set_enabled(True)
        assert store.live_curve("Pencil 02") == SOFT


class TestApply:
    def test_current_brush_upserts(self, store: CurveStore) -> None:
        store.apply("Pencil 02", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        store.apply("Pencil 02", HARD, ApplyScope.CURRENT_BRUSH_ONLY)
        assert len(store) == 1
        assert store.brush_curves == {"Pencil 02": HARD}

    @pytest.mark.parametrize("brush", [None, "", BrushRef(name="")])
    def test_current_brush_requires_brush(self, store: CurveStore, brush) -> None:
        with pytest.raises(NoActiveBrush):
            store.apply(brush, SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        assert store.is_empty()

    def test_all_brushes_clears_entries(self, store: CurveStore) -> None:
        store.apply("Pencil 02", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        store.apply("Airbrush", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        store.apply(None, HARD, ApplyScope.ALL_BRUSHES)
        assert len(store) == 0
        assert store.global_default == HARD
        assert store.resolve("Pencil 02") == HARD

    def test_brush_curves_is_a_snapshot(self, store: CurveStore) -> None:
        store.apply("Pencil 02", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        snapshot = store.brush_curves
        snapshot.clear()
        assert store.has_curve("Pencil 02")


class TestReset:
    def test_reset_one(self, store: CurveStore) -> None:
        store.apply("Pencil 02", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        assert store.reset_one("Pencil 02") is True
        assert store.reset_one("Pencil 02") is False
        assert store.resolve("Pencil 02") == Curve.identity()

    def test_reset_one_keeps_global(self, store: CurveStore) -> None:
        store.set_global_default(HARD)
        store.apply("Pencil 02", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        store.reset_one("Pencil 02")
        assert store.resolve("Pencil 02") == HARD

    def test_reset_all(self, store: CurveStore) -> None:
        store.set_global_default(HARD)
        store.apply("Pencil 02", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        store.reset_all()
        assert store.is_empty()
        assert store.enabled is True


class TestEquality:
    def test_equal_stores(self) -> None:
        a, b = CurveStore(), CurveStore()
        for s in (a, b):
            s.apply("Pencil 02", SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        assert a == b
        b.set_enabled(False)
        assert a != b


class TestBrushKeys:
    def test_as_brush_ref(self) -> None:
        assert as_brush_ref("Pencil 02") == BrushRef(name="Pencil 02")
        assert as_brush_ref("") is None
        assert as_brush_ref(None) is None
        ref = BrushRef(name="Ink", uid="ink-1")
        assert as_brush_ref(ref) is ref

    def test_display_name_key_merges_same_names(self) -> None:
        store = CurveStore(key_policy=DisplayNameKey())
        store.apply(BrushRef("Ink", uid="a"), SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        store.apply(BrushRef("Ink", uid="b"), HARD, ApplyScope.CURRENT_BRUSH_ONLY)
        assert len(store) == 1

    def test_stable_id_key_separates_same_names(self) -> None:
        store = CurveStore(key_policy=StableIdKey())
        store.apply(BrushRef("Ink", uid="a"), SOFT, ApplyScope.CURRENT_BRUSH_ONLY)
        store.apply(BrushRef("Ink", uid="b"), HARD, ApplyScope.CURRENT_BRUSH_ONLY)
        assert len(store) == 2
        assert store.resolve(BrushRef("Ink", uid="a")) == SOFT
        assert store.resolve(BrushRef("Ink", uid="b")) == HARD

    def test_stable_id_falls_back_to_name(self) -> None:
        assert StableIdKey().key(BrushRef("Ink")) == "Ink"

    def test_get_key_policy(self) -> None:
        assert isinstance(get_key_policy("stable_id"), StableIdKey)
        with pytest.raises(ValueError):
            get_key_policy("path")
