"""Calibration session: recording → fitting → storage → live device.

A :class:`CalibrationSession` is the single owner of the mutable state that
the dialog and the stylus editor share: the sample buffer, the curve store,
the power setting and the enabled flag. Every operation runs synchronously
on the host's event thread.

Typical flow::

    session = CalibrationSession.from_config(host)
    session.begin_stroke(x, y)
    session.record_sample(pressure, x, y, t)   # per motion event
    session.end_stroke()
    curve = session.apply_calibration(scope=ApplyScope.CURRENT_BRUSH_ONLY)

Live device curves are refreshed from the store whenever a calibration is
applied, the active brush changes, curves are reset or the enabled flag
flips.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from stylus_calibration.analysis.statistics import Statistics
from stylus_calibration.analysis.velocity import VelocitySummary
from stylus_calibration.configs.loader import CalibrationConfig, load_config
from stylus_calibration.curves.curve import Curve
from stylus_calibration.curves.fitter import analyze, fit
from stylus_calibration.errors import NoActiveBrush, PersistenceError
from stylus_calibration.host import (
    PRESSURE_AXIS,
    BrushProvider,
    DeviceCurveSink,
    DeviceProvider,
)
from stylus_calibration.recording.samples import Sample, SampleBuffer
from stylus_calibration.store import codec
from stylus_calibration.store.curve_store import ApplyScope, CurveStore
from stylus_calibration.store.keys import BrushLike, as_brush_ref, get_key_policy
from stylus_calibration.utils.logging_config import logging_context

logger = logging.getLogger(__name__)

CurveAppliedListener = Callable[[Curve], None]


class CalibrationSession:
    """Shared calibration state for one host process.

    Parameters
    ----------
    sink : DeviceCurveSink
        Receives live curves.
    devices : DeviceProvider
        Reports the current and known input devices.
    brushes : BrushProvider
        Reports the active brush.
    config : CalibrationConfig, optional
        Loaded from the shipped defaults when omitted.
    store : CurveStore, optional
        Starts empty when omitted.
    power : float, optional
        Initial power setting; ``fitting.default_exponent`` when omitted.
    store_path : Path, optional
        Where :meth:`save` writes. ``None`` keeps the store in memory only.
    """

    def __init__(
        self,
        sink: DeviceCurveSink,
        devices: DeviceProvider,
        brushes: BrushProvider,
        *,
        config: CalibrationConfig | None = None,
        store: CurveStore | None = None,
        power: float | None = None,
        store_path: str | Path | None = None,
    ) -> None:
        self.config = config or load_config()
        self.sink = sink
        self.devices = devices
        self.brushes = brushes
        self.store = store if store is not None else CurveStore(
            key_policy=get_key_policy(self.config.storage.brush_key)
        )
        self.store_path = Path(store_path) if store_path is not None else None
        self.buffer = SampleBuffer()

        fitting = self.config.fitting
        self._power = fitting.clamp_exponent(
            fitting.default_exponent if power is None else power
        )
        self.recording = False
        self.drawing = False
        self.target_device: str | None = None
        self.last_statistics: Statistics | None = None
        self.last_velocity: VelocitySummary | None = None
        self._listeners: list[CurveAppliedListener] = []

    @classmethod
    def from_config(
        cls,
        host,
        config: CalibrationConfig | None = None,
        *,
        load_store: bool = True,
    ) -> "CalibrationSession":
        """Build a session around a host implementing all three protocols.

        The persisted store and power setting are loaded (a missing file gives
        an empty store), the host's brush-changed hook is connected when it
        has one, and the live curve for the current brush is applied.
        """
        config = config or load_config()
        store_path = config.storage.store_path
        key_policy = get_key_policy(config.storage.brush_key)

        store, power = None, None
        if load_store:
            loaded = codec.load(store_path, key_policy=key_policy)
            store, power = loaded.store, loaded.power

        session = cls(
            host, host, host,
            config=config, store=store, power=power, store_path=store_path,
        )
        connect = getattr(host, "connect_brush_changed", None)
        if callable(connect):
            connect(session.on_brush_changed)
        session.refresh_live_curves()
        return session

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def begin_recording(self) -> None:
        """Start a recording and remember which device it targets."""
        if self.recording:
            return
        self.recording = True
        self.target_device = self.devices.current_device_id()
        logger.info(
            "Recording started%s",
            f"; calibration will target device {self.target_device}"
            if self.target_device else "",
        )

    def begin_stroke(self, x: float, y: float) -> None:
        """Pen down. Starts the recording on the first stroke."""
        self.begin_recording()
        self.drawing = True
        self.buffer.begin_stroke(x, y)

    def record_sample(
        self,
        pressure: float | None,
        x: float,
        y: float,
        timestamp: int,
    ) -> Sample:
        """Record one motion event (opens a stroke if none is active)."""
        if not self.drawing:
            self.begin_stroke(x, y)
        return self.buffer.record(pressure, x, y, timestamp)

    def end_stroke(self) -> int:
        """Pen up. Returns the cumulative number of pressure samples."""
        self.drawing = False
        self.buffer.end_stroke()
        count = self.buffer.sample_count()
        velocities = self.buffer.velocity_samples
        if velocities:
            summary = VelocitySummary.from_samples(velocities)
            logger.info(
                "Stroke complete: %d samples, %d velocity samples "
                "(min %.2f, max %.2f, avg %.2f px/s)",
                count, summary.count, summary.min, summary.max, summary.avg,
            )
        else:
            logger.info("Stroke complete: %d samples", count)
        return count

    def clear_session(self) -> None:
        """Drop every recorded sample and stop recording."""
        self.buffer.clear()
        self.recording = False
        self.drawing = False
        self.target_device = None
        logger.info("Calibration samples cleared")

    def sample_count(self) -> int:
        return self.buffer.sample_count()

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    def apply_calibration(
        self,
        exponent: float | None = None,
        scope: ApplyScope | None = None,
        policy: str | None = None,
    ) -> Curve:
        """Fit a curve from the recording and store/apply it.

        Parameters
        ----------
        exponent : float, optional
            Power override; the current power setting when omitted.
        scope : ApplyScope, optional
            ``session.default_scope`` when omitted.
        policy : str, optional
            Fit policy name; ``fitting.policy`` when omitted.

        Returns
        -------
        Curve
            The stored curve.

        Raises
        ------
        InsufficientSamples
            Too few samples; nothing changes.
        NoActiveBrush
            Current-brush scope with no brush selected; the fitted curve is
            discarded, the samples are kept.
        """
        fitting = self.config.fitting
        scope = scope or self.config.session.default_scope
        exponent = fitting.clamp_exponent(self._power if exponent is None else exponent)
        brush = as_brush_ref(self.brushes.current_brush())

        with logging_context(brush=brush.name if brush else None, device=self.target_device):
            stats, velocity = analyze(
                self.buffer.pressure_samples,
                self.buffer.velocity_samples,
                min_samples=fitting.min_samples,
                outlier_k=fitting.outlier_sigma if fitting.outlier_rejection else None,
                min_keep=fitting.outlier_min_keep,
            )
            if scope is ApplyScope.CURRENT_BRUSH_ONLY and brush is None:
                logger.warning("No active brush; calibration discarded")
                raise NoActiveBrush("No brush is selected; calibration discarded")

            curve = fit(
                stats,
                velocity,
                exponent=exponent,
                n_points=fitting.n_points,
                policy=policy or fitting.policy,
            )
            self.store.apply(brush, curve, scope)
            self.last_statistics = stats
            self.last_velocity = velocity

            self.refresh_live_curves(prefer=self.target_device)
            if self.config.session.autosave:
                self.save()

        if self.config.session.clear_after_apply:
            self.buffer.clear()
            self.recording = False
            self.drawing = False

        for listener in list(self._listeners):
            listener(curve)
        return curve

    def add_curve_applied_listener(self, listener: CurveAppliedListener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Power setting
    # ------------------------------------------------------------------

    def get_current_power_setting(self) -> float:
        return self._power

    def set_power_setting(self, value: float) -> float:
        """Set the power (clamped to the configured range); returns it."""
        self._power = self.config.fitting.clamp_exponent(value)
        logger.debug("Power setting changed to %.2f", self._power)
        return self._power

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def get_curve_for_brush(self, brush: BrushLike) -> Curve:
        """Stored curve for display; unaffected by the enabled flag."""
        return self.store.resolve(brush)

    def current_curve(self) -> Curve:
        return self.store.resolve(self.brushes.current_brush())

    def on_brush_changed(self, brush: BrushLike = None) -> None:
        """Re-apply the resolution order for the newly active brush."""
        ref = as_brush_ref(brush if brush is not None else self.brushes.current_brush())
        logger.debug("Active brush changed to %s", ref.name if ref else "<none>")
        self.refresh_live_curves(brush=ref)

    def reset_brush(self, brush: BrushLike = None) -> bool:
        """Forget the curve of *brush* (the current brush when omitted)."""
        target = brush if brush is not None else self.brushes.current_brush()
        removed = self.store.reset_one(target)
        if removed:
            self.refresh_live_curves()
            self._autosave()
        return removed

    def reset_all_curves(self) -> None:
        self.store.reset_all()
        self.refresh_live_curves()
        self._autosave()

    def set_enabled(self, enabled: bool) -> bool:
        """Enable or disable custom curves on the live device."""
        state = self.store.set_enabled(enabled)
        self.refresh_live_curves()
        self._autosave()
        return state

    def toggle_enabled(self) -> bool:
        """Flip the enabled flag; returns the new state."""
        return self.set_enabled(not self.store.enabled)

    @property
    def enabled(self) -> bool:
        return self.store.enabled

    # ------------------------------------------------------------------
    # Live devices
    # ------------------------------------------------------------------

    def live_device_ids(self, prefer: str | None = None) -> list[str]:
        """Devices whose pressure curve follows the store."""
        if self.config.session.apply_to_all_devices:
            return [
                device_id
                for device_id in self.devices.device_ids()
                if self.devices.has_axis(device_id, PRESSURE_AXIS)
            ]
        device_id = prefer or self.devices.current_device_id()
        if device_id is None:
            return []
        if not self.devices.has_axis(device_id, PRESSURE_AXIS):
            logger.info("Skipping '%s' (no pressure curve)", device_id)
            return []
        return [device_id]

    def refresh_live_curves(
        self,
        brush: BrushLike = None,
        prefer: str | None = None,
    ) -> None:
        """Write the resolved curve (or identity when disabled) to devices."""
        if brush is None:
            brush = self.brushes.current_brush()
        device_ids = self.live_device_ids(prefer=prefer)
        if not device_ids:
            logger.debug("No device to receive the pressure curve")
            return

        if not self.store.enabled:
            for device_id in device_ids:
                self.sink.reset_device_curve(device_id, PRESSURE_AXIS)
            logger.info("Custom curves disabled; %d device(s) reset to identity", len(device_ids))
            return

        curve = self.store.resolve(brush)
        for device_id in device_ids:
            self.sink.set_device_curve(device_id, PRESSURE_AXIS, curve)
        logger.info(
            "Applied %s curve to %d device(s)", curve.fit_mode, len(device_ids)
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Persist the store. Failures are logged, never raised.

        Returns
        -------
        bool
            True if the store was written.
        """
        if self.store_path is None:
            return False
        try:
            codec.save(self.store, self.store_path, power=self._power)
        except PersistenceError as exc:
            logger.error("%s; keeping in-memory curves", exc)
            return False
        return True

    def _autosave(self) -> None:
        if self.config.session.autosave:
            self.save()

    def shutdown(self) -> bool:
        """Final persist before the host exits."""
        logger.info("Shutting down calibration session")
        return self.save()
