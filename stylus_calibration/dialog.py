"""Headless controller for the pressure calibration dialog.

The toolkit widget forwards its scratchpad and button events here and shows
:attr:`PressureCalibrationDialog.status` in its label. No curve math lives
in this module; every handler delegates to :class:`CalibrationSession` and
turns :class:`CalibrationError` into a status message instead of raising
into the toolkit's event loop.
"""

from __future__ import annotations

import logging

from stylus_calibration.curves.curve import Curve
from stylus_calibration.errors import CalibrationError, InsufficientSamples, NoActiveBrush
from stylus_calibration.session import CalibrationSession
from stylus_calibration.store.curve_store import ApplyScope

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "Draw naturally on the scratchpad below with your stylus.\n"
    "Use your normal drawing pressure. Recording starts when you begin drawing."
)
RECORDING = "Recording... Draw multiple strokes."
COLLECTED = (
    "Collected {count} samples so far. "
    "Draw more strokes or click 'Apply Calibration'."
)
NOT_ENOUGH = "Not enough samples. Draw more strokes and try again."
NO_BRUSH = "No brush is selected. Select a brush or apply to all brushes."
APPLIED_VELOCITY = (
    "Calibration applied!\n"
    "Power={power:.2f}, Velocity scaling={strength:.2f} (faster→thinner)"
)
APPLIED_PLAIN = "Calibration applied!\nPower={power:.2f} (no velocity adjustment)"

# Below this velocity strength the status mentions the velocity scaling.
VELOCITY_NOTICE_THRESHOLD = 0.99


class PressureCalibrationDialog:
    """Scratchpad + Clear / Apply buttons + "only selected brush" toggle."""

    def __init__(self, session: CalibrationSession) -> None:
        self.session = session
        self.status = INSTRUCTIONS
        self.apply_sensitive = False
        self.only_selected_brush = True

    @property
    def scope(self) -> ApplyScope:
        if self.only_selected_brush:
            return ApplyScope.CURRENT_BRUSH_ONLY
        return ApplyScope.ALL_BRUSHES

    def set_only_selected_brush(self, active: bool) -> None:
        self.only_selected_brush = bool(active)
        logger.debug("Apply to only selected brush: %s", "yes" if active else "no")

    # -- scratchpad events -------------------------------------------------

    def button_press(self, x: float, y: float) -> None:
        was_recording = self.session.recording
        self.session.begin_stroke(x, y)
        if not was_recording:
            self.status = RECORDING

    def motion(self, pressure: float | None, x: float, y: float, timestamp: int) -> bool:
        """Record a motion event; False when no stroke is in progress."""
        if not (self.session.recording and self.session.drawing):
            return False
        self.session.record_sample(pressure, x, y, timestamp)
        return True

    def button_release(self) -> None:
        if not self.session.drawing:
            return
        count = self.session.end_stroke()
        if self.session.recording and count > 0:
            self.status = COLLECTED.format(count=count)
            self.apply_sensitive = True

    # -- buttons -----------------------------------------------------------

    def clear_clicked(self) -> None:
        self.session.clear_session()
        self.status = INSTRUCTIONS
        self.apply_sensitive = False

    def apply_clicked(self) -> Curve | None:
        """Apply the calibration; returns the curve, or None on failure."""
        try:
            curve = self.session.apply_calibration(scope=self.scope)
        except InsufficientSamples:
            self.status = NOT_ENOUGH
            return None
        except NoActiveBrush:
            self.status = NO_BRUSH
            return None
        except CalibrationError as exc:
            logger.error("Calibration failed: %s", exc)
            self.status = f"Calibration failed: {exc}"
            return None

        power = self.session.get_current_power_setting()
        velocity = self.session.last_velocity
        strength = velocity.velocity_strength() if velocity is not None else 1.0
        if strength < VELOCITY_NOTICE_THRESHOLD:
            self.status = APPLIED_VELOCITY.format(power=power, strength=strength)
        else:
            self.status = APPLIED_PLAIN.format(power=power)

        if self.session.sample_count() == 0:
            self.apply_sensitive = False
        return curve
