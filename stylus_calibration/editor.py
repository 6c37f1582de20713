"""Headless controller for the stylus editor dock.

The dock shows a "Pressure Sensitivity" slider (0–100) that sets the power
exponent used by the next calibration, a preview of the curve stored for the
active brush, and enable / reset controls.

Slider positions map linearly onto the configured exponent range::

    exponent = exponent_min + value / 100 * (exponent_max - exponent_min)
"""

from __future__ import annotations

import logging

import numpy as np

from stylus_calibration.curves.curve import Curve
from stylus_calibration.session import CalibrationSession

logger = logging.getLogger(__name__)

SLIDER_MIN = 0.0
SLIDER_MAX = 100.0
PREVIEW_SAMPLES = 64


class StylusEditor:
    """Power slider, curve preview and enable/reset buttons."""

    def __init__(self, session: CalibrationSession) -> None:
        self.session = session
        self.preview: list[tuple[float, float]] = []
        session.add_curve_applied_listener(self._on_curve_applied)
        self.refresh_preview()

    # -- slider ------------------------------------------------------------

    def slider_to_exponent(self, value: float) -> float:
        f = self.session.config.fitting
        value = min(SLIDER_MAX, max(SLIDER_MIN, float(value)))
        return f.exponent_min + value / SLIDER_MAX * (f.exponent_max - f.exponent_min)

    def exponent_to_slider(self, exponent: float) -> float:
        f = self.session.config.fitting
        span = f.exponent_max - f.exponent_min
        return (f.clamp_exponent(exponent) - f.exponent_min) / span * SLIDER_MAX

    @property
    def slider_value(self) -> float:
        return self.exponent_to_slider(self.session.get_current_power_setting())

    def slider_changed(self, value: float) -> float:
        """Slider moved; returns the resulting power."""
        power = self.session.set_power_setting(self.slider_to_exponent(value))
        logger.debug("Stylus slider value changed to %.1f (power %.2f)", value, power)
        return power

    # -- preview -----------------------------------------------------------

    def displayed_curve(self) -> Curve:
        """Stored curve for the active brush, even while disabled."""
        return self.session.current_curve()

    def refresh_preview(self, samples: int = PREVIEW_SAMPLES) -> list[tuple[float, float]]:
        curve = self.displayed_curve()
        xs = np.linspace(0.0, 1.0, samples)
        ys = curve.evaluate(xs)
        self.preview = [(float(x), float(y)) for x, y in zip(xs, ys)]
        return self.preview

    def _on_curve_applied(self, curve: Curve) -> None:
        self.refresh_preview()

    # -- buttons -----------------------------------------------------------

    def enabled_toggled(self) -> bool:
        state = self.session.toggle_enabled()
        self.refresh_preview()
        return state

    def reset_brush_clicked(self) -> bool:
        removed = self.session.reset_brush()
        self.refresh_preview()
        return removed

    def reset_all_clicked(self) -> None:
        self.session.reset_all_curves()
        self.refresh_preview()

    def brush_changed(self) -> None:
        """Host switched brushes: re-apply live curve and update preview."""
        self.session.on_brush_changed()
        self.refresh_preview()
