"""
Curves module.

Pressure response curve model and the named fit policies that build curves
from recorded statistics.
"""

from stylus_calibration.curves.curve import Curve
from stylus_calibration.curves.fitter import (
    FIT_POLICIES,
    FitPolicy,
    analyze,
    fit,
    fit_samples,
    get_policy,
)

__all__ = [
    "Curve",
    "FIT_POLICIES",
    "FitPolicy",
    "analyze",
    "fit",
    "fit_samples",
    "get_policy",
]
