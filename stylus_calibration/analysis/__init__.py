"""
Analysis module.

Descriptive statistics with outlier rejection, and stylus velocity
derivation.
"""

from stylus_calibration.analysis.statistics import Statistics, describe, reject_outliers
from stylus_calibration.analysis.velocity import VelocitySummary, distance, velocity

__all__ = [
    "Statistics",
    "describe",
    "reject_outliers",
    "VelocitySummary",
    "distance",
    "velocity",
]
