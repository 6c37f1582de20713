"""
Recording module.

Collects pressure and velocity samples from the strokes drawn while a
calibration is being recorded.
"""

from stylus_calibration.recording.samples import DEFAULT_PRESSURE, Sample, SampleBuffer

__all__ = [
    "DEFAULT_PRESSURE",
    "Sample",
    "SampleBuffer",
]
