"""Calibration configuration loading and validation."""
