"""
Stylus Calibration Package.

Headless pressure calibration engine behind a stylus calibration dialog and a
stylus editor dock. Records pressure and motion samples, fits a pressure
response curve, stores it per brush (or as a global default), persists it and
applies it to the live input device.

Subpackages:
    recording: Sample buffer for the strokes drawn while calibrating
    analysis: Descriptive statistics and velocity derivation
    curves: Curve data model and fit policies
    store: Curve store, brush keying and persistence
    configs: Configuration loading and validation
    scripts: Command line entry points
    utils: Atomic I/O, logging and store file schemas

Modules:
    session: CalibrationSession, the API the UI adapters drive
    dialog, editor: Thin headless adapters for the two widgets
    host: Collaborator protocols and an in-memory device manager
"""

__version__ = "0.1.0"

__all__ = [
    "recording",
    "analysis",
    "curves",
    "store",
    "configs",
    "scripts",
    "utils",
    "session",
    "dialog",
    "editor",
    "host",
    "errors",
]
