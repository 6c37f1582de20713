"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Atomic I/O and YAML (fs)
    - Unified logging (logging_config)
    - Store file schema validation (validators)

No module in utils/ may import from upper layers (session, store, curves, ...).

Convenience imports:
    from stylus_calibration.utils import fs, validators
    from stylus_calibration.utils.logging_config import setup_logging, logging_context
"""

from . import fs
from . import logging_config
from . import validators

from .logging_config import logging_context, setup_logging

__all__ = [
    # Modules
    'fs',
    'logging_config',
    'validators',
    # Direct exports
    'setup_logging',
    'logging_context',
]
