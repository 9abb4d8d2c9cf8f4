"""
Utilities package for imagematch.

Provides:
- validators: Validation of run parameters before any work starts
- exporters: CSV output of de-duplication results
"""

from __future__ import annotations

from . import validators
from . import exporters

from .validators import (
    ConfigurationError,
    validate_directory,
    validate_image_file,
    validate_threshold,
    validate_workers,
    validate_algorithm,
    validate_settings,
)
from .exporters import CsvResultWriter

__all__ = [
    # Submodules
    'validators',
    'exporters',
    # Validators
    'ConfigurationError',
    'validate_directory',
    'validate_image_file',
    'validate_threshold',
    'validate_workers',
    'validate_algorithm',
    'validate_settings',
    # Exporters
    'CsvResultWriter',
]
