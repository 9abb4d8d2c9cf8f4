"""
Input validation for imagematch runs.

Every check runs before any hashing starts; a failed check is a
configuration error and the run does not begin. Validators return
(is_valid, error_message) tuples; validate_settings raises
ConfigurationError for callers that prefer exceptions.
"""

from __future__ import annotations

import math
import os
from typing import Optional

from ..models import ScanSettings
from ..scanner.hashing import HASH_FUNCTIONS


class ConfigurationError(ValueError):
    """Raised when run parameters are invalid."""


def validate_directory(directory: Optional[str]) -> tuple[bool, str]:
    """
    Validate that a directory exists and is accessible.

    Args:
        directory: Directory path to validate

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_directory('/nonexistent/directory')
        (False, 'Directory not found: /nonexistent/directory')
    """
    if not directory:
        return False, "Directory path is required"

    if not os.path.exists(directory):
        return False, f"Directory not found: {directory}"

    if not os.path.isdir(directory):
        return False, f"Path is not a directory: {directory}"

    if not os.access(directory, os.R_OK):
        return False, f"Cannot read directory (permission denied): {directory}"

    return True, ""


def validate_image_file(filepath: Optional[str]) -> tuple[bool, str]:
    """
    Validate that a query image path points to a readable file.

    Examples:
        >>> validate_image_file('/nonexistent/file.jpg')
        (False, 'Input image not found: /nonexistent/file.jpg')
    """
    if not filepath:
        return False, "Input image path is required"

    if not os.path.exists(filepath):
        return False, f"Input image not found: {filepath}"

    if os.path.isdir(filepath):
        return False, f"Input image is a directory: {filepath}"

    if not os.access(filepath, os.R_OK):
        return False, f"Input image is not readable (permission denied): {filepath}"

    return True, ""


def validate_threshold(threshold) -> tuple[bool, str]:
    """
    Validate that a similarity threshold is a percentage.

    Args:
        threshold: Threshold value to validate (0-100)

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_threshold(96)
        (True, '')
        >>> validate_threshold(150)
        (False, 'Threshold must be between 0 and 100, got 150.00')
    """
    try:
        threshold = float(threshold)
    except (ValueError, TypeError):
        return False, "Threshold must be a number"

    if math.isnan(threshold) or not 0 <= threshold <= 100:
        return False, f"Threshold must be between 0 and 100, got {threshold:.2f}"
    return True, ""


def validate_workers(workers) -> tuple[bool, str]:
    """Validate a worker count (<= 0 means one per CPU)."""
    try:
        int(workers)
    except (ValueError, TypeError):
        return False, "Workers must be an integer"
    return True, ""


def validate_algorithm(name: str, hash_size) -> tuple[bool, str]:
    """Validate a hash algorithm name and hash size."""
    if name not in HASH_FUNCTIONS:
        return False, f"Unknown hash algorithm: {name}. Use one of: {', '.join(sorted(HASH_FUNCTIONS))}"
    try:
        hash_size = int(hash_size)
    except (ValueError, TypeError):
        return False, "Hash size must be an integer"
    if hash_size < 2:
        return False, f"Hash size must be at least 2, got {hash_size}"
    return True, ""


def validate_settings(settings: ScanSettings) -> None:
    """
    Validate all run-scoped settings.

    Raises:
        ConfigurationError: On the first invalid setting
    """
    for is_valid, error in (
        validate_threshold(settings.threshold),
        validate_workers(settings.workers),
        validate_algorithm(settings.algorithm, settings.hash_size),
    ):
        if not is_valid:
            raise ConfigurationError(error)


__all__ = [
    'ConfigurationError',
    'validate_directory',
    'validate_image_file',
    'validate_threshold',
    'validate_workers',
    'validate_algorithm',
    'validate_settings',
]
