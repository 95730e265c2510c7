"""
Input validation for Image Comparator.

Provides validators for tolerances, batch sizes and scan folders. Validators
return (is_valid, error_message) tuples; callers decide whether to raise.
"""

from __future__ import annotations

import math
import numbers
import os
from typing import Iterable, Optional

from ..config import TOLERANCE_PRESETS


def validate_tolerance(tolerance) -> tuple[bool, str]:
    """
    Validate that a tolerance is a number between 0.0 and 1.0.

    Examples:
        >>> validate_tolerance(0.1)
        (True, '')
        >>> validate_tolerance(1.5)
        (False, 'Tolerance must be between 0.0 and 1.0')
    """
    if isinstance(tolerance, bool):
        return False, "Tolerance must be a number"
    try:
        value = float(tolerance)
    except (ValueError, TypeError):
        return False, "Tolerance must be a number"
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        return False, "Tolerance must be between 0.0 and 1.0"
    return True, ""


def parse_tolerance(text: str) -> Optional[float]:
    """
    Parse a tolerance preset name ('exact', 'near', 'all') or a number.

    Returns:
        The tolerance, or None if text is neither a preset nor a valid value

    Examples:
        >>> parse_tolerance('near')
        0.1
        >>> parse_tolerance('0.25')
        0.25
        >>> parse_tolerance('2') is None
        True
    """
    key = str(text).strip().lower()
    if key in TOLERANCE_PRESETS:
        return TOLERANCE_PRESETS[key]
    is_valid, _ = validate_tolerance(key)
    if not is_valid:
        return None
    return float(key)


def validate_batch_size(batch_size) -> tuple[bool, str]:
    """
    Validate a batch size (0 means a single batch).

    Examples:
        >>> validate_batch_size(128)
        (True, '')
        >>> validate_batch_size(-1)
        (False, 'Batch size must be 0 or a positive integer')
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, numbers.Integral):
        return False, "Batch size must be an integer"
    if batch_size < 0:
        return False, "Batch size must be 0 or a positive integer"
    return True, ""


def validate_directory(directory: str) -> tuple[bool, str]:
    """
    Validate that a directory exists and is accessible.

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


def validate_folders(folders: Iterable[str]) -> tuple[bool, str]:
    """
    Validate the folder list of a run.

    Empty entries are ignored, but at least one folder must remain and every
    remaining folder must be a readable directory.
    """
    usable = [str(folder) for folder in folders if folder and str(folder).strip()]
    if not usable:
        return False, "No folders given to scan for images"
    for folder in usable:
        is_valid, error = validate_directory(folder)
        if not is_valid:
            return False, error
    return True, ""


__all__ = [
    'validate_tolerance',
    'parse_tolerance',
    'validate_batch_size',
    'validate_directory',
    'validate_folders',
]
