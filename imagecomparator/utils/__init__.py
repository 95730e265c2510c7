"""
Utilities package for Image Comparator.

Provides:
- formatters: Human-readable formatting for sizes, durations and similarities
- validators: Input validation for tolerances, batch sizes and folders
- exporters: Write run reports to JSON, CSV or TXT
"""

from __future__ import annotations

# Import submodules for convenient access
from . import formatters
from . import validators
from . import exporters

# Export commonly used functions
from .formatters import format_number, format_elapsed, format_similarity, bytes_to_string
from .validators import (
    validate_tolerance,
    parse_tolerance,
    validate_batch_size,
    validate_directory,
    validate_folders,
)
from .exporters import export_report, load_report

__all__ = [
    # Submodules
    'formatters',
    'validators',
    'exporters',
    # Formatters
    'format_number',
    'format_elapsed',
    'format_similarity',
    'bytes_to_string',
    # Validators
    'validate_tolerance',
    'parse_tolerance',
    'validate_batch_size',
    'validate_directory',
    'validate_folders',
    # Exporters
    'export_report',
    'load_report',
]
