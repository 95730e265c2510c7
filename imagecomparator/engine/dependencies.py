"""
Dependency initialization for the engine package.

Handles PIL, HEIC/HEIF support and array backend selection with proper
error handling and configuration.
"""

from __future__ import annotations

import importlib
import logging
import warnings
from types import ModuleType

import numpy as np

from ..errors import ConfigurationError

# Module-level logger
_logger = logging.getLogger(__name__)

# Check for required dependencies
try:
    from PIL import Image
except ImportError:
    raise ImportError(
        "Required packages not found!\n"
        "Install with: pip install Pillow numpy"
    )

# Register HEIC/HEIF support via pillow-heif
# This must be done before opening any HEIC files
HAS_HEIF_SUPPORT = False
try:
    from pillow_heif import register_heif_opener
    register_heif_opener()
    HAS_HEIF_SUPPORT = True
    _logger.debug("HEIC/HEIF support enabled via pillow-heif")
except ImportError:
    _logger.warning(
        "pillow-heif not installed - HEIC/HEIF files will not be processed. "
        "Install with: pip install pillow-heif"
    )

# Images beyond the kernel capacity are rejected later with a clear error,
# so PIL only needs to guard against genuinely hostile files here.
Image.MAX_IMAGE_PIXELS = 200_000_000
warnings.filterwarnings("ignore", category=Image.DecompressionBombWarning)


def get_array_module(device: str = 'cpu') -> ModuleType:
    """
    Return the array module backing the comparison kernel.

    Args:
        device: 'cpu' for numpy, 'cuda' for cupy

    Raises:
        ConfigurationError: Unknown device, or cupy is not installed
    """
    if device == 'cpu':
        return np
    if device == 'cuda':
        try:
            return importlib.import_module('cupy')
        except ImportError as e:
            raise ConfigurationError(
                "CUDA device requested but cupy is not installed. "
                "Install with: pip install imagecomparator[gpu]"
            ) from e
    raise ConfigurationError(f"Unknown device: {device!r} (expected 'cpu' or 'cuda')")


__all__ = [
    'Image',
    'HAS_HEIF_SUPPORT',
    'get_array_module',
    '_logger',
]
