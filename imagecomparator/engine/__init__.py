"""
Engine package for Image Comparator.

Provides the pixel difference kernel, task generation, the batch-by-batch
comparison engine and result aggregation.

Public API:
- PixelDiffKernel: Count differing pixels with a reusable result buffer
- create_tasks / iter_batches: Enumerate image pairs and split them into batches
- ComparisonEngine / ComparisonRun: Drive comparison runs one batch at a time
- ResultAggregator: Apply the acceptance tolerance and build the RunReport
- ImageStore, FolderImageStore, InMemoryImageStore: Image sources
- TqdmProgress: Progress bar callback
- find_image_files / find_images_in_folders: Discover image files
"""

from __future__ import annotations

from .kernel import PixelDiffKernel
from .tasks import (
    count_units,
    count_batches,
    enumerate_units,
    split,
    create_tasks,
    iter_batches,
)
from .store import ImageStore, InMemoryImageStore, FolderImageStore
from .aggregation import Classifier, ResultAggregator, build_report, is_accepted
from .progress import ProgressCallback, TqdmProgress
from .comparison import ComparisonEngine, ComparisonRun
from .file_discovery import find_image_files, find_images_in_folders
from .dependencies import HAS_HEIF_SUPPORT


def has_heif_support() -> bool:
    """Check if HEIC/HEIF support is available."""
    return HAS_HEIF_SUPPORT


__all__ = [
    # Kernel
    'PixelDiffKernel',
    # Task generation
    'count_units',
    'count_batches',
    'enumerate_units',
    'split',
    'create_tasks',
    'iter_batches',
    # Image stores
    'ImageStore',
    'InMemoryImageStore',
    'FolderImageStore',
    # Classification and aggregation
    'Classifier',
    'ResultAggregator',
    'build_report',
    'is_accepted',
    # Progress
    'ProgressCallback',
    'TqdmProgress',
    # Engine
    'ComparisonEngine',
    'ComparisonRun',
    # File discovery
    'find_image_files',
    'find_images_in_folders',
    # Feature detection
    'has_heif_support',
]
