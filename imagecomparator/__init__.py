"""
Image Comparator
================
Finds pixel-identical and near-identical images in large collections.

Features:
- Every same-size image pair compared pixel by pixel
- Data-parallel difference kernel with a reusable result buffer
  (numpy, or cupy on CUDA devices)
- Configurable tolerance: exact, near (10%) or any fraction of pixels
- Batch-by-batch processing with progress reporting and cancellation
- JSON report compatible with existing consumers, plus CSV/TXT export
- CLI for automation
"""

__version__ = "1.0.0"
__author__ = "Zedidence"

from .models import (
    ImageHandle,
    ComparisonUnit,
    MatchRecord,
    RunReport,
    RunContext,
    RunState,
    BatchOutcome,
    bytes_to_string,
)
from .config import (
    MAX_IMAGE_WIDTH,
    MAX_IMAGE_HEIGHT,
    DEFAULT_BATCH_SIZE,
    TOLERANCE_PRESETS,
)
from .errors import (
    ComparatorError,
    ConfigurationError,
    ValidationError,
    CapacityError,
    ZeroAreaImageError,
    RunCancelledError,
    EngineBusyError,
    EngineClosedError,
)
from .engine import (
    PixelDiffKernel,
    create_tasks,
    iter_batches,
    ComparisonEngine,
    ComparisonRun,
    ResultAggregator,
    Classifier,
    ImageStore,
    FolderImageStore,
    InMemoryImageStore,
    TqdmProgress,
    find_image_files,
    find_images_in_folders,
)
from .utils.exporters import export_report, load_report

__all__ = [
    "ImageHandle",
    "ComparisonUnit",
    "MatchRecord",
    "RunReport",
    "RunContext",
    "RunState",
    "BatchOutcome",
    "bytes_to_string",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
    "DEFAULT_BATCH_SIZE",
    "TOLERANCE_PRESETS",
    "ComparatorError",
    "ConfigurationError",
    "ValidationError",
    "CapacityError",
    "ZeroAreaImageError",
    "RunCancelledError",
    "EngineBusyError",
    "EngineClosedError",
    "PixelDiffKernel",
    "create_tasks",
    "iter_batches",
    "ComparisonEngine",
    "ComparisonRun",
    "ResultAggregator",
    "Classifier",
    "ImageStore",
    "FolderImageStore",
    "InMemoryImageStore",
    "TqdmProgress",
    "find_image_files",
    "find_images_in_folders",
    "export_report",
    "load_report",
]
