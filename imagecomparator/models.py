"""
Data models for Image Comparator.

Contains dataclasses for image handles, comparison units, match records,
per-run counters and the final run report.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional
import time

import numpy as np

SIZE_SUFFIXES = ('B', 'KB', 'MB', 'GB', 'TB', 'PB', 'EB')


def bytes_to_string(byte_count: int) -> str:
    """
    Format a byte count in human-readable form.

    Scales by 1024 per unit and rounds to one decimal place. Whole values
    are printed without a decimal and the sign of the input is kept.

    Examples:
        >>> bytes_to_string(0)
        '0B'
        >>> bytes_to_string(1536)
        '1.5KB'
        >>> bytes_to_string(-1048576)
        '-1MB'
    """
    if byte_count == 0:
        return "0" + SIZE_SUFFIXES[0]
    magnitude = abs(byte_count)
    place = 0
    while place < len(SIZE_SUFFIXES) - 1 and magnitude >= 1024 ** (place + 1):
        place += 1
    num = round(magnitude / 1024 ** place, 1)
    if byte_count < 0:
        num = -num
    text = str(int(num)) if num.is_integer() else str(num)
    return text + SIZE_SUFFIXES[place]


@dataclass
class ImageHandle:
    """
    A decoded image borrowed from an image store.

    Attributes:
        identity: Store identity (a file path for folder stores)
        width: Image width in pixels
        height: Image height in pixels
        pixels: Array of shape (height, width, channels)
    """
    identity: Any
    width: int
    height: int
    pixels: Any = field(repr=False, default=None)

    @classmethod
    def from_array(cls, identity: Any, pixels) -> 'ImageHandle':
        """Wrap a (height, width[, channels]) array."""
        array = np.asarray(pixels)
        if array.ndim == 2:
            array = array[:, :, np.newaxis]
        if array.ndim != 3:
            raise ValueError(f"Expected a 2D or 3D pixel array, got shape {array.shape}")
        height, width = array.shape[:2]
        return cls(identity=identity, width=width, height=height, pixels=array)

    @property
    def pixel_count(self) -> int:
        """Total pixels (width * height)."""
        return self.width * self.height

    @property
    def size(self) -> tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def resolution(self) -> str:
        """Return resolution as 'WxH' string."""
        return f"{self.width}x{self.height}"

    def same_size(self, other: 'ImageHandle') -> bool:
        return self.width == other.width and self.height == other.height


@dataclass(frozen=True)
class ComparisonUnit:
    """
    One candidate pair, as indices into the run's identity table.

    source_index is always strictly less than compare_index.
    """
    source_index: int
    compare_index: int

    def __post_init__(self):
        if self.source_index < 0 or self.source_index >= self.compare_index:
            raise ValueError(
                f"Invalid comparison unit ({self.source_index}, {self.compare_index}): "
                f"requires 0 <= source_index < compare_index"
            )


@dataclass(frozen=True)
class MatchRecord:
    """
    An accepted pair.

    Attributes:
        source_path: Identity of the source image
        compare_path: Identity of the compared image
        file_size: Size in bytes of the source image file
        differences: Number of differing pixels
    """
    source_path: str
    compare_path: str
    file_size: int
    differences: int

    @property
    def file_size_formatted(self) -> str:
        return bytes_to_string(self.file_size)

    def to_dict(self) -> dict:
        """Convert to the persisted report layout."""
        return {
            'sourcePath': self.source_path,
            'comparePath': self.compare_path,
            'fileSize': self.file_size,
            'differences': self.differences,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'MatchRecord':
        return cls(
            source_path=data['sourcePath'],
            compare_path=data['comparePath'],
            file_size=data.get('fileSize', 0),
            differences=data.get('differences', 0),
        )


class RunState(Enum):
    """Lifecycle of a comparison run."""
    IDLE = 'idle'
    GENERATING = 'generating'
    COMPARING = 'comparing'
    AGGREGATING = 'aggregating'
    REPORTED = 'reported'
    CANCELLED = 'cancelled'


@dataclass
class RunContext:
    """
    Counters for a single run. A new context is created for every run.

    Attributes:
        image_count: Number of identities in the run
        total_units: Number of comparison units (pairs)
        batch_count: Number of batches the units are split into
        finished_count: Units processed so far (compared or skipped)
        skip_count: Units skipped (size mismatch or unreadable image)
        real_compare_count: Units actually dispatched to the kernel
        accepted_count: Units accepted by the classifier
        duplicate_bytes: Sum of source file sizes of accepted units
    """
    image_count: int = 0
    total_units: int = 0
    batch_count: int = 0
    finished_count: int = 0
    skip_count: int = 0
    real_compare_count: int = 0
    accepted_count: int = 0
    duplicate_bytes: int = 0
    started_at: float = field(default_factory=time.perf_counter)

    @property
    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self.started_at

    @property
    def progress(self) -> float:
        """Fraction of units processed (0.0 - 1.0)."""
        if self.total_units == 0:
            return 1.0
        return self.finished_count / self.total_units


@dataclass(frozen=True)
class BatchOutcome:
    """Result of processing one batch."""
    batch_index: int
    batch_count: int
    processed: int = 0
    compared: int = 0
    skipped: int = 0
    accepted: int = 0
    finished: bool = False


@dataclass(frozen=True)
class RunReport:
    """
    Final output of a completed run.

    Only total_file_size, match_count, results and skip_count are persisted.
    The remaining fields are diagnostics.
    """
    total_file_size: int
    match_count: int
    results: tuple = ()
    skip_count: int = 0
    image_count: int = 0
    total_units: int = 0
    real_compare_count: int = 0
    elapsed_seconds: float = 0.0
    tolerance: Optional[float] = None

    @property
    def total_file_size_formatted(self) -> str:
        return bytes_to_string(self.total_file_size)

    def to_dict(self) -> dict:
        """Convert to the persisted report layout."""
        return {
            'totalFileSize': self.total_file_size,
            'totalSamePairCount': self.match_count,
            'results': [record.to_dict() for record in self.results],
            'skipProcessCount': self.skip_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'RunReport':
        """Create RunReport from a persisted report."""
        results = tuple(MatchRecord.from_dict(item) for item in data.get('results', []))
        return cls(
            total_file_size=data.get('totalFileSize', 0),
            match_count=data.get('totalSamePairCount', len(results)),
            results=results,
            skip_count=data.get('skipProcessCount', 0),
        )
