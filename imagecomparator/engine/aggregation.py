"""
Result aggregation for the engine package.

The engine hands every compared unit and its difference count to a
classifier. ResultAggregator is the standard classifier: it applies the
acceptance tolerance, collects MatchRecords and builds the RunReport.
"""

from __future__ import annotations

import abc
from typing import Optional, Sequence

from ..config import DEFAULT_TOLERANCE
from ..errors import ConfigurationError, ValidationError, ZeroAreaImageError
from ..models import ComparisonUnit, MatchRecord, RunContext, RunReport, bytes_to_string
from ..utils.formatters import format_similarity
from ..utils.validators import validate_tolerance
from .dependencies import _logger
from .store import ImageStore


class Classifier(abc.ABC):
    """
    Decides what happens to a compared unit.

    Only classify() is required. tolerance is reported in the run log and
    the RunReport when set. discard() is called when a run is cancelled or
    aborted.
    """

    tolerance: Optional[float] = None

    @abc.abstractmethod
    def classify(self, unit: ComparisonUnit, difference_count: int) -> Optional[MatchRecord]:
        """
        Classify one compared unit.

        Returns:
            The MatchRecord if the unit was accepted, otherwise None
        """
        ...

    def discard(self) -> None:
        """Drop any state accumulated during a run."""


def is_accepted(difference_count: int, total_pixels: int, tolerance: float) -> bool:
    """
    Return True if difference_count / total_pixels <= tolerance.

    The comparison is inclusive: a pair exactly at the tolerance is accepted.

    Raises:
        ZeroAreaImageError: total_pixels is not positive
    """
    if total_pixels <= 0:
        raise ZeroAreaImageError(f"Cannot compute a difference percentage over {total_pixels} pixels")
    return difference_count / total_pixels <= tolerance


class ResultAggregator(Classifier):
    """
    Tolerance classifier that accumulates accepted pairs.

    The duplicate-byte total counts only the source image of each accepted
    pair: one file of the pair is considered reclaimable.

    Attributes:
        identities: Identity table of the run, indexed by ComparisonUnit indices
        store: Image store used for dimensions and file sizes
        tolerance: Largest accepted difference percentage (0.0 - 1.0)
        records: Accepted pairs in enumeration order
        total_file_size: Sum of source file sizes of accepted pairs
    """

    def __init__(
        self,
        identities: Sequence,
        store: ImageStore,
        tolerance: float = DEFAULT_TOLERANCE,
    ):
        is_valid, error = validate_tolerance(tolerance)
        if not is_valid:
            raise ConfigurationError(error)

        self.identities = tuple(identities)
        self.store = store
        self.tolerance = float(tolerance)
        self.records: list[MatchRecord] = []
        self.total_file_size = 0

    @property
    def match_count(self) -> int:
        return len(self.records)

    def classify(self, unit: ComparisonUnit, difference_count: int) -> Optional[MatchRecord]:
        source_id = self.identities[unit.source_index]
        compare_id = self.identities[unit.compare_index]

        source = self.store.resolve(source_id)
        if source is None:
            raise ValidationError(f"Source image became unreadable: {source_id}", identity=source_id)

        total_pixels = source.pixel_count
        if not is_accepted(difference_count, total_pixels, self.tolerance):
            return None

        file_size = self.store.file_size(source_id)
        record = MatchRecord(
            source_path=str(source_id),
            compare_path=str(compare_id),
            file_size=file_size,
            differences=difference_count,
        )
        self.records.append(record)
        self.total_file_size += file_size

        similarity = 1 - difference_count / total_pixels
        _logger.debug(
            f"Match: size {bytes_to_string(file_size)}, differing pixels {difference_count:,}, "
            f"similarity {format_similarity(similarity)} {source_id}\n {compare_id}"
        )
        return record

    def discard(self) -> None:
        """Drop everything accumulated so far."""
        self.records.clear()
        self.total_file_size = 0

    def build_report(self, context: RunContext) -> RunReport:
        """Create the immutable report for a finished run."""
        return build_report(context, self.records, self.tolerance)


def build_report(
    context: RunContext,
    records: Sequence[MatchRecord],
    tolerance: Optional[float] = None,
) -> RunReport:
    """
    Create the immutable report for a finished run.

    The duplicate size is the sum of the file sizes stored in the records.
    """
    return RunReport(
        total_file_size=sum(record.file_size for record in records),
        match_count=len(records),
        results=tuple(records),
        skip_count=context.skip_count,
        image_count=context.image_count,
        total_units=context.total_units,
        real_compare_count=context.real_compare_count,
        elapsed_seconds=context.elapsed_seconds,
        tolerance=tolerance,
    )


__all__ = ['Classifier', 'ResultAggregator', 'build_report', 'is_accepted']
