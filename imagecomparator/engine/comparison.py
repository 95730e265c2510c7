"""
Comparison engine for the engine package.

ComparisonEngine owns the pixel difference kernel for its whole lifetime and
runs one comparison at a time. Each run is a ComparisonRun: a step function
that processes exactly one batch per call, so the host can update progress
displays or cancel between batches. Within a batch, units are processed
sequentially and the kernel dispatch is synchronous.

A run either completes and produces a RunReport, or is cancelled/aborted and
produces nothing.
"""

from __future__ import annotations

import threading
from typing import Callable, Iterable, Optional

from ..config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DEVICE,
    DEFAULT_GROUP_SIZE,
    DEFAULT_TOLERANCE,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
)
from ..errors import ConfigurationError, EngineBusyError, EngineClosedError, RunCancelledError
from ..models import BatchOutcome, ComparisonUnit, MatchRecord, RunContext, RunReport, RunState, bytes_to_string
from ..utils.formatters import format_elapsed
from ..utils.validators import validate_batch_size
from .aggregation import Classifier, ResultAggregator, build_report
from .dependencies import _logger
from .kernel import PixelDiffKernel
from .progress import ProgressCallback
from .store import ImageStore
from .tasks import count_batches, count_units, iter_batches


class ComparisonRun:
    """
    One comparison run over a fixed identity table.

    Created by ComparisonEngine.start_run(). Call process_next_batch() until
    exhausted is True, then finish() to get the report.
    """

    def __init__(
        self,
        engine: 'ComparisonEngine',
        identities: tuple,
        classifier: Classifier,
        progress: Optional[ProgressCallback],
        batch_size: int,
    ):
        self._engine = engine
        self.identities = identities
        self.classifier = classifier
        self.progress = progress
        self.batch_size = batch_size
        self._records: list[MatchRecord] = []

        self._lock = threading.Lock()
        self._cancel_requested = False
        self._in_batch = False
        self._batch_index = 0

        self.state = RunState.GENERATING
        image_count = len(identities)
        self.context = RunContext(
            image_count=image_count,
            total_units=count_units(image_count),
            batch_count=count_batches(image_count, batch_size),
        )
        self._batches = iter_batches(image_count, batch_size)
        self.state = RunState.COMPARING

    @property
    def batch_index(self) -> int:
        """Number of batches processed so far."""
        return self._batch_index

    @property
    def exhausted(self) -> bool:
        """True once every batch has been processed."""
        return self._batch_index >= self.context.batch_count

    @property
    def total_units(self) -> int:
        return self.context.total_units

    @property
    def skip_count(self) -> int:
        return self.context.skip_count

    @property
    def real_compare_count(self) -> int:
        return self.context.real_compare_count

    @property
    def duplicate_bytes(self) -> int:
        return self.context.duplicate_bytes

    @property
    def records(self) -> tuple[MatchRecord, ...]:
        """Accepted pairs so far, in enumeration order."""
        return tuple(self._records)

    @property
    def cancelled(self) -> bool:
        return self.state is RunState.CANCELLED

    def process_next_batch(self) -> BatchOutcome:
        """
        Process the next batch of units.

        Returns:
            BatchOutcome for the batch; finished is True after the last batch

        Raises:
            RunCancelledError: The run was cancelled, including by another
                thread while this batch was in progress
            CapacityError, ZeroAreaImageError: An image cannot be compared;
                the run is abandoned
        """
        with self._lock:
            self._check_active()
            if self._cancel_requested:
                raise RunCancelledError("Run was cancelled")
            batch = next(self._batches, None)
            if batch is None:
                return BatchOutcome(
                    batch_index=self._batch_index,
                    batch_count=self.context.batch_count,
                    finished=True,
                )
            self._in_batch = True

        compared = skipped = accepted = 0
        try:
            for unit in batch:
                result = self._process_unit(unit)
                if result is None:
                    skipped += 1
                else:
                    compared += 1
                    accepted += int(result)
        except BaseException:
            with self._lock:
                self._in_batch = False
            self._abandon("aborted")
            raise

        with self._lock:
            self._in_batch = False
            cancel_requested = self._cancel_requested
        if cancel_requested:
            self._abandon("cancelled")
            raise RunCancelledError("Run cancelled during batch; results discarded")

        self._batch_index += 1
        return BatchOutcome(
            batch_index=self._batch_index - 1,
            batch_count=self.context.batch_count,
            processed=len(batch),
            compared=compared,
            skipped=skipped,
            accepted=accepted,
            finished=self.exhausted,
        )

    def finish(self) -> RunReport:
        """
        Build the report of a fully processed run.

        Raises:
            RunCancelledError: The run was cancelled
            RuntimeError: Batches remain, or the report was already built
        """
        with self._lock:
            self._check_active()
            if self._cancel_requested:
                raise RunCancelledError("Run was cancelled")
            if not self.exhausted:
                raise RuntimeError(
                    f"Cannot finish run: {self.context.batch_count - self._batch_index} batches remain"
                )
            self.state = RunState.AGGREGATING

        report = build_report(self.context, self._records, self.classifier.tolerance)
        self.state = RunState.REPORTED
        self._engine._release_run(self)

        _logger.info(
            f"Finished in {format_elapsed(report.elapsed_seconds)}: compared "
            f"{report.real_compare_count:,}/{report.total_units:,} pairs of "
            f"{report.image_count:,} images, {report.match_count:,} matching pairs, "
            f"{report.skip_count:,} skipped"
        )
        _logger.info(f"Duplicate size (one image of each pair): {bytes_to_string(report.total_file_size)}")
        return report

    def cancel(self) -> bool:
        """
        Cancel the run and discard everything accumulated.

        Safe to call from another thread; a batch in progress is finished
        and then discarded.

        Returns:
            True if the run was active and is now cancelled (or will be at
            the end of the current batch)
        """
        with self._lock:
            if self.state in (RunState.AGGREGATING, RunState.REPORTED, RunState.CANCELLED):
                return False
            self._cancel_requested = True
            if self._in_batch:
                return True
        self._abandon("cancelled")
        return True

    def _process_unit(self, unit: ComparisonUnit) -> Optional[bool]:
        """
        Compare one unit.

        Returns:
            None if skipped, otherwise whether the classifier accepted it
        """
        context = self.context
        store = self._engine.store
        kernel = self._engine.kernel

        source = store.resolve(self.identities[unit.source_index])
        compare = store.resolve(self.identities[unit.compare_index])
        for handle in (source, compare):
            if handle is not None:
                kernel.validate_size(handle.width, handle.height, handle.identity)

        result: Optional[bool]
        resolution: Optional[tuple[int, int]]
        if source is None or compare is None or not source.same_size(compare):
            context.skip_count += 1
            result = None
            resolution = None
        else:
            difference_count = kernel.count_differences(source, compare)
            context.real_compare_count += 1
            record = self.classifier.classify(unit, difference_count)
            result = record is not None
            if record is not None:
                self._records.append(record)
                context.accepted_count += 1
                context.duplicate_bytes += record.file_size
            resolution = source.size

        context.finished_count += 1
        if self.progress is not None:
            self.progress(context.finished_count, context.total_units, context.skip_count, resolution)
        return result

    def _check_active(self) -> None:
        if self.state is RunState.CANCELLED:
            raise RunCancelledError("Run was cancelled")
        if self.state is RunState.REPORTED:
            raise RuntimeError("Run has already been reported")

    def _abandon(self, reason: str) -> None:
        if self.state is RunState.CANCELLED:
            return
        processed = self.context.finished_count
        self.state = RunState.CANCELLED
        self.classifier.discard()
        self._records.clear()
        self.context = RunContext(image_count=len(self.identities))
        self._engine._release_run(self)
        _logger.warning(f"Run {reason} after {processed:,} comparisons; no report produced")


class ComparisonEngine:
    """
    Drives comparison runs against a single kernel and result buffer.

    The kernel is acquired when the engine is created and released exactly
    once by close(). Use as a context manager:

        with ComparisonEngine(FolderImageStore()) as engine:
            report = engine.run(paths, tolerance=0.1)
    """

    def __init__(
        self,
        store: ImageStore,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_width: int = MAX_IMAGE_WIDTH,
        max_height: int = MAX_IMAGE_HEIGHT,
        group_size: tuple[int, int] = DEFAULT_GROUP_SIZE,
        device: str = DEFAULT_DEVICE,
    ):
        is_valid, error = validate_batch_size(batch_size)
        if not is_valid:
            raise ConfigurationError(error)

        self.store = store
        self.batch_size = int(batch_size)
        self.kernel = PixelDiffKernel(
            max_width=max_width,
            max_height=max_height,
            group_size=group_size,
            device=device,
        )
        self._lock = threading.Lock()
        self._active_run: Optional[ComparisonRun] = None
        self._closed = False

    def __enter__(self) -> 'ComparisonEngine':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_run(self) -> Optional[ComparisonRun]:
        return self._active_run

    def start_run(
        self,
        identities: Iterable,
        tolerance: float = DEFAULT_TOLERANCE,
        progress: Optional[ProgressCallback] = None,
        classifier: Optional[Classifier] = None,
    ) -> ComparisonRun:
        """
        Start a new run over a fixed set of image identities.

        Args:
            identities: Image identities; the order defines pair indices
            tolerance: Largest accepted difference percentage (0.0 - 1.0)
            progress: Optional callback(completed, total, skipped, resolution)
            classifier: Custom classifier; defaults to a ResultAggregator
                applying tolerance

        Raises:
            ConfigurationError: No identities or invalid tolerance
            EngineBusyError: Another run is active
            EngineClosedError: The engine has been closed
        """
        if self._closed:
            raise EngineClosedError("Comparison engine is closed")

        identity_table = tuple(identities)
        if not identity_table:
            raise ConfigurationError("No images to compare")
        if classifier is None:
            classifier = ResultAggregator(identity_table, self.store, tolerance)

        with self._lock:
            if self._active_run is not None:
                raise EngineBusyError("A comparison run is already in progress")
            run = ComparisonRun(self, identity_table, classifier, progress, self.batch_size)
            self._active_run = run

        detail = f" (tolerance {classifier.tolerance:g})" if classifier.tolerance is not None else ""
        _logger.info(
            f"Comparing {len(identity_table):,} images: {run.total_units:,} pairs in "
            f"{run.context.batch_count:,} batches{detail}"
        )
        return run

    def run(
        self,
        identities: Iterable,
        tolerance: float = DEFAULT_TOLERANCE,
        progress: Optional[ProgressCallback] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> Optional[RunReport]:
        """
        Run a complete comparison.

        should_cancel is polled after every batch. The run may also be
        cancelled through active_run, e.g. from the progress callback.

        Returns:
            The RunReport, or None if the run was cancelled
        """
        run = self.start_run(identities, tolerance=tolerance, progress=progress)
        try:
            while not run.exhausted:
                run.process_next_batch()
                if should_cancel is not None and should_cancel():
                    run.cancel()
                    return None
            return run.finish()
        except RunCancelledError:
            return None

    def close(self) -> None:
        """Cancel any active run and release the kernel."""
        if self._closed:
            return
        if self._active_run is not None:
            self._active_run.cancel()
        self.kernel.release()
        self._closed = True

    def _release_run(self, run: ComparisonRun) -> None:
        with self._lock:
            if self._active_run is run:
                self._active_run = None


__all__ = ['ComparisonEngine', 'ComparisonRun']
