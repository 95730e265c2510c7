"""
Integration tests for the comparison engine.
"""

import threading

import pytest
from conftest import solid
from imagecomparator.engine import (
    ComparisonEngine,
    FolderImageStore,
    InMemoryImageStore,
    Classifier,
    ResultAggregator,
)
from imagecomparator.errors import (
    CapacityError,
    ConfigurationError,
    EngineBusyError,
    EngineClosedError,
    RunCancelledError,
    ZeroAreaImageError,
)
from imagecomparator.models import MatchRecord, RunState


def make_store(count, width=8, height=8):
    """Store with `count` identical images named img0..imgN."""
    store = InMemoryImageStore()
    for i in range(count):
        store.add(f'img{i}', solid(width, height), file_size=100 * (i + 1))
    return store


class TestReferenceScenario:
    """Two identical images and one of another size."""

    def test_exact_tolerance(self, small_engine):
        report = small_engine.run(['A', 'B', 'C'], tolerance=0.0)

        assert report.match_count == 1
        assert report.skip_count == 2
        assert report.total_file_size == 1000
        assert report.results == (MatchRecord('A', 'B', 1000, 0),)
        assert report.real_compare_count == 1
        assert report.total_units == 3
        assert report.image_count == 3

    def test_persisted_form(self, small_engine):
        report = small_engine.run(['A', 'B', 'C'], tolerance=0.0)
        assert report.to_dict() == {
            'totalFileSize': 1000,
            'totalSamePairCount': 1,
            'results': [
                {'sourcePath': 'A', 'comparePath': 'B', 'fileSize': 1000, 'differences': 0},
            ],
            'skipProcessCount': 2,
        }

    @pytest.mark.parametrize("tolerance", [0.0, 0.5, 1.0])
    def test_size_mismatch_always_skipped(self, small_engine, tolerance):
        report = small_engine.run(['A', 'B', 'C'], tolerance=tolerance)
        assert report.skip_count == 2
        assert all('C' not in (r.source_path, r.compare_path) for r in report.results)

    def test_source_size_counts_toward_duplicates(self, small_engine):
        report = small_engine.run(['B', 'A'], tolerance=0.0)
        assert report.total_file_size == 2000
        assert report.results[0].source_path == 'B'

    def test_single_image(self, small_engine):
        report = small_engine.run(['A'])
        assert report.match_count == 0
        assert report.total_units == 0
        assert report.skip_count == 0
        assert report.results == ()


class TestTolerance:
    """Test acceptance around the tolerance threshold."""

    @pytest.fixture
    def engine(self):
        store = InMemoryImageStore()
        base = solid(10, 10)
        changed = base.copy()
        changed[0, :] = (0, 0, 0, 255)  # 10 of 100 pixels differ
        store.add('base', base, file_size=10)
        store.add('changed', changed, file_size=20)
        engine = ComparisonEngine(store, max_width=16, max_height=16)
        yield engine
        engine.close()

    def test_boundary_is_accepted(self, engine):
        report = engine.run(['base', 'changed'], tolerance=0.1)
        assert report.match_count == 1
        assert report.results[0].differences == 10

    def test_just_below_boundary_rejected(self, engine):
        report = engine.run(['base', 'changed'], tolerance=0.09)
        assert report.match_count == 0
        assert report.real_compare_count == 1
        assert report.skip_count == 0

    def test_invalid_tolerance(self, engine):
        with pytest.raises(ConfigurationError):
            engine.run(['base', 'changed'], tolerance=1.5)
        assert engine.active_run is None


class TestSkipping:
    """Test units that cannot be compared."""

    def test_unreadable_image_skipped(self, memory_store, small_engine):
        report = small_engine.run(['A', 'missing', 'B'], tolerance=0.0)
        assert report.match_count == 1
        assert report.skip_count == 2
        assert report.real_compare_count == 1

    def test_folder_store_with_corrupted_file(self, sample_images):
        paths = [sample_images['red_a'], sample_images['corrupted'], sample_images['red_b']]
        with ComparisonEngine(FolderImageStore(), max_width=64, max_height=64) as engine:
            report = engine.run(paths, tolerance=0.0)
        assert report.match_count == 1
        assert report.skip_count == 2
        assert report.results[0].source_path == sample_images['red_a']

    def test_folder_store_counts_differences(self, sample_images):
        paths = [sample_images['red_a'], sample_images['red_dot'], sample_images['red_rgb']]
        with ComparisonEngine(FolderImageStore(), max_width=64, max_height=64) as engine:
            report = engine.run(paths, tolerance=0.01)
        differences = {(r.source_path, r.compare_path): r.differences for r in report.results}
        assert differences[(sample_images['red_a'], sample_images['red_dot'])] == 1
        assert differences[(sample_images['red_a'], sample_images['red_rgb'])] == 0
        assert differences[(sample_images['red_dot'], sample_images['red_rgb'])] == 1


class TestAbort:
    """Test runs abandoned because an image cannot be compared."""

    def test_capacity_error_aborts_run(self, memory_store):
        memory_store.add('huge', solid(40, 10), file_size=1)
        engine = ComparisonEngine(memory_store, max_width=32, max_height=32)
        try:
            run = engine.start_run(['A', 'B', 'huge'])
            with pytest.raises(CapacityError):
                run.process_next_batch()
            assert run.cancelled
            assert run.classifier.match_count == 0
            assert engine.active_run is None
            with pytest.raises(RunCancelledError):
                run.finish()
        finally:
            engine.close()

    def test_capacity_error_raised_for_mismatched_pair(self, memory_store):
        # Oversized images are rejected even when the pair would be skipped
        memory_store.add('huge', solid(40, 40), file_size=1)
        with ComparisonEngine(memory_store, max_width=32, max_height=32) as engine:
            with pytest.raises(CapacityError):
                engine.run(['huge', 'A'])

    def test_zero_area_image_aborts_run(self):
        import numpy as np

        store = make_store(2)
        store.add('empty', np.zeros((0, 8, 4), dtype=np.uint8))
        with ComparisonEngine(store, max_width=16, max_height=16) as engine:
            with pytest.raises(ZeroAreaImageError):
                engine.run(['img0', 'empty', 'img1'])
            # The engine is usable again afterwards
            report = engine.run(['img0', 'img1'])
        assert report.match_count == 1


class TestBatches:
    """Test the batch-by-batch step function."""

    @pytest.fixture
    def engine(self):
        engine = ComparisonEngine(make_store(4), batch_size=2, max_width=16, max_height=16)
        yield engine
        engine.close()

    def test_batch_outcomes(self, engine):
        run = engine.start_run([f'img{i}' for i in range(4)], tolerance=0.0)
        assert run.total_units == 6
        assert run.context.batch_count == 3

        outcomes = []
        while not run.exhausted:
            outcomes.append(run.process_next_batch())

        assert [o.batch_index for o in outcomes] == [0, 1, 2]
        assert [o.processed for o in outcomes] == [2, 2, 2]
        assert all(o.accepted == 2 for o in outcomes)
        assert [o.finished for o in outcomes] == [False, False, True]

        report = run.finish()
        assert report.match_count == 6
        assert run.state is RunState.REPORTED

    def test_counters_update_per_batch(self, engine):
        run = engine.start_run([f'img{i}' for i in range(4)], tolerance=0.0)
        run.process_next_batch()
        # Pairs (0,1) and (0,2): source img0 has file size 100
        assert run.duplicate_bytes == 200
        assert run.real_compare_count == 2
        assert run.skip_count == 0
        assert run.batch_index == 1
        run.cancel()

    def test_finish_with_batches_remaining(self, engine):
        run = engine.start_run([f'img{i}' for i in range(4)])
        run.process_next_batch()
        with pytest.raises(RuntimeError):
            run.finish()
        run.cancel()

    def test_finish_twice(self, engine):
        run = engine.start_run(['img0', 'img1'])
        run.process_next_batch()
        run.finish()
        with pytest.raises(RuntimeError):
            run.finish()

    def test_step_after_exhausted(self, engine):
        run = engine.start_run(['img0', 'img1'])
        run.process_next_batch()
        outcome = run.process_next_batch()
        assert outcome.finished
        assert outcome.processed == 0

    def test_zero_batch_size_runs_everything_at_once(self):
        with ComparisonEngine(make_store(5), batch_size=0, max_width=16, max_height=16) as engine:
            run = engine.start_run([f'img{i}' for i in range(5)])
            outcome = run.process_next_batch()
            assert outcome.processed == 10
            assert outcome.finished
            assert run.finish().match_count == 10

    def test_invalid_batch_size(self):
        with pytest.raises(ConfigurationError):
            ComparisonEngine(make_store(2), batch_size=-1)


class TestProgress:
    """Test the per-unit progress callback."""

    def test_called_once_per_unit(self, small_engine):
        calls = []
        small_engine.run(['A', 'B', 'C'], progress=lambda *args: calls.append(args))
        assert calls == [
            (1, 3, 0, (10, 10)),
            (2, 3, 1, None),
            (3, 3, 2, None),
        ]


class TestCancellation:
    """Test cancelling runs."""

    @pytest.fixture
    def engine(self, memory_store):
        engine = ComparisonEngine(memory_store, batch_size=1, max_width=64, max_height=64)
        yield engine
        engine.close()

    def test_cancel_between_batches(self, engine):
        run = engine.start_run(['A', 'B', 'C'], tolerance=0.0)
        run.process_next_batch()
        assert run.classifier.match_count == 1

        assert run.cancel() is True
        assert run.cancelled
        assert run.classifier.match_count == 0
        assert run.classifier.total_file_size == 0
        assert run.context.finished_count == 0
        assert run.records == ()
        with pytest.raises(RunCancelledError):
            run.finish()
        with pytest.raises(RunCancelledError):
            run.process_next_batch()

    def test_cancel_twice(self, engine):
        run = engine.start_run(['A', 'B'])
        assert run.cancel() is True
        assert run.cancel() is False

    def test_cancel_after_report(self, engine):
        run = engine.start_run(['A', 'B'])
        run.process_next_batch()
        run.finish()
        assert run.cancel() is False

    def test_should_cancel_returns_none(self, engine):
        polls = []

        def should_cancel():
            polls.append(1)
            return True

        assert engine.run(['A', 'B', 'C'], should_cancel=should_cancel) is None
        assert len(polls) == 1
        assert engine.active_run is None

    def test_cancel_during_batch(self, memory_store):
        engine = ComparisonEngine(memory_store, batch_size=0, max_width=64, max_height=64)
        run = engine.start_run(['A', 'B', 'C'])
        calls = []

        def progress(completed, total, skipped, resolution):
            calls.append(completed)
            if completed == 1:
                # Applied once the batch in progress has finished
                assert run.cancel() is True

        run.progress = progress
        try:
            with pytest.raises(RunCancelledError):
                run.process_next_batch()
            assert calls == [1, 2, 3]
            assert run.cancelled
            assert run.classifier.match_count == 0
        finally:
            engine.close()

    def test_cancel_from_progress_returns_none(self, engine):
        def progress(completed, total, skipped, resolution):
            if completed == 1:
                engine.active_run.cancel()

        assert engine.run(['A', 'B', 'C'], progress=progress) is None
        assert engine.active_run is None
        # The engine accepts a new run afterwards
        assert engine.run(['A', 'B'], tolerance=0.0).match_count == 1

    def test_cancel_while_batch_starts(self, engine):
        run = engine.start_run(['A', 'B', 'C'])
        batches = run._batches
        worker = threading.Thread(target=run.cancel)

        def starting_batches():
            # The cancel arrives while the next batch is being fetched
            for batch in batches:
                worker.start()
                worker.join(timeout=0.2)
                yield batch

        run._batches = starting_batches()
        observed = []

        def progress(completed, total, skipped, resolution):
            worker.join()
            observed.append(engine.active_run is run)
            with pytest.raises(EngineBusyError):
                engine.start_run(['A', 'B'])

        run.progress = progress
        with pytest.raises(RunCancelledError):
            run.process_next_batch()
        assert observed == [True]
        assert run.cancelled
        assert engine.active_run is None

    def test_cancel_from_other_thread(self, engine):
        run = engine.start_run(['A', 'B', 'C'])
        worker = threading.Thread(target=run.cancel)
        worker.start()
        worker.join()
        assert run.cancelled
        assert engine.active_run is None

    def test_new_run_after_cancel(self, engine):
        run = engine.start_run(['A', 'B', 'C'])
        run.cancel()
        report = engine.run(['A', 'B'], tolerance=0.0)
        assert report.match_count == 1


class TestEngineLifecycle:
    """Test run exclusivity and kernel release."""

    def test_one_active_run(self, small_engine):
        run = small_engine.start_run(['A', 'B'])
        with pytest.raises(EngineBusyError):
            small_engine.start_run(['A', 'B'])
        run.cancel()
        small_engine.start_run(['A', 'B']).cancel()

    def test_run_released_after_report(self, small_engine):
        small_engine.run(['A', 'B'])
        assert small_engine.active_run is None

    def test_empty_identities(self, small_engine):
        with pytest.raises(ConfigurationError):
            small_engine.start_run([])

    def test_closed_engine(self, memory_store):
        engine = ComparisonEngine(memory_store, max_width=16, max_height=16)
        engine.close()
        assert engine.closed
        assert engine.kernel.released
        with pytest.raises(EngineClosedError):
            engine.start_run(['A', 'B'])

    def test_close_releases_kernel_once(self, memory_store, monkeypatch):
        engine = ComparisonEngine(memory_store, max_width=16, max_height=16)
        releases = []
        original = engine.kernel.release
        monkeypatch.setattr(engine.kernel, 'release', lambda: releases.append(original()))
        engine.close()
        engine.close()
        assert releases == [True]

    def test_close_cancels_active_run(self, memory_store):
        engine = ComparisonEngine(memory_store, max_width=16, max_height=16)
        run = engine.start_run(['A', 'B'])
        engine.close()
        assert run.cancelled

    def test_context_manager(self, memory_store):
        with ComparisonEngine(memory_store, max_width=16, max_height=16) as engine:
            assert not engine.closed
        assert engine.closed

    def test_custom_aggregator(self, small_engine, memory_store):
        aggregator = ResultAggregator(['A', 'B'], memory_store, tolerance=0.0)
        run = small_engine.start_run(['A', 'B'], classifier=aggregator)
        run.process_next_batch()
        report = run.finish()
        assert report.results == tuple(aggregator.records)
        assert report.tolerance == 0.0


class CollectEverything(Classifier):
    """Accepts every compared pair, recording its difference count."""

    def __init__(self, identities):
        self.identities = identities

    def classify(self, unit, difference_count):
        return MatchRecord(
            self.identities[unit.source_index],
            self.identities[unit.compare_index],
            file_size=1,
            differences=difference_count,
        )


class TestCustomClassifier:
    """Test runs driven by a plain Classifier subclass."""

    def test_minimal_classifier(self, small_engine):
        identities = ['A', 'B', 'C']
        run = small_engine.start_run(identities, classifier=CollectEverything(identities))
        run.process_next_batch()
        report = run.finish()

        assert report.results == (MatchRecord('A', 'B', 1, 0),)
        assert report.total_file_size == 1
        assert report.skip_count == 2
        assert report.tolerance is None

    def test_records_collected_by_run(self, small_engine):
        identities = ['A', 'B']
        run = small_engine.start_run(identities, classifier=CollectEverything(identities))
        run.process_next_batch()
        assert run.records == (MatchRecord('A', 'B', 1, 0),)
        assert run.duplicate_bytes == 1
        run.finish()

    def test_cancel_calls_discard(self, small_engine):
        discarded = []

        class Tracking(CollectEverything):
            def discard(self):
                discarded.append(True)

        identities = ['A', 'B']
        run = small_engine.start_run(identities, classifier=Tracking(identities))
        run.process_next_batch()
        run.cancel()
        assert discarded == [True]
        assert run.records == ()
