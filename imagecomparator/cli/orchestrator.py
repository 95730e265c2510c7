"""
CLI workflow orchestration for Image Comparator.

Provides the CLIOrchestrator class that coordinates the CLI workflow from
argument parsing through comparison, reporting and export.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from ..engine import ComparisonEngine, FolderImageStore, TqdmProgress, count_units, find_images_in_folders
from ..errors import ComparatorError, ConfigurationError, ValidationError
from ..models import RunReport
from ..user_config import get_user_config
from ..utils.exporters import export_report
from ..utils.validators import parse_tolerance, validate_batch_size, validate_folders
from .arg_parser import parse_arguments
from .interactive import prompt_for_directory, confirm_large_run
from .reporting import print_run_report

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for the CLI.

    Args:
        verbose: Enable verbose (DEBUG level) logging

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    return logging.getLogger(__name__)


class CLIOrchestrator:
    """
    Orchestrates the CLI comparison workflow.

    Manages the complete lifecycle from argument parsing through image
    discovery, comparison, reporting and export.
    """

    def __init__(self, argv=None):
        """Initialize the orchestrator."""
        self.argv = argv
        self.logger = logging.getLogger(__name__)
        self.args = None
        self.tolerance = 0.0
        self.image_files: list[str] = []
        self.report: Optional[RunReport] = None

    def run(self) -> int:
        """
        Execute the complete CLI workflow.

        Returns:
            Exit code (0 for success, 1 for error, 130 when interrupted)

        Workflow phases:
        1. Setup & argument parsing
        2. Interactive prompts (if needed)
        3. Validation
        4. Image discovery
        5. Confirmation of large runs
        6. Comparison
        7. Reporting & export
        """
        exit_code = self._setup_phase()
        if exit_code != EXIT_OK:
            return exit_code

        exit_code = self._interactive_phase()
        if exit_code != EXIT_OK:
            return exit_code

        exit_code = self._validate_phase()
        if exit_code != EXIT_OK:
            return exit_code

        exit_code = self._discover_phase()
        if exit_code != EXIT_OK:
            return exit_code

        if not self._confirm_phase():
            self.logger.info("Aborted.")
            return EXIT_OK

        exit_code = self._compare_phase()
        if exit_code != EXIT_OK:
            return exit_code

        return self._report_phase()

    def _setup_phase(self) -> int:
        """Phase 1: Parse arguments and setup logging."""
        self.args = parse_arguments(self.argv)
        self.logger = setup_logging(self.args.verbose)
        return EXIT_OK

    def _interactive_phase(self) -> int:
        """Phase 2: Ask for a folder when none was given on a terminal."""
        if not self.args.folders and sys.stdin.isatty():
            self.args.folders = [prompt_for_directory()]
        return EXIT_OK

    def _validate_phase(self) -> int:
        """Phase 3: Validate folders, tolerance and batch size."""
        is_valid, error = validate_folders(self.args.folders)
        if not is_valid:
            self.logger.error(error)
            return EXIT_ERROR

        tolerance = parse_tolerance(self.args.tolerance)
        if tolerance is None:
            self.logger.error(
                f"Invalid tolerance: {self.args.tolerance!r} "
                f"(use exact, near, all or a number between 0 and 1)"
            )
            return EXIT_ERROR
        self.tolerance = tolerance

        is_valid, error = validate_batch_size(self.args.batch_size)
        if not is_valid:
            self.logger.error(error)
            return EXIT_ERROR

        return EXIT_OK

    def _discover_phase(self) -> int:
        """Phase 4: Collect image files from all folders."""
        folders = ', '.join(str(folder) for folder in self.args.folders)
        self.logger.info(f"Scanning {folders} for images...")
        try:
            self.image_files = find_images_in_folders(
                self.args.folders,
                recursive=not self.args.no_recursive,
            )
        except ConfigurationError as e:
            self.logger.error(str(e))
            return EXIT_ERROR

        self.logger.info(f"Found {len(self.image_files):,} image files")
        return EXIT_OK

    def _confirm_phase(self) -> bool:
        """Phase 5: Ask before very large runs."""
        threshold = get_user_config().confirm_image_count
        if self.args.yes or len(self.image_files) < threshold:
            return True
        return confirm_large_run(len(self.image_files), count_units(len(self.image_files)))

    def _compare_phase(self) -> int:
        """Phase 6: Run the comparison engine."""
        store = FolderImageStore(cache_size=get_user_config().store_cache_size)
        progress = TqdmProgress(disable=self.args.no_progress)
        try:
            with ComparisonEngine(store, batch_size=self.args.batch_size, device=self.args.device) as engine:
                self.report = engine.run(self.image_files, tolerance=self.tolerance, progress=progress)
        except KeyboardInterrupt:
            self.logger.warning("Interrupted; no report written")
            return EXIT_CANCELLED
        except (ConfigurationError, ValidationError) as e:
            self.logger.error(f"{e}; no report written")
            return EXIT_ERROR
        except ComparatorError as e:
            self.logger.error(f"Comparison failed: {e}")
            return EXIT_ERROR
        finally:
            progress.close()

        if self.report is None:
            self.logger.warning("Run cancelled; no report written")
            return EXIT_CANCELLED
        return EXIT_OK

    def _report_phase(self) -> int:
        """Phase 7: Print the report and write the report file."""
        print_run_report(self.report)

        try:
            path = export_report(self.report, self.args.output, self.args.export_format)
        except OSError as e:
            self.logger.error(f"Cannot write report to {self.args.output}: {e}")
            return EXIT_ERROR

        self.logger.info(f"Report saved to: {path}")
        return EXIT_OK


__all__ = ['CLIOrchestrator', 'setup_logging']
