"""
Report formatting and display for the CLI interface.

Provides functions to print a run report in a human-readable format.
"""

from __future__ import annotations

from ..models import MatchRecord, RunReport, bytes_to_string
from ..utils.formatters import format_elapsed


def _print_section_header(title: str) -> None:
    """Print a section header with divider lines."""
    print("\n" + "-" * 70)
    print(title)
    print("-" * 70)


def _print_pair(pair_number: int, record: MatchRecord) -> None:
    print(f"\nPair {pair_number}: {bytes_to_string(record.file_size)} | "
          f"{record.differences:,} differing pixels")
    print(f"  {record.source_path}")
    print(f"  {record.compare_path}")


def print_run_report(report: RunReport, max_pairs: int = 0) -> None:
    """
    Print a summary of a run and its matching pairs.

    Args:
        report: Completed run report
        max_pairs: Print at most this many pairs (0 = all)
    """
    print("\n" + "=" * 70)
    print("IMAGE COMPARISON REPORT")
    print("=" * 70)

    print(f"\nImages: {report.image_count:,} | Pairs: {report.total_units:,} | "
          f"Compared: {report.real_compare_count:,} | Skipped: {report.skip_count:,}")
    print(f"Matching pairs: {report.match_count:,} | Time: {format_elapsed(report.elapsed_seconds)}")

    if report.results:
        _print_section_header("MATCHING PAIRS")
        shown = report.results if max_pairs <= 0 else report.results[:max_pairs]
        for i, record in enumerate(shown, 1):
            _print_pair(i, record)
        hidden = len(report.results) - len(shown)
        if hidden > 0:
            print(f"\n... and {hidden:,} more (see the report file)")

    print("\n" + "=" * 70)
    print(f"Duplicate size (one image of each pair): {bytes_to_string(report.total_file_size)}")
    print("=" * 70)


__all__ = ['print_run_report']
