"""
Export functionality for Image Comparator.

Writes a RunReport as JSON (the persisted report layout), CSV or TXT. Files
are written to a temporary sibling and renamed into place, so a report file
is either complete or absent.
"""

from __future__ import annotations

import csv
import json
import os
import tempfile
from pathlib import Path
from typing import TextIO

from ..models import RunReport, bytes_to_string


def _export_json(report: RunReport, file_handle: TextIO) -> None:
    json.dump(report.to_dict(), file_handle, indent=2)
    file_handle.write("\n")


def _export_csv(report: RunReport, file_handle: TextIO) -> None:
    """
    Export matching pairs to CSV.

    Columns: source_path, compare_path, file_size, differences
    """
    writer = csv.writer(file_handle, lineterminator="\n")
    writer.writerow(['source_path', 'compare_path', 'file_size', 'differences'])
    for record in report.results:
        writer.writerow([record.source_path, record.compare_path, record.file_size, record.differences])


def _export_txt(report: RunReport, file_handle: TextIO) -> None:
    file_handle.write("IMAGE COMPARISON REPORT\n")
    file_handle.write("=" * 70 + "\n\n")
    file_handle.write(f"Matching pairs: {report.match_count:,}\n")
    file_handle.write(f"Skipped pairs: {report.skip_count:,}\n")
    file_handle.write(f"Duplicate size: {bytes_to_string(report.total_file_size)}\n")
    file_handle.write("-" * 70 + "\n")
    for i, record in enumerate(report.results, 1):
        file_handle.write(
            f"\nPair {i} ({bytes_to_string(record.file_size)}, "
            f"{record.differences:,} differing pixels):\n"
        )
        file_handle.write(f"  {record.source_path}\n")
        file_handle.write(f"  {record.compare_path}\n")


_EXPORTERS = {
    'json': _export_json,
    'csv': _export_csv,
    'txt': _export_txt,
}


def export_report(report: RunReport, output_path: str | Path, export_format: str = 'json') -> Path:
    """
    Write a run report to a file.

    Args:
        report: Completed run report
        output_path: Destination file
        export_format: 'json', 'csv' or 'txt'. Default: 'json'

    Returns:
        The path written

    Raises:
        ValueError: If export_format is not supported
        OSError: If the file cannot be written
    """
    exporter = _EXPORTERS.get(export_format)
    if exporter is None:
        raise ValueError(f"Unsupported export format: {export_format}. Use one of: {', '.join(_EXPORTERS)}.")

    output_path = Path(output_path)
    directory = output_path.parent
    directory.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.name}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8', newline='') as f:
            exporter(report, f)
        os.replace(tmp_name, output_path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
    return output_path


def load_report(path: str | Path) -> RunReport:
    """Read a JSON report written by export_report()."""
    with open(path, 'r', encoding='utf-8') as f:
        return RunReport.from_dict(json.load(f))


__all__ = ['export_report', 'load_report']
