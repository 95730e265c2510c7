"""
Argument parsing for the CLI interface.

Provides functions to create and configure the argument parser for the
image comparator command-line interface.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from ..config import DEVICES, REPORT_FORMATS, TOLERANCE_PRESETS
from ..user_config import get_user_config


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Defaults come from the user configuration (environment variables,
    ~/.imagecomparator/config.json, then built-in constants).
    """
    config = get_user_config()
    presets = ', '.join(f"{name}={value:g}" for name, value in TOLERANCE_PRESETS.items())

    parser = argparse.ArgumentParser(
        prog='imagecomparator',
        description='Find pixel-identical and near-identical images',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s Assets/Sprites
      Report pixel-identical images (tolerance 'exact')

  %(prog)s Assets/Sprites Assets/UI --tolerance near
      Also report pairs where at most 10%% of pixels differ

  %(prog)s Assets/Sprites --tolerance 0.02 --output dupes.csv --format csv
      Custom tolerance, CSV output

Only images with the same width and height are compared; all other pairs
are counted as skipped.
        """
    )

    parser.add_argument(
        'folders',
        type=Path,
        nargs='*',
        help='Folders to scan for images'
    )

    parser.add_argument(
        '-t', '--tolerance',
        default=str(config.default_tolerance),
        help=f'Accepted fraction of differing pixels: a preset ({presets}) '
             f'or a number between 0 and 1. Default: {config.default_tolerance}'
    )

    parser.add_argument(
        '-b', '--batch-size',
        type=int,
        default=config.batch_size,
        help=f'Pairs compared between progress updates (0 = one batch). Default: {config.batch_size}'
    )

    parser.add_argument(
        '-r', '--no-recursive',
        action='store_true',
        help='Do not scan subfolders'
    )

    parser.add_argument(
        '--device',
        choices=DEVICES,
        default=config.device,
        help=f'Array backend for the comparison kernel. Default: {config.device}'
    )

    # Output options
    parser.add_argument(
        '-o', '--output',
        type=Path,
        default=Path(config.report_file),
        help='Report file. Default: %(default)s'
    )

    parser.add_argument(
        '--format',
        choices=REPORT_FORMATS,
        default='json',
        dest='export_format',
        help='Report format. Default: json'
    )

    parser.add_argument(
        '-y', '--yes',
        action='store_true',
        help='Do not ask for confirmation before large runs'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output (logs every matching pair)'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars (useful for piping output)'
    )

    return parser


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: List of argument strings (default: sys.argv)

    Examples:
        >>> args = parse_arguments(['Assets/Sprites', '--tolerance', 'near'])
        >>> args.tolerance
        'near'
    """
    parser = create_parser()
    return parser.parse_args(argv)


__all__ = [
    'create_parser',
    'parse_arguments',
]
