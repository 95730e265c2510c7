"""
Interactive prompts for the CLI interface.

Provides functions for user interaction including folder selection and
confirmation of large runs.
"""

from __future__ import annotations

from pathlib import Path


def prompt_for_directory() -> Path:
    """
    Interactively prompt user for a folder to scan.

    Loops until an existing directory is entered. Quotes around the path
    (common when copy-pasting) are stripped.
    """
    print("\n" + "=" * 50)
    print("  IMAGE COMPARATOR")
    print("=" * 50)

    while True:
        dir_input = input("\nEnter the folder to scan: ").strip()
        if not dir_input:
            print("Please enter a valid path.")
            continue

        dir_input = dir_input.strip('"\'')
        directory = Path(dir_input)

        if directory.exists() and directory.is_dir():
            return directory
        else:
            print(f"Directory not found: {directory}")
            print("Please try again.")


def confirm_large_run(image_count: int, pair_count: int) -> bool:
    """
    Ask before starting a run over many images.

    Returns:
        True if user confirms (types 'y'), False otherwise

    Examples:
        >>> confirm_large_run(5000, 12497500)
        Found 5,000 images; 12,497,500 comparisons may take a long time. Continue? [y/N]: y
        True
    """
    confirm = input(
        f"\nFound {image_count:,} images; {pair_count:,} comparisons may take a long time. "
        f"Continue? [y/N]: "
    )
    return confirm.strip().lower() == 'y'


__all__ = [
    'prompt_for_directory',
    'confirm_large_run',
]
