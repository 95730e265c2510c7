"""
File discovery module for the engine package.

Provides functionality to find and enumerate image files in one or more
folders, with support for recursive scanning and HEIC/HEIF format detection.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from ..config import IMAGE_EXTENSIONS
from ..errors import ConfigurationError
from .dependencies import HAS_HEIF_SUPPORT


def find_image_files(root_path: str | Path, recursive: bool = True) -> list[str]:
    """
    Find all image files in the given directory.

    Args:
        root_path: Directory path to search for images
        recursive: If True, search subdirectories recursively

    Returns:
        Sorted list of absolute file paths as strings

    Notes:
        - Automatically filters out HEIC/HEIF files if pillow-heif is not installed
        - Handles symlinks by resolving to canonical paths
        - The result is sorted so the pair enumeration is stable across runs
    """
    root = Path(root_path)

    # Determine which extensions to scan based on HEIF support
    extensions_to_scan = IMAGE_EXTENSIONS
    if not HAS_HEIF_SUPPORT:
        extensions_to_scan = {ext for ext in IMAGE_EXTENSIONS if ext not in {'.heic', '.heif'}}

    images = set()
    iterator = root.rglob('*') if recursive else root.glob('*')
    for filepath in iterator:
        if filepath.is_file() and filepath.suffix.lower() in extensions_to_scan:
            images.add(str(filepath.resolve()))

    return sorted(images)


def find_images_in_folders(folders: Iterable[str | Path], recursive: bool = True) -> list[str]:
    """
    Collect images from several folders into one identity table.

    Empty folder entries are ignored. Files reachable from more than one
    folder appear once, in the position of their first occurrence.

    Raises:
        ConfigurationError: No usable folder was given, a folder does not
            exist, or no images were found
    """
    paths = [Path(folder) for folder in folders if folder and str(folder).strip()]
    if not paths:
        raise ConfigurationError("No folders given to scan for images")

    images: list[str] = []
    seen = set()
    for folder in paths:
        if not folder.is_dir():
            raise ConfigurationError(f"Directory not found: {folder}")
        for filepath in find_image_files(folder, recursive=recursive):
            if filepath not in seen:
                seen.add(filepath)
                images.append(filepath)

    if not images:
        raise ConfigurationError(f"No images found in: {', '.join(str(p) for p in paths)}")
    return images


__all__ = ['find_image_files', 'find_images_in_folders']
