"""
Image stores for the engine package.

An image store maps stable identities to decoded images and file sizes. The
engine only borrows handles for the duration of one comparison.
"""

from __future__ import annotations

import abc
import os
from collections import OrderedDict
from pathlib import Path
from typing import Any, Optional

import numpy as np

from ..config import STORE_CACHE_SIZE
from ..models import ImageHandle
from .dependencies import Image, HAS_HEIF_SUPPORT, _logger


class ImageStore(abc.ABC):
    """Source of decoded images for a run."""

    @abc.abstractmethod
    def resolve(self, identity: Any) -> Optional[ImageHandle]:
        """Return the decoded image, or None if it is missing or unreadable."""
        ...

    @abc.abstractmethod
    def file_size(self, identity: Any) -> int:
        """Return the size in bytes of the image's backing file."""
        ...


class InMemoryImageStore(ImageStore):
    """
    Store for images that are already decoded.

    Examples:
        >>> store = InMemoryImageStore()
        >>> store.add('a', np.zeros((10, 10, 4), dtype=np.uint8), file_size=512)
        >>> store.resolve('a').resolution
        '10x10'
    """

    def __init__(self):
        self._images: dict[Any, ImageHandle] = {}
        self._sizes: dict[Any, int] = {}

    def add(self, identity: Any, pixels, file_size: int = 0) -> None:
        self._images[identity] = ImageHandle.from_array(identity, pixels)
        self._sizes[identity] = file_size

    def __contains__(self, identity: Any) -> bool:
        return identity in self._images

    def __len__(self) -> int:
        return len(self._images)

    @property
    def identities(self) -> list:
        return list(self._images)

    def resolve(self, identity: Any) -> Optional[ImageHandle]:
        return self._images.get(identity)

    def file_size(self, identity: Any) -> int:
        return self._sizes.get(identity, 0)


class FolderImageStore(ImageStore):
    """
    Store backed by image files on disk, decoded with Pillow.

    Identities are file paths. Every image is converted to RGBA so that files
    saved with different modes compare by their visible colours. Recently
    decoded images are cached, which matters because the pair enumeration
    reuses the same source image for a long run of comparisons.
    """

    def __init__(self, cache_size: int = STORE_CACHE_SIZE):
        self.cache_size = max(0, cache_size)
        self._cache: OrderedDict[str, Optional[ImageHandle]] = OrderedDict()
        self.load_count = 0

    def resolve(self, identity: Any) -> Optional[ImageHandle]:
        key = str(identity)
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]

        handle = self._load(key)
        if self.cache_size:
            self._cache[key] = handle
            if len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)
        return handle

    def file_size(self, identity: Any) -> int:
        try:
            return os.path.getsize(identity)
        except OSError as e:
            _logger.debug(f"Cannot stat {identity}: {e}")
            return 0

    def clear(self) -> None:
        """Drop all cached images."""
        self._cache.clear()

    def _load(self, filepath: str) -> Optional[ImageHandle]:
        if not os.path.isfile(filepath):
            _logger.debug(f"Image not found: {filepath}")
            return None

        ext = Path(filepath).suffix.lower()
        if ext in {'.heic', '.heif'} and not HAS_HEIF_SUPPORT:
            _logger.debug(f"Skipping {filepath}: HEIC/HEIF support not installed")
            return None

        try:
            with Image.open(filepath) as img:
                # Force load to detect truncated images early
                img.load()
                if img.mode != 'RGBA':
                    img = img.convert('RGBA')
                pixels = np.asarray(img)
        except Image.UnidentifiedImageError as e:
            _logger.debug(f"Not a valid image file {filepath}: {e}")
            return None
        except (OSError, ValueError) as e:
            _logger.debug(f"Failed to decode {filepath}: {e}")
            return None

        self.load_count += 1
        return ImageHandle.from_array(filepath, pixels)


__all__ = ['ImageStore', 'InMemoryImageStore', 'FolderImageStore']
