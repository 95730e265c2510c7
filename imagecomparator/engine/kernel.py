"""
Pixel difference kernel for the engine package.

Counts the pixel positions at which two equally sized images differ. The work
is laid out as a grid of fixed-size thread groups, the way a compute shader
dispatch is, and every thread writes its mismatch flag into a result buffer
that is allocated once and reused for every dispatch.

Result buffer layout:
    The buffer is a flat uint32 array of exactly max_width * max_height cells.
    Pixel (x, y) of the current image lives at index y * max_width + x, so the
    row stride is always the kernel's maximum width and never the width of the
    image being compared. The buffer is never cleared between dispatches:
    cells outside the current image's width x height sub-rectangle still hold
    values from earlier, larger images, and readback must only ever sum the
    live sub-rectangle.
"""

from __future__ import annotations

from ..config import MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT, DEFAULT_GROUP_SIZE, DEFAULT_DEVICE
from ..errors import CapacityError, ConfigurationError, EngineClosedError, ZeroAreaImageError
from ..models import ImageHandle
from .dependencies import get_array_module, _logger


class PixelDiffKernel:
    """
    Data-parallel per-pixel equality kernel with a reusable result buffer.

    Attributes:
        max_width: Largest supported image width (also the buffer row stride)
        max_height: Largest supported image height
        group_size: Thread-group extent (x, y)
        device: 'cpu' (numpy) or 'cuda' (cupy)
    """

    def __init__(
        self,
        max_width: int = MAX_IMAGE_WIDTH,
        max_height: int = MAX_IMAGE_HEIGHT,
        group_size: tuple[int, int] = DEFAULT_GROUP_SIZE,
        device: str = DEFAULT_DEVICE,
    ):
        if max_width < 1 or max_height < 1:
            raise ConfigurationError(
                f"Kernel capacity must be positive, got {max_width}x{max_height}"
            )
        group_x, group_y = group_size
        if group_x < 1 or group_y < 1:
            raise ConfigurationError(f"Thread-group size must be positive, got {group_size}")

        self.max_width = max_width
        self.max_height = max_height
        self.group_size = (group_x, group_y)
        self.device = device
        self.xp = get_array_module(device)
        self.dispatch_count = 0

        self._buffer = self.xp.zeros(max_width * max_height, dtype=self.xp.uint32)
        _logger.debug(
            f"Kernel ready on {device}: buffer {max_width}x{max_height}, "
            f"groups of {group_x}x{group_y}"
        )

    @property
    def released(self) -> bool:
        return self._buffer is None

    @property
    def result_buffer(self):
        """The flat result buffer (max_width * max_height cells)."""
        return self._require_buffer()

    def cell_index(self, x: int, y: int) -> int:
        """Buffer index of pixel (x, y); the row stride is max_width."""
        return y * self.max_width + x

    def validate_size(self, width: int, height: int, identity=None) -> None:
        """
        Check an image size against the kernel capacity.

        Raises:
            ZeroAreaImageError: width or height is zero
            CapacityError: width or height exceeds the kernel maximum
        """
        label = f"Image {identity}" if identity is not None else "Image"
        if width <= 0 or height <= 0:
            raise ZeroAreaImageError(
                f"{label} has no pixels ({width}x{height})",
                identity=identity,
            )
        if width > self.max_width or height > self.max_height:
            raise CapacityError(
                f"{label} is {width}x{height}, larger than the supported "
                f"{self.max_width}x{self.max_height}",
                identity=identity,
            )

    def thread_groups(self, width: int, height: int) -> tuple[int, int]:
        """Number of thread groups along x and y: ceil(dimension / extent)."""
        group_x, group_y = self.group_size
        return (-(-width // group_x), -(-height // group_y))

    def dispatch(self, source: ImageHandle, compare: ImageHandle) -> tuple[int, int]:
        """
        Run the kernel over one image pair, filling the result buffer.

        Args:
            source: First image
            compare: Second image, same width and height as source

        Returns:
            Thread-group counts (x, y) used for the dispatch

        Raises:
            ValueError: Images differ in size or channel layout
            ZeroAreaImageError, CapacityError: see validate_size
        """
        buffer = self._require_buffer()
        if not source.same_size(compare):
            raise ValueError(
                f"Cannot dispatch images of different sizes: "
                f"{source.resolution} vs {compare.resolution}"
            )
        width, height = source.width, source.height
        self.validate_size(width, height, source.identity)

        xp = self.xp
        source_pixels = xp.asarray(source.pixels)
        compare_pixels = xp.asarray(compare.pixels)
        if source_pixels.shape != compare_pixels.shape:
            raise ValueError(
                f"Channel layout differs: {source_pixels.shape} vs {compare_pixels.shape}"
            )

        groups = self.thread_groups(width, height)

        # One flag per thread; threads of edge groups that fall outside the
        # image fail the bounds check and leave their cells untouched.
        mismatch = (source_pixels != compare_pixels).any(axis=2)
        grid = buffer.reshape(self.max_height, self.max_width)
        grid[:height, :width] = mismatch

        self.dispatch_count += 1
        return groups

    def read_back(self, width: int, height: int) -> int:
        """
        Sum the live width x height sub-rectangle of the result buffer.

        Cells outside the sub-rectangle are stale and are not read.
        """
        buffer = self._require_buffer()
        grid = buffer.reshape(self.max_height, self.max_width)
        return int(grid[:height, :width].sum())

    def count_differences(self, source: ImageHandle, compare: ImageHandle) -> int:
        """Dispatch one pair and return its difference count."""
        self.dispatch(source, compare)
        return self.read_back(source.width, source.height)

    def release(self) -> bool:
        """
        Drop the result buffer.

        Returns:
            True if the buffer was released by this call, False if it
            had already been released
        """
        if self._buffer is None:
            return False
        self._buffer = None
        _logger.debug(f"Kernel released after {self.dispatch_count:,} dispatches")
        return True

    def _require_buffer(self):
        if self._buffer is None:
            raise EngineClosedError("Comparison kernel has been released")
        return self._buffer


__all__ = ['PixelDiffKernel']
