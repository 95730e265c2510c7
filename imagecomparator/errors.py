"""
Exception types for Image Comparator.

Per-unit conditions (size mismatch, unreadable image) are never raised; they
are counted as skips. Only the errors below ever leave the engine.
"""


class ComparatorError(Exception):
    """Base class for all Image Comparator errors."""


class ConfigurationError(ComparatorError, ValueError):
    """A run cannot start: no folders, no images or invalid settings."""


class ValidationError(ComparatorError, ValueError):
    """An image cannot be compared correctly. Aborts the run."""

    def __init__(self, message: str, identity=None):
        super().__init__(message)
        self.identity = identity


class CapacityError(ValidationError):
    """An image exceeds the largest size the kernel supports."""


class ZeroAreaImageError(ValidationError):
    """An image has no pixels, so no difference percentage exists."""


class RunCancelledError(ComparatorError):
    """Raised when a cancelled run is used again."""


class EngineBusyError(ComparatorError, RuntimeError):
    """Another run is already using the engine's kernel."""


class EngineClosedError(ComparatorError, RuntimeError):
    """The engine (or its kernel) has been released."""


__all__ = [
    'ComparatorError',
    'ConfigurationError',
    'ValidationError',
    'CapacityError',
    'ZeroAreaImageError',
    'RunCancelledError',
    'EngineBusyError',
    'EngineClosedError',
]
