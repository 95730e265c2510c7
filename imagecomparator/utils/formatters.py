"""
Formatting utilities for Image Comparator.

Provides human-readable formatting for numbers, durations, similarities and
file sizes.
"""

from __future__ import annotations

# Re-export bytes_to_string from models for convenience
from ..models import bytes_to_string


def format_number(n: int) -> str:
    """
    Format large numbers with commas for readability.

    Examples:
        >>> format_number(1234567)
        '1,234,567'
    """
    return f"{n:,}"


def format_elapsed(seconds: float) -> str:
    """
    Format a duration as hours, minutes, seconds and hundredths.

    Examples:
        >>> format_elapsed(3725.5)
        '01:02:05.50'
        >>> format_elapsed(0.123)
        '00:00:00.12'
    """
    total_ms = int(round(max(seconds, 0.0) * 1000))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, ms = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{ms // 10:02d}"


def format_similarity(similarity: float) -> str:
    """
    Format a 0.0 - 1.0 similarity as a percentage with two decimals.

    Examples:
        >>> format_similarity(0.995)
        '99.50%'
    """
    return f"{similarity:.2%}"


__all__ = ['format_number', 'format_elapsed', 'format_similarity', 'bytes_to_string']
