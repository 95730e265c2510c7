"""
Progress reporting for the engine package.

The engine calls a progress callback exactly once per processed unit with
(completed, total, skipped, resolution). resolution is (width, height) of the
compared pair, or None when the unit was skipped.
"""

from __future__ import annotations

from typing import Callable, Optional

from tqdm import tqdm

ProgressCallback = Callable[[int, int, int, Optional[tuple[int, int]]], None]


class TqdmProgress:
    """
    Progress callback that drives a tqdm bar.

    The bar is created lazily on the first update, so one instance can be
    handed to the engine before the total is known.
    """

    def __init__(self, desc: str = "Comparing images", disable: bool = False):
        self.desc = desc
        self.disable = disable
        self._bar: Optional[tqdm] = None

    def __call__(
        self,
        completed: int,
        total: int,
        skipped: int,
        resolution: Optional[tuple[int, int]],
    ) -> None:
        if self._bar is None:
            self._bar = tqdm(total=total, desc=self.desc, unit="cmp", ncols=80, disable=self.disable)
        self._bar.update(completed - self._bar.n)
        if resolution is not None:
            self._bar.set_postfix(skipped=skipped, size=f"{resolution[0]}x{resolution[1]}", refresh=False)
        else:
            self._bar.set_postfix(skipped=skipped, refresh=False)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


__all__ = ['ProgressCallback', 'TqdmProgress']
