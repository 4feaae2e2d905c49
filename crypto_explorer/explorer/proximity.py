"""Proximity sensor for infinite loading: decides when "near the end" becomes a load-more event."""

from __future__ import annotations

import time
from typing import Callable


def intersection_ratio(
    target_top: float,
    target_bottom: float,
    viewport_top: float,
    viewport_bottom: float,
    *,
    root_margin: float = 0,
) -> float:
    """Fraction of the target inside the viewport grown by `root_margin` on both edges."""
    top = viewport_top - root_margin
    bottom = viewport_bottom + root_margin
    height = target_bottom - target_top
    if height <= 0:
        return 1.0 if top <= target_top <= bottom else 0.0
    overlap = min(target_bottom, bottom) - max(target_top, top)
    return max(0.0, overlap) / height


class LoadMoreTrigger:
    """Turn a stream of near-end signals into load-more events, at most one per `min_interval`."""

    def __init__(
        self,
        min_interval: float = 0.5,
        *,
        root_margin: float = 200,
        threshold: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_interval = min_interval
        self.root_margin = root_margin
        self.threshold = threshold
        self.clock = clock
        self._last_fired: float | None = None

    def is_near_end(
        self,
        sentinel_top: float,
        sentinel_bottom: float,
        viewport_top: float,
        viewport_bottom: float,
    ) -> bool:
        """True when enough of the sentinel is within the margin-extended viewport."""
        ratio = intersection_ratio(
            sentinel_top, sentinel_bottom, viewport_top, viewport_bottom, root_margin=self.root_margin
        )
        return ratio > 0 and ratio >= self.threshold

    def observe(self, near_end: bool, has_more: bool, is_loading: bool) -> bool:
        """Return True if this signal should start a load."""
        if not (near_end and has_more and not is_loading):
            return False
        now = self.clock()
        if self._last_fired is not None and now - self._last_fired < self.min_interval:
            return False
        self._last_fired = now
        return True

    def reset(self) -> None:
        self._last_fired = None
