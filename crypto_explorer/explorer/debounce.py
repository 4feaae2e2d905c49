"""Debouncing: a pure coalescing function and a timer-driven live variant."""

from __future__ import annotations

import threading
from typing import Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")


def debounce(events: Iterable[Tuple[float, T]], quiet_period: float) -> List[Tuple[float, T]]:
    """
    Coalesce timestamped values into the ones that survived `quiet_period` untouched.

    Each emitted pair carries the time it would fire (`t + quiet_period`). A value is
    dropped when the next one arrives before its quiet period ends; the final value
    always fires.
    """
    ordered = sorted(events, key=lambda e: e[0])
    out: List[Tuple[float, T]] = []
    for i, (at, value) in enumerate(ordered):
        fires_at = at + quiet_period
        if i + 1 < len(ordered) and ordered[i + 1][0] < fires_at:
            continue
        out.append((fires_at, value))
    return out


class Debouncer(Generic[T]):
    """Deliver the latest submitted value to `callback` once submissions pause for `quiet_period`."""

    def __init__(
        self,
        quiet_period: float,
        callback: Callable[[T], None],
        *,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self.quiet_period = quiet_period
        self.callback = callback
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Tuple[T]] = None

    def submit(self, value: T) -> None:
        """Restart the quiet period with `value` as the pending result."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (value,)
            self._timer = self._timer_factory(self.quiet_period, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            pending, self._pending, self._timer = self._pending, None, None
        if pending is not None:
            self.callback(pending[0])

    def flush(self) -> None:
        """Deliver the pending value now instead of waiting."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop the pending value without delivering it."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None
