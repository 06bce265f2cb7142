"""
Host-driven repeating timers.

The engine never spawns threads. Timers accumulate the delta time handed to
update() by the host's frame loop and fire their callback whenever their
interval elapses, at most once per update.

Usage:
    timers = TimerService()
    handle = timers.set_interval(autosave, 60_000)

    # In game loop:
    timers.update(dt_ms)

    timers.clear_interval(handle)
"""

from __future__ import annotations

import itertools
import logging
import math
from dataclasses import dataclass
from typing import Callable


logger = logging.getLogger(__name__)


TimerCallback = Callable[[], object]


@dataclass
class _Timer:
    handle: int
    callback: TimerCallback
    interval_ms: float
    elapsed_ms: float = 0.0
    active: bool = True


class TimerService:
    """
    Container for repeating timers.

    Handles are plain integers, never reused within one service.
    """

    def __init__(self):
        self._timers: dict[int, _Timer] = {}
        self._handles = itertools.count(1)

    def set_interval(self, callback: TimerCallback, interval_ms: float) -> int:
        """
        Start a repeating timer.

        Args:
            callback: Called with no arguments each time the interval elapses
            interval_ms: Interval in milliseconds (must be finite and > 0)

        Returns:
            Handle for clear_interval()

        Raises:
            ValueError: If interval_ms is not a finite positive number
        """
        if not _is_positive_finite(interval_ms):
            raise ValueError(f"Invalid timer interval: {interval_ms!r}")

        handle = next(self._handles)
        self._timers[handle] = _Timer(handle, callback, float(interval_ms))
        return handle

    def clear_interval(self, handle: int | None) -> bool:
        """
        Cancel a timer.

        Returns:
            True if a running timer was cancelled
        """
        if handle is None:
            return False
        timer = self._timers.pop(handle, None)
        if timer is None:
            return False
        timer.active = False
        return True

    def is_active(self, handle: int | None) -> bool:
        return handle in self._timers

    def get_interval(self, handle: int) -> float | None:
        """Get the interval of a running timer in milliseconds."""
        timer = self._timers.get(handle)
        return timer.interval_ms if timer else None

    @property
    def active_count(self) -> int:
        """Number of running timers."""
        return len(self._timers)

    def update(self, dt_ms: float) -> None:
        """
        Advance all timers.

        Callbacks may start or cancel timers; a timer cancelled during this
        update does not fire afterwards, and a timer started during it first
        counts time on the next update.

        Args:
            dt_ms: Elapsed time in milliseconds
        """
        if not dt_ms or dt_ms < 0:
            return

        for timer in list(self._timers.values()):
            if not timer.active:
                continue

            timer.elapsed_ms += dt_ms
            if timer.elapsed_ms < timer.interval_ms:
                continue

            # One fire per update; a long stall does not replay missed ticks
            timer.elapsed_ms %= timer.interval_ms

            try:
                timer.callback()
            except Exception:
                logger.exception("Error in timer callback (handle %d)", timer.handle)

    def clear(self) -> None:
        """Cancel every timer."""
        for timer in self._timers.values():
            timer.active = False
        self._timers.clear()


def _is_positive_finite(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0
