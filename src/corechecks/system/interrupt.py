"""Live interrupt-time counter."""

from __future__ import annotations

import logging
from typing import Any, Callable

import psutil

from ..errors import CounterUnavailable, InsufficientElapsedTime

logger = logging.getLogger(__name__)

# Fields psutil uses for interrupt servicing time, by platform.
_INTERRUPT_FIELDS = ("interrupt", "irq")
# Linux counts guest time inside user time as well.
_EXCLUDED_FIELDS = ("guest", "guest_nice")


class InterruptTimeCounter:
    """Handle reporting the share of CPU time spent servicing interrupts.

    The handle keeps its own baseline, so each :meth:`value` call returns the
    percentage since the previous one (since :meth:`open` for the first).
    """

    def __init__(self, field: str, baseline: Any, times_func: Callable[[], Any]) -> None:
        self._field = field
        self._last = baseline
        self._times_func = times_func
        self._closed = False

    @classmethod
    def open(cls, times_func: Callable[[], Any] | None = None) -> "InterruptTimeCounter":
        """Establish the counter, raising :class:`CounterUnavailable` on failure."""
        if times_func is None:
            times_func = lambda: psutil.cpu_times(percpu=False)  # noqa: E731
        try:
            baseline = times_func()
        except (OSError, psutil.Error) as exc:
            raise CounterUnavailable(f"could not establish interrupt time counter: {exc}") from exc
        for field in _INTERRUPT_FIELDS:
            if hasattr(baseline, field):
                return cls(field, baseline, times_func)
        raise CounterUnavailable("interrupt time is not reported on this platform")

    @property
    def closed(self) -> bool:
        return self._closed

    def value(self) -> float:
        """Return interrupt time as a percentage of total CPU time."""
        if self._closed:
            raise CounterUnavailable("interrupt time counter is closed")
        try:
            current = self._times_func()
        except (OSError, psutil.Error) as exc:
            raise CounterUnavailable(f"could not read interrupt time counter: {exc}") from exc

        delta_total = _total(current) - _total(self._last)
        delta_interrupt = getattr(current, self._field) - getattr(self._last, self._field)
        self._last = current
        if delta_total <= 0:
            raise InsufficientElapsedTime("no CPU time elapsed since the previous read")
        return max(delta_interrupt, 0.0) / delta_total * 100.0

    def close(self) -> None:
        self._closed = True
        self._last = None


def _total(times: Any) -> float:
    return sum(
        getattr(times, name)
        for name in times._fields
        if name not in _EXCLUDED_FIELDS
    )
