"""CPU usage check."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from ..check import Check, register_check
from ..errors import CounterUnavailable, InsufficientElapsedTime
from ..sender import Sender
from .interrupt import InterruptTimeCounter
from .rates import RateResult, compute_rates
from .sampler import (
    CATEGORIES,
    CounterSampler,
    Snapshot,
    SystemTimes,
    read_system_times,
    resolve_logical_cpu_count,
)

logger = logging.getLogger(__name__)

CHECK_NAME = "cpu"
INTERRUPT_METRIC = "system.cpu.interrupt"


def metric_name(category: str) -> str:
    return f"system.cpu.{category}"


@dataclass
class CheckState:
    """State carried between runs. Only :meth:`CpuCheck._run` mutates it."""

    last_snapshot: Snapshot | None = None
    last_cycles: float = 0.0

    def advance(self, snapshot: Snapshot) -> None:
        self.last_snapshot = snapshot
        self.last_cycles = snapshot.cycles()


class CpuCheck(Check):
    """Reports CPU time percentages per category.

    The first run only records a baseline; from the second run on the delta
    against the previous snapshot is emitted as ``system.cpu.<category>``.
    ``system.cpu.interrupt`` comes from a separate live counter and is
    emitted whenever that counter can be read.
    """

    def __init__(
        self,
        times_func: Callable[[], SystemTimes] = read_system_times,
        cpu_count_func: Callable[[], int | None] | None = None,
        interrupt_opener: Callable[[], InterruptTimeCounter] = InterruptTimeCounter.open,
    ) -> None:
        super().__init__(CHECK_NAME)
        self._times_func = times_func
        self._cpu_count_func = cpu_count_func
        self._interrupt_opener = interrupt_opener
        self._sampler: CounterSampler | None = None
        self._interrupt: InterruptTimeCounter | None = None
        self.state: CheckState | None = None
        self.last_result: RateResult | None = None

    def _configure(self, options: dict[str, Any], init_config: dict[str, Any]) -> None:
        cpu_count = resolve_logical_cpu_count(self._cpu_count_func)
        try:
            interrupt = self._interrupt_opener()
        except CounterUnavailable as exc:
            logger.warning("system.cpu.interrupt will not be reported: %s", exc)
            interrupt = None

        self._sampler = CounterSampler(cpu_count, self._times_func)
        self._interrupt = interrupt
        self.state = CheckState()
        logger.debug("CPU check using %d logical CPUs", cpu_count)

    def _run(self, sender: Sender) -> None:
        assert self._sampler is not None and self.state is not None
        snapshot = self._sampler.sample()

        # no rates without a baseline
        result = RateResult()
        prev = self.state.last_snapshot
        if prev is not None:
            try:
                result = compute_rates(prev, snapshot)
            except InsufficientElapsedTime as exc:
                logger.debug("Skipping CPU rates this cycle: %s", exc)
        result.interrupt = self._read_interrupt()

        for category in CATEGORIES:
            if category in result.rates:
                sender.gauge(metric_name(category), result.rates[category], tags=self.tags, unit="%")
        if result.interrupt is not None:
            sender.gauge(INTERRUPT_METRIC, result.interrupt, tags=self.tags, unit="%")

        self.state.advance(snapshot)
        self.last_result = result
        sender.commit()

    def _read_interrupt(self) -> float | None:
        if self._interrupt is None:
            return None
        try:
            return self._interrupt.value()
        except InsufficientElapsedTime as exc:
            logger.debug("Skipping interrupt time this cycle: %s", exc)
        except CounterUnavailable as exc:
            logger.warning("Error getting interrupt time value: %s", exc)
        return None

    def _teardown(self) -> None:
        if self._interrupt is not None:
            self._interrupt.close()
            self._interrupt = None
        self.state = None
        self.last_result = None


register_check(CHECK_NAME, CpuCheck)
