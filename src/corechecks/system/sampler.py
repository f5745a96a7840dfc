"""Cumulative CPU time sampling."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import psutil

from ..errors import ConfigurationError, SampleError

logger = logging.getLogger(__name__)

CATEGORIES = ("user", "system", "iowait", "idle", "stolen", "guest")


@dataclass(frozen=True)
class SystemTimes:
    """Raw cumulative CPU times summed over all logical CPUs.

    ``kernel`` includes the time spent idle, the way the OS reports it.
    """

    idle: float
    kernel: float
    user: float
    iowait: float = 0.0
    stolen: float = 0.0
    guest: float = 0.0


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time CPU times with ``system`` already separated from idle."""

    user: float
    system: float
    idle: float
    cpu_count: int
    iowait: float = 0.0
    stolen: float = 0.0
    guest: float = 0.0
    system_clamped: bool = False

    def total(self) -> float:
        return self.user + self.system + self.idle + self.iowait + self.stolen + self.guest

    def cycles(self) -> float:
        """Total time normalized to one logical CPU."""
        return self.total() / self.cpu_count

    def get(self, category: str) -> float:
        if category not in CATEGORIES:
            raise KeyError(category)
        return getattr(self, category)


def read_system_times() -> SystemTimes:
    """Read aggregate CPU times through psutil.

    psutil already reports ``system`` without idle time; fold idle back into
    kernel time so every platform goes through the same ``kernel - idle``
    derivation.  On Linux irq/softirq count as kernel time and guest time is
    moved out of user time, where the kernel also accounts it.
    """
    t = psutil.cpu_times(percpu=False)
    guest = getattr(t, "guest", 0.0) + getattr(t, "guest_nice", 0.0)
    kernel = t.system + getattr(t, "irq", 0.0) + getattr(t, "softirq", 0.0) + t.idle
    return SystemTimes(
        idle=t.idle,
        kernel=kernel,
        user=max(t.user + getattr(t, "nice", 0.0) - guest, 0.0),
        iowait=getattr(t, "iowait", 0.0),
        stolen=getattr(t, "steal", 0.0),
        guest=guest,
    )


def resolve_logical_cpu_count(count_func: Callable[[], int | None] | None = None) -> int:
    """Return the number of logical CPUs or raise :class:`ConfigurationError`."""
    if count_func is None:
        count_func = lambda: psutil.cpu_count(logical=True)  # noqa: E731
    try:
        count = count_func()
    except (OSError, psutil.Error) as exc:
        raise ConfigurationError(f"could not query CPU info: {exc}") from exc
    if not count or count < 1:
        raise ConfigurationError("could not determine the logical CPU count")
    return int(count)


class CounterSampler:
    """Turns raw OS readings into :class:`Snapshot` objects."""

    def __init__(
        self,
        cpu_count: int,
        times_func: Callable[[], SystemTimes] = read_system_times,
    ) -> None:
        if cpu_count < 1:
            raise ValueError("cpu_count must be >= 1")
        self._cpu_count = cpu_count
        self._times_func = times_func

    @property
    def cpu_count(self) -> int:
        return self._cpu_count

    def sample(self) -> Snapshot:
        try:
            raw = self._times_func()
        except (OSError, psutil.Error) as exc:
            raise SampleError(f"could not retrieve cpu stats: {exc}") from exc
        if raw is None:
            raise SampleError("no cpu stats retrieved (empty result)")

        system = raw.kernel - raw.idle
        clamped = False
        if system < 0:
            logger.warning(
                "Kernel time (%.2f) below idle time (%.2f); clamping system time to 0",
                raw.kernel,
                raw.idle,
            )
            system = 0.0
            clamped = True

        return Snapshot(
            user=raw.user,
            system=system,
            idle=raw.idle,
            cpu_count=self._cpu_count,
            iowait=raw.iowait,
            stolen=raw.stolen,
            guest=raw.guest,
            system_clamped=clamped,
        )
