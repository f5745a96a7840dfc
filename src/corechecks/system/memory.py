"""Memory usage check."""

from __future__ import annotations

from typing import Any, Callable

import psutil

from ..check import Check, register_check
from ..errors import SampleError
from ..sender import Sender

CHECK_NAME = "memory"


class MemoryCheck(Check):
    """Reports physical memory and swap usage. Stateless between runs."""

    def __init__(
        self,
        virtual_memory_func: Callable[[], Any] = psutil.virtual_memory,
        swap_memory_func: Callable[[], Any] = psutil.swap_memory,
    ) -> None:
        super().__init__(CHECK_NAME)
        self._virtual_memory = virtual_memory_func
        self._swap_memory = swap_memory_func

    def _configure(self, options: dict[str, Any], init_config: dict[str, Any]) -> None:
        pass

    def _run(self, sender: Sender) -> None:
        try:
            mem = self._virtual_memory()
            swap = self._swap_memory()
        except (OSError, psutil.Error) as exc:
            raise SampleError(f"could not retrieve memory stats: {exc}") from exc

        pct_usable = mem.available / mem.total * 100.0 if mem.total else 0.0
        swap_pct_free = (swap.total - swap.used) / swap.total * 100.0 if swap.total else 100.0

        sender.gauge("system.mem.total", float(mem.total), tags=self.tags, unit="bytes")
        sender.gauge("system.mem.used", float(mem.used), tags=self.tags, unit="bytes")
        sender.gauge("system.mem.usable", float(mem.available), tags=self.tags, unit="bytes")
        sender.gauge("system.mem.pct_usable", pct_usable, tags=self.tags, unit="%")
        sender.gauge("system.swap.total", float(swap.total), tags=self.tags, unit="bytes")
        sender.gauge("system.swap.used", float(swap.used), tags=self.tags, unit="bytes")
        sender.gauge("system.swap.pct_free", swap_pct_free, tags=self.tags, unit="%")
        sender.commit()


register_check(CHECK_NAME, MemoryCheck)
