"""Tests for the memory check."""

from collections import namedtuple

import pytest

from corechecks.check import new_check, registered_checks
from corechecks.errors import SampleError
from corechecks.sender import Sender
from corechecks.system.memory import MemoryCheck

VirtualMemory = namedtuple("VirtualMemory", "total available percent used free")
SwapMemory = namedtuple("SwapMemory", "total used free percent sin sout")

GIB = 1024 ** 3


def _run(check):
    received = []
    check.run(Sender(check.name, sinks=[received.append]))
    return {s.name: s.value for s in received[0]}


def test_memory_gauges():
    check = MemoryCheck(
        virtual_memory_func=lambda: VirtualMemory(16 * GIB, 4 * GIB, 75.0, 12 * GIB, 1 * GIB),
        swap_memory_func=lambda: SwapMemory(2 * GIB, GIB // 2, GIB + GIB // 2, 25.0, 0, 0),
    )
    check.configure({})
    emitted = _run(check)

    assert emitted["system.mem.total"] == 16 * GIB
    assert emitted["system.mem.used"] == 12 * GIB
    assert emitted["system.mem.usable"] == 4 * GIB
    assert emitted["system.mem.pct_usable"] == pytest.approx(25.0)
    assert emitted["system.swap.total"] == 2 * GIB
    assert emitted["system.swap.used"] == GIB // 2
    assert emitted["system.swap.pct_free"] == pytest.approx(75.0)


def test_no_swap():
    check = MemoryCheck(
        virtual_memory_func=lambda: VirtualMemory(GIB, GIB, 0.0, 0, GIB),
        swap_memory_func=lambda: SwapMemory(0, 0, 0, 0.0, 0, 0),
    )
    check.configure()
    assert _run(check)["system.swap.pct_free"] == 100.0


def test_read_failure_raises_sample_error():
    def _broken():
        raise OSError("no /proc/meminfo")

    check = MemoryCheck(virtual_memory_func=_broken)
    check.configure()
    received = []
    with pytest.raises(SampleError):
        check.run(Sender(check.name, sinks=[received.append]))
    assert received == []


def test_memory_check_on_real_host():
    assert "memory" in registered_checks()
    check = new_check("memory")
    check.configure({"tags": ["host:local"]})
    emitted = _run(check)
    assert emitted["system.mem.total"] > 0
    assert 0 <= emitted["system.mem.pct_usable"] <= 100
