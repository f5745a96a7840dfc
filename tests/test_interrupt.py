"""Tests for the live interrupt-time counter."""

from collections import namedtuple

import psutil
import pytest

from corechecks.errors import CounterUnavailable, InsufficientElapsedTime
from corechecks.system.interrupt import InterruptTimeCounter

WinTimes = namedtuple("WinTimes", "user system idle interrupt dpc")
LinuxTimes = namedtuple("LinuxTimes", "user nice system idle iowait irq softirq steal guest guest_nice")
BareTimes = namedtuple("BareTimes", "user system idle")


def _sequence(*readings):
    it = iter(readings)
    return lambda: next(it)


def test_windows_interrupt_percentage():
    counter = InterruptTimeCounter.open(_sequence(
        WinTimes(user=100.0, system=50.0, idle=840.0, interrupt=10.0, dpc=0.0),
        WinTimes(user=120.0, system=60.0, idle=900.0, interrupt=20.0, dpc=0.0),
    ))
    # delta total = 100, delta interrupt = 10
    assert counter.value() == pytest.approx(10.0)


def test_linux_irq_percentage_excludes_guest():
    counter = InterruptTimeCounter.open(_sequence(
        LinuxTimes(100.0, 0.0, 50.0, 800.0, 0.0, 0.0, 0.0, 0.0, 10.0, 0.0),
        LinuxTimes(150.0, 0.0, 70.0, 870.0, 5.0, 5.0, 0.0, 0.0, 30.0, 0.0),
    ))
    # delta total = 50 + 20 + 70 + 5 + 5 = 150 (guest is inside user)
    assert counter.value() == pytest.approx(5.0 / 150.0 * 100.0)


def test_value_is_relative_to_previous_read():
    counter = InterruptTimeCounter.open(_sequence(
        WinTimes(0.0, 0.0, 0.0, 0.0, 0.0),
        WinTimes(50.0, 0.0, 40.0, 10.0, 0.0),
        WinTimes(50.0, 0.0, 140.0, 10.0, 0.0),
    ))
    assert counter.value() == pytest.approx(10.0)
    assert counter.value() == pytest.approx(0.0)


def test_platform_without_interrupt_field():
    with pytest.raises(CounterUnavailable):
        InterruptTimeCounter.open(lambda: BareTimes(1.0, 1.0, 1.0))


def test_open_failure():
    def _broken():
        raise psutil.AccessDenied()

    with pytest.raises(CounterUnavailable):
        InterruptTimeCounter.open(_broken)


def test_read_failure():
    readings = [WinTimes(0.0, 0.0, 0.0, 0.0, 0.0)]

    def _times():
        if readings:
            return readings.pop()
        raise OSError("counter gone")

    counter = InterruptTimeCounter.open(_times)
    with pytest.raises(CounterUnavailable):
        counter.value()


def test_no_elapsed_time():
    same = WinTimes(1.0, 1.0, 1.0, 1.0, 0.0)
    counter = InterruptTimeCounter.open(lambda: same)
    with pytest.raises(InsufficientElapsedTime):
        counter.value()


def test_closed_counter():
    counter = InterruptTimeCounter.open(lambda: WinTimes(1.0, 1.0, 1.0, 1.0, 0.0))
    counter.close()
    assert counter.closed
    with pytest.raises(CounterUnavailable):
        counter.value()
