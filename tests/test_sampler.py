"""Tests for the CPU counter sampler."""

import logging

import pytest

from corechecks.errors import ConfigurationError, SampleError
from corechecks.system.sampler import (
    CATEGORIES,
    CounterSampler,
    Snapshot,
    SystemTimes,
    read_system_times,
    resolve_logical_cpu_count,
)


def test_system_is_kernel_minus_idle():
    sampler = CounterSampler(4, lambda: SystemTimes(idle=850.0, kernel=900.0, user=100.0))
    snap = sampler.sample()
    assert snap.system == 50.0
    assert snap.idle == 850.0
    assert snap.user == 100.0
    assert snap.cpu_count == 4
    assert snap.system_clamped is False


def test_missing_categories_are_zero():
    snap = CounterSampler(2, lambda: SystemTimes(idle=10.0, kernel=12.0, user=3.0)).sample()
    assert snap.iowait == 0.0
    assert snap.stolen == 0.0
    assert snap.guest == 0.0


def test_kernel_below_idle_is_clamped_and_flagged(caplog):
    sampler = CounterSampler(1, lambda: SystemTimes(idle=100.0, kernel=90.0, user=5.0))
    with caplog.at_level(logging.WARNING, logger="corechecks.system.sampler"):
        snap = sampler.sample()
    assert snap.system == 0.0
    assert snap.system_clamped is True
    assert any("clamping system time" in r.message for r in caplog.records)


def test_os_failure_raises_sample_error():
    def _broken():
        raise OSError("GetSystemTimes failed")

    sampler = CounterSampler(4, _broken)
    with pytest.raises(SampleError):
        sampler.sample()


def test_empty_reading_raises_sample_error():
    with pytest.raises(SampleError):
        CounterSampler(4, lambda: None).sample()


def test_sampler_rejects_zero_cpus():
    with pytest.raises(ValueError):
        CounterSampler(0)


def test_snapshot_is_immutable():
    snap = Snapshot(user=1.0, system=1.0, idle=1.0, cpu_count=1)
    with pytest.raises(AttributeError):
        snap.user = 2.0


def test_snapshot_cycles_and_get():
    snap = Snapshot(user=100.0, system=50.0, idle=850.0, cpu_count=4)
    assert snap.total() == 1000.0
    assert snap.cycles() == 250.0
    for category in CATEGORIES:
        assert snap.get(category) == getattr(snap, category)
    with pytest.raises(KeyError):
        snap.get("nice")


def test_resolve_logical_cpu_count():
    assert resolve_logical_cpu_count(lambda: 8) == 8
    assert resolve_logical_cpu_count() >= 1


@pytest.mark.parametrize("value", [None, 0])
def test_resolve_logical_cpu_count_unavailable(value):
    with pytest.raises(ConfigurationError):
        resolve_logical_cpu_count(lambda: value)


def test_read_system_times_real_host():
    raw = read_system_times()
    assert raw.kernel >= raw.idle
    assert raw.user >= 0
    snap = CounterSampler(1, lambda: raw).sample()
    assert snap.total() > 0
