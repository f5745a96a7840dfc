"""Exception hierarchy shared by all checks."""

from __future__ import annotations


class CheckError(Exception):
    """Base class for every error raised by a check."""


class ConfigurationError(CheckError):
    """The check could not be configured; it stays unconfigured."""


class UnknownCheck(ConfigurationError):
    """No factory is registered under the requested check name."""


class RunError(CheckError):
    """A single run failed; nothing was emitted for that cycle."""


class SampleError(RunError):
    """The OS counter read failed."""


class CheckNotConfigured(RunError):
    """``run()`` was called before a successful ``configure()``."""


class CounterUnavailable(CheckError):
    """A live counter could not be opened or read. Non-fatal."""


class InsufficientElapsedTime(CheckError):
    """Two snapshots are too close together to compute a rate. Non-fatal."""
