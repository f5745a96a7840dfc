"""Check interface and the name-keyed factory registry.

Every metric domain (cpu, memory, ...) ships a :class:`Check` subclass and
registers it with :func:`register_check` at import time.  A scheduler then
creates instances with :func:`new_check`, calls :meth:`Check.configure` once
and :meth:`Check.run` on every cycle.
"""

from __future__ import annotations

import abc
import enum
import logging
import threading
from typing import Any, Callable, Mapping

from .errors import CheckNotConfigured, ConfigurationError, UnknownCheck
from .sender import Sender

logger = logging.getLogger(__name__)

# Options every check understands, on top of its own RECOGNIZED_OPTIONS.
COMMON_OPTIONS = frozenset({"tags", "min_collection_interval"})


class CheckStatus(enum.Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    RUNNING = "running"


class Check(abc.ABC):
    """Abstract base for a periodically run metric check."""

    #: Instance keys specific to this check.
    RECOGNIZED_OPTIONS: frozenset[str] = frozenset()

    def __init__(self, name: str) -> None:
        self._name = name
        self._status = CheckStatus.UNCONFIGURED
        self._lock = threading.Lock()
        self.tags: list[str] = []
        self.min_collection_interval: float | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def status(self) -> CheckStatus:
        return self._status

    def configure(
        self,
        instance: Mapping[str, Any] | None = None,
        init_config: Mapping[str, Any] | None = None,
    ) -> None:
        """Validate the payload and prepare the check for its first run.

        Raises :class:`ConfigurationError` on an unexpected payload or when
        the check cannot prepare itself; the check then stays unconfigured.
        A configured check cannot be configured again.
        """
        if self._status is not CheckStatus.UNCONFIGURED:
            raise ConfigurationError(f"{self._name}: check is already configured")

        options = _validate_mapping(self._name, "instance", instance)
        init = _validate_mapping(self._name, "init_config", init_config)

        allowed = COMMON_OPTIONS | self.RECOGNIZED_OPTIONS
        unknown = sorted(set(options) - allowed)
        if unknown:
            raise ConfigurationError(f"{self._name}: unrecognized option(s): {', '.join(unknown)}")

        tags = options.get("tags", [])
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ConfigurationError(f"{self._name}: 'tags' must be a list of strings")

        interval = options.get("min_collection_interval")
        if interval is not None:
            if isinstance(interval, bool) or not isinstance(interval, (int, float)) or interval <= 0:
                raise ConfigurationError(f"{self._name}: 'min_collection_interval' must be a positive number")
            interval = float(interval)

        self._configure(options, init)

        self.tags = list(tags)
        self.min_collection_interval = interval
        self._status = CheckStatus.CONFIGURED
        logger.info("Check %s configured", self._name)

    def run(self, sender: Sender) -> None:
        """Execute one collection cycle against *sender*.

        Whatever the subclass queued is discarded if the cycle raises, so a
        failed run publishes nothing.
        """
        with self._lock:
            if self._status is not CheckStatus.CONFIGURED:
                raise CheckNotConfigured(f"{self._name}: run() called while {self._status.value}")
            self._status = CheckStatus.RUNNING
            try:
                self._run(sender)
            except BaseException:
                sender.discard()
                raise
            finally:
                self._status = CheckStatus.CONFIGURED

    def teardown(self) -> None:
        """Release resources acquired in :meth:`configure`.

        The check goes back to unconfigured and may be configured again.
        """
        with self._lock:
            self._teardown()
            self._status = CheckStatus.UNCONFIGURED

    def _teardown(self) -> None:
        """Check-specific cleanup."""

    @abc.abstractmethod
    def _configure(self, options: dict[str, Any], init_config: dict[str, Any]) -> None:
        """Check-specific preparation. Raise ConfigurationError to refuse."""

    @abc.abstractmethod
    def _run(self, sender: Sender) -> None:
        """Check-specific collection. Must end with ``sender.commit()``."""


def _validate_mapping(check_name: str, label: str, payload: Any) -> dict[str, Any]:
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ConfigurationError(
            f"{check_name}: {label} must be a mapping, got {type(payload).__name__}"
        )
    if not all(isinstance(k, str) for k in payload):
        raise ConfigurationError(f"{check_name}: {label} keys must be strings")
    return dict(payload)


CheckFactory = Callable[[], Check]

_registry: dict[str, CheckFactory] = {}


def register_check(name: str, factory: CheckFactory) -> None:
    """Register *factory* under *name*. Re-registering replaces the entry."""
    if name in _registry:
        logger.warning("Check %s registered twice; replacing factory", name)
    _registry[name] = factory


def get_check_factory(name: str) -> CheckFactory:
    try:
        return _registry[name]
    except KeyError:
        raise UnknownCheck(f"no check registered under {name!r}") from None


def new_check(name: str) -> Check:
    """Return a fresh, unconfigured instance of the check called *name*."""
    return get_check_factory(name)()


def registered_checks() -> list[str]:
    return sorted(_registry)
