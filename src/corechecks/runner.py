"""Check runner that configures checks and runs them on an interval."""

from __future__ import annotations

import logging
import threading
import time

from . import system  # noqa: F401  registers the built-in checks
from .check import Check, new_check
from .config import CheckConfig, RunnerConfig
from .errors import CheckError, ConfigurationError
from .sender import MetricSample, Sender, Sink

logger = logging.getLogger(__name__)


def build_checks(check_configs: list[CheckConfig]) -> list[Check]:
    """Create and configure one check per configured instance.

    Instances that fail to configure are logged and left out.
    """
    checks: list[Check] = []
    for check_cfg in check_configs:
        for idx, instance in enumerate(check_cfg.instances):
            try:
                check = new_check(check_cfg.name)
                check.configure(instance, check_cfg.init_config)
            except ConfigurationError as exc:
                logger.error("Could not configure check %s (instance %d): %s", check_cfg.name, idx, exc)
                continue
            checks.append(check)
    return checks


class CheckRunner:
    """Runs configured checks one after another on a background thread.

    Runs never overlap: a single thread executes every check in turn, so at
    most one run per check instance is in flight.  Register sinks via
    :meth:`add_sink`, then call :meth:`start` / :meth:`stop`.
    """

    def __init__(self, config: RunnerConfig, checks: list[Check] | None = None) -> None:
        self._config = config
        self._checks: list[Check] = list(checks or [])
        self._sinks: list[Sink] = []
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self._last_run: dict[int, float] = {}

    @property
    def checks(self) -> list[Check]:
        return list(self._checks)

    def add_sink(self, sink: Sink) -> None:
        """Register a callback to receive each committed batch."""
        self._sinks.append(sink)

    def run_check(self, check: Check) -> list[MetricSample]:
        """Run *check* once; failures are logged and yield no samples."""
        committed: list[MetricSample] = []

        def _capture(batch: list[MetricSample]) -> None:
            committed.extend(batch)

        sender = Sender(check.name, sinks=[*self._sinks, _capture])
        try:
            check.run(sender)
        except CheckError as exc:
            logger.error("Check %s failed: %s", check.name, exc)
        except Exception:
            logger.exception("Check %s crashed", check.name)
        return committed

    def _is_due(self, check: Check, now: float) -> bool:
        """Honor a check's ``min_collection_interval`` if it has one."""
        if check.min_collection_interval is None:
            return True
        last = self._last_run.get(id(check))
        return last is None or now - last >= check.min_collection_interval

    def run_once(self) -> list[MetricSample]:
        """Run all due checks once and return every committed sample."""
        all_samples: list[MetricSample] = []
        for check in self._checks:
            now = time.monotonic()
            if not self._is_due(check, now):
                logger.debug("Check %s not due yet", check.name)
                continue
            self._last_run[id(check)] = now
            all_samples.extend(self.run_check(check))
        return all_samples

    def _run(self) -> None:
        """Background thread loop."""
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(self._config.interval_seconds)

    def start(self) -> None:
        """Start running checks in the background."""
        if not self._config.enabled:
            return
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        logger.info(
            "CheckRunner started (%d checks, interval=%.1fs)",
            len(self._checks),
            self._config.interval_seconds,
        )

    def stop(self) -> None:
        """Stop the background loop and tear every check down."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        for check in self._checks:
            try:
                check.teardown()
            except Exception:
                logger.exception("Teardown failed for check %s", check.name)
        logger.info("CheckRunner stopped")
