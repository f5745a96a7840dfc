"""Metric sink handed to checks on every run.

Checks queue gauges on a :class:`Sender`; nothing leaves the sender until
:meth:`Sender.commit` is called, so a run that fails halfway never publishes
a partial batch.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class MetricSample:
    """A single metric data point."""

    name: str
    value: float
    timestamp: float
    tags: list[str] = field(default_factory=list)
    unit: str = ""
    check: str = ""

    def labels(self) -> dict[str, str]:
        """Return ``key:value`` tags as a mapping; bare tags map to ``""``."""
        result: dict[str, str] = {}
        for tag in self.tags:
            key, _, value = tag.partition(":")
            result[key] = value
        return result

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "timestamp": self.timestamp,
            "tags": list(self.tags),
            "unit": self.unit,
            "check": self.check,
        }


Sink = Callable[[list[MetricSample]], None]


class Sender:
    """Buffers gauges for one check and flushes them once per run."""

    def __init__(self, check_id: str, sinks: list[Sink] | None = None) -> None:
        self._check_id = check_id
        self._sinks: list[Sink] = list(sinks or [])
        self._pending: list[MetricSample] = []

    @property
    def check_id(self) -> str:
        return self._check_id

    @property
    def pending(self) -> list[MetricSample]:
        """Gauges queued since the last commit or discard."""
        return list(self._pending)

    def add_sink(self, sink: Sink) -> None:
        self._sinks.append(sink)

    def gauge(
        self,
        name: str,
        value: float,
        tags: list[str] | None = None,
        unit: str = "",
    ) -> None:
        """Queue a gauge; it is published on the next :meth:`commit`."""
        self._pending.append(MetricSample(
            name=name,
            value=float(value),
            timestamp=time.time(),
            tags=list(tags or []),
            unit=unit,
            check=self._check_id,
        ))

    def discard(self) -> None:
        """Drop everything queued since the last commit."""
        if self._pending:
            logger.debug("Discarding %d queued samples for %s", len(self._pending), self._check_id)
        self._pending = []

    def commit(self) -> list[MetricSample]:
        """Hand the queued batch to every sink and return it."""
        batch, self._pending = self._pending, []
        for sink in self._sinks:
            try:
                sink(batch)
            except Exception:
                logger.exception("Sink failed for check %s", self._check_id)
        return batch
