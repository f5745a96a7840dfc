"""OpenTelemetry exporter – pushes check gauges via OTLP/HTTP."""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry import metrics
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource, SERVICE_NAME

from ..config import OtelExporterConfig
from ..sender import MetricSample
from .base import BaseExporter

logger = logging.getLogger(__name__)


class OtelExporter(BaseExporter):
    """Exports committed check metrics to an OpenTelemetry endpoint.

    Each call to :meth:`export` records gauge observations via the OTel SDK;
    the SDK's ``PeriodicExportingMetricReader`` flushes them to the configured
    OTLP/HTTP endpoint.  Sample tags become gauge attributes, together with
    the name of the check that produced the sample.
    """

    def __init__(self, config: OtelExporterConfig) -> None:
        self._config = config
        resource = Resource.create({SERVICE_NAME: config.service_name})

        exporter_kwargs: dict[str, Any] = {
            "endpoint": f"{config.endpoint.rstrip('/')}/v1/metrics",
        }
        if config.headers:
            exporter_kwargs["headers"] = config.headers

        reader = PeriodicExportingMetricReader(
            OTLPMetricExporter(**exporter_kwargs),
            export_interval_millis=config.export_interval_ms,
        )
        self._provider = MeterProvider(resource=resource, metric_readers=[reader])
        metrics.set_meter_provider(self._provider)
        self._meter = metrics.get_meter("corechecks")
        self._gauges: dict[str, Any] = {}

        logger.info(
            "OtelExporter initialized → %s (service=%s)",
            config.endpoint,
            config.service_name,
        )

    def _get_gauge(self, name: str, unit: str) -> Any:
        if name not in self._gauges:
            self._gauges[name] = self._meter.create_gauge(name=name, unit=unit)
        return self._gauges[name]

    def export(self, samples: list[MetricSample]) -> None:
        for s in samples:
            attributes = s.labels()
            if s.check:
                attributes["check"] = s.check
            self._get_gauge(s.name, s.unit).set(s.value, attributes=attributes)

    def shutdown(self) -> None:
        self._provider.shutdown()
        logger.info("OtelExporter shut down")
