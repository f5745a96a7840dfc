"""Configuration loading and validation for corechecks."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError


@dataclass
class OtelExporterConfig:
    """OpenTelemetry exporter settings."""

    endpoint: str = "http://localhost:4318"
    service_name: str = "corechecks"
    headers: dict[str, str] = field(default_factory=dict)
    export_interval_ms: int = 10000


@dataclass
class RunnerConfig:
    """Check scheduler settings."""

    enabled: bool = True
    interval_seconds: float = 15.0


@dataclass
class LocalExporterConfig:
    """Local file exporter settings."""

    enabled: bool = True
    output_dir: str = "./check_data"


@dataclass
class CheckConfig:
    """Configuration handed to one check: shared init_config plus instances."""

    name: str
    init_config: dict[str, Any] = field(default_factory=dict)
    instances: list[dict[str, Any]] = field(default_factory=lambda: [{}])


def _default_checks() -> list[CheckConfig]:
    return [CheckConfig(name="cpu"), CheckConfig(name="memory")]


@dataclass
class CoreChecksConfig:
    """Top-level corechecks configuration."""

    mode: str = "local"
    otel: OtelExporterConfig = field(default_factory=OtelExporterConfig)
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    local_exporter: LocalExporterConfig = field(default_factory=LocalExporterConfig)
    checks: list[CheckConfig] = field(default_factory=_default_checks)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using CORECHECKS_ prefix."""
    env_map = {
        "CORECHECKS_MODE": ("mode",),
        "CORECHECKS_OTEL_ENDPOINT": ("otel", "endpoint"),
        "CORECHECKS_OTEL_SERVICE_NAME": ("otel", "service_name"),
        "CORECHECKS_RUNNER_INTERVAL": ("runner", "interval_seconds"),
        "CORECHECKS_LOCAL_OUTPUT_DIR": ("local_exporter", "output_dir"),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            final_key = path[-1]
            # coerce numeric values
            if final_key == "interval_seconds":
                obj[final_key] = float(value)
            else:
                obj[final_key] = value
    return data


def _parse_checks(raw: Any) -> list[CheckConfig]:
    """Parse the ``checks`` section: a mapping of check name to settings.

    A check given as ``null`` (``cpu:``) runs with one empty instance.
    """
    if not isinstance(raw, dict):
        raise ConfigurationError("'checks' must be a mapping of check name to settings")

    checks: list[CheckConfig] = []
    for name, settings in raw.items():
        if settings is None:
            settings = {}
        if not isinstance(settings, dict):
            raise ConfigurationError(f"checks.{name} must be a mapping")

        init_config = settings.get("init_config") or {}
        instances = settings.get("instances")
        if instances is None:
            instances = [{}]
        if not isinstance(instances, list):
            raise ConfigurationError(f"checks.{name}.instances must be a list")

        checks.append(CheckConfig(
            name=str(name),
            init_config=init_config,
            instances=[inst if inst is not None else {} for inst in instances],
        ))
    return checks


def _dict_to_config(data: dict[str, Any]) -> CoreChecksConfig:
    """Convert a raw dictionary to a CoreChecksConfig dataclass."""
    otel_data = data.get("otel", {})
    runner_data = data.get("runner", {})
    local_data = data.get("local_exporter", {})

    cfg = CoreChecksConfig(
        mode=data.get("mode", "local"),
        otel=OtelExporterConfig(**{
            k: v for k, v in otel_data.items()
            if k in OtelExporterConfig.__dataclass_fields__
        }),
        runner=RunnerConfig(**{
            k: v for k, v in runner_data.items()
            if k in RunnerConfig.__dataclass_fields__
        }),
        local_exporter=LocalExporterConfig(**{
            k: v for k, v in local_data.items()
            if k in LocalExporterConfig.__dataclass_fields__
        }),
    )
    if "checks" in data:
        cfg.checks = _parse_checks(data["checks"])
    return cfg


def load_config(path: str | Path | None = None) -> CoreChecksConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``corechecks.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("corechecks.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
