"""CLI interface for corechecks."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time
from pathlib import Path

from . import __version__
from .config import load_config
from .sender import MetricSample


def _cmd_run(args: argparse.Namespace) -> None:
    """Run all configured checks until interrupted."""
    cfg = load_config(args.config)

    from .exporter.local import LocalExporter
    from .runner import CheckRunner, build_checks

    exporters = []

    if cfg.local_exporter.enabled:
        local_exp = LocalExporter(cfg.local_exporter)
        exporters.append(local_exp)

    if cfg.mode == "online":
        from .exporter.otel import OtelExporter
        otel_exp = OtelExporter(cfg.otel)
        exporters.append(otel_exp)

    runner = CheckRunner(cfg.runner, build_checks(cfg.checks))
    for exp in exporters:
        runner.add_sink(exp.export)

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    runner.start()
    names = ", ".join(c.name for c in runner.checks) or "(none)"
    print(f"corechecks running (mode={cfg.mode}, interval={cfg.runner.interval_seconds}s, checks={names})")
    print("Press Ctrl+C to stop.\n")
    try:
        while not stop:
            time.sleep(0.5)
    finally:
        runner.stop()
        for exp in exporters:
            exp.shutdown()
    print("\nChecks stopped.")


def _cmd_check(args: argparse.Namespace) -> None:
    """Configure a single check, run it a few times and print what it emits."""
    from . import system  # noqa: F401
    from .check import new_check
    from .config import RunnerConfig
    from .errors import CheckError
    from .runner import CheckRunner

    try:
        check = new_check(args.name)
        check.configure({})
    except CheckError as exc:
        print(f"Could not configure {args.name}: {exc}", file=sys.stderr)
        sys.exit(1)

    runner = CheckRunner(RunnerConfig(enabled=False), [check])
    samples: list[MetricSample] = []
    try:
        for idx in range(args.times):
            if idx:
                time.sleep(args.delay)
            samples = runner.run_check(check)
    finally:
        check.teardown()

    print_samples(samples, title=f"{args.name} (run {args.times})")


def _cmd_list(_args: argparse.Namespace) -> None:
    from .check import registered_checks
    from . import system  # noqa: F401

    for name in registered_checks():
        print(name)


def _cmd_generate_config(args: argparse.Namespace) -> None:
    """Write a corechecks.yaml with the current effective settings."""
    import yaml

    cfg = load_config(args.config)
    data = {
        "mode": cfg.mode,
        "runner": {
            "enabled": cfg.runner.enabled,
            "interval_seconds": cfg.runner.interval_seconds,
        },
        "checks": {
            c.name: {"init_config": c.init_config, "instances": c.instances}
            for c in cfg.checks
        },
        "local_exporter": {
            "enabled": cfg.local_exporter.enabled,
            "output_dir": cfg.local_exporter.output_dir,
        },
        "otel": {
            "endpoint": cfg.otel.endpoint,
            "service_name": cfg.otel.service_name,
            "export_interval_ms": cfg.otel.export_interval_ms,
        },
    }

    output = args.output or "corechecks.yaml"
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, sort_keys=False)
    print(f"corechecks config written to {output}")


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"corechecks {__version__}")


def print_samples(samples: list[MetricSample], *, title: str = "Metrics") -> None:
    """Pretty-print committed samples to the terminal using Rich."""
    from rich.console import Console
    from rich.table import Table

    table = Table(title=title)
    table.add_column("Metric", style="green", width=28)
    table.add_column("Value", justify="right", style="cyan", width=20)
    table.add_column("Unit", width=6)
    table.add_column("Tags", width=30)

    for s in samples:
        if s.unit == "bytes":
            value = f"{s.value:,.0f}"
        else:
            value = f"{s.value:.2f}"
        table.add_row(s.name, value, s.unit, ", ".join(s.tags))

    console = Console()
    console.print(table)
    if not samples:
        console.print("  (no metrics emitted)")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the corechecks CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="corechecks",
        description="Run stateful system metric checks",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to corechecks.yaml")
    sub = parser.add_subparsers(dest="command")

    # run
    run_p = sub.add_parser("run", help="Run configured checks on an interval")
    run_p.set_defaults(func=_cmd_run)

    # check
    check_p = sub.add_parser("check", help="Run a single check and print its metrics")
    check_p.add_argument("name", help="Registered check name, e.g. 'cpu'")
    check_p.add_argument("--times", type=int, default=2, help="Number of runs (rates need at least 2)")
    check_p.add_argument("--delay", type=float, default=1.0, help="Seconds between runs")
    check_p.set_defaults(func=_cmd_check)

    # list
    list_p = sub.add_parser("list", help="List registered checks")
    list_p.set_defaults(func=_cmd_list)

    # generate-config
    gen_p = sub.add_parser("generate-config", help="Write the effective configuration to YAML")
    gen_p.add_argument("--output", "-o", default=None, help="Output file path")
    gen_p.set_defaults(func=_cmd_generate_config)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
