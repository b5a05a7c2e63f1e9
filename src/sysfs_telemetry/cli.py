"""Command-line interface: dump the extracted telemetry as JSON.

Nothing is compared against thresholds here; the output is meant for
inspecting what a host exposes.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

from .config import CPU_SYSFS_ROOT, PROC_ROOT, THERMAL_SYSFS_ROOT, TelemetryConfig
from .errors import TelemetryEnvironmentError, TelemetryUnavailable
from .sensors.cpufreq import CpufreqInspector
from .sensors.thermal import ThermalInspector

log = logging.getLogger(__name__)

# Monitoring-plugin convention for "could not determine the state".
EXIT_UNKNOWN = 3


def parse_args(
    argv: list[str] | None = None,
) -> tuple[TelemetryConfig, argparse.Namespace]:
    """Parse command-line arguments into a TelemetryConfig and the raw namespace."""
    parser = argparse.ArgumentParser(
        prog="sysfs-telemetry",
        description="Dump CPU frequency, CPU accounting and thermal telemetry",
    )
    parser.add_argument(
        "-c",
        "--cpu",
        type=int,
        action="append",
        default=[],
        help="CPU index to inspect, may be repeated (default: all with cpufreq)",
    )
    parser.add_argument(
        "-z",
        "--zone",
        type=int,
        default=None,
        help="Thermal zone to report (default: hottest of all zones)",
    )
    parser.add_argument(
        "--cpu-root",
        type=Path,
        default=Path(CPU_SYSFS_ROOT),
        help=f"Per-CPU sysfs directory (default: {CPU_SYSFS_ROOT})",
    )
    parser.add_argument(
        "--thermal-root",
        type=Path,
        default=Path(THERMAL_SYSFS_ROOT),
        help=f"Thermal class directory (default: {THERMAL_SYSFS_ROOT})",
    )
    parser.add_argument(
        "--proc-root",
        type=Path,
        default=Path(PROC_ROOT),
        help=f"procfs mount point (default: {PROC_ROOT})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    args = parser.parse_args(argv)
    config = TelemetryConfig(
        cpu_root=args.cpu_root,
        thermal_root=args.thermal_root,
        proc_root=args.proc_root,
    )
    return config, args


def _cpufreq_section(
    inspector: CpufreqInspector, cpus: list[int]
) -> list[dict[str, Any]]:
    if not cpus:
        cpus = inspector.discover_cpus()
    return [dataclasses.asdict(inspector.get_info(cpu)) for cpu in cpus]


def _thermal_section(inspector: ThermalInspector, zone: int | None) -> dict[str, Any]:
    section: dict[str, Any] = {
        "supported": inspector.kernel_supports_thermal(),
        "hottest": None,
        "critical_temperature": None,
        "zones": [],
    }
    if not section["supported"]:
        return section

    try:
        summary = inspector.get_hottest_zone(zone)
    except TelemetryUnavailable as exc:
        log.info("%s", exc)
    else:
        section["hottest"] = dataclasses.asdict(summary)
        section["critical_temperature"] = inspector.get_critical_temperature(
            summary.zone
        )

    zones = inspector.read_zones()
    if zone is not None:
        zones = [z for z in zones if z.index == zone]
    section["zones"] = [dataclasses.asdict(z) for z in zones]
    return section


def collect(
    config: TelemetryConfig, cpus: list[int], zone: int | None
) -> dict[str, Any]:
    """Gather one report from the three inspectors."""
    cpufreq, cpustat, thermal = config.build_inspectors()
    return {
        "cpufreq": _cpufreq_section(cpufreq, cpus),
        "cpu_accounting": dataclasses.asdict(cpustat.capture()),
        "thermal": _thermal_section(thermal, zone),
    }


def main(argv: list[str] | None = None) -> None:
    """Entry point for the sysfs-telemetry CLI."""
    config, args = parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        report = collect(config, args.cpu, args.zone)
    except TelemetryEnvironmentError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(EXIT_UNKNOWN)

    print(json.dumps(report, indent=2))


if __name__ == "__main__":
    main()
