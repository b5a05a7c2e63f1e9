"""Kernel pseudo-filesystem telemetry: cpufreq, /proc/stat and thermal zones."""

from __future__ import annotations

from .config import TelemetryConfig
from .errors import (
    NoDataError,
    NoDeviceError,
    PathFormatError,
    TelemetryEnvironmentError,
    TelemetryError,
    TelemetryUnavailable,
)
from .sensors.cpufreq import CpufreqInspector, CpuFrequencyInfo, CpuFrequencyLimits
from .sensors.procfs import CpuAccountingCounters, CpuStatReader
from .sensors.thermal import (
    ALL_ZONES,
    MAX_TRIP_POINTS,
    ThermalInspector,
    ThermalSummary,
    ThermalZone,
    TripPoint,
)

__all__ = [
    "ALL_ZONES",
    "MAX_TRIP_POINTS",
    "CpuAccountingCounters",
    "CpuFrequencyInfo",
    "CpuFrequencyLimits",
    "CpuStatReader",
    "CpufreqInspector",
    "NoDataError",
    "NoDeviceError",
    "PathFormatError",
    "TelemetryConfig",
    "TelemetryEnvironmentError",
    "TelemetryError",
    "TelemetryUnavailable",
    "ThermalInspector",
    "ThermalSummary",
    "ThermalZone",
    "TripPoint",
]
