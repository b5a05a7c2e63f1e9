"""Path roots for the kernel interfaces read by the inspectors."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .sensors.cpufreq import CpufreqInspector
    from .sensors.procfs import CpuStatReader
    from .sensors.thermal import ThermalInspector

CPU_SYSFS_ROOT = "/sys/devices/system/cpu"
THERMAL_SYSFS_ROOT = "/sys/class/thermal"
PROC_ROOT = "/proc"


@dataclass
class TelemetryConfig:
    """Where to find the kernel pseudo-filesystems.

    The defaults are the real kernel locations; tests point the roots at a
    synthetic tree.
    """

    # Per-CPU sysfs directory holding cpu<N>/cpufreq/
    cpu_root: Path = Path(CPU_SYSFS_ROOT)

    # Thermal class directory holding thermal_zone<N>/
    thermal_root: Path = Path(THERMAL_SYSFS_ROOT)

    # procfs mount point holding stat
    proc_root: Path = Path(PROC_ROOT)

    def __post_init__(self) -> None:
        self.cpu_root = Path(self.cpu_root)
        self.thermal_root = Path(self.thermal_root)
        self.proc_root = Path(self.proc_root)

    def build_inspectors(
        self,
    ) -> tuple[CpufreqInspector, CpuStatReader, ThermalInspector]:
        """Instantiate the three inspectors wired to these roots."""
        from .sensors.cpufreq import CpufreqInspector
        from .sensors.procfs import CpuStatReader
        from .sensors.thermal import ThermalInspector

        return (
            CpufreqInspector(sysfs_root=str(self.cpu_root)),
            CpuStatReader(proc_root=str(self.proc_root)),
            ThermalInspector(sysfs_root=str(self.thermal_root)),
        )
