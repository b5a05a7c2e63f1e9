"""CPU frequency scaling state from the sysfs cpufreq interface.

Every value lives in its own file under
``/sys/devices/system/cpu/cpu{N}/cpufreq/``.  Frequencies are in kHz and
the transition latency in nanoseconds.  A CPU without a cpufreq driver has
no such directory, so every read degrades to ``0`` or ``None``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import ClassVar

from ..config import CPU_SYSFS_ROOT
from ..errors import NoDeviceError
from ..sysfs import EntryType, path_exists, read_line, read_unsigned, scan_directory

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CpuFrequencyLimits:
    """Lower and upper frequency bound of one CPU, in kHz."""

    minimum: int
    maximum: int


@dataclass(frozen=True)
class CpuFrequencyInfo:
    """Everything cpufreq exposes for one logical CPU.

    ``None`` means the kernel or the driver does not provide the value.
    """

    cpu: int
    current_frequency: int | None = None
    hardware_limits: CpuFrequencyLimits | None = None
    scaling_limits: CpuFrequencyLimits | None = None
    transition_latency: int | None = None
    driver: str | None = None
    governor: str | None = None
    available_governors: str | None = None
    available_frequencies: str | None = None


class CpufreqInspector:
    """Read cpufreq leaf files for a given logical CPU index."""

    CPUINFO_CUR_FREQ: ClassVar[str] = "cpuinfo_cur_freq"
    CPUINFO_MIN_FREQ: ClassVar[str] = "cpuinfo_min_freq"
    CPUINFO_MAX_FREQ: ClassVar[str] = "cpuinfo_max_freq"
    CPUINFO_LATENCY: ClassVar[str] = "cpuinfo_transition_latency"
    SCALING_CUR_FREQ: ClassVar[str] = "scaling_cur_freq"
    SCALING_MIN_FREQ: ClassVar[str] = "scaling_min_freq"
    SCALING_MAX_FREQ: ClassVar[str] = "scaling_max_freq"
    SCALING_DRIVER: ClassVar[str] = "scaling_driver"
    SCALING_GOVERNOR: ClassVar[str] = "scaling_governor"
    SCALING_AVAILABLE_GOVERNORS: ClassVar[str] = "scaling_available_governors"
    SCALING_AVAILABLE_FREQS: ClassVar[str] = "scaling_available_frequencies"

    _LEAF: ClassVar[str] = "{root}/cpu{cpu}/cpufreq/{name}"

    def __init__(self, sysfs_root: str | os.PathLike[str] = CPU_SYSFS_ROOT) -> None:
        self._root = os.fspath(sysfs_root).rstrip("/") or "/"

    @property
    def sysfs_root(self) -> str:
        return self._root

    # ------------------------------------------------------------------
    # Leaf access
    # ------------------------------------------------------------------

    def _value(self, cpu: int, name: str) -> int:
        return read_unsigned(self._LEAF, root=self._root, cpu=cpu, name=name, base=10)

    def _string(self, cpu: int, name: str) -> str | None:
        return read_line(self._LEAF, root=self._root, cpu=cpu, name=name)

    def _limits(self, cpu: int, min_name: str, max_name: str) -> CpuFrequencyLimits:
        minimum = self._value(cpu, min_name)
        if not minimum:
            log.debug("cpu%d: %s is missing or zero", cpu, min_name)
            raise NoDeviceError(cpu)
        maximum = self._value(cpu, max_name)
        if not maximum:
            log.debug("cpu%d: %s is missing or zero", cpu, max_name)
            raise NoDeviceError(cpu)
        if minimum > maximum:
            raise NoDeviceError(
                cpu, f"inverted frequency limits ({minimum} > {maximum} kHz)"
            )
        return CpuFrequencyLimits(minimum=minimum, maximum=maximum)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover_cpus(self) -> list[int]:
        """Return the sorted indices of CPUs that have a cpufreq directory."""
        indices: list[int] = []
        if not path_exists(self._root):
            return indices

        for entry in scan_directory(
            self._root, mask=EntryType.DIRECTORY | EntryType.SYMLINK
        ):
            if not entry.name.startswith("cpu"):
                continue
            suffix = entry.name[3:]
            if not (suffix.isascii() and suffix.isdigit()):
                continue
            if self.supports_cpufreq(int(suffix)):
                indices.append(int(suffix))

        return sorted(indices)

    def supports_cpufreq(self, cpu: int) -> bool:
        """Return True if ``cpu`` has a cpufreq directory."""
        return path_exists("{root}/cpu{cpu}/cpufreq", root=self._root, cpu=cpu)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def get_hardware_limits(self, cpu: int) -> CpuFrequencyLimits:
        """Return the hardware frequency range of ``cpu``.

        Raises:
            NoDeviceError: Either bound is missing or zero, i.e. the CPU has
                no frequency scaling support.
        """
        return self._limits(cpu, self.CPUINFO_MIN_FREQ, self.CPUINFO_MAX_FREQ)

    def get_scaling_limits(self, cpu: int) -> CpuFrequencyLimits:
        """Return the policy range the governor may currently use.

        Raises:
            NoDeviceError: Either bound is missing or zero.
        """
        return self._limits(cpu, self.SCALING_MIN_FREQ, self.SCALING_MAX_FREQ)

    def get_current_frequency(self, cpu: int) -> int:
        """Current frequency as seen by the kernel (kHz, 0 = unknown)."""
        return self._value(cpu, self.SCALING_CUR_FREQ)

    def get_hardware_frequency(self, cpu: int) -> int:
        """Current frequency as read back from the hardware (kHz, 0 = unknown).

        This file is normally readable by root only.
        """
        return self._value(cpu, self.CPUINFO_CUR_FREQ)

    def get_transition_latency(self, cpu: int) -> int:
        """Frequency switch latency in nanoseconds (0 = unknown)."""
        return self._value(cpu, self.CPUINFO_LATENCY)

    def get_driver(self, cpu: int) -> str | None:
        """Name of the cpufreq driver, e.g. "intel_pstate"."""
        return self._string(cpu, self.SCALING_DRIVER)

    def get_governor(self, cpu: int) -> str | None:
        """Name of the active scaling governor."""
        return self._string(cpu, self.SCALING_GOVERNOR)

    def get_available_governors(self, cpu: int) -> str | None:
        """Space separated governor names, as printed by the kernel."""
        return self._string(cpu, self.SCALING_AVAILABLE_GOVERNORS)

    def get_available_frequencies(self, cpu: int) -> str | None:
        """Space separated frequencies in kHz, as printed by the kernel."""
        return self._string(cpu, self.SCALING_AVAILABLE_FREQS)

    def get_info(self, cpu: int) -> CpuFrequencyInfo:
        """Collect every cpufreq value of ``cpu`` into one record."""
        try:
            hardware_limits: CpuFrequencyLimits | None = self.get_hardware_limits(cpu)
        except NoDeviceError:
            hardware_limits = None
        try:
            scaling_limits: CpuFrequencyLimits | None = self.get_scaling_limits(cpu)
        except NoDeviceError:
            scaling_limits = None

        return CpuFrequencyInfo(
            cpu=cpu,
            current_frequency=self.get_current_frequency(cpu) or None,
            hardware_limits=hardware_limits,
            scaling_limits=scaling_limits,
            transition_latency=self.get_transition_latency(cpu) or None,
            driver=self.get_driver(cpu),
            governor=self.get_governor(cpu),
            available_governors=self.get_available_governors(cpu),
            available_frequencies=self.get_available_frequencies(cpu),
        )
