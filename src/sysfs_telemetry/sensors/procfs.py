"""Cumulative CPU accounting counters from /proc/stat.

One :meth:`CpuStatReader.capture` call is one instantaneous read of the
kernel-wide counters.  Utilization is the difference between two captures
and is left to the caller.
"""

from __future__ import annotations

import logging
import os
from dataclasses import astuple, dataclass, fields
from pathlib import Path
from typing import ClassVar

from ..config import PROC_ROOT
from ..errors import TelemetryEnvironmentError

log = logging.getLogger(__name__)

_JIFFY_FIELDS = 10

# user, nice, system and idle exist on every 2.6+ kernel; later columns
# were added over time and are zero when the kernel does not print them.
_REQUIRED_JIFFY_FIELDS = 4


@dataclass(frozen=True)
class CpuAccountingCounters:
    """One read of the CPU accounting counters.

    Jiffy fields are in USER_HZ ticks since boot.  ``ctxt``, ``intr`` and
    ``softirqs`` are event totals since boot.
    """

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0
    guest: int = 0
    guest_nice: int = 0
    ctxt: int = 0
    intr: int = 0
    softirqs: int = 0

    @property
    def jiffies(self) -> tuple[int, ...]:
        """The ten jiffy counters in /proc/stat column order."""
        return astuple(self)[:_JIFFY_FIELDS]


_JIFFY_NAMES = tuple(f.name for f in fields(CpuAccountingCounters))[:_JIFFY_FIELDS]


class CpuStatReader:
    """Snapshot the ``cpu`` lines and event totals of /proc/stat."""

    # Event total lines: the first number after the keyword is the total.
    _EVENT_LINES: ClassVar[dict[str, str]] = {
        "ctxt": "ctxt",
        "intr": "intr",
        "softirq": "softirqs",
    }

    def __init__(self, proc_root: str | os.PathLike[str] = PROC_ROOT) -> None:
        self._stat_path = Path(proc_root) / "stat"

    @property
    def stat_path(self) -> Path:
        return self._stat_path

    # ------------------------------------------------------------------
    # Parsing helpers
    # ------------------------------------------------------------------

    def _read_lines(self) -> list[str]:
        try:
            with self._stat_path.open(encoding="utf-8", errors="replace") as fh:
                return fh.read().splitlines()
        except OSError as exc:
            raise TelemetryEnvironmentError.from_oserror(
                "cannot read", self._stat_path, exc
            ) from exc

    def _parse_cpu_line(self, line: str) -> dict[str, int]:
        """Parse the jiffy columns of a ``cpu``/``cpu<N>`` line.

        Raises:
            TelemetryEnvironmentError: The line does not carry at least the
                user, nice, system and idle columns as integers.
        """
        parts = line.split()[1 : _JIFFY_FIELDS + 1]
        try:
            values = [int(p) for p in parts]
        except ValueError:
            values = []
        if len(values) < _REQUIRED_JIFFY_FIELDS or any(v < 0 for v in values):
            raise TelemetryEnvironmentError(
                "cannot parse", self._stat_path, strerror=f"unexpected line {line!r}"
            )
        return dict(zip(_JIFFY_NAMES, values))

    def _parse_events(self, lines: list[str]) -> dict[str, int]:
        events: dict[str, int] = {}
        for line in lines:
            keyword, _, rest = line.partition(" ")
            name = self._EVENT_LINES.get(keyword)
            if name is None:
                continue
            parts = rest.split()
            if parts and parts[0].isascii() and parts[0].isdigit():
                events[name] = int(parts[0])
        return events

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def capture(self) -> CpuAccountingCounters:
        """Read the kernel-wide counters.

        Raises:
            TelemetryEnvironmentError: /proc/stat is missing, unreadable, or
                its first line is not the aggregate ``cpu`` line.
        """
        lines = self._read_lines()
        if not lines or not lines[0].startswith("cpu "):
            raise TelemetryEnvironmentError(
                "cannot parse", self._stat_path, strerror="missing aggregate cpu line"
            )

        jiffies = self._parse_cpu_line(lines[0])
        events = self._parse_events(lines[1:])
        counters = CpuAccountingCounters(**jiffies, **events)
        log.debug("cpu accounting snapshot: %s", counters)
        return counters

    def capture_per_cpu(self) -> dict[int, CpuAccountingCounters]:
        """Read the per-CPU jiffy counters, keyed by CPU index.

        Event totals are only kept system-wide by the kernel, so they are
        zero in every per-CPU snapshot.

        Raises:
            TelemetryEnvironmentError: /proc/stat cannot be read or a
                ``cpu<N>`` line is malformed.
        """
        result: dict[int, CpuAccountingCounters] = {}
        for line in self._read_lines():
            if not line.startswith("cpu"):
                continue
            label = line.split(maxsplit=1)[0]
            suffix = label[3:]
            if not (suffix.isascii() and suffix.isdigit()):
                continue
            result[int(suffix)] = CpuAccountingCounters(**self._parse_cpu_line(line))
        return result
