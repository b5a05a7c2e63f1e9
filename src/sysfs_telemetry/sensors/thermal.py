"""Thermal zone temperatures and trip points from sysfs.

Layout of a registered zone::

    /sys/class/thermal/thermal_zone{N}/
        type                    zone type, e.g. "acpitz" or "x86_pkg_temp"
        temp                    current temperature (millidegrees Celsius)
        trip_point_{i}_type     "critical", "hot", "passive", "active0", ...
        trip_point_{i}_temp     trip temperature (millidegrees Celsius)

Temperatures are signed.  A reading of zero or below is treated as "no
current reading" rather than as a real temperature.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import ClassVar, Final

from ..config import THERMAL_SYSFS_ROOT
from ..errors import NoDataError, TelemetryEnvironmentError
from ..sysfs import (
    DirectoryHandle,
    EntryType,
    path_exists,
    read_line,
    read_signed,
    scan_directory,
)

log = logging.getLogger(__name__)

# Trip points 0..3 are scanned and no further.  The usual ACPI set is
# critical, passive, active0 and active1; a critical trip point at index 4
# or later is not seen.
MAX_TRIP_POINTS: Final = 4

# Selector for get_hottest_zone() meaning "every zone".
ALL_ZONES: Final = None

ZONE_PREFIX: Final = "thermal_zone"
CRITICAL_TRIP_TYPE: Final = "critical"


@dataclass(frozen=True)
class TripPoint:
    """A temperature threshold declared by a thermal zone."""

    index: int  # Position in trip_point_{index}_*
    type: str  # e.g. "critical", "passive", "active0"
    temperature: int  # Millidegrees Celsius


@dataclass(frozen=True)
class ThermalZone:
    """One thermal zone as read at a single point in time."""

    index: int
    temperature: int  # Millidegrees Celsius, <= 0 means no reading
    zone_type: str | None = None
    trip_points: tuple[TripPoint, ...] = ()

    @property
    def has_reading(self) -> bool:
        return self.temperature > 0


@dataclass(frozen=True)
class ThermalSummary:
    """The hottest zone among those scanned."""

    zone: int
    temperature: int  # Millidegrees Celsius, always > 0
    zone_type: str | None = None


def _zone_index(name: str) -> int | None:
    """Return N for a ``thermal_zone{N}`` entry name, or None."""
    if not name.startswith(ZONE_PREFIX):
        return None
    suffix = name[len(ZONE_PREFIX) :]
    if not (suffix.isascii() and suffix.isdigit()):
        return None
    return int(suffix)


class ThermalInspector:
    """Discover thermal zones and aggregate their readings."""

    _ZONE_FILE: ClassVar[str] = "{root}/" + ZONE_PREFIX + "{zone}/{name}"
    _TRIP_FILE: ClassVar[str] = (
        "{root}/" + ZONE_PREFIX + "{zone}/trip_point_{trip}_{name}"
    )

    def __init__(
        self, sysfs_root: str | os.PathLike[str] = THERMAL_SYSFS_ROOT
    ) -> None:
        self._root = os.fspath(sysfs_root).rstrip("/") or "/"

    @property
    def sysfs_root(self) -> str:
        return self._root

    def kernel_supports_thermal(self) -> bool:
        """Return True if the thermal class directory exists on this host."""
        return path_exists(self._root)

    # ------------------------------------------------------------------
    # Per-zone reads
    # ------------------------------------------------------------------

    def discover_zones(self) -> list[int]:
        """Return the sorted indices of all thermal zones.

        An absent thermal class directory gives an empty list.
        """
        if not self.kernel_supports_thermal():
            return []
        indices = [
            index
            for entry in scan_directory(self._root)
            if (index := _zone_index(entry.name)) is not None
        ]
        return sorted(indices)

    def get_temperature(self, zone: int) -> int:
        """Current temperature of ``zone`` in millidegrees (0 = no data)."""
        return read_signed(self._ZONE_FILE, root=self._root, zone=zone, name="temp")

    def get_zone_type(self, zone: int) -> str | None:
        """Zone type string such as "acpitz", or None when not exposed."""
        return read_line(self._ZONE_FILE, root=self._root, zone=zone, name="type")

    def _trip_type(self, zone: int, trip: int) -> str | None:
        return read_line(
            self._TRIP_FILE, root=self._root, zone=zone, trip=trip, name="type"
        )

    def _trip_temperature(self, zone: int, trip: int) -> int:
        return read_signed(
            self._TRIP_FILE, root=self._root, zone=zone, trip=trip, name="temp"
        )

    def get_trip_points(self, zone: int) -> tuple[TripPoint, ...]:
        """Return the trip points 0..3 of ``zone`` that declare a type."""
        points: list[TripPoint] = []
        for trip in range(MAX_TRIP_POINTS):
            trip_type = self._trip_type(zone, trip)
            if trip_type is None:
                continue
            points.append(
                TripPoint(
                    index=trip,
                    type=trip_type,
                    temperature=self._trip_temperature(zone, trip),
                )
            )
        return tuple(points)

    def read_zone(self, zone: int) -> ThermalZone:
        """Read the temperature, type and trip points of one zone."""
        return ThermalZone(
            index=zone,
            temperature=self.get_temperature(zone),
            zone_type=self.get_zone_type(zone),
            trip_points=self.get_trip_points(zone),
        )

    def read_zones(self) -> list[ThermalZone]:
        """Read every discovered zone, sorted by index.

        A zone that fails with an environmental error is logged and left out.
        """
        zones: list[ThermalZone] = []
        for zone in self.discover_zones():
            try:
                zones.append(self.read_zone(zone))
            except TelemetryEnvironmentError as exc:
                log.warning("skipping thermal zone %d: %s", zone, exc)
        return zones

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def get_critical_temperature(self, zone: int) -> int | None:
        """Return the critical trip temperature of ``zone``.

        The first trip point (lowest index, at most ``MAX_TRIP_POINTS``)
        whose type starts with "critical" decides the result.

        Returns:
            The trip temperature in millidegrees, or None if there is no
            critical trip point or its temperature is not positive.
        """
        for trip in range(MAX_TRIP_POINTS):
            trip_type = self._trip_type(zone, trip)
            if trip_type is None:
                continue
            if not trip_type.startswith(CRITICAL_TRIP_TYPE):
                continue

            crit_temp = self._trip_temperature(zone, trip)
            if crit_temp > 0:
                log.debug(
                    "a critical trip point has been found: %.2f degrees C",
                    crit_temp / 1000.0,
                )
                return crit_temp
            return None
        return None

    def get_hottest_zone(self, selector: int | None = ALL_ZONES) -> ThermalSummary:
        """Return the zone with the highest positive temperature.

        A zone whose temperature cannot be read is skipped.

        Args:
            selector: A zone index to restrict the scan to, or ``ALL_ZONES``.

        Raises:
            TelemetryEnvironmentError: The thermal class directory cannot be
                opened.
            NoDataError: No scanned zone reported a positive temperature.
        """
        with DirectoryHandle.open(self._root) as handle:
            candidates = sorted(
                index
                for entry in handle.entries(EntryType.ANY)
                if (index := _zone_index(entry.name)) is not None
                and (selector is ALL_ZONES or index == selector)
            )

        hottest: ThermalSummary | None = None
        for index in candidates:
            try:
                temp = self.get_temperature(index)
            except TelemetryEnvironmentError as exc:
                log.warning("skipping thermal zone %d: %s", index, exc)
                continue
            log.debug(
                "thermal information found: %.2f degrees C, zone: %d",
                temp / 1000.0,
                index,
            )
            if temp <= 0:
                continue
            if hottest is None or temp > hottest.temperature:
                hottest = ThermalSummary(
                    zone=index, temperature=temp, zone_type=self.get_zone_type(index)
                )

        if hottest is None:
            raise NoDataError(selector)
        return hottest
