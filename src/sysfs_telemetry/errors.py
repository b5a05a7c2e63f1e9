"""Exceptions raised by the telemetry extraction layer.

Two disjoint classes:

* :class:`TelemetryUnavailable` -- an expected absence.  The hardware or
  kernel simply does not provide the value (no cpufreq driver, no thermal
  zone with a reading).  Callers are expected to handle it.
* :class:`TelemetryEnvironmentError` -- an environmental failure.  A
  directory that must exist cannot be opened, or a read fails with an OS
  error that does not mean "not there".  Retrying within the same process
  will not help.
"""

from __future__ import annotations

import os


class TelemetryError(Exception):
    """Base class for every error raised by this package."""


class TelemetryUnavailable(TelemetryError):
    """The requested telemetry is not provided by this host."""


class NoDeviceError(TelemetryUnavailable):
    """A CPU lacks frequency-scaling support."""

    def __init__(self, cpu: int, detail: str = "no frequency scaling support") -> None:
        self.cpu = cpu
        super().__init__(f"cpu{cpu}: {detail}")


class NoDataError(TelemetryUnavailable):
    """No thermal zone reported a positive temperature.

    ``zone`` is ``None`` when every zone was scanned.
    """

    def __init__(self, zone: int | None = None) -> None:
        self.zone = zone
        if zone is None:
            message = "no thermal information has been found"
        else:
            message = f"no thermal information for zone '{zone}'"
        super().__init__(message)


class TelemetryEnvironmentError(TelemetryError):
    """A required kernel interface could not be read."""

    def __init__(
        self,
        operation: str,
        path: str | os.PathLike[str],
        errno: int | None = None,
        strerror: str | None = None,
    ) -> None:
        self.operation = operation
        self.path = os.fspath(path)
        self.errno = errno
        self.strerror = strerror
        message = f"{operation} {self.path}"
        if strerror:
            message = f"{message}: {strerror}"
        super().__init__(message)

    @classmethod
    def from_oserror(
        cls, operation: str, path: str | os.PathLike[str], exc: OSError
    ) -> TelemetryEnvironmentError:
        """Build the error from the ``OSError`` that caused it."""
        return cls(operation, path, errno=exc.errno, strerror=exc.strerror or str(exc))


class PathFormatError(TelemetryError, ValueError):
    """A path template could not be formatted (a programming defect)."""
