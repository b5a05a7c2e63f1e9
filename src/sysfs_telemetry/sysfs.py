"""Low-level helpers for reading sysfs and procfs files.

Pseudo-files hold a single line of text, usually one integer.  A missing
file is a normal condition (the feature is not supported on this host) and
is reported as ``None`` or ``0``.  Any other OS failure is escalated to
:class:`~sysfs_telemetry.errors.TelemetryEnvironmentError`.

Paths are given as ``str.format`` templates plus arguments, e.g.
``read_line("{}/cpu{}/cpufreq/scaling_governor", root, 0)``.
"""

from __future__ import annotations

import enum
import errno
import os
from collections.abc import Iterator
from types import TracebackType
from typing import Any, Final

from .errors import PathFormatError, TelemetryEnvironmentError

UINT64_MAX: Final = 2**64 - 1
INT64_MIN: Final = -(2**63)
INT64_MAX: Final = 2**63 - 1

_DIGITS: Final = "0123456789abcdefghijklmnopqrstuvwxyz"

# errno values that mean "this value is not provided here".  EACCES covers
# root-only leaves such as cpuinfo_cur_freq; ENODEV/ENXIO offline devices.
# ENODATA, EINVAL and EAGAIN come from sensors that are registered but idle.
_ABSENT_ERRNOS: Final = frozenset(
    {
        errno.ENOENT,
        errno.ENOTDIR,
        errno.EACCES,
        errno.EPERM,
        errno.ENODEV,
        errno.ENXIO,
        errno.ENODATA,
        errno.EINVAL,
        errno.EAGAIN,
    }
)


# ----------------------------------------------------------------------
# Path helpers
# ----------------------------------------------------------------------


def format_path(template: str | os.PathLike[str], *args: Any, **kwargs: Any) -> str:
    """Expand a path template.

    A template without arguments is returned unchanged, so literal braces in
    a plain path are never interpreted.

    Raises:
        PathFormatError: The template does not match its arguments.
    """
    template = os.fspath(template)
    if not args and not kwargs:
        return template
    try:
        return template.format(*args, **kwargs)
    except (IndexError, KeyError, ValueError, AttributeError) as exc:
        raise PathFormatError(f"cannot format path {template!r}: {exc}") from exc


def path_exists(template: str | os.PathLike[str], *args: Any, **kwargs: Any) -> bool:
    """Return True if the formatted path exists."""
    return os.path.exists(format_path(template, *args, **kwargs))


def read_line(
    template: str | os.PathLike[str], *args: Any, **kwargs: Any
) -> str | None:
    """Read the first line of a pseudo-file.

    Returns:
        The line with one trailing newline removed, or ``None`` if the file
        is absent, unreadable for an expected reason, or empty.

    Raises:
        TelemetryEnvironmentError: The open or read failed for any other
            reason.
    """
    path = format_path(template, *args, **kwargs)
    try:
        with open(path, encoding="utf-8", errors="replace") as fh:
            line = fh.readline()
    except OSError as exc:
        if exc.errno in _ABSENT_ERRNOS:
            return None
        raise TelemetryEnvironmentError.from_oserror("cannot read", path, exc) from exc

    if not line:
        return None
    if line.endswith("\n"):
        line = line[:-1]
    return line


# ----------------------------------------------------------------------
# Numeric parsing
# ----------------------------------------------------------------------


def _split_number(text: str, base: int) -> tuple[bool, str, int]:
    """Split ``text`` into (negative, digits, base) following strtol rules."""
    if base != 0 and not 2 <= base <= 36:
        raise ValueError(f"invalid numeric base {base}")

    s = text.lstrip()
    negative = False
    if s[:1] in ("+", "-"):
        negative = s[0] == "-"
        s = s[1:]

    # "0x" only counts as a prefix when a hex digit follows it
    hex_prefix = s[:2].lower() == "0x" and s[2:3].lower() in tuple(_DIGITS[:16])
    if base in (0, 16) and hex_prefix:
        s = s[2:]
        base = 16
    elif base == 0:
        base = 8 if s.startswith("0") else 10

    valid = _DIGITS[:base]
    end = 0
    while end < len(s) and s[end].lower() in valid:
        end += 1
    return negative, s[:end], base


def parse_unsigned(text: str, base: int = 0) -> int:
    """Parse the leading unsigned integer of ``text``.

    Base ``0`` infers the base from the prefix (``0x`` hexadecimal, leading
    ``0`` octal, otherwise decimal).  Text that does not start with a number,
    a negative number and a value that overflows 64 bits all give ``0``.
    """
    negative, digits, base = _split_number(text, base)
    if not digits or negative:
        return 0
    value = int(digits, base)
    if value > UINT64_MAX:
        return 0
    return value


def parse_signed(text: str, base: int = 10) -> int:
    """Parse the leading signed integer of ``text``; ``0`` when unparseable."""
    negative, digits, base = _split_number(text, base)
    if not digits:
        return 0
    value = int(digits, base)
    if negative:
        value = -value
    if not INT64_MIN <= value <= INT64_MAX:
        return 0
    return value


def read_unsigned(
    template: str | os.PathLike[str], *args: Any, base: int = 0, **kwargs: Any
) -> int:
    """Read a pseudo-file holding an unsigned integer; ``0`` = unknown."""
    line = read_line(template, *args, **kwargs)
    if line is None:
        return 0
    return parse_unsigned(line, base)


def read_signed(
    template: str | os.PathLike[str], *args: Any, base: int = 10, **kwargs: Any
) -> int:
    """Read a pseudo-file holding a signed integer; ``0`` = unknown."""
    line = read_line(template, *args, **kwargs)
    if line is None:
        return 0
    return parse_signed(line, base)


# ----------------------------------------------------------------------
# Directory scanning
# ----------------------------------------------------------------------


class EntryType(enum.Flag):
    """Directory entry types, as reported by ``d_type``."""

    REGULAR = enum.auto()
    DIRECTORY = enum.auto()
    SYMLINK = enum.auto()
    OTHER = enum.auto()
    ANY = REGULAR | DIRECTORY | SYMLINK | OTHER


def entry_type(entry: os.DirEntry[str]) -> EntryType:
    """Classify a directory entry without following symlinks."""
    if entry.is_symlink():
        return EntryType.SYMLINK
    if entry.is_dir(follow_symlinks=False):
        return EntryType.DIRECTORY
    if entry.is_file(follow_symlinks=False):
        return EntryType.REGULAR
    return EntryType.OTHER


class DirectoryHandle:
    """A single forward-only pass over a directory.

    Use as a context manager so the underlying handle is released on every
    exit path::

        with DirectoryHandle.open("{}/thermal", root) as handle:
            while (entry := handle.next_entry(EntryType.DIRECTORY)) is not None:
                ...
    """

    def __init__(self, path: str, iterator: Iterator[os.DirEntry[str]]) -> None:
        self.path = path
        self._iterator = iterator
        self._closed = False

    @classmethod
    def open(
        cls, template: str | os.PathLike[str], *args: Any, **kwargs: Any
    ) -> DirectoryHandle:
        """Open a directory for scanning.

        Raises:
            TelemetryEnvironmentError: The directory cannot be opened.
        """
        path = format_path(template, *args, **kwargs)
        try:
            iterator = os.scandir(path)
        except OSError as exc:
            raise TelemetryEnvironmentError.from_oserror(
                "cannot open directory", path, exc
            ) from exc
        return cls(path, iterator)

    def next_entry(self, mask: EntryType = EntryType.ANY) -> os.DirEntry[str] | None:
        """Return the next entry whose type is in ``mask``, or None at the end."""
        if self._closed:
            return None
        while True:
            try:
                entry = next(self._iterator)
            except StopIteration:
                return None
            except OSError as exc:
                raise TelemetryEnvironmentError.from_oserror(
                    "cannot read directory", self.path, exc
                ) from exc

            if entry.name in (".", ".."):
                continue
            if entry_type(entry) & mask:
                return entry

    def entries(self, mask: EntryType = EntryType.ANY) -> Iterator[os.DirEntry[str]]:
        """Yield the remaining entries matching ``mask``."""
        while (entry := self.next_entry(mask)) is not None:
            yield entry

    def close(self) -> None:
        """Release the directory handle.  Calling it again does nothing."""
        if self._closed:
            return
        self._closed = True
        close = getattr(self._iterator, "close", None)
        if close is not None:
            close()

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed

    def __enter__(self) -> DirectoryHandle:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


open_directory = DirectoryHandle.open


def scan_directory(
    template: str | os.PathLike[str],
    *args: Any,
    mask: EntryType = EntryType.ANY,
    **kwargs: Any,
) -> Iterator[os.DirEntry[str]]:
    """Yield matching entries of a directory, opening and closing its own handle.

    Each call is an independent scan, so the result can be re-run freely.
    """
    with DirectoryHandle.open(template, *args, **kwargs) as handle:
        yield from handle.entries(mask)
