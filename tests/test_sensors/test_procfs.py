"""Tests for the /proc/stat accounting reader."""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path

import pytest

from sysfs_telemetry.errors import TelemetryEnvironmentError
from sysfs_telemetry.sensors.procfs import CpuAccountingCounters, CpuStatReader

SAMPLE_STAT = """\
cpu  10000 500 3000 80000 200 100 50 10 5 1
cpu0 5000 250 1500 40000 100 50 25 5 3 1
cpu1 5000 250 1500 40000 100 50 25 5 2 0
intr 12345678 50 0 0 0 0 0 0 0
ctxt 98765432
btime 1700000000
processes 5000
procs_running 3
procs_blocked 1
softirq 4567890 12 3456 0 0 0 0 0 0 0 0
"""

SAMPLE_STAT_2 = """\
cpu  11000 600 3500 81000 250 120 60 15 5 1
cpu0 5500 300 1750 40500 125 60 30 7 3 1
cpu1 5500 300 1750 40500 125 60 30 8 2 0
intr 12346000 55 0 0 0 0 0 0 0
ctxt 98766000
btime 1700000000
processes 5010
procs_running 2
procs_blocked 0
softirq 4568000 12 3456 0 0 0 0 0 0 0 0
"""

# Linux 2.6.11 era: no guest columns, no softirq line
OLD_KERNEL_STAT = """\
cpu  10000 500 3000 80000 200 100 50 10
intr 12345
ctxt 678
"""


@pytest.fixture()
def fake_proc(tmp_path: Path) -> Path:
    """Create a fake /proc tree."""
    (tmp_path / "stat").write_text(SAMPLE_STAT)
    return tmp_path


class TestCapture:
    """Tests for CpuStatReader.capture()."""

    def test_jiffies(self, fake_proc: Path) -> None:
        counters = CpuStatReader(str(fake_proc)).capture()
        assert counters.user == 10000
        assert counters.nice == 500
        assert counters.system == 3000
        assert counters.idle == 80000
        assert counters.iowait == 200
        assert counters.irq == 100
        assert counters.softirq == 50
        assert counters.steal == 10
        assert counters.guest == 5
        assert counters.guest_nice == 1

    def test_event_totals(self, fake_proc: Path) -> None:
        counters = CpuStatReader(str(fake_proc)).capture()
        assert counters.ctxt == 98765432
        assert counters.intr == 12345678
        assert counters.softirqs == 4567890

    def test_jiffies_property(self, fake_proc: Path) -> None:
        counters = CpuStatReader(str(fake_proc)).capture()
        assert counters.jiffies == (10000, 500, 3000, 80000, 200, 100, 50, 10, 5, 1)

    def test_immutable(self, fake_proc: Path) -> None:
        counters = CpuStatReader(str(fake_proc)).capture()
        with pytest.raises(AttributeError):
            counters.user = 0  # type: ignore[misc]

    def test_old_kernel_defaults_to_zero(self, tmp_path: Path) -> None:
        (tmp_path / "stat").write_text(OLD_KERNEL_STAT)
        counters = CpuStatReader(str(tmp_path)).capture()
        assert counters.steal == 10
        assert counters.guest == 0
        assert counters.guest_nice == 0
        assert counters.ctxt == 678
        assert counters.intr == 12345
        assert counters.softirqs == 0

    def test_sequential_captures_are_monotonic(self, fake_proc: Path) -> None:
        reader = CpuStatReader(str(fake_proc))
        first = reader.capture()
        (fake_proc / "stat").write_text(SAMPLE_STAT_2)
        second = reader.capture()
        for f in fields(CpuAccountingCounters):
            assert getattr(second, f.name) >= getattr(first, f.name)

    def test_idempotent(self, fake_proc: Path) -> None:
        reader = CpuStatReader(str(fake_proc))
        assert reader.capture() == reader.capture()

    def test_missing_stat_is_fatal(self, tmp_path: Path) -> None:
        reader = CpuStatReader(str(tmp_path / "nonexistent"))
        with pytest.raises(TelemetryEnvironmentError) as excinfo:
            reader.capture()
        assert excinfo.value.path.endswith("stat")
        assert excinfo.value.strerror

    def test_empty_stat_is_fatal(self, tmp_path: Path) -> None:
        (tmp_path / "stat").write_text("")
        with pytest.raises(TelemetryEnvironmentError):
            CpuStatReader(str(tmp_path)).capture()

    def test_first_line_not_cpu_is_fatal(self, tmp_path: Path) -> None:
        (tmp_path / "stat").write_text("intr 1\n" + SAMPLE_STAT)
        with pytest.raises(TelemetryEnvironmentError, match="aggregate cpu line"):
            CpuStatReader(str(tmp_path)).capture()

    def test_unparseable_cpu_line_is_fatal(self, tmp_path: Path) -> None:
        (tmp_path / "stat").write_text("cpu  a b c d\nctxt 1\n")
        with pytest.raises(TelemetryEnvironmentError, match="unexpected line"):
            CpuStatReader(str(tmp_path)).capture()

    def test_truncated_cpu_line_is_fatal(self, tmp_path: Path) -> None:
        (tmp_path / "stat").write_text("cpu  1 2 3\n")
        with pytest.raises(TelemetryEnvironmentError):
            CpuStatReader(str(tmp_path)).capture()

    def test_undecodable_bytes_are_tolerated(self, tmp_path: Path) -> None:
        (tmp_path / "stat").write_bytes(b"cpu  1 2 3 4\nintr \xff\xfe\nctxt 9\n")
        counters = CpuStatReader(tmp_path).capture()
        assert counters.idle == 4
        assert counters.intr == 0
        assert counters.ctxt == 9

    def test_non_ascii_digit_event_is_zero(self, tmp_path: Path) -> None:
        (tmp_path / "stat").write_text("cpu  1 2 3 4\nctxt ²\n", encoding="utf-8")
        assert CpuStatReader(str(tmp_path)).capture().ctxt == 0

    @pytest.mark.skipif(not Path("/proc/stat").exists(), reason="requires Linux procfs")
    def test_live_system_is_monotonic(self) -> None:
        reader = CpuStatReader()
        first = reader.capture()
        second = reader.capture()
        for f in fields(CpuAccountingCounters):
            assert getattr(second, f.name) >= getattr(first, f.name)


class TestCapturePerCpu:
    """Tests for CpuStatReader.capture_per_cpu()."""

    def test_per_cpu(self, fake_proc: Path) -> None:
        per_cpu = CpuStatReader(str(fake_proc)).capture_per_cpu()
        assert sorted(per_cpu) == [0, 1]
        assert per_cpu[0].user == 5000
        assert per_cpu[0].guest == 3
        assert per_cpu[1].guest_nice == 0

    def test_per_cpu_has_no_event_totals(self, fake_proc: Path) -> None:
        per_cpu = CpuStatReader(str(fake_proc)).capture_per_cpu()
        assert per_cpu[0].ctxt == 0
        assert per_cpu[0].intr == 0

    def test_non_ascii_digit_label_is_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "stat").write_text(
            SAMPLE_STAT + "cpu² 1 2 3 4\n", encoding="utf-8"
        )
        assert sorted(CpuStatReader(str(tmp_path)).capture_per_cpu()) == [0, 1]

    def test_missing_stat_is_fatal(self, tmp_path: Path) -> None:
        with pytest.raises(TelemetryEnvironmentError):
            CpuStatReader(str(tmp_path)).capture_per_cpu()
