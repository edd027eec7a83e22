"""Tests for the psutil provider, the /proc stat reader and the quantum reader."""

import os

import pytest
from conftest import FakeProvider, make_info, make_stat

from schedtop.models import ProcessInfo, ProcessStatus
from schedtop.provider import (
    ProcStatReader,
    PsutilProvider,
    QuantumUnavailableError,
    read_quantum,
)
from schedtop.table import ProcessTable


class TestPsutilProvider:
    """Tests for PsutilProvider against the live system."""

    def test_returns_process_infos(self):
        """Test the provider lists live processes with the expected types."""
        entries = PsutilProvider().processes()

        assert len(entries) > 0
        for info in entries[:20]:
            assert isinstance(info, ProcessInfo)
            assert isinstance(info.pid, int)
            assert isinstance(info.name, str)
            assert isinstance(info.run_time, int)
            assert info.run_time >= 0
            assert isinstance(info.ram, int)
            assert isinstance(info.status, ProcessStatus)

    def test_includes_current_process(self):
        """Test the test runner itself is reported with non-zero RAM."""
        entries = {info.pid: info for info in PsutilProvider().processes()}

        assert os.getpid() in entries
        assert entries[os.getpid()].ram > 0

    def test_run_time_uses_clock(self):
        """Test run time is derived from the injected clock."""
        far_future = PsutilProvider(clock=lambda: 4_000_000_000.0)
        entries = {info.pid: info for info in far_future.processes()}

        assert entries[os.getpid()].run_time > 1_000_000


class TestProcStatReader:
    """Tests for ProcStatReader."""

    def test_reads_stat_file(self, tmp_path):
        (tmp_path / "42").mkdir()
        (tmp_path / "42" / "stat").write_text(make_stat(42, nice=5))

        text = ProcStatReader(tmp_path)(42)

        assert text is not None
        assert text.startswith("42 (proc)")

    def test_missing_pid_returns_none(self, tmp_path):
        """Test a vanished process reads as None instead of raising."""
        assert ProcStatReader(tmp_path)(99999) is None

    def test_undecodable_comm_is_replaced(self, tmp_path):
        """Test a comm holding a split UTF-8 sequence still reads as text."""
        (tmp_path / "5").mkdir()
        raw = make_stat(5, comm="COMM", nice=-3).encode().replace(b"COMM", b"\xffbad")
        (tmp_path / "5" / "stat").write_bytes(raw)

        text = ProcStatReader(tmp_path)(5)

        assert text is not None
        assert text.startswith("5 (\ufffdbad)")

    def test_undecodable_comm_still_resolves_fields(self, tmp_path):
        (tmp_path / "5").mkdir()
        raw = make_stat(5, comm="COMM", priority=15, nice=-3).encode().replace(b"COMM", b"\xffbad")
        (tmp_path / "5" / "stat").write_bytes(raw)
        table = ProcessTable(FakeProvider([make_info(5)]), ProcStatReader(tmp_path), quantum=100)

        table.refresh()

        assert table[5].priority == 15
        assert table[5].nice == -3

    @pytest.mark.skipif(not os.path.exists("/proc/self/stat"), reason="requires procfs")
    def test_reads_own_stat(self):
        text = ProcStatReader()(os.getpid())

        assert text is not None
        assert text.startswith(f"{os.getpid()} (")


class TestReadQuantum:
    """Tests for read_quantum."""

    def test_reads_integer(self, tmp_path):
        path = tmp_path / "sched_rr_timeslice_ms"
        path.write_text("100\n")

        assert read_quantum(path) == 100

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(QuantumUnavailableError, match="Cannot read"):
            read_quantum(tmp_path / "missing")

    def test_garbage_is_fatal(self, tmp_path):
        path = tmp_path / "sched_rr_timeslice_ms"
        path.write_text("fast\n")

        with pytest.raises(QuantumUnavailableError, match="not an integer"):
            read_quantum(path)

    def test_undecodable_file_is_fatal(self, tmp_path):
        path = tmp_path / "sched_rr_timeslice_ms"
        path.write_bytes(b"\xff\xfe\n")

        with pytest.raises(QuantumUnavailableError):
            read_quantum(path)
