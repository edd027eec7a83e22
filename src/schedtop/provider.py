"""Process, accounting-text and quantum providers backed by psutil and /proc."""

import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import psutil
import structlog

from schedtop.models import ProcessInfo, ProcessStatus

log = structlog.get_logger(__name__)

DEFAULT_PROC_ROOT = Path("/proc")
DEFAULT_QUANTUM_PATH = DEFAULT_PROC_ROOT / "sys" / "kernel" / "sched_rr_timeslice_ms"


class ProcessProvider(Protocol):
    """Supplies the baseline live process list."""

    def processes(self) -> list[ProcessInfo]:
        """Return one entry per live pid."""
        ...


class PsutilProvider:
    """
    Process provider using psutil.process_iter().

    Handles NoSuchProcess, AccessDenied and ZombieProcess errors by skipping
    the affected process for this cycle.
    """

    ATTRS = ["pid", "name", "create_time", "memory_info", "status"]

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize the PsutilProvider.

        Args:
            clock: Wall clock used to derive run time from create_time.
        """
        self._clock = clock

    def processes(self) -> list[ProcessInfo]:
        """Collect provider entries for every process psutil can see."""
        now = self._clock()
        entries: list[ProcessInfo] = []

        for proc in psutil.process_iter(attrs=self.ATTRS):
            try:
                with proc.oneshot():
                    info = proc.info

                    create_time = info.get("create_time") or now
                    mem_info = info.get("memory_info")

                    entries.append(
                        ProcessInfo(
                            pid=info["pid"],
                            name=info.get("name") or "",
                            run_time=max(0, int(now - create_time)),
                            ram=mem_info.rss if mem_info else 0,
                            status=ProcessStatus.from_provider(info.get("status")),
                        )
                    )
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                log.debug("process_skipped", pid=proc.pid)
                continue

        return entries


class ProcStatReader:
    """Reads /proc/<pid>/stat, returning None when it cannot be read."""

    def __init__(self, proc_root: Path = DEFAULT_PROC_ROOT) -> None:
        self._proc_root = Path(proc_root)

    def __call__(self, pid: int) -> str | None:
        path = self._proc_root / str(pid) / "stat"
        try:
            # comm is raw bytes truncated by the kernel and may split a UTF-8 sequence
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            # The process most likely exited between enumeration and read
            log.debug("stat_unreadable", pid=pid, error=str(e))
            return None


class QuantumUnavailableError(RuntimeError):
    """The scheduling quantum could not be read; schedtop cannot start."""


def read_quantum(path: Path = DEFAULT_QUANTUM_PATH) -> int:
    """
    Read the round-robin scheduling quantum in milliseconds.

    Raises:
        QuantumUnavailableError: If the file is unreadable or not an integer.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise QuantumUnavailableError(f"Cannot read scheduling quantum from {path}: {e}") from e

    try:
        return int(text.strip())
    except ValueError as e:
        raise QuantumUnavailableError(
            f"Scheduling quantum in {path} is not an integer: {text.strip()!r}"
        ) from e
