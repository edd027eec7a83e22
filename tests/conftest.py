"""Shared fixtures: an in-memory process provider and synthetic stat records."""

import pytest

from schedtop.models import ProcessInfo, ProcessStatus
from schedtop.stat import NICE_INDEX, PRIORITY_INDEX, RT_PRIORITY_INDEX


def make_stat(
    pid: int,
    comm: str = "proc",
    priority: int | str = 20,
    nice: int | str = 0,
    rt_priority: int | str = 0,
    length: int = 52,
) -> str:
    """Build a /proc/<pid>/stat line with the scheduling columns filled in."""
    tokens = [str(pid), f"({comm})", "S"] + ["0"] * (length - 3)
    columns = {PRIORITY_INDEX: priority, NICE_INDEX: nice, RT_PRIORITY_INDEX: rt_priority}
    for index, value in columns.items():
        if index < length:
            tokens[index] = str(value)
    return " ".join(tokens) + "\n"


def make_info(
    pid: int,
    name: str = "proc",
    run_time: int = 10,
    ram: int = 1024 * 1024,
    status: ProcessStatus = ProcessStatus.RUNNING,
) -> ProcessInfo:
    return ProcessInfo(pid=pid, name=name, run_time=run_time, ram=ram, status=status)


class FakeProvider:
    """Process provider returning whatever the test last assigned."""

    def __init__(self, entries: list[ProcessInfo] | None = None) -> None:
        self.entries = list(entries or [])
        self.calls = 0

    def processes(self) -> list[ProcessInfo]:
        self.calls += 1
        return list(self.entries)


class FakeStatReader:
    """Dict-backed stat reader; missing pids read as None."""

    def __init__(self, texts: dict[int, str] | None = None) -> None:
        self.texts = dict(texts or {})
        self.reads: list[int] = []

    def __call__(self, pid: int) -> str | None:
        self.reads.append(pid)
        return self.texts.get(pid)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def stat_reader() -> FakeStatReader:
    return FakeStatReader()
