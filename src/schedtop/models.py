"""Data models for schedtop."""

from collections.abc import Callable
from dataclasses import dataclass, fields, replace
from enum import Enum

from schedtop.stat import SchedFields, parse_stat


class ProcessStatus(Enum):
    """Lifecycle status of a process as reported by the provider."""

    RUNNING = "Running"
    SLEEPING = "Sleeping"
    IDLE = "Idle"
    ZOMBIE = "Zombie"
    DEAD = "Dead"
    UNKNOWN = "Unknown"

    @property
    def is_terminal(self) -> bool:
        """Whether the process is gone for display purposes."""
        return self in (ProcessStatus.DEAD, ProcessStatus.ZOMBIE)

    @classmethod
    def from_provider(cls, status: str | None) -> "ProcessStatus":
        """Map a psutil status string onto a ProcessStatus."""
        return _PROVIDER_STATUS.get(status or "", cls.UNKNOWN)

    def __str__(self) -> str:
        return self.value


_PROVIDER_STATUS = {
    "running": ProcessStatus.RUNNING,
    "sleeping": ProcessStatus.SLEEPING,
    "disk-sleep": ProcessStatus.SLEEPING,
    "idle": ProcessStatus.IDLE,
    "zombie": ProcessStatus.ZOMBIE,
    "dead": ProcessStatus.DEAD,
}


@dataclass(slots=True, frozen=True)
class ProcessInfo:
    """Immutable provider view of one live process."""

    pid: int
    name: str
    run_time: int  # Seconds since the process started
    ram: int  # Resident bytes
    status: ProcessStatus


def merge_sched_fields(current: SchedFields, parsed: SchedFields | None) -> SchedFields:
    """Keep every resolved field of ``current``, fill only the unresolved ones."""
    if parsed is None:
        return current
    updates = {
        f.name: getattr(parsed, f.name)
        for f in fields(current)
        if getattr(current, f.name) is None and getattr(parsed, f.name) is not None
    }
    return replace(current, **updates) if updates else current


StatReader = Callable[[int], str | None]


@dataclass(slots=True)
class ProcessRecord:
    """A process tracked across refresh cycles.

    Provider-sourced fields are overwritten on every cycle. Scheduling fields
    start unresolved and become sticky once a value has been read.
    """

    name: str
    pid: int
    run_time: int
    ram: int
    status: ProcessStatus | None = None
    nice: int | None = None
    priority: int | None = None
    rt_priority: int | None = None

    @staticmethod
    def builder() -> "ProcessRecordBuilder":
        """Start building a record."""
        return ProcessRecordBuilder()

    @property
    def sched(self) -> SchedFields:
        """Current scheduling fields."""
        return SchedFields(priority=self.priority, nice=self.nice, rt_priority=self.rt_priority)

    @property
    def is_resolved(self) -> bool:
        """Whether every scheduling field holds a value."""
        return self.sched.is_complete

    def update_from(self, info: ProcessInfo) -> None:
        """Overwrite provider-sourced fields, leaving scheduling fields untouched."""
        self.name = info.name
        self.run_time = info.run_time
        self.ram = info.ram
        self.status = info.status

    def refresh(self, read_stat: StatReader) -> bool:
        """
        Try to resolve any unresolved scheduling field.

        Args:
            read_stat: Returns the raw accounting text for a pid, or None
                when it cannot be read this cycle.

        Returns:
            True if at least one field was filled in.
        """
        if self.is_resolved:
            return False

        text = read_stat(self.pid)
        if text is None:
            return False

        current = self.sched
        merged = merge_sched_fields(current, parse_stat(text))
        if merged == current:
            return False

        self.priority = merged.priority
        self.nice = merged.nice
        self.rt_priority = merged.rt_priority
        return True


class IncompleteRecordError(ValueError):
    """Raised when a record is built without all required fields."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"ProcessRecord is missing required fields: {', '.join(missing)}")


class ProcessRecordBuilder:
    """Chainable builder for ProcessRecord."""

    REQUIRED = ("name", "pid", "run_time", "ram")

    def __init__(self) -> None:
        self._name: str | None = None
        self._pid: int | None = None
        self._run_time: int | None = None
        self._ram: int | None = None
        self._status: ProcessStatus | None = None

    def name(self, name: str) -> "ProcessRecordBuilder":
        self._name = name
        return self

    def pid(self, pid: int) -> "ProcessRecordBuilder":
        self._pid = pid
        return self

    def run_time(self, run_time: int) -> "ProcessRecordBuilder":
        self._run_time = run_time
        return self

    def ram(self, ram: int) -> "ProcessRecordBuilder":
        self._ram = ram
        return self

    def status(self, status: ProcessStatus | None) -> "ProcessRecordBuilder":
        self._status = status
        return self

    @classmethod
    def from_info(cls, info: ProcessInfo) -> "ProcessRecordBuilder":
        """Pre-populate a builder from a provider entry."""
        return (
            cls()
            .name(info.name)
            .pid(info.pid)
            .run_time(info.run_time)
            .ram(info.ram)
            .status(info.status)
        )

    def missing(self) -> list[str]:
        """Names of required fields that have not been set."""
        return [field for field in self.REQUIRED if getattr(self, f"_{field}") is None]

    def build(self) -> ProcessRecord:
        """
        Construct the record.

        Raises:
            IncompleteRecordError: If any required field is unset.
        """
        missing = self.missing()
        if missing:
            raise IncompleteRecordError(missing)
        return ProcessRecord(
            name=self._name,
            pid=self._pid,
            run_time=self._run_time,
            ram=self._ram,
            status=self._status,
        )
