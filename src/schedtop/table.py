"""Process table reconciliation engine."""

from collections.abc import Iterator
from dataclasses import dataclass

import structlog

from schedtop.models import ProcessRecord, ProcessRecordBuilder, StatReader
from schedtop.provider import ProcessProvider

log = structlog.get_logger(__name__)


@dataclass(slots=True)
class RefreshStats:
    """Summary of one reconciliation pass."""

    added: int = 0
    updated: int = 0
    removed: int = 0


class ProcessTable:
    """
    Owns the pid -> ProcessRecord mapping.

    Each refresh reconciles the mapping against the provider's live set: pids
    that disappeared or report a terminal status are dropped, new pids are
    inserted and known pids are updated in place so that scheduling fields
    already resolved are kept.
    """

    def __init__(self, provider: ProcessProvider, read_stat: StatReader, quantum: int) -> None:
        """
        Initialize the ProcessTable.

        Args:
            provider: Source of the live process list.
            read_stat: Returns raw accounting text for a pid, or None.
            quantum: Scheduling quantum in milliseconds, read once at startup.
        """
        self._provider = provider
        self._read_stat = read_stat
        self._quantum = quantum
        self._records: dict[int, ProcessRecord] = {}

    @property
    def quantum(self) -> int:
        """Scheduling quantum in milliseconds."""
        return self._quantum

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, pid: object) -> bool:
        return pid in self._records

    def __getitem__(self, pid: int) -> ProcessRecord:
        return self._records[pid]

    def __iter__(self) -> Iterator[ProcessRecord]:
        return iter(self._records.values())

    def pids(self) -> set[int]:
        """Set of tracked pids."""
        return set(self._records)

    def records(self) -> list[ProcessRecord]:
        """Tracked records in no particular order."""
        return list(self._records.values())

    def refresh(self) -> RefreshStats:
        """Reconcile the table against one provider snapshot."""
        stats = RefreshStats()
        live = {info.pid: info for info in self._provider.processes()}

        # Processes that exited since the previous cycle
        for pid in self._records.keys() - live.keys():
            del self._records[pid]
            stats.removed += 1

        for pid, info in live.items():
            if info.status.is_terminal:
                if self._records.pop(pid, None) is not None:
                    stats.removed += 1
                continue

            record = self._records.get(pid)
            if record is None:
                record = ProcessRecordBuilder.from_info(info).build()
                self._records[pid] = record
                stats.added += 1
            else:
                record.update_from(info)
                stats.updated += 1
            record.refresh(self._read_stat)

        log.debug(
            "table_refreshed",
            tracked=len(self._records),
            added=stats.added,
            updated=stats.updated,
            removed=stats.removed,
        )
        return stats
