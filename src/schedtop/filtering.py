"""Sorting and filtering of the displayed process list."""

from collections.abc import Iterable
from enum import Enum

from schedtop.models import ProcessRecord


class SortKey(Enum):
    """Sort keys for the process table. All sorts are ascending."""

    RUN_TIME = "run_time"
    PID = "pid"
    NAME = "name"
    RAM = "ram"


_SORT_FUNCS = {
    SortKey.RUN_TIME: lambda r: (r.run_time, r.pid),
    SortKey.PID: lambda r: r.pid,
    SortKey.NAME: lambda r: (r.name.lower(), r.pid),
    SortKey.RAM: lambda r: (r.ram, r.pid),
}


def matches(record: ProcessRecord, needle: str) -> bool:
    """
    Whether a record matches the filter text.

    Names match case-insensitively (``str.lower`` on both sides); pids match
    as a substring of their decimal form. An empty needle matches everything.
    """
    if not needle:
        return True
    needle = needle.lower()
    return needle in record.name.lower() or needle in str(record.pid)


class FilterSortController:
    """Derives the displayed, ordered subset of records from a sort key and filter text."""

    def __init__(self, filter_text: str = "", sort_key: SortKey = SortKey.RUN_TIME) -> None:
        self._filter_text = filter_text
        self._sort_key = sort_key

    @property
    def filter_text(self) -> str:
        """Current filter text."""
        return self._filter_text

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        current_index = keys.index(self._sort_key)
        self._sort_key = keys[(current_index + 1) % len(keys)]
        return self._sort_key

    def append(self, char: str) -> None:
        """Append a character to the filter text."""
        self._filter_text += char

    def backspace(self) -> None:
        """Remove the last character of the filter text, if any."""
        self._filter_text = self._filter_text[:-1]

    def apply(self, records: Iterable[ProcessRecord]) -> list[ProcessRecord]:
        """Return a new sorted, filtered list; ``records`` is left untouched."""
        ordered = sorted(records, key=_SORT_FUNCS[self._sort_key])
        if not self._filter_text:
            return ordered
        return [record for record in ordered if matches(record, self._filter_text)]
