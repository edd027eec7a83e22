"""Interactive session state: refresh deadline, filter editing and selection cursor."""

import time
from collections.abc import Callable

import structlog

from schedtop.filtering import FilterSortController
from schedtop.models import ProcessRecord
from schedtop.table import ProcessTable

log = structlog.get_logger(__name__)

DEFAULT_TICK_RATE = 1.0
MIN_TICK_RATE = 0.1

QUIT_KEY = "q"


class InteractiveSession:
    """
    Single owner of everything the UI shows.

    The session never blocks and never starts threads; the UI loop asks it how
    long to wait (``time_until_tick``), feeds it key events one at a time
    (``handle_key``) and calls ``tick`` once the deadline has passed.
    """

    def __init__(
        self,
        table: ProcessTable,
        controller: FilterSortController | None = None,
        tick_rate: float = DEFAULT_TICK_RATE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the InteractiveSession.

        Args:
            table: Reconciled process table to display.
            controller: Filter/sort state. Defaults to run time order, no filter.
            tick_rate: Seconds between table refreshes. Default 1.0s.
            clock: Monotonic clock used for the refresh deadline.
        """
        self._table = table
        self._controller = controller or FilterSortController()
        self._tick_rate = max(MIN_TICK_RATE, tick_rate)
        self._clock = clock
        self._deadline = clock() + self._tick_rate
        self._displayed: list[ProcessRecord] = []
        self._selected: int | None = None
        self._finished = False
        self.rederive()

    @property
    def table(self) -> ProcessTable:
        return self._table

    @property
    def controller(self) -> FilterSortController:
        return self._controller

    @property
    def tick_rate(self) -> float:
        return self._tick_rate

    @property
    def displayed(self) -> list[ProcessRecord]:
        """Records currently shown, in display order."""
        return self._displayed

    @property
    def selected(self) -> int | None:
        """Index of the highlighted row, or None when nothing is highlighted."""
        return self._selected

    @property
    def selected_record(self) -> ProcessRecord | None:
        if self._selected is None:
            return None
        return self._displayed[self._selected]

    @property
    def finished(self) -> bool:
        """Whether the quit key has been pressed."""
        return self._finished

    # Refresh deadline

    def time_until_tick(self, now: float | None = None) -> float:
        """Seconds until the next refresh is due, never negative."""
        now = self._clock() if now is None else now
        return max(0.0, self._deadline - now)

    def tick_due(self, now: float | None = None) -> bool:
        now = self._clock() if now is None else now
        return now >= self._deadline

    def tick(self, now: float | None = None) -> None:
        """Refresh the table, re-derive the display and reset the deadline."""
        self._table.refresh()
        self.rederive()
        now = self._clock() if now is None else now
        self._deadline = now + self._tick_rate

    # Display derivation

    def rederive(self) -> None:
        """Recompute the displayed rows and clamp the cursor to them."""
        self._displayed = self._controller.apply(self._table.records())
        if not self._displayed:
            self._selected = None
        elif self._selected is not None and self._selected >= len(self._displayed):
            self._selected = len(self._displayed) - 1

    # Cursor

    def select_next(self) -> None:
        """Move the cursor down, wrapping from the last row to the first."""
        count = len(self._displayed)
        if count == 0:
            self._selected = None
        elif self._selected is None or self._selected >= count - 1:
            self._selected = 0
        else:
            self._selected += 1

    def select_previous(self) -> None:
        """Move the cursor up, wrapping from the first row to the last."""
        count = len(self._displayed)
        if count == 0:
            self._selected = None
        elif self._selected is None:
            self._selected = 0
        elif self._selected == 0:
            self._selected = count - 1
        else:
            self._selected -= 1

    # Filter

    def type_char(self, char: str) -> None:
        self._controller.append(char)
        self.rederive()

    def delete_char(self) -> None:
        self._controller.backspace()
        self.rederive()

    def cycle_sort(self) -> None:
        sort_key = self._controller.cycle_sort()
        log.debug("sort_changed", sort=sort_key.value)
        self.rederive()

    def quit(self) -> None:
        self._finished = True

    def handle_key(self, key: str, character: str | None = None) -> bool:
        """
        Apply one key event.

        Args:
            key: Key name, e.g. ``"q"``, ``"up"``, ``"backspace"``.
            character: Printable character produced by the key, if any.

        Returns:
            True if the key was consumed.
        """
        if self._finished:
            return False

        if key == QUIT_KEY:
            self.quit()
        elif key == "down":
            self.select_next()
        elif key == "up":
            self.select_previous()
        elif key == "backspace":
            self.delete_char()
        elif key == "f6":
            self.cycle_sort()
        elif character is not None and character.isprintable() and len(character) == 1:
            self.type_char(character)
        else:
            return False
        return True
