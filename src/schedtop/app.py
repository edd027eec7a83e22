"""schedtop - Main Textual application."""

from rich.markup import escape
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.timer import Timer
from textual.widgets import DataTable, Static

from schedtop.models import ProcessRecord
from schedtop.session import InteractiveSession

HEADERS = ("PID", "Name", "Status", "Nice", "Priority", "RT Priority", "RAM", "Run Time")
COLUMN_KEYS = tuple(label.lower().replace(" ", "_") for label in HEADERS)
COLUMN_WIDTHS = (8, None, 10, 6, 9, 12, 11, 10)


def format_ram(size: int) -> str:
    """Format resident bytes as megabytes with one decimal place."""
    return f"{size / 1024 / 1024:.1f} MB"


def render_row(record: ProcessRecord) -> tuple[str, ...]:
    """Cells for one record; unresolved fields render as placeholders."""
    return (
        str(record.pid),
        record.name,
        str(record.status) if record.status is not None else "Unknown",
        str(record.nice if record.nice is not None else 0),
        str(record.priority if record.priority is not None else 0),
        str(record.rt_priority if record.rt_priority is not None else 0),
        format_ram(record.ram),
        str(record.run_time),
    )


class ProcessView(Container):
    """Bordered process table. Row order and highlight come from the session."""

    DEFAULT_CSS = """
    ProcessView {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessView."""
        super().__init__(*args, **kwargs)
        self._current_keys: set[str] = set()

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        table: DataTable = DataTable(id="process-table")
        # Keys go to the session, not to the table's own cursor bindings
        table.can_focus = False
        yield table

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        self.border_title = "schedtop"
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        for label, key, width in zip(HEADERS, COLUMN_KEYS, COLUMN_WIDTHS):
            table.add_column(label, key=key, width=width)

    def show(self, records: list[ProcessRecord], selected: int | None) -> None:
        """
        Show ``records`` in order and highlight ``selected``.

        Uses update_cell for rows that are already present and only adds or
        removes the rows whose pids changed.
        """
        table = self.query_one("#process-table", DataTable)
        new_keys = [str(record.pid) for record in records]

        for row_key in self._current_keys - set(new_keys):
            table.remove_row(row_key)

        for row_key, record in zip(new_keys, records):
            cells = [Text(cell) for cell in render_row(record)]
            if row_key in self._current_keys:
                for column_key, cell in zip(COLUMN_KEYS, cells):
                    table.update_cell(row_key, column_key, cell)
            else:
                table.add_row(*cells, key=row_key)

        self._current_keys = set(new_keys)

        if [row.key.value for row in table.ordered_rows] != new_keys:
            position = {row_key: index for index, row_key in enumerate(new_keys)}
            table.sort("pid", key=lambda pid: position[str(pid)])

        table.show_cursor = selected is not None
        if selected is not None:
            table.move_cursor(row=selected)


class StatusLine(Static):
    """One-line summary of filter, sort order and quantum."""

    DEFAULT_CSS = """
    StatusLine {
        height: 1;
        padding: 0 1;
        background: $surface;
    }
    """

    def show(self, session: InteractiveSession) -> None:
        controller = session.controller
        shown = len(session.displayed)
        total = len(session.table)
        self.update(
            f"Filter: [bold]{escape(controller.filter_text) or '-'}[/bold]  "
            f"Sort: {controller.sort_key.value}  "
            f"Rows: {shown}/{total}  "
            f"Quantum: {session.table.quantum} ms  "
            "[dim]q quit, ↑/↓ select, F6 sort, type to filter[/dim]"
        )


class SchedtopApp(App):
    """
    Main schedtop application.

    Textual's event loop is the session's single-threaded control loop: each
    wake-up is either one key event or the refresh timer, which is re-armed
    for the time remaining until the session's next deadline.
    """

    TITLE = "schedtop"
    SUB_TITLE = "Process scheduling monitor"

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    def __init__(self, session: InteractiveSession) -> None:
        """Initialize the SchedtopApp."""
        super().__init__()
        self._session = session
        self._tick_timer: Timer | None = None

    @property
    def session(self) -> InteractiveSession:
        return self._session

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield ProcessView()
        yield StatusLine(id="status-line")

    def on_mount(self) -> None:
        """Load the first snapshot and arm the refresh timer."""
        self._session.tick()
        self._render_session()
        self._arm_timer()

    def _arm_timer(self) -> None:
        self._tick_timer = self.set_timer(self._session.time_until_tick(), self._on_tick)

    def _on_tick(self) -> None:
        """Refresh the table once the deadline has elapsed, then re-arm."""
        if self._session.finished:
            return
        if self._session.tick_due():
            self._session.tick()
            self._render_session()
        self._arm_timer()

    def on_key(self, event: events.Key) -> None:
        """Feed one key event to the session."""
        if not self._session.handle_key(event.key, event.character):
            return
        event.stop()
        if self._session.finished:
            self.action_quit()
            return
        self._render_session()

    def _render_session(self) -> None:
        self.query_one(ProcessView).show(self._session.displayed, self._session.selected)
        self.query_one("#status-line", StatusLine).show(self._session)

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        if self._tick_timer is not None:
            self._tick_timer.stop()
            self._tick_timer = None
        self._session.quit()
        self.exit()
