"""killport - Interactive Textual front end."""

from textual import work
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from killport.killer import kill_port
from killport.models import ProcessRecord, TerminationResult
from killport.resolver import find_processes


class PortHeader(Static):
    """Header line showing the port and the outcome of the last kill."""

    DEFAULT_CSS = """
    PortHeader {
        height: auto;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, port: int, *args, **kwargs) -> None:
        """Initialize PortHeader."""
        super().__init__(*args, **kwargs)
        self._port = port

    def show_count(self, count: int) -> None:
        """Show how many processes currently hold the port."""
        if count == 0:
            self.update(f"Port [b]{self._port}[/b] is free")
        else:
            self.update(f"[b]{count}[/b] process(es) on port [b]{self._port}[/b] - press [b]k[/b] to kill")

    def show_result(self, result: TerminationResult) -> None:
        """Show the killed and failed PIDs of a kill pass."""
        text = f"Killed [green]{len(result.killed)}[/green]"
        if result.failed:
            failed = ", ".join(map(str, result.failed))
            text += f", failed [red]{len(result.failed)}[/red] ({failed}) - try with sudo"
        self.update(text)


class ProcessTable(Container):
    """Container for the table of processes holding the port."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("PPID", key="ppid", width=8)
        table.add_column("USER", key="user", width=10)
        table.add_column("S", key="state", width=4)
        table.add_column("NAME", key="name", width=16)
        table.add_column("CHILDREN", key="children", width=16)
        table.add_column("Command", key="command")

    def show_processes(self, records: list[ProcessRecord]) -> None:
        """Replace the table contents with `records`."""
        table = self.query_one("#process-table", DataTable)
        table.clear()
        for record in records:
            table.add_row(
                str(record.pid),
                str(record.parent_pid),
                record.owner[:10],
                record.state,
                record.name[:16],
                ",".join(map(str, record.children)),
                record.command_line[:80],
                key=str(record.pid),
            )


class KillPortApp(App[TerminationResult | None]):
    """Review the processes on a port before killing them."""

    TITLE = "killport"

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("k", "kill", "Kill"),
        ("r", "rescan", "Rescan"),
    ]

    def __init__(self, port: int, records: list[ProcessRecord]) -> None:
        """
        Initialize the KillPortApp.

        Args:
            port: The port being freed.
            records: Processes already discovered on the port.
        """
        super().__init__()
        self.sub_title = f"port {port}"
        self._port = port
        self._records = records
        self.result: TerminationResult | None = None

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield PortHeader(self._port, id="port-header")
        yield ProcessTable()
        yield Footer()

    def on_mount(self) -> None:
        """Fill the table with the discovered processes."""
        self._show_records(self._records)

    def _show_records(self, records: list[ProcessRecord]) -> None:
        self._records = records
        self.query_one(ProcessTable).show_processes(records)
        self.query_one("#port-header", PortHeader).show_count(len(records))

    def _show_result(self, result: TerminationResult) -> None:
        self.result = result
        self.query_one("#port-header", PortHeader).show_result(result)
        self.notify(f"Killed {len(result.killed)}, failed {len(result.failed)}")

    def action_kill(self) -> None:
        """Kill every process tree on the port."""
        if not self._records:
            self.notify("Nothing to kill")
            return
        self._kill_worker(list(self._records))

    def action_rescan(self) -> None:
        """Look up the processes on the port again."""
        self._rescan_worker()

    @work(thread=True, exclusive=True, group="port")
    def _kill_worker(self, records: list[ProcessRecord]) -> None:
        # The termination engine blocks on its grace periods
        result = kill_port(self._port, records=records)
        remaining = find_processes(self._port)
        self.call_from_thread(self._show_records, remaining)
        self.call_from_thread(self._show_result, result)

    @work(thread=True, exclusive=True, group="port")
    def _rescan_worker(self) -> None:
        records = find_processes(self._port)
        self.call_from_thread(self._show_records, records)

    def action_quit(self) -> None:
        """Exit, handing back the result of the last kill."""
        self.exit(self.result)
