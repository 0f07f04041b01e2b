"""Scan panel component for displaying probe results as they arrive."""

import logging
import subprocess
import sys

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import DataTable, Label, Static

from ..models.scan_result import ProbeOutcome, ProbeStatus, ScanResult

logger = logging.getLogger(__name__)


class ScanPanel(Static):
    """Panel listing responsive hosts; implements the scanner's observer interface."""

    BINDINGS = [
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("c", "copy_ip", "Copy IP", show=True),
    ]

    DEFAULT_CSS = """
    ScanPanel {
        height: 1fr;
        border: solid $primary;
        padding: 0 1;
    }

    ScanPanel #scan-header {
        text-style: bold;
        color: $text;
        padding: 0 0 1 0;
    }

    ScanPanel #scan-status {
        color: $text-muted;
        padding: 0 0 1 0;
    }

    ScanPanel #scan-error {
        color: $error;
    }

    ScanPanel #scan-copy-status {
        color: $success;
    }

    ScanPanel DataTable {
        height: 1fr;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self._scanning = False
        self._target = ""
        self._probed = 0
        self._up = 0
        self._result: ScanResult | None = None
        self._rows: list[ProbeOutcome] = []

    def compose(self) -> ComposeResult:
        yield Label("Network Host Discovery", id="scan-header")
        yield Label("[dim]Enter a target such as 192.168.1.0/24[/dim]", id="scan-status")
        yield Label("", id="scan-copy-status")
        yield Label("", id="scan-error")
        with VerticalScroll():
            yield DataTable(id="scan-table")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.add_columns("Status", "IP Address", "Replies", "Detail")
        table.cursor_type = "row"
        table.zebra_stripes = True

    @property
    def scanning(self) -> bool:
        return self._scanning

    def start(self, target: str) -> None:
        """Reset the panel for a new scan."""
        self._scanning = True
        self._target = target
        self._probed = 0
        self._up = 0
        self._result = None
        self._rows = []
        self.query_one(DataTable).clear()
        self.query_one("#scan-error", Label).update("")
        self.query_one("#scan-copy-status", Label).update("")
        self.query_one("#scan-status", Label).update(f"Scanning {escape(target)}...")

    def stop(self) -> None:
        """Mark the scan as finished so a new one may start."""
        self._scanning = False

    def set_error(self, error: str) -> None:
        """Display an error message."""
        self._scanning = False
        self.query_one("#scan-error", Label).update(f"[red]{escape(error)}[/red]")
        self.query_one("#scan-status", Label).update("")

    def on_probe_result(self, outcome: ProbeOutcome) -> None:
        self._probed += 1
        if outcome.reachable:
            self._up += 1
        if outcome.status != ProbeStatus.DOWN:
            self._rows.append(outcome)
            self.query_one(DataTable).add_row(
                self._get_status_display(outcome),
                outcome.ip,
                str(outcome.replies),
                escape(outcome.error or ""),
            )
        self.query_one("#scan-status", Label).update(
            f"Scanning {escape(self._target)}... [green]{self._up} up[/green] [dim]/ {self._probed} probed[/dim]"
        )

    def on_scan_complete(self, result: ScanResult) -> None:
        """Show the summary and re-list hosts in address order."""
        self._scanning = False
        self._result = result

        status_parts = [
            f"[green]{len(result.reachable_addresses)} up[/green]",
            f"[red]{result.unreachable_count} down[/red]",
        ]
        if result.failed_probes:
            status_parts.append(f"[yellow]{len(result.failed_probes)} failed[/yellow]")
        status_parts.append(f"[dim]{result.total_probed} probed in {result.target}[/dim]")
        if result.cancelled:
            status_parts.append("[yellow]cancelled[/yellow]")
        self.query_one("#scan-status", Label).update(" | ".join(status_parts))

        table = self.query_one(DataTable)
        table.clear()
        self._rows.sort(key=lambda o: o.address)
        for outcome in self._rows:
            table.add_row(
                self._get_status_display(outcome),
                outcome.ip,
                str(outcome.replies),
                escape(outcome.error or ""),
            )

    def _get_status_display(self, outcome: ProbeOutcome) -> str:
        """Get status icon for an outcome."""
        if outcome.status == ProbeStatus.ERROR:
            return "[yellow]● FAILED[/yellow]"
        elif outcome.status == ProbeStatus.UP:
            return "[green]● UP[/green]"
        return "[red]● DOWN[/red]"

    def action_cursor_down(self) -> None:
        self.query_one(DataTable).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one(DataTable).action_cursor_up()

    def action_copy_ip(self) -> None:
        """Copy the selected host's IP address to clipboard."""
        cursor_row = self.query_one(DataTable).cursor_row
        if cursor_row is None or cursor_row >= len(self._rows):
            return

        ip = self._rows[cursor_row].ip
        if self._copy_to_clipboard(ip):
            self.query_one("#scan-copy-status", Label).update(f"[green]Copied IP: {ip}[/green]")
        else:
            self.query_one("#scan-copy-status", Label).update("[yellow]Clipboard unavailable[/yellow]")
        self.set_timer(2, self._clear_copy_status)

    def _clear_copy_status(self) -> None:
        self.query_one("#scan-copy-status", Label).update("")

    def _copy_to_clipboard(self, text: str) -> bool:
        """Copy text to system clipboard."""
        if sys.platform == "darwin":
            commands = [["pbcopy"]]
        elif sys.platform == "win32":
            commands = [["clip"]]
        else:
            commands = [["xclip", "-selection", "clipboard"], ["xsel", "--clipboard", "--input"]]

        for cmd in commands:
            try:
                subprocess.run(cmd, input=text.encode(), check=True, capture_output=True)
                return True
            except (FileNotFoundError, subprocess.CalledProcessError) as e:
                logger.debug(f"Clipboard command {cmd[0]} failed: {e}")
        return False
