"""Status bar component showing scan activity and keyboard hints."""

from datetime import datetime

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Static


class StatusBar(Horizontal):
    """Bottom status bar with time, scan timing, and keyboard hints."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        background: $surface-darken-1;
        color: $text-muted;
        padding: 0 1;
        width: 100%;
    }

    StatusBar #status-time {
        width: auto;
    }

    StatusBar #status-scan {
        width: auto;
        padding-left: 2;
    }

    StatusBar #status-activity {
        width: auto;
        padding-left: 2;
        color: $warning;
    }

    StatusBar #status-spacer {
        width: 1fr;
    }

    StatusBar #status-hints {
        width: auto;
        text-align: right;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self._scan_started: datetime | None = None
        self._scan_finished: datetime | None = None

    def compose(self) -> ComposeResult:
        yield Static("", id="status-time")
        yield Static("", id="status-scan")
        yield Static("", id="status-activity")
        yield Static("", id="status-spacer")
        yield Static(
            "[dim]enter[/dim] Scan  [dim]x[/dim] Cancel  [dim]q[/dim] Quit",
            id="status-hints",
        )

    def on_mount(self) -> None:
        """Start clock update timer."""
        self.set_interval(1, self._update_time)

    def _update_time(self) -> None:
        now = datetime.now()
        self.query_one("#status-time", Static).update(f"[bold]{now.strftime('%H:%M:%S')}[/bold]")

        if self._scan_started is None:
            return
        end = self._scan_finished or now
        elapsed = int((end - self._scan_started).total_seconds())
        label = "Scanned in" if self._scan_finished else "Elapsed"
        self.query_one("#status-scan", Static).update(f"[dim]{label} {elapsed}s[/dim]")

    def scan_started(self) -> None:
        self._scan_started = datetime.now()
        self._scan_finished = None
        self.set_activity("Scanning...")
        self._update_time()

    def scan_finished(self) -> None:
        self._scan_finished = datetime.now()
        self.clear_activity()
        self._update_time()

    def set_activity(self, activity: str) -> None:
        """Set current activity message (e.g., 'Scanning...', 'Cancelling...')."""
        self.query_one("#status-activity", Static).update(
            f"[yellow]{activity}[/yellow]" if activity else ""
        )

    def clear_activity(self) -> None:
        self.set_activity("")
