"""Interactive textual front end for subnet scans."""

import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, Input

from .components import ScanPanel, StatusBar
from .errors import InputValidationError, ProbeMechanismUnavailable
from .models.config import Config
from .services.prober import create_prober
from .services.scanner import Scanner

logger = logging.getLogger(__name__)


class SweepApp(App):
    """Enter a CIDR target, watch hosts come up."""

    TITLE = "Network Host Discovery"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("x", "cancel_scan", "Cancel scan"),
    ]

    CSS = """
    #target-input {
        margin: 0 1;
    }
    """

    def __init__(self, config: Config | None = None, target: str | None = None):
        super().__init__()
        self.config = config or Config()
        self.prober = create_prober(self.config.probe)
        self.scanner = Scanner(self.prober, self.config.scan)
        self._initial_target = target

    def compose(self) -> ComposeResult:
        yield Header()
        yield Input(
            value=self._initial_target or "",
            placeholder="IP address with CIDR notation (e.g. 192.168.1.0/24)",
            id="target-input",
        )
        yield ScanPanel()
        yield StatusBar()
        yield Footer()

    def on_mount(self) -> None:
        status = self.prober.get_status_message()
        if status:
            self.query_one(ScanPanel).set_error(status)
        if self._initial_target:
            self.call_after_refresh(self.start_scan, self._initial_target)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.start_scan(event.value)

    def start_scan(self, raw: str) -> None:
        """Start a scan unless one is already running."""
        if self.query_one(ScanPanel).scanning:
            return
        self.run_worker(self._run_scan(raw), exclusive=True, group="scan")

    async def _run_scan(self, raw: str) -> None:
        panel = self.query_one(ScanPanel)
        status_bar = self.query_one(StatusBar)

        panel.start(raw.strip())
        status_bar.scan_started()
        try:
            await self.scanner.scan(raw, observer=panel)
        except InputValidationError as e:
            panel.set_error(f"Input validation failed, {e}.")
        except ProbeMechanismUnavailable as e:
            panel.set_error(f"Probing failed: {e}")
        finally:
            panel.stop()
            status_bar.scan_finished()

    def action_cancel_scan(self) -> None:
        if self.query_one(ScanPanel).scanning:
            self.query_one(StatusBar).set_activity("Cancelling...")
            self.scanner.cancel()
