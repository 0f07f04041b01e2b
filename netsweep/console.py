"""Line-oriented terminal output for scans."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .models.scan_result import ProbeOutcome, ProbeStatus, ScanResult

PROMPT = "Please enter an IP address with CIDR notation (e.g. 192.168.1.0/24): "


class ConsoleReporter:
    """Prints each probe result as it arrives, then a summary."""

    def __init__(
        self,
        console: Console | None = None,
        err_console: Console | None = None,
        show_down: bool = True,
    ):
        self.console = console or Console(highlight=False)
        # Errors share an injected console unless given their own
        self.err_console = err_console or (console or Console(stderr=True, highlight=False))
        self.show_down = show_down

    def clear(self) -> None:
        self.console.clear()

    def banner(self, title: str) -> None:
        """Print a boxed title."""
        self.console.print(Panel.fit(title, border_style="bold"))

    def prompt_target(self) -> str:
        """Ask for one line of input."""
        return self.console.input(PROMPT).strip()

    def validation_failed(self, error: Exception) -> None:
        self.err_console.print(f"[red]Input validation failed, {escape(str(error))}.[/red]")

    def probe_unavailable(self, error: Exception) -> None:
        self.err_console.print(f"[red]Probing failed: {escape(str(error))}[/red]")

    def on_probe_result(self, outcome: ProbeOutcome) -> None:
        status = outcome.status
        if status == ProbeStatus.UP:
            self.console.print(f"Ping successful, {outcome.ip} is [green]up[/green].")
        elif status == ProbeStatus.ERROR:
            self.console.print(
                f"Ping failed, {outcome.ip} is [yellow]unknown[/yellow] ({escape(outcome.error or '')})."
            )
        elif self.show_down:
            self.console.print(f"Ping unsuccessful, {outcome.ip} is [red]down[/red].")

    def on_scan_complete(self, result: ScanResult) -> None:
        self.console.print()
        self.banner("Results")
        self.console.print()

        if result.cancelled:
            self.console.print("[yellow]Scan cancelled before all addresses were probed.[/yellow]")

        self.console.print("The following IP addresses were up:")
        for ip in result.reachable_hosts:
            self.console.print(f"[green]{ip}[/green]")

        if result.failed_probes:
            self.console.print()
            self.console.print("The following IP addresses could not be probed:")
            for outcome in result.failed_probes:
                self.console.print(f"[yellow]{outcome.ip}[/yellow] [dim]{escape(outcome.error or '')}[/dim]")

        self.console.print()
        self.console.print(
            f"Scanned a total of {result.total_probed} IP addresses, "
            f"of which {len(result.reachable_addresses)} were up."
        )
