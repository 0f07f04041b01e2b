"""Entry point for running the scanner as a module."""

import argparse
import asyncio
import atexit
import logging
import signal
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .console import ConsoleReporter
from .errors import InputValidationError, ProbeMechanismUnavailable
from .models.config import Config
from .services.prober import create_prober
from .services.scanner import Scanner

_logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PROBE_FAILED = 1
EXIT_INVALID_INPUT = 2
EXIT_CANCELLED = 130


def setup_logging(log_level: str = "WARNING") -> None:
    """Configure logging with rotation support.

    Args:
        log_level: The logging level (DEBUG, INFO, WARNING, ERROR)
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    # Try to add rotating file handler
    log_dir = Path("logs")
    try:
        log_dir.mkdir(exist_ok=True)
        # Rotate at 10MB, keep 5 backup files
        file_handler = RotatingFileHandler(
            log_dir / "netsweep.log",
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        handlers.append(file_handler)
    except (PermissionError, OSError):
        pass  # Skip file logging if we can't write

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def _cleanup() -> None:
    """Cleanup handler called on exit."""
    _logger.debug("netsweep shutdown complete")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Network Host Discovery - ping every address in an IPv4 subnet"
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="IP address with CIDR prefix, e.g. 192.168.1.0/24 (prompted for if omitted)",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("netsweep.json"),
        help="Path to configuration file (default: netsweep.json)",
    )
    parser.add_argument("-w", "--workers", type=int, help="Concurrent probes (default: 32)")
    parser.add_argument("-n", "--count", type=int, help="Echo requests per address (default: 1)")
    parser.add_argument("-t", "--timeout", type=float, help="Seconds to wait for each reply")
    parser.add_argument("--method", choices=["ping", "scapy"], help="Probe mechanism")
    parser.add_argument(
        "--exclude-network-broadcast",
        action="store_true",
        help="Skip the network and broadcast addresses",
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Mark addresses down when probing fails instead of aborting",
    )
    parser.add_argument("--up-only", action="store_true", help="Only print hosts that are up")
    parser.add_argument("--tui", action="store_true", help="Run the interactive interface")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )
    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply command-line flags on top of the file configuration."""
    probe_updates = {}
    if args.count is not None:
        probe_updates["probe_count"] = args.count
    if args.timeout is not None:
        probe_updates["timeout_seconds"] = args.timeout
    if args.method is not None:
        probe_updates["method"] = args.method

    scan_updates: dict[str, object] = {}
    if args.workers is not None:
        scan_updates["workers"] = args.workers
    if args.exclude_network_broadcast:
        scan_updates["exclude_network_broadcast"] = True
    if args.continue_on_error:
        scan_updates["on_probe_error"] = "mark_down"

    # Re-validate so flag values get the same checks as file values
    return Config.model_validate(
        {
            "probe": {**config.probe.model_dump(), **probe_updates},
            "scan": {**config.scan.model_dump(), **scan_updates},
            "settings": config.settings.model_dump(),
        }
    )


async def run_scan(config: Config, target: str, reporter: ConsoleReporter) -> int:
    """Scan one target, printing results; returns the process exit code."""
    scanner = Scanner(create_prober(config.probe), config.scan)

    # First Ctrl-C stops dispatching new probes, the second aborts outright
    loop = asyncio.get_running_loop()
    scan_task = asyncio.current_task()

    def _on_interrupt() -> None:
        if scanner.cancel_requested:
            scan_task.cancel()
        else:
            _logger.info("Received SIGINT, finishing in-flight probes...")
            scanner.cancel()

    try:
        loop.add_signal_handler(signal.SIGINT, _on_interrupt)
    except NotImplementedError:
        pass  # Windows event loops lack add_signal_handler; KeyboardInterrupt applies

    try:
        result = await scanner.scan(target, observer=reporter)
    except InputValidationError as e:
        reporter.validation_failed(e)
        return EXIT_INVALID_INPUT
    except ProbeMechanismUnavailable as e:
        reporter.probe_unavailable(e)
        return EXIT_PROBE_FAILED
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except NotImplementedError:
            pass

    return EXIT_CANCELLED if result.cancelled else EXIT_OK


def main() -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    # Handle version flag
    if args.version:
        from . import __version__

        print(f"netsweep v{__version__}")
        sys.exit(0)

    try:
        config = apply_overrides(Config.load_or_default(args.config), args)
    except ValueError as e:
        # pydantic.ValidationError subclasses ValueError
        parser.error(str(e))

    setup_logging("DEBUG" if args.verbose else config.settings.log_level)
    atexit.register(_cleanup)

    if args.tui:
        from .app import SweepApp

        SweepApp(config=config, target=args.target).run()
        return

    reporter = ConsoleReporter(show_down=not args.up_only)
    target = args.target
    if target is None:
        reporter.clear()
        reporter.banner("Network Host Discovery")
        try:
            target = reporter.prompt_target()
        except (EOFError, KeyboardInterrupt):
            sys.exit(EXIT_CANCELLED)

    try:
        exit_code = asyncio.run(run_scan(config, target, reporter))
    except (KeyboardInterrupt, asyncio.CancelledError):
        exit_code = EXIT_CANCELLED
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
