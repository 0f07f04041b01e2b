"""Echo-request probers: system ping and scapy ICMP."""

import asyncio
import contextlib
import logging
import math
import os
import re
import shutil
import sys

from ..errors import ProbeMechanismUnavailable
from ..models.config import ProbeConfig
from ..models.network import format_address
from ..models.scan_result import ProbeOutcome

logger = logging.getLogger(__name__)

# Extra time allowed for process start-up on top of the echo timeouts
PROCESS_GRACE_SECONDS = 2.0

# "1 received" (Linux), "1 packets received" (macOS/BSD), "Received = 1" (Windows)
_RECEIVED_PATTERN = re.compile(
    r"(\d+)\s+(?:packets\s+)?received|received\s*=\s*(\d+)",
    re.IGNORECASE,
)

# ping exits 0 when replies came back and 1 when none did; anything else is a failure
_PING_NO_REPLY_CODES = {0, 1}


def parse_replies(output: str) -> int | None:
    """Extract the received-reply count from ping's summary output."""
    match = _RECEIVED_PATTERN.search(output)
    if not match:
        return None
    return int(match.group(1) or match.group(2))


class Prober:
    """Determines whether a single address answers echo requests."""

    name = "probe"

    def __init__(self, probe_count: int = 1, timeout: float = 1.0):
        self.probe_count = probe_count
        self.timeout = timeout
        self._available: bool | None = None

    def _check(self) -> bool:
        return True

    @property
    def available(self) -> bool:
        """Whether the underlying echo facility can be used."""
        if self._available is None:
            self._available = self._check()
        return self._available

    def get_status_message(self) -> str | None:
        """Get a status message about prober availability."""
        return None

    async def probe(self, address: int) -> ProbeOutcome:
        raise NotImplementedError

    def _outcome(self, address: int, replies: int) -> ProbeOutcome:
        return ProbeOutcome(
            address=address,
            reachable=replies == self.probe_count,
            replies=replies,
        )


class PingProber(Prober):
    """Probe addresses by running the system ping command."""

    name = "ping"

    def __init__(self, probe_count: int = 1, timeout: float = 1.0, ping_path: str | None = None):
        super().__init__(probe_count=probe_count, timeout=timeout)
        self.ping_path = ping_path or shutil.which("ping")

    def _check(self) -> bool:
        """Check if ping is installed."""
        return self.ping_path is not None

    def get_status_message(self) -> str | None:
        if not self.available:
            return "ping not found in PATH"
        return None

    @property
    def deadline(self) -> float:
        """Upper bound on how long one ping process may run."""
        return self.timeout * self.probe_count + PROCESS_GRACE_SECONDS

    def build_command(self, ip: str) -> list[str]:
        """Build the platform's ping command line."""
        cmd = [self.ping_path or "ping"]
        if sys.platform == "win32":
            cmd.extend(["-n", str(self.probe_count), "-w", str(int(self.timeout * 1000))])
        elif sys.platform == "darwin":
            # macOS takes the reply wait in milliseconds
            cmd.extend(["-c", str(self.probe_count), "-W", str(int(self.timeout * 1000))])
        else:
            cmd.extend(["-c", str(self.probe_count), "-W", str(max(1, math.ceil(self.timeout)))])
        cmd.append(ip)
        return cmd

    async def probe(self, address: int) -> ProbeOutcome:
        """Ping one address and classify the reply count."""
        ip = format_address(address)
        cmd = self.build_command(ip)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ProbeMechanismUnavailable(f"ping not found: {e}") from e
        except PermissionError as e:
            raise ProbeMechanismUnavailable(f"Permission denied running ping: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.deadline)
        except TimeoutError:
            logger.debug(f"ping {ip} exceeded {self.deadline:.1f}s, treating as down")
            return self._outcome(address, 0)
        finally:
            # Reap the child on timeout or cancellation
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

        output = stdout.decode(errors="ignore")
        replies = parse_replies(output)

        if replies is None:
            if process.returncode not in _PING_NO_REPLY_CODES:
                # ping ran but refused this address (broadcast, no route)
                detail = stderr.decode(errors="ignore").strip()
                logger.debug(f"ping {ip} exited with code {process.returncode}: {detail}")
            # No summary line; fall back to the exit status
            replies = self.probe_count if process.returncode == 0 else 0

        logger.debug(f"ping {ip}: {replies}/{self.probe_count} replies")
        return self._outcome(address, replies)


class ScapyProber(Prober):
    """Probe addresses with ICMP echo requests sent through scapy."""

    name = "scapy"

    def __init__(self, probe_count: int = 1, timeout: float = 1.0):
        super().__init__(probe_count=probe_count, timeout=timeout)
        self._scapy_available = self._check_scapy()
        self._has_privileges = self._check_privileges()

    def _check_scapy(self) -> bool:
        """Check if scapy is importable."""
        try:
            from scapy.all import conf  # noqa: F401

            return True
        except ImportError:
            logger.warning("scapy not installed - scapy probing disabled")
            return False
        except Exception as e:
            logger.warning(f"scapy error: {e}")
            return False

    def _check_privileges(self) -> bool:
        """Check if we have root/admin privileges for raw socket access."""
        if hasattr(os, "geteuid"):
            return os.geteuid() == 0
        return True

    def _check(self) -> bool:
        return self._scapy_available and self._has_privileges

    def get_status_message(self) -> str | None:
        if not self._scapy_available:
            return "scapy not installed - install it or use the ping method"
        if not self._has_privileges:
            return "Run with sudo for scapy probing"
        return None

    async def probe(self, address: int) -> ProbeOutcome:
        """Send echo requests from a worker thread and count the replies."""
        if not self.available:
            raise ProbeMechanismUnavailable(self.get_status_message() or "scapy unavailable")

        loop = asyncio.get_running_loop()
        try:
            replies = await loop.run_in_executor(None, self._echo, format_address(address))
        except PermissionError as e:
            raise ProbeMechanismUnavailable(f"Permission denied opening raw socket: {e}") from e
        except OSError as e:
            raise ProbeMechanismUnavailable(f"scapy send failed: {e}") from e

        return self._outcome(address, replies)

    def _echo(self, ip: str) -> int:
        """Send probe_count echo requests (blocking - call from executor)."""
        from scapy.all import ICMP, IP, conf, sr1

        conf.verb = 0

        replies = 0
        for seq in range(self.probe_count):
            reply = sr1(IP(dst=ip) / ICMP(seq=seq), timeout=self.timeout, verbose=False)
            # type 0 is echo-reply
            if reply is not None and reply.haslayer(ICMP) and reply[ICMP].type == 0:
                replies += 1
        return replies


def create_prober(config: ProbeConfig) -> Prober:
    """Build the prober selected in the configuration."""
    if config.method == "scapy":
        return ScapyProber(probe_count=config.probe_count, timeout=config.timeout_seconds)
    return PingProber(probe_count=config.probe_count, timeout=config.timeout_seconds)
