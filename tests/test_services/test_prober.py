"""Tests for echo probers."""

import asyncio

import pytest

from netsweep.errors import ProbeMechanismUnavailable
from netsweep.models.config import ProbeConfig, ScanConfig
from netsweep.services import prober as prober_module
from netsweep.services.prober import PingProber, ScapyProber, create_prober, parse_replies
from netsweep.services.scanner import Scanner

ADDRESS = 0xC0A80101  # 192.168.1.1

LINUX_UP = b"""PING 192.168.1.1 (192.168.1.1) 56(84) bytes of data.
64 bytes from 192.168.1.1: icmp_seq=1 ttl=64 time=0.512 ms

--- 192.168.1.1 ping statistics ---
1 packets transmitted, 1 received, 0% packet loss, time 0ms
"""

LINUX_DOWN = b"""PING 192.168.1.9 (192.168.1.9) 56(84) bytes of data.

--- 192.168.1.9 ping statistics ---
1 packets transmitted, 0 received, 100% packet loss, time 0ms
"""

MACOS_PARTIAL = b"""--- 192.168.1.1 ping statistics ---
3 packets transmitted, 2 packets received, 33.3% packet loss
"""

WINDOWS_UP = b"""Ping statistics for 192.168.1.1:
    Packets: Sent = 1, Received = 1, Lost = 0 (0% loss),
"""

BROADCAST_REFUSED = b"ping: Do you want to ping broadcast? Then -b. If not, check your local firewall rules\n"


class FakeProcess:
    """Stands in for asyncio.subprocess.Process."""

    def __init__(self, stdout=b"", stderr=b"", returncode=0, hang=False):
        self.returncode = None
        self._stdout = stdout
        self._stderr = stderr
        self._final_returncode = returncode
        self._hang = hang
        self.killed = False
        self.waited = False

    async def communicate(self):
        if self._hang:
            await asyncio.sleep(3600)
        self.returncode = self._final_returncode
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True
        self.returncode = -9

    async def wait(self):
        self.waited = True
        return self.returncode


@pytest.fixture
def fake_exec(monkeypatch):
    """Replace subprocess creation; returns a dict recording the call."""
    state = {"process": FakeProcess(), "cmd": None, "error": None}

    async def _create_subprocess_exec(*cmd, **kwargs):
        state["cmd"] = list(cmd)
        if state["error"] is not None:
            raise state["error"]
        return state["process"]

    monkeypatch.setattr(prober_module.asyncio, "create_subprocess_exec", _create_subprocess_exec)
    return state


class TestParseReplies:
    """Tests for ping summary parsing."""

    def test_linux(self):
        assert parse_replies(LINUX_UP.decode()) == 1
        assert parse_replies(LINUX_DOWN.decode()) == 0

    def test_macos(self):
        assert parse_replies(MACOS_PARTIAL.decode()) == 2

    def test_windows(self):
        assert parse_replies(WINDOWS_UP.decode()) == 1

    def test_no_summary(self):
        assert parse_replies("ping: unknown host") is None
        assert parse_replies("") is None


class TestBuildCommand:
    """Tests for platform-specific ping arguments."""

    def test_linux(self, monkeypatch):
        monkeypatch.setattr(prober_module.sys, "platform", "linux")
        prober = PingProber(probe_count=2, timeout=0.5, ping_path="/bin/ping")
        assert prober.build_command("10.0.0.1") == ["/bin/ping", "-c", "2", "-W", "1", "10.0.0.1"]

    def test_macos_uses_milliseconds(self, monkeypatch):
        monkeypatch.setattr(prober_module.sys, "platform", "darwin")
        prober = PingProber(timeout=1.5, ping_path="/sbin/ping")
        assert prober.build_command("10.0.0.1") == ["/sbin/ping", "-c", "1", "-W", "1500", "10.0.0.1"]

    def test_windows(self, monkeypatch):
        monkeypatch.setattr(prober_module.sys, "platform", "win32")
        prober = PingProber(timeout=2.0, ping_path="ping.exe")
        assert prober.build_command("10.0.0.1") == ["ping.exe", "-n", "1", "-w", "2000", "10.0.0.1"]


class TestPingProbe:
    """Tests for PingProber.probe with a fake subprocess."""

    @pytest.fixture
    def prober(self):
        return PingProber(ping_path="/bin/ping")

    def test_reply_is_reachable(self, prober, fake_exec):
        fake_exec["process"] = FakeProcess(stdout=LINUX_UP, returncode=0)
        outcome = asyncio.run(prober.probe(ADDRESS))
        assert outcome.reachable is True
        assert outcome.replies == 1
        assert outcome.address == ADDRESS
        assert fake_exec["cmd"][-1] == "192.168.1.1"

    def test_no_reply_is_unreachable(self, prober, fake_exec):
        fake_exec["process"] = FakeProcess(stdout=LINUX_DOWN, returncode=1)
        outcome = asyncio.run(prober.probe(ADDRESS))
        assert outcome.reachable is False
        assert outcome.replies == 0
        assert outcome.error is None

    def test_partial_replies_are_unreachable(self, fake_exec):
        """Test that every echo request must be answered."""
        fake_exec["process"] = FakeProcess(stdout=MACOS_PARTIAL, returncode=0)
        outcome = asyncio.run(PingProber(probe_count=3, ping_path="ping").probe(ADDRESS))
        assert outcome.replies == 2
        assert outcome.reachable is False

    def test_exit_status_fallback(self, prober, fake_exec):
        """Test that output without a summary falls back to the exit code."""
        fake_exec["process"] = FakeProcess(stdout=b"", returncode=0)
        assert asyncio.run(prober.probe(ADDRESS)).reachable is True

    def test_missing_binary(self, prober, fake_exec):
        fake_exec["error"] = FileNotFoundError("No such file or directory: 'ping'")
        with pytest.raises(ProbeMechanismUnavailable) as exc_info:
            asyncio.run(prober.probe(ADDRESS))
        assert "ping not found" in str(exc_info.value)

    def test_permission_denied(self, prober, fake_exec):
        fake_exec["error"] = PermissionError("Permission denied")
        with pytest.raises(ProbeMechanismUnavailable):
            asyncio.run(prober.probe(ADDRESS))

    def test_ping_error_exit_is_down(self, prober, fake_exec):
        """Test that ping refusing an address reports it down."""
        fake_exec["process"] = FakeProcess(stderr=BROADCAST_REFUSED, returncode=2)
        outcome = asyncio.run(prober.probe(ADDRESS))
        assert outcome.reachable is False
        assert outcome.replies == 0
        assert outcome.error is None

    def test_unreachable_network_is_down(self, prober, fake_exec):
        fake_exec["process"] = FakeProcess(stderr=b"connect: Network is unreachable\n", returncode=2)
        assert asyncio.run(prober.probe(ADDRESS)).reachable is False

    def test_timeout_kills_process(self, prober, fake_exec, monkeypatch):
        monkeypatch.setattr(prober_module, "PROCESS_GRACE_SECONDS", 0.0)
        prober.timeout = 0.05
        process = FakeProcess(hang=True)
        fake_exec["process"] = process

        outcome = asyncio.run(prober.probe(ADDRESS))

        assert outcome.reachable is False
        assert process.killed is True
        assert process.waited is True

    def test_cancellation_kills_process(self, prober, fake_exec):
        process = FakeProcess(hang=True)
        fake_exec["process"] = process

        async def run():
            task = asyncio.create_task(prober.probe(ADDRESS))
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run())
        assert process.killed is True
        assert process.waited is True


class TestAvailability:
    """Tests for prober availability reporting."""

    def test_ping_missing(self, monkeypatch):
        monkeypatch.setattr(prober_module.shutil, "which", lambda name: None)
        prober = PingProber()
        assert prober.available is False
        assert prober.get_status_message() == "ping not found in PATH"

    def test_ping_present(self, monkeypatch):
        monkeypatch.setattr(prober_module.shutil, "which", lambda name: "/bin/ping")
        prober = PingProber()
        assert prober.available is True
        assert prober.get_status_message() is None

    def test_scapy_unprivileged(self, monkeypatch):
        monkeypatch.setattr(ScapyProber, "_check_scapy", lambda self: True)
        monkeypatch.setattr(ScapyProber, "_check_privileges", lambda self: False)
        prober = ScapyProber()
        assert prober.available is False
        assert "sudo" in prober.get_status_message()
        with pytest.raises(ProbeMechanismUnavailable):
            asyncio.run(prober.probe(ADDRESS))

    def test_scapy_counts_replies(self, monkeypatch):
        monkeypatch.setattr(ScapyProber, "_check_scapy", lambda self: True)
        monkeypatch.setattr(ScapyProber, "_check_privileges", lambda self: True)
        monkeypatch.setattr(ScapyProber, "_echo", lambda self, ip: 2)
        outcome = asyncio.run(ScapyProber(probe_count=2).probe(ADDRESS))
        assert outcome.reachable is True
        assert outcome.replies == 2


class TestCreateProber:
    """Tests for create_prober factory."""

    def test_ping_default(self):
        prober = create_prober(ProbeConfig(probe_count=3, timeout_seconds=0.25))
        assert isinstance(prober, PingProber)
        assert prober.probe_count == 3
        assert prober.timeout == 0.25

    def test_scapy(self, monkeypatch):
        monkeypatch.setattr(ScapyProber, "_check_scapy", lambda self: False)
        prober = create_prober(ProbeConfig(method="scapy"))
        assert isinstance(prober, ScapyProber)
        assert prober.available is False


class TestPingSweep:
    """Tests for the ping prober driven by the scanner."""

    def test_refused_broadcast_marked_down(self, monkeypatch):
        """Test that a default scan completes when ping refuses the broadcast address."""
        responses = {
            "192.168.1.1": (LINUX_UP, b"", 0),
            "192.168.1.3": (b"", BROADCAST_REFUSED, 2),
        }

        async def _create_subprocess_exec(*cmd, **kwargs):
            stdout, stderr, code = responses.get(cmd[-1], (LINUX_DOWN, b"", 1))
            return FakeProcess(stdout=stdout, stderr=stderr, returncode=code)

        monkeypatch.setattr(prober_module.asyncio, "create_subprocess_exec", _create_subprocess_exec)
        scanner = Scanner(PingProber(ping_path="ping"), ScanConfig(workers=1))

        result = asyncio.run(scanner.scan("192.168.1.0/30"))

        assert result.total_probed == 4
        assert result.reachable_hosts == ["192.168.1.1"]
        assert result.unreachable_count == 3
        assert result.failed_probes == []
