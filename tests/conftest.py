"""Pytest configuration and fixtures."""

import asyncio
import ipaddress
import json
import tempfile
from pathlib import Path

import pytest

from netsweep.errors import ProbeMechanismUnavailable
from netsweep.models.scan_result import ProbeOutcome, ScanResult
from netsweep.services.prober import Prober


def ip(text: str) -> int:
    """Dotted-quad string to integer."""
    return int(ipaddress.IPv4Address(text))


class StubProber(Prober):
    """Deterministic prober: listed addresses reply, others stay silent."""

    name = "stub"

    def __init__(self, up=(), fail=(), jitter: bool = False, probe_count: int = 1):
        super().__init__(probe_count=probe_count)
        self.up = {ip(a) for a in up}
        self.fail = {ip(a) for a in fail}
        self.jitter = jitter
        self.calls: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(self, address: int) -> ProbeOutcome:
        self.calls.append(address)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Vary latency so completions arrive out of address order
            await asyncio.sleep(((address * 7) % 5) * 0.001 if self.jitter else 0)
        finally:
            self.in_flight -= 1

        if address in self.fail:
            raise ProbeMechanismUnavailable("ping: socket: Operation not permitted")
        return self._outcome(address, self.probe_count if address in self.up else 0)


class RecordingObserver:
    """Collects scanner events."""

    def __init__(self):
        self.outcomes: list[ProbeOutcome] = []
        self.results: list[ScanResult] = []

    def on_probe_result(self, outcome: ProbeOutcome) -> None:
        self.outcomes.append(outcome)

    def on_scan_complete(self, result: ScanResult) -> None:
        self.results.append(result)


@pytest.fixture
def make_prober():
    """Factory for deterministic stub probers."""
    return StubProber


@pytest.fixture
def observer():
    """A fresh recording observer."""
    return RecordingObserver()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_data():
    """Sample configuration data for testing."""
    return {
        "probe": {
            "method": "ping",
            "probe_count": 2,
            "timeout_seconds": 0.5,
        },
        "scan": {
            "workers": 8,
            "on_probe_error": "mark_down",
            "exclude_network_broadcast": True,
        },
        "settings": {
            "log_level": "INFO",
        },
    }


@pytest.fixture
def sample_config_file(temp_dir, sample_config_data):
    """Create a sample config file for testing."""
    config_path = temp_dir / "netsweep.json"
    with open(config_path, "w") as f:
        json.dump(sample_config_data, f)
    return config_path
