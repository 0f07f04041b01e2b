"""Probe outcome and scan result models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .network import format_address


class ProbeStatus(str, Enum):
    """Status of a probed address."""

    UP = "up"
    DOWN = "down"
    ERROR = "error"


class ProbeOutcome(BaseModel):
    """Result of probing a single address."""

    model_config = ConfigDict(frozen=True)

    address: int
    reachable: bool
    replies: int = 0
    error: str | None = None  # Diagnostic when the probe mechanism failed

    @property
    def ip(self) -> str:
        """Dotted-quad form of the address."""
        return format_address(self.address)

    @property
    def status(self) -> ProbeStatus:
        if self.error is not None:
            return ProbeStatus.ERROR
        return ProbeStatus.UP if self.reachable else ProbeStatus.DOWN


class ScanResult(BaseModel):
    """Aggregate result of a subnet scan."""

    model_config = ConfigDict(frozen=True)

    target: str
    total_probed: int = 0
    reachable_addresses: list[int] = Field(default_factory=list)
    failed_probes: list[ProbeOutcome] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def unreachable_count(self) -> int:
        """Count of probed addresses that did not reply."""
        return self.total_probed - len(self.reachable_addresses)

    @property
    def reachable_hosts(self) -> list[str]:
        """Reachable addresses as dotted-quad strings, in ascending order."""
        return [format_address(a) for a in self.reachable_addresses]

    @property
    def completed(self) -> bool:
        """Whether every address in the target was probed."""
        return not self.cancelled
