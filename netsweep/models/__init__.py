"""Data models for subnet scanning."""

from .config import Config, ProbeConfig, ScanConfig, Settings
from .network import NetworkDescriptor, format_address
from .scan_result import ProbeOutcome, ProbeStatus, ScanResult

__all__ = [
    "Config",
    "NetworkDescriptor",
    "ProbeConfig",
    "ProbeOutcome",
    "ProbeStatus",
    "ScanConfig",
    "ScanResult",
    "Settings",
    "format_address",
]
