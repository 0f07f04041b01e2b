"""Services for validating targets, enumerating subnets and probing hosts."""

from .address_space import AddressSpace
from .prober import PingProber, Prober, ScapyProber, create_prober
from .scanner import ScanObserver, Scanner, ScanState
from .validator import validate

__all__ = [
    "AddressSpace",
    "PingProber",
    "Prober",
    "ScanObserver",
    "ScanState",
    "Scanner",
    "ScapyProber",
    "create_prober",
    "validate",
]
