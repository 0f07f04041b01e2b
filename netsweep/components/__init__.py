"""UI components for the interactive scanner."""

from .scan_panel import ScanPanel
from .status_bar import StatusBar

__all__ = ["ScanPanel", "StatusBar"]
