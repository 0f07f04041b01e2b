"""IPv4 subnet host discovery."""

__version__ = "1.1.0"
