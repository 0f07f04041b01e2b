"""Configuration models using Pydantic for validation."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ProbeConfig(BaseModel):
    """Echo probe configuration."""

    method: Literal["ping", "scapy"] = "ping"
    probe_count: int = 1  # Echo requests per address; all must be answered
    timeout_seconds: float = 1.0  # Per echo request

    @field_validator("probe_count")
    @classmethod
    def validate_probe_count(cls, v: int) -> int:
        """Validate that at least one echo request is sent."""
        if v < 1:
            raise ValueError(f"probe_count must be at least 1, got {v}")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate that the timeout is positive."""
        if v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {v}")
        return v


class ScanConfig(BaseModel):
    """Scanner configuration."""

    workers: int = 32
    on_probe_error: Literal["abort", "mark_down"] = "abort"
    exclude_network_broadcast: bool = False

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Validate worker pool size."""
        if not 1 <= v <= 1024:
            raise ValueError(f"workers must be between 1 and 1024, got {v}")
        return v


class Settings(BaseModel):
    """General application settings."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


class Config(BaseModel):
    """Main configuration model."""

    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    settings: Settings = Field(default_factory=Settings)

    @classmethod
    def load(cls, path: Path | str = "netsweep.json") -> "Config":
        """Load configuration from a JSON file."""
        import json

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def load_or_default(cls, path: Path | str = "netsweep.json") -> "Config":
        """Load configuration or return default if file doesn't exist."""
        try:
            return cls.load(path)
        except FileNotFoundError:
            return cls()
