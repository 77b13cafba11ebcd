"""
Pydantic models and enums for scanner configuration and state.

Design principles:
- Configuration models are frozen (immutable)
- Field constraints reject nonsensical timeouts and sizes up front
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from n4313.protocol.constants import Command, ProtocolConstants


class ScannerMode(Enum):
    """Operating mode of the scan engine."""

    TRIGGER = "trigger"
    """One decode per explicit scan() call."""

    CONTINUOUS = "continuous"
    """The engine reports every decode on its own; delivered to subscribers."""

    @property
    def command(self) -> bytes:
        """Menu command that switches the engine into this mode."""
        if self is ScannerMode.CONTINUOUS:
            return Command.SET_CONTINUOUS
        return Command.SET_TRIGGER


class ScannerConfig(BaseModel):
    """
    Scanner driver settings.

    Example:
        >>> config = ScannerConfig(port="/dev/ttyUSB0", scan_timeout=3)
        >>> config.baudrate
        9600
    """

    model_config = ConfigDict(frozen=True)

    port: str | None = Field(default=None, description="Serial port path, e.g. /dev/ttyUSB0")
    baudrate: int = Field(default=ProtocolConstants.DEFAULT_BAUD_RATE, gt=0)
    scan_timeout: float | None = Field(
        default=ProtocolConstants.DEFAULT_SCAN_TIMEOUT,
        gt=0,
        description="Seconds to wait for a triggered decode; None waits forever",
    )
    mode_timeout: float | None = Field(
        default=ProtocolConstants.DEFAULT_MODE_TIMEOUT,
        gt=0,
        description="Seconds to wait for a mode change acknowledgement; None waits forever",
    )
    shutdown_timeout: float = Field(default=ProtocolConstants.DEFAULT_SHUTDOWN_TIMEOUT, gt=0)
    read_chunk_size: int = Field(default=ProtocolConstants.READ_CHUNK_SIZE, ge=1)
