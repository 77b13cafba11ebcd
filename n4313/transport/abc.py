"""
Abstract transport interface for scan engine communication.

This module defines the abstract base class for all transport implementations.
A transport is a duplex byte stream: the scanner's read loop pulls whatever
bytes have arrived with read(), and commands are pushed with write().

The transport layer is responsible for:
- Opening/closing the physical connection
- Reading and writing raw bytes
- Reporting end-of-stream when the peer goes away

Implementations:
- AsyncSerialTransport: pyserial-asyncio based serial port
- PipeTransport / SimulatedDeviceTransport: in-memory doubles for testing
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType


class AbstractTransport(ABC):
    """
    Abstract base class for scan engine transports.

    Both read() and write() must be cancellable: cancelling the awaiting
    task abandons the operation without corrupting the transport.

    Transports support async context manager protocol for safe resource
    management:

        async with AsyncSerialTransport("/dev/ttyUSB0") as transport:
            await transport.write(b"\\x16T\\r")
            chunk = await transport.read()

    Attributes:
        is_open: Whether the transport connection is currently open.
        port_name: Identifier for the transport (e.g., serial port name).
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport connection is currently open.

        Returns:
            True if connected and ready for I/O, False otherwise.
        """
        ...

    @property
    @abstractmethod
    def port_name(self) -> str:
        """
        Get the transport identifier.

        Returns:
            Port name or identifier string (e.g., "/dev/ttyUSB0", "COM3").
        """
        ...

    @abstractmethod
    async def open(self) -> None:
        """
        Open the transport connection.

        Raises:
            TransportError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """
        Close the transport connection.

        Releases the physical connection and any associated resources.
        Safe to call multiple times (idempotent).
        """
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """
        Write data to the transport.

        Args:
            data: Bytes to send.

        Raises:
            TransportError: If the transport is not open or write fails.
        """
        ...

    @abstractmethod
    async def read(self, size: int = 256) -> bytes:
        """
        Read the next available chunk.

        Suspends until at least one byte has arrived and returns up to
        `size` bytes.

        Args:
            size: Maximum number of bytes to return.

        Returns:
            The received bytes, or b"" once the stream has ended.

        Raises:
            TransportError: If the transport is not open or read fails.
        """
        ...

    async def __aenter__(self) -> AbstractTransport:
        """Async context manager entry - opens the transport."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Async context manager exit - closes the transport."""
        await self.close()
