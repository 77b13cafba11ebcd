"""
Transport layer for scan engine communication.

This package provides transport implementations for talking to the laser
scan engine over various byte streams.

Available transports:
- AsyncSerialTransport: Async serial port using pyserial-asyncio
- PipeTransport: In-memory duplex pipe for testing
- SimulatedDeviceTransport: Pipe that replies like a real engine

Example:
    >>> from n4313.transport import AsyncSerialTransport
    >>> async with AsyncSerialTransport("/dev/ttyUSB0") as transport:
    ...     await transport.write(b"\\x16T\\r")
    ...     chunk = await transport.read()

Testing Example:
    >>> from n4313.transport import PipeTransport
    >>> pipe = PipeTransport()
    >>> pipe.feed(b"123456789\\r")
"""

from n4313.transport.abc import AbstractTransport
from n4313.transport.mock import PipeTransport, SimulatedDeviceTransport
from n4313.transport.serial_async import AsyncSerialTransport

__all__ = [
    "AbstractTransport",
    "AsyncSerialTransport",
    "PipeTransport",
    "SimulatedDeviceTransport",
]
