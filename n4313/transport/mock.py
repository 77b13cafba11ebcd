"""
Mock transports for testing.

This module provides in-memory transport implementations that allow testing
the scanner driver without hardware. Device output is pushed into the pipe
explicitly, generated from what the driver writes, or both.

Example:
    >>> from n4313.transport import PipeTransport
    >>> from n4313 import BarcodeScanner
    >>>
    >>> pipe = PipeTransport()
    >>> async with BarcodeScanner(pipe) as scanner:
    ...     scan = asyncio.create_task(scanner.scan())
    ...     await pipe.wait_for_write()
    ...     pipe.feed(b"123456789\\r")
    ...     assert await scan == "123456789"
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import Final

from n4313.exceptions import TransportError
from n4313.protocol.constants import Command, ProtocolConstants
from n4313.transport.abc import AbstractTransport

EXPECTED_SCAN_RESULT: Final[str] = "123456789"
"""Barcode returned by the simulated engine for a trigger command."""

DEFAULT_DEVICE_RESPONSES: Final[dict[bytes, bytes]] = {
    Command.SET_CONTINUOUS: b"PAPPM3\x06!",
    Command.SET_TRIGGER: b"AOSDFT\x06!",
    b"REVINF.": (
        b"REVINFProduct Name: Laser Engine-N4300\r\n"
        b"Boot Revision: CA000064BCC\r\n"
        b"Software Part Number: CA000064BCC\r\n"
        b"Serial Number: 20067B450A\r\n"
        b"PCB Assembly ID: 0\x06."
    ),
    Command.ACTIVATE: EXPECTED_SCAN_RESULT.encode("ascii") + b"\r",
}
"""Command to reply table modelled on a factory-default N4300 engine."""


class PipeTransport(AbstractTransport):
    """
    In-memory duplex pipe.

    The test plays the device: bytes passed to feed() become readable by
    the driver, and everything the driver writes is recorded.

    Attributes:
        written_data: List of all bytes written to the transport.

    Example:
        >>> pipe = PipeTransport()
        >>> async with pipe:
        ...     pipe.feed(b"abc")
        ...     assert await pipe.read() == b"abc"
        ...     await pipe.write(b"\\x16T\\r")
        ...     pipe.assert_written(b"\\x16T\\r")
    """

    def __init__(self, port_name: str = "mock://pipe") -> None:
        """
        Initialize the pipe.

        Args:
            port_name: Identifier for the mock transport.
        """
        self._port_name = port_name
        self._is_open = False
        self._incoming = bytearray()
        self._eof = False
        self._read_error: Exception | None = None
        self._write_error: Exception | None = None
        self._data_ready = asyncio.Event()
        self._written_data: list[bytes] = []
        self._write_signal = asyncio.Event()
        self._response_callback: Callable[[bytes], bytes | None] | None = None
        self.close_count = 0

    @property
    def is_open(self) -> bool:
        """Check if the pipe is open."""
        return self._is_open

    @property
    def port_name(self) -> str:
        """Get the mock port name."""
        return self._port_name

    @property
    def written_data(self) -> list[bytes]:
        """Get all data written to the transport."""
        return self._written_data.copy()

    @property
    def last_written(self) -> bytes | None:
        """Get the most recently written data."""
        return self._written_data[-1] if self._written_data else None

    def feed(self, data: bytes) -> None:
        """
        Make bytes available to read(), as if the device had sent them.

        Args:
            data: Device output.
        """
        self._incoming.extend(data)
        self._data_ready.set()

    def feed_eof(self) -> None:
        """Signal end-of-stream once buffered bytes are consumed."""
        self._eof = True
        self._data_ready.set()

    def set_read_error(self, error: Exception | None) -> None:
        """Make pending and future reads raise the given error."""
        self._read_error = error
        self._data_ready.set()

    def set_write_error(self, error: Exception | None) -> None:
        """Make future writes raise the given error."""
        self._write_error = error

    def set_response_callback(
        self,
        callback: Callable[[bytes], bytes | None] | None,
    ) -> None:
        """
        Set a callback to dynamically generate device output.

        The callback receives the written data; a non-None return value is
        fed back into the pipe.

        Args:
            callback: Function that takes written bytes and returns response.
        """
        self._response_callback = callback

    def clear_written(self) -> None:
        """Clear only the written data history."""
        self._written_data.clear()

    async def wait_for_write(self, count: int = 1, timeout: float = 1.0) -> bytes:
        """
        Wait until at least `count` writes have been recorded.

        Args:
            count: Number of writes to wait for.
            timeout: Seconds before giving up.

        Returns:
            The most recent write.

        Raises:
            asyncio.TimeoutError: If the writes do not happen in time.
        """

        async def _wait() -> None:
            while len(self._written_data) < count:
                self._write_signal.clear()
                await self._write_signal.wait()

        await asyncio.wait_for(_wait(), timeout)
        return self._written_data[-1]

    async def open(self) -> None:
        """Open the pipe."""
        if self._is_open:
            raise TransportError("Mock transport already open")
        self._is_open = True

    async def close(self) -> None:
        """Close the pipe; pending reads return end-of-stream."""
        if not self._is_open:
            return
        self._is_open = False
        self.close_count += 1
        self._eof = True
        self._data_ready.set()

    async def write(self, data: bytes) -> None:
        """
        Record written data and optionally produce device output.

        Args:
            data: Bytes to write.

        Raises:
            TransportError: If the pipe is not open or a write error is set.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")
        if self._write_error is not None:
            raise self._write_error

        self._written_data.append(bytes(data))
        self._write_signal.set()

        response = self._respond(bytes(data))
        if response is not None:
            self.feed(response)

    async def read(self, size: int = ProtocolConstants.READ_CHUNK_SIZE) -> bytes:
        """
        Return up to `size` buffered bytes, waiting for some to arrive.

        Returns:
            Buffered bytes, or b"" once end-of-stream is reached.

        Raises:
            TransportError: If the pipe is not open.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")

        while not self._incoming:
            if self._read_error is not None:
                raise self._read_error
            if self._eof:
                return b""
            self._data_ready.clear()
            await self._data_ready.wait()

        chunk = bytes(self._incoming[:size])
        del self._incoming[:size]
        return chunk

    def _respond(self, data: bytes) -> bytes | None:
        if self._response_callback is not None:
            return self._response_callback(data)
        return None

    def assert_written(self, expected: bytes, index: int = -1) -> None:
        """
        Assert that specific data was written.

        Args:
            expected: Expected bytes.
            index: Index in written_data list (-1 for last).

        Raises:
            AssertionError: If data doesn't match.
        """
        if not self._written_data:
            raise AssertionError("No data written to mock transport")

        actual = self._written_data[index]
        if actual != expected:
            raise AssertionError(f"Written data mismatch: expected {expected!r}, got {actual!r}")

    def assert_write_count(self, expected: int) -> None:
        """
        Assert number of write operations.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self._written_data)
        if actual != expected:
            raise AssertionError(f"Write count mismatch: expected {expected}, got {actual}")


class SimulatedDeviceTransport(PipeTransport):
    """
    Pipe that answers commands like a scan engine would.

    Each write is matched against a command to reply table; the reply of
    the first command contained in the written bytes is fed back. The
    reply to the trigger command can be delayed to simulate the time it
    takes to present a barcode.

    Example:
        >>> device = SimulatedDeviceTransport()
        >>> async with BarcodeScanner(device) as scanner:
        ...     await scanner.set_mode(ScannerMode.CONTINUOUS)
        ...     device.present_barcode("4006381333931")
    """

    def __init__(
        self,
        responses: Mapping[bytes, bytes] | None = None,
        scan_delay: float = 0.0,
        port_name: str = "mock://device",
    ) -> None:
        """
        Initialize the simulated device.

        Args:
            responses: Command to reply table (defaults to DEFAULT_DEVICE_RESPONSES).
            scan_delay: Seconds before the reply to an activate command is sent.
            port_name: Identifier for the mock transport.
        """
        super().__init__(port_name)
        self._responses = dict(DEFAULT_DEVICE_RESPONSES if responses is None else responses)
        self.scan_delay = scan_delay

    def set_response(self, command: bytes, response: bytes) -> None:
        """Add or replace the reply to a command."""
        self._responses[command] = response

    def remove_response(self, command: bytes) -> None:
        """Make the device ignore a command."""
        self._responses.pop(command, None)

    def present_barcode(self, text: str, suffix: bytes = b"\r\n") -> None:
        """Emit a decoded barcode as the engine does in continuous mode."""
        self.feed(text.encode("ascii") + suffix)

    def _respond(self, data: bytes) -> bytes | None:
        callback_response = super()._respond(data)
        if callback_response is not None:
            return callback_response

        for command, response in self._responses.items():
            if command in data:
                if command == Command.ACTIVATE and self.scan_delay > 0:
                    asyncio.get_running_loop().call_later(self.scan_delay, self.feed, response)
                    return None
                return response
        return None
