"""
Scan engine command bytes and protocol constants.

Based on the N4300-series laser engine serial command set. Only the subset
needed for triggering and switching between trigger and continuous modes is
defined here.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final


class ControlByte(IntEnum):
    """
    ASCII control bytes that appear on the wire.

    SYN starts every menu/trigger command. ACK, NAK and ENQ are embedded by
    the device in its menu command replies, right before the terminating
    '!' or '.'.
    """

    ENQ = 0x05
    """Device requests status (unsupported command / query)."""

    ACK = 0x06
    """Command accepted."""

    NAK = 0x15
    """Command rejected (value out of range)."""

    SYN = 0x16
    """Command introducer."""

    LF = 0x0A
    """Line feed (barcode suffix)."""

    CR = 0x0D
    """Carriage return (barcode suffix and command terminator)."""


class Command:
    """
    Fixed command sequences sent to the scan engine.

    All commands are compile-time constants; no user data is ever
    interpolated into them.
    """

    ACTIVATE: Final[bytes] = b"\x16T\r"
    """Turn the laser on and attempt a single decode."""

    DEACTIVATE: Final[bytes] = b"\x16U\r"
    """Turn the laser off, abandoning a pending decode."""

    MODE_PREFIX: Final[bytes] = b"\x16M\r"
    """Prefix for menu (configuration) commands."""

    CONTINUOUS_SUFFIX: Final[bytes] = b"pappm3!"
    """Presentation mode: the engine decodes on its own and reports every read."""

    TRIGGER_SUFFIX: Final[bytes] = b"aosdft!"
    """Manual trigger mode: the engine decodes only when activated."""

    SET_CONTINUOUS: Final[bytes] = MODE_PREFIX + CONTINUOUS_SUFFIX
    SET_TRIGGER: Final[bytes] = MODE_PREFIX + TRIGGER_SUFFIX


class ProtocolConstants:
    """
    Protocol constants.

    Contains frame delimiters, timing defaults and buffer sizes used
    throughout the driver.
    """

    # ===== Frame Delimiters =====

    ACK_DELIMITERS: Final[bytes] = b"!."
    """Terminators of a menu command reply ('!' for stored, '.' for queries)."""

    LINE_DELIMITERS: Final[bytes] = b"\r\n"
    """Terminators of a decoded barcode line."""

    # ===== Timing Constants (seconds) =====

    DEFAULT_SCAN_TIMEOUT: Final[float] = 10.0
    """Default time to wait for a triggered decode."""

    DEFAULT_MODE_TIMEOUT: Final[float] = 5.0
    """Default time to wait for a menu command acknowledgement."""

    DEFAULT_SHUTDOWN_TIMEOUT: Final[float] = 2.0
    """Upper bound on waiting for the read loop to stop during close()."""

    # ===== Buffer Sizes =====

    READ_CHUNK_SIZE: Final[int] = 256
    """Maximum number of bytes requested per transport read."""

    GOOD_READ_BACKLOG: Final[int] = 1000
    """Reads queued for a good_reads() consumer before new ones are dropped."""

    # ===== Serial Port Configuration =====

    DEFAULT_BAUD_RATE: Final[int] = 9600
    """Factory default baud rate of the engine's serial interface."""


CONTROL_BYTE_NAMES: Final[dict[int, str]] = {
    ControlByte.ENQ: "ENQ",
    ControlByte.ACK: "ACK",
    ControlByte.NAK: "NAK",
}
"""Control bytes worth reporting when seen inside an acknowledgement frame."""
