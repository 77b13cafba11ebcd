"""
Exception hierarchy for n4313.

All exceptions inherit from N4313Error, providing a clean hierarchy
for error handling. The design follows these principles:

1. Mode errors (operation not allowed right now) are distinct from I/O errors
2. Cancellation and timeouts are reported distinctly from failures
3. Transport errors are a kind of communication failure
4. All exceptions provide meaningful error messages
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from n4313.models.records import ScannerMode


class N4313Error(Exception):
    """
    Base exception for all n4313 errors.

    All library-specific exceptions inherit from this class, allowing
    callers to catch all scanner errors with a single except clause.
    """

    pass


class InvalidStateError(N4313Error):
    """
    Operation not permitted in the scanner's current mode.

    Raised when, for example, a triggered scan is requested while the
    engine is in continuous mode.
    """

    def __init__(self, message: str, *, mode: ScannerMode | None = None) -> None:
        super().__init__(message)
        self.mode = mode

    def __str__(self) -> str:
        base = super().__str__()
        if self.mode is not None:
            return f"{base} (mode={self.mode.name})"
        return base


class OperationCancelledError(N4313Error):
    """
    A scan or mode change was abandoned before the device answered.

    Raised when the operation's wait was cut short, either because its
    timeout expired or because the scanner was closed underneath it.
    The command may already have reached the device; a late response is
    discarded by the read loop.
    """

    pass


class TimeoutError(OperationCancelledError):  # noqa: A001 - intentionally shadows builtin
    """
    The device did not respond within the allowed time.

    This is the timeout-driven flavour of cancellation.
    """

    def __init__(
        self,
        message: str = "Timed out waiting for scanner",
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_seconds = timeout_seconds

    def __str__(self) -> str:
        base = super().__str__()
        if self.timeout_seconds is not None:
            return f"{base} (after {self.timeout_seconds:.1f}s)"
        return base


class CommunicationError(N4313Error):
    """
    Communication with the scan engine failed.

    Raised when:
    - A command cannot be written to the transport
    - The transport reached end-of-stream or a read failed
    - An operation is attempted after the read loop has terminated
    """

    pass


class TransportError(CommunicationError):
    """
    Transport-level error.

    Raised by transport implementations for low-level issues:
    - Serial port errors
    - I/O errors
    - Writing to a closed transport
    """

    pass


class ProtocolError(N4313Error):
    """
    Protocol-level error.

    Raised when a frame or command violates the wire protocol, such as
    an unknown mode being requested.
    """

    pass
