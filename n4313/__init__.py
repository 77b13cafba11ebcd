"""
n4313 - Python driver for N4300-series laser barcode scan engines.

This library provides async communication with the scan engine over a serial
link (or any duplex byte stream), supporting on-demand triggered scans and a
continuous stream of decoded barcodes.

Example:
    >>> from n4313 import BarcodeScanner, ScannerMode
    >>> from n4313.transport import AsyncSerialTransport
    >>>
    >>> async def main():
    ...     transport = AsyncSerialTransport("/dev/ttyUSB0")
    ...     async with BarcodeScanner(transport) as scanner:
    ...         print(await scanner.scan(timeout=10))
    ...         scanner.subscribe(lambda barcode: print("read", barcode))
    ...         await scanner.set_mode(ScannerMode.CONTINUOUS)
"""

from n4313.events import ObserverRegistry, SubscriptionHandle
from n4313.exceptions import (
    CommunicationError,
    InvalidStateError,
    N4313Error,
    OperationCancelledError,
    ProtocolError,
    TimeoutError,
    TransportError,
)
from n4313.models.records import ScannerConfig, ScannerMode
from n4313.scanner import BarcodeScanner, EngineState
from n4313.transport import AbstractTransport, AsyncSerialTransport

__version__ = "0.1.0"
__all__ = [
    # Scanner
    "BarcodeScanner",
    "EngineState",
    # Models
    "ScannerMode",
    "ScannerConfig",
    # Events
    "ObserverRegistry",
    "SubscriptionHandle",
    # Exceptions
    "N4313Error",
    "InvalidStateError",
    "OperationCancelledError",
    "TimeoutError",
    "CommunicationError",
    "TransportError",
    "ProtocolError",
    # Transport
    "AbstractTransport",
    "AsyncSerialTransport",
    # Version
    "__version__",
]
