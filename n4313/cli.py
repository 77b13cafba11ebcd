"""
Command-line demonstration client.

Interactive menu for exercising a scan engine by hand: single triggered
scans, switching to continuous mode to watch reads scroll by, and
switching back.

Usage:
    python -m n4313 --port /dev/ttyUSB0
    python -m n4313 --simulate --log-level DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from n4313.exceptions import N4313Error, OperationCancelledError
from n4313.models.records import ScannerConfig, ScannerMode
from n4313.protocol.constants import ProtocolConstants
from n4313.scanner import BarcodeScanner
from n4313.transport.abc import AbstractTransport
from n4313.transport.mock import SimulatedDeviceTransport
from n4313.transport.serial_async import AsyncSerialTransport

logger = logging.getLogger(__name__)

MENU = """
--- Scanner Menu ---
1. Single Scan (Trigger Mode)
2. Enable Continuous Scanning
3. Switch to Trigger Mode
4. Exit"""


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: List of arguments to parse. If None, uses sys.argv[1:]

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="n4313",
        description="N4300-series laser scan engine demo client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --port /dev/ttyUSB0
  %(prog)s --port COM3 --baudrate 115200 --scan-timeout 5
  %(prog)s --simulate
        """,
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--port", type=str, help="Serial port the engine is attached to")
    target.add_argument(
        "--simulate",
        action="store_true",
        help="Use an in-memory simulated engine instead of a serial port",
    )

    parser.add_argument(
        "--baudrate",
        type=int,
        default=ProtocolConstants.DEFAULT_BAUD_RATE,
        help="Serial baud rate (default: %(default)s)",
    )
    parser.add_argument(
        "--scan-timeout",
        type=float,
        default=ProtocolConstants.DEFAULT_SCAN_TIMEOUT,
        help="Seconds to wait for a triggered scan (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: INFO)",
    )

    return parser.parse_args(args)


def setup_logging(level: str) -> None:
    """Configure application logging.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def build_transport(args: argparse.Namespace) -> AbstractTransport:
    if args.simulate:
        return SimulatedDeviceTransport(scan_delay=1.0)
    return AsyncSerialTransport(args.port, baudrate=args.baudrate)


async def prompt(text: str = "") -> str:
    """Read a line from stdin without blocking the event loop."""
    return await asyncio.get_running_loop().run_in_executor(None, input, text)


async def perform_single_scan(scanner: BarcodeScanner) -> None:
    print("\nTrigger scan mode - present barcode to scanner...")
    try:
        barcode = await scanner.scan()
    except OperationCancelledError as e:
        print(f"Scan cancelled or timed out: {e}")
        return
    print(f"Scanned: {barcode}")


async def enable_continuous_mode(scanner: BarcodeScanner, transport: AbstractTransport) -> None:
    print("\nSwitching to Continuous Mode...")
    await scanner.set_mode(ScannerMode.CONTINUOUS)
    print("Continuous mode enabled! Scanned barcodes will appear below.")

    if isinstance(transport, SimulatedDeviceTransport):
        transport.present_barcode("4006381333931")

    await prompt("Press Enter to return to menu...\n")


async def enable_trigger_mode(scanner: BarcodeScanner) -> None:
    print("\nSwitching to Trigger Mode...")
    await scanner.set_mode(ScannerMode.TRIGGER)
    print("Trigger mode enabled! Use option 1 to perform single scans.")


async def run(args: argparse.Namespace) -> int:
    """Connect to the engine and run the interactive menu."""
    config = ScannerConfig(
        port=args.port,
        baudrate=args.baudrate,
        scan_timeout=args.scan_timeout,
    )
    transport = build_transport(args)

    print("Connecting to scanner...")
    async with BarcodeScanner(transport, config) as scanner:
        print(f"Connected to {transport.port_name}")
        scanner.subscribe(lambda barcode: print(f"[CONTINUOUS] Scanned: {barcode}"))

        while True:
            print(MENU)
            choice = (await prompt("Select option (1-4): ")).strip()
            try:
                if choice == "1":
                    await perform_single_scan(scanner)
                elif choice == "2":
                    await enable_continuous_mode(scanner, transport)
                elif choice == "3":
                    await enable_trigger_mode(scanner)
                elif choice == "4":
                    break
                else:
                    print("Invalid option. Please select 1-4.")
            except N4313Error as e:
                logger.debug("Menu operation failed", exc_info=True)
                print(f"Operation failed: {e}")

    print("Scanner disconnected.")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the demo client.

    Args:
        args: Command-line arguments. If None, uses sys.argv[1:]

    Returns:
        Exit code (0 = success, 1 = error)
    """
    parsed_args = parse_args(args)
    setup_logging(parsed_args.log_level)

    try:
        return asyncio.run(run(parsed_args))
    except KeyboardInterrupt:
        return 0
    except (N4313Error, EOFError) as e:
        logger.debug("Fatal error", exc_info=True)
        print(f"Error: {e}")
        return 1
