"""
Laser scan engine driver.

This module provides the main interface for talking to an N4300-series
laser barcode engine over a duplex byte stream.

The scanner owns a background read loop for its whole lifetime. Callers
issue scans and mode changes; the read loop frames incoming bytes and
either completes the caller's pending request or, in continuous mode,
hands decoded barcodes to subscribers.

Request flow:
    scan()/set_mode() -> acquire gate -> install expectation -> write command
    read loop -> frame -> resolve expectation | publish good read | drop

Engine states:
    CREATED -> start() -> RUNNING -> close() -> CLOSED
    RUNNING -> end-of-stream / read failure -> TERMINATED -> close() -> CLOSED

Example:
    >>> from n4313 import BarcodeScanner, ScannerMode
    >>> from n4313.transport import AsyncSerialTransport
    >>>
    >>> async def main():
    ...     async with BarcodeScanner(AsyncSerialTransport("/dev/ttyUSB0")) as scanner:
    ...         print(await scanner.scan())
    ...         scanner.subscribe(print)
    ...         await scanner.set_mode(ScannerMode.CONTINUOUS)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from n4313.correlation import CorrelationSlot, ExpectationKind, PendingExpectation
from n4313.events import GoodReadHandler, ObserverRegistry, SubscriptionHandle
from n4313.exceptions import (
    CommunicationError,
    InvalidStateError,
    OperationCancelledError,
    ProtocolError,
    TimeoutError,
)
from n4313.models.records import ScannerConfig, ScannerMode
from n4313.protocol.constants import Command, ProtocolConstants
from n4313.protocol.framer import Frame, LineFramer

if TYPE_CHECKING:
    from n4313.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)


class EngineState(Enum):
    """Lifecycle states of the scanner driver."""

    CREATED = auto()
    """Constructed, read loop not started yet."""

    RUNNING = auto()
    """Read loop active; operations accepted."""

    TERMINATED = auto()
    """Read loop ended on its own (end-of-stream or read failure)."""

    CLOSED = auto()
    """Shut down by close()."""


class BarcodeScanner:
    """
    Driver for a laser barcode scan engine.

    Only one scan or mode change is in flight at a time; concurrent callers
    queue on an internal lock. Continuous-mode reads are delivered to
    subscribers synchronously from the read loop, so a slow subscriber
    delays processing of every later frame.

    Once the read loop has terminated nothing can observe device replies
    any more, so every later operation fails with CommunicationError.

    Attributes:
        current_mode: Mode the engine was last successfully switched to.
        state: Lifecycle state of the driver.
        transport: The underlying transport.

    Example:
        >>> scanner = BarcodeScanner(transport)
        >>> await scanner.start()
        >>> try:
        ...     barcode = await scanner.scan(timeout=5)
        ... finally:
        ...     await scanner.close()
    """

    def __init__(
        self,
        transport: AbstractTransport,
        config: ScannerConfig | None = None,
    ) -> None:
        """
        Initialize the scanner.

        Args:
            transport: Duplex byte stream to the engine; opened by start()
                if it is not open yet.
            config: Timeouts and buffer sizes. Defaults to ScannerConfig().
        """
        self._transport = transport
        self._config = config or ScannerConfig()
        self._mode = ScannerMode.TRIGGER
        self._state = EngineState.CREATED
        self._gate = asyncio.Lock()
        self._slot = CorrelationSlot()
        self._framer = LineFramer()
        self._observers = ObserverRegistry()
        self._read_task: asyncio.Task[None] | None = None
        self._termination_reason: BaseException | None = None

    @property
    def current_mode(self) -> ScannerMode:
        """Get the current scanner mode."""
        return self._mode

    @property
    def state(self) -> EngineState:
        """Get the lifecycle state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if the read loop is active and operations are accepted."""
        return self._state == EngineState.RUNNING

    @property
    def is_busy(self) -> bool:
        """Check if a scan or mode change currently holds the gate."""
        return self._gate.locked()

    @property
    def pending(self) -> ExpectationKind:
        """Kind of reply the read loop is currently waiting for."""
        return self._slot.kind

    @property
    def transport(self) -> AbstractTransport:
        """Get the underlying transport."""
        return self._transport

    @property
    def config(self) -> ScannerConfig:
        """Get the driver configuration."""
        return self._config

    async def start(self) -> None:
        """
        Open the transport if needed and start the read loop.

        Calling start() on a running scanner does nothing.

        Raises:
            CommunicationError: If the scanner was already closed or terminated.
            TransportError: If the transport cannot be opened.
        """
        if self._state == EngineState.RUNNING:
            return
        if self._state != EngineState.CREATED:
            raise CommunicationError(f"Cannot start scanner in {self._state.name} state")

        if not self._transport.is_open:
            logger.debug("Opening transport %s", self._transport.port_name)
            await self._transport.open()

        self._read_task = asyncio.create_task(
            self._read_loop(),
            name=f"n4313-read-loop[{self._transport.port_name}]",
        )
        self._state = EngineState.RUNNING
        logger.info("Scanner started on %s", self._transport.port_name)

    async def scan(self, timeout: float | None = None) -> str:
        """
        Trigger the engine and wait for one decoded barcode.

        Cancelling the calling task abandons the wait; the gate is released
        and a late reply from the device is dropped.

        Args:
            timeout: Seconds to wait for the decode. None uses
                config.scan_timeout.

        Returns:
            Decoded barcode text with surrounding whitespace removed.

        Raises:
            InvalidStateError: If the scanner is in continuous mode.
            TimeoutError: If no barcode was decoded in time. The engine is
                sent a deactivate command so the laser turns off.
            OperationCancelledError: If the scanner was closed during the wait.
            CommunicationError: If the command could not be written or the
                read loop has terminated.
        """
        self._ensure_trigger_mode()
        self._ensure_running()

        effective_timeout = timeout if timeout is not None else self._config.scan_timeout

        async with self._gate:
            self._ensure_running()
            self._ensure_trigger_mode()

            # Trigger mode with nothing pending: anything buffered is unsolicited,
            # e.g. the tail of a mode acknowledgement that arrived after its timeout
            stale = self._framer.pending
            if stale:
                logger.warning("Discarding %d unsolicited bytes before scan: %r", len(stale), stale)
                self._framer.clear()

            logger.info("Starting scan...")
            future = self._slot.install(ExpectationKind.AWAITING_SCAN_RESULT)
            try:
                await self._send(Command.ACTIVATE)
                result = await self._wait(future, effective_timeout, "scan result")
            except TimeoutError:
                await self._deactivate()
                raise
            except asyncio.CancelledError:
                logger.warning("Scan operation was cancelled")
                raise
            except CommunicationError:
                logger.error("Scan failed", exc_info=True)
                raise
            finally:
                self._slot.clear(future)

        logger.info("Scan completed successfully. Result: %s", result)
        return result

    async def set_mode(self, mode: ScannerMode, timeout: float | None = None) -> None:
        """
        Switch the engine between trigger and continuous mode.

        Switching to the current mode is a no-op that writes nothing.
        Subscriptions are unaffected; only the routing of later frames
        changes.

        Args:
            mode: Target mode.
            timeout: Seconds to wait for the acknowledgement. None uses
                config.mode_timeout.

        Raises:
            ProtocolError: If mode is not a ScannerMode.
            TimeoutError: If the engine did not acknowledge in time.
            OperationCancelledError: If the scanner was closed during the wait.
            CommunicationError: If the command could not be written or the
                read loop has terminated.
        """
        if not isinstance(mode, ScannerMode):
            raise ProtocolError(f"Unknown scanner mode: {mode!r}")

        if mode == self._mode:
            logger.info("Scanner already in %s mode, no action taken", mode.name)
            return

        self._ensure_running()
        effective_timeout = timeout if timeout is not None else self._config.mode_timeout

        async with self._gate:
            self._ensure_running()
            if mode == self._mode:
                logger.info("Scanner already in %s mode, no action taken", mode.name)
                return

            logger.info("Attempting to set scanner mode to %s", mode.name)
            future = self._slot.install(ExpectationKind.AWAITING_ACK, target_mode=mode)
            try:
                logger.debug("Sending command %r for mode %s", mode.command, mode.name)
                await self._send(mode.command)
                await self._wait(future, effective_timeout, f"{mode.name} acknowledgement")
            except asyncio.CancelledError:
                logger.warning("Mode change to %s was cancelled", mode.name)
                raise
            finally:
                self._slot.clear(future)

            self._mode = mode

        logger.info("Scanner mode successfully changed to %s", mode.name)

    def subscribe(self, handler: GoodReadHandler) -> SubscriptionHandle:
        """
        Register a handler for barcodes decoded in continuous mode.

        The handler is called with the decoded text on the read loop. It
        must not block; exceptions it raises are logged and ignored.

        Returns:
            Handle to pass to unsubscribe().
        """
        return self._observers.subscribe(handler)

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        """
        Remove a handler registered with subscribe().

        Returns:
            True if the handler was registered.
        """
        return self._observers.unsubscribe(handle)

    async def good_reads(
        self,
        max_pending: int = ProtocolConstants.GOOD_READ_BACKLOG,
    ) -> AsyncGenerator[str, None]:
        """
        Iterate over barcodes decoded in continuous mode.

        Reads are queued as they arrive, so a slow consumer does not stall
        the read loop. Once max_pending reads are waiting, further reads are
        dropped with a warning. Iteration ends when the scanner stops
        running.

        The subscription lasts until the generator finishes. A consumer that
        stops early must call aclose() (or use contextlib.aclosing) to
        unsubscribe.

        Args:
            max_pending: Maximum number of undelivered reads to hold.

        Yields:
            Decoded barcode text.

        Example:
            >>> await scanner.set_mode(ScannerMode.CONTINUOUS)
            >>> async for barcode in scanner.good_reads():
            ...     print(barcode)
        """
        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=max_pending)

        def enqueue(text: str) -> None:
            try:
                queue.put_nowait(text)
            except asyncio.QueueFull:
                logger.warning("good_reads backlog full (%d), dropping %r", max_pending, text)

        handle = self.subscribe(enqueue)
        watcher = asyncio.create_task(self._notify_stopped(queue))
        try:
            while True:
                text = await queue.get()
                if text is None:
                    break
                yield text
        finally:
            watcher.cancel()
            self.unsubscribe(handle)

    async def close(self) -> None:
        """
        Stop the read loop and close the transport.

        Any pending scan or mode change fails with OperationCancelledError.
        Safe to call multiple times.
        """
        if self._state == EngineState.CLOSED:
            return

        logger.debug("Closing scanner on %s", self._transport.port_name)
        self._state = EngineState.CLOSED

        task, self._read_task = self._read_task, None
        try:
            if task is not None and not task.done():
                task.cancel()
                done, _ = await asyncio.wait({task}, timeout=self._config.shutdown_timeout)
                if not done:
                    logger.warning(
                        "Read loop did not stop within %.1fs",
                        self._config.shutdown_timeout,
                    )
        finally:
            self._slot.fail(OperationCancelledError("Scanner was closed"))
            self._framer.clear()
            await self._transport.close()
            logger.info("Scanner closed")

    async def _read_loop(self) -> None:
        """
        Background task reading and routing frames until the stream ends.

        This is the only place pending expectations are resolved.
        """
        reason: BaseException | None = None
        try:
            while True:
                chunk = await self._transport.read(self._config.read_chunk_size)
                if not chunk:
                    logger.warning("Transport %s reached end of stream", self._transport.port_name)
                    reason = CommunicationError("Transport reached end of stream")
                    break

                logger.debug("Received %d bytes: %r", len(chunk), chunk)
                self._framer.feed(chunk)
                self._process_buffer()

        except asyncio.CancelledError:
            reason = OperationCancelledError("Scanner was closed")
            raise

        except Exception as e:
            logger.error("Error in read loop", exc_info=True)
            reason = CommunicationError(f"Read loop failed: {e}")
            reason.__cause__ = e

        finally:
            self._terminate(reason)

    def _process_buffer(self) -> None:
        """Route every complete frame currently buffered."""
        while True:
            # An acknowledgement clears the flag, so re-evaluate per frame
            frame = self._framer.next_frame(ack_pending=self._slot.awaiting_ack)
            if frame is None:
                return
            self._route_frame(frame)

    def _route_frame(self, frame: Frame) -> None:
        pending = self._slot.pending

        if pending is not None and pending.kind == ExpectationKind.AWAITING_ACK:
            self._handle_acknowledgement(frame, pending)
            return

        text = frame.text
        if not text:
            return

        logger.debug("Received line: %r in mode: %s", text, self._mode.name)

        if (
            self._mode == ScannerMode.TRIGGER
            and pending is not None
            and pending.kind == ExpectationKind.AWAITING_SCAN_RESULT
        ):
            if self._slot.resolve(text):
                logger.debug("Scan result set: %r", text)
            else:
                logger.warning("Scan result %r arrived after the caller gave up", text)

        elif self._mode == ScannerMode.CONTINUOUS:
            self._observers.publish(text)

        else:
            logger.warning("Received data %r but no active scan or wrong mode", text)

    def _handle_acknowledgement(self, frame: Frame, pending: PendingExpectation) -> None:
        controls = frame.control_bytes
        if "NAK" in controls or "ENQ" in controls:
            logger.warning("Engine replied %s to menu command: %r", "/".join(controls), frame.payload)
        else:
            logger.debug("Acknowledgement received: %r", frame.payload)

        if self._slot.resolve(frame.payload) and pending.target_mode is not None:
            # The engine has switched once it acknowledges; bytes after the ack in
            # this chunk already follow the new mode. set_mode() assigns the same
            # value after its wait, so a caller cancelled at this instant still
            # leaves the mode matching the device.
            self._mode = pending.target_mode

    def _terminate(self, reason: BaseException | None) -> None:
        if self._state == EngineState.RUNNING:
            self._state = EngineState.TERMINATED
            self._termination_reason = reason
            logger.error("Read loop terminated: %s", reason)
        if reason is not None and self._slot.fail(reason):
            logger.debug("Failed pending request: %s", reason)

    async def _send(self, command: bytes) -> None:
        """Write a command, wrapping any failure as CommunicationError."""
        try:
            await self._transport.write(command)
        except Exception as e:
            raise CommunicationError("Failed to send command to scanner.") from e

    async def _wait(
        self,
        future: asyncio.Future[Any],
        timeout: float | None,
        description: str,
    ) -> Any:
        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            logger.warning("Timed out waiting for %s", description)
            raise TimeoutError(
                f"Timed out waiting for {description}",
                timeout_seconds=timeout,
            ) from None

    async def _deactivate(self) -> None:
        """Turn the laser off after an abandoned scan (best effort)."""
        try:
            await self._send(Command.DEACTIVATE)
        except CommunicationError as e:
            logger.warning("Failed to deactivate engine: %s", e.__cause__ or e)

    async def _notify_stopped(self, queue: asyncio.Queue[str | None]) -> None:
        task = self._read_task
        if task is not None:
            await asyncio.wait({task})
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(None)

    def _ensure_trigger_mode(self) -> None:
        if self._mode == ScannerMode.CONTINUOUS:
            logger.warning("Scan attempted in continuous mode. Operation not allowed.")
            raise InvalidStateError("Can't trigger scan in continuous mode", mode=self._mode)

    def _ensure_running(self) -> None:
        if self._state == EngineState.RUNNING:
            return
        if self._state == EngineState.CREATED:
            raise CommunicationError("Scanner not started; call start() or use 'async with'")
        if self._state == EngineState.TERMINATED:
            raise CommunicationError(f"Scanner read loop has terminated: {self._termination_reason}")
        raise CommunicationError("Scanner is closed")

    async def __aenter__(self) -> BarcodeScanner:
        """Async context manager entry - starts the read loop."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - stops the read loop and closes the transport."""
        await self.close()

    def __repr__(self) -> str:
        return (
            f"BarcodeScanner(port={self._transport.port_name!r}, "
            f"mode={self._mode.name}, state={self._state.name})"
        )
