"""
Single-slot correlation between commands and device replies.

The scanner has at most one request outstanding at any time. The caller
that holds the exclusion gate installs an expectation before writing its
command, and the read loop is the only party that resolves it. Both sides
share one event loop, so no further locking is needed.

Resolution is first-wins: once the waiting future is done (resolved,
failed, or cancelled by the caller's timeout) later attempts are no-ops,
which is what makes a reply arriving after cancellation harmless.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from n4313.models.records import ScannerMode


class ExpectationKind(Enum):
    """What the read loop should do with the next meaningful frame."""

    NONE = auto()
    """Nothing pending."""

    AWAITING_ACK = auto()
    """A menu command reply ('!' or '.' terminated) is expected."""

    AWAITING_SCAN_RESULT = auto()
    """A decoded barcode line is expected."""


@dataclass
class PendingExpectation:
    """
    The one outstanding expectation.

    Attributes:
        kind: What kind of reply is awaited.
        future: Completed by the read loop with the reply.
        target_mode: Mode to enter once an acknowledgement arrives.
    """

    kind: ExpectationKind
    future: asyncio.Future[Any] = field(repr=False)
    target_mode: ScannerMode | None = None


class CorrelationSlot:
    """
    Mailbox holding at most one PendingExpectation.

    Example:
        >>> slot = CorrelationSlot()
        >>> future = slot.install(ExpectationKind.AWAITING_SCAN_RESULT)
        >>> slot.resolve("123456789")      # read loop side
        True
        >>> future.result()
        '123456789'
    """

    def __init__(self) -> None:
        self._pending: PendingExpectation | None = None

    @property
    def kind(self) -> ExpectationKind:
        """Kind of the current expectation (NONE if empty)."""
        if self._pending is None:
            return ExpectationKind.NONE
        return self._pending.kind

    @property
    def pending(self) -> PendingExpectation | None:
        """The current expectation, if any."""
        return self._pending

    @property
    def awaiting_ack(self) -> bool:
        """Check if a menu reply is expected (selects the framing rule)."""
        return self.kind is ExpectationKind.AWAITING_ACK

    def install(
        self,
        kind: ExpectationKind,
        target_mode: ScannerMode | None = None,
    ) -> asyncio.Future[Any]:
        """
        Create a new expectation.

        Must be called from a running event loop by the gate holder.

        Args:
            kind: AWAITING_ACK or AWAITING_SCAN_RESULT.
            target_mode: Mode carried by an AWAITING_ACK expectation.

        Returns:
            Future the caller awaits.

        Raises:
            ValueError: If kind is NONE.
            RuntimeError: If an expectation is already pending.
        """
        if kind is ExpectationKind.NONE:
            raise ValueError("Cannot install an empty expectation")
        if self._pending is not None:
            raise RuntimeError(f"Expectation already pending: {self._pending.kind.name}")

        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending = PendingExpectation(kind=kind, future=future, target_mode=target_mode)
        return future

    def resolve(self, value: Any) -> bool:
        """
        Complete the pending expectation with a value and empty the slot.

        Returns:
            True if a waiting caller received the value, False if nothing was
            pending or the caller had already given up.
        """
        pending = self._take()
        if pending is None or pending.future.done():
            return False
        pending.future.set_result(value)
        return True

    def fail(self, exc: BaseException) -> bool:
        """
        Complete the pending expectation with an exception and empty the slot.

        Returns:
            True if a waiting caller received the exception.
        """
        pending = self._take()
        if pending is None or pending.future.done():
            return False
        pending.future.set_exception(exc)
        return True

    def clear(self, future: asyncio.Future[Any] | None = None) -> None:
        """
        Empty the slot without resolving it.

        Args:
            future: If given, only clear when it is still the pending one.
        """
        if self._pending is None:
            return
        if future is not None and self._pending.future is not future:
            return
        self._pending = None

    def _take(self) -> PendingExpectation | None:
        pending, self._pending = self._pending, None
        return pending

    def __repr__(self) -> str:
        return f"CorrelationSlot({self.kind.name})"
