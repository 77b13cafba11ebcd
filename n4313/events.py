"""
Observer registry for continuous-mode reads.

Handlers are plain callables taking the decoded text. They are invoked
synchronously on the scanner's read loop, in the order they subscribed.
A handler that raises is logged and skipped; the remaining handlers still
run and the read loop keeps going. A handler that blocks or runs long
stalls the read loop and therefore delays every later frame, so handlers
should hand work off (e.g. to a queue) rather than do it inline.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

GoodReadHandler = Callable[[str], object]


@dataclass(frozen=True)
class SubscriptionHandle:
    """Opaque token returned by subscribe(); pass it to unsubscribe()."""

    id: int


class ObserverRegistry:
    """
    Ordered set of good-read handlers.

    Example:
        >>> registry = ObserverRegistry()
        >>> seen = []
        >>> handle = registry.subscribe(seen.append)
        >>> registry.publish("123456789")
        1
        >>> seen
        ['123456789']
        >>> registry.unsubscribe(handle)
        True
    """

    def __init__(self) -> None:
        self._handlers: dict[int, GoodReadHandler] = {}
        self._ids = itertools.count(1)

    def subscribe(self, handler: GoodReadHandler) -> SubscriptionHandle:
        """
        Register a handler.

        The same callable may be registered more than once; each
        registration gets its own handle and is called separately.
        """
        if not callable(handler):
            raise TypeError(f"Handler must be callable, got {type(handler).__name__}")
        handle = SubscriptionHandle(next(self._ids))
        self._handlers[handle.id] = handler
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        """
        Remove a registration.

        Returns:
            True if the handle was registered, False if already removed.
        """
        return self._handlers.pop(handle.id, None) is not None

    def publish(self, text: str) -> int:
        """
        Deliver text to every handler in subscription order.

        Returns:
            Number of handlers that completed without raising.
        """
        delivered = 0
        # Snapshot so handlers may (un)subscribe while being called
        for handle_id, handler in list(self._handlers.items()):
            try:
                handler(text)
            except Exception:
                logger.exception("Good-read handler %d failed for %r", handle_id, text)
                continue
            delivered += 1
        return delivered

    def clear(self) -> None:
        """Remove every registration."""
        self._handlers.clear()

    def __len__(self) -> int:
        return len(self._handlers)
