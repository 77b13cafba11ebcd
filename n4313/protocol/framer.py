"""
Line framing for the scan engine byte stream.

The engine speaks two kinds of frames over the same stream:

1. **Acknowledgement frames**: replies to menu commands
   - Format: [ECHOED COMMAND][ACK|NAK|ENQ]['!' | '.']
   - Only expected while a menu command is awaiting its reply

2. **Data lines**: decoded barcodes
   - Format: [BARCODE TEXT][CR | LF]
   - A CRLF suffix yields the line followed by an empty frame, which
     callers discard

Which delimiter set applies depends only on whether an acknowledgement is
pending, never on the scanner mode. Bytes that do not yet contain a
delimiter stay buffered until a later read completes them.
"""

from __future__ import annotations

from dataclasses import dataclass

from n4313.protocol.constants import CONTROL_BYTE_NAMES, ProtocolConstants


@dataclass(frozen=True)
class Frame:
    """
    One frame extracted from the stream.

    Attributes:
        payload: Frame bytes with the delimiter stripped.
        delimiter: The delimiter byte that ended the frame.
    """

    payload: bytes
    delimiter: int

    @property
    def text(self) -> str:
        """Payload decoded as ASCII with surrounding whitespace trimmed."""
        return self.payload.decode("ascii", errors="replace").strip()

    @property
    def is_empty(self) -> bool:
        """Check if nothing but whitespace was received."""
        return not self.text

    @property
    def is_acknowledgement(self) -> bool:
        """Check if the frame was ended by a menu reply terminator."""
        return self.delimiter in ProtocolConstants.ACK_DELIMITERS

    @property
    def control_bytes(self) -> list[str]:
        """Names of the ACK/NAK/ENQ bytes contained in the payload, in order."""
        return [CONTROL_BYTE_NAMES[b] for b in self.payload if b in CONTROL_BYTE_NAMES]

    def __repr__(self) -> str:
        return f"Frame({self.payload!r}, delimiter={bytes([self.delimiter])!r})"


def delimiters_for(ack_pending: bool) -> bytes:
    """Return the delimiter set for the current framing rule."""
    if ack_pending:
        return ProtocolConstants.ACK_DELIMITERS
    return ProtocolConstants.LINE_DELIMITERS


def find_frame(
    buffer: bytes | bytearray,
    ack_pending: bool,
) -> tuple[Frame, int] | None:
    """
    Locate the first complete frame in a buffer.

    Args:
        buffer: Bytes accumulated so far.
        ack_pending: Whether a menu command reply is expected.

    Returns:
        (frame, bytes_consumed) where bytes_consumed includes exactly one
        delimiter byte, or None if no delimiter has arrived yet.
    """
    positions = [buffer.find(bytes([d])) for d in delimiters_for(ack_pending)]
    positions = [p for p in positions if p >= 0]
    if not positions:
        return None
    index = min(positions)
    return Frame(payload=bytes(buffer[:index]), delimiter=buffer[index]), index + 1


class LineFramer:
    """
    Accumulating frame extractor.

    Bytes are appended with feed() and frames are pulled one at a time
    with next_frame(). The framing rule is chosen per call so that a
    reply that changes the rule (an acknowledgement) is followed by the
    remaining bytes being framed under the new rule.

    Example:
        >>> framer = LineFramer()
        >>> framer.feed(b"1234")
        >>> framer.next_frame(ack_pending=False) is None
        True
        >>> framer.feed(b"5\\r")
        >>> framer.next_frame(ack_pending=False).text
        '12345'
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet part of a complete frame."""
        return bytes(self._buffer)

    def feed(self, data: bytes) -> None:
        """Append newly received bytes."""
        self._buffer.extend(data)

    def next_frame(self, ack_pending: bool) -> Frame | None:
        """
        Remove and return the next complete frame, if any.

        Args:
            ack_pending: Whether a menu command reply is expected.

        Returns:
            The frame, or None if more data is needed.
        """
        found = find_frame(self._buffer, ack_pending)
        if found is None:
            return None
        frame, consumed = found
        del self._buffer[:consumed]
        return frame

    def clear(self) -> None:
        """Discard all buffered bytes."""
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)
