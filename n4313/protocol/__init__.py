"""
Protocol layer for scan engine communication.

This module contains the low-level protocol handling:
- Command sequences and control bytes
- Delimiter and timing constants
- Line framing of the incoming byte stream
"""

from n4313.protocol.constants import Command, ControlByte, ProtocolConstants
from n4313.protocol.framer import Frame, LineFramer, delimiters_for, find_frame

__all__ = [
    # Constants
    "Command",
    "ControlByte",
    "ProtocolConstants",
    # Framing
    "Frame",
    "LineFramer",
    "delimiters_for",
    "find_frame",
]
