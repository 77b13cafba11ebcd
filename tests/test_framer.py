"""Tests for line framing."""

import pytest

from n4313.protocol.framer import Frame, LineFramer, delimiters_for, find_frame


def drain(framer: LineFramer, ack_pending: bool = False) -> list[Frame]:
    frames = []
    frame = framer.next_frame(ack_pending)
    while frame is not None:
        frames.append(frame)
        frame = framer.next_frame(ack_pending)
    return frames


class TestFindFrame:
    """Tests for the pure frame locator."""

    def test_line_frame_strips_cr(self):
        """Test a CR-terminated line is found with the CR removed."""
        frame, consumed = find_frame(b"123456789\r", ack_pending=False)
        assert frame.payload == b"123456789"
        assert frame.delimiter == 0x0D
        assert consumed == 10

    def test_line_frame_consumes_one_delimiter(self):
        """Test only the CR of a CRLF pair is consumed."""
        frame, consumed = find_frame(b"abc\r\n", ack_pending=False)
        assert frame.payload == b"abc"
        assert consumed == 4

    @pytest.mark.parametrize(
        "data,payload,delimiter",
        [
            (b"ab\ncd\r", b"ab", 0x0A),
            (b"ab\rcd\n", b"ab", 0x0D),
            (b"\nab\r", b"", 0x0A),
        ],
    )
    def test_earliest_delimiter_wins(self, data, payload, delimiter):
        """Test the first delimiter in the buffer ends the frame, whichever it is."""
        frame, consumed = find_frame(data, ack_pending=False)
        assert frame.payload == payload
        assert frame.delimiter == delimiter
        assert consumed == len(payload) + 1

    @pytest.mark.parametrize(
        "data,payload",
        [(b"AB.CD!", b"AB"), (b"AB!CD.", b"AB")],
    )
    def test_earliest_ack_terminator_wins(self, data, payload):
        """Test '!' and '.' are searched together."""
        frame, _ = find_frame(data, ack_pending=True)
        assert frame.payload == payload

    def test_bytearray_buffer(self):
        """Test frames are found in a mutable buffer."""
        frame, consumed = find_frame(bytearray(b"x" * 5000 + b"\n"), ack_pending=False)
        assert frame.payload == b"x" * 5000
        assert isinstance(frame.payload, bytes)
        assert consumed == 5001

    def test_incomplete_returns_none(self):
        """Test that no frame is reported before a delimiter arrives."""
        assert find_frame(b"12345", ack_pending=False) is None
        assert find_frame(b"", ack_pending=False) is None

    def test_ack_rule_ignores_line_endings(self):
        """Test CR/LF are ordinary bytes while an ack is pending."""
        assert find_frame(b"123\r\n", ack_pending=True) is None

    @pytest.mark.parametrize("terminator", [b"!", b"."])
    def test_ack_frame(self, terminator):
        """Test both '!' and '.' end an acknowledgement frame."""
        frame, consumed = find_frame(b"PAPPM3\x06" + terminator + b"rest", ack_pending=True)
        assert frame.payload == b"PAPPM3\x06"
        assert frame.delimiter == terminator[0]
        assert consumed == 8

    def test_line_rule_ignores_punctuation(self):
        """Test '!' and '.' do not split data lines."""
        frame, _ = find_frame(b"http://example.com/a!\r", ack_pending=False)
        assert frame.payload == b"http://example.com/a!"

    def test_delimiters_for(self):
        """Test delimiter set selection."""
        assert delimiters_for(True) == b"!."
        assert delimiters_for(False) == b"\r\n"


class TestFrame:
    """Tests for the Frame value object."""

    def test_text_is_trimmed(self):
        """Test decoded text has whitespace removed."""
        assert Frame(b"  4006381333931 ", 0x0D).text == "4006381333931"

    def test_empty_frame(self):
        """Test whitespace-only frames count as empty."""
        assert Frame(b"", 0x0A).is_empty
        assert Frame(b" \t", 0x0A).is_empty
        assert not Frame(b"x", 0x0A).is_empty

    def test_control_bytes(self):
        """Test ACK/NAK/ENQ bytes are reported by name."""
        assert Frame(b"PAPPM3\x06", ord("!")).control_bytes == ["ACK"]
        assert Frame(b"PAPPM9\x15", ord("!")).control_bytes == ["NAK"]
        assert Frame(b"123", 0x0D).control_bytes == []

    def test_is_acknowledgement(self):
        """Test acknowledgement detection by delimiter."""
        assert Frame(b"X", ord(".")).is_acknowledgement
        assert not Frame(b"X", 0x0D).is_acknowledgement

    def test_frame_is_immutable(self):
        """Test frames cannot be modified."""
        frame = Frame(b"abc", 0x0D)
        with pytest.raises(AttributeError):
            frame.payload = b"xyz"


class TestLineFramer:
    """Tests for the accumulating framer."""

    @pytest.fixture
    def framer(self):
        """Create an empty LineFramer."""
        return LineFramer()

    def test_partial_data_is_retained(self, framer):
        """Test bytes without a delimiter stay buffered across feeds."""
        framer.feed(b"1234")
        assert framer.next_frame(ack_pending=False) is None
        assert framer.pending == b"1234"

        framer.feed(b"56789\r")
        frame = framer.next_frame(ack_pending=False)
        assert frame.text == "123456789"
        assert len(framer) == 0

    def test_crlf_yields_trailing_empty_frame(self, framer):
        """Test CRLF produces the line then an empty frame."""
        framer.feed(b"123456789\r\n")
        frames = drain(framer)
        assert [f.payload for f in frames] == [b"123456789", b""]
        assert frames[1].is_empty

    def test_rule_switch_mid_buffer(self, framer):
        """Test the remainder after an ack is framed under the line rule."""
        framer.feed(b"PAPPM3\x06!4006381333931\r")
        ack = framer.next_frame(ack_pending=True)
        assert ack.payload == b"PAPPM3\x06"

        line = framer.next_frame(ack_pending=False)
        assert line.text == "4006381333931"

    def test_chunking_does_not_change_frames(self):
        """Test N delimited frames come out the same for every chunk size."""
        stream = b"111\r222\r\n333\n\r444\r"
        expected = drain_all(stream, len(stream))

        assert [f.text for f in expected if not f.is_empty] == ["111", "222", "333", "444"]
        for size in range(1, len(stream)):
            assert drain_all(stream, size) == expected

    def test_ack_frames_across_chunks(self):
        """Test acknowledgement framing across arbitrary chunk boundaries."""
        stream = b"PAPPM3\x06!AOSDFT\x06.REVINF\x06!"
        for size in range(1, len(stream) + 1):
            frames = drain_all(stream, size, ack_pending=True)
            assert [f.payload for f in frames] == [b"PAPPM3\x06", b"AOSDFT\x06", b"REVINF\x06"]

    def test_large_buffer_is_unbounded(self, framer):
        """Test long lines accumulate without being cut."""
        data = b"A" * 100_000
        framer.feed(data)
        assert framer.next_frame(ack_pending=False) is None
        framer.feed(b"\r")
        assert framer.next_frame(ack_pending=False).payload == data

    def test_clear(self, framer):
        """Test discarding buffered bytes."""
        framer.feed(b"partial")
        framer.clear()
        assert framer.pending == b""


def drain_all(stream: bytes, chunk_size: int, ack_pending: bool = False) -> list[Frame]:
    framer = LineFramer()
    frames = []
    for start in range(0, len(stream), chunk_size):
        framer.feed(stream[start:start + chunk_size])
        frames.extend(drain(framer, ack_pending))
    return frames
