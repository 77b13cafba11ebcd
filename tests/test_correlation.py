"""Tests for the correlation slot."""

import asyncio

import pytest

from n4313.correlation import CorrelationSlot, ExpectationKind
from n4313.exceptions import CommunicationError
from n4313.models.records import ScannerMode


class TestCorrelationSlot:
    """Tests for CorrelationSlot class."""

    @pytest.fixture
    def slot(self):
        """Create an empty CorrelationSlot."""
        return CorrelationSlot()

    def test_initially_empty(self, slot):
        """Test slot starts with nothing pending."""
        assert slot.kind == ExpectationKind.NONE
        assert slot.pending is None
        assert not slot.awaiting_ack

    @pytest.mark.asyncio
    async def test_resolve_delivers_value(self, slot):
        """Test resolving completes the future and empties the slot."""
        future = slot.install(ExpectationKind.AWAITING_SCAN_RESULT)
        assert slot.kind == ExpectationKind.AWAITING_SCAN_RESULT

        assert slot.resolve("123456789") is True
        assert await future == "123456789"
        assert slot.kind == ExpectationKind.NONE

    @pytest.mark.asyncio
    async def test_ack_expectation_carries_target_mode(self, slot):
        """Test AWAITING_ACK records the mode to switch to."""
        slot.install(ExpectationKind.AWAITING_ACK, target_mode=ScannerMode.CONTINUOUS)
        assert slot.awaiting_ack
        assert slot.pending.target_mode == ScannerMode.CONTINUOUS

    @pytest.mark.asyncio
    async def test_single_occupancy(self, slot):
        """Test a second expectation cannot be installed over the first."""
        slot.install(ExpectationKind.AWAITING_ACK)
        with pytest.raises(RuntimeError):
            slot.install(ExpectationKind.AWAITING_SCAN_RESULT)

    @pytest.mark.asyncio
    async def test_install_none_rejected(self, slot):
        """Test NONE is not an installable expectation."""
        with pytest.raises(ValueError):
            slot.install(ExpectationKind.NONE)

    @pytest.mark.asyncio
    async def test_resolve_after_cancel_is_noop(self, slot):
        """Test a reply after the caller gave up is not delivered."""
        future = slot.install(ExpectationKind.AWAITING_SCAN_RESULT)
        future.cancel()

        assert slot.resolve("late") is False
        assert slot.kind == ExpectationKind.NONE

    @pytest.mark.asyncio
    async def test_no_double_resolution(self, slot):
        """Test only the first resolution reaches the caller."""
        future = slot.install(ExpectationKind.AWAITING_SCAN_RESULT)
        assert slot.resolve("first") is True
        assert slot.resolve("second") is False
        assert slot.fail(CommunicationError("x")) is False
        assert future.result() == "first"

    @pytest.mark.asyncio
    async def test_fail_delivers_exception(self, slot):
        """Test failing propagates the exception to the waiter."""
        future = slot.install(ExpectationKind.AWAITING_ACK)
        assert slot.fail(CommunicationError("closed")) is True
        with pytest.raises(CommunicationError):
            await future

    def test_resolve_empty_slot(self, slot):
        """Test resolving with nothing pending returns False."""
        assert slot.resolve("stray") is False

    @pytest.mark.asyncio
    async def test_clear_only_matching_future(self, slot):
        """Test clear(future) leaves a newer expectation alone."""
        old = slot.install(ExpectationKind.AWAITING_SCAN_RESULT)
        slot.resolve("done")
        new = slot.install(ExpectationKind.AWAITING_ACK)

        slot.clear(old)
        assert slot.kind == ExpectationKind.AWAITING_ACK

        slot.clear(new)
        assert slot.kind == ExpectationKind.NONE

    @pytest.mark.asyncio
    async def test_waiter_unblocked_from_other_task(self, slot):
        """Test a waiting task is woken by a resolution from another task."""
        future = slot.install(ExpectationKind.AWAITING_SCAN_RESULT)

        async def reader():
            await asyncio.sleep(0.01)
            slot.resolve("abc")

        task = asyncio.create_task(reader())
        assert await asyncio.wait_for(future, 1.0) == "abc"
        await task

    def test_repr(self, slot):
        """Test string representation."""
        assert "NONE" in repr(slot)
