"""Tests for the background worker."""
import pytest

from backend.network_worker import NetworkWorker, make_operation_id, parse_operation_id


class TestOperationIds:
    """Tests for "<kind>:<seq>" operation ids."""

    def test_round_trip(self):
        """Test building and splitting an id."""
        assert make_operation_id("appointments", 7) == "appointments:7"
        assert parse_operation_id("appointments:7") == ("appointments", 7)

    @pytest.mark.parametrize("operation_id", ["refresh", "detail:abc"])
    def test_without_sequence(self, operation_id):
        """Test ids without a numeric sequence."""
        assert parse_operation_id(operation_id) == (operation_id, -1)


class TestNetworkWorker:
    """Tests for NetworkWorker bookkeeping."""

    def test_submit_after_shutdown_ignored(self):
        """Test nothing runs once the worker is shut down."""
        worker = NetworkWorker(max_workers=1)
        worker.shutdown(wait=True)
        calls = []
        worker.submit("appointments:1", calls.append, 1)
        assert calls == []
        assert not worker.is_pending("appointments:1")

    def test_cancel_unknown(self):
        """Test cancelling an unknown operation."""
        worker = NetworkWorker(max_workers=1)
        try:
            assert worker.cancel("appointments:1") is False
            assert worker.cancel_kind("appointments") == 0
        finally:
            worker.shutdown(wait=True)
