"""Tests for RebaseSession."""

from unittest.mock import Mock

import pytest

from git_rebase_pilot.continuation import RebaseSession


class TestRebaseSession:
    """Test cases for the pending continuation state machine."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.session = RebaseSession()

    def test_starts_idle(self) -> None:
        assert not self.session.has_pending

    def test_continue_runs_queued_operation_once(self) -> None:
        """Test queue then continue runs the operation exactly once."""
        operation = Mock()
        self.session.queue(operation)

        self.session.on_continue_succeeded()
        self.session.on_continue_succeeded()

        operation.assert_called_once_with()
        assert not self.session.has_pending

    def test_abort_discards_operation(self) -> None:
        """Test queue then abort never runs the operation."""
        operation = Mock()
        self.session.queue(operation)

        self.session.on_abort()
        self.session.on_continue_succeeded()

        operation.assert_not_called()
        assert not self.session.has_pending

    def test_continue_when_idle_is_noop(self) -> None:
        self.session.on_continue_succeeded()

        assert not self.session.has_pending

    def test_queue_replaces_pending(self) -> None:
        first = Mock()
        second = Mock()
        self.session.queue(first)
        self.session.queue(second)

        self.session.on_continue_succeeded()

        first.assert_not_called()
        second.assert_called_once_with()

    def test_operation_error_propagates_and_clears(self) -> None:
        """Test errors from the continuation reach the caller."""
        operation = Mock(side_effect=RuntimeError("amend failed"))
        self.session.queue(operation)

        with pytest.raises(RuntimeError, match="amend failed"):
            self.session.on_continue_succeeded()

        assert not self.session.has_pending

    def test_operation_may_queue_follow_up(self) -> None:
        """Test a continuation can queue the next phase while it runs."""
        follow_up = Mock()
        self.session.queue(lambda: self.session.queue(follow_up))

        self.session.on_continue_succeeded()

        assert self.session.has_pending
        self.session.on_continue_succeeded()
        follow_up.assert_called_once_with()
