"""Deferred follow-up steps for multi-phase rebase workflows."""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)

Continuation = Callable[[], None]


class RebaseSession:
    """Holds at most one step to run after the next successful rebase continue.

    Some workflows stop a rebase so that a single-commit operation can run with
    the commit at HEAD, then resume. If git pauses on conflicts in between, the
    remaining step is queued here and picked up by whoever issues the continue.
    One workflow owns the session at a time; queueing over a pending step
    replaces it.
    """

    def __init__(self) -> None:
        self._pending: Optional[Continuation] = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def queue(self, operation: Continuation) -> None:
        if self._pending is not None:
            logger.warning("Replacing a pending rebase continuation")
        self._pending = operation

    def on_abort(self) -> None:
        if self._pending is not None:
            logger.debug("Discarding pending rebase continuation")
        self._pending = None

    def on_continue_succeeded(self) -> None:
        """Run the pending step, if any. Errors from the step propagate."""
        operation = self._pending
        if operation is None:
            return
        self._pending = None
        logger.debug("Running pending rebase continuation")
        operation()
