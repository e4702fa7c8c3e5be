"""Readiness gate for renderer updates.

Updates issued before the renderer has created its data sources are queued
and replayed in order once it has. After that the gate is bypassed for good.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger("trailmap.gate")


class GateState(Enum):
    NOT_READY = "not_ready"
    READY = "ready"


class ReadinessGate:
    """Two-state gate deferring update thunks until the renderer is ready.

    ``NOT_READY`` → ``READY`` is the only transition and it never reverts.

    Examples
    --------
    >>> calls = []
    >>> gate = ReadinessGate()
    >>> gate.submit(lambda: calls.append(1))
    >>> gate.submit(lambda: calls.append(2))
    >>> calls
    []
    >>> gate.open()
    >>> calls
    [1, 2]
    >>> gate.submit(lambda: calls.append(3))
    >>> calls
    [1, 2, 3]
    """

    def __init__(self) -> None:
        self._state = GateState.NOT_READY
        self._pending: deque[Callable[[], None]] = deque()

    @property
    def state(self) -> GateState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is GateState.READY

    @property
    def pending(self) -> int:
        """Number of queued thunks."""
        return len(self._pending)

    def submit(self, thunk: Callable[[], None]) -> None:
        """Run ``thunk`` now if ready, otherwise queue it."""
        if self._state is GateState.READY:
            thunk()
        else:
            self._pending.append(thunk)

    def open(self) -> None:
        """Transition to ``READY`` and drain the queue in submission order.

        Calling ``open`` on an open gate does nothing.
        """
        if self._state is GateState.READY:
            return
        logger.debug("Readiness gate opening, flushing %d queued updates", len(self._pending))
        # Thunks submitted while draining are queued behind the rest.
        while self._pending:
            self._pending.popleft()()
        self._state = GateState.READY


__all__ = ["GateState", "ReadinessGate"]
