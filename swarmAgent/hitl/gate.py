"""Approval gate: one cancellable waiter per pending approval request.

A waiter ends exactly once, by whichever comes first of a decision, its
timeout or an abort of the owning execution. The gate itself never touches
execution state; on timeout it hands the request back through ``on_timeout``
so the engine can record an auto-deny like any other decision.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Set

LOGGER = logging.getLogger(__name__)


class WaiterOutcome(str, Enum):
    DECISION = "decision"
    TIMEOUT = "timeout"
    ABORT = "abort"


@dataclass
class _Waiter:
    execution_id: str
    request_id: str
    future: asyncio.Future
    timer: Optional[asyncio.TimerHandle] = None


class ApprovalGate:
    """Tracks waiters keyed by approval request id."""

    def __init__(self, on_timeout: Callable[[str, str], Awaitable[None]]):
        self._on_timeout = on_timeout
        self._waiters: Dict[str, _Waiter] = {}
        self._timeout_tasks: Set[asyncio.Task] = set()

    def arm(self, execution_id: str, request_id: str, timeout: Optional[float]) -> asyncio.Future:
        """Start waiting on ``request_id``; ``timeout=None`` waits indefinitely.

        Arming an already armed request returns the existing waiter.
        """
        existing = self._waiters.get(request_id)
        if existing is not None:
            return existing.future

        loop = asyncio.get_running_loop()
        waiter = _Waiter(execution_id=execution_id, request_id=request_id, future=loop.create_future())
        if timeout is not None:
            waiter.timer = loop.call_later(max(timeout, 0.0), self._expire, request_id)
        self._waiters[request_id] = waiter
        LOGGER.debug(f"Armed approval waiter {request_id} (timeout={timeout})")
        return waiter.future

    def resolve(self, request_id: str) -> bool:
        """A decision arrived. Returns False if the waiter already ended."""
        return self._settle(request_id, WaiterOutcome.DECISION) is not None

    def cancel_execution(self, execution_id: str) -> int:
        """End every waiter of ``execution_id`` with ABORT; returns how many ended."""
        request_ids = [w.request_id for w in self._waiters.values() if w.execution_id == execution_id]
        return sum(1 for request_id in request_ids if self._settle(request_id, WaiterOutcome.ABORT))

    def cancel_all(self) -> int:
        return sum(1 for request_id in list(self._waiters) if self._settle(request_id, WaiterOutcome.ABORT))

    def is_armed(self, request_id: str) -> bool:
        return request_id in self._waiters

    def pending_ids(self, execution_id: str) -> List[str]:
        return [w.request_id for w in self._waiters.values() if w.execution_id == execution_id]

    async def wait_for_timeouts(self) -> None:
        """Wait until every auto-deny handed to ``on_timeout`` has finished."""
        while self._timeout_tasks:
            await asyncio.gather(*list(self._timeout_tasks), return_exceptions=True)

    def _settle(self, request_id: str, outcome: WaiterOutcome) -> Optional[_Waiter]:
        waiter = self._waiters.pop(request_id, None)
        if waiter is None or waiter.future.done():
            return None
        if waiter.timer is not None:
            waiter.timer.cancel()
        waiter.future.set_result(outcome)
        return waiter

    def _expire(self, request_id: str) -> None:
        waiter = self._settle(request_id, WaiterOutcome.TIMEOUT)
        if waiter is None:
            return
        LOGGER.info(f"Approval request {request_id} timed out; auto-denying")
        task = asyncio.ensure_future(self._on_timeout(waiter.execution_id, request_id))
        self._timeout_tasks.add(task)
        task.add_done_callback(self._timeout_done)

    def _timeout_done(self, task: asyncio.Task) -> None:
        self._timeout_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            LOGGER.error("Auto-deny after approval timeout failed", exc_info=task.exception())


__all__ = ["ApprovalGate", "WaiterOutcome"]
