"""Swarm engine: submit, decide, abort, inspect and recover executions.

Each execution has a single writer. Every operation that reads and rewrites an
execution's snapshot runs under that execution's lock, so a decision is applied
at most once no matter how often it is delivered: the first delivery flips the
request out of ``pending`` and later ones find nothing to do.

Between advances the only state is the snapshot in the store. An execution
waiting for approvals holds no coroutine, only gate timers, which are re-armed
from the snapshot after a restart.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

from langgraph.errors import GraphRecursionError
from pydantic import BaseModel

from swarmAgent.agents.registry import AgentRegistry
from swarmAgent.config.settings import Settings, get_settings
from swarmAgent.graph.builder import build_swarm_graph
from swarmAgent.graph.events import (
    ApprovalDecided,
    DecisionSource,
    EventChannel,
    ExecutionStatusChanged,
    ToolExecutionStatusChanged,
)
from swarmAgent.graph.lifecycle import announce_termination, terminate
from swarmAgent.graph.nodes.approval import approval_requested_event
from swarmAgent.graph.pool import ResourcePool
from swarmAgent.graph.state import (
    ApprovalRecord,
    Execution,
    ExecutionLimits,
    ExecutionStatus,
    KnowledgeChunk,
    Phase,
    SwarmState,
    ToolApprovalRequest,
    initial_state,
    pending_requests,
    utcnow,
)
from swarmAgent.hitl.decisions import apply_decision
from swarmAgent.hitl.gate import ApprovalGate
from swarmAgent.hitl.risk import RiskClassifier
from swarmAgent.llm.client import CompletionClient
from swarmAgent.persistence.execution_store import ExecutionStore
from swarmAgent.persistence.snapshot import ExecutionSnapshot
from swarmAgent.tools.dispatcher import ToolDispatcher
from swarmAgent.tools.registry import ToolRegistry
from swarmAgent.utils.error_handler import ExecutionNotFoundError
from swarmAgent.utils.logging_utils import log_error

LOGGER = logging.getLogger(__name__)

ABORTED_BY_USER = "aborted by user"


class ExecutionStatusReport(BaseModel):
    execution_id: str
    status: ExecutionStatus
    phase: str
    active_agents: int
    pending_approvals: int
    iterations: int
    result: Optional[str] = None
    error: Optional[str] = None


class SwarmEngine:
    """Runs swarm executions and routes human decisions back into them."""

    def __init__(
        self,
        *,
        registry: AgentRegistry,
        completion_client: CompletionClient,
        dispatcher: ToolDispatcher,
        store: ExecutionStore,
        tool_registry: Optional[ToolRegistry] = None,
        risk_classifier: Optional[RiskClassifier] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self.store = store
        self.tool_registry = tool_registry or ToolRegistry()
        self.risk_classifier = risk_classifier or RiskClassifier(self.settings.approval.resolved_risk_rules_path())
        self.pool = ResourcePool.from_settings(self.settings.limits)
        self.gate = ApprovalGate(on_timeout=self._on_approval_timeout)
        self.graph = build_swarm_graph(
            registry=registry,
            completion_client=completion_client,
            dispatcher=dispatcher,
            tool_registry=self.tool_registry,
            risk_classifier=self.risk_classifier,
            pool=self.pool,
            settings=self.settings,
        )

        self._locks: Dict[str, asyncio.Lock] = {}
        self._channels: Dict[str, EventChannel] = {}
        self._inflight: Dict[str, Set[asyncio.Task]] = {}
        self._aborted_tasks: Set[asyncio.Task] = set()
        self._silent_channel = EventChannel()

    # ========== Public API ==========

    async def submit_task(
        self,
        task: str,
        *,
        limits: Optional[ExecutionLimits] = None,
        knowledge_context: Optional[Sequence[KnowledgeChunk]] = None,
        roles: Optional[Sequence[str]] = None,
        channel: Optional[EventChannel] = None,
    ) -> str:
        """Create an execution and advance it until it finishes or waits for approvals.

        Args:
            task: What the swarm should do
            limits: Per-execution limits (defaults to settings)
            knowledge_context: Retrieved chunks handed to the agents
            roles: Explicit roles to run instead of policy selection
            channel: Where this execution's events go

        Returns:
            The new execution id
        """
        if not task or not task.strip():
            raise ValueError("Task must not be empty")

        execution = Execution(task=task)
        state = initial_state(
            execution,
            limits or ExecutionLimits.from_settings(self.settings.limits),
            list(knowledge_context or []),
            list(roles or []),
        )
        if channel is not None:
            self._channels[execution.id] = channel
        self._save(state)
        LOGGER.info(f"Submitted execution {execution.id}: {task[:100]}")

        self._channel(execution.id).emit(
            ExecutionStatusChanged(
                execution_id=execution.id,
                status=execution.status.value,
                phase=Phase.INITIALIZATION.value,
            )
        )
        await self._exclusive(execution.id, self._advance_locked)
        return execution.id

    async def decide(self, decision: ApprovalDecided) -> bool:
        """Apply a reviewer's decision; returns False when it had no effect.

        Decisions are queued durably before they are applied, so a decision
        received just before a crash is applied by ``recover``.
        """
        execution_id = self.store.find_execution_for_request(decision.id)
        if execution_id is None:
            LOGGER.warning(f"Decision for unknown approval request {decision.id}")
            return False

        seq = self.store.enqueue_decision(execution_id, decision)
        applied = await self._exclusive(execution_id, self._apply_decision_locked, seq, decision)
        return bool(applied)

    async def abort(self, execution_id: str) -> bool:
        """Fail a running execution and everything still open in it.

        Raises:
            ExecutionNotFoundError: No such execution

        Returns:
            False when the execution was already terminal
        """
        if self.store.load_snapshot(execution_id) is None:
            raise ExecutionNotFoundError(f"Unknown execution: {execution_id}")

        self._cancel_inflight(execution_id)
        cancelled = self.gate.cancel_execution(execution_id)
        if cancelled:
            LOGGER.info(f"Cancelled {cancelled} approval waiter(s) of {execution_id}")

        async with self._lock(execution_id):
            return self._terminate_locked_sync(execution_id, ABORTED_BY_USER)

    def status(self, execution_id: str) -> ExecutionStatusReport:
        state = self._load_state(execution_id)
        execution = state["execution"]
        agents = (state.get("agents") or {}).values()
        return ExecutionStatusReport(
            execution_id=execution.id,
            status=execution.status,
            phase=state.get("phase", Phase.INITIALIZATION.value),
            active_agents=sum(1 for agent in agents if not agent.is_terminal),
            pending_approvals=len(pending_requests(state)),
            iterations=state.get("iterations", 0),
            result=execution.result,
            error=execution.error,
        )

    def get_execution(self, execution_id: str) -> Execution:
        return self._load_state(execution_id)["execution"]

    def get_state(self, execution_id: str) -> SwarmState:
        return self._load_state(execution_id)

    def list_pending_approvals(self, execution_id: str) -> List[ToolApprovalRequest]:
        return pending_requests(self._load_state(execution_id))

    def list_approval_history(self, execution_id: str) -> List[ApprovalRecord]:
        return self.store.list_approval_records(execution_id)

    def subscribe(self, execution_id: str, channel: EventChannel) -> None:
        self._channels[execution_id] = channel

    # ========== Housekeeping ==========

    async def recover(self, channel: Optional[EventChannel] = None) -> List[str]:
        """Resume every running execution found in the store.

        Slots are re-registered, queued decisions are applied in arrival order,
        undecided requests are announced again and their timers re-armed with
        whatever time they have left.

        Returns:
            Ids of the executions that were running at startup
        """
        running = []
        for execution_id, *_ in self.store.list_executions(status=ExecutionStatus.RUNNING.value):
            snapshot = self.store.load_snapshot(execution_id)
            if snapshot is None:
                continue
            if channel is not None:
                self._channels.setdefault(execution_id, channel)
            if snapshot.agents:
                self.pool.restore(execution_id, len(snapshot.agents))
            running.append(execution_id)
        LOGGER.info(f"Recovering {len(running)} running execution(s)")

        for seq, execution_id, decision in self.store.list_unapplied_decisions():
            await self._exclusive(execution_id, self._apply_decision_locked, seq, decision)

        for execution_id in running:
            await self._exclusive(execution_id, self._resume_locked)
        return running

    async def sweep_expired(self, now: Optional[datetime] = None) -> List[str]:
        """Fail and discard executions older than their time-to-live.

        A naive ``now`` is taken to be UTC.
        """
        now = now or utcnow()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        swept = []
        for execution_id, *_ in self.store.list_executions():
            snapshot = self.store.load_snapshot(execution_id)
            if snapshot is None:
                continue
            ttl = snapshot.limits.ttl_seconds
            if (now - snapshot.execution.created_at).total_seconds() <= ttl:
                continue

            if not snapshot.execution.is_terminal:
                self._cancel_inflight(execution_id)
                self.gate.cancel_execution(execution_id)
                async with self._lock(execution_id):
                    self._terminate_locked_sync(execution_id, f"Execution expired after {ttl:g}s")
            self.store.delete_execution(execution_id)
            self._forget(execution_id)
            swept.append(execution_id)
            LOGGER.info(f"Swept expired execution {execution_id}")
        return swept

    async def shutdown(self) -> None:
        """Stop timers and in-flight work without touching stored state."""
        for execution_id in list(self._inflight):
            self._cancel_inflight(execution_id)
        self.gate.cancel_all()
        await self.gate.wait_for_timeouts()

    # ========== Locked operations ==========

    async def _advance_locked(self, execution_id: str) -> SwarmState:
        return await self._run_graph(self._load_state(execution_id))

    async def _apply_decision_locked(self, execution_id: str, seq: int, decision: ApprovalDecided) -> bool:
        snapshot = self.store.load_snapshot(execution_id)
        if snapshot is None:
            self.store.mark_decision_applied(seq)
            return False

        state = snapshot.to_state()
        outcome = apply_decision(state, decision)
        if outcome is None:
            self.store.mark_decision_applied(seq)
            return False

        self.gate.resolve(decision.id)
        state = {**state, **outcome.updates}
        self.store.append_approval_record(outcome.record)
        self._save(state)
        self.store.mark_decision_applied(seq)
        LOGGER.info(
            f"Decision applied: {decision.id} {'approved' if decision.approved else 'denied'} "
            f"({decision.source.value})"
        )

        request = outcome.request
        self._channel(execution_id).emit(
            ToolExecutionStatusChanged(
                execution_id=execution_id,
                request_id=request.id,
                tool_name=request.tool_name,
                status=request.status.value,
                result=request.result,
                error=request.error,
            )
        )
        await self._run_graph(state)
        return True

    async def _resume_locked(self, execution_id: str) -> SwarmState:
        state = self._load_state(execution_id)
        if state["execution"].is_terminal:
            return state
        channel = self._channel(execution_id)
        for request in pending_requests(state):
            if request.notified:
                channel.emit(approval_requested_event(request))
        return await self._run_graph(state)

    def _terminate_locked_sync(self, execution_id: str, reason: str) -> bool:
        state = self._load_state(execution_id)
        updates = terminate(state, reason)
        if not updates:
            return False
        announce_termination(self._channel(execution_id), state, updates)
        final = {**state, **updates}
        self._save(final)
        self._after_advance(final)
        LOGGER.info(f"Execution {execution_id} terminated: {reason}")
        return True

    async def _run_graph(self, state: SwarmState) -> SwarmState:
        execution_id = state["execution"].id
        if state["execution"].is_terminal:
            return state

        channel = self._channel(execution_id)
        config = {
            "recursion_limit": self.settings.limits.recursion_limit,
            "configurable": {"channel": channel, "execution_id": execution_id},
        }
        try:
            final = await self.graph.ainvoke(state, config=config)
        except GraphRecursionError:
            LOGGER.error(f"Execution {execution_id} exceeded the graph step limit")
            updates = terminate(state, f"Maximum graph steps ({self.settings.limits.recursion_limit}) reached")
            announce_termination(channel, state, updates)
            final = {**state, **updates}
        except Exception as exc:
            log_error(LOGGER, exc, context=f"advancing execution {execution_id}")
            updates = terminate(state, f"Internal error: {exc}")
            announce_termination(channel, state, updates)
            final = {**state, **updates}

        self._save(final)
        self._after_advance(final)
        return final

    def _after_advance(self, state: SwarmState) -> None:
        execution = state["execution"]
        if execution.is_terminal:
            self.pool.release(execution.id)
            self.gate.cancel_execution(execution.id)
            return

        timeout = self.settings.approval.approval_timeout_seconds
        for request in pending_requests(state):
            if self.gate.is_armed(request.id):
                continue
            remaining = None
            if timeout > 0:
                elapsed = (utcnow() - request.created_at).total_seconds()
                remaining = max(timeout - elapsed, 0.0)
            self.gate.arm(execution.id, request.id, remaining)

    async def _on_approval_timeout(self, execution_id: str, request_id: str) -> None:
        timeout = self.settings.approval.approval_timeout_seconds
        await self.decide(
            ApprovalDecided(
                id=request_id,
                approved=False,
                source=DecisionSource.TIMEOUT,
                reason=f"Approval timed out after {timeout:g}s",
            )
        )

    # ========== Concurrency helpers ==========

    def _lock(self, execution_id: str) -> asyncio.Lock:
        return self._locks.setdefault(execution_id, asyncio.Lock())

    async def _exclusive(self, execution_id: str, operation: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        """Run ``operation(execution_id, *args)`` under the execution's lock.

        The work runs in its own task so ``abort`` can cancel it; a caller whose
        work was cancelled by an abort gets ``None`` instead of an exception.
        """
        task = asyncio.ensure_future(self._locked(execution_id, operation, *args))
        tasks = self._inflight.setdefault(execution_id, set())
        tasks.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            if task in self._aborted_tasks:
                LOGGER.info(f"Work on {execution_id} interrupted by abort")
                return None
            raise
        finally:
            self._aborted_tasks.discard(task)
            tasks.discard(task)
            if not tasks:
                self._inflight.pop(execution_id, None)

    async def _locked(self, execution_id: str, operation: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        async with self._lock(execution_id):
            return await operation(execution_id, *args)

    def _cancel_inflight(self, execution_id: str) -> None:
        for task in list(self._inflight.get(execution_id, ())):
            if not task.done():
                self._aborted_tasks.add(task)
                task.cancel()

    # ========== Storage helpers ==========

    def _load_state(self, execution_id: str) -> SwarmState:
        snapshot = self.store.load_snapshot(execution_id)
        if snapshot is None:
            raise ExecutionNotFoundError(f"Unknown execution: {execution_id}")
        return snapshot.to_state()

    def _save(self, state: SwarmState) -> None:
        self.store.save_snapshot(ExecutionSnapshot.from_state(state))

    def _channel(self, execution_id: str) -> EventChannel:
        return self._channels.get(execution_id) or self._silent_channel

    def _forget(self, execution_id: str) -> None:
        self._channels.pop(execution_id, None)
        self._locks.pop(execution_id, None)
        self.pool.release(execution_id)


__all__ = ["ABORTED_BY_USER", "ExecutionStatusReport", "SwarmEngine"]
