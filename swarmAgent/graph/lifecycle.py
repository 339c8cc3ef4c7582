"""Terminal transitions shared by abort, fatal errors and expiry."""

from __future__ import annotations

from .events import (
    AgentStatusChanged,
    EventChannel,
    ExecutionStatusChanged,
    ToolExecutionStatusChanged,
)
from .state import (
    AgentStatus,
    ApprovalStatus,
    ExecutionStatus,
    Phase,
    SwarmState,
)


def terminate(state: SwarmState, reason: str) -> dict:
    """Build the updates that fail an Execution and everything still open in it.

    Pending requests are denied, approved-but-undispatched requests fail and
    every non-terminal agent fails. Returns an empty dict when the Execution is
    already terminal.
    """
    execution = state["execution"]
    if execution.is_terminal:
        return {}

    approvals = dict(state.get("approvals") or {})
    for request in list(approvals.values()):
        if request.processed or request.is_terminal:
            continue
        if request.status == ApprovalStatus.PENDING:
            approvals[request.id] = request.transition(ApprovalStatus.DENIED, error=reason)
        elif request.status == ApprovalStatus.APPROVED:
            approvals[request.id] = request.transition(ApprovalStatus.FAILED, error=reason)

    agents = dict(state.get("agents") or {})
    for agent in list(agents.values()):
        if not agent.is_terminal:
            agents[agent.id] = agent.transition(AgentStatus.FAILED, error=reason, current_task=None)

    return {
        "execution": execution.finish(ExecutionStatus.FAILED, error=reason),
        "approvals": approvals,
        "agents": agents,
        "phase": Phase.FAILED.value,
    }


def announce_termination(channel: EventChannel, before: SwarmState, updates: dict) -> None:
    """Emit status events for every record ``terminate`` changed."""
    if not updates:
        return
    execution = updates["execution"]
    previous_agents = before.get("agents") or {}
    for agent in updates["agents"].values():
        if previous_agents.get(agent.id) is not None and previous_agents[agent.id].status != agent.status:
            channel.emit(
                AgentStatusChanged(
                    execution_id=execution.id,
                    agent_id=agent.id,
                    role=agent.role,
                    status=agent.status.value,
                    error=agent.error,
                )
            )
    previous_requests = before.get("approvals") or {}
    for request in updates["approvals"].values():
        if previous_requests.get(request.id) is not None and previous_requests[request.id].status != request.status:
            channel.emit(
                ToolExecutionStatusChanged(
                    execution_id=execution.id,
                    request_id=request.id,
                    tool_name=request.tool_name,
                    status=request.status.value,
                    error=request.error,
                )
            )
    channel.emit(
        ExecutionStatusChanged(
            execution_id=execution.id,
            status=execution.status.value,
            phase=updates["phase"],
            error=execution.error,
        )
    )


__all__ = ["announce_termination", "terminate"]
