"""Swarm execution state.

Every record the engine persists is a pydantic model; the graph itself runs on
``SwarmState``, a TypedDict whose values are those records. Nodes never mutate a
record in place: they return replacements built with ``model_copy``.

Lifecycles only move forward:
- Execution: running -> completed | failed
- AgentInstance: idle -> busy -> completed | failed (idle may also fail on abort)
- ToolApprovalRequest: pending -> approved | denied, approved -> executed | failed
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, TypedDict
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex[:12]}"


class InvalidTransitionError(ValueError):
    """Raised when a record is asked to move backwards in its lifecycle."""


# ========== Enumerations ==========

class ExecutionStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class AgentStatus(str, Enum):
    IDLE = "idle"
    BUSY = "busy"
    COMPLETED = "completed"
    FAILED = "failed"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    EXECUTED = "executed"
    FAILED = "failed"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Phase(str, Enum):
    INITIALIZATION = "initialization"
    DECOMPOSITION = "decomposition"
    AGENT_SELECTION = "agent_selection"
    EXECUTION = "execution"
    TOOL_APPROVAL = "tool_approval"
    TOOL_EXECUTION = "tool_execution"
    AGENT_COMPLETION = "agent_completion"
    SYNTHESIS = "synthesis"
    COMPLETED = "completed"
    FAILED = "failed"


_EXECUTION_TRANSITIONS = {
    ExecutionStatus.RUNNING: {ExecutionStatus.COMPLETED, ExecutionStatus.FAILED},
}

_AGENT_TRANSITIONS = {
    AgentStatus.IDLE: {AgentStatus.BUSY, AgentStatus.FAILED},
    AgentStatus.BUSY: {AgentStatus.BUSY, AgentStatus.COMPLETED, AgentStatus.FAILED},
}

_APPROVAL_TRANSITIONS = {
    ApprovalStatus.PENDING: {ApprovalStatus.APPROVED, ApprovalStatus.DENIED},
    ApprovalStatus.APPROVED: {ApprovalStatus.EXECUTED, ApprovalStatus.FAILED},
}


def _check_transition(kind: str, table: dict, current: Enum, target: Enum) -> None:
    if target not in table.get(current, set()):
        raise InvalidTransitionError(f"{kind} cannot move from {current.value} to {target.value}")


# ========== Records ==========

class ExecutionLimits(BaseModel):
    """Per-execution limits, defaulting to the process-wide settings.

    ``max_parallel_agents`` only bounds how many of this execution's agents run
    at once. The process-wide swarm and agent caps live in ``ResourcePool``.
    """

    max_parallel_agents: int = Field(default=10, ge=1)
    max_swarm_size: int = Field(default=5, ge=1)
    max_iterations: int = Field(default=20, ge=1)
    ttl_seconds: float = Field(default=1800.0, gt=0)

    @classmethod
    def from_settings(cls, limits: Any) -> "ExecutionLimits":
        return cls(
            max_parallel_agents=limits.max_parallel_agents,
            max_swarm_size=limits.max_swarm_size,
            max_iterations=limits.max_iterations,
            ttl_seconds=limits.execution_ttl_seconds,
        )


class Execution(BaseModel):
    id: str = Field(default_factory=lambda: new_id("exec"))
    task: str = Field(min_length=1)
    status: ExecutionStatus = ExecutionStatus.RUNNING
    result: Optional[str] = None
    error: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != ExecutionStatus.RUNNING

    def finish(self, status: ExecutionStatus, *, result: Optional[str] = None, error: Optional[str] = None) -> "Execution":
        _check_transition("Execution", _EXECUTION_TRANSITIONS, self.status, status)
        return self.model_copy(
            update={"status": status, "result": result, "error": error, "completed_at": utcnow()}
        )

    def with_error(self, message: str) -> "Execution":
        return self.model_copy(update={"errors": [*self.errors, message]})


class SubTask(BaseModel):
    id: str = Field(default_factory=lambda: new_id("subtask"))
    description: str
    priority: int = 0
    assigned_role: str


class AgentInstance(BaseModel):
    id: str = Field(default_factory=lambda: new_id("agent"))
    role: str
    name: str
    expertise: list[str] = Field(default_factory=list)
    system_prompt: str = ""
    subtask_id: Optional[str] = None
    status: AgentStatus = AgentStatus.IDLE
    current_task: Optional[str] = None
    draft: Optional[str] = None
    """Text the agent produced alongside its tool calls, replayed on completion."""
    result: Optional[str] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (AgentStatus.COMPLETED, AgentStatus.FAILED)

    def transition(self, status: AgentStatus, **changes: Any) -> "AgentInstance":
        _check_transition("Agent", _AGENT_TRANSITIONS, self.status, status)
        if status in (AgentStatus.COMPLETED, AgentStatus.FAILED):
            changes.setdefault("finished_at", utcnow())
        return self.model_copy(update={"status": status, **changes})


class ToolApprovalRequest(BaseModel):
    id: str = Field(default_factory=lambda: new_id("approval"))
    execution_id: str
    agent_id: str
    agent_role: str
    tool_call_id: str
    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    provider: str = "unknown"
    risk: RiskLevel = RiskLevel.LOW
    risk_reason: str = ""
    context: str = ""
    status: ApprovalStatus = ApprovalStatus.PENDING
    processed: bool = False
    notified: bool = False
    result: Any = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    decided_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ApprovalStatus.DENIED, ApprovalStatus.EXECUTED, ApprovalStatus.FAILED)

    def transition(self, status: ApprovalStatus, **changes: Any) -> "ToolApprovalRequest":
        _check_transition("Approval request", _APPROVAL_TRANSITIONS, self.status, status)
        now = utcnow()
        if status in (ApprovalStatus.APPROVED, ApprovalStatus.DENIED):
            changes.setdefault("decided_at", now)
        if status in (ApprovalStatus.DENIED, ApprovalStatus.EXECUTED, ApprovalStatus.FAILED):
            changes.setdefault("completed_at", now)
            changes.setdefault("processed", True)
        return self.model_copy(update={"status": status, **changes})


class ApprovalRecord(BaseModel):
    """Append-only audit entry written once per applied decision."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("record"))
    request_id: str
    execution_id: str
    agent_id: str
    agent_role: str
    tool_name: str
    approved: bool
    reason: str = ""
    timestamp: datetime = Field(default_factory=utcnow)


class KnowledgeChunk(BaseModel):
    id: str = Field(default_factory=lambda: new_id("chunk"))
    content: str
    source: str = ""
    relevance: float = 0.0


# ========== Graph State ==========

class SwarmState(TypedDict, total=False):
    """State carried through the orchestration graph for one Execution."""

    # ========== Execution ==========
    execution: Execution
    phase: str
    limits: ExecutionLimits
    iterations: int
    """Decomposer, executor and completion passes so far (bounded by limits.max_iterations)."""

    # ========== Inputs ==========
    knowledge_context: list[KnowledgeChunk]
    requested_roles: list[str]
    """Explicit roles asked for at submission; empty means policy selection."""

    # ========== Work ==========
    subtasks: list[SubTask]
    agents: dict[str, AgentInstance]
    """Keyed by agent id; insertion order is selection order."""

    approvals: dict[str, ToolApprovalRequest]
    """Keyed by request id."""

    approval_history: list[ApprovalRecord]


def initial_state(
    execution: Execution,
    limits: ExecutionLimits,
    knowledge_context: Optional[list[KnowledgeChunk]] = None,
    requested_roles: Optional[list[str]] = None,
) -> SwarmState:
    return {
        "execution": execution,
        "phase": Phase.INITIALIZATION.value,
        "limits": limits,
        "iterations": 0,
        "knowledge_context": list(knowledge_context or []),
        "requested_roles": list(requested_roles or []),
        "subtasks": [],
        "agents": {},
        "approvals": {},
        "approval_history": [],
    }


# ========== Queries ==========

def requests_for_agent(state: SwarmState, agent_id: str) -> list[ToolApprovalRequest]:
    return [r for r in (state.get("approvals") or {}).values() if r.agent_id == agent_id]


def pending_requests(state: SwarmState) -> list[ToolApprovalRequest]:
    return [
        r for r in (state.get("approvals") or {}).values()
        if r.status == ApprovalStatus.PENDING and not r.processed
    ]


def approved_requests(state: SwarmState) -> list[ToolApprovalRequest]:
    return [
        r for r in (state.get("approvals") or {}).values()
        if r.status == ApprovalStatus.APPROVED and not r.processed
    ]


def agents_ready_for_completion(state: SwarmState) -> list[AgentInstance]:
    """Busy agents whose every tool request has reached a terminal status."""
    ready = []
    for agent in (state.get("agents") or {}).values():
        if agent.status != AgentStatus.BUSY:
            continue
        requests = requests_for_agent(state, agent.id)
        if requests and all(r.is_terminal for r in requests):
            ready.append(agent)
    return ready


def subtask_for(state: SwarmState, agent: AgentInstance) -> Optional[SubTask]:
    for subtask in state.get("subtasks") or []:
        if subtask.id == agent.subtask_id:
            return subtask
    return None


def runnable_agents(state: SwarmState) -> list[AgentInstance]:
    """Idle agents, plus busy agents that never got as far as requesting a tool."""
    runnable = []
    for agent in (state.get("agents") or {}).values():
        if agent.status == AgentStatus.IDLE:
            runnable.append(agent)
        elif agent.status == AgentStatus.BUSY and not requests_for_agent(state, agent.id):
            runnable.append(agent)
    return runnable


def replace_agents(state: SwarmState, *agents: AgentInstance) -> dict[str, AgentInstance]:
    merged = dict(state.get("agents") or {})
    for agent in agents:
        merged[agent.id] = agent
    return merged


def replace_requests(state: SwarmState, *requests: ToolApprovalRequest) -> dict[str, ToolApprovalRequest]:
    merged = dict(state.get("approvals") or {})
    for request in requests:
        merged[request.id] = request
    return merged


__all__ = [
    "AgentInstance",
    "AgentStatus",
    "ApprovalRecord",
    "ApprovalStatus",
    "Execution",
    "ExecutionLimits",
    "ExecutionStatus",
    "InvalidTransitionError",
    "KnowledgeChunk",
    "Phase",
    "RiskLevel",
    "SubTask",
    "SwarmState",
    "ToolApprovalRequest",
    "agents_ready_for_completion",
    "approved_requests",
    "initial_state",
    "new_id",
    "pending_requests",
    "replace_agents",
    "replace_requests",
    "requests_for_agent",
    "runnable_agents",
    "subtask_for",
    "utcnow",
]
