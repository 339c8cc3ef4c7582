"""Serializable snapshot of one execution's graph state."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from swarmAgent.graph.state import (
    AgentInstance,
    ApprovalRecord,
    Execution,
    ExecutionLimits,
    KnowledgeChunk,
    Phase,
    SubTask,
    SwarmState,
    ToolApprovalRequest,
)


class ExecutionSnapshot(BaseModel):
    """Everything needed to resume an execution in a fresh process."""

    execution: Execution
    phase: str = Phase.INITIALIZATION.value
    limits: ExecutionLimits = Field(default_factory=ExecutionLimits)
    iterations: int = 0
    knowledge_context: List[KnowledgeChunk] = Field(default_factory=list)
    requested_roles: List[str] = Field(default_factory=list)
    subtasks: List[SubTask] = Field(default_factory=list)
    agents: Dict[str, AgentInstance] = Field(default_factory=dict)
    approvals: Dict[str, ToolApprovalRequest] = Field(default_factory=dict)
    approval_history: List[ApprovalRecord] = Field(default_factory=list)

    @classmethod
    def from_state(cls, state: SwarmState) -> "ExecutionSnapshot":
        return cls(
            execution=state["execution"],
            phase=state.get("phase", Phase.INITIALIZATION.value),
            limits=state.get("limits") or ExecutionLimits(),
            iterations=state.get("iterations", 0),
            knowledge_context=list(state.get("knowledge_context") or []),
            requested_roles=list(state.get("requested_roles") or []),
            subtasks=list(state.get("subtasks") or []),
            agents=dict(state.get("agents") or {}),
            approvals=dict(state.get("approvals") or {}),
            approval_history=list(state.get("approval_history") or []),
        )

    def to_state(self) -> SwarmState:
        return {
            "execution": self.execution,
            "phase": self.phase,
            "limits": self.limits,
            "iterations": self.iterations,
            "knowledge_context": list(self.knowledge_context),
            "requested_roles": list(self.requested_roles),
            "subtasks": list(self.subtasks),
            "agents": dict(self.agents),
            "approvals": dict(self.approvals),
            "approval_history": list(self.approval_history),
        }


__all__ = ["ExecutionSnapshot"]
