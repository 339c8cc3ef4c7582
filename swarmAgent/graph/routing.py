"""Routing logic for the swarm graph.

One router decides what happens next from the persisted state alone, so the
same decision is made whether the graph is continuing a run or resuming one
after a decision or a restart. Precedence:

1. A terminal Execution ends the run
2. Undecided approval requests -> tool_approval (which suspends)
3. Approved, undispatched requests -> tool_execution
4. Busy agents whose requests are all settled -> agent_completion
5. Idle agents -> agent_executor
6. Every agent completed or failed -> result_synthesizer
7. Otherwise -> agent_executor
"""

from __future__ import annotations

import logging
from typing import Literal

from swarmAgent.graph.state import (
    Phase,
    SwarmState,
    agents_ready_for_completion,
    approved_requests,
    pending_requests,
    runnable_agents,
)
from swarmAgent.utils.logging_utils import log_routing_decision

LOGGER = logging.getLogger(__name__)

WorkflowRoute = Literal[
    "tool_approval", "tool_execution", "agent_completion", "agent_executor", "result_synthesizer", "end"
]


def route_workflow(state: SwarmState, from_node: str = "router") -> WorkflowRoute:
    execution = state["execution"]
    if execution.is_terminal:
        decision, reason = "end", f"Execution {execution.status.value}"
        log_routing_decision(LOGGER, from_node, decision, reason)
        return decision

    agents = list((state.get("agents") or {}).values())
    pending = pending_requests(state)
    approved = approved_requests(state)

    if pending:
        decision, reason = "tool_approval", f"{len(pending)} request(s) awaiting a decision"
    elif approved:
        decision, reason = "tool_execution", f"{len(approved)} approved request(s) to dispatch"
    elif agents_ready_for_completion(state):
        decision, reason = "agent_completion", "Tool results ready for busy agents"
    elif any(agent.status.value == "idle" for agent in agents):
        decision, reason = "agent_executor", "Idle agents waiting to run"
    elif agents and all(agent.is_terminal for agent in agents):
        decision, reason = "result_synthesizer", "All agents finished"
    else:
        decision = "agent_executor"
        reason = f"{len(runnable_agents(state))} busy agent(s) without tool requests"

    log_routing_decision(LOGGER, from_node, decision, reason)
    return decision


def route_entry(state: SwarmState) -> Literal[
    "task_decomposer", "tool_approval", "tool_execution", "agent_completion",
    "agent_executor", "result_synthesizer", "end",
]:
    """Entry router: fresh executions decompose, everything else resumes."""
    if state["execution"].is_terminal:
        log_routing_decision(LOGGER, "START", "end", "Execution already terminal")
        return "end"
    if not state.get("agents") and state.get("phase") in (
        Phase.INITIALIZATION.value, Phase.DECOMPOSITION.value, Phase.AGENT_SELECTION.value,
    ):
        log_routing_decision(LOGGER, "START", "task_decomposer", "No agents selected yet")
        return "task_decomposer"
    return route_workflow(state, from_node="START")


def route_after_decomposition(state: SwarmState) -> Literal["agent_selector", "end"]:
    if state["execution"].is_terminal:
        log_routing_decision(LOGGER, "task_decomposer", "end", "Execution failed during decomposition")
        return "end"
    return "agent_selector"


def route_after_selection(state: SwarmState) -> WorkflowRoute:
    return route_workflow(state, from_node="agent_selector")


def route_after_execution(state: SwarmState) -> WorkflowRoute:
    return route_workflow(state, from_node="agent_executor")


def route_after_tool_execution(state: SwarmState) -> WorkflowRoute:
    return route_workflow(state, from_node="tool_execution")


def route_after_completion(state: SwarmState) -> WorkflowRoute:
    return route_workflow(state, from_node="agent_completion")


def route_after_approval(state: SwarmState) -> Literal[
    "suspend", "tool_execution", "agent_completion", "agent_executor", "result_synthesizer", "end",
]:
    """Suspend while any request is undecided; otherwise continue as usual."""
    if not state["execution"].is_terminal and pending_requests(state):
        log_routing_decision(LOGGER, "tool_approval", "suspend", "Waiting for human decisions")
        return "suspend"
    return route_workflow(state, from_node="tool_approval")


__all__ = [
    "route_after_approval",
    "route_after_completion",
    "route_after_decomposition",
    "route_after_execution",
    "route_after_selection",
    "route_after_tool_execution",
    "route_entry",
    "route_workflow",
]
