"""Graph builder for swarm executions.

    START ─┬→ task_decomposer → agent_selector ─┐
           └→ (resume: router) ─────────────────┤
                                                ▼
        ┌──────────── router ◄──────────────────────────────┐
        │   tool_approval ──(undecided)──→ END (suspend)    │
        │   tool_execution / agent_completion / executor ───┘
        └→ result_synthesizer → END

The graph runs without a checkpointer: the engine snapshots the state after
every advance and re-enters through ``route_entry`` on resume.
"""

from __future__ import annotations

import logging

from langgraph.graph import END, START, StateGraph

from swarmAgent.agents.registry import AgentRegistry
from swarmAgent.config.settings import Settings
from swarmAgent.graph.nodes import (
    build_approval_node,
    build_completion_node,
    build_decomposer_node,
    build_executor_node,
    build_selector_node,
    build_synthesizer_node,
    build_tool_execution_node,
)
from swarmAgent.graph.pool import ResourcePool
from swarmAgent.graph.routing import (
    route_after_approval,
    route_after_completion,
    route_after_decomposition,
    route_after_execution,
    route_after_selection,
    route_after_tool_execution,
    route_entry,
)
from swarmAgent.graph.state import SwarmState
from swarmAgent.hitl.risk import RiskClassifier
from swarmAgent.llm.client import CompletionClient
from swarmAgent.tools.dispatcher import ToolDispatcher
from swarmAgent.tools.registry import ToolRegistry

LOGGER = logging.getLogger(__name__)

_WORKFLOW_TARGETS = {
    "tool_approval": "tool_approval",
    "tool_execution": "tool_execution",
    "agent_completion": "agent_completion",
    "agent_executor": "agent_executor",
    "result_synthesizer": "result_synthesizer",
    "end": END,
}


def build_swarm_graph(
    *,
    registry: AgentRegistry,
    completion_client: CompletionClient,
    dispatcher: ToolDispatcher,
    tool_registry: ToolRegistry,
    risk_classifier: RiskClassifier,
    pool: ResourcePool,
    settings: Settings,
):
    """Build the swarm execution graph.

    Args:
        registry: Agent roles available for selection and synthesis
        completion_client: Model boundary used by agents and the coordinator
        dispatcher: Tool boundary used for approved calls
        tool_registry: Tool specifications offered to agents
        risk_classifier: Labels each requested tool call
        pool: Process-wide agent slot accounting
        settings: Application settings

    Returns:
        Compiled LangGraph application
    """

    # ========== Build Nodes ==========
    graph = StateGraph(SwarmState)

    graph.add_node("task_decomposer", build_decomposer_node(registry=registry, selection=settings.selection))
    graph.add_node("agent_selector", build_selector_node(registry=registry, pool=pool))
    graph.add_node(
        "agent_executor",
        build_executor_node(
            completion_client=completion_client,
            tool_registry=tool_registry,
            risk_classifier=risk_classifier,
            knowledge_role=settings.selection.knowledge_role,
            log_prompt_max_length=settings.observability.log_prompt_max_length,
        ),
    )
    graph.add_node("tool_approval", build_approval_node())
    graph.add_node(
        "tool_execution",
        build_tool_execution_node(dispatcher=dispatcher, approval=settings.approval, limits=settings.limits),
    )
    graph.add_node(
        "agent_completion",
        build_completion_node(completion_client=completion_client, knowledge_role=settings.selection.knowledge_role),
    )
    graph.add_node(
        "result_synthesizer",
        build_synthesizer_node(
            completion_client=completion_client,
            registry=registry,
            selection=settings.selection,
            log_prompt_max_length=settings.observability.log_prompt_max_length,
        ),
    )

    # ========== Routing ==========
    graph.add_conditional_edges(START, route_entry, {"task_decomposer": "task_decomposer", **_WORKFLOW_TARGETS})
    graph.add_conditional_edges(
        "task_decomposer",
        route_after_decomposition,
        {"agent_selector": "agent_selector", "end": END},
    )
    graph.add_conditional_edges("agent_selector", route_after_selection, _WORKFLOW_TARGETS)
    graph.add_conditional_edges("agent_executor", route_after_execution, _WORKFLOW_TARGETS)
    graph.add_conditional_edges("tool_approval", route_after_approval, {"suspend": END, **_WORKFLOW_TARGETS})
    graph.add_conditional_edges("tool_execution", route_after_tool_execution, _WORKFLOW_TARGETS)
    graph.add_conditional_edges("agent_completion", route_after_completion, _WORKFLOW_TARGETS)
    graph.add_edge("result_synthesizer", END)

    LOGGER.info("Swarm graph built")

    # ========== Compile ==========
    return graph.compile()


__all__ = ["build_swarm_graph"]
