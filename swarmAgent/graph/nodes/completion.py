"""Agent completion node.

For every busy agent whose tool requests have all settled, the agent's turn is
replayed with the outcomes folded in (results, denials and failures alike)
and the model is asked for the final answer. Denied tools do not fail an
agent; it answers without them.
"""

from __future__ import annotations

import asyncio
import logging

from swarmAgent.graph.events import AgentStatusChanged, get_channel
from swarmAgent.graph.nodes.decomposer import next_iteration
from swarmAgent.graph.prompts import build_completion_messages
from swarmAgent.graph.state import (
    AgentInstance,
    AgentStatus,
    Phase,
    SwarmState,
    agents_ready_for_completion,
    replace_agents,
    requests_for_agent,
    subtask_for,
)
from swarmAgent.llm.client import CompletionClient
from swarmAgent.utils.error_handler import CompletionClientError, with_error_boundary
from swarmAgent.utils.logging_utils import log_node_entry

LOGGER = logging.getLogger(__name__)


def build_completion_node(*, completion_client: CompletionClient, knowledge_role: str = "rag"):
    """Build the agent_completion node."""

    async def _complete(agent: AgentInstance, state: SwarmState, semaphore: asyncio.Semaphore) -> AgentInstance:
        execution = state["execution"]
        requests = sorted(requests_for_agent(state, agent.id), key=lambda r: r.created_at)
        knowledge = (state.get("knowledge_context") or []) if agent.role == knowledge_role else []
        messages = build_completion_messages(
            agent, execution.task, knowledge, requests, subtask=subtask_for(state, agent)
        )
        async with semaphore:
            try:
                response = await completion_client.complete(messages, [])
            except CompletionClientError as exc:
                return agent.transition(AgentStatus.FAILED, error=f"{agent.role} agent failed: {exc.user_message}", current_task=None)
            except Exception as exc:
                LOGGER.exception(f"Agent {agent.id} completion failed", exc_info=exc)
                return agent.transition(AgentStatus.FAILED, error=f"{agent.role} agent failed: {exc}", current_task=None)

        if response.tool_calls:
            LOGGER.warning(f"Agent {agent.id} asked for more tools after its tool round; using its text answer")
        text = response.text or agent.draft or ""
        return agent.transition(AgentStatus.COMPLETED, result=text, current_task=None)

    @with_error_boundary("agent_completion")
    async def agent_completion_node(state: SwarmState, config=None) -> dict:
        log_node_entry(LOGGER, "agent_completion", state)
        channel = get_channel(config)
        execution = state["execution"]
        iterations = next_iteration(state)
        ready = agents_ready_for_completion(state)

        semaphore = asyncio.Semaphore(state["limits"].max_parallel_agents)
        finished = await asyncio.gather(*(_complete(agent, state, semaphore) for agent in ready))

        for agent in finished:
            if agent.error:
                execution = execution.with_error(agent.error)
            channel.emit(
                AgentStatusChanged(
                    execution_id=execution.id,
                    agent_id=agent.id,
                    role=agent.role,
                    status=agent.status.value,
                    result=agent.result,
                    error=agent.error,
                )
            )

        return {
            "execution": execution,
            "agents": replace_agents(state, *finished),
            "iterations": iterations,
            "phase": Phase.AGENT_COMPLETION.value,
        }

    return agent_completion_node


__all__ = ["build_completion_node"]
