"""Agent selector node: instantiates one agent per sub-task within limits."""

from __future__ import annotations

import logging

from swarmAgent.agents.registry import AgentRegistry
from swarmAgent.graph.events import AgentStatusChanged, get_channel
from swarmAgent.graph.pool import ResourcePool
from swarmAgent.graph.state import AgentInstance, Phase, SwarmState, new_id
from swarmAgent.utils.error_handler import ConfigurationError, with_error_boundary
from swarmAgent.utils.logging_utils import log_node_entry

LOGGER = logging.getLogger(__name__)


def build_selector_node(*, registry: AgentRegistry, pool: ResourcePool):
    """Build the agent_selector node."""

    @with_error_boundary("agent_selector")
    async def agent_selector_node(state: SwarmState, config=None) -> dict:
        log_node_entry(LOGGER, "agent_selector", state)
        execution = state["execution"]
        limits = state["limits"]
        subtasks = sorted(state.get("subtasks") or [], key=lambda st: st.priority)

        if len(subtasks) > limits.max_swarm_size:
            raise ConfigurationError(f"Swarm size ({len(subtasks)}) exceeds maximum ({limits.max_swarm_size})")

        cards = []
        for subtask in subtasks:
            card = registry.get(subtask.assigned_role)
            if card is None:
                raise ConfigurationError(f"Unknown agent role: {subtask.assigned_role}")
            cards.append((subtask, card))

        pool.reserve(execution.id, len(cards))

        agents = {}
        channel = get_channel(config)
        for subtask, card in cards:
            agent = AgentInstance(
                id=new_id(f"agent-{card.role}"),
                role=card.role,
                name=card.name,
                expertise=list(card.expertise),
                system_prompt=card.system_prompt,
                subtask_id=subtask.id,
                current_task=subtask.description,
            )
            agents[agent.id] = agent
            channel.emit(
                AgentStatusChanged(
                    execution_id=execution.id,
                    agent_id=agent.id,
                    role=agent.role,
                    status=agent.status.value,
                    current_task=agent.current_task,
                )
            )

        LOGGER.info(f"Selected {len(agents)} agent(s) for {execution.id}")
        return {"agents": agents, "phase": Phase.AGENT_SELECTION.value}

    return agent_selector_node


__all__ = ["build_selector_node"]
