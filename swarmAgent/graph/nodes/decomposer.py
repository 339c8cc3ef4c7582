"""Task decomposer node: counts the first iteration and picks the roles to run."""

from __future__ import annotations

import logging
from typing import List, Sequence

from swarmAgent.agents.registry import AgentRegistry
from swarmAgent.config.settings import SelectionSettings
from swarmAgent.graph.events import ExecutionStatusChanged, get_channel
from swarmAgent.graph.state import KnowledgeChunk, Phase, SubTask, SwarmState
from swarmAgent.utils.error_handler import ConfigurationError, IterationLimitError, with_error_boundary
from swarmAgent.utils.logging_utils import log_node_entry

LOGGER = logging.getLogger(__name__)


def select_roles(
    task: str,
    registry: AgentRegistry,
    knowledge_context: Sequence[KnowledgeChunk],
    selection: SelectionSettings,
) -> List[str]:
    """Deterministic role selection.

    The general role always runs; the knowledge role joins when context was
    supplied and the analysis role joins for tasks longer than the threshold.
    Roles missing from the registry are skipped. If nothing survives, the
    first selectable role runs alone.

    Raises:
        ConfigurationError: When the registry has no selectable role at all
    """
    selectable = registry.list_selectable()
    if not selectable:
        raise ConfigurationError("Agent registry is empty: no selectable roles")

    wanted = [selection.general_role]
    if knowledge_context:
        wanted.append(selection.knowledge_role)
    if len(task) > selection.analysis_threshold_chars:
        wanted.append(selection.analysis_role)

    selectable_roles = {card.role for card in selectable}
    roles: List[str] = []
    for role in wanted:
        if role in selectable_roles and role not in roles:
            roles.append(role)
        elif role not in selectable_roles:
            LOGGER.debug(f"Role '{role}' not registered, skipping")

    if not roles:
        roles.append(selectable[0].role)
    return roles


def next_iteration(state: SwarmState) -> int:
    """Count one round of the state machine and enforce max_iterations.

    Decomposition, every executor pass and every completion pass is a round.

    Raises:
        IterationLimitError: When the new count exceeds the execution's limit
    """
    limit = state["limits"].max_iterations
    iterations = state.get("iterations", 0) + 1
    if iterations > limit:
        raise IterationLimitError(f"Maximum iterations ({limit}) reached")
    return iterations


def build_decomposer_node(*, registry: AgentRegistry, selection: SelectionSettings):
    """Build the task_decomposer node."""

    @with_error_boundary("task_decomposer")
    async def task_decomposer_node(state: SwarmState, config=None) -> dict:
        log_node_entry(LOGGER, "task_decomposer", state)
        execution = state["execution"]
        iterations = next_iteration(state)

        requested = state.get("requested_roles") or []
        if requested:
            unknown = [role for role in requested if role not in registry]
            if unknown:
                raise ConfigurationError(f"Unknown agent role(s): {', '.join(unknown)}")
            roles = list(requested)
        else:
            roles = select_roles(execution.task, registry, state.get("knowledge_context") or [], selection)

        subtasks = [
            SubTask(description=execution.task, priority=index, assigned_role=role)
            for index, role in enumerate(roles, 1)
        ]
        LOGGER.info(f"Decomposed {execution.id} into {len(subtasks)} sub-task(s): {', '.join(roles)}")

        get_channel(config).emit(
            ExecutionStatusChanged(
                execution_id=execution.id,
                status=execution.status.value,
                phase=Phase.DECOMPOSITION.value,
            )
        )
        return {"iterations": iterations, "subtasks": subtasks, "phase": Phase.DECOMPOSITION.value}

    return task_decomposer_node


__all__ = ["build_decomposer_node", "next_iteration", "select_roles"]
