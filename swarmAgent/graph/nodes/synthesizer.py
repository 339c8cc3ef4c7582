"""Result synthesizer node: the coordinator merges agent results into the answer."""

from __future__ import annotations

import logging

from swarmAgent.agents.registry import AgentRegistry
from swarmAgent.config.settings import SelectionSettings
from swarmAgent.graph.events import ExecutionStatusChanged, get_channel
from swarmAgent.graph.prompts import DEFAULT_COORDINATOR_PROMPT, build_synthesis_messages
from swarmAgent.graph.state import AgentStatus, ExecutionStatus, Phase, SwarmState
from swarmAgent.llm.client import CompletionClient
from swarmAgent.utils.error_handler import SynthesisError, with_error_boundary
from swarmAgent.utils.logging_utils import log_node_entry, log_prompt

LOGGER = logging.getLogger(__name__)


def build_synthesizer_node(
    *,
    completion_client: CompletionClient,
    registry: AgentRegistry,
    selection: SelectionSettings,
    log_prompt_max_length: int = 500,
):
    """Build the result_synthesizer node."""

    @with_error_boundary("result_synthesizer")
    async def result_synthesizer_node(state: SwarmState, config=None) -> dict:
        log_node_entry(LOGGER, "result_synthesizer", state)
        execution = state["execution"]

        contributions = [
            agent for agent in (state.get("agents") or {}).values()
            if agent.status == AgentStatus.COMPLETED and agent.result and agent.result.strip()
        ]
        if not contributions:
            raise SynthesisError("No agent output: every agent failed or returned an empty result")

        coordinator = registry.get(selection.coordinator_role)
        prompt = coordinator.system_prompt if coordinator else DEFAULT_COORDINATOR_PROMPT
        messages = build_synthesis_messages(prompt, execution.task, contributions)
        log_prompt(LOGGER, "synthesis", messages[-1].content, log_prompt_max_length)

        try:
            response = await completion_client.complete(messages, [])
        except Exception as exc:
            LOGGER.exception("Result synthesis failed", exc_info=exc)
            raise SynthesisError(f"Result synthesis failed: {getattr(exc, 'user_message', exc)}") from exc

        completed = execution.finish(ExecutionStatus.COMPLETED, result=response.text)
        LOGGER.info(f"Execution {execution.id} completed from {len(contributions)} agent result(s)")
        get_channel(config).emit(
            ExecutionStatusChanged(
                execution_id=completed.id,
                status=completed.status.value,
                phase=Phase.COMPLETED.value,
                result=completed.result,
            )
        )
        return {"execution": completed, "phase": Phase.COMPLETED.value}

    return result_synthesizer_node


__all__ = ["build_synthesizer_node"]
