"""Agent executor node.

Runs every runnable agent concurrently (bounded by max_parallel_agents). An
agent that answers directly completes; an agent that asks for tools stays busy
and leaves one pending approval request per call. A failing completion call
fails only that agent.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from swarmAgent.graph.events import AgentStatusChanged, EventChannel, get_channel
from swarmAgent.graph.nodes.decomposer import next_iteration
from swarmAgent.graph.prompts import approval_context, build_agent_messages
from swarmAgent.graph.state import (
    AgentInstance,
    AgentStatus,
    Phase,
    SwarmState,
    ToolApprovalRequest,
    replace_agents,
    replace_requests,
    runnable_agents,
    subtask_for,
    utcnow,
)
from swarmAgent.hitl.risk import RiskClassifier
from swarmAgent.llm.client import CompletionClient
from swarmAgent.tools.registry import ToolRegistry
from swarmAgent.utils.error_handler import CompletionClientError, with_error_boundary
from swarmAgent.utils.logging_utils import log_node_entry, log_prompt, log_tool_call

LOGGER = logging.getLogger(__name__)


@dataclass
class _AgentOutcome:
    agent: AgentInstance
    requests: List[ToolApprovalRequest] = field(default_factory=list)
    error: Optional[str] = None


def _emit_agent(channel: EventChannel, execution_id: str, agent: AgentInstance) -> None:
    channel.emit(
        AgentStatusChanged(
            execution_id=execution_id,
            agent_id=agent.id,
            role=agent.role,
            status=agent.status.value,
            current_task=agent.current_task,
            result=agent.result,
            error=agent.error,
        )
    )


def build_executor_node(
    *,
    completion_client: CompletionClient,
    tool_registry: ToolRegistry,
    risk_classifier: RiskClassifier,
    knowledge_role: str = "rag",
    log_prompt_max_length: int = 500,
):
    """Build the agent_executor node.

    Only agents in ``knowledge_role`` see the submitted knowledge context.
    """

    async def _run_agent(
        agent: AgentInstance,
        state: SwarmState,
        channel: EventChannel,
        semaphore: asyncio.Semaphore,
    ) -> _AgentOutcome:
        execution = state["execution"]
        async with semaphore:
            busy = agent.transition(
                AgentStatus.BUSY,
                current_task=agent.current_task or execution.task,
                started_at=agent.started_at or utcnow(),
            )
            _emit_agent(channel, execution.id, busy)

            specs = tool_registry.list_specs()
            knowledge = (state.get("knowledge_context") or []) if busy.role == knowledge_role else []
            messages = build_agent_messages(busy, execution.task, knowledge, specs, subtask=subtask_for(state, busy))
            log_prompt(LOGGER, f"agent {busy.id}", messages[-1].content, log_prompt_max_length)
            try:
                response = await completion_client.complete(messages, specs)
            except CompletionClientError as exc:
                error = f"{busy.role} agent failed: {exc.user_message}"
                failed = busy.transition(AgentStatus.FAILED, error=error, current_task=None)
                _emit_agent(channel, execution.id, failed)
                return _AgentOutcome(agent=failed, error=error)
            except Exception as exc:
                LOGGER.exception(f"Agent {busy.id} completion failed", exc_info=exc)
                error = f"{busy.role} agent failed: {exc}"
                failed = busy.transition(AgentStatus.FAILED, error=error, current_task=None)
                _emit_agent(channel, execution.id, failed)
                return _AgentOutcome(agent=failed, error=error)

            if not response.tool_calls:
                completed = busy.transition(AgentStatus.COMPLETED, result=response.text, current_task=None)
                _emit_agent(channel, execution.id, completed)
                LOGGER.info(f"Agent {completed.id} answered without tools")
                return _AgentOutcome(agent=completed)

            requests = []
            for call in response.tool_calls:
                provider = tool_registry.provider_for(call.name)
                risk = risk_classifier.classify(call.name, provider, call.args)
                log_tool_call(LOGGER, call.name, call.args, risk.risk_level.value)
                requests.append(
                    ToolApprovalRequest(
                        execution_id=execution.id,
                        agent_id=busy.id,
                        agent_role=busy.role,
                        tool_call_id=call.id,
                        tool_name=call.name,
                        arguments=call.args,
                        provider=provider,
                        risk=risk.risk_level,
                        risk_reason=risk.reason,
                        context=approval_context(busy, call.name, execution.task),
                    )
                )
            waiting = busy.transition(AgentStatus.BUSY, draft=response.text)
            return _AgentOutcome(agent=waiting, requests=requests)

    @with_error_boundary("agent_executor")
    async def agent_executor_node(state: SwarmState, config=None) -> dict:
        log_node_entry(LOGGER, "agent_executor", state)
        channel = get_channel(config)
        iterations = next_iteration(state)
        runnable = runnable_agents(state)
        if not runnable:
            return {"iterations": iterations, "phase": Phase.EXECUTION.value}

        semaphore = asyncio.Semaphore(state["limits"].max_parallel_agents)
        outcomes = await asyncio.gather(*(_run_agent(agent, state, channel, semaphore) for agent in runnable))

        execution = state["execution"]
        new_requests = []
        for outcome in outcomes:
            new_requests.extend(outcome.requests)
            if outcome.error:
                execution = execution.with_error(outcome.error)

        return {
            "execution": execution,
            "agents": replace_agents(state, *(outcome.agent for outcome in outcomes)),
            "approvals": replace_requests(state, *new_requests),
            "iterations": iterations,
            "phase": Phase.EXECUTION.value,
        }

    return agent_executor_node


__all__ = ["build_executor_node"]
