"""Prompt construction for agents and the coordinator."""

from __future__ import annotations

import json
from typing import Iterable, List, Optional, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from swarmAgent.graph.state import (
    AgentInstance,
    ApprovalStatus,
    KnowledgeChunk,
    SubTask,
    ToolApprovalRequest,
)
from swarmAgent.tools.registry import ToolSpec

DEFAULT_COORDINATOR_PROMPT = "You are a master coordinator."

TOOL_POLICY_NOTE = (
    "Every tool call you make is reviewed by a human before it runs. "
    "If a call is denied, answer as well as you can without it."
)


def _knowledge_section(chunks: Sequence[KnowledgeChunk]) -> str:
    lines = ["# Knowledge Context"]
    for index, chunk in enumerate(chunks, 1):
        source = f" (source: {chunk.source})" if chunk.source else ""
        lines.append(f"[{index}]{source} {chunk.content}")
    return "\n".join(lines)


def build_agent_messages(
    agent: AgentInstance,
    task: str,
    knowledge_context: Sequence[KnowledgeChunk],
    tools: Sequence[ToolSpec],
    subtask: Optional[SubTask] = None,
) -> List[BaseMessage]:
    """Messages for an agent's first completion call.

    ``knowledge_context`` is rendered as given; callers pass it only to the
    agent that owns the knowledge role.
    """
    system_parts = [agent.system_prompt or f"You are a {agent.role} agent."]
    if agent.expertise:
        system_parts.append(f"Your expertise: {', '.join(agent.expertise)}.")
    if tools:
        system_parts.append(TOOL_POLICY_NOTE)

    human_parts = [f"As a {agent.role} agent, help with this task: {task}"]
    if subtask is not None:
        human_parts.append(f"Assigned sub-task (priority {subtask.priority}): {subtask.description}")
    if knowledge_context:
        human_parts.append(_knowledge_section(knowledge_context))

    return [
        SystemMessage(content="\n\n".join(system_parts)),
        HumanMessage(content="\n\n".join(human_parts)),
    ]


def _tool_message_content(request: ToolApprovalRequest) -> str:
    if request.status == ApprovalStatus.EXECUTED:
        if isinstance(request.result, str):
            return request.result
        return json.dumps(request.result, ensure_ascii=False, default=str)
    if request.status == ApprovalStatus.DENIED:
        return f"Tool call was not run: {request.error or 'denied by reviewer'}. Continue without this result."
    return f"Tool call failed: {request.error or 'unknown error'}. Continue without this result."


def build_completion_messages(
    agent: AgentInstance,
    task: str,
    knowledge_context: Sequence[KnowledgeChunk],
    requests: Iterable[ToolApprovalRequest],
    subtask: Optional[SubTask] = None,
) -> List[BaseMessage]:
    """Replay the agent's first turn with every tool outcome folded back in."""
    requests = list(requests)
    messages = build_agent_messages(agent, task, knowledge_context, tools=[], subtask=subtask)
    messages.append(
        AIMessage(
            content=agent.draft or "",
            tool_calls=[
                {"id": r.tool_call_id, "name": r.tool_name, "args": r.arguments, "type": "tool_call"}
                for r in requests
            ],
        )
    )
    for request in requests:
        messages.append(
            ToolMessage(
                content=_tool_message_content(request),
                tool_call_id=request.tool_call_id,
                name=request.tool_name,
            )
        )
    return messages


def build_synthesis_messages(
    coordinator_prompt: str,
    task: str,
    contributions: Sequence[AgentInstance],
) -> List[BaseMessage]:
    results = "\n\n".join(f"{agent.name} ({agent.role}): {agent.result}" for agent in contributions)
    prompt = (
        f"Synthesize these agent results into a comprehensive final response for: {task}\n\n"
        f"Agent Results:\n{results}"
    )
    return [
        SystemMessage(content=coordinator_prompt or DEFAULT_COORDINATOR_PROMPT),
        HumanMessage(content=prompt),
    ]


def approval_context(agent: AgentInstance, tool_name: str, task: str) -> str:
    return f"{agent.role} agent wants to use {tool_name} for: {task}"


__all__ = [
    "DEFAULT_COORDINATOR_PROMPT",
    "approval_context",
    "build_agent_messages",
    "build_completion_messages",
    "build_synthesis_messages",
]
