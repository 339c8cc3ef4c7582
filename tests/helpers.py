"""Test doubles for the completion and tool boundaries."""

import asyncio
import re
from typing import Dict, List, Optional

from langchain_core.messages import ToolMessage

from swarmAgent.agents.registry import AgentRegistry
from swarmAgent.agents.schema import AgentCard
from swarmAgent.llm.client import CompletionResponse, ToolCall
from swarmAgent.tools.dispatcher import ToolResult
from swarmAgent.tools.registry import ToolSpec

ROLE_PATTERN = re.compile(r"ROLE:(\w+)")

FETCH_URL = ToolSpec(
    name="fetch_url",
    description="Fetch a web page",
    provider="web",
    parameters={"type": "object", "properties": {"url": {"type": "string"}}, "required": ["url"]},
)


def make_registry(*roles: str, coordinator: bool = True) -> AgentRegistry:
    """Registry whose system prompts carry a ROLE:<role> marker the fake client reads."""
    registry = AgentRegistry()
    for role in roles:
        registry.register(AgentCard(role=role, name=f"{role.title()} Agent", system_prompt=f"ROLE:{role}"))
    if coordinator:
        registry.register(AgentCard(role="master", name="Master", system_prompt="ROLE:master", selectable=False))
    return registry


def tool_call_response(name: str = "fetch_url", text: str = "I need a tool", **args) -> CompletionResponse:
    return CompletionResponse(text=text, tool_calls=[ToolCall(name=name, args=args)])


class ScriptedCompletionClient:
    """Answers by role.

    ``scripts`` maps a role to the responses (or exceptions) for its first
    calls, consumed in order; once a script runs out the role answers
    "<role> answer". The coordinator answers "SYNTHESIS: " followed by the comma-joined
    roles whose results it was given. Calls that carry tool results answer
    "<role> final after tools".
    """

    def __init__(self, scripts: Optional[Dict[str, list]] = None, delay: float = 0.0):
        self.scripts = {role: list(items) for role, items in (scripts or {}).items()}
        self.calls: List[dict] = []
        self.delay = delay

    async def complete(self, messages, tools):
        system = messages[0].content
        match = ROLE_PATTERN.search(system)
        role = match.group(1) if match else "master"
        has_tool_results = any(isinstance(m, ToolMessage) for m in messages)
        self.calls.append({"role": role, "messages": list(messages), "tools": list(tools)})

        if self.delay:
            await asyncio.sleep(self.delay)

        if role == "master":
            roles = re.findall(r"\((\w+)\): ", messages[-1].content)
            return CompletionResponse(text="SYNTHESIS: " + ",".join(roles))

        if has_tool_results:
            return CompletionResponse(text=f"{role} final after tools")

        script = self.scripts.get(role)
        if script:
            item = script.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        return CompletionResponse(text=f"{role} answer")

    def calls_for(self, role: str) -> List[dict]:
        return [call for call in self.calls if call["role"] == role]


class RecordingDispatcher:
    """Returns canned results per tool name and records every dispatch."""

    def __init__(self, results: Optional[Dict[str, ToolResult]] = None, delay: float = 0.0):
        self.results = results or {}
        self.calls: List[tuple] = []
        self.delay = delay

    async def dispatch(self, provider, tool_name, arguments, timeout):
        self.calls.append((provider, tool_name, dict(arguments), timeout))
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.results.get(tool_name, ToolResult(success=True, result=f"{tool_name} output"))
