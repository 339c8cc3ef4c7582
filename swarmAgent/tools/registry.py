"""Tool catalogue offered to agents.

Agents only ever see tool *specifications*; the actual callables stay behind
the dispatcher and run only after a human approves the call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from langchain_core.tools import BaseTool
from langchain_core.utils.function_calling import convert_to_openai_tool

UNKNOWN_PROVIDER = "unknown"


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Describes a tool the completion model may ask for."""

    name: str
    description: str
    provider: str = UNKNOWN_PROVIDER
    parameters: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_openai_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRegistry:
    """Tracks tool specifications, their providers and, when local, their callables."""

    def __init__(self, specs: Optional[Iterable[ToolSpec]] = None) -> None:
        self._specs: Dict[str, ToolSpec] = {}
        self._tools: Dict[str, BaseTool] = {}
        if specs:
            for spec in specs:
                self.register_spec(spec)

    def register_spec(self, spec: ToolSpec) -> None:
        self._specs[spec.name] = spec

    def register_tool(self, tool: BaseTool, provider: str) -> ToolSpec:
        """Register a LangChain tool under ``provider`` and derive its spec."""
        function = convert_to_openai_tool(tool)["function"]
        spec = ToolSpec(
            name=tool.name,
            description=function.get("description") or tool.description or "",
            provider=provider,
            parameters=function.get("parameters") or {"type": "object", "properties": {}},
        )
        self._specs[tool.name] = spec
        self._tools[tool.name] = tool
        return spec

    def get_spec(self, name: str) -> Optional[ToolSpec]:
        return self._specs.get(name)

    def provider_for(self, name: str) -> str:
        spec = self._specs.get(name)
        return spec.provider if spec else UNKNOWN_PROVIDER

    def get_tool(self, name: str) -> BaseTool:
        if name not in self._tools:
            raise KeyError(f"Unknown tool: {name}")
        return self._tools[name]

    def list_specs(self) -> List[ToolSpec]:
        return list(self._specs.values())

    def __len__(self) -> int:
        return len(self._specs)


__all__ = ["ToolRegistry", "ToolSpec", "UNKNOWN_PROVIDER"]
