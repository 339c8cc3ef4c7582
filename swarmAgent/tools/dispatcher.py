"""Tool dispatch boundary.

The engine talks to tools only through a ``ToolDispatcher``. Whatever the
dispatcher does, ``dispatch_with_deadline`` guarantees a bounded wait and
turns every failure into a ``ToolResult`` so a broken tool never stops the
execution it belongs to.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from pydantic import BaseModel

from .registry import ToolRegistry

LOGGER = logging.getLogger(__name__)


class ToolResult(BaseModel):
    success: bool
    result: Any = None
    error: Optional[str] = None


@runtime_checkable
class ToolDispatcher(Protocol):
    async def dispatch(
        self, provider: str, tool_name: str, arguments: Dict[str, Any], timeout: float
    ) -> ToolResult:
        ...


class RegistryToolDispatcher:
    """Runs LangChain tools registered in a ToolRegistry."""

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def dispatch(
        self, provider: str, tool_name: str, arguments: Dict[str, Any], timeout: float
    ) -> ToolResult:
        try:
            tool = self.registry.get_tool(tool_name)
        except KeyError:
            return ToolResult(success=False, error=f"Tool '{tool_name}' is not available from provider '{provider}'")

        output = await asyncio.wait_for(tool.ainvoke(arguments), timeout=timeout)
        content = getattr(output, "content", output)
        return ToolResult(success=True, result=content)


async def dispatch_with_deadline(
    dispatcher: ToolDispatcher,
    provider: str,
    tool_name: str,
    arguments: Dict[str, Any],
    timeout: float,
) -> ToolResult:
    """Dispatch one approved call; never raises, never waits past ``timeout``."""
    try:
        result = await asyncio.wait_for(
            dispatcher.dispatch(provider, tool_name, arguments, timeout), timeout=timeout
        )
    except asyncio.TimeoutError:
        LOGGER.warning(f"Tool {tool_name} timed out after {timeout:g}s")
        return ToolResult(success=False, error=f"Tool execution timed out after {timeout:g}s")
    except Exception as exc:
        LOGGER.exception(f"Tool {tool_name} failed", exc_info=exc)
        return ToolResult(success=False, error=f"Tool execution failed: {exc}")

    if not isinstance(result, ToolResult):
        return ToolResult(success=True, result=result)
    return result


__all__ = ["RegistryToolDispatcher", "ToolDispatcher", "ToolResult", "dispatch_with_deadline"]
