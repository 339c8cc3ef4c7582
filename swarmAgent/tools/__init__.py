"""Tool catalogue and dispatch."""

from .dispatcher import RegistryToolDispatcher, ToolDispatcher, ToolResult, dispatch_with_deadline
from .registry import ToolRegistry, ToolSpec

__all__ = [
    "RegistryToolDispatcher",
    "ToolDispatcher",
    "ToolRegistry",
    "ToolResult",
    "ToolSpec",
    "dispatch_with_deadline",
]
