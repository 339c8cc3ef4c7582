"""Agent role cards and registry."""

from .registry import AgentRegistry
from .scanner import load_default_agent_registry, scan_agents_from_config
from .schema import AgentCard

__all__ = [
    "AgentCard",
    "AgentRegistry",
    "load_default_agent_registry",
    "scan_agents_from_config",
]
