"""Utilities for swarmAgent."""

from .logging_utils import (
    log_error,
    log_node_entry,
    log_prompt,
    log_routing_decision,
    log_tool_call,
    log_tool_result,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "log_node_entry",
    "log_routing_decision",
    "log_tool_call",
    "log_tool_result",
    "log_prompt",
    "log_error",
]
