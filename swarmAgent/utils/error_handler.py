"""Unified error handling for swarm graph nodes."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from swarmAgent.graph.events import get_channel
from swarmAgent.graph.lifecycle import announce_termination, terminate

LOGGER = logging.getLogger(__name__)


class SwarmError(Exception):
    """Base exception for swarmAgent errors."""

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message


class SwarmFatalError(SwarmError):
    """An error that ends the whole Execution."""
    pass


class ConfigurationError(SwarmFatalError):
    """Registry or limits make the Execution impossible."""
    pass


class IterationLimitError(SwarmFatalError):
    """The Execution looped more often than its limits allow."""
    pass


class SynthesisError(SwarmFatalError):
    """No final answer could be produced."""
    pass


class CompletionClientError(SwarmError):
    """The completion model failed; contained to the calling agent."""
    pass


class ToolExecutionError(SwarmError):
    """Error during tool execution; contained to the approval request."""
    pass


class ExecutionNotFoundError(SwarmError, KeyError):
    """No Execution is known under the given id."""
    pass


def with_error_boundary(node_name: str):
    """Decorator that turns fatal errors inside a graph node into a failed Execution.

    The wrapped node keeps its ``(state, config)`` signature so the graph still
    passes the run config (and with it, the event channel).

    Example:
        @with_error_boundary("agent_selector")
        async def agent_selector_node(state, config):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(state: Any, config: Any = None) -> dict:
            try:
                return await func(state, config)
            except SwarmFatalError as e:
                LOGGER.error(f"{node_name} fatal error: {e}")
                updates = terminate(state, e.user_message)
                announce_termination(get_channel(config), state, updates)
                return updates

        return wrapper

    return decorator


def handle_model_error(error: Exception) -> str:
    """Convert model invocation errors to readable messages.

    Args:
        error: Exception raised during model invocation

    Returns:
        Readable error message
    """
    error_str = str(error).lower()

    if "rate_limit" in error_str or "429" in error_str:
        return "Completion model rate limited, try again later"

    if "timeout" in error_str:
        return "Completion model timed out"

    if "context_length" in error_str:
        return "Prompt exceeds the model context window"

    if "invalid_api_key" in error_str or "authentication" in error_str:
        return "Completion model rejected the API key"

    if "quota" in error_str or "insufficient" in error_str:
        return "Completion model quota exhausted"

    return f"Completion model unavailable: {error}"


__all__ = [
    "CompletionClientError",
    "ConfigurationError",
    "ExecutionNotFoundError",
    "IterationLimitError",
    "SwarmError",
    "SwarmFatalError",
    "SynthesisError",
    "ToolExecutionError",
    "handle_model_error",
    "with_error_boundary",
]
