"""Tests for tool registration and bounded dispatch."""

import asyncio

import pytest
from langchain_core.tools import tool

from swarmAgent.tools.dispatcher import RegistryToolDispatcher, ToolResult, dispatch_with_deadline
from swarmAgent.tools.registry import UNKNOWN_PROVIDER, ToolRegistry


@tool
def word_count(text: str) -> int:
    """Count the words in a piece of text."""
    return len(text.split())


class SlowDispatcher:
    async def dispatch(self, provider, tool_name, arguments, timeout):
        await asyncio.sleep(10)
        return ToolResult(success=True, result="too late")


class BrokenDispatcher:
    async def dispatch(self, provider, tool_name, arguments, timeout):
        raise RuntimeError("connection reset")


class RawDispatcher:
    async def dispatch(self, provider, tool_name, arguments, timeout):
        return {"rows": 3}


class TestToolRegistry:
    def test_register_langchain_tool(self):
        registry = ToolRegistry()
        spec = registry.register_tool(word_count, provider="local")

        assert spec.name == "word_count"
        assert spec.provider == "local"
        assert "text" in spec.parameters["properties"]
        assert registry.provider_for("word_count") == "local"
        assert registry.get_tool("word_count") is word_count
        assert spec.to_openai_tool()["function"]["name"] == "word_count"

    def test_unknown_tool(self):
        registry = ToolRegistry()
        assert registry.provider_for("missing") == UNKNOWN_PROVIDER
        assert registry.get_spec("missing") is None
        with pytest.raises(KeyError):
            registry.get_tool("missing")


@pytest.mark.asyncio
class TestDispatchWithDeadline:
    async def test_registry_dispatcher_runs_tool(self):
        registry = ToolRegistry()
        registry.register_tool(word_count, provider="local")
        result = await dispatch_with_deadline(
            RegistryToolDispatcher(registry), "local", "word_count", {"text": "one two three"}, timeout=1.0
        )
        assert result == ToolResult(success=True, result=3)

    async def test_registry_dispatcher_reports_missing_tool(self):
        result = await dispatch_with_deadline(
            RegistryToolDispatcher(ToolRegistry()), "web", "fetch_url", {}, timeout=1.0
        )
        assert not result.success
        assert "fetch_url" in result.error

    async def test_timeout_becomes_failure(self):
        result = await dispatch_with_deadline(SlowDispatcher(), "web", "fetch_url", {}, timeout=0.05)
        assert not result.success
        assert result.error == "Tool execution timed out after 0.05s"

    async def test_exception_becomes_failure(self):
        result = await dispatch_with_deadline(BrokenDispatcher(), "web", "fetch_url", {}, timeout=1.0)
        assert not result.success
        assert "connection reset" in result.error

    async def test_plain_return_value_is_wrapped(self):
        result = await dispatch_with_deadline(RawDispatcher(), "db", "database_query", {}, timeout=1.0)
        assert result == ToolResult(success=True, result={"rows": 3})
