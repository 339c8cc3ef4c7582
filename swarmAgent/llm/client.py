"""Completion client boundary.

Agents reach the model only through ``CompletionClient.complete``; the engine
never sees provider specifics. ``ChatModelCompletionClient`` adapts any
LangChain chat model that supports tool binding.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable
from uuid import uuid4

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from pydantic import BaseModel, Field

from swarmAgent.tools.registry import ToolSpec
from swarmAgent.utils.error_handler import CompletionClientError, handle_model_error

LOGGER = logging.getLogger(__name__)


class ToolCall(BaseModel):
    id: str = Field(default_factory=lambda: f"call_{uuid4().hex[:12]}")
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class CompletionResponse(BaseModel):
    text: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)


@runtime_checkable
class CompletionClient(Protocol):
    async def complete(self, messages: Sequence[BaseMessage], tools: Sequence[ToolSpec]) -> CompletionResponse:
        ...


def _stringify_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, dict) and item.get("type") == "text":
                parts.append(item.get("text", ""))
        return "".join(parts)
    return str(content or "")


class ChatModelCompletionClient:
    """CompletionClient backed by a LangChain chat model."""

    def __init__(self, model: BaseChatModel, *, model_name: Optional[str] = None):
        self.model = model
        self.model_name = model_name or getattr(model, "model_name", None) or type(model).__name__

    async def complete(self, messages: Sequence[BaseMessage], tools: Sequence[ToolSpec]) -> CompletionResponse:
        runnable = self.model.bind_tools([spec.to_openai_tool() for spec in tools]) if tools else self.model
        try:
            response = await runnable.ainvoke(list(messages))
        except Exception as exc:
            LOGGER.error(f"Completion call to {self.model_name} failed: {exc}")
            raise CompletionClientError(str(exc), user_message=handle_model_error(exc)) from exc

        tool_calls = []
        if isinstance(response, AIMessage):
            for call in response.tool_calls or []:
                tool_calls.append(
                    ToolCall(
                        id=call.get("id") or f"call_{uuid4().hex[:12]}",
                        name=call["name"],
                        args=call.get("args") or {},
                    )
                )
        return CompletionResponse(text=_stringify_content(response.content), tool_calls=tool_calls)


__all__ = ["ChatModelCompletionClient", "CompletionClient", "CompletionResponse", "ToolCall"]
