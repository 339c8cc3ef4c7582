"""Completion model access."""

from .client import ChatModelCompletionClient, CompletionClient, CompletionResponse, ToolCall
from .model_resolver import build_chat_model

__all__ = [
    "ChatModelCompletionClient",
    "CompletionClient",
    "CompletionResponse",
    "ToolCall",
    "build_chat_model",
]
