"""Chat model wiring using environment-derived settings."""

from __future__ import annotations

from typing import Dict

from langchain_openai import ChatOpenAI

from swarmAgent.config.settings import ModelSettings
from swarmAgent.utils.error_handler import ConfigurationError


def _chat_kwargs(settings: ModelSettings) -> Dict[str, object]:
    if not settings.api_key:
        raise ConfigurationError(f"Missing API key for model {settings.model}; set MODEL_CHAT_API_KEY in .env")
    kwargs: Dict[str, object] = {
        "model": settings.model,
        "api_key": settings.api_key,
        "temperature": settings.temperature,
    }
    if settings.base_url:
        kwargs["base_url"] = settings.base_url
    return kwargs


def build_chat_model(settings: ModelSettings) -> ChatOpenAI:
    """Construct the OpenAI-compatible chat model every agent talks to."""
    return ChatOpenAI(**_chat_kwargs(settings))


__all__ = ["build_chat_model"]
