"""Application assembly for swarmAgent.

Builds a ready-to-use SwarmEngine by:
1. Loading settings
2. Loading agent roles
3. Building the completion client
4. Building the tool registry and dispatcher
5. Loading risk rules
6. Opening the execution store
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from langchain_core.tools import BaseTool

from swarmAgent.agents.registry import AgentRegistry
from swarmAgent.agents.scanner import scan_agents_from_config
from swarmAgent.config.settings import Settings, get_settings
from swarmAgent.hitl.risk import RiskClassifier
from swarmAgent.llm.client import ChatModelCompletionClient, CompletionClient
from swarmAgent.llm.model_resolver import build_chat_model
from swarmAgent.persistence.execution_store import ExecutionStore
from swarmAgent.runtime.engine import SwarmEngine
from swarmAgent.tools.dispatcher import RegistryToolDispatcher, ToolDispatcher
from swarmAgent.tools.registry import ToolRegistry

LOGGER = logging.getLogger(__name__)


def build_swarm_engine(
    settings: Optional[Settings] = None,
    *,
    registry: Optional[AgentRegistry] = None,
    completion_client: Optional[CompletionClient] = None,
    tools: Optional[Iterable[Tuple[BaseTool, str]]] = None,
    dispatcher: Optional[ToolDispatcher] = None,
    store: Optional[ExecutionStore] = None,
) -> SwarmEngine:
    """Build a SwarmEngine from settings, overriding any part as needed.

    Args:
        settings: Application settings (cached settings if None)
        registry: Agent roles (agents.yaml if None)
        completion_client: Model boundary (ChatOpenAI from settings if None)
        tools: (tool, provider) pairs offered to agents
        dispatcher: Tool boundary (runs ``tools`` locally if None)
        store: Execution store (SQLite at EXECUTION_DB_PATH if None)

    Returns:
        Configured SwarmEngine (call ``recover()`` before serving)
    """
    # ========== Step 1: Load Settings ==========
    settings = settings or get_settings()

    # ========== Step 2: Load Agent Roles ==========
    if registry is None:
        registry = scan_agents_from_config(settings.selection.agents_config_path)

    # ========== Step 3: Build Completion Client ==========
    if completion_client is None:
        completion_client = ChatModelCompletionClient(build_chat_model(settings.model), model_name=settings.model.model)

    # ========== Step 4: Build Tool Registry and Dispatcher ==========
    tool_registry = ToolRegistry()
    for tool, provider in tools or []:
        tool_registry.register_tool(tool, provider)
    if dispatcher is None:
        dispatcher = RegistryToolDispatcher(tool_registry)

    # ========== Step 5: Load Risk Rules ==========
    risk_classifier = RiskClassifier(settings.approval.resolved_risk_rules_path())

    # ========== Step 6: Open Execution Store ==========
    if store is None:
        store = ExecutionStore(settings.observability.execution_db_path)

    engine = SwarmEngine(
        registry=registry,
        completion_client=completion_client,
        dispatcher=dispatcher,
        store=store,
        tool_registry=tool_registry,
        risk_classifier=risk_classifier,
        settings=settings,
    )
    LOGGER.info(f"[Swarm App] Engine built: {len(registry)} roles, {len(tool_registry)} tools")
    return engine


__all__ = ["build_swarm_engine"]
