"""Load agent roles from agents.yaml."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .registry import AgentRegistry
from .schema import AgentCard

LOGGER = logging.getLogger(__name__)

DEFAULT_AGENTS_PATH = Path(__file__).resolve().parent.parent / "config" / "agents.yaml"


def parse_agent_card_from_config(role: str, config: Dict[str, Any]) -> AgentCard:
    """Build an AgentCard from one entry of the ``roles`` mapping.

    Raises:
        ValueError: When the entry lacks a name or system prompt
    """
    name = config.get("name")
    system_prompt = config.get("system_prompt")
    if not name or not system_prompt:
        raise ValueError(f"Agent role '{role}' needs both 'name' and 'system_prompt'")

    return AgentCard(
        role=role,
        name=name,
        description=config.get("description", ""),
        expertise=list(config.get("expertise") or []),
        system_prompt=system_prompt.strip(),
        tags=list(config.get("tags") or []),
        selectable=bool(config.get("selectable", True)),
    )


def load_agents_config(config_path: Path | str) -> Dict[str, Any]:
    """Load an agents.yaml file.

    Raises:
        FileNotFoundError: Config file does not exist
        yaml.YAMLError: YAML parse error
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Agent config not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    LOGGER.debug(f"Loaded agent config from {config_path}")
    return config


def scan_agents_from_config(config_path: Optional[Path | str] = None) -> AgentRegistry:
    """Build an AgentRegistry from agents.yaml (bundled roles by default).

    Roles with ``enabled: false`` are skipped; invalid entries are logged and skipped.
    """
    registry = AgentRegistry()
    config = load_agents_config(config_path or DEFAULT_AGENTS_PATH)

    for role, role_config in (config.get("roles") or {}).items():
        role_config = role_config or {}
        if not role_config.get("enabled", True):
            LOGGER.info(f"Skipping disabled agent role: {role}")
            continue
        try:
            registry.register(parse_agent_card_from_config(role, role_config))
        except ValueError as e:
            LOGGER.error(f"Failed to register agent role '{role}': {e}")

    stats = registry.get_stats()
    LOGGER.info(f"Agent scan complete: {stats['registered']} roles, {stats['selectable']} selectable")
    return registry


def load_default_agent_registry() -> AgentRegistry:
    return scan_agents_from_config(DEFAULT_AGENTS_PATH)
