"""Environment-bound configuration objects.

All settings groups load from environment variables or a local ``.env`` file
through pydantic-settings. Fields may also be passed by name when building
settings in code (tests, embedding applications).

Example:
    from swarmAgent.config.settings import get_settings

    settings = get_settings()  # Cached singleton
    timeout = settings.approval.approval_timeout_seconds
    max_agents = settings.limits.max_parallel_agents
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()

DEFAULT_RISK_RULES_PATH = Path(__file__).resolve().parent / "risk_rules.yaml"

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class LimitSettings(BaseSettings):
    """Process-wide resource limits.

    - max_parallel_agents: Agents that may be active across all executions
    - max_swarm_size: Agents a single execution may select
    - max_active_swarms: Executions that may hold agents at the same time
    - max_iterations: Decomposer, executor and completion passes before an execution is failed
    - execution_ttl_seconds: Age after which stale executions are swept
    - recursion_limit: Upper bound on graph steps per advance
    - max_parallel_tools: Approved tool calls dispatched concurrently
    """

    max_parallel_agents: int = Field(default=10, ge=1, validation_alias=AliasChoices("SWARM_MAX_PARALLEL_AGENTS", "max_parallel_agents"))
    max_swarm_size: int = Field(default=5, ge=1, validation_alias=AliasChoices("SWARM_MAX_SWARM_SIZE", "max_swarm_size"))
    max_active_swarms: int = Field(default=3, ge=1, validation_alias=AliasChoices("SWARM_MAX_ACTIVE_SWARMS", "max_active_swarms"))
    max_iterations: int = Field(default=20, ge=1, validation_alias=AliasChoices("SWARM_MAX_ITERATIONS", "max_iterations"))
    execution_ttl_seconds: float = Field(
        default=1800.0, gt=0, validation_alias=AliasChoices("SWARM_EXECUTION_TTL_SECONDS", "execution_ttl_seconds")
    )
    recursion_limit: int = Field(default=100, ge=1, validation_alias=AliasChoices("SWARM_RECURSION_LIMIT", "recursion_limit"))
    max_parallel_tools: int = Field(default=4, ge=1, validation_alias=AliasChoices("SWARM_MAX_PARALLEL_TOOLS", "max_parallel_tools"))

    model_config = _ENV_CONFIG


class ApprovalSettings(BaseSettings):
    """Human approval and tool dispatch timing.

    An approval timeout of 0 disables auto-deny, so a request may stay
    pending until a decision or abort arrives.
    """

    approval_timeout_seconds: float = Field(
        default=30.0, ge=0, validation_alias=AliasChoices("APPROVAL_TIMEOUT_SECONDS", "approval_timeout_seconds")
    )
    tool_timeout_seconds: float = Field(
        default=30.0, gt=0, validation_alias=AliasChoices("TOOL_TIMEOUT_SECONDS", "tool_timeout_seconds")
    )
    risk_rules_path: Optional[str] = Field(default=None, validation_alias=AliasChoices("RISK_RULES_PATH", "risk_rules_path"))

    model_config = _ENV_CONFIG

    def resolved_risk_rules_path(self) -> Path:
        if self.risk_rules_path:
            return Path(self.risk_rules_path)
        return DEFAULT_RISK_RULES_PATH


class SelectionSettings(BaseSettings):
    """Role names used by the deterministic agent selection policy."""

    general_role: str = Field(default="research", validation_alias=AliasChoices("SWARM_GENERAL_ROLE", "general_role"))
    knowledge_role: str = Field(default="rag", validation_alias=AliasChoices("SWARM_KNOWLEDGE_ROLE", "knowledge_role"))
    analysis_role: str = Field(default="analysis", validation_alias=AliasChoices("SWARM_ANALYSIS_ROLE", "analysis_role"))
    coordinator_role: str = Field(default="master", validation_alias=AliasChoices("SWARM_COORDINATOR_ROLE", "coordinator_role"))
    analysis_threshold_chars: int = Field(
        default=100, ge=0, validation_alias=AliasChoices("SWARM_ANALYSIS_THRESHOLD", "analysis_threshold_chars")
    )
    agents_config_path: Optional[str] = Field(default=None, validation_alias=AliasChoices("SWARM_AGENTS_PATH", "agents_config_path"))

    model_config = _ENV_CONFIG


class ModelSettings(BaseSettings):
    """OpenAI-compatible completion model used by every agent."""

    model: str = Field(default="gpt-4o-mini", validation_alias=AliasChoices("MODEL_CHAT", "MODEL_CHAT_ID", "model"))
    api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("MODEL_CHAT_API_KEY", "OPENAI_API_KEY", "api_key"))
    base_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("MODEL_CHAT_URL", "MODEL_CHAT_BASE_URL", "base_url"))
    temperature: float = Field(default=0.2, ge=0, le=2, validation_alias=AliasChoices("MODEL_TEMPERATURE", "temperature"))

    model_config = _ENV_CONFIG


class ObservabilitySettings(BaseSettings):
    """Logging and persistence configuration."""

    log_dir: str = Field(default="logs", validation_alias=AliasChoices("LOG_DIR", "log_dir"))
    log_prompt_max_length: int = Field(
        default=500, ge=100, le=5000, validation_alias=AliasChoices("LOG_PROMPT_MAX_LENGTH", "log_prompt_max_length")
    )

    # Default: ./data/executions.db (SQLite)
    execution_db_path: str = Field(
        default="data/executions.db", validation_alias=AliasChoices("EXECUTION_DB_PATH", "execution_db_path")
    )

    model_config = _ENV_CONFIG


class Settings(BaseSettings):
    """Root application settings.

    Nested groups:
    - limits: Resource and iteration limits (LimitSettings)
    - approval: Approval timeout and tool dispatch timing (ApprovalSettings)
    - selection: Agent selection role names (SelectionSettings)
    - model: Completion model credentials (ModelSettings)
    - observability: Logging and persistence (ObservabilitySettings)

    Use get_settings() to obtain a cached singleton instance.
    """

    environment: str = Field(default="dev", validation_alias=AliasChoices("APP_ENV", "environment"))
    limits: LimitSettings = Field(default_factory=LimitSettings)
    approval: ApprovalSettings = Field(default_factory=ApprovalSettings)
    selection: SelectionSettings = Field(default_factory=SelectionSettings)
    model: ModelSettings = Field(default_factory=ModelSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        validate_assignment=True,
        case_sensitive=False,
        protected_namespaces=(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance."""
    return Settings()


__all__ = [
    "ApprovalSettings",
    "LimitSettings",
    "ModelSettings",
    "ObservabilitySettings",
    "SelectionSettings",
    "Settings",
    "get_settings",
    "DEFAULT_RISK_RULES_PATH",
]
