"""Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and ensures proper test environment setup.
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is in PYTHONPATH for imports to work
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from swarmAgent.config.settings import ApprovalSettings, LimitSettings, Settings  # noqa: E402
from swarmAgent.hitl.risk import RiskClassifier  # noqa: E402
from swarmAgent.persistence.execution_store import ExecutionStore  # noqa: E402
from swarmAgent.runtime.engine import SwarmEngine  # noqa: E402
from swarmAgent.tools.registry import ToolRegistry  # noqa: E402

from helpers import FETCH_URL, RecordingDispatcher, ScriptedCompletionClient, make_registry  # noqa: E402


def build_settings(approval_timeout: float = 0.0, **limits) -> Settings:
    """Settings with approval timers off unless a timeout is given."""
    return Settings(
        approval=ApprovalSettings(approval_timeout_seconds=approval_timeout, tool_timeout_seconds=2.0),
        limits=LimitSettings(**limits),
    )


@pytest.fixture
def store(tmp_path):
    return ExecutionStore(str(tmp_path / "swarm.db"))


@pytest.fixture
def tool_registry():
    return ToolRegistry([FETCH_URL])


@pytest.fixture
def make_engine(store, tool_registry):
    """Factory for engines sharing one store (a new engine simulates a restart)."""

    def _make(
        client=None,
        dispatcher=None,
        registry=None,
        settings=None,
        engine_store=None,
    ) -> SwarmEngine:
        return SwarmEngine(
            registry=registry or make_registry("research", "analysis", "rag"),
            completion_client=client or ScriptedCompletionClient(),
            dispatcher=dispatcher or RecordingDispatcher(),
            store=engine_store or store,
            tool_registry=tool_registry,
            risk_classifier=RiskClassifier(),
            settings=settings or build_settings(),
        )

    return _make
