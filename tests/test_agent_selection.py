"""Tests for deterministic role selection and the agent registry."""

import pytest

from swarmAgent.agents.scanner import load_default_agent_registry, scan_agents_from_config
from swarmAgent.config.settings import SelectionSettings
from swarmAgent.graph.nodes.decomposer import select_roles
from swarmAgent.graph.state import KnowledgeChunk
from swarmAgent.utils.error_handler import ConfigurationError

from helpers import make_registry

SHORT_TASK = "Summarize today's news"
LONG_TASK = "Compare the economic policies of three countries over the last decade " * 3


@pytest.fixture
def selection():
    return SelectionSettings()


class TestSelectRoles:
    def test_short_task_without_context_selects_research_only(self, selection):
        registry = make_registry("research", "analysis", "rag")
        assert select_roles(SHORT_TASK, registry, [], selection) == ["research"]

    def test_long_task_adds_analysis(self, selection):
        registry = make_registry("research", "analysis", "rag")
        assert len(LONG_TASK) > 100
        assert select_roles(LONG_TASK, registry, [], selection) == ["research", "analysis"]

    def test_knowledge_context_adds_rag(self, selection):
        registry = make_registry("research", "analysis", "rag")
        chunks = [KnowledgeChunk(content="Q3 revenue grew 12%")]
        assert select_roles(LONG_TASK, registry, chunks, selection) == ["research", "rag", "analysis"]

    def test_task_of_exactly_threshold_length_skips_analysis(self, selection):
        registry = make_registry("research", "analysis")
        assert select_roles("x" * 100, registry, [], selection) == ["research"]

    def test_missing_roles_are_skipped(self, selection):
        registry = make_registry("research")
        chunks = [KnowledgeChunk(content="context")]
        assert select_roles(LONG_TASK, registry, chunks, selection) == ["research"]

    def test_falls_back_to_first_registered_role(self, selection):
        registry = make_registry("creative", "technical")
        assert select_roles(SHORT_TASK, registry, [], selection) == ["creative"]

    def test_empty_registry_is_a_configuration_error(self, selection):
        with pytest.raises(ConfigurationError):
            select_roles(SHORT_TASK, make_registry(), [], selection)

    def test_coordinator_is_never_selected(self, selection):
        registry = make_registry(coordinator=True)
        with pytest.raises(ConfigurationError):
            select_roles(SHORT_TASK, registry, [], selection)


class TestBundledRoles:
    def test_default_registry_has_all_roles(self):
        registry = load_default_agent_registry()
        for role in ("research", "analysis", "creative", "technical", "communication", "validation", "rag", "master"):
            assert role in registry
        assert not registry.get("master").selectable
        assert "information_gathering" in registry.get("research").expertise
        assert "All tool usage requires human approval" in registry.get("research").system_prompt

    def test_disabled_and_invalid_roles_are_skipped(self, tmp_path):
        path = tmp_path / "agents.yaml"
        path.write_text(
            "roles:\n"
            "  research:\n"
            "    name: Research\n"
            "    system_prompt: Research things.\n"
            "  creative:\n"
            "    enabled: false\n"
            "    name: Creative\n"
            "    system_prompt: Be creative.\n"
            "  broken:\n"
            "    name: Broken\n",
            encoding="utf-8",
        )
        registry = scan_agents_from_config(path)
        assert [card.role for card in registry.list_cards()] == ["research"]

    def test_query_by_tags(self):
        registry = load_default_agent_registry()
        assert [card.role for card in registry.query_by_tags(["knowledge"])] == ["rag"]

    def test_catalog_text_lists_roles(self):
        registry = make_registry("research")
        text = registry.get_catalog_text()
        assert "## research - Research Agent" in text
        assert "## master - Master" in text
