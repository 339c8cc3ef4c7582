"""Tests for tool risk classification."""

import tempfile
from pathlib import Path

import pytest
import yaml

from swarmAgent.config.settings import DEFAULT_RISK_RULES_PATH
from swarmAgent.graph.state import RiskLevel
from swarmAgent.hitl.risk import ApprovalDecision, RiskClassifier


class TestBuiltinTable:
    """Name / provider defaults without any rules file."""

    @pytest.fixture
    def classifier(self):
        return RiskClassifier()

    @pytest.mark.parametrize("tool_name", ["file_write", "system_command", "delete_file", "exec_python"])
    def test_high_risk_tools(self, classifier, tool_name):
        decision = classifier.classify(tool_name, "local", {})
        assert decision.risk_level == RiskLevel.HIGH
        assert decision.needs_approval

    @pytest.mark.parametrize("tool_name", ["web_search", "api_call", "database_query", "fetch_url"])
    def test_medium_risk_tools(self, classifier, tool_name):
        assert classifier.classify(tool_name, "local", {}).risk_level == RiskLevel.MEDIUM

    def test_provider_decides_when_name_is_harmless(self, classifier):
        assert classifier.classify("lookup", "admin", {}).risk_level == RiskLevel.HIGH
        assert classifier.classify("lookup", "web", {}).risk_level == RiskLevel.MEDIUM

    def test_provider_matches_whole_name_only(self, classifier):
        assert classifier.classify("notes", "website", {}).risk_level == RiskLevel.LOW
        assert classifier.classify("notes", "Web", {}).risk_level == RiskLevel.MEDIUM

    def test_everything_else_is_low_but_still_needs_approval(self, classifier):
        decision = classifier.classify("calculator", "math", {"expression": "1+1"})
        assert decision.risk_level == RiskLevel.LOW
        assert decision.needs_approval

    def test_high_wins_over_medium(self, classifier):
        assert classifier.classify("web_search", "system", {}).risk_level == RiskLevel.HIGH


class TestRulesFile:
    """Rules loaded from YAML."""

    @pytest.fixture
    def rules_path(self):
        config = {
            "risk_table": {
                "high": {"tools": ["nuke"], "providers": []},
            },
            "global": {
                "risk_patterns": {
                    "high": {"patterns": [r"/etc/passwd"], "reason": "System file"},
                    "critical": {"patterns": [r"password"], "reason": "ignored level"},
                },
            },
            "tools": {
                "sql": {"patterns": {"medium": [r"\bSELECT\b"]}},
            },
        }
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(config, f)
            return Path(f.name)

    def test_custom_table_replaces_defaults(self, rules_path):
        classifier = RiskClassifier(rules_path)
        assert classifier.classify("nuke_everything", "local", {}).risk_level == RiskLevel.HIGH
        assert classifier.classify("file_write", "local", {}).risk_level == RiskLevel.LOW

    def test_global_pattern_raises_level(self, rules_path):
        decision = RiskClassifier(rules_path).classify("reader", "local", {"path": "/etc/passwd"})
        assert decision.risk_level == RiskLevel.HIGH
        assert decision.reason == "System file"

    def test_unknown_levels_are_ignored(self, rules_path):
        decision = RiskClassifier(rules_path).classify("reader", "local", {"text": "password"})
        assert decision.risk_level == RiskLevel.LOW

    def test_tool_specific_pattern(self, rules_path):
        classifier = RiskClassifier(rules_path)
        assert classifier.classify("sql", "db", {"query": "SELECT 1"}).risk_level == RiskLevel.MEDIUM
        assert classifier.classify("sql", "db", {"query": "show tables"}).risk_level == RiskLevel.LOW

    def test_missing_file_falls_back_to_builtin(self, tmp_path):
        classifier = RiskClassifier(tmp_path / "missing.yaml")
        assert classifier.classify("file_write", "local", {}).risk_level == RiskLevel.HIGH


class TestBundledRules:
    def test_bundled_rules_flag_destructive_arguments(self):
        classifier = RiskClassifier(DEFAULT_RISK_RULES_PATH)
        assert classifier.classify("notes", "local", {"cmd": "sudo reboot"}).risk_level == RiskLevel.HIGH
        assert classifier.classify("fetch_url", "web", {"url": "https://example.com"}).risk_level == RiskLevel.MEDIUM

    def test_bundled_provider_entries_are_exact(self):
        classifier = RiskClassifier(DEFAULT_RISK_RULES_PATH)
        assert classifier.classify("notes", "webhooks", {}).risk_level == RiskLevel.LOW
        assert classifier.classify("notes", "api", {}).risk_level == RiskLevel.MEDIUM

    def test_custom_checker_wins(self):
        classifier = RiskClassifier(DEFAULT_RISK_RULES_PATH)
        classifier.register_checker(
            "file_write",
            lambda args: ApprovalDecision(needs_approval=False, reason="sandbox", risk_level=RiskLevel.LOW),
        )
        decision = classifier.classify("file_write", "system", {})
        assert decision.risk_level == RiskLevel.LOW
        assert decision.needs_approval
