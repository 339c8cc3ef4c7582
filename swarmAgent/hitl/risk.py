"""Risk classification for tool approval requests.

Every tool call goes to a human; the classifier only labels how risky it looks.
Four rule layers are consulted:
1. Custom checkers registered in code (win outright)
2. Global argument patterns (across tools)
3. Per-tool argument patterns
4. Tool-name / provider risk table (built-in defaults, overridable in YAML)

Layers 2-4 are combined by taking the highest level any of them reports.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from swarmAgent.graph.state import RiskLevel

LOGGER = logging.getLogger(__name__)

_ORDER = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}

_BUILTIN_TABLE: Dict[str, Dict[str, Any]] = {
    "high": {
        "tools": ["file_write", "system_command", "delete_file", "exec"],
        "providers": ["system", "admin"],
        "reason": "Tool can modify the local system",
    },
    "medium": {
        "tools": ["web_search", "api_call", "database_query", "fetch"],
        "providers": ["web", "api"],
        "reason": "Tool reaches an external service",
    },
}


@dataclass
class ApprovalDecision:
    """Classification result for one tool call."""

    needs_approval: bool = True
    reason: str = ""
    risk_level: RiskLevel = RiskLevel.LOW


def _as_level(value: str) -> Optional[RiskLevel]:
    try:
        return RiskLevel(str(value).lower())
    except ValueError:
        LOGGER.warning(f"Ignoring unknown risk level in rules: {value}")
        return None


class RiskClassifier:
    """Labels tool calls low / medium / high."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: Risk rules YAML (optional; built-in table otherwise)
        """
        self.config_path = Path(config_path) if config_path else None
        self.rules = self._load_config()
        self.custom_checkers: Dict[str, Callable[[dict], ApprovalDecision]] = {}
        self.global_patterns = self._load_global_patterns()
        self.risk_table = self._load_risk_table()

    def _load_config(self) -> dict:
        if not self.config_path or not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            LOGGER.warning(f"Failed to load risk rules from {self.config_path}: {e}")
            return {}

    def _load_global_patterns(self) -> Dict[RiskLevel, Dict[str, Any]]:
        risk_patterns = self.rules.get("global", {}).get("risk_patterns", {})

        patterns_by_level = {}
        for level, pattern_config in risk_patterns.items():
            risk_level = _as_level(level)
            if risk_level is None or not isinstance(pattern_config, dict):
                continue
            patterns_by_level[risk_level] = {
                "patterns": pattern_config.get("patterns", []),
                "reason": pattern_config.get("reason", f"Matches global {risk_level.value} risk pattern"),
            }
        return patterns_by_level

    def _load_risk_table(self) -> Dict[RiskLevel, Dict[str, Any]]:
        table = self.rules.get("risk_table") or _BUILTIN_TABLE
        loaded = {}
        for level, entry in table.items():
            risk_level = _as_level(level)
            if risk_level is None:
                continue
            loaded[risk_level] = {
                "tools": [t.lower() for t in entry.get("tools", [])],
                "providers": [p.lower() for p in entry.get("providers", [])],
                "reason": entry.get("reason", f"{risk_level.value} risk tool"),
            }
        return loaded

    def register_checker(self, tool_name: str, checker: Callable[[dict], ApprovalDecision]) -> None:
        """Register a custom checker that receives the call arguments."""
        self.custom_checkers[tool_name] = checker

    def classify(self, tool_name: str, provider: str, args: Optional[dict] = None) -> ApprovalDecision:
        args = args or {}
        if tool_name in self.custom_checkers:
            decision = self.custom_checkers[tool_name](args)
            decision.needs_approval = True
            return decision

        candidates: List[ApprovalDecision] = [
            self._check_global_patterns(args),
            self._check_tool_rules(tool_name, args),
            self._check_risk_table(tool_name, provider),
        ]
        best = ApprovalDecision(reason="No elevated risk detected", risk_level=RiskLevel.LOW)
        for decision in candidates:
            if decision is not None and _ORDER[decision.risk_level] > _ORDER[best.risk_level]:
                best = decision
        return best

    def _check_global_patterns(self, args: dict) -> Optional[ApprovalDecision]:
        if not self.global_patterns:
            return None

        args_str = " ".join(str(v) for v in args.values())
        for risk_level in (RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW):
            pattern_config = self.global_patterns.get(risk_level)
            if not pattern_config:
                continue
            for pattern in pattern_config["patterns"]:
                if re.search(pattern, args_str, re.IGNORECASE):
                    return ApprovalDecision(reason=pattern_config["reason"], risk_level=risk_level)
        return None

    def _check_tool_rules(self, tool_name: str, args: dict) -> Optional[ApprovalDecision]:
        tool_config = self.rules.get("tools", {}).get(tool_name)
        if not tool_config or not tool_config.get("enabled", True):
            return None

        args_str = " ".join(str(v) for v in args.values())
        for level, pattern_list in (tool_config.get("patterns") or {}).items():
            risk_level = _as_level(level)
            if risk_level is None:
                continue
            for pattern in pattern_list:
                if re.search(pattern, args_str, re.IGNORECASE):
                    return ApprovalDecision(reason=f"Matches {risk_level.value} risk pattern: {pattern}", risk_level=risk_level)
        return None

    def _check_risk_table(self, tool_name: str, provider: str) -> Optional[ApprovalDecision]:
        name = tool_name.lower()
        provider = (provider or "").lower()
        for risk_level in (RiskLevel.HIGH, RiskLevel.MEDIUM):
            entry = self.risk_table.get(risk_level)
            if not entry:
                continue
            if any(marker in name for marker in entry["tools"]) or provider in entry["providers"]:
                return ApprovalDecision(reason=entry["reason"], risk_level=risk_level)
        return None


__all__ = ["ApprovalDecision", "RiskClassifier"]
