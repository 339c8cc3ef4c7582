"""Process-wide accounting of active swarms and agents."""

from __future__ import annotations

import logging
from typing import Dict

from swarmAgent.utils.error_handler import ConfigurationError

LOGGER = logging.getLogger(__name__)


class ResourcePool:
    """Counts agent slots held by each running execution.

    The caps are fixed when the pool is built and shared by every execution;
    per-submission limits never raise them. Slots are taken when an execution
    selects its agents and given back once it reaches a terminal status.
    Reserving twice for the same execution is a no-op, so a re-run selection
    after a restart does not double count.
    """

    def __init__(self, max_active_swarms: int = 3, max_parallel_agents: int = 10) -> None:
        self.max_active_swarms = max_active_swarms
        self.max_parallel_agents = max_parallel_agents
        self._slots: Dict[str, int] = {}

    @classmethod
    def from_settings(cls, limits) -> "ResourcePool":
        return cls(max_active_swarms=limits.max_active_swarms, max_parallel_agents=limits.max_parallel_agents)

    @property
    def active_swarms(self) -> int:
        return len(self._slots)

    @property
    def active_agents(self) -> int:
        return sum(self._slots.values())

    def holds(self, execution_id: str) -> bool:
        return execution_id in self._slots

    def reserve(self, execution_id: str, agent_count: int) -> None:
        """Take ``agent_count`` slots for ``execution_id``.

        Raises:
            ConfigurationError: When the swarm or agent caps would be exceeded
        """
        if execution_id in self._slots:
            return
        if self.active_swarms >= self.max_active_swarms:
            raise ConfigurationError(f"Maximum active swarms ({self.max_active_swarms}) reached")
        if self.active_agents + agent_count > self.max_parallel_agents:
            raise ConfigurationError(f"Maximum parallel agents ({self.max_parallel_agents}) reached")
        self._slots[execution_id] = agent_count
        LOGGER.info(
            f"Reserved {agent_count} agent slot(s) for {execution_id} "
            f"({self.active_agents} agents / {self.active_swarms} swarms active)"
        )

    def restore(self, execution_id: str, agent_count: int) -> None:
        """Re-register slots of an execution recovered from storage, without cap checks."""
        self._slots[execution_id] = agent_count

    def release(self, execution_id: str) -> None:
        if self._slots.pop(execution_id, None) is not None:
            LOGGER.info(f"Released agent slots of {execution_id}")


__all__ = ["ResourcePool"]
