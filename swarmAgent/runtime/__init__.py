"""Runtime assembly and the swarm engine."""

from .app import build_swarm_engine
from .engine import ExecutionStatusReport, SwarmEngine

__all__ = ["ExecutionStatusReport", "SwarmEngine", "build_swarm_engine"]
