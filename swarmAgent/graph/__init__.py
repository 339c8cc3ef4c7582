"""Swarm graph: state, routing, nodes and builder.

Import the builder from ``swarmAgent.graph.builder``; this package only
re-exports the state types so low-level modules can depend on it freely.
"""

from .state import SwarmState

__all__ = ["SwarmState"]
