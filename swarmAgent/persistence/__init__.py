"""Execution persistence."""

from .execution_store import ExecutionStore
from .snapshot import ExecutionSnapshot

__all__ = ["ExecutionSnapshot", "ExecutionStore"]
