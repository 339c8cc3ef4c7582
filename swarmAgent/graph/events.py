"""Events exchanged with whoever is watching an execution.

Outbound events are fire-and-forget: a failing observer is logged and never
interrupts the engine. ``ApprovalDecided`` is the only inbound event.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from swarmAgent.tools.dispatcher import ToolResult

from .state import utcnow

LOGGER = logging.getLogger(__name__)


class DecisionSource(str, Enum):
    USER = "user"
    TIMEOUT = "timeout"


class ApprovalRequested(BaseModel):
    type: Literal["approval_requested"] = "approval_requested"
    id: str
    execution_id: str
    tool_name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    agent_role: str
    provider: str
    risk: str
    risk_reason: str = ""
    context: str = ""


class ApprovalDecided(BaseModel):
    """A reviewer's answer to an ApprovalRequested.

    ``execution_result`` lets the reviewer run the tool themselves and hand the
    outcome back, in which case the engine does not dispatch it again.
    """

    id: str
    approved: bool
    execution_result: Optional[ToolResult] = None
    source: DecisionSource = DecisionSource.USER
    reason: str = ""


class AgentStatusChanged(BaseModel):
    type: Literal["agent_status"] = "agent_status"
    execution_id: str
    agent_id: str
    role: str
    status: str
    current_task: Optional[str] = None
    result: Optional[str] = None
    error: Optional[str] = None


class ToolExecutionStatusChanged(BaseModel):
    type: Literal["tool_status"] = "tool_status"
    execution_id: str
    request_id: str
    tool_name: str
    status: str
    result: Any = None
    error: Optional[str] = None


class ExecutionStatusChanged(BaseModel):
    type: Literal["execution_status"] = "execution_status"
    execution_id: str
    status: str
    phase: str
    result: Optional[str] = None
    error: Optional[str] = None


SwarmEvent = Union[ApprovalRequested, AgentStatusChanged, ToolExecutionStatusChanged, ExecutionStatusChanged]
Observer = Callable[[SwarmEvent], Any]


class EventChannel:
    """Per-execution fan-out of outbound events to registered observers."""

    def __init__(self, *observers: Observer) -> None:
        self._observers: List[Observer] = list(observers)

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    def emit(self, event: SwarmEvent) -> None:
        LOGGER.debug(f"Event {event.type} at {utcnow().isoformat()}: {event.model_dump(mode='json')}")
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception as exc:
                LOGGER.exception(f"Observer failed handling {event.type}", exc_info=exc)


class RecordingChannel(EventChannel):
    """Channel that keeps every emitted event, handy for CLIs and tests."""

    def __init__(self, *observers: Observer) -> None:
        super().__init__(*observers)
        self.events: List[SwarmEvent] = []

    def emit(self, event: SwarmEvent) -> None:
        self.events.append(event)
        super().emit(event)

    def of_type(self, event_type: type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]


_NULL_CHANNEL = EventChannel()


def get_channel(config: Optional[dict]) -> EventChannel:
    """Return the channel bound to a graph invocation, or a silent one."""
    configurable = (config or {}).get("configurable") or {}
    channel = configurable.get("channel")
    return channel if channel is not None else _NULL_CHANNEL


__all__ = [
    "AgentStatusChanged",
    "ApprovalDecided",
    "ApprovalRequested",
    "DecisionSource",
    "EventChannel",
    "ExecutionStatusChanged",
    "RecordingChannel",
    "SwarmEvent",
    "ToolExecutionStatusChanged",
    "get_channel",
]
