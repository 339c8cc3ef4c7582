"""Tool approval node: announces undecided requests, then the graph suspends.

Each request is announced once; requests already announced before a restart
are re-announced by the engine when it recovers, not here.
"""

from __future__ import annotations

import logging

from swarmAgent.graph.events import ApprovalRequested, get_channel
from swarmAgent.graph.state import Phase, SwarmState, pending_requests, replace_requests
from swarmAgent.utils.error_handler import with_error_boundary
from swarmAgent.utils.logging_utils import log_node_entry

LOGGER = logging.getLogger(__name__)


def approval_requested_event(request) -> ApprovalRequested:
    return ApprovalRequested(
        id=request.id,
        execution_id=request.execution_id,
        tool_name=request.tool_name,
        arguments=request.arguments,
        agent_role=request.agent_role,
        provider=request.provider,
        risk=request.risk.value,
        risk_reason=request.risk_reason,
        context=request.context,
    )


def build_approval_node():
    """Build the tool_approval node."""

    @with_error_boundary("tool_approval")
    async def tool_approval_node(state: SwarmState, config=None) -> dict:
        log_node_entry(LOGGER, "tool_approval", state)
        channel = get_channel(config)

        announced = []
        for request in pending_requests(state):
            if request.notified:
                continue
            channel.emit(approval_requested_event(request))
            announced.append(request.model_copy(update={"notified": True}))
            LOGGER.info(f"Approval requested: {request.id} ({request.tool_name}, risk={request.risk.value})")

        updates = {"phase": Phase.TOOL_APPROVAL.value}
        if announced:
            updates["approvals"] = replace_requests(state, *announced)
        return updates

    return tool_approval_node


__all__ = ["approval_requested_event", "build_approval_node"]
