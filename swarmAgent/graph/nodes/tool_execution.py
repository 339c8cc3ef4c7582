"""Tool execution node: dispatches every approved, undispatched request."""

from __future__ import annotations

import asyncio
import logging

from swarmAgent.config.settings import ApprovalSettings, LimitSettings
from swarmAgent.graph.events import ToolExecutionStatusChanged, get_channel
from swarmAgent.graph.state import ApprovalStatus, Phase, SwarmState, approved_requests, replace_requests
from swarmAgent.tools.dispatcher import ToolDispatcher, dispatch_with_deadline
from swarmAgent.utils.error_handler import with_error_boundary
from swarmAgent.utils.logging_utils import log_node_entry, log_tool_result

LOGGER = logging.getLogger(__name__)


def build_tool_execution_node(
    *,
    dispatcher: ToolDispatcher,
    approval: ApprovalSettings,
    limits: LimitSettings,
):
    """Build the tool_execution node."""

    @with_error_boundary("tool_execution")
    async def tool_execution_node(state: SwarmState, config=None) -> dict:
        log_node_entry(LOGGER, "tool_execution", state)
        channel = get_channel(config)
        requests = approved_requests(state)
        semaphore = asyncio.Semaphore(limits.max_parallel_tools)

        async def _dispatch(request):
            async with semaphore:
                channel.emit(
                    ToolExecutionStatusChanged(
                        execution_id=request.execution_id,
                        request_id=request.id,
                        tool_name=request.tool_name,
                        status="running",
                    )
                )
                return await dispatch_with_deadline(
                    dispatcher,
                    request.provider,
                    request.tool_name,
                    request.arguments,
                    approval.tool_timeout_seconds,
                )

        results = await asyncio.gather(*(_dispatch(request) for request in requests))

        settled = []
        for request, result in zip(requests, results):
            log_tool_result(LOGGER, request.tool_name, result.result if result.success else result.error, result.success)
            updated = request.transition(
                ApprovalStatus.EXECUTED if result.success else ApprovalStatus.FAILED,
                result=result.result,
                error=result.error,
            )
            settled.append(updated)
            channel.emit(
                ToolExecutionStatusChanged(
                    execution_id=updated.execution_id,
                    request_id=updated.id,
                    tool_name=updated.tool_name,
                    status=updated.status.value,
                    result=updated.result,
                    error=updated.error,
                )
            )

        return {"approvals": replace_requests(state, *settled), "phase": Phase.TOOL_EXECUTION.value}

    return tool_execution_node


__all__ = ["build_tool_execution_node"]
