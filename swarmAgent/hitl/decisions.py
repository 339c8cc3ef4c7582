"""Applying approval decisions to execution state.

``apply_decision`` is a pure function over ``SwarmState``. Calling it twice
with the same decision is safe: the second call sees the request already
decided (or processed) and returns ``None``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from swarmAgent.graph.events import ApprovalDecided, DecisionSource
from swarmAgent.graph.state import (
    ApprovalRecord,
    ApprovalStatus,
    SwarmState,
    ToolApprovalRequest,
    replace_requests,
)

LOGGER = logging.getLogger(__name__)

DENIED_BY_REVIEWER = "Tool call denied by reviewer"


@dataclass
class DecisionOutcome:
    """State updates and audit record produced by one applied decision."""

    updates: dict
    record: ApprovalRecord
    request: ToolApprovalRequest


def _denial_message(decision: ApprovalDecided) -> str:
    if decision.reason:
        return decision.reason
    if decision.source == DecisionSource.TIMEOUT:
        return "Approval timed out"
    return DENIED_BY_REVIEWER


def apply_decision(state: SwarmState, decision: ApprovalDecided) -> Optional[DecisionOutcome]:
    """Apply one decision; returns None when it has no effect.

    - approved without a result: the request becomes approved and waits for dispatch
    - approved with ``execution_result``: the request is executed (or failed) directly
    - denied: the request is denied and processed
    """
    execution = state["execution"]
    request = (state.get("approvals") or {}).get(decision.id)

    if request is None:
        LOGGER.warning(f"Decision for unknown approval request {decision.id} ignored")
        return None
    if execution.is_terminal:
        LOGGER.info(f"Decision for {decision.id} ignored: execution {execution.id} is {execution.status.value}")
        return None
    if request.processed or request.status != ApprovalStatus.PENDING:
        LOGGER.info(f"Decision for {decision.id} ignored: request already {request.status.value}")
        return None

    if decision.approved:
        updated = request.transition(ApprovalStatus.APPROVED)
        if decision.execution_result is not None:
            result = decision.execution_result
            updated = updated.transition(
                ApprovalStatus.EXECUTED if result.success else ApprovalStatus.FAILED,
                result=result.result,
                error=result.error,
            )
        reason = decision.reason or "Approved by reviewer"
    else:
        reason = _denial_message(decision)
        updated = request.transition(ApprovalStatus.DENIED, error=reason)

    record = ApprovalRecord(
        request_id=request.id,
        execution_id=execution.id,
        agent_id=request.agent_id,
        agent_role=request.agent_role,
        tool_name=request.tool_name,
        approved=decision.approved,
        reason=f"{decision.source.value}: {reason}",
    )
    updates = {
        "approvals": replace_requests(state, updated),
        "approval_history": [*(state.get("approval_history") or []), record],
    }
    return DecisionOutcome(updates=updates, record=record, request=updated)


__all__ = ["DENIED_BY_REVIEWER", "DecisionOutcome", "apply_decision"]
