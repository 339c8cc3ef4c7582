"""Tests for applying approval decisions and terminating executions."""

from swarmAgent.graph.events import ApprovalDecided, DecisionSource
from swarmAgent.graph.lifecycle import terminate
from swarmAgent.graph.state import (
    AgentInstance,
    AgentStatus,
    ApprovalStatus,
    Execution,
    ExecutionLimits,
    ExecutionStatus,
    Phase,
    ToolApprovalRequest,
    initial_state,
)
from swarmAgent.hitl.decisions import DENIED_BY_REVIEWER, apply_decision
from swarmAgent.tools.dispatcher import ToolResult


def waiting_state(*statuses):
    """State with one busy agent owning one request per given status."""
    state = initial_state(Execution(task="Summarize today's news"), ExecutionLimits())
    owner = AgentInstance(role="research", name="Research", status=AgentStatus.BUSY)
    idle = AgentInstance(role="analysis", name="Analysis")
    requests = [
        ToolApprovalRequest(
            execution_id=state["execution"].id,
            agent_id=owner.id,
            agent_role=owner.role,
            tool_call_id=f"call-{index}",
            tool_name="fetch_url",
            status=status,
        )
        for index, status in enumerate(statuses or (ApprovalStatus.PENDING,))
    ]
    state["agents"] = {owner.id: owner, idle.id: idle}
    state["approvals"] = {request.id: request for request in requests}
    state["phase"] = Phase.TOOL_APPROVAL.value
    return state, requests


class TestApplyDecision:
    def test_approval_waits_for_dispatch(self):
        state, (request,) = waiting_state()
        outcome = apply_decision(state, ApprovalDecided(id=request.id, approved=True))

        updated = outcome.updates["approvals"][request.id]
        assert updated.status == ApprovalStatus.APPROVED
        assert not updated.processed
        assert updated.decided_at is not None
        assert outcome.record.approved

    def test_denial_is_processed_with_reason(self):
        state, (request,) = waiting_state()
        outcome = apply_decision(state, ApprovalDecided(id=request.id, approved=False))

        updated = outcome.updates["approvals"][request.id]
        assert updated.status == ApprovalStatus.DENIED
        assert updated.processed
        assert updated.error == DENIED_BY_REVIEWER
        assert outcome.record.reason == f"user: {DENIED_BY_REVIEWER}"

    def test_timeout_denial_reason(self):
        state, (request,) = waiting_state()
        decision = ApprovalDecided(id=request.id, approved=False, source=DecisionSource.TIMEOUT)
        outcome = apply_decision(state, decision)
        assert outcome.request.error == "Approval timed out"
        assert outcome.record.reason.startswith("timeout: ")

    def test_reviewer_supplied_result_skips_dispatch(self):
        state, (request,) = waiting_state()
        decision = ApprovalDecided(
            id=request.id, approved=True, execution_result=ToolResult(success=True, result="page body")
        )
        updated = apply_decision(state, decision).request
        assert updated.status == ApprovalStatus.EXECUTED
        assert updated.result == "page body"
        assert updated.processed

    def test_reviewer_supplied_failure(self):
        state, (request,) = waiting_state()
        decision = ApprovalDecided(
            id=request.id, approved=True, execution_result=ToolResult(success=False, error="404")
        )
        updated = apply_decision(state, decision).request
        assert updated.status == ApprovalStatus.FAILED
        assert updated.error == "404"

    def test_replayed_decision_has_no_effect(self):
        state, (request,) = waiting_state()
        decision = ApprovalDecided(id=request.id, approved=True)
        outcome = apply_decision(state, decision)
        state.update(outcome.updates)

        assert apply_decision(state, decision) is None
        assert apply_decision(state, ApprovalDecided(id=request.id, approved=False)) is None
        assert len(state["approval_history"]) == 1

    def test_unknown_request_is_ignored(self):
        state, _ = waiting_state()
        assert apply_decision(state, ApprovalDecided(id="approval-missing", approved=True)) is None

    def test_terminal_execution_ignores_decisions(self):
        state, (request,) = waiting_state()
        state["execution"] = state["execution"].finish(ExecutionStatus.FAILED, error="aborted by user")
        assert apply_decision(state, ApprovalDecided(id=request.id, approved=True)) is None


class TestTerminate:
    def test_cascades_to_open_records(self):
        state, (pending, approved, executed) = waiting_state(
            ApprovalStatus.PENDING, ApprovalStatus.APPROVED, ApprovalStatus.PENDING
        )
        executed = executed.transition(ApprovalStatus.APPROVED).transition(ApprovalStatus.EXECUTED, result="ok")
        state["approvals"][executed.id] = executed

        updates = terminate(state, "aborted by user")

        assert updates["execution"].status == ExecutionStatus.FAILED
        assert updates["execution"].error == "aborted by user"
        assert updates["phase"] == Phase.FAILED.value
        assert updates["approvals"][pending.id].status == ApprovalStatus.DENIED
        assert updates["approvals"][pending.id].processed
        assert updates["approvals"][approved.id].status == ApprovalStatus.FAILED
        assert updates["approvals"][executed.id].status == ApprovalStatus.EXECUTED
        assert all(agent.status == AgentStatus.FAILED for agent in updates["agents"].values())

    def test_terminal_execution_is_left_alone(self):
        state, _ = waiting_state()
        state["execution"] = state["execution"].finish(ExecutionStatus.COMPLETED, result="done")
        assert terminate(state, "late abort") == {}
