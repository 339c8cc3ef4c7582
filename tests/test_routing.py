"""Tests for graph routing precedence."""

from swarmAgent.graph.routing import route_after_approval, route_entry, route_workflow
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


def make_state(*agents, requests=(), phase=Phase.EXECUTION.value):
    state = initial_state(Execution(task="Summarize today's news"), ExecutionLimits())
    state["phase"] = phase
    state["agents"] = {agent.id: agent for agent in agents}
    state["approvals"] = {request.id: request for request in requests}
    return state


def agent(role="research", status=AgentStatus.IDLE):
    return AgentInstance(role=role, name=role.title(), status=status)


def request_for(owner, status=ApprovalStatus.PENDING, processed=False):
    return ToolApprovalRequest(
        execution_id="exec-1",
        agent_id=owner.id,
        agent_role=owner.role,
        tool_call_id="call-1",
        tool_name="fetch_url",
        status=status,
        processed=processed,
    )


class TestRouteEntry:
    def test_fresh_execution_decomposes(self):
        state = make_state(phase=Phase.INITIALIZATION.value)
        assert route_entry(state) == "task_decomposer"

    def test_terminal_execution_ends(self):
        state = make_state(phase=Phase.INITIALIZATION.value)
        state["execution"] = state["execution"].finish(ExecutionStatus.FAILED, error="aborted")
        assert route_entry(state) == "end"

    def test_resumed_execution_uses_workflow_router(self):
        busy = agent(status=AgentStatus.BUSY)
        state = make_state(busy, requests=[request_for(busy)], phase=Phase.TOOL_APPROVAL.value)
        assert route_entry(state) == "tool_approval"


class TestRouteWorkflow:
    def test_pending_requests_win_over_everything(self):
        busy = agent(status=AgentStatus.BUSY)
        approved_owner = agent(role="analysis", status=AgentStatus.BUSY)
        state = make_state(
            busy,
            approved_owner,
            agent(role="rag"),
            requests=[request_for(busy), request_for(approved_owner, ApprovalStatus.APPROVED)],
        )
        assert route_workflow(state) == "tool_approval"

    def test_approved_requests_dispatch_next(self):
        busy = agent(status=AgentStatus.BUSY)
        state = make_state(busy, agent(role="rag"), requests=[request_for(busy, ApprovalStatus.APPROVED)])
        assert route_workflow(state) == "tool_execution"

    def test_settled_requests_lead_to_completion(self):
        busy = agent(status=AgentStatus.BUSY)
        state = make_state(
            busy, agent(role="rag"), requests=[request_for(busy, ApprovalStatus.DENIED, processed=True)]
        )
        assert route_workflow(state) == "agent_completion"

    def test_idle_agents_run(self):
        done = agent(status=AgentStatus.COMPLETED)
        state = make_state(done, agent(role="rag"))
        assert route_workflow(state) == "agent_executor"

    def test_all_terminal_agents_synthesize(self):
        state = make_state(agent(status=AgentStatus.COMPLETED), agent(role="rag", status=AgentStatus.FAILED))
        assert route_workflow(state) == "result_synthesizer"

    def test_busy_agent_without_requests_reruns(self):
        state = make_state(agent(status=AgentStatus.BUSY))
        assert route_workflow(state) == "agent_executor"

    def test_terminal_execution_ends(self):
        busy = agent(status=AgentStatus.BUSY)
        state = make_state(busy, requests=[request_for(busy)])
        state["execution"] = state["execution"].finish(ExecutionStatus.FAILED, error="aborted")
        assert route_workflow(state) == "end"


class TestRouteAfterApproval:
    def test_suspends_while_pending(self):
        busy = agent(status=AgentStatus.BUSY)
        state = make_state(busy, requests=[request_for(busy)])
        assert route_after_approval(state) == "suspend"

    def test_continues_once_decided(self):
        busy = agent(status=AgentStatus.BUSY)
        state = make_state(busy, requests=[request_for(busy, ApprovalStatus.APPROVED)])
        assert route_after_approval(state) == "tool_execution"
