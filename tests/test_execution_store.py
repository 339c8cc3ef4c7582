"""Tests for the SQLite execution store."""

from swarmAgent.graph.events import ApprovalDecided
from swarmAgent.graph.state import (
    AgentInstance,
    ApprovalRecord,
    Execution,
    ExecutionLimits,
    ExecutionStatus,
    KnowledgeChunk,
    ToolApprovalRequest,
    initial_state,
)
from swarmAgent.persistence.snapshot import ExecutionSnapshot
from swarmAgent.tools.dispatcher import ToolResult


def snapshot_with_request():
    state = initial_state(
        Execution(task="Summarize today's news"),
        ExecutionLimits(max_swarm_size=2),
        knowledge_context=[KnowledgeChunk(content="Markets rallied", source="wire")],
    )
    agent = AgentInstance(role="research", name="Research")
    request = ToolApprovalRequest(
        execution_id=state["execution"].id,
        agent_id=agent.id,
        agent_role="research",
        tool_call_id="call-1",
        tool_name="fetch_url",
        arguments={"url": "https://example.com"},
    )
    state["agents"] = {agent.id: agent}
    state["approvals"] = {request.id: request}
    return ExecutionSnapshot.from_state(state), request


class TestSnapshots:
    def test_save_and_load(self, store):
        snapshot, request = snapshot_with_request()
        store.save_snapshot(snapshot)

        loaded = store.load_snapshot(snapshot.execution.id)
        assert loaded.model_dump() == snapshot.model_dump()
        state = loaded.to_state()
        assert state["limits"].max_swarm_size == 2
        assert state["knowledge_context"][0].source == "wire"
        assert state["approvals"][request.id].arguments == {"url": "https://example.com"}

    def test_save_updates_status_and_keeps_created_at(self, store):
        snapshot, _ = snapshot_with_request()
        store.save_snapshot(snapshot)
        (_, _, created_at, _), = store.list_executions()

        finished = snapshot.model_copy(
            update={"execution": snapshot.execution.finish(ExecutionStatus.COMPLETED, result="done")}
        )
        store.save_snapshot(finished)

        assert store.list_executions(status="running") == []
        (execution_id, status, created, _), = store.list_executions(status="completed")
        assert (execution_id, status, created) == (snapshot.execution.id, "completed", created_at)
        assert store.load_snapshot(execution_id).execution.result == "done"

    def test_request_index(self, store):
        snapshot, request = snapshot_with_request()
        store.save_snapshot(snapshot)
        assert store.find_execution_for_request(request.id) == snapshot.execution.id
        assert store.find_execution_for_request("approval-missing") is None

    def test_missing_snapshot(self, store):
        assert store.load_snapshot("exec-missing") is None

    def test_delete_keeps_audit(self, store):
        snapshot, request = snapshot_with_request()
        execution_id = snapshot.execution.id
        store.save_snapshot(snapshot)
        store.append_approval_record(
            ApprovalRecord(
                request_id=request.id,
                execution_id=execution_id,
                agent_id=request.agent_id,
                agent_role="research",
                tool_name="fetch_url",
                approved=True,
            )
        )
        store.enqueue_decision(execution_id, ApprovalDecided(id=request.id, approved=True))

        store.delete_execution(execution_id)

        assert store.load_snapshot(execution_id) is None
        assert store.find_execution_for_request(request.id) is None
        assert store.list_unapplied_decisions() == []
        assert len(store.list_approval_records(execution_id)) == 1


class TestApprovalRecords:
    def test_records_are_append_only_and_ordered(self, store):
        records = [
            ApprovalRecord(
                request_id=f"approval-{index}",
                execution_id="exec-1",
                agent_id="agent-1",
                agent_role="research",
                tool_name="fetch_url",
                approved=index % 2 == 0,
            )
            for index in range(3)
        ]
        for record in records:
            store.append_approval_record(record)
        store.append_approval_record(records[0])

        assert [r.request_id for r in store.list_approval_records("exec-1")] == [r.request_id for r in records]
        assert store.list_approval_records("exec-2") == []


class TestDecisionQueue:
    def test_enqueue_and_mark_applied(self, store):
        first = ApprovalDecided(id="approval-1", approved=True, execution_result=ToolResult(success=True, result=1))
        second = ApprovalDecided(id="approval-2", approved=False, reason="not now")
        seq_one = store.enqueue_decision("exec-1", first)
        seq_two = store.enqueue_decision("exec-2", second)

        queued = store.list_unapplied_decisions()
        assert [(seq, execution_id) for seq, execution_id, _ in queued] == [(seq_one, "exec-1"), (seq_two, "exec-2")]
        assert queued[0][2].model_dump() == first.model_dump()
        assert queued[1][2].reason == "not now"
        assert [seq for seq, _, _ in store.list_unapplied_decisions("exec-2")] == [seq_two]

        store.mark_decision_applied(seq_one)
        assert [seq for seq, _, _ in store.list_unapplied_decisions()] == [seq_two]
