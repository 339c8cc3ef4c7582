"""SQLite storage for execution snapshots, approval audit and decision events.

Tables:
- executions: latest snapshot per execution (JSON)
- approval_index: request id -> execution id, for routing decisions
- approval_records: append-only audit of applied decisions
- decision_events: durable queue of received decisions, marked once applied
"""

from __future__ import annotations

import os
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from swarmAgent.graph.events import ApprovalDecided
from swarmAgent.graph.state import ApprovalRecord
from swarmAgent.persistence.snapshot import ExecutionSnapshot


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ExecutionStore:
    """SQLite store for execution snapshots and their approval trail."""

    def __init__(self, db_path: str = "data/executions.db"):
        """Initialize the execution store.

        Args:
            db_path: Path to SQLite database file
        """
        db_dir = os.path.dirname(db_path)
        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)

        self.db_path = db_path
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self):
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS executions (
                    execution_id TEXT PRIMARY KEY,
                    status TEXT NOT NULL,
                    snapshot_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS approval_index (
                    request_id TEXT PRIMARY KEY,
                    execution_id TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS approval_records (
                    record_id TEXT PRIMARY KEY,
                    execution_id TEXT NOT NULL,
                    request_id TEXT NOT NULL,
                    record_json TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS decision_events (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    execution_id TEXT NOT NULL,
                    request_id TEXT NOT NULL,
                    payload_json TEXT NOT NULL,
                    applied INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    applied_at TEXT
                )
            """)
            conn.commit()
        finally:
            conn.close()

    # ========== Snapshots ==========

    def save_snapshot(self, snapshot: ExecutionSnapshot) -> None:
        """Insert or replace the snapshot and index its approval requests."""
        execution = snapshot.execution
        now = _now()
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT created_at FROM executions WHERE execution_id = ?", (execution.id,)
            ).fetchone()
            if row:
                conn.execute(
                    """UPDATE executions SET status = ?, snapshot_json = ?, updated_at = ?
                       WHERE execution_id = ?""",
                    (execution.status.value, snapshot.model_dump_json(), now, execution.id),
                )
            else:
                conn.execute(
                    """INSERT INTO executions (execution_id, status, snapshot_json, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?)""",
                    (execution.id, execution.status.value, snapshot.model_dump_json(),
                     execution.created_at.isoformat(), now),
                )
            conn.executemany(
                "INSERT OR IGNORE INTO approval_index (request_id, execution_id) VALUES (?, ?)",
                [(request_id, execution.id) for request_id in snapshot.approvals],
            )
            conn.commit()
        finally:
            conn.close()

    def load_snapshot(self, execution_id: str) -> Optional[ExecutionSnapshot]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT snapshot_json FROM executions WHERE execution_id = ?", (execution_id,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return ExecutionSnapshot.model_validate_json(row[0])

    def list_executions(self, status: Optional[str] = None) -> List[tuple]:
        """List executions.

        Returns:
            List of (execution_id, status, created_at, updated_at) tuples, oldest first
        """
        conn = self._connect()
        try:
            if status:
                cursor = conn.execute(
                    """SELECT execution_id, status, created_at, updated_at FROM executions
                       WHERE status = ? ORDER BY created_at""",
                    (status,),
                )
            else:
                cursor = conn.execute(
                    "SELECT execution_id, status, created_at, updated_at FROM executions ORDER BY created_at"
                )
            return cursor.fetchall()
        finally:
            conn.close()

    def delete_execution(self, execution_id: str) -> None:
        """Delete an execution with its index entries and queued events.

        The approval audit trail is kept.
        """
        conn = self._connect()
        try:
            conn.execute("DELETE FROM executions WHERE execution_id = ?", (execution_id,))
            conn.execute("DELETE FROM approval_index WHERE execution_id = ?", (execution_id,))
            conn.execute("DELETE FROM decision_events WHERE execution_id = ?", (execution_id,))
            conn.commit()
        finally:
            conn.close()

    def find_execution_for_request(self, request_id: str) -> Optional[str]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT execution_id FROM approval_index WHERE request_id = ?", (request_id,)
            ).fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    # ========== Approval audit ==========

    def append_approval_record(self, record: ApprovalRecord) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """INSERT OR IGNORE INTO approval_records (record_id, execution_id, request_id, record_json, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (record.id, record.execution_id, record.request_id, record.model_dump_json(),
                 record.timestamp.isoformat()),
            )
            conn.commit()
        finally:
            conn.close()

    def list_approval_records(self, execution_id: str) -> List[ApprovalRecord]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT record_json FROM approval_records WHERE execution_id = ? ORDER BY created_at, rowid",
                (execution_id,),
            ).fetchall()
        finally:
            conn.close()
        return [ApprovalRecord.model_validate_json(row[0]) for row in rows]

    # ========== Decision events ==========

    def enqueue_decision(self, execution_id: str, decision: ApprovalDecided) -> int:
        """Durably record a received decision before it is applied."""
        conn = self._connect()
        try:
            cursor = conn.execute(
                """INSERT INTO decision_events (execution_id, request_id, payload_json, created_at)
                   VALUES (?, ?, ?, ?)""",
                (execution_id, decision.id, decision.model_dump_json(), _now()),
            )
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    def mark_decision_applied(self, seq: int) -> None:
        conn = self._connect()
        try:
            conn.execute(
                "UPDATE decision_events SET applied = 1, applied_at = ? WHERE seq = ?", (_now(), seq)
            )
            conn.commit()
        finally:
            conn.close()

    def list_unapplied_decisions(self, execution_id: Optional[str] = None) -> List[Tuple[int, str, ApprovalDecided]]:
        """Queued decisions not yet applied, in arrival order.

        Returns:
            List of (seq, execution_id, decision) tuples
        """
        conn = self._connect()
        try:
            if execution_id:
                rows = conn.execute(
                    """SELECT seq, execution_id, payload_json FROM decision_events
                       WHERE applied = 0 AND execution_id = ? ORDER BY seq""",
                    (execution_id,),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT seq, execution_id, payload_json FROM decision_events WHERE applied = 0 ORDER BY seq"
                ).fetchall()
        finally:
            conn.close()
        return [(seq, exec_id, ApprovalDecided.model_validate_json(payload)) for seq, exec_id, payload in rows]


__all__ = ["ExecutionStore"]
