from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from ..core.enums import LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Approval
from .repository import ApprovalRepository


class MySQLApprovalRepository(ApprovalRepository):
    """Approval history; rows are inserted once and never updated."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, approval: Approval) -> Approval:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO approvals(subject_type, subject_id, status, actor_id, comment, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    approval.subject_type,
                    int(approval.subject_id),
                    approval.status.value,
                    approval.actor_id,
                    approval.comment,
                    approval.created_at,
                ),
            )
            return replace(approval, approval_id=int(cur.lastrowid))

    def list_for_subject(self, subject_type: str, subject_id: int) -> Sequence[Approval]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT approval_id, subject_type, subject_id, status, actor_id, comment, created_at
                FROM approvals
                WHERE subject_type=%s AND subject_id=%s
                ORDER BY created_at, approval_id
                """,
                (subject_type, int(subject_id)),
            )
            return [
                Approval(
                    approval_id=int(r["approval_id"]),
                    subject_type=r["subject_type"],
                    subject_id=int(r["subject_id"]),
                    status=LeaveStatus(r["status"]),
                    actor_id=r.get("actor_id"),
                    comment=r.get("comment"),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
