from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import JustificationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Justification
from .repository import JustificationRepository

_JOINED_COLUMNS = """
    j.justification_id, j.student_id, j.attendance_id, j.module_id, j.reason, j.evidence_path,
    j.status, j.submitted_at, j.reviewed_by, j.reviewed_at,
    m.module_code, m.module_name,
    a.attendance_date, a.status AS attendance_status, a.session_id,
    u.full_name AS student_name
"""


def row_to_justification(r: Dict[str, Any]) -> Justification:
    return Justification(
        justification_id=int(r["justification_id"]),
        student_id=str(r["student_id"]),
        attendance_id=int(r["attendance_id"]),
        module_id=int(r["module_id"]),
        reason=r["reason"],
        status=JustificationStatus(r["status"]),
        submitted_at=r["submitted_at"],
        evidence_path=r.get("evidence_path"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
    )


def _row_to_ui(r: Dict[str, Any]) -> dict:
    return {
        **row_to_justification(r).to_dict(),
        "studentName": r.get("student_name"),
        "module": {"name": r["module_name"], "code": r["module_code"]},
        "attendance": {
            "date": r["attendance_date"].strftime("%Y-%m-%d"),
            "status": r["attendance_status"],
            "sessionId": int(r["session_id"]),
        },
    }


class MySQLJustificationRepository(JustificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        student_id: str,
        attendance_id: int,
        module_id: int,
        reason: str,
        evidence_path: Optional[str],
        submitted_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO justifications(student_id, attendance_id, module_id, reason, evidence_path, status, submitted_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    str(student_id),
                    int(attendance_id),
                    int(module_id),
                    reason,
                    evidence_path,
                    JustificationStatus.PENDING.value,
                    submitted_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, justification_id: int) -> Optional[Justification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT justification_id, student_id, attendance_id, module_id, reason, evidence_path,
                       status, submitted_at, reviewed_by, reviewed_at
                FROM justifications
                WHERE justification_id=%s
                """,
                (int(justification_id),),
            )
            r = fetchone(cur)
            return row_to_justification(r) if r else None

    def decide(
        self,
        *,
        justification_id: int,
        status: JustificationStatus,
        reviewed_by: Optional[str],
        reviewed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE justifications
                SET status=%s, reviewed_by=%s, reviewed_at=%s
                WHERE justification_id=%s AND status=%s
                """,
                (status.value, reviewed_by, reviewed_at, int(justification_id), JustificationStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list_for_student(self, student_id: str, *, limit: int = 200) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_JOINED_COLUMNS}
                FROM justifications j
                JOIN attendance_records a ON a.record_id = j.attendance_id
                JOIN modules m ON m.module_id = j.module_id
                LEFT JOIN users u ON u.user_id = j.student_id
                WHERE j.student_id=%s
                ORDER BY j.submitted_at DESC
                LIMIT %s
                """,
                (str(student_id), int(limit)),
            )
            return [_row_to_ui(r) for r in fetchall(cur)]

    def list_for_reviewer(self, teacher_id: str, *, limit: int = 200) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_JOINED_COLUMNS}
                FROM justifications j
                JOIN attendance_records a ON a.record_id = j.attendance_id
                JOIN timetable t ON t.session_id = a.session_id
                JOIN modules m ON m.module_id = j.module_id
                LEFT JOIN users u ON u.user_id = j.student_id
                WHERE t.teacher_id=%s
                ORDER BY j.submitted_at DESC
                LIMIT %s
                """,
                (str(teacher_id), int(limit)),
            )
            return [_row_to_ui(r) for r in fetchall(cur)]
