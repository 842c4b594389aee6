from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence

from ..common.datetime_utils import format_time_range
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import AttendanceRecord
from .repository import AttendanceRepository


def row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        student_id=str(r["student_id"]),
        session_id=int(r["session_id"]),
        module_id=int(r["module_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]),
        recorded_at=r.get("recorded_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT record_id, student_id, session_id, module_id, attendance_date, status, recorded_at
                FROM attendance_records
                WHERE record_id=%s
                """,
                (int(record_id),),
            )
            r = fetchone(cur)
            return row_to_record(r) if r else None

    def get_for_student_session_date(
        self,
        *,
        student_id: str,
        session_id: int,
        attendance_date: date,
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT record_id, student_id, session_id, module_id, attendance_date, status, recorded_at
                FROM attendance_records
                WHERE student_id=%s AND session_id=%s AND attendance_date=%s
                """,
                (str(student_id), int(session_id), attendance_date),
            )
            r = fetchone(cur)
            return row_to_record(r) if r else None

    def create(
        self,
        *,
        student_id: str,
        session_id: int,
        module_id: int,
        attendance_date: date,
        status: AttendanceStatus,
        recorded_at: Optional[datetime] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(student_id, session_id, module_id, attendance_date, status, recorded_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (str(student_id), int(session_id), int(module_id), attendance_date, status.value, recorded_at),
            )
            return int(cur.lastrowid)

    def list_for_student(self, student_id: str, *, limit: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT a.record_id, a.student_id, a.session_id, a.module_id, a.attendance_date,
                       a.status, a.recorded_at,
                       m.module_code, m.module_name,
                       t.session_kind, t.room, t.start_time, t.end_time
                FROM attendance_records a
                JOIN modules m ON m.module_id = a.module_id
                LEFT JOIN timetable t ON t.session_id = a.session_id
                WHERE a.student_id=%s
                ORDER BY a.attendance_date DESC, a.record_id DESC
                LIMIT %s
                """,
                (str(student_id), int(limit)),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                start = normalize_mysql_time(r.get("start_time"))
                end = normalize_mysql_time(r.get("end_time"))
                out.append(
                    {
                        "attendance": row_to_record(r).to_dict(),
                        "module": {"id": int(r["module_id"]), "name": r["module_name"], "code": r["module_code"]},
                        "session": {
                            "id": int(r["session_id"]),
                            "type": r.get("session_kind"),
                            "room": r.get("room"),
                            "time": format_time_range(start, end) if start and end else None,
                        },
                    }
                )
            return out

    def list_for_session(
        self,
        session_id: int,
        *,
        attendance_date: Optional[date] = None,
        limit: int,
    ) -> Sequence[dict]:
        clauses = ["a.session_id=%s"]
        params: list[object] = [int(session_id)]
        if attendance_date is not None:
            clauses.append("a.attendance_date=%s")
            params.append(attendance_date)
        params.append(int(limit))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT a.record_id, a.student_id, a.session_id, a.module_id, a.attendance_date,
                       a.status, a.recorded_at,
                       u.full_name AS student_name
                FROM attendance_records a
                JOIN users u ON u.user_id = a.student_id
                WHERE {where}
                ORDER BY a.attendance_date DESC, u.full_name ASC
                LIMIT %s
                """,
                tuple(params),
            )
            return [
                {
                    "attendance": row_to_record(r).to_dict(),
                    "student": {"id": str(r["student_id"]), "name": r["student_name"]},
                }
                for r in fetchall(cur)
            ]
