from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceCode
from .repository import CodeRepository


class MySQLCodeRepository(CodeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        token: str,
        session_id: int,
        issued_by: Optional[str],
        issued_at: datetime,
        expires_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_codes(token, session_id, issued_by, issued_at, expires_at, is_active)
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                (token, int(session_id), issued_by, issued_at, expires_at),
            )
            return int(cur.lastrowid)

    def get_by_token(self, token: str) -> Optional[AttendanceCode]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT code_id, token, session_id, issued_by, issued_at, expires_at, is_active
                FROM attendance_codes
                WHERE token=%s
                """,
                (token,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return AttendanceCode(
                code_id=int(r["code_id"]),
                token=r["token"],
                session_id=int(r["session_id"]),
                issued_by=r.get("issued_by"),
                issued_at=r["issued_at"],
                expires_at=r["expires_at"],
                is_active=bool(r["is_active"]),
            )

    def deactivate(self, token: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE attendance_codes SET is_active=0 WHERE token=%s", (token,))
            return cur.rowcount > 0

    def delete_expired(self, *, before: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_codes WHERE expires_at < %s", (before,))
            return int(cur.rowcount)

    def list_for_teacher(self, teacher_id: str, *, limit: int = 200) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.code_id, c.token, c.session_id, c.issued_by, c.issued_at, c.expires_at, c.is_active,
                       m.module_code, m.module_name, t.session_kind, t.room
                FROM attendance_codes c
                JOIN timetable t ON t.session_id = c.session_id
                JOIN modules m ON m.module_id = t.module_id
                WHERE t.teacher_id=%s
                ORDER BY c.issued_at DESC
                LIMIT %s
                """,
                (str(teacher_id), int(limit)),
            )
            out: list[dict] = []
            for r in fetchall(cur):
                out.append(
                    {
                        "id": int(r["code_id"]),
                        "token": r["token"],
                        "sessionId": int(r["session_id"]),
                        "issuedBy": r.get("issued_by"),
                        "issuedAt": r["issued_at"],
                        "expiresAt": r["expires_at"],
                        "isActive": bool(r["is_active"]),
                        "module": {"name": r["module_name"], "code": r["module_code"]},
                        "sessionType": r["session_kind"],
                        "room": r["room"],
                    }
                )
            return out
