from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import SessionKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import ClassGroup, ScheduledSession
from .repository import TimetableRepository

_SESSION_COLUMNS = """
    t.session_id, t.module_id, m.module_code, m.module_name, t.teacher_id,
    t.group_id, t.room, t.day_of_week, t.start_time, t.end_time, t.session_kind
"""


def row_to_session(r: Dict[str, Any]) -> ScheduledSession:
    return ScheduledSession(
        session_id=int(r["session_id"]),
        module_id=int(r["module_id"]),
        module_code=r["module_code"],
        module_name=r["module_name"],
        teacher_id=str(r["teacher_id"]),
        room=r["room"],
        day_of_week=int(r["day_of_week"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        kind=SessionKind(r["session_kind"]),
        group_id=int(r["group_id"]) if r.get("group_id") is not None else None,
    )


class MySQLTimetableRepository(TimetableRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[ScheduledSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM timetable t
                JOIN modules m ON m.module_id = t.module_id
                WHERE t.session_id=%s
                """,
                (int(session_id),),
            )
            r = fetchone(cur)
            return row_to_session(r) if r else None

    def get_group_for_student(self, student_id: str) -> Optional[ClassGroup]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT g.group_id, g.group_name, g.specialization
                FROM student_groups sg
                JOIN class_groups g ON g.group_id = sg.group_id
                WHERE sg.student_id=%s
                """,
                (str(student_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ClassGroup(
                group_id=int(r["group_id"]),
                group_name=r["group_name"],
                specialization=r.get("specialization"),
            )

    def list_for_group(self, group_id: int) -> Sequence[ScheduledSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM timetable t
                JOIN modules m ON m.module_id = t.module_id
                WHERE t.group_id=%s
                ORDER BY t.day_of_week ASC, t.start_time ASC
                """,
                (int(group_id),),
            )
            return [row_to_session(r) for r in fetchall(cur)]

    def list_for_teacher(self, teacher_id: str) -> Sequence[ScheduledSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM timetable t
                JOIN modules m ON m.module_id = t.module_id
                WHERE t.teacher_id=%s
                ORDER BY t.day_of_week ASC, t.start_time ASC
                """,
                (str(teacher_id),),
            )
            return [row_to_session(r) for r in fetchall(cur)]
