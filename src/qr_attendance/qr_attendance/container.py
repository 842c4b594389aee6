from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .codes.mysql_code_repository import MySQLCodeRepository
from .codes.repository import CodeRepository
from .codes.service import CodeIssuer
from .common.datetime_utils import Clock, now_local
from .core.constants import DEFAULT_CODE_TTL_MINUTES, DEFAULT_UPLOAD_PREFIX
from .database.connection import DatabaseConnection
from .justifications.mysql_justification_repository import MySQLJustificationRepository
from .justifications.repository import JustificationRepository
from .justifications.service import JustificationService
from .timetable.mysql_timetable_repository import MySQLTimetableRepository
from .timetable.repository import TimetableRepository
from .timetable.service import TimetableService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    timetable_repo: TimetableRepository
    codes_repo: CodeRepository
    attendance_repo: AttendanceRepository
    justifications_repo: JustificationRepository

    timetable_service: TimetableService
    code_issuer: CodeIssuer
    attendance_service: AttendanceService
    justification_service: JustificationService


def wire_services(
    *,
    conn: Optional[DatabaseConnection],
    timetable_repo: TimetableRepository,
    codes_repo: CodeRepository,
    attendance_repo: AttendanceRepository,
    justifications_repo: JustificationRepository,
    code_ttl_minutes: int = DEFAULT_CODE_TTL_MINUTES,
    upload_prefix: str = DEFAULT_UPLOAD_PREFIX,
    clock: Clock = now_local,
) -> Container:
    """Build services on top of any repository implementations (MySQL or in-memory)."""

    return Container(
        conn=conn,
        timetable_repo=timetable_repo,
        codes_repo=codes_repo,
        attendance_repo=attendance_repo,
        justifications_repo=justifications_repo,
        timetable_service=TimetableService(timetable_repo),
        code_issuer=CodeIssuer(
            codes_repo,
            timetable_repo,
            default_ttl=timedelta(minutes=int(code_ttl_minutes)),
            clock=clock,
        ),
        attendance_service=AttendanceService(attendance_repo, codes_repo, timetable_repo, clock=clock),
        justification_service=JustificationService(
            justifications_repo,
            attendance_repo,
            clock=clock,
            upload_prefix=upload_prefix,
        ),
    )


def build_container(
    *,
    conn: DatabaseConnection,
    code_ttl_minutes: int = DEFAULT_CODE_TTL_MINUTES,
    upload_prefix: str = DEFAULT_UPLOAD_PREFIX,
) -> Container:
    return wire_services(
        conn=conn,
        timetable_repo=MySQLTimetableRepository(conn),
        codes_repo=MySQLCodeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        justifications_repo=MySQLJustificationRepository(conn),
        code_ttl_minutes=code_ttl_minutes,
        upload_prefix=upload_prefix,
    )
