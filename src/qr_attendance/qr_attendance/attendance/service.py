from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from ..codes.repository import CodeRepository
from ..common.datetime_utils import Clock, now_local
from ..common.validators import require_non_empty, require_positive_int
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_LIST_LIMIT
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    DuplicateKeyError,
    ExpiredCodeError,
    InvalidCodeError,
    MissingReferenceError,
    SessionNotFoundError,
    StorageError,
    UnknownStudentError,
)
from ..timetable.model import ScheduledSession
from ..timetable.repository import TimetableRepository
from .model import AttendanceOutcome, AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use case: validate a scanned code and record presence exactly once per day."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        codes: CodeRepository,
        timetable: TimetableRepository,
        *,
        clock: Clock = now_local,
    ):
        self._attendance = attendance
        self._codes = codes
        self._timetable = timetable
        self._clock = clock

    def submit_attendance(self, code: str, student_id: str) -> AttendanceOutcome:
        code = require_non_empty(code, "QR code")
        student_id = require_non_empty(student_id, "Student ID")

        issued = self._codes.get_by_token(code)
        if not issued or not issued.is_active:
            raise InvalidCodeError()

        # Read the clock after the lookup: validity is judged at submission time.
        now = self._clock()
        if issued.is_expired_at(now):
            raise ExpiredCodeError()

        session = self._timetable.get_by_id(issued.session_id)
        if not session:
            raise SessionNotFoundError()

        # Same date for the dedup lookup and the insert, so midnight cannot split them.
        today = now.date()
        existing = self._attendance.get_for_student_session_date(
            student_id=student_id,
            session_id=session.session_id,
            attendance_date=today,
        )
        if existing:
            return AttendanceOutcome(record=existing, session=session, already_registered=True)

        return self._record_present(student_id=student_id, session=session, today=today, now=now)

    def _record_present(
        self,
        *,
        student_id: str,
        session: ScheduledSession,
        today: date,
        now: datetime,
    ) -> AttendanceOutcome:
        try:
            record_id = self._attendance.create(
                student_id=student_id,
                session_id=session.session_id,
                module_id=session.module_id,
                attendance_date=today,
                status=AttendanceStatus.PRESENT,
                recorded_at=now,
            )
        except DuplicateKeyError:
            # A concurrent submission won the unique key; report its row.
            winner = self._attendance.get_for_student_session_date(
                student_id=student_id,
                session_id=session.session_id,
                attendance_date=today,
            )
            if not winner:
                raise StorageError()
            logger.info("Folded concurrent duplicate for %s in session %s", student_id, session.session_id)
            return AttendanceOutcome(record=winner, session=session, already_registered=True)
        except MissingReferenceError:
            # The only foreign key on attendance_records is the student.
            raise UnknownStudentError()

        logger.info("Recorded presence of %s in session %s on %s", student_id, session.session_id, today)
        record = AttendanceRecord(
            record_id=record_id,
            student_id=student_id,
            session_id=session.session_id,
            module_id=session.module_id,
            attendance_date=today,
            status=AttendanceStatus.PRESENT,
            recorded_at=now,
        )
        return AttendanceOutcome(record=record, session=session, already_registered=False)

    def history(self, student_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> list[dict]:
        student_id = require_non_empty(student_id, "Student ID")
        return list(self._attendance.list_for_student(student_id, limit=limit))

    def list_for_session(
        self,
        session_id: int,
        *,
        attendance_date: Optional[date] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[dict]:
        """Teacher view of one session's records with student names, newest date first."""

        session_id = require_positive_int(session_id, "Session ID")
        session = self._timetable.get_by_id(session_id)
        if not session:
            raise SessionNotFoundError()
        rows = self._attendance.list_for_session(session_id, attendance_date=attendance_date, limit=limit)
        return list(rows)
