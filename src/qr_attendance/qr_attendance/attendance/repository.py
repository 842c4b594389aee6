from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_student_session_date(
        self,
        *,
        student_id: str,
        session_id: int,
        attendance_date: date,
    ) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Insert a record. Returns record_id.

        Raises DuplicateKeyError when (student_id, session_id, attendance_date)
        already exists; the unique key is the only concurrency guard.
        Raises MissingReferenceError when the student does not exist.
        """

        raise NotImplementedError

    def list_for_student(self, student_id: str, *, limit: int) -> Sequence[dict]:
        """Return UI rows joined with module/session, newest date first."""

        raise NotImplementedError

    def list_for_session(
        self,
        session_id: int,
        *,
        attendance_date: Optional[date] = None,
        limit: int,
    ) -> Sequence[dict]:
        """Return {attendance, student} rows for one session, newest date first."""

        raise NotImplementedError
