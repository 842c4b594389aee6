from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..timetable.model import ScheduledSession


@dataclass(frozen=True)
class AttendanceRecord:
    """Ground truth of presence: one row per (student, session, calendar date)."""

    record_id: int
    student_id: str
    session_id: int
    module_id: int
    attendance_date: date
    status: AttendanceStatus
    recorded_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not str(self.student_id or "").strip():
            raise ValidationError("Attendance record needs a student")
        if not isinstance(self.status, AttendanceStatus):
            raise ValidationError(f"Unknown attendance status: {self.status!r}")
        # datetime is a date subclass; the dedup key must be a calendar date.
        if isinstance(self.attendance_date, datetime) or not isinstance(self.attendance_date, date):
            raise ValidationError("Attendance date must be a calendar date")

    @property
    def dedup_key(self) -> tuple[str, int, date]:
        return (self.student_id, self.session_id, self.attendance_date)

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "studentId": self.student_id,
            "sessionId": self.session_id,
            "moduleId": self.module_id,
            "date": self.attendance_date.isoformat(),
            "status": self.status.value,
            "recordedAt": self.recorded_at.isoformat() if self.recorded_at else None,
        }


@dataclass(frozen=True)
class AttendanceOutcome:
    """Result of a code submission.

    ``already_registered`` distinguishes an idempotent replay from a fresh
    registration; both are successful outcomes.
    """

    record: AttendanceRecord
    session: ScheduledSession
    already_registered: bool = False

    @property
    def message(self) -> str:
        if self.already_registered:
            return "You have already registered your attendance for this session"
        return "Attendance recorded successfully"

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "alreadyRegistered": self.already_registered,
            "attendance": self.record.to_dict(),
            "module": self.session.module_info(),
            "session": self.session.session_info(),
        }
