from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Optional, Union

from werkzeug.utils import secure_filename

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import Clock, now_local
from ..common.validators import require_non_empty, require_positive_int
from ..core.constants import DEFAULT_LIST_LIMIT, DEFAULT_UPLOAD_PREFIX
from ..core.enums import AttendanceStatus, JustificationStatus
from ..core.exceptions import (
    AlreadyResolvedError,
    DuplicateJustificationError,
    DuplicateKeyError,
    JustificationNotFoundError,
    NoMatchingAbsenceError,
    ValidationError,
)
from .model import Justification
from .repository import JustificationRepository

logger = logging.getLogger(__name__)

REVIEW_DECISIONS = frozenset({JustificationStatus.APPROVED, JustificationStatus.REJECTED})


class JustificationService:
    """Absence justification lifecycle: pending -> approved | rejected (terminal)."""

    def __init__(
        self,
        justifications: JustificationRepository,
        attendance: AttendanceRepository,
        *,
        clock: Clock = now_local,
        upload_prefix: str = DEFAULT_UPLOAD_PREFIX,
    ):
        self._justifications = justifications
        self._attendance = attendance
        self._clock = clock
        self._upload_prefix = upload_prefix.rstrip("/")

    @staticmethod
    def _ensure_absence_of(
        record: Optional[AttendanceRecord],
        student_id: str,
        absence_date: Optional[date] = None,
    ) -> AttendanceRecord:
        if not record or record.student_id != student_id or record.status != AttendanceStatus.ABSENT:
            raise NoMatchingAbsenceError()
        if absence_date is not None and record.attendance_date != absence_date:
            raise NoMatchingAbsenceError()
        return record

    def evidence_path_for(self, filename: str) -> Optional[str]:
        """Storage path reserved for an uploaded evidence file (the upload itself is stubbed)."""

        safe = secure_filename(filename or "")
        if not safe:
            return None
        stamp = int(self._clock().timestamp() * 1000)
        return f"{self._upload_prefix}/{stamp}_{safe}"

    def file(
        self,
        student_id: str,
        absence_record_id: int,
        reason: str,
        evidence_path: Optional[str] = None,
        *,
        absence_date: Optional[date] = None,
    ) -> Justification:
        """File against one absence record; ``absence_date``, when given, must be its date."""

        student_id = require_non_empty(student_id, "Student ID")
        absence_record_id = require_positive_int(absence_record_id, "Absence record ID")
        reason = require_non_empty(reason, "Reason")

        record = self._ensure_absence_of(self._attendance.get_by_id(absence_record_id), student_id, absence_date)
        return self._create(record, reason=reason, evidence_path=evidence_path)

    def file_for_date(
        self,
        student_id: str,
        session_id: int,
        absence_date: date,
        reason: str,
        evidence_path: Optional[str] = None,
    ) -> Justification:
        """Same as file(), locating the absence by session and calendar date."""

        student_id = require_non_empty(student_id, "Student ID")
        session_id = require_positive_int(session_id, "Session ID")
        reason = require_non_empty(reason, "Reason")

        record = self._attendance.get_for_student_session_date(
            student_id=student_id,
            session_id=session_id,
            attendance_date=absence_date,
        )
        record = self._ensure_absence_of(record, student_id, absence_date)
        return self._create(record, reason=reason, evidence_path=evidence_path)

    def _create(self, record: AttendanceRecord, *, reason: str, evidence_path: Optional[str]) -> Justification:
        submitted_at = self._clock()
        try:
            justification_id = self._justifications.create(
                student_id=record.student_id,
                attendance_id=record.record_id,
                module_id=record.module_id,
                reason=reason,
                evidence_path=evidence_path,
                submitted_at=submitted_at,
            )
        except DuplicateKeyError:
            raise DuplicateJustificationError()

        logger.info("Justification %s filed by %s for absence %s", justification_id, record.student_id, record.record_id)
        return Justification(
            justification_id=justification_id,
            student_id=record.student_id,
            attendance_id=record.record_id,
            module_id=record.module_id,
            reason=reason,
            status=JustificationStatus.PENDING,
            submitted_at=submitted_at,
            evidence_path=evidence_path,
        )

    def review(
        self,
        justification_id: int,
        decision: Union[JustificationStatus, str],
        *,
        reviewer_id: Optional[str] = None,
    ) -> Justification:
        justification_id = require_positive_int(justification_id, "Justification ID")
        raw = decision.value if isinstance(decision, JustificationStatus) else str(decision or "")
        try:
            status = JustificationStatus(raw.strip().lower())
        except ValueError:
            raise ValidationError("Decision must be 'approved' or 'rejected'")
        if status not in REVIEW_DECISIONS:
            raise ValidationError("Decision must be 'approved' or 'rejected'")

        current = self._justifications.get_by_id(justification_id)
        if not current:
            raise JustificationNotFoundError()
        if current.status.is_terminal:
            raise AlreadyResolvedError()

        reviewed_at = self._clock()
        decided = self._justifications.decide(
            justification_id=justification_id,
            status=status,
            reviewed_by=reviewer_id,
            reviewed_at=reviewed_at,
        )
        if not decided:
            # Another reviewer resolved it between our read and write.
            raise AlreadyResolvedError()

        logger.info("Justification %s %s by %s", justification_id, status.value, reviewer_id or "-")
        return replace(current, status=status, reviewed_by=reviewer_id, reviewed_at=reviewed_at)

    def list_for_student(self, student_id: str, *, limit: int = DEFAULT_LIST_LIMIT) -> list[dict]:
        student_id = require_non_empty(student_id, "Student ID")
        return list(self._justifications.list_for_student(student_id, limit=limit))

    def list_for_reviewer(self, teacher_id: str, *, limit: int = DEFAULT_LIST_LIMIT) -> list[dict]:
        teacher_id = require_non_empty(teacher_id, "Teacher ID")
        return list(self._justifications.list_for_reviewer(teacher_id, limit=limit))
