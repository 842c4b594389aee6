from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import JustificationStatus
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Justification:
    """A student's contest of one recorded absence."""

    justification_id: int
    student_id: str
    attendance_id: int
    module_id: int
    reason: str
    status: JustificationStatus
    submitted_at: datetime
    evidence_path: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not str(self.student_id or "").strip():
            raise ValidationError("Justification needs a student")
        if not str(self.reason or "").strip():
            raise ValidationError("Justification needs a reason")
        if not isinstance(self.status, JustificationStatus):
            raise ValidationError(f"Unknown justification status: {self.status!r}")
        if self.status is JustificationStatus.PENDING and self.reviewed_at is not None:
            raise ValidationError("A pending justification cannot carry a review time")

    def to_dict(self) -> dict:
        return {
            "id": self.justification_id,
            "studentId": self.student_id,
            "attendanceId": self.attendance_id,
            "moduleId": self.module_id,
            "reason": self.reason,
            "evidencePath": self.evidence_path,
            "status": self.status.value,
            "submittedAt": self.submitted_at.isoformat(),
            "reviewedBy": self.reviewed_by,
            "reviewedAt": self.reviewed_at.isoformat() if self.reviewed_at else None,
        }
