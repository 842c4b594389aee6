from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import JustificationStatus
from .model import Justification


class JustificationRepository(Protocol):
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
        """Insert a pending justification. Returns justification_id.

        Raises DuplicateKeyError if the absence already has a justification.
        """

        raise NotImplementedError

    def get_by_id(self, justification_id: int) -> Optional[Justification]:
        raise NotImplementedError

    def decide(
        self,
        *,
        justification_id: int,
        status: JustificationStatus,
        reviewed_by: Optional[str],
        reviewed_at: datetime,
    ) -> bool:
        """Move a pending justification to a final status.

        Returns False when the row is missing or no longer pending.
        """

        raise NotImplementedError

    def list_for_student(self, student_id: str, *, limit: int = 200) -> Sequence[dict]:
        """Return UI rows (joined with module/attendance), newest submission first."""

        raise NotImplementedError

    def list_for_reviewer(self, teacher_id: str, *, limit: int = 200) -> Sequence[dict]:
        """Justifications on sessions taught by teacher_id, newest submission first."""

        raise NotImplementedError
