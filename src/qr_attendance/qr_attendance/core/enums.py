from __future__ import annotations

from enum import Enum


class SessionKind(str, Enum):
    """Kind of a scheduled class session."""

    LECTURE = "COUR"
    DIRECTED_WORK = "TD"
    PRACTICAL = "TP"


class AttendanceStatus(str, Enum):
    """Attendance status stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"


class JustificationStatus(str, Enum):
    """Review workflow status of an absence justification."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not JustificationStatus.PENDING
