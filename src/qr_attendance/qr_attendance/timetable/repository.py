from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ClassGroup, ScheduledSession


class TimetableRepository(Protocol):
    """Read-only access to the timetable owned by the scheduling side."""

    def get_by_id(self, session_id: int) -> Optional[ScheduledSession]:
        raise NotImplementedError

    def get_group_for_student(self, student_id: str) -> Optional[ClassGroup]:
        raise NotImplementedError

    def list_for_group(self, group_id: int) -> Sequence[ScheduledSession]:
        """Sessions ordered by day_of_week then start_time."""

        raise NotImplementedError

    def list_for_teacher(self, teacher_id: str) -> Sequence[ScheduledSession]:
        raise NotImplementedError
