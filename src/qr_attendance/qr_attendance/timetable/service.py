from __future__ import annotations

from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError
from .repository import TimetableRepository

WEEK_DAYS = range(1, 8)


class TimetableService:
    def __init__(self, timetable: TimetableRepository):
        self._timetable = timetable

    def weekly_for_student(self, student_id: str) -> dict:
        """Group info plus the group's sessions bucketed by day (1=Monday .. 7=Sunday)."""

        student_id = require_non_empty(student_id, "Student ID")
        group = self._timetable.get_group_for_student(student_id)
        if not group:
            raise NotFoundError("Student group not found")

        week: dict[int, list[dict]] = {day: [] for day in WEEK_DAYS}
        sessions = sorted(self._timetable.list_for_group(group.group_id), key=lambda s: (s.day_of_week, s.start_time))
        for s in sessions:
            week[s.day_of_week].append({"module": s.module_info(), "session": s.session_info()})

        return {
            "group": {"id": group.group_id, "name": group.group_name, "specialization": group.specialization},
            "timetable": week,
        }

    def sessions_for_teacher(self, teacher_id: str) -> list[dict]:
        teacher_id = require_non_empty(teacher_id, "Teacher ID")
        return [
            {"module": s.module_info(), "session": s.session_info()}
            for s in self._timetable.list_for_teacher(teacher_id)
        ]
