from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..common.datetime_utils import format_time_range
from ..core.enums import SessionKind
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class ScheduledSession:
    """One timetable entry (module + teacher + room + weekly time slot)."""

    session_id: int
    module_id: int
    module_code: str
    module_name: str
    teacher_id: str
    room: str
    day_of_week: int
    start_time: time
    end_time: time
    kind: SessionKind
    group_id: Optional[int] = None

    def __post_init__(self) -> None:
        if not 1 <= int(self.day_of_week) <= 7:
            raise ValidationError(f"day_of_week must be within 1..7, got {self.day_of_week}")
        if self.end_time <= self.start_time:
            raise ValidationError("Session end time must be after its start time")

    @property
    def time_range(self) -> str:
        return format_time_range(self.start_time, self.end_time)

    def module_info(self) -> dict:
        return {"id": self.module_id, "name": self.module_name, "code": self.module_code}

    def session_info(self) -> dict:
        return {
            "id": self.session_id,
            "type": self.kind.value,
            "room": self.room,
            "time": self.time_range,
            "dayOfWeek": self.day_of_week,
            "teacherId": self.teacher_id,
        }


@dataclass(frozen=True)
class ClassGroup:
    group_id: int
    group_name: str
    specialization: Optional[str] = None
