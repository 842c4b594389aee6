from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceCode


class CodeRepository(Protocol):
    def create(
        self,
        *,
        token: str,
        session_id: int,
        issued_by: Optional[str],
        issued_at: datetime,
        expires_at: datetime,
    ) -> int:
        """Persist a new code. Returns code_id."""

        raise NotImplementedError

    def get_by_token(self, token: str) -> Optional[AttendanceCode]:
        raise NotImplementedError

    def deactivate(self, token: str) -> bool:
        raise NotImplementedError

    def delete_expired(self, *, before: datetime) -> int:
        raise NotImplementedError

    def list_for_teacher(self, teacher_id: str, *, limit: int = 200) -> Sequence[dict]:
        """Return UI rows (joined with timetable/module), newest first."""

        raise NotImplementedError
