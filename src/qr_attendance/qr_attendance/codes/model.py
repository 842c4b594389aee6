from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class AttendanceCode:
    """One issuance of a QR attendance code, bound to a single scheduled session."""

    code_id: int
    token: str
    session_id: int
    issued_at: datetime
    expires_at: datetime
    issued_by: Optional[str] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        if not self.token:
            raise ValidationError("Attendance code token is empty")
        if self.expires_at <= self.issued_at:
            raise ValidationError("Attendance code must expire after it was issued")

    def is_expired_at(self, now: datetime) -> bool:
        # The expiry instant itself is already outside the window.
        return now >= self.expires_at

    def is_valid_at(self, now: datetime) -> bool:
        return self.is_active and not self.is_expired_at(now)

    def to_dict(self) -> dict:
        return {
            "id": self.code_id,
            "token": self.token,
            "sessionId": self.session_id,
            "issuedBy": self.issued_by,
            "issuedAt": self.issued_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
            "isActive": self.is_active,
        }
