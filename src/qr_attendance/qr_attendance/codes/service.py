from __future__ import annotations

import io
import logging
import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

import qrcode

from ..common.datetime_utils import Clock, now_local
from ..common.validators import require_non_empty, require_positive_int
from ..core.constants import (
    CODE_TOKEN_BYTES,
    CODE_TOKEN_PREFIX,
    DEFAULT_CODE_TTL_MINUTES,
    DEFAULT_LIST_LIMIT,
    MAX_CODE_TTL_MINUTES,
)
from ..core.exceptions import DuplicateKeyError, InvalidCodeError, SessionNotFoundError, StorageError, ValidationError
from ..timetable.repository import TimetableRepository
from .model import AttendanceCode
from .repository import CodeRepository

logger = logging.getLogger(__name__)

_TOKEN_ATTEMPTS = 3
MAX_CODE_TTL = timedelta(minutes=MAX_CODE_TTL_MINUTES)


def generate_token() -> str:
    return f"{CODE_TOKEN_PREFIX}{secrets.token_urlsafe(CODE_TOKEN_BYTES)}"


class CodeIssuer:
    """Use case: a teacher issues a time-boxed QR code for one scheduled session."""

    def __init__(
        self,
        codes: CodeRepository,
        timetable: TimetableRepository,
        *,
        default_ttl: timedelta = timedelta(minutes=DEFAULT_CODE_TTL_MINUTES),
        clock: Clock = now_local,
        token_factory: Callable[[], str] = generate_token,
    ):
        if not timedelta(0) < default_ttl <= MAX_CODE_TTL:
            raise ValueError(f"default_ttl must be positive and at most {MAX_CODE_TTL_MINUTES} minutes")
        self._codes = codes
        self._timetable = timetable
        self._default_ttl = default_ttl
        self._clock = clock
        self._token_factory = token_factory

    @property
    def default_ttl(self) -> timedelta:
        return self._default_ttl

    def issue(self, session_id: int, ttl: Optional[timedelta] = None, *, issued_by: Optional[str] = None) -> AttendanceCode:
        session_id = require_positive_int(session_id, "Session ID")
        ttl = self._default_ttl if ttl is None else ttl
        if ttl <= timedelta(0):
            raise ValidationError("Code lifetime must be positive")
        if ttl > MAX_CODE_TTL:
            raise ValidationError(f"Code lifetime is too long (max {MAX_CODE_TTL_MINUTES} minutes)")

        session = self._timetable.get_by_id(session_id)
        if not session:
            raise SessionNotFoundError()

        issued_at = self._clock()
        expires_at = issued_at + ttl

        for attempt in range(1, _TOKEN_ATTEMPTS + 1):
            token = self._token_factory()
            try:
                code_id = self._codes.create(
                    token=token,
                    session_id=session.session_id,
                    issued_by=issued_by,
                    issued_at=issued_at,
                    expires_at=expires_at,
                )
                break
            except DuplicateKeyError:
                logger.warning("Token collision on attempt %s for session %s", attempt, session_id)
        else:
            raise StorageError("Could not allocate a unique attendance code")

        logger.info(
            "Issued code %s for session %s (%s, ttl=%ss)",
            code_id,
            session.session_id,
            session.module_code,
            int(ttl.total_seconds()),
        )
        return AttendanceCode(
            code_id=code_id,
            token=token,
            session_id=session.session_id,
            issued_at=issued_at,
            expires_at=expires_at,
            issued_by=issued_by,
        )

    def revoke(self, token: str) -> None:
        token = require_non_empty(token, "Code")
        if not self._codes.deactivate(token):
            raise InvalidCodeError()
        logger.info("Revoked code %s", token)

    def purge_expired(self, *, before: Optional[datetime] = None) -> int:
        before = before or self._clock()
        removed = self._codes.delete_expired(before=before)
        logger.info("Purged %s attendance codes expired before %s", removed, before.isoformat())
        return removed

    def list_for_teacher(self, teacher_id: str, *, limit: int = DEFAULT_LIST_LIMIT) -> list[dict]:
        teacher_id = require_non_empty(teacher_id, "Teacher ID")
        now = self._clock()
        out: list[dict] = []
        for row in self._codes.list_for_teacher(teacher_id, limit=limit):
            expires_at: datetime = row["expiresAt"]
            issued_at: datetime = row["issuedAt"]
            out.append(
                {
                    **row,
                    "issuedAt": issued_at.isoformat(),
                    "expiresAt": expires_at.isoformat(),
                    "isExpired": now >= expires_at,
                }
            )
        return out

    @staticmethod
    def render_qr_png(token: str, *, box_size: int = 10, border: int = 2) -> bytes:
        """Render the code payload as a PNG image for display in the classroom."""

        token = require_non_empty(token, "Code")
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=box_size,
            border=border,
        )
        qr.add_data(token)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()
