from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from src.qr_attendance.qr_attendance.attendance.model import AttendanceOutcome, AttendanceRecord
from src.qr_attendance.qr_attendance.codes.model import AttendanceCode
from src.qr_attendance.qr_attendance.core.enums import AttendanceStatus, JustificationStatus, SessionKind
from src.qr_attendance.qr_attendance.core.exceptions import (
    ConflictError,
    DomainError,
    ExpiredCodeError,
    InvalidCodeError,
    MissingReferenceError,
    NotFoundError,
    StorageError,
    UnknownStudentError,
    ValidationError,
)
from src.qr_attendance.qr_attendance.justifications.model import Justification
from src.qr_attendance.qr_attendance.timetable.model import ScheduledSession

ISSUED = datetime(2025, 3, 10, 9, 0, 0)


def _session(**overrides) -> ScheduledSession:
    fields = dict(
        session_id=1,
        module_id=1,
        module_code="INF101",
        module_name="Algorithms",
        teacher_id="T12345",
        room="A1",
        day_of_week=1,
        start_time=time(8, 30),
        end_time=time(10, 0),
        kind=SessionKind.LECTURE,
    )
    fields.update(overrides)
    return ScheduledSession(**fields)


def test_code_must_expire_after_issue():
    with pytest.raises(ValidationError):
        AttendanceCode(code_id=1, token="QR-a", session_id=1, issued_at=ISSUED, expires_at=ISSUED)


def test_code_token_required():
    with pytest.raises(ValidationError):
        AttendanceCode(code_id=1, token="", session_id=1, issued_at=ISSUED, expires_at=ISSUED + timedelta(minutes=1))


def test_code_validity_window():
    code = AttendanceCode(code_id=1, token="QR-a", session_id=1, issued_at=ISSUED, expires_at=ISSUED + timedelta(minutes=10))

    assert code.is_valid_at(ISSUED)
    assert code.is_valid_at(code.expires_at - timedelta(microseconds=1))
    assert not code.is_valid_at(code.expires_at)
    assert code.is_expired_at(code.expires_at)


def test_inactive_code_is_never_valid():
    code = AttendanceCode(
        code_id=1,
        token="QR-a",
        session_id=1,
        issued_at=ISSUED,
        expires_at=ISSUED + timedelta(minutes=10),
        is_active=False,
    )
    assert not code.is_valid_at(ISSUED)


@pytest.mark.parametrize("day", [0, 8])
def test_session_day_of_week_bounds(day):
    with pytest.raises(ValidationError):
        _session(day_of_week=day)


def test_session_end_after_start():
    with pytest.raises(ValidationError):
        _session(start_time=time(10, 0), end_time=time(10, 0))


def test_session_info_formats_time_range():
    info = _session(kind=SessionKind.DIRECTED_WORK).session_info()
    assert info["time"] == "08:30 - 10:00"
    assert info["type"] == "TD"


def test_outcome_serialization():
    record = AttendanceRecord(
        record_id=5,
        student_id="S12345",
        session_id=1,
        module_id=1,
        attendance_date=date(2025, 3, 10),
        status=AttendanceStatus.PRESENT,
        recorded_at=ISSUED,
    )
    body = AttendanceOutcome(record=record, session=_session(), already_registered=True).to_dict()

    assert body["alreadyRegistered"] is True
    assert body["attendance"]["date"] == "2025-03-10"
    assert body["attendance"]["status"] == "present"
    assert body["module"] == {"id": 1, "name": "Algorithms", "code": "INF101"}
    assert record.dedup_key == ("S12345", 1, date(2025, 3, 10))


def test_only_pending_is_not_terminal():
    assert not JustificationStatus.PENDING.is_terminal
    assert JustificationStatus.APPROVED.is_terminal
    assert JustificationStatus.REJECTED.is_terminal


@pytest.mark.parametrize(
    "exc,base,status",
    [
        (ValidationError(), DomainError, 400),
        (InvalidCodeError(), NotFoundError, 404),
        (ExpiredCodeError(), DomainError, 400),
        (StorageError(), DomainError, 500),
        (MissingReferenceError(), NotFoundError, 404),
        (UnknownStudentError(), NotFoundError, 404),
    ],
)
def test_error_taxonomy(exc, base, status):
    assert isinstance(exc, base)
    assert exc.http_status == status
    assert exc.message


def test_conflict_errors_map_to_409():
    from src.qr_attendance.qr_attendance.core.exceptions import AlreadyResolvedError, DuplicateJustificationError

    for exc in (AlreadyResolvedError(), DuplicateJustificationError()):
        assert isinstance(exc, ConflictError)
        assert exc.http_status == 409


def _record(**overrides) -> AttendanceRecord:
    fields = dict(
        record_id=1,
        student_id="S12345",
        session_id=1,
        module_id=1,
        attendance_date=date(2025, 3, 10),
        status=AttendanceStatus.ABSENT,
    )
    fields.update(overrides)
    return AttendanceRecord(**fields)


def _justification(**overrides) -> Justification:
    fields = dict(
        justification_id=1,
        student_id="S12345",
        attendance_id=1,
        module_id=1,
        reason="Medical appointment",
        status=JustificationStatus.PENDING,
        submitted_at=ISSUED,
    )
    fields.update(overrides)
    return Justification(**fields)


@pytest.mark.parametrize(
    "overrides",
    [
        {"student_id": ""},
        {"student_id": "   "},
        {"status": "bogus"},
        {"status": "present"},
        {"attendance_date": datetime(2025, 3, 10, 9, 0)},
        {"attendance_date": "2025-03-10"},
    ],
)
def test_attendance_record_invariants(overrides):
    with pytest.raises(ValidationError):
        _record(**overrides)


@pytest.mark.parametrize(
    "overrides",
    [
        {"student_id": ""},
        {"reason": ""},
        {"reason": "  "},
        {"status": "weird"},
        {"status": "approved"},
        {"reviewed_at": ISSUED + timedelta(hours=1)},
    ],
)
def test_justification_invariants(overrides):
    with pytest.raises(ValidationError):
        _justification(**overrides)


def test_resolved_justification_carries_review_time():
    j = _justification(status=JustificationStatus.APPROVED, reviewed_by="T12345", reviewed_at=ISSUED + timedelta(hours=1))
    assert j.to_dict()["reviewedAt"] == "2025-03-10T10:00:00"
