from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytest

from src.qr_attendance.qr_attendance.attendance.model import AttendanceRecord
from src.qr_attendance.qr_attendance.codes.model import AttendanceCode
from src.qr_attendance.qr_attendance.container import wire_services
from src.qr_attendance.qr_attendance.core.enums import AttendanceStatus, JustificationStatus, SessionKind
from src.qr_attendance.qr_attendance.core.exceptions import DuplicateKeyError, MissingReferenceError
from src.qr_attendance.qr_attendance.justifications.model import Justification
from src.qr_attendance.qr_attendance.timetable.model import ClassGroup, ScheduledSession

T0 = datetime(2025, 3, 10, 9, 0, 0)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryTimetable:
    def __init__(self):
        self.sessions: dict[int, ScheduledSession] = {}
        self.groups: dict[str, ClassGroup] = {}

    def add(self, session: ScheduledSession) -> ScheduledSession:
        self.sessions[session.session_id] = session
        return session

    def get_by_id(self, session_id: int) -> Optional[ScheduledSession]:
        return self.sessions.get(int(session_id))

    def get_group_for_student(self, student_id: str) -> Optional[ClassGroup]:
        return self.groups.get(student_id)

    def list_for_group(self, group_id: int):
        items = [s for s in self.sessions.values() if s.group_id == group_id]
        return sorted(items, key=lambda s: (s.day_of_week, s.start_time))

    def list_for_teacher(self, teacher_id: str):
        items = [s for s in self.sessions.values() if s.teacher_id == teacher_id]
        return sorted(items, key=lambda s: (s.day_of_week, s.start_time))


class InMemoryCodes:
    def __init__(self, timetable: InMemoryTimetable):
        self._timetable = timetable
        self.by_token: dict[str, AttendanceCode] = {}
        self._id = 0

    def create(self, *, token, session_id, issued_by, issued_at, expires_at) -> int:
        if token in self.by_token:
            raise DuplicateKeyError()
        self._id += 1
        self.by_token[token] = AttendanceCode(
            code_id=self._id,
            token=token,
            session_id=int(session_id),
            issued_by=issued_by,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        return self._id

    def get_by_token(self, token: str) -> Optional[AttendanceCode]:
        return self.by_token.get(token)

    def deactivate(self, token: str) -> bool:
        code = self.by_token.get(token)
        if not code:
            return False
        self.by_token[token] = AttendanceCode(
            code_id=code.code_id,
            token=code.token,
            session_id=code.session_id,
            issued_by=code.issued_by,
            issued_at=code.issued_at,
            expires_at=code.expires_at,
            is_active=False,
        )
        return True

    def delete_expired(self, *, before: datetime) -> int:
        stale = [t for t, c in self.by_token.items() if c.expires_at < before]
        for t in stale:
            del self.by_token[t]
        return len(stale)

    def list_for_teacher(self, teacher_id: str, *, limit: int = 200):
        rows = []
        for c in sorted(self.by_token.values(), key=lambda c: c.issued_at, reverse=True):
            s = self._timetable.get_by_id(c.session_id)
            if not s or s.teacher_id != teacher_id:
                continue
            rows.append(
                {
                    "id": c.code_id,
                    "token": c.token,
                    "sessionId": c.session_id,
                    "issuedBy": c.issued_by,
                    "issuedAt": c.issued_at,
                    "expiresAt": c.expires_at,
                    "isActive": c.is_active,
                    "module": {"name": s.module_name, "code": s.module_code},
                    "sessionType": s.kind.value,
                    "room": s.room,
                }
            )
        return rows[:limit]


class InMemoryAttendance:
    """Enforces the (student, session, date) unique key like the real table.

    With ``race_once`` set, the first dedup lookup misses while a competing
    request inserts the same row, so the following insert hits the unique key.
    ``students`` plays the users table behind the student foreign key.
    """

    def __init__(self, timetable: InMemoryTimetable):
        self._timetable = timetable
        self.records: dict[int, AttendanceRecord] = {}
        self._id = 0
        self.race_once = False
        self.students: dict[str, str] = {"stu1": "Alice Martin", "stu2": "Bruno Diaz"}

    def _find(self, student_id, session_id, attendance_date) -> Optional[AttendanceRecord]:
        for r in self.records.values():
            if r.dedup_key == (student_id, int(session_id), attendance_date):
                return r
        return None

    def get_by_id(self, record_id: int) -> Optional[AttendanceRecord]:
        return self.records.get(int(record_id))

    def get_for_student_session_date(self, *, student_id, session_id, attendance_date):
        if self.race_once:
            self.race_once = False
            session = self._timetable.get_by_id(session_id)
            self.create(
                student_id=student_id,
                session_id=session_id,
                module_id=session.module_id,
                attendance_date=attendance_date,
                status=AttendanceStatus.PRESENT,
                recorded_at=None,
            )
            return None
        return self._find(student_id, session_id, attendance_date)

    def create(self, *, student_id, session_id, module_id, attendance_date, status, recorded_at=None) -> int:
        if student_id not in self.students:
            raise MissingReferenceError()
        if self._find(student_id, session_id, attendance_date):
            raise DuplicateKeyError()
        self._id += 1
        self.records[self._id] = AttendanceRecord(
            record_id=self._id,
            student_id=student_id,
            session_id=int(session_id),
            module_id=int(module_id),
            attendance_date=attendance_date,
            status=status,
            recorded_at=recorded_at,
        )
        return self._id

    def add_absence(self, *, student_id: str, session_id: int, attendance_date: date) -> AttendanceRecord:
        session = self._timetable.get_by_id(session_id)
        record_id = self.create(
            student_id=student_id,
            session_id=session_id,
            module_id=session.module_id,
            attendance_date=attendance_date,
            status=AttendanceStatus.ABSENT,
        )
        return self.records[record_id]

    def list_for_student(self, student_id: str, *, limit: int):
        items = [r for r in self.records.values() if r.student_id == student_id]
        items.sort(key=lambda r: (r.attendance_date, r.record_id), reverse=True)
        out = []
        for r in items[:limit]:
            s = self._timetable.get_by_id(r.session_id)
            out.append({"attendance": r.to_dict(), "module": s.module_info(), "session": s.session_info()})
        return out

    def list_for_session(self, session_id: int, *, attendance_date=None, limit: int):
        items = [
            r
            for r in self.records.values()
            if r.session_id == int(session_id) and attendance_date in (None, r.attendance_date)
        ]
        items.sort(key=lambda r: self.students[r.student_id])
        items.sort(key=lambda r: r.attendance_date, reverse=True)
        return [
            {"attendance": r.to_dict(), "student": {"id": r.student_id, "name": self.students[r.student_id]}}
            for r in items[:limit]
        ]


class InMemoryJustifications:
    def __init__(self, attendance: InMemoryAttendance, timetable: InMemoryTimetable):
        self._attendance = attendance
        self._timetable = timetable
        self.items: dict[int, Justification] = {}
        self._id = 0

    def create(self, *, student_id, attendance_id, module_id, reason, evidence_path, submitted_at) -> int:
        if any(j.attendance_id == attendance_id for j in self.items.values()):
            raise DuplicateKeyError()
        self._id += 1
        self.items[self._id] = Justification(
            justification_id=self._id,
            student_id=student_id,
            attendance_id=attendance_id,
            module_id=module_id,
            reason=reason,
            status=JustificationStatus.PENDING,
            submitted_at=submitted_at,
            evidence_path=evidence_path,
        )
        return self._id

    def get_by_id(self, justification_id: int) -> Optional[Justification]:
        return self.items.get(int(justification_id))

    def decide(self, *, justification_id, status, reviewed_by, reviewed_at) -> bool:
        j = self.items.get(int(justification_id))
        if not j or j.status != JustificationStatus.PENDING:
            return False
        self.items[j.justification_id] = Justification(
            justification_id=j.justification_id,
            student_id=j.student_id,
            attendance_id=j.attendance_id,
            module_id=j.module_id,
            reason=j.reason,
            status=status,
            submitted_at=j.submitted_at,
            evidence_path=j.evidence_path,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
        )
        return True

    def _ui(self, j: Justification) -> dict:
        record = self._attendance.get_by_id(j.attendance_id)
        session = self._timetable.get_by_id(record.session_id)
        return {
            **j.to_dict(),
            "module": {"name": session.module_name, "code": session.module_code},
            "attendance": {
                "date": record.attendance_date.isoformat(),
                "status": record.status.value,
                "sessionId": record.session_id,
            },
        }

    def list_for_student(self, student_id: str, *, limit: int = 200):
        items = [j for j in self.items.values() if j.student_id == student_id]
        items.sort(key=lambda j: j.submitted_at, reverse=True)
        return [self._ui(j) for j in items[:limit]]

    def list_for_reviewer(self, teacher_id: str, *, limit: int = 200):
        items = []
        for j in self.items.values():
            record = self._attendance.get_by_id(j.attendance_id)
            if self._timetable.get_by_id(record.session_id).teacher_id == teacher_id:
                items.append(j)
        items.sort(key=lambda j: j.submitted_at, reverse=True)
        return [self._ui(j) for j in items[:limit]]


def make_session(
    session_id: int,
    *,
    module_id: int,
    teacher_id: str = "T12345",
    group_id: Optional[int] = 1,
    day_of_week: int = 1,
    start: time = time(8, 30),
    end: time = time(10, 0),
    kind: SessionKind = SessionKind.LECTURE,
) -> ScheduledSession:
    return ScheduledSession(
        session_id=session_id,
        module_id=module_id,
        module_code=f"INF{100 + module_id}",
        module_name=f"Module {module_id}",
        teacher_id=teacher_id,
        room=f"A{session_id}",
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        kind=kind,
        group_id=group_id,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture
def timetable() -> InMemoryTimetable:
    repo = InMemoryTimetable()
    # 1: Monday lecture, 2: Tuesday directed work (other teacher), 3: Monday afternoon practical
    repo.add(make_session(1, module_id=1))
    repo.add(
        make_session(2, module_id=2, teacher_id="T54321", day_of_week=2, start=time(10, 15), end=time(11, 45), kind=SessionKind.DIRECTED_WORK)
    )
    repo.add(make_session(3, module_id=3, day_of_week=1, start=time(14, 0), end=time(16, 0), kind=SessionKind.PRACTICAL))
    repo.groups["stu1"] = ClassGroup(group_id=1, group_name="G1", specialization="Computer Science")
    return repo


@pytest.fixture
def codes_repo(timetable) -> InMemoryCodes:
    return InMemoryCodes(timetable)


@pytest.fixture
def attendance_repo(timetable) -> InMemoryAttendance:
    return InMemoryAttendance(timetable)


@pytest.fixture
def justifications_repo(attendance_repo, timetable) -> InMemoryJustifications:
    return InMemoryJustifications(attendance_repo, timetable)


@pytest.fixture
def container(timetable, codes_repo, attendance_repo, justifications_repo, clock):
    return wire_services(
        conn=None,
        timetable_repo=timetable,
        codes_repo=codes_repo,
        attendance_repo=attendance_repo,
        justifications_repo=justifications_repo,
        code_ttl_minutes=10,
        clock=clock,
    )


@pytest.fixture
def app(container, monkeypatch):
    from src.qr_attendance.qr_attendance.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()
