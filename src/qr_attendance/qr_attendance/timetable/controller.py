from __future__ import annotations

from flask import Flask, request

from ..common.http import json_error, json_ok, json_unexpected
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/student/timetable", methods=["GET"], endpoint="api_student_timetable")
    def api_student_timetable():
        try:
            data = container.timetable_service.weekly_for_student(request.args.get("studentId", ""))
            return json_ok(data)
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("loading the student timetable", e)

    @app.route("/api/teacher/sessions", methods=["GET"], endpoint="api_teacher_sessions")
    def api_teacher_sessions():
        try:
            sessions = container.timetable_service.sessions_for_teacher(request.args.get("teacherId", ""))
            return json_ok({"sessions": sessions})
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("loading teacher sessions", e)
