from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, json_error, json_ok, json_unexpected
from ..common.validators import require_iso_date
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    service = container.justification_service

    @app.route("/api/student/justifications", methods=["POST"], endpoint="api_file_justification")
    def api_file_justification():
        """Multipart form: studentId, reason, optional file, and either attendanceId
        or sessionId + absenceDate to locate the absence."""
        try:
            form = request.form
            evidence = request.files.get("file")
            evidence_path = service.evidence_path_for(evidence.filename) if evidence else None

            if form.get("attendanceId"):
                claimed = form.get("absenceDate")
                justification = service.file(
                    form.get("studentId", ""),
                    form.get("attendanceId"),
                    form.get("reason", ""),
                    evidence_path,
                    absence_date=require_iso_date(claimed, "Absence date") if claimed else None,
                )
            else:
                justification = service.file_for_date(
                    form.get("studentId", ""),
                    form.get("sessionId"),
                    require_iso_date(form.get("absenceDate"), "Absence date"),
                    form.get("reason", ""),
                    evidence_path,
                )
            return json_ok(
                {"message": "Justification submitted successfully", "justification": justification.to_dict()},
                201,
            )
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("submitting a justification", e)

    @app.route("/api/student/justifications", methods=["GET"], endpoint="api_student_justifications")
    def api_student_justifications():
        try:
            return json_ok({"justifications": service.list_for_student(request.args.get("studentId", ""))})
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("fetching student justifications", e)

    @app.route("/api/teacher/justifications", methods=["GET"], endpoint="api_teacher_justifications")
    def api_teacher_justifications():
        try:
            return json_ok({"justifications": service.list_for_reviewer(request.args.get("teacherId", ""))})
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("fetching justifications to review", e)

    @app.route("/api/justifications/<int:justification_id>/review", methods=["POST"], endpoint="api_review_justification")
    def api_review_justification(justification_id: int):
        try:
            data = json_body()
            justification = service.review(
                justification_id,
                data.get("decision", ""),
                reviewer_id=(data.get("reviewerId") or None),
            )
            return json_ok({"justification": justification.to_dict()})
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("reviewing a justification", e)
