from __future__ import annotations

from flask import Flask, request
from PIL import Image, UnidentifiedImageError

from ..common.http import json_body, json_error, json_ok, json_unexpected
from ..common.validators import require_iso_date
from ..container import Container
from ..core.exceptions import DomainError, ValidationError


def decode_qr_image(stream) -> str:
    """Return the payload of the first QR code found in an uploaded photo."""

    # pyzbar binds the native zbar library at import time; only this upload path needs it.
    from pyzbar.pyzbar import decode as pyzbar_decode

    try:
        img = Image.open(stream).convert("RGB")
    except UnidentifiedImageError:
        raise ValidationError("Uploaded file is not an image")

    decoded = pyzbar_decode(img)
    if not decoded:
        raise ValidationError("No QR code detected in the image")
    return decoded[0].data.decode("utf-8").strip()


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/student/attendance", methods=["POST"], endpoint="api_submit_attendance")
    def api_submit_attendance():
        """Student submits a scanned (or typed) code."""
        try:
            data = json_body()
            outcome = service.submit_attendance(data.get("qrCode", ""), data.get("studentId", ""))
            return json_ok(outcome.to_dict())
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("recording attendance", e)

    @app.route("/api/student/attendance/image", methods=["POST"], endpoint="api_submit_attendance_image")
    def api_submit_attendance_image():
        """Same as the JSON submission, decoding the code from an uploaded photo."""
        try:
            if "image" not in request.files:
                raise ValidationError("Image file is required")
            code = decode_qr_image(request.files["image"].stream)
            outcome = service.submit_attendance(code, request.form.get("studentId", ""))
            return json_ok(outcome.to_dict())
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("recording attendance from an image", e)

    @app.route("/api/student/attendance", methods=["GET"], endpoint="api_attendance_history")
    def api_attendance_history():
        try:
            return json_ok({"attendance": service.history(request.args.get("studentId", ""))})
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("fetching attendance records", e)

    @app.route("/api/teacher/sessions/<int:session_id>/attendance", methods=["GET"], endpoint="api_session_attendance")
    def api_session_attendance(session_id: int):
        """Roster of one session, optionally restricted to ?date=YYYY-MM-DD."""
        try:
            raw_date = request.args.get("date")
            attendance_date = require_iso_date(raw_date, "Date") if raw_date else None
            rows = service.list_for_session(session_id, attendance_date=attendance_date)
            return json_ok({"attendance": rows})
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("fetching session attendance", e)
