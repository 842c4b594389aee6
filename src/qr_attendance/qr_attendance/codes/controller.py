from __future__ import annotations

from datetime import timedelta

from flask import Flask, request

from ..common.http import json_body, json_error, json_ok, json_unexpected
from ..common.validators import require_positive_int
from ..container import Container
from ..core.constants import MAX_CODE_TTL_MINUTES
from ..core.exceptions import DomainError, ValidationError


def register(app: Flask, container: Container) -> None:
    issuer = container.code_issuer

    @app.route("/api/teacher/codes", methods=["POST"], endpoint="api_issue_code")
    def api_issue_code():
        """Teacher issues a fresh QR code for one of their sessions."""
        try:
            data = json_body()
            ttl = None
            if data.get("ttlMinutes") not in (None, ""):
                minutes = require_positive_int(data.get("ttlMinutes"), "TTL (minutes)")
                # Bound before building the timedelta, which overflows on huge values.
                if minutes > MAX_CODE_TTL_MINUTES:
                    raise ValidationError(f"Code lifetime is too long (max {MAX_CODE_TTL_MINUTES} minutes)")
                ttl = timedelta(minutes=minutes)

            code = issuer.issue(data.get("sessionId"), ttl, issued_by=(data.get("teacherId") or None))
            return json_ok({"code": code.to_dict()}, 201)
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("issuing an attendance code", e)

    @app.route("/api/teacher/codes", methods=["GET"], endpoint="api_list_codes")
    def api_list_codes():
        try:
            return json_ok({"codes": issuer.list_for_teacher(request.args.get("teacherId", ""))})
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("listing attendance codes", e)

    @app.route("/api/teacher/codes/<token>/qr.png", methods=["GET"], endpoint="api_code_qr_image")
    def api_code_qr_image(token: str):
        try:
            png = issuer.render_qr_png(token)
            return app.response_class(png, mimetype="image/png", headers={"Cache-Control": "no-store"})
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("rendering a QR image", e)

    @app.route("/api/teacher/codes/<token>/revoke", methods=["POST"], endpoint="api_revoke_code")
    def api_revoke_code(token: str):
        try:
            issuer.revoke(token)
            return json_ok({"message": "Code revoked"})
        except DomainError as e:
            return json_error(e)
        except Exception as e:
            return json_unexpected("revoking an attendance code", e)
