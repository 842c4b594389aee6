from __future__ import annotations

import logging
from typing import Any

from flask import jsonify, request

from ..core.exceptions import DomainError, StorageError

logger = logging.getLogger(__name__)


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def json_ok(payload: dict, status: int = 200):
    return jsonify({"success": True, **payload}), status


def json_error(exc: DomainError):
    if isinstance(exc, StorageError):
        # Never leak driver details to the client.
        message = StorageError.default_message
    else:
        message = exc.message
    return jsonify({"success": False, "error": exc.kind, "message": message}), exc.http_status


def json_unexpected(action: str, exc: Exception) -> Any:
    logger.exception("Unexpected error while %s: %s", action, exc)
    return json_error(StorageError())
