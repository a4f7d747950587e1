from __future__ import annotations

from functools import wraps
from typing import Any, Dict

from flask import jsonify, request

from ..core.exceptions import (
    DomainError,
    NotEnrolled,
    SessionNotFound,
    TokenExpired,
    TokenInvalid,
    ValidationError,
)
from .logging import get_logger

logger = get_logger(__name__)

ERROR_STATUS = (
    (ValidationError, 400),
    (SessionNotFound, 404),
    (TokenInvalid, 404),
    (TokenExpired, 410),
    (NotEnrolled, 403),
)


def status_for(error: DomainError) -> int:
    for cls, code in ERROR_STATUS:
        if isinstance(error, cls):
            return code
    return 400


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def json_errors(view):
    """Translate domain errors to JSON responses; anything else is a logged 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return jsonify({"success": False, "error": str(e), "code": type(e).__name__}), status_for(e)
        except Exception:
            logger.exception("unhandled error in %s %s", request.method, request.path)
            return jsonify({"success": False, "error": "Internal server error"}), 500

    return wrapper
