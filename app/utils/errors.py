"""JSON error bodies shared by every blueprint.

All API errors have the shape ``{"error": <message>, "code": <E.*>}`` plus an
optional ``details`` mapping (per-field messages for validation failures,
the conflicting field for duplicates).

    from app.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Site with ID 7 not found")
    return api_error(E.VALIDATION_INVALID, "Invalid site data", details={"type": "..."})
"""

from __future__ import annotations

import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class E:
    """Machine-readable error codes, ``ERR_`` prefixed."""

    BAD_REQUEST = "ERR_BAD_REQUEST"                  # 400 body is not a JSON object
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"  # 422 only required fields missing
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"    # 422 any other field error
    UNAUTHORIZED = "ERR_UNAUTHORIZED"                # 401 missing / bad token, inactive actor
    FORBIDDEN = "ERR_FORBIDDEN"                      # 403 role not allowed
    NOT_FOUND = "ERR_NOT_FOUND"                      # 404
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"    # 409 business id already used
    RATE_LIMITED = "ERR_RATE_LIMITED"                # 429
    DATABASE = "ERR_DATABASE"                        # 500 SQLAlchemyError from the SQL store
    INTERNAL = "ERR_INTERNAL"                        # 500


STATUS_BY_CODE: dict[str, int] = {
    E.BAD_REQUEST: 400,
    E.VALIDATION_REQUIRED: 422,
    E.VALIDATION_INVALID: 422,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.RATE_LIMITED: 429,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def error_body(code: str, message: str, details: dict | None = None) -> dict:
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return body


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build a ``(response, status)`` pair for a view or error handler to return.

    *status* overrides the code's default status (e.g. 413 or 415 with
    ``E.BAD_REQUEST``); unknown codes fall back to 400.
    """
    http_status = status or STATUS_BY_CODE.get(code, 400)
    if http_status >= 500:
        logger.error("API error %s (%d): %s", code, http_status, message)
    return jsonify(error_body(code, message, details)), http_status
