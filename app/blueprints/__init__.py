"""
College Site Registry
Blueprint helpers shared by every API blueprint.
"""

import logging

from flask import abort, current_app, request

from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.store import get_store
from app.utils.errors import E, api_error
from app.utils.helpers import parse_int_arg

logger = logging.getLogger(__name__)


def paginate_list(items, default_limit=200, max_limit=1000):
    """Apply limit/offset pagination to an already-filtered list.

    Query params:
        limit  — max items (default 200, capped at max_limit)
        offset — starting position (default 0)

    Returns:
        (page_items, total_count)
    """
    limit = parse_int_arg(request.args.get("limit"), default_limit, maximum=max_limit)
    offset = parse_int_arg(request.args.get("offset"), 0, minimum=0)
    return items[offset:offset + limit], len(items)


def list_response(items):
    page, total = paginate_list(items)
    return {"items": page, "total": total}


def json_body() -> dict:
    """Return the request's JSON object body, or abort with 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description="Request body must be a JSON object")
    return data


def store():
    return get_store()


def bcrypt_rounds() -> int:
    return current_app.config.get("BCRYPT_ROUNDS", 12)


def register_error_handlers(bp):
    """Map service-layer exceptions to JSON error responses on *bp*."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        missing_only = bool(error.details) and all(
            msg == "is required" for msg in error.details.values()
        )
        code = E.VALIDATION_REQUIRED if missing_only else E.VALIDATION_INVALID
        return api_error(code, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, str(error), details={error.field: "already in use"})

    @bp.errorhandler(AuthenticationError)
    def _handle_authentication(error: AuthenticationError):
        return api_error(E.UNAUTHORIZED, str(error))

    @bp.errorhandler(PermissionDeniedError)
    def _handle_permission(error: PermissionDeniedError):
        return api_error(E.FORBIDDEN, str(error))

    return bp
