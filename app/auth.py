"""
College Site Registry
Authentication & Authorization Middleware.

Provides:
    - Actor resolution: an ``Authorization: Bearer <token>`` access token
      (issued by /auth/login) must name an active user, who becomes ``g.actor``
    - Optional API key gate via X-API-Key header (``API_AUTH_ENABLED``)
    - Role decorators for write and admin-only endpoints
    - Content-Type enforcement for state-changing requests

Security model:
    - Reads work without an actor; every write needs one (401 otherwise)
    - There is no default actor: a missing token is never silently mapped
      to a seeded user
    - Expired, forged or malformed tokens are 401, never ignored
    - Viewers are read-only; user management is Admin-only

Configuration (env vars / app config):
    API_KEYS          — comma-separated list of accepted API keys
    API_AUTH_ENABLED  — "true" to require X-API-Key on /api/v1/* routes
    JWT_SECRET_KEY    — token signing key (defaults to SECRET_KEY)
"""

import functools
import logging
import os

import jwt as pyjwt
from flask import current_app, g, request

from app.services import jwt_service
from app.store import get_store
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# ── Roles ────────────────────────────────────────────────────────────────────

ROLE_ADMIN = "Admin"
ROLE_PROJECT_MANAGER = "Project Manager"
ROLE_DATA_ANALYST = "Data Analyst"
ROLE_FIELD_ASSESSOR = "Field Assessor"
ROLE_VIEWER = "Viewer"

ROLES = {ROLE_ADMIN, ROLE_PROJECT_MANAGER, ROLE_DATA_ANALYST, ROLE_FIELD_ASSESSOR, ROLE_VIEWER}

# Roles allowed to create or change registry data
WRITE_ROLES = ROLES - {ROLE_VIEWER}

AUTH_REQUIRED = "Authentication required. Send the access token from /auth/login as a Bearer token."

_PUBLIC_PATHS = frozenset({"/api/v1/health", "/api/v1/auth/login", "/api/v1/auth/refresh"})


def _parse_api_keys() -> set[str]:
    """Parse API_KEYS (env var first, then app config) into a set of keys."""
    raw = os.getenv("API_KEYS") or current_app.config.get("API_KEYS", "") or ""
    return {entry.strip() for entry in raw.split(",") if entry.strip()}


def _is_auth_enabled() -> bool:
    """Check whether the API key gate is enabled (env var or app config)."""
    env_val = os.getenv("API_AUTH_ENABLED", "")
    if env_val:
        return env_val.lower() not in ("false", "0", "no", "off")
    try:
        return str(current_app.config.get("API_AUTH_ENABLED", "false")).lower() not in (
            "false", "0", "no", "off",
        )
    except RuntimeError:
        # Outside app context
        return False


def _get_api_key_from_request() -> str | None:
    key = request.headers.get("X-API-Key", "").strip()
    return key or None


def _bearer_token() -> str | None:
    """The token from ``Authorization: Bearer <token>``, or None without the header."""
    header = request.headers.get("Authorization", "").strip()
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return ""
    return token.strip()


def _resolve_actor():
    """Map the bearer access token to an active user.

    Returns ``(user_or_None, error_response_or_None)``.
    """
    token = _bearer_token()
    if token is None:
        return None, None
    if not token:
        return None, api_error(E.UNAUTHORIZED, "Authorization header must be 'Bearer <token>'")

    try:
        payload = jwt_service.decode_access_token(token)
        user_id = jwt_service.user_id_from(payload)
    except pyjwt.ExpiredSignatureError:
        return None, api_error(E.UNAUTHORIZED, "Access token has expired")
    except pyjwt.InvalidTokenError as exc:
        logger.warning("Rejected access token: %s", exc)
        return None, api_error(E.UNAUTHORIZED, "Invalid access token")

    user = get_store().get_user(user_id)
    if user is None:
        logger.warning("Token for unknown user id %s", user_id)
        return None, api_error(E.UNAUTHORIZED, f"Unknown user id {user_id}")
    if user.get("status") != "active":
        logger.warning("Request from %s user %s", user.get("status"), user_id)
        return None, api_error(E.UNAUTHORIZED, f"User {user_id} is not active")
    return user, None


# ── Decorators ───────────────────────────────────────────────────────────────

def require_actor(f):
    """Decorator: the request must carry a valid actor (401 otherwise)."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "actor", None) is None:
            return api_error(E.UNAUTHORIZED, AUTH_REQUIRED)
        return f(*args, **kwargs)
    return decorated


def require_role(*allowed_roles: str):
    """
    Decorator: the actor's role must be one of *allowed_roles*.

    Usage:
        @require_role(ROLE_ADMIN)
        def create_user(): ...

    Implies ``require_actor``.
    """
    allowed = set(allowed_roles)

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            actor = getattr(g, "actor", None)
            if actor is None:
                return api_error(E.UNAUTHORIZED, AUTH_REQUIRED)
            if actor.get("role") not in allowed:
                logger.warning(
                    "Access denied: role '%s' tried to access %s %s",
                    actor.get("role"), request.method, request.path,
                )
                return api_error(E.FORBIDDEN, "Insufficient permissions")
            return f(*args, **kwargs)
        return decorated
    return decorator


def require_writer(f):
    """Decorator: any role except Viewer."""
    return require_role(*WRITE_ROLES)(f)


def current_actor_id() -> int:
    return g.actor["id"]


# ── CSRF protection for API ──────────────────────────────────────────────────

def _check_content_type():
    """
    For state-changing requests with a body, require
    Content-Type: application/json. HTML forms cannot send that type.
    """
    if request.method in ("POST", "PUT", "PATCH", "DELETE"):
        ct = request.content_type or ""
        if "application/json" not in ct and request.content_length and request.content_length > 0:
            return api_error(
                E.BAD_REQUEST,
                "Content-Type must be application/json for state-changing requests",
                status=415,
            )
    return None


# ── before_request hook installer ────────────────────────────────────────────

def init_auth(app):
    """
    Install authentication middleware on the Flask app.

    - Skips non-API routes, health checks and CORS pre-flight
    - Resolves ``g.actor`` for every other API request
    """
    @app.before_request
    def _before_request_auth():
        g.actor = None
        if not request.path.startswith("/api/v1/"):
            return None
        if request.path.startswith("/api/v1/health"):
            return None
        if request.method == "OPTIONS":
            return None

        csrf_error = _check_content_type()
        if csrf_error:
            return csrf_error

        if _is_auth_enabled() and request.path not in _PUBLIC_PATHS:
            api_key = _get_api_key_from_request()
            if not api_key:
                return api_error(E.UNAUTHORIZED, "Authentication required. Provide X-API-Key header.")
            api_keys = _parse_api_keys()
            if not api_keys:
                logger.error("API_KEYS is not configured but API_AUTH_ENABLED=true")
                return api_error(E.INTERNAL, "Server authentication not configured")
            if api_key not in api_keys:
                logger.warning("Invalid API key attempt: %s...", api_key[:8])
                return api_error(E.UNAUTHORIZED, "Invalid API key")

        # Login and refresh authenticate from the body, not a bearer token
        if request.path in _PUBLIC_PATHS:
            return None

        actor, error = _resolve_actor()
        if error:
            return error
        g.actor = actor
        return None

    logger.info("Auth middleware installed (api key gate enabled=%s)", app.config.get("API_AUTH_ENABLED"))
