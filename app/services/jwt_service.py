"""
JWT Service — access/refresh token issue and verification.

Access token:  1 hour  (JWT_ACCESS_EXPIRES, seconds)
Refresh token: 7 days  (JWT_REFRESH_EXPIRES, seconds)
Algorithm:     HS256, signed with JWT_SECRET_KEY (falls back to SECRET_KEY)

Token payload (access):
{
    "sub": "<user_id>",
    "role": "Field Assessor",
    "type": "access",
    "iat": <issued_at>,
    "exp": <expires_at>,
    "jti": <unique_id>
}

The role claim is informational; ``app.auth`` reloads the user on every
request so deactivation and role changes apply to tokens already issued.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

DEFAULT_ACCESS_EXPIRES = 3600      # 1 hour
DEFAULT_REFRESH_EXPIRES = 604800   # 7 days
ALGORITHM = "HS256"


def _get_secret():
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _get_access_expires() -> int:
    return int(current_app.config.get("JWT_ACCESS_EXPIRES", DEFAULT_ACCESS_EXPIRES))


def _get_refresh_expires() -> int:
    return int(current_app.config.get("JWT_REFRESH_EXPIRES", DEFAULT_REFRESH_EXPIRES))


def _encode(claims: dict, lifetime: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": now,
        "exp": now + timedelta(seconds=lifetime),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _get_secret(), algorithm=ALGORITHM)


# ═══════════════════════════════════════════════════════════════
# Token Generation
# ═══════════════════════════════════════════════════════════════
def generate_access_token(user: dict) -> str:
    """Short-lived token sent as ``Authorization: Bearer <token>``."""
    claims = {"sub": str(user["id"]), "role": user.get("role"), "type": "access"}
    return _encode(claims, _get_access_expires())


def generate_refresh_token(user: dict) -> str:
    """Long-lived token exchanged at /auth/refresh for a new pair."""
    return _encode({"sub": str(user["id"]), "type": "refresh"}, _get_refresh_expires())


def generate_token_pair(user: dict) -> dict:
    return {
        "access_token": generate_access_token(user),
        "refresh_token": generate_refresh_token(user),
        "token_type": "Bearer",
        "expires_in": _get_access_expires(),
    }


# ═══════════════════════════════════════════════════════════════
# Token Verification
# ═══════════════════════════════════════════════════════════════
def decode_token(token: str, expected_type: str = "access") -> dict:
    """
    Decode and verify a token.

    Returns the payload on success. Raises ``jwt.ExpiredSignatureError``
    or ``jwt.InvalidTokenError`` (bad signature, malformed, wrong type).
    """
    payload = jwt.decode(
        token, _get_secret(), algorithms=[ALGORITHM], options={"require": ["exp", "sub"]},
    )
    if payload.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"Expected {expected_type} token, got {payload.get('type')}")
    return payload


def decode_access_token(token: str) -> dict:
    return decode_token(token, expected_type="access")


def decode_refresh_token(token: str) -> dict:
    return decode_token(token, expected_type="refresh")


def user_id_from(payload: dict) -> int:
    """The ``sub`` claim as an integer user id."""
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise jwt.InvalidTokenError("Token subject is not a user id") from None
