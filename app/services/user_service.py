"""
User Service — registry users, password hashing, login.

Users are never deleted; set ``status`` to inactive/suspended instead.
Every function returns ``public_user`` payloads: the bcrypt hash never
leaves this module.
"""

import logging

from app.core.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from app.services.activity_service import list_activities
from app.services.validation import validate_insert, validate_patch
from app.store.schema import EntityKind
from app.utils.crypto import BCRYPT_ROUNDS, hash_password, verify_password

logger = logging.getLogger(__name__)

ACTIVE = "active"
ADMIN_ROLE = "Admin"
ADMIN_ONLY_FIELDS = frozenset({"role", "status", "username"})


def public_user(user: dict) -> dict:
    """Return a copy of *user* without its password hash."""
    return {k: v for k, v in user.items() if k != "password_hash"}


def _get(store, user_id: int) -> dict:
    user = store.get_user(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


# ═══════════════════════════════════════════════════════════════
# User CRUD
# ═══════════════════════════════════════════════════════════════


def list_users(store, *, role: str | None = None, status: str | None = None) -> list[dict]:
    users = store.get_all_users()
    if role is not None:
        users = [u for u in users if u["role"] == role]
    if status is not None:
        users = [u for u in users if u["status"] == status]
    return [public_user(u) for u in users]


def get_user(store, user_id: int) -> dict:
    return public_user(_get(store, user_id))


def create_user(store, data, *, rounds: int = BCRYPT_ROUNDS) -> dict:
    """Create a user from a payload carrying a plain ``password``."""
    cleaned = validate_insert(EntityKind.USER, data)
    password = cleaned.pop("password")
    cleaned["password_hash"] = hash_password(password, rounds=rounds)
    user = store.create_user(cleaned)
    logger.info("User %s created with role %s", user["username"], user["role"])
    return public_user(user)


def update_user(store, user_id: int, data, *, acting_user: dict,
                rounds: int = BCRYPT_ROUNDS) -> dict:
    """Merge a partial update; a new ``password`` is re-hashed.

    Admins may change anyone. Other users may edit only their own profile
    and never their own role or status.
    """
    _get(store, user_id)
    cleaned = validate_patch(EntityKind.USER, data)
    if acting_user["role"] != ADMIN_ROLE:
        if acting_user["id"] != user_id:
            raise PermissionDeniedError("Only admins can edit other users", required=ADMIN_ROLE)
        restricted = sorted(ADMIN_ONLY_FIELDS & cleaned.keys())
        if restricted:
            raise PermissionDeniedError(
                f"Only admins can change {', '.join(restricted)}", required=ADMIN_ROLE,
            )
    if "password" in cleaned:
        cleaned["password_hash"] = hash_password(cleaned.pop("password"), rounds=rounds)
    user = store.update_user(user_id, cleaned)
    if "status" in cleaned:
        logger.info("User %s status set to %s", user["username"], user["status"])
    return public_user(user)


def list_user_activities(store, user_id: int, *, limit: int | None = None) -> list[dict]:
    """Activities performed by a user, newest first."""
    _get(store, user_id)
    return list_activities(store, performed_by=user_id, limit=limit)


# ═══════════════════════════════════════════════════════════════
# Authentication
# ═══════════════════════════════════════════════════════════════


def authenticate(store, username: str, password: str) -> dict:
    """Check credentials; only active users may log in."""
    if not username or not password:
        raise AuthenticationError("Username and password are required")
    if not isinstance(username, str) or not isinstance(password, str):
        raise AuthenticationError("Username and password must be strings")

    user = store.get_user_by_username(username)
    if user is None or not verify_password(password, user["password_hash"]):
        logger.warning("Failed login for username %r", username)
        raise AuthenticationError("Invalid username or password")
    if user["status"] != ACTIVE:
        logger.warning("Login refused for %s user %s", user["status"], username)
        raise AuthenticationError(f"Account is {user['status']}")

    logger.info("User %s logged in", username)
    return public_user(user)


def active_user(store, user_id: int) -> dict:
    """The user behind a refresh token; gone or deactivated users cannot refresh."""
    user = store.get_user(user_id)
    if user is None or user["status"] != ACTIVE:
        logger.warning("Token refresh refused for user id %s", user_id)
        raise AuthenticationError("User is not active")
    return public_user(user)
