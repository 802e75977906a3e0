"""
College Site Registry
User Blueprint — user management and login.

Endpoints:
    GET    /api/v1/users                    — List (Admin; filters: role, status)
    POST   /api/v1/users                    — Create (Admin)
    GET    /api/v1/users/<id>               — Detail (any signed-in user)
    PATCH  /api/v1/users/<id>               — Update (Admin, or self without role/status)
    GET    /api/v1/users/<id>/activities    — Activities performed by the user
    POST   /api/v1/auth/login               — Check username/password, return the user and tokens
    POST   /api/v1/auth/refresh             — Exchange a refresh token for a new token pair

Users are never deleted; deactivate them with PATCH {"status": "inactive"}.
"""

import logging

import jwt as pyjwt
from flask import Blueprint, g, jsonify, request

from app.auth import ROLE_ADMIN, require_actor, require_role
from app.blueprints import bcrypt_rounds, json_body, list_response, register_error_handlers, store
from app.core.exceptions import AuthenticationError
from app.services import jwt_service, user_service

logger = logging.getLogger(__name__)

user_bp = Blueprint("users", __name__, url_prefix="/api/v1")
register_error_handlers(user_bp)


@user_bp.route("/users", methods=["GET"])
@require_role(ROLE_ADMIN)
def list_users():
    users = user_service.list_users(
        store(), role=request.args.get("role"), status=request.args.get("status"),
    )
    return jsonify(list_response(users)), 200


@user_bp.route("/users", methods=["POST"])
@require_role(ROLE_ADMIN)
def create_user():
    user = user_service.create_user(store(), json_body(), rounds=bcrypt_rounds())
    return jsonify(user), 201


@user_bp.route("/users/<int:user_id>", methods=["GET"])
@require_actor
def get_user(user_id):
    return jsonify(user_service.get_user(store(), user_id)), 200


@user_bp.route("/users/<int:user_id>", methods=["PATCH"])
@require_actor
def update_user(user_id):
    user = user_service.update_user(
        store(), user_id, json_body(), acting_user=g.actor, rounds=bcrypt_rounds(),
    )
    return jsonify(user), 200


@user_bp.route("/users/<int:user_id>/activities", methods=["GET"])
@require_actor
def user_activities(user_id):
    rows = user_service.list_user_activities(store(), user_id)
    return jsonify(list_response(rows)), 200


@user_bp.route("/auth/login", methods=["POST"])
def login():
    data = json_body()
    user = user_service.authenticate(store(), data.get("username"), data.get("password"))
    return jsonify({"user": user, **jwt_service.generate_token_pair(user)}), 200


@user_bp.route("/auth/refresh", methods=["POST"])
def refresh():
    token = json_body().get("refresh_token")
    if not isinstance(token, str) or not token:
        raise AuthenticationError("refresh_token is required")
    try:
        user_id = jwt_service.user_id_from(jwt_service.decode_refresh_token(token))
    except pyjwt.ExpiredSignatureError:
        raise AuthenticationError("Refresh token has expired") from None
    except pyjwt.InvalidTokenError:
        raise AuthenticationError("Invalid refresh token") from None
    user = user_service.active_user(store(), user_id)
    return jsonify({"user": user, **jwt_service.generate_token_pair(user)}), 200
