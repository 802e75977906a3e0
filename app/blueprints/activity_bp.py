"""
College Site Registry
Activity Blueprint — audit trail and recommendations.

Endpoints:
    Activities (append-only; there is no update or delete):
        GET    /api/v1/activities                 — List, newest first
                                                    (filters: type, entity_type, entity_id,
                                                     performed_by, limit)
        GET    /api/v1/activities/<id>            — Detail
        POST   /api/v1/activities                 — Log a manual activity

    Recommendations (created under /sites/<id>/recommendations):
        GET    /api/v1/recommendations            — List (filters: site_id, status, priority)
        GET    /api/v1/recommendations/<id>       — Detail
        PATCH  /api/v1/recommendations/<id>       — Update (status, priority, ...)
        DELETE /api/v1/recommendations/<id>       — Delete
"""

import logging

from flask import Blueprint, jsonify, request

from app.auth import current_actor_id, require_writer
from app.blueprints import json_body, list_response, register_error_handlers, store
from app.services import activity_service
from app.utils.helpers import parse_int_arg

logger = logging.getLogger(__name__)

activity_bp = Blueprint("activities", __name__, url_prefix="/api/v1")
register_error_handlers(activity_bp)


# ═════════════════════════════════════════════════════════════════════════
# Activities
# ═════════════════════════════════════════════════════════════════════════


@activity_bp.route("/activities", methods=["GET"])
def list_activities():
    args = request.args
    rows = activity_service.list_activities(
        store(),
        activity_type=args.get("type"),
        entity_type=args.get("entity_type"),
        entity_id=parse_int_arg(args.get("entity_id")),
        performed_by=parse_int_arg(args.get("performed_by")),
    )
    return jsonify(list_response(rows)), 200


@activity_bp.route("/activities/<int:activity_id>", methods=["GET"])
def get_activity(activity_id):
    return jsonify(activity_service.get_activity(store(), activity_id)), 200


@activity_bp.route("/activities", methods=["POST"])
@require_writer
def create_activity():
    activity = activity_service.record_activity(store(), json_body(), performed_by=current_actor_id())
    return jsonify(activity), 201


# ═════════════════════════════════════════════════════════════════════════
# Recommendations
# ═════════════════════════════════════════════════════════════════════════


@activity_bp.route("/recommendations", methods=["GET"])
def list_recommendations():
    rows = activity_service.list_recommendations(
        store(),
        site_id=parse_int_arg(request.args.get("site_id")),
        status=request.args.get("status"),
        priority=request.args.get("priority"),
    )
    return jsonify(list_response(rows)), 200


@activity_bp.route("/recommendations/<int:recommendation_id>", methods=["GET"])
def get_recommendation(recommendation_id):
    return jsonify(activity_service.get_recommendation(store(), recommendation_id)), 200


@activity_bp.route("/recommendations/<int:recommendation_id>", methods=["PATCH"])
@require_writer
def update_recommendation(recommendation_id):
    recommendation = activity_service.update_recommendation(
        store(), recommendation_id, json_body(), performed_by=current_actor_id(),
    )
    return jsonify(recommendation), 200


@activity_bp.route("/recommendations/<int:recommendation_id>", methods=["DELETE"])
@require_writer
def delete_recommendation(recommendation_id):
    activity_service.delete_recommendation(store(), recommendation_id, performed_by=current_actor_id())
    return "", 204
