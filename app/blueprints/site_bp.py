"""
College Site Registry
Site Blueprint — site CRUD, assessment workflow and site-scoped listings.

Endpoints:
    Sites:
        GET    /api/v1/sites                          — List (filters: district, type,
                                                        operational_status, assessment_status, q)
        POST   /api/v1/sites                          — Create
        GET    /api/v1/sites/<id>                     — Detail
        PATCH  /api/v1/sites/<id>                     — Partial update
        DELETE /api/v1/sites/<id>                     — Delete
        GET    /api/v1/sites/<id>/overview            — Site + everything assigned to it

    Assessment:
        POST   /api/v1/sites/<id>/visits              — Record a field visit
        POST   /api/v1/sites/<id>/verification        — Mark data verified
        POST   /api/v1/sites/<id>/images              — Attach photo URLs

    Site-scoped listings:
        GET    /api/v1/sites/<id>/staff
        GET    /api/v1/sites/<id>/assets
        GET    /api/v1/sites/<id>/programs
        GET    /api/v1/sites/<id>/activities
        GET    /api/v1/sites/<id>/recommendations
        POST   /api/v1/sites/<id>/recommendations     — Raise a recommendation
"""

import logging

from flask import Blueprint, jsonify, request

from app.auth import current_actor_id, require_writer
from app.blueprints import json_body, list_response, register_error_handlers, store
from app.services import activity_service, registry_service, site_service
from app.store.schema import EntityKind
from app.utils.helpers import parse_int_arg

logger = logging.getLogger(__name__)

site_bp = Blueprint("sites", __name__, url_prefix="/api/v1")
register_error_handlers(site_bp)


# ═════════════════════════════════════════════════════════════════════════
# Sites
# ═════════════════════════════════════════════════════════════════════════


@site_bp.route("/sites", methods=["GET"])
def list_sites():
    filters = {name: request.args.get(name) for name in site_service.SITE_FILTERS}
    sites = site_service.list_sites(store(), search=request.args.get("q"), **filters)
    return jsonify(list_response(sites)), 200


@site_bp.route("/sites", methods=["POST"])
@require_writer
def create_site():
    site = site_service.create_site(store(), json_body(), performed_by=current_actor_id())
    return jsonify(site), 201


@site_bp.route("/sites/<int:site_id>", methods=["GET"])
def get_site(site_id):
    return jsonify(site_service.get_site(store(), site_id)), 200


@site_bp.route("/sites/<int:site_id>", methods=["PATCH"])
@require_writer
def update_site(site_id):
    site = site_service.update_site(store(), site_id, json_body(), performed_by=current_actor_id())
    return jsonify(site), 200


@site_bp.route("/sites/<int:site_id>", methods=["DELETE"])
@require_writer
def delete_site(site_id):
    site_service.delete_site(store(), site_id, performed_by=current_actor_id())
    return "", 204


@site_bp.route("/sites/<int:site_id>/overview", methods=["GET"])
def site_overview(site_id):
    limit = parse_int_arg(request.args.get("activity_limit"), 20, maximum=500)
    return jsonify(site_service.get_site_overview(store(), site_id, activity_limit=limit)), 200


# ═════════════════════════════════════════════════════════════════════════
# Assessment workflow
# ═════════════════════════════════════════════════════════════════════════


@site_bp.route("/sites/<int:site_id>/visits", methods=["POST"])
@require_writer
def record_visit(site_id):
    data = request.get_json(silent=True) or {}
    notes = data.get("notes") if isinstance(data, dict) else None
    site = site_service.record_visit(
        store(), site_id, performed_by=current_actor_id(),
        notes=notes if isinstance(notes, str) else None,
    )
    return jsonify(site), 200


@site_bp.route("/sites/<int:site_id>/verification", methods=["POST"])
@require_writer
def verify_site(site_id):
    site = site_service.verify_site(store(), site_id, performed_by=current_actor_id())
    return jsonify(site), 200


@site_bp.route("/sites/<int:site_id>/images", methods=["POST"])
@require_writer
def add_images(site_id):
    data = json_body()
    site = site_service.add_images(store(), site_id, data.get("urls"), performed_by=current_actor_id())
    return jsonify(site), 200


# ═════════════════════════════════════════════════════════════════════════
# Site-scoped listings
# ═════════════════════════════════════════════════════════════════════════


def _site_registry(site_id, kind):
    site_service.get_site(store(), site_id)
    rows = registry_service.list_entities(store(), kind, site_id=site_id)
    return jsonify(list_response(rows)), 200


@site_bp.route("/sites/<int:site_id>/staff", methods=["GET"])
def site_staff(site_id):
    return _site_registry(site_id, EntityKind.STAFF)


@site_bp.route("/sites/<int:site_id>/assets", methods=["GET"])
def site_assets(site_id):
    return _site_registry(site_id, EntityKind.ASSET)


@site_bp.route("/sites/<int:site_id>/programs", methods=["GET"])
def site_programs(site_id):
    return _site_registry(site_id, EntityKind.PROGRAM)


@site_bp.route("/sites/<int:site_id>/activities", methods=["GET"])
def site_activities(site_id):
    site_service.get_site(store(), site_id)
    rows = activity_service.list_activities(
        store(), entity_type="site", entity_id=site_id,
        activity_type=request.args.get("type"),
    )
    return jsonify(list_response(rows)), 200


@site_bp.route("/sites/<int:site_id>/recommendations", methods=["GET"])
def site_recommendations(site_id):
    site_service.get_site(store(), site_id)
    rows = activity_service.list_recommendations(
        store(), site_id=site_id,
        status=request.args.get("status"), priority=request.args.get("priority"),
    )
    return jsonify(list_response(rows)), 200


@site_bp.route("/sites/<int:site_id>/recommendations", methods=["POST"])
@require_writer
def create_recommendation(site_id):
    recommendation = activity_service.create_recommendation(
        store(), site_id, json_body(), performed_by=current_actor_id(),
    )
    return jsonify(recommendation), 201
