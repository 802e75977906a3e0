"""
College Site Registry
Registry Blueprint — CRUD API for staff, assets and programs.

Endpoints (same shape for each collection):
    GET    /api/v1/staff            — List (filters: site_id, verified, department, employment_status)
    POST   /api/v1/staff            — Create
    GET    /api/v1/staff/<id>       — Detail
    PATCH  /api/v1/staff/<id>       — Partial update
    DELETE /api/v1/staff/<id>       — Delete

    /api/v1/assets    (filters: site_id, category, condition)
    /api/v1/programs  (filters: site_id, category, status)
"""

import logging

from flask import Blueprint, jsonify, request

from app.auth import current_actor_id, require_writer
from app.blueprints import json_body, list_response, register_error_handlers, store
from app.services import registry_service
from app.services.registry_service import REGISTRIES
from app.store.schema import EntityKind
from app.utils.helpers import parse_bool, parse_int_arg

logger = logging.getLogger(__name__)

registry_bp = Blueprint("registry", __name__, url_prefix="/api/v1")
register_error_handlers(registry_bp)

# URL collection name -> entity kind
COLLECTIONS = {
    "staff": EntityKind.STAFF,
    "assets": EntityKind.ASSET,
    "programs": EntityKind.PROGRAM,
}


def _filters(kind: EntityKind) -> dict:
    """Read the kind's list filters from the query string."""
    filters = {}
    for name in REGISTRIES[kind].filters:
        raw = request.args.get(name)
        if raw is None:
            continue
        if name == "site_id":
            filters[name] = parse_int_arg(raw, default=-1)
        elif name == "verified":
            filters[name] = parse_bool(raw)
        else:
            filters[name] = raw
    return filters


def _register_collection(collection: str, kind: EntityKind) -> None:
    """Attach the five CRUD routes for one registry collection."""

    def list_view():
        rows = registry_service.list_entities(store(), kind, **_filters(kind))
        return jsonify(list_response(rows)), 200

    @require_writer
    def create_view():
        row = registry_service.create_entity(store(), kind, json_body(),
                                             performed_by=current_actor_id())
        return jsonify(row), 201

    def get_view(entity_id):
        return jsonify(registry_service.get_entity(store(), kind, entity_id)), 200

    @require_writer
    def update_view(entity_id):
        row = registry_service.update_entity(store(), kind, entity_id, json_body(),
                                             performed_by=current_actor_id())
        return jsonify(row), 200

    @require_writer
    def delete_view(entity_id):
        registry_service.delete_entity(store(), kind, entity_id, performed_by=current_actor_id())
        return "", 204

    registry_bp.add_url_rule(f"/{collection}", f"list_{collection}", list_view, methods=["GET"])
    registry_bp.add_url_rule(f"/{collection}", f"create_{collection}", create_view, methods=["POST"])
    registry_bp.add_url_rule(f"/{collection}/<int:entity_id>", f"get_{collection}", get_view,
                             methods=["GET"])
    registry_bp.add_url_rule(f"/{collection}/<int:entity_id>", f"update_{collection}", update_view,
                             methods=["PATCH"])
    registry_bp.add_url_rule(f"/{collection}/<int:entity_id>", f"delete_{collection}", delete_view,
                             methods=["DELETE"])


for _collection, _kind in COLLECTIONS.items():
    _register_collection(_collection, _kind)
