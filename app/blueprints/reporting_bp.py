"""
College Site Registry
Reporting Blueprint — dashboard aggregates, district summaries, map feed
and report downloads.

Endpoints:
    GET /api/v1/dashboard/stats                     — Assessment progress
    GET /api/v1/dashboard/breakdowns                — Counts by type/status/condition
    GET /api/v1/districts                           — Per-district summaries
    GET /api/v1/map/sites                           — GeoJSON (filters: district, type,
                                                      operational_status, assessment_status)
    GET /api/v1/exports/<report>?format=csv|xlsx    — sites | staff | assets | programs
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, Response, jsonify, request, send_file

from app.blueprints import register_error_handlers, store
from app.core.exceptions import ValidationError
from app.services import dashboard_service, export_service

logger = logging.getLogger(__name__)

reporting_bp = Blueprint("reporting", __name__, url_prefix="/api/v1")
register_error_handlers(reporting_bp)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@reporting_bp.route("/dashboard/stats", methods=["GET"])
def dashboard_stats():
    return jsonify(dashboard_service.get_site_stats(store())), 200


@reporting_bp.route("/dashboard/breakdowns", methods=["GET"])
def dashboard_breakdowns():
    return jsonify(dashboard_service.get_breakdowns(store())), 200


@reporting_bp.route("/districts", methods=["GET"])
def districts():
    summaries = dashboard_service.get_district_summaries(store())
    return jsonify({"items": summaries, "total": len(summaries)}), 200


@reporting_bp.route("/map/sites", methods=["GET"])
def map_sites():
    filters = {name: request.args.get(name) for name in dashboard_service.MAP_FILTERS}
    return jsonify(dashboard_service.get_site_map(store(), **filters)), 200


@reporting_bp.route("/exports/<report>", methods=["GET"])
def export_report(report):
    fmt = request.args.get("format", "csv").lower()
    if fmt not in export_service.FORMATS:
        raise ValidationError(
            f"Unsupported export format: {fmt}",
            details={"format": f"must be one of {list(export_service.FORMATS)}"},
        )
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
    filename = f"{report}_{stamp}.{fmt}"

    if fmt == "xlsx":
        buf = export_service.export_xlsx(store(), report)
        return send_file(buf, mimetype=XLSX_MIMETYPE, as_attachment=True, download_name=filename)

    content = export_service.export_csv(store(), report)
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
