"""
Health check blueprint.

Endpoints:
    GET /api/v1/health        — process is up
    GET /api/v1/health/ready  — readiness check for load balancers
    GET /api/v1/health/live   — store (and database, for the SQL backend) checks;
                                503 when any check fails

Health checks bypass actor resolution and rate limits.
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from app.models import db
from app.store import SqlStorage, get_store

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")

APP_NAME = "College Site Registry"


def _timed(check):
    """Run *check* and return ``(result, elapsed_ms)``."""
    started = time.perf_counter()
    result = check()
    return result, round((time.perf_counter() - started) * 1000, 1)


def _store_check(store) -> dict:
    try:
        site_count, ms = _timed(lambda: len(store.get_all_sites()))
    except Exception as exc:
        logger.error("Health check: store read failed: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "backend": type(store).__name__, "sites": site_count, "latency_ms": ms}


def _database_check(store) -> dict:
    if not isinstance(store, SqlStorage):
        return {"status": "skipped", "detail": "memory store in use"}
    try:
        _, ms = _timed(lambda: db.session.execute(db.text("SELECT 1")))
    except Exception as exc:
        logger.error("Health check: database ping failed: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "latency_ms": ms}


@health_bp.route("", methods=["GET"])
def health():
    return jsonify({"status": "ok", "app": APP_NAME}), 200


@health_bp.route("/ready", methods=["GET"])
def ready():
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    store = get_store()
    checks = {
        "store": _store_check(store),
        "database": _database_check(store),
    }
    healthy = all(c["status"] != "error" for c in checks.values())
    checks["app"] = {
        "name": APP_NAME,
        "debug": current_app.debug,
        "testing": current_app.testing,
    }
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "checks": checks,
    }), 200 if healthy else 503
