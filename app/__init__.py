"""
College Site Registry
Flask Application Factory.

Usage:
    from app import create_app
    app = create_app()                 # defaults to APP_ENV or "development"
    app = create_app("testing")        # explicit config
    app = create_app("testing", store=MemStorage())   # injected store
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from app.auth import init_auth
from app.config import config
from app.middleware.logging_config import configure_logging
from app.middleware.rate_limiter import init_rate_limits
from app.middleware.timing import init_request_timing
from app.models import db
from app.store import init_store
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)

migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # limits are applied per blueprint
)


def create_app(config_name=None, *, store=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "testing_sql", "production".
                     Defaults to APP_ENV env var, or "development" if unset.
        store: Optional pre-built entity store; overrides STORE_BACKEND.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Database tables (SQL store only) ─────────────────────────────────
    from app.models import registry as _registry_models  # noqa: F401

    if store is None and app.config.get("STORE_BACKEND") == "sql":
        if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///"):
            os.makedirs(os.path.join(os.path.dirname(app.root_path), "instance"), exist_ok=True)
        with app.app_context():
            db.create_all()
            app.logger.info("db.create_all() completed successfully")

    # ── Entity store ─────────────────────────────────────────────────────
    init_store(app, store)

    # ── Request id + timing (registered before auth) ─────────────────────
    init_request_timing(app)

    # ── Authentication / actor middleware ────────────────────────────────
    init_auth(app)

    # ── Blueprints ───────────────────────────────────────────────────────
    from app.blueprints.activity_bp import activity_bp
    from app.blueprints.health_bp import health_bp
    from app.blueprints.registry_bp import registry_bp
    from app.blueprints.reporting_bp import reporting_bp
    from app.blueprints.site_bp import site_bp
    from app.blueprints.user_bp import user_bp

    app.register_blueprint(site_bp)
    app.register_blueprint(registry_bp)
    app.register_blueprint(activity_bp)
    app.register_blueprint(user_bp)
    app.register_blueprint(reporting_bp)
    app.register_blueprint(health_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-sample-data")
    def seed_sample_data_cmd():
        """Load the sample districts, sites, staff and logins into an empty store."""
        from app.store import get_store
        from app.store.seed import seed_sample_data
        if seed_sample_data(get_store(), rounds=app.config["BCRYPT_ROUNDS"]):
            logger.info("Sample data loaded.")
        else:
            logger.info("Store already has users; nothing loaded.")

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(400)
    def bad_request(e):
        return api_error(E.BAD_REQUEST, e.description or "Bad request")

    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "code": E.NOT_FOUND, "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return api_error(E.BAD_REQUEST, "Request body too large", status=413)

    @app.errorhandler(429)
    def rate_limited(e):
        return api_error(E.RATE_LIMITED, "Too many requests", details={"limit": e.description})

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        db.session.rollback()
        logger.exception("Database error on %s %s", request.method, request.path)
        return api_error(E.DATABASE, "Database error")

    @app.errorhandler(Exception)
    def server_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return api_error(E.INTERNAL, "Internal server error")

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
