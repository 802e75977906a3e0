"""
Rate limiting configuration.

The Limiter instance is created in app/__init__.py with no default limits;
this module applies granular limits per blueprint.

Usage:
    from app.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"
LOGIN_LIMIT = "10/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Login:           10/minute  (credential guessing)
        - Registry CRUD:   60/minute
        - Reporting:       200/minute (dashboard polling, exports)
        - Health check:    exempt

    Rate limiting is disabled when RATELIMIT_ENABLED is false (testing).
    """

    if not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled (RATELIMIT_ENABLED=False)")
        return

    for bp_name in ("sites", "registry", "activities"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT, methods=["POST", "PATCH", "DELETE"])(bp)

    bp = app.blueprints.get("users")
    if bp:
        limiter.limit(WRITE_LIMIT, methods=["POST", "PATCH"])(bp)
        login_view = app.view_functions.get("users.login")
        if login_view is not None:
            limiter.limit(LOGIN_LIMIT)(login_view)

    bp = app.blueprints.get("reporting")
    if bp:
        limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: login=%s write=%s read=%s",
        LOGIN_LIMIT, WRITE_LIMIT, READ_LIMIT,
    )
