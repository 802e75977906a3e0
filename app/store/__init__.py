"""
Entity store wiring.

The active store is created once per app by ``init_store`` and kept on
``app.extensions["entity_store"]``. Blueprints fetch it with ``get_store()``
and hand it to the service functions explicitly; nothing below the HTTP
layer reaches for a global.

    STORE_BACKEND=memory   MemStorage (default for development and tests)
    STORE_BACKEND=sql      SqlStorage on the Flask-SQLAlchemy session
"""

import logging

from flask import current_app

from app.store.base import EntityStore
from app.store.memory import MemStorage
from app.store.schema import EntityKind, EntityRef
from app.store.seed import seed_sample_data
from app.store.sql import SqlStorage

logger = logging.getLogger(__name__)

EXTENSION_KEY = "entity_store"

BACKENDS = {
    "memory": MemStorage,
    "sql": SqlStorage,
}

__all__ = [
    "EntityKind",
    "EntityRef",
    "EntityStore",
    "MemStorage",
    "SqlStorage",
    "get_store",
    "init_store",
]


def build_store(backend: str) -> EntityStore:
    try:
        factory = BACKENDS[backend]
    except KeyError:
        raise RuntimeError(
            f"Unknown STORE_BACKEND {backend!r}; expected one of {sorted(BACKENDS)}"
        ) from None
    return factory()


def init_store(app, store: EntityStore | None = None) -> EntityStore:
    """Attach an entity store to *app*, seeding sample data when configured.

    Pass *store* to inject a prepared instance (tests do this); otherwise
    the backend named by ``STORE_BACKEND`` is built.
    """
    if store is None:
        store = build_store(app.config.get("STORE_BACKEND", "memory"))
    app.extensions[EXTENSION_KEY] = store
    logger.info("Entity store ready: %s", type(store).__name__)

    if app.config.get("SEED_SAMPLE_DATA"):
        with app.app_context():
            seed_sample_data(store, rounds=app.config.get("BCRYPT_ROUNDS", 12))
    return store


def get_store() -> EntityStore:
    """Return the store bound to the current app."""
    return current_app.extensions[EXTENSION_KEY]
