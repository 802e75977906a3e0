"""
SQLAlchemy-backed entity store.

Each public store call is one implicit transaction: mutations commit before
returning and roll back on failure. Callers must not assume atomicity across
calls; a create followed by its audit activity is two commits.
"""

import logging

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import ConflictError
from app.models import db
from app.models import registry
from app.store.base import EntityStore
from app.store.schema import TABLES

logger = logging.getLogger(__name__)


class SqlStorage(EntityStore):
    """Store that keeps every entity table in the application database."""

    def __init__(self, session=None):
        self._session = session if session is not None else db.session

    def _rows(self, kind):
        model = registry.MODELS[kind]
        return [obj.to_dict() for obj in self._session.query(model).order_by(model.id).all()]

    def _get_row(self, kind, entity_id):
        if not isinstance(entity_id, int):
            return None
        obj = self._session.get(registry.MODELS[kind], entity_id)
        return obj.to_dict() if obj is not None else None

    def _find_one(self, kind, field, value):
        model = registry.MODELS[kind]
        obj = (
            self._session.query(model)
            .filter(getattr(model, field) == value)
            .order_by(model.id)
            .first()
        )
        return obj.to_dict() if obj is not None else None

    def _filter(self, kind, field, value):
        model = registry.MODELS[kind]
        rows = (
            self._session.query(model)
            .filter(getattr(model, field) == value)
            .order_by(model.id)
            .all()
        )
        return [obj.to_dict() for obj in rows]

    def _insert(self, kind, data):
        spec = TABLES[kind]
        obj = registry.MODELS[kind]()
        obj.assign({k: v for k, v in spec.build_row(None, data).items() if k != "id"})
        self._session.add(obj)
        self._commit(kind, data)
        return obj.to_dict()

    def _patch(self, kind, entity_id, changes):
        if not isinstance(entity_id, int):
            return None
        obj = self._session.get(registry.MODELS[kind], entity_id)
        if obj is None:
            return None
        obj.assign(changes)
        self._commit(kind, changes)
        return obj.to_dict()

    def _remove(self, kind, entity_id):
        if not isinstance(entity_id, int):
            return False
        obj = self._session.get(registry.MODELS[kind], entity_id)
        if obj is None:
            return False
        self._session.delete(obj)
        self._commit(kind, {})
        return True

    def _commit(self, kind, values: dict) -> None:
        spec = TABLES[kind]
        try:
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            # A concurrent writer may have taken the business identifier
            # between the uniqueness check and the commit.
            value = values.get(spec.unique) if spec.unique else None
            if value is not None and self._find_one(kind, spec.unique, value) is not None:
                raise ConflictError(spec.label, spec.unique, value) from exc
            logger.warning("Integrity error writing %s: %s", spec.label, exc.orig)
            raise
        except Exception:
            self._session.rollback()
            raise
