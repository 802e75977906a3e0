"""Registry service layer: staff, assets and programs.

The three registries share one lifecycle. Each is created through the store
(which writes the ``<kind>_creation`` activity), and updates/deletes here log
``<kind>_update`` / ``<kind>_deletion`` against the changed row.

``site_id`` on these rows is a weak reference: it is not checked against the
site table and is left dangling when a site is deleted.
"""
import logging
from dataclasses import dataclass

from app.core.exceptions import NotFoundError, ValidationError
from app.services.activity_service import log_activity
from app.services.validation import validate_insert, validate_patch
from app.store.schema import TABLES, EntityKind, EntityRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registry:
    """Store method names and list filters for one registry kind."""

    kind: EntityKind
    singular: str
    plural: str
    filters: tuple

    @property
    def label(self) -> str:
        return TABLES[self.kind].label

    def describe(self, row: dict) -> str:
        if self.kind is EntityKind.STAFF:
            return f"{row['first_name']} {row['last_name']}"
        return row["name"]


REGISTRIES: dict[EntityKind, Registry] = {
    EntityKind.STAFF: Registry(
        EntityKind.STAFF, "staff", "staff",
        ("site_id", "verified", "department", "employment_status"),
    ),
    EntityKind.ASSET: Registry(
        EntityKind.ASSET, "asset", "assets",
        ("site_id", "category", "condition"),
    ),
    EntityKind.PROGRAM: Registry(
        EntityKind.PROGRAM, "program", "programs",
        ("site_id", "category", "status"),
    ),
}


def _registry(kind: EntityKind) -> Registry:
    try:
        return REGISTRIES[kind]
    except KeyError:
        raise ValueError(f"{kind!r} is not a registry kind") from None


def list_entities(store, kind: EntityKind, **filters) -> list[dict]:
    """Rows of *kind* matching every non-None equality filter."""
    reg = _registry(kind)
    site_id = filters.pop("site_id", None)
    if site_id is not None:
        rows = getattr(store, f"get_{reg.plural}_by_site")(site_id)
    else:
        rows = getattr(store, f"get_all_{reg.plural}")()

    for field, value in filters.items():
        if field not in reg.filters:
            raise ValidationError(f"Unknown {reg.singular} filter: {field}",
                                  details={field: "unknown filter"})
        if value is not None:
            rows = [r for r in rows if r[field] == value]
    return rows


def get_entity(store, kind: EntityKind, entity_id: int) -> dict:
    reg = _registry(kind)
    row = getattr(store, f"get_{reg.singular}")(entity_id)
    if row is None:
        raise NotFoundError(reg.label, entity_id)
    return row


def create_entity(store, kind: EntityKind, data, *, performed_by: int) -> dict:
    reg = _registry(kind)
    cleaned = validate_insert(kind, data)
    row = getattr(store, f"create_{reg.singular}")(cleaned, performed_by=performed_by)
    logger.info("%s %s created", reg.label, row[TABLES[kind].unique],
                extra={"entity_type": reg.singular, "entity_id": row["id"]})
    return row


def update_entity(store, kind: EntityKind, entity_id: int, data, *, performed_by: int) -> dict:
    reg = _registry(kind)
    get_entity(store, kind, entity_id)
    cleaned = validate_patch(kind, data)
    row = getattr(store, f"update_{reg.singular}")(entity_id, cleaned)
    log_activity(
        store, f"{reg.singular}_update", EntityRef(kind, row["id"]),
        f"Updated {reg.label.lower()}: {reg.describe(row)}", performed_by=performed_by,
    )
    return row


def delete_entity(store, kind: EntityKind, entity_id: int, *, performed_by: int) -> None:
    reg = _registry(kind)
    row = get_entity(store, kind, entity_id)
    getattr(store, f"delete_{reg.singular}")(entity_id)
    log_activity(
        store, f"{reg.singular}_deletion", EntityRef(kind, row["id"]),
        f"Removed {reg.label.lower()}: {reg.describe(row)}", performed_by=performed_by,
    )
