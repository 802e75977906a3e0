"""Activity and recommendation service layer.

Activities are the append-only audit trail. Service functions that change
registry data call ``log_activity`` after the primary write; the two writes
are separate store calls and a failing audit write does not undo the first.

Recommendations are site improvement tasks raised during assessment. They are
their own mutable entity; raising, updating and deleting one is logged as an
activity against the owning site.
"""
import logging

from app.core.exceptions import NotFoundError, ValidationError
from app.services.validation import validate_insert, validate_patch
from app.store.schema import EntityKind, EntityRef

logger = logging.getLogger(__name__)

# Store lookups used to confirm that a reference names a live row
_GETTERS = {
    EntityKind.SITE: "get_site",
    EntityKind.STAFF: "get_staff",
    EntityKind.ASSET: "get_asset",
    EntityKind.PROGRAM: "get_program",
}


def entity_exists(store, ref: EntityRef) -> bool:
    return getattr(store, _GETTERS[ref.kind])(ref.id) is not None


def log_activity(store, activity_type: str, ref: EntityRef | None, description: str,
                 *, performed_by: int) -> dict:
    """Append one activity for a write the caller has already made."""
    data = {
        "type": activity_type,
        "description": description,
        "related_entity_type": None,
        "related_entity_id": None,
        "performed_by": performed_by,
    }
    if ref is not None:
        data.update(ref.as_fields())
    activity = store.create_activity(data)
    logger.info(
        "Activity %s: %s", activity_type, description,
        extra={"actor_id": performed_by,
               "entity_type": ref.kind.value if ref else None,
               "entity_id": ref.id if ref else None},
    )
    return activity


# ═══════════════════════════════════════════════════════════════
# Activities
# ═══════════════════════════════════════════════════════════════


def record_activity(store, data, *, performed_by: int) -> dict:
    """Log a manual activity. A related entity, when given, must exist."""
    if isinstance(data, dict) and "performed_by" in data:
        raise ValidationError(
            "performed_by is taken from the acting user",
            details={"performed_by": "is assigned by the server and cannot be set"},
        )
    cleaned = validate_insert(
        EntityKind.ACTIVITY,
        {**data, "performed_by": performed_by} if isinstance(data, dict) else data,
    )

    entity_type = cleaned.get("related_entity_type")
    entity_id = cleaned.get("related_entity_id")
    ref = None
    if entity_type is not None or entity_id is not None:
        if entity_type is None or entity_id is None:
            raise ValidationError(
                "related_entity_type and related_entity_id must be given together",
                details={"related_entity_type": "required with related_entity_id",
                         "related_entity_id": "required with related_entity_type"},
            )
        ref = EntityRef.parse(entity_type, entity_id)
        if not entity_exists(store, ref):
            raise ValidationError(
                f"Related {ref.kind.value} {ref.id} does not exist",
                details={"related_entity_id": f"no {ref.kind.value} with id {ref.id}"},
            )

    return log_activity(store, cleaned["type"], ref, cleaned["description"],
                        performed_by=performed_by)


def get_activity(store, activity_id: int) -> dict:
    activity = store.get_activity(activity_id)
    if activity is None:
        raise NotFoundError("Activity", activity_id)
    return activity


def list_activities(
    store,
    *,
    activity_type: str | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    performed_by: int | None = None,
    limit: int | None = None,
) -> list[dict]:
    """Activities matching every given filter, newest first."""
    if entity_type is not None and entity_id is not None:
        ref = EntityRef.parse(entity_type, entity_id)
        if ref.kind is EntityKind.SITE:
            rows = store.get_activities_by_site(ref.id)
        else:
            rows = [
                a for a in store.get_all_activities()
                if a["related_entity_type"] == ref.kind.value and a["related_entity_id"] == ref.id
            ]
    else:
        rows = store.get_all_activities()
        if entity_type is not None:
            rows = [a for a in rows if a["related_entity_type"] == entity_type]

    if activity_type is not None:
        rows = [a for a in rows if a["type"] == activity_type]
    if performed_by is not None:
        rows = [a for a in rows if a["performed_by"] == performed_by]

    # ISO timestamps sort lexically; id breaks ties within one clock tick
    rows.sort(key=lambda a: (a["timestamp"] or "", a["id"]), reverse=True)
    if limit is not None:
        rows = rows[:limit]
    return rows


# ═══════════════════════════════════════════════════════════════
# Recommendations
# ═══════════════════════════════════════════════════════════════


def _require_site(store, site_id: int) -> dict:
    site = store.get_site(site_id)
    if site is None:
        raise NotFoundError("Site", site_id)
    return site


def get_recommendation(store, recommendation_id: int) -> dict:
    recommendation = store.get_recommendation(recommendation_id)
    if recommendation is None:
        raise NotFoundError("Recommendation", recommendation_id)
    return recommendation


def list_recommendations(store, *, site_id: int | None = None, status: str | None = None,
                         priority: str | None = None) -> list[dict]:
    if site_id is not None:
        rows = store.get_recommendations_by_site(site_id)
    else:
        rows = store.get_all_recommendations()
    if status is not None:
        rows = [r for r in rows if r["status"] == status]
    if priority is not None:
        rows = [r for r in rows if r["priority"] == priority]
    return rows


def create_recommendation(store, site_id: int, data, *, performed_by: int) -> dict:
    """Raise a recommendation against an existing site."""
    site = _require_site(store, site_id)
    if isinstance(data, dict) and "site_id" in data and data["site_id"] != site_id:
        raise ValidationError(
            "site_id in the body does not match the URL",
            details={"site_id": f"must be {site_id} or omitted"},
        )
    payload = {**data, "site_id": site_id} if isinstance(data, dict) else data
    cleaned = validate_insert(EntityKind.RECOMMENDATION, payload)

    recommendation = store.create_recommendation(cleaned, performed_by=performed_by)
    log_activity(
        store, "recommendation", EntityRef(EntityKind.SITE, site["id"]),
        f"Added recommendation for {site['name']}: {recommendation['title']}",
        performed_by=performed_by,
    )
    return recommendation


def update_recommendation(store, recommendation_id: int, data, *, performed_by: int) -> dict:
    existing = get_recommendation(store, recommendation_id)
    cleaned = validate_patch(EntityKind.RECOMMENDATION, data)
    if "site_id" in cleaned and cleaned["site_id"] != existing["site_id"]:
        _require_site(store, cleaned["site_id"])

    updated = store.update_recommendation(recommendation_id, cleaned)
    if "status" in cleaned and cleaned["status"] != existing["status"]:
        description = f"Recommendation '{updated['title']}' marked {updated['status']}"
    else:
        description = f"Updated recommendation: {updated['title']}"
    log_activity(
        store, "recommendation_update", EntityRef(EntityKind.SITE, updated["site_id"]),
        description, performed_by=performed_by,
    )
    return updated


def delete_recommendation(store, recommendation_id: int, *, performed_by: int) -> None:
    existing = get_recommendation(store, recommendation_id)
    store.delete_recommendation(recommendation_id)
    log_activity(
        store, "recommendation_deletion", EntityRef(EntityKind.SITE, existing["site_id"]),
        f"Removed recommendation: {existing['title']}", performed_by=performed_by,
    )
