"""Site service layer: business logic for college sites.

Provides:
- Site CRUD (create is audited by the store, update/delete here)
- Assessment workflow: record a visit, mark data verified
- Photo URL attachment
- Site overview: the site plus everything assigned to it
"""
import logging

from app.core.exceptions import NotFoundError, ValidationError
from app.services.activity_service import list_activities, log_activity
from app.services.validation import validate_insert, validate_patch
from app.store.base import utc_now_iso
from app.store.schema import EntityKind, EntityRef

logger = logging.getLogger(__name__)

STATUS_TO_VISIT = "To Visit"
STATUS_VISITED = "Visited"
STATUS_VERIFIED = "Data Verified"

# Query-string filters accepted by ``list_sites``
SITE_FILTERS = ("district", "type", "operational_status", "assessment_status")


def _ref(site: dict) -> EntityRef:
    return EntityRef(EntityKind.SITE, site["id"])


def get_site(store, site_id: int) -> dict:
    site = store.get_site(site_id)
    if site is None:
        raise NotFoundError("Site", site_id)
    return site


def list_sites(store, *, search: str | None = None, **filters) -> list[dict]:
    """All sites matching the equality *filters* and a free-text *search*."""
    rows = store.get_all_sites()
    for field, value in filters.items():
        if field not in SITE_FILTERS:
            raise ValidationError(f"Unknown site filter: {field}", details={field: "unknown filter"})
        if value is not None:
            rows = [s for s in rows if s[field] == value]
    if search:
        needle = search.strip().lower()
        rows = [
            s for s in rows
            if needle in (s["name"] or "").lower()
            or needle in (s["site_id"] or "").lower()
            or needle in (s["physical_address"] or "").lower()
        ]
    return rows


def create_site(store, data, *, performed_by: int) -> dict:
    cleaned = validate_insert(EntityKind.SITE, data)
    site = store.create_site(cleaned, performed_by=performed_by)
    logger.info("Site %s created", site["site_id"], extra={"entity_id": site["id"]})
    return site


def update_site(store, site_id: int, data, *, performed_by: int) -> dict:
    get_site(store, site_id)
    cleaned = validate_patch(EntityKind.SITE, data)
    site = store.update_site(site_id, cleaned)
    log_activity(store, "site_update", _ref(site), f"Updated site: {site['name']}",
                 performed_by=performed_by)
    return site


def delete_site(store, site_id: int, *, performed_by: int) -> None:
    """Delete a site. Staff, assets and programs keep their dangling site_id."""
    site = get_site(store, site_id)
    store.delete_site(site_id)
    log_activity(store, "site_deletion", _ref(site), f"Deleted site: {site['name']}",
                 performed_by=performed_by)


# ── Assessment workflow ──────────────────────────────────────────────────


def record_visit(store, site_id: int, *, performed_by: int, notes: str | None = None) -> dict:
    """Stamp a field visit. A verified site keeps its Data Verified status."""
    site = get_site(store, site_id)
    changes = {
        "last_visited_by": performed_by,
        "last_visit_date": utc_now_iso(),
    }
    if site["assessment_status"] != STATUS_VERIFIED:
        changes["assessment_status"] = STATUS_VISITED
    site = store.update_site(site_id, changes)

    description = f"Completed site visit to {site['name']}"
    if notes:
        description = f"{description}: {notes.strip()}"
    log_activity(store, "site_visit", _ref(site), description, performed_by=performed_by)
    return site


def verify_site(store, site_id: int, *, performed_by: int) -> dict:
    """Mark a visited site's data as verified."""
    site = get_site(store, site_id)
    if site["assessment_status"] == STATUS_TO_VISIT:
        raise ValidationError(
            "Site must be visited before its data can be verified",
            details={"assessment_status": f"is '{STATUS_TO_VISIT}'"},
        )
    site = store.update_site(site_id, {"assessment_status": STATUS_VERIFIED})
    log_activity(store, "data_verification", _ref(site), f"Verified data for {site['name']}",
                 performed_by=performed_by)
    return site


def add_images(store, site_id: int, urls, *, performed_by: int) -> dict:
    """Append photo URLs to a site, skipping ones it already has."""
    site = get_site(store, site_id)
    if not isinstance(urls, list) or not urls or not all(isinstance(u, str) and u.strip() for u in urls):
        raise ValidationError("urls must be a non-empty list of strings",
                              details={"urls": "must be a non-empty list of strings"})

    images = list(site["images"] or [])
    added = []
    for url in (u.strip() for u in urls):
        if url not in images:
            images.append(url)
            added.append(url)
    if not added:
        return site
    site = store.update_site(site_id, {"images": images})

    noun = "photo" if len(added) == 1 else "photos"
    count = len(added)
    log_activity(store, "photo_upload", _ref(site), f"Added {count} new {noun} for {site['name']}",
                 performed_by=performed_by)
    return site


# ── Overview ─────────────────────────────────────────────────────────────


def get_site_overview(store, site_id: int, *, activity_limit: int | None = 20) -> dict:
    site = get_site(store, site_id)
    staff = store.get_staff_by_site(site_id)
    assets = store.get_assets_by_site(site_id)
    programs = store.get_programs_by_site(site_id)
    recommendations = store.get_recommendations_by_site(site_id)
    activities = list_activities(store, entity_type="site", entity_id=site_id, limit=activity_limit)
    return {
        "site": site,
        "staff": staff,
        "assets": assets,
        "programs": programs,
        "recommendations": recommendations,
        "activities": activities,
        "summary": {
            "staff_count": len(staff),
            "verified_staff_count": sum(1 for s in staff if s["verified"]),
            "asset_count": len(assets),
            "program_count": len(programs),
            "total_enrollment": sum(p["enrollment_count"] or 0 for p in programs),
            "open_recommendations": sum(1 for r in recommendations if r["status"] == "Open"),
        },
    }
