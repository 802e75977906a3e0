"""
Dashboard & map aggregates.

Computes, from the current store contents:
  - Site assessment progress (visited / verified / pending with percentages)
  - Breakdowns: sites by type, status and district; assets by condition;
    staff verification; programs by status
  - District summaries
  - GeoJSON feature collection for the site map
"""

import logging
from collections import Counter, defaultdict

from app.core.exceptions import ValidationError
from app.services.site_service import STATUS_TO_VISIT, STATUS_VERIFIED, STATUS_VISITED

logger = logging.getLogger(__name__)

MAP_FILTERS = ("district", "type", "operational_status", "assessment_status")


def _pct(part: int, total: int) -> int:
    """Whole-number percentage; 0 when there is nothing to divide."""
    return round(part / total * 100) if total else 0


def get_site_stats(store) -> dict:
    """Assessment progress across all sites."""
    sites = store.get_all_sites()
    total = len(sites)
    statuses = Counter(s["assessment_status"] for s in sites)
    visited = statuses[STATUS_VISITED] + statuses[STATUS_VERIFIED]
    verified = statuses[STATUS_VERIFIED]
    pending = statuses[STATUS_TO_VISIT]
    return {
        "total_sites": total,
        "visited_sites": visited,
        "verified_sites": verified,
        "pending_sites": pending,
        "visited_pct": _pct(visited, total),
        "verified_pct": _pct(verified, total),
        "pending_pct": _pct(pending, total),
        "total_staff": len(store.get_all_staff()),
        "total_assets": len(store.get_all_assets()),
        "total_programs": len(store.get_all_programs()),
    }


def get_breakdowns(store) -> dict:
    sites = store.get_all_sites()
    assets = store.get_all_assets()
    staff = store.get_all_staff()
    programs = store.get_all_programs()
    verified_staff = sum(1 for s in staff if s["verified"])
    return {
        "sites_by_type": dict(Counter(s["type"] for s in sites)),
        "sites_by_operational_status": dict(Counter(s["operational_status"] for s in sites)),
        "sites_by_assessment_status": dict(Counter(s["assessment_status"] for s in sites)),
        "sites_by_district": dict(Counter(s["district"] for s in sites)),
        "assets_by_condition": dict(Counter(a["condition"] for a in assets)),
        "assets_by_category": dict(Counter(a["category"] for a in assets)),
        "staff_verification": {
            "verified": verified_staff,
            "unverified": len(staff) - verified_staff,
            "verified_pct": _pct(verified_staff, len(staff)),
        },
        "programs_by_status": dict(Counter(p["status"] for p in programs)),
    }


def get_district_summaries(store) -> list[dict]:
    """Per-district site, staff and enrollment totals, sorted by district name."""
    sites = store.get_all_sites()
    by_district = defaultdict(list)
    for site in sites:
        by_district[site["district"]].append(site)

    staff_per_site = Counter(s["site_id"] for s in store.get_all_staff())
    enrollment_per_site = defaultdict(int)
    for program in store.get_all_programs():
        enrollment_per_site[program["site_id"]] += program["enrollment_count"] or 0

    summaries = []
    for district in sorted(by_district):
        members = by_district[district]
        statuses = Counter(s["assessment_status"] for s in members)
        summaries.append({
            "district": district,
            "site_count": len(members),
            "site_types": dict(Counter(s["type"] for s in members)),
            "verified_sites": statuses[STATUS_VERIFIED],
            "pending_sites": statuses[STATUS_TO_VISIT],
            "staff_count": sum(staff_per_site[s["id"]] for s in members),
            "total_enrollment": sum(enrollment_per_site[s["id"]] for s in members),
        })
    return summaries


def get_site_map(store, **filters) -> dict:
    """GeoJSON FeatureCollection of sites with coordinates.

    Sites without GPS coordinates are left out and counted in
    ``metadata.missing_coordinates``.
    """
    sites = store.get_all_sites()
    for field, value in filters.items():
        if field not in MAP_FILTERS:
            raise ValidationError(f"Unknown map filter: {field}", details={field: "unknown filter"})
        if value is not None:
            sites = [s for s in sites if s[field] == value]

    features = []
    missing = 0
    for site in sites:
        if site["gps_lat"] is None or site["gps_lng"] is None:
            missing += 1
            continue
        features.append({
            "type": "Feature",
            "geometry": {
                "type": "Point",
                # GeoJSON order is [longitude, latitude]
                "coordinates": [site["gps_lng"], site["gps_lat"]],
            },
            "properties": {
                "id": site["id"],
                "site_id": site["site_id"],
                "name": site["name"],
                "type": site["type"],
                "district": site["district"],
                "operational_status": site["operational_status"],
                "assessment_status": site["assessment_status"],
            },
        })
    if missing:
        logger.debug("%d sites omitted from map without coordinates", missing)
    return {
        "type": "FeatureCollection",
        "features": features,
        "metadata": {"total": len(sites), "mapped": len(features), "missing_coordinates": missing},
    }
