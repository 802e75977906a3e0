"""
College Site Registry
Tests — Site API.

Covers:
    - Sites CRUD, filters and search
    - Actor and role checks on writes
    - Visit / verification / photo workflow
    - Site overview and site-scoped listings
    - Error mapping: 400, 401, 403, 404, 409, 422
"""

import json
from datetime import datetime, timedelta, timezone

import jwt as pyjwt

from app.services import jwt_service


def _site_payload(n=1, **overrides):
    payload = {
        "site_id": f"CLC-{n:03d}",
        "name": f"Mahikeng CLC {n}",
        "type": "CLC",
        "district": "Ngaka Modiri Molema",
        "physical_address": "123 Main Street, Mahikeng",
        "gps_lat": -25.8525,
        "gps_lng": 25.6434,
        "operational_status": "Active",
        "assessment_status": "To Visit",
    }
    payload.update(overrides)
    return payload


def _create_site(client, headers, n=1, **overrides):
    res = client.post("/api/v1/sites", json=_site_payload(n, **overrides), headers=headers)
    assert res.status_code == 201, res.get_json()
    return res.get_json()


def _token(app, claims, *, secret=None):
    now = datetime.now(timezone.utc)
    payload = {"iat": now, "exp": now + timedelta(minutes=5), **claims}
    return pyjwt.encode(payload, secret or app.config["SECRET_KEY"], algorithm="HS256")


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


# ═════════════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════════════


def test_create_site(client, assessor, assessor_headers):
    site = _create_site(client, assessor_headers, classrooms=8, has_library=True)
    assert site["id"] == 1
    assert site["site_id"] == "CLC-001"
    assert site["classrooms"] == 8
    assert site["has_library"] is True
    assert site["created_by"] == assessor["id"]
    assert site["images"] == []


def test_create_site_logs_creation_activity(client, assessor, assessor_headers):
    site = _create_site(client, assessor_headers)
    res = client.get(f"/api/v1/sites/{site['id']}/activities")
    assert res.status_code == 200
    items = res.get_json()["items"]
    assert len(items) == 1
    assert items[0]["type"] == "site_creation"
    assert items[0]["performed_by"] == assessor["id"]


def test_list_sites(client, admin_headers):
    _create_site(client, admin_headers, 1)
    _create_site(client, admin_headers, 2, type="Satellite")
    res = client.get("/api/v1/sites")
    assert res.status_code == 200
    data = res.get_json()
    assert data["total"] == 2
    assert [s["site_id"] for s in data["items"]] == ["CLC-001", "CLC-002"]


def test_list_sites_filters(client, admin_headers):
    _create_site(client, admin_headers, 1)
    _create_site(client, admin_headers, 2, type="Satellite", district="Bojanala")
    res = client.get("/api/v1/sites?type=Satellite")
    assert [s["site_id"] for s in res.get_json()["items"]] == ["CLC-002"]
    res = client.get("/api/v1/sites?district=Bojanala&type=CLC")
    assert res.get_json()["total"] == 0


def test_list_sites_search(client, admin_headers):
    _create_site(client, admin_headers, 1, name="Rustenburg Centre")
    _create_site(client, admin_headers, 2)
    res = client.get("/api/v1/sites?q=rustenburg")
    assert [s["name"] for s in res.get_json()["items"]] == ["Rustenburg Centre"]


def test_list_sites_pagination(client, admin_headers):
    for n in range(1, 6):
        _create_site(client, admin_headers, n)
    res = client.get("/api/v1/sites?limit=2&offset=2")
    data = res.get_json()
    assert data["total"] == 5
    assert [s["id"] for s in data["items"]] == [3, 4]


def test_get_site(client, admin_headers):
    site = _create_site(client, admin_headers)
    res = client.get(f"/api/v1/sites/{site['id']}")
    assert res.status_code == 200
    assert res.get_json() == site


def test_get_site_not_found(client):
    res = client.get("/api/v1/sites/999")
    assert res.status_code == 404
    assert res.get_json()["code"] == "ERR_NOT_FOUND"


def test_update_site(client, admin, admin_headers):
    site = _create_site(client, admin_headers, classrooms=4)
    res = client.patch(f"/api/v1/sites/{site['id']}", json={"classrooms": 6, "notes": "Extended"},
                       headers=admin_headers)
    assert res.status_code == 200
    data = res.get_json()
    assert data["classrooms"] == 6
    assert data["notes"] == "Extended"
    assert data["name"] == site["name"]

    activities = client.get(f"/api/v1/sites/{site['id']}/activities").get_json()["items"]
    assert activities[0]["type"] == "site_update"
    assert activities[0]["performed_by"] == admin["id"]


def test_update_site_not_found(client, admin_headers):
    res = client.patch("/api/v1/sites/999", json={"name": "x"}, headers=admin_headers)
    assert res.status_code == 404


def test_delete_site(client, admin_headers):
    site = _create_site(client, admin_headers)
    res = client.delete(f"/api/v1/sites/{site['id']}", headers=admin_headers)
    assert res.status_code == 204
    assert client.get(f"/api/v1/sites/{site['id']}").status_code == 404
    assert client.delete(f"/api/v1/sites/{site['id']}", headers=admin_headers).status_code == 404


def test_deleted_site_id_is_not_reused(client, admin_headers):
    _create_site(client, admin_headers, 1)
    second = _create_site(client, admin_headers, 2)
    client.delete(f"/api/v1/sites/{second['id']}", headers=admin_headers)
    third = _create_site(client, admin_headers, 3)
    assert third["id"] == 3


# ═════════════════════════════════════════════════════════════════════════════
# ACTOR / ROLES
# ═════════════════════════════════════════════════════════════════════════════


def test_reads_need_no_actor(client):
    assert client.get("/api/v1/sites").status_code == 200


def test_create_without_actor_is_401(client):
    res = client.post("/api/v1/sites", json=_site_payload())
    assert res.status_code == 401
    assert res.get_json()["code"] == "ERR_UNAUTHORIZED"
    assert client.get("/api/v1/sites").get_json()["total"] == 0


def test_unknown_actor_is_401(client, app):
    token = _token(app, {"sub": "42", "type": "access"})
    res = client.get("/api/v1/sites", headers=_bearer(token))
    assert res.status_code == 401


def test_forged_token_is_401(client, app, admin):
    token = _token(app, {"sub": str(admin["id"]), "type": "access"}, secret="x" * 32)
    res = client.post("/api/v1/sites", json=_site_payload(), headers=_bearer(token))
    assert res.status_code == 401
    assert res.get_json()["error"] == "Invalid access token"
    assert client.get("/api/v1/sites").get_json()["total"] == 0


def test_expired_token_is_401(client, app, admin):
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = _token(app, {"sub": str(admin["id"]), "type": "access",
                         "iat": past, "exp": past + timedelta(hours=1)})
    res = client.post("/api/v1/sites", json=_site_payload(), headers=_bearer(token))
    assert res.status_code == 401
    assert res.get_json()["error"] == "Access token has expired"


def test_refresh_token_is_not_an_access_token(client, admin):
    refresh = jwt_service.generate_refresh_token(admin)
    res = client.post("/api/v1/sites", json=_site_payload(), headers=_bearer(refresh))
    assert res.status_code == 401


def test_bare_user_id_header_is_not_an_actor(client, admin):
    res = client.post("/api/v1/sites", json=_site_payload(), headers={"X-User-Id": str(admin["id"])})
    assert res.status_code == 401
    res = client.post("/api/v1/sites", json=_site_payload(), headers={"Authorization": "Basic abc"})
    assert res.status_code == 401


def test_malformed_token_is_401(client):
    res = client.post("/api/v1/sites", json=_site_payload(), headers=_bearer("not-a-jwt"))
    assert res.status_code == 401


def test_inactive_actor_is_401(client, store, assessor, assessor_headers):
    store.update_user(assessor["id"], {"status": "inactive"})
    res = client.post("/api/v1/sites", json=_site_payload(), headers=assessor_headers)
    assert res.status_code == 401


def test_viewer_cannot_write(client, viewer_headers, admin_headers):
    res = client.post("/api/v1/sites", json=_site_payload(), headers=viewer_headers)
    assert res.status_code == 403
    site = _create_site(client, admin_headers)
    assert client.patch(f"/api/v1/sites/{site['id']}", json={"notes": "x"},
                        headers=viewer_headers).status_code == 403
    assert client.delete(f"/api/v1/sites/{site['id']}", headers=viewer_headers).status_code == 403


def test_viewer_can_read(client, viewer_headers, admin_headers):
    site = _create_site(client, admin_headers)
    assert client.get(f"/api/v1/sites/{site['id']}", headers=viewer_headers).status_code == 200


# ═════════════════════════════════════════════════════════════════════════════
# VALIDATION / CONFLICTS
# ═════════════════════════════════════════════════════════════════════════════


def test_create_missing_required_fields(client, admin_headers):
    res = client.post("/api/v1/sites", json={"name": "Only a name"}, headers=admin_headers)
    assert res.status_code == 422
    assert res.get_json()["code"] == "ERR_VALIDATION_REQUIRED"
    details = res.get_json()["details"]
    assert details["site_id"] == "is required"
    assert details["type"] == "is required"


def test_create_invalid_enum(client, admin_headers):
    res = client.post("/api/v1/sites", json=_site_payload(type="Campus"), headers=admin_headers)
    assert res.status_code == 422
    assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"
    assert "type" in res.get_json()["details"]


def test_create_rejects_server_fields(client, admin_headers):
    res = client.post("/api/v1/sites", json=_site_payload(id=7, created_by=3),
                      headers=admin_headers)
    assert res.status_code == 422
    details = res.get_json()["details"]
    assert "id" in details
    assert "created_by" in details


def test_create_rejects_unknown_field(client, admin_headers):
    res = client.post("/api/v1/sites", json=_site_payload(colour="blue"), headers=admin_headers)
    assert res.status_code == 422
    assert res.get_json()["details"]["colour"] == "unknown field"


def test_create_rejects_out_of_range_gps(client, admin_headers):
    res = client.post("/api/v1/sites", json=_site_payload(gps_lat=-95.0), headers=admin_headers)
    assert res.status_code == 422


def test_create_rejects_nan_gps(client, admin_headers):
    body = json.dumps(_site_payload(gps_lat=float("nan")))
    assert "NaN" in body
    res = client.post("/api/v1/sites", data=body, content_type="application/json",
                      headers=admin_headers)
    assert res.status_code == 422
    assert res.get_json()["details"]["gps_lat"] == "gps_lat must be a finite number"
    assert client.get("/api/v1/sites").get_json()["total"] == 0


def test_update_cannot_blank_required_field(client, admin_headers):
    site = _create_site(client, admin_headers)
    res = client.patch(f"/api/v1/sites/{site['id']}", json={"name": "  "}, headers=admin_headers)
    assert res.status_code == 422
    assert res.get_json()["details"]["name"] == "cannot be empty"


def test_duplicate_site_id_is_409(client, admin_headers):
    _create_site(client, admin_headers, 1)
    res = client.post("/api/v1/sites", json=_site_payload(1, name="Other"), headers=admin_headers)
    assert res.status_code == 409
    assert res.get_json()["code"] == "ERR_CONFLICT_DUPLICATE"


def test_update_to_duplicate_site_id_is_409(client, admin_headers):
    _create_site(client, admin_headers, 1)
    second = _create_site(client, admin_headers, 2)
    res = client.patch(f"/api/v1/sites/{second['id']}", json={"site_id": "CLC-001"},
                       headers=admin_headers)
    assert res.status_code == 409


def test_malformed_body_is_400(client, admin_headers):
    res = client.post("/api/v1/sites", data="not json", content_type="application/json",
                      headers=admin_headers)
    assert res.status_code == 400
    res = client.post("/api/v1/sites", json=["a", "list"], headers=admin_headers)
    assert res.status_code == 400


# ═════════════════════════════════════════════════════════════════════════════
# ASSESSMENT WORKFLOW
# ═════════════════════════════════════════════════════════════════════════════


def test_record_visit(client, assessor, assessor_headers):
    site = _create_site(client, assessor_headers)
    res = client.post(f"/api/v1/sites/{site['id']}/visits", json={"notes": "Roof leaking"},
                      headers=assessor_headers)
    assert res.status_code == 200
    data = res.get_json()
    assert data["assessment_status"] == "Visited"
    assert data["last_visited_by"] == assessor["id"]
    assert data["last_visit_date"]

    latest = client.get(f"/api/v1/sites/{site['id']}/activities").get_json()["items"][0]
    assert latest["type"] == "site_visit"
    assert latest["description"].endswith("Roof leaking")


def test_visit_keeps_verified_status(client, admin_headers):
    site = _create_site(client, admin_headers, assessment_status="Data Verified")
    res = client.post(f"/api/v1/sites/{site['id']}/visits", headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["assessment_status"] == "Data Verified"


def test_verify_site(client, admin_headers):
    site = _create_site(client, admin_headers)
    client.post(f"/api/v1/sites/{site['id']}/visits", headers=admin_headers)
    res = client.post(f"/api/v1/sites/{site['id']}/verification", headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["assessment_status"] == "Data Verified"


def test_verify_unvisited_site_is_422(client, admin_headers):
    site = _create_site(client, admin_headers)
    res = client.post(f"/api/v1/sites/{site['id']}/verification", headers=admin_headers)
    assert res.status_code == 422
    assert "assessment_status" in res.get_json()["details"]


def test_visit_missing_site_is_404(client, admin_headers):
    assert client.post("/api/v1/sites/5/visits", headers=admin_headers).status_code == 404


def test_add_images(client, admin_headers):
    site = _create_site(client, admin_headers, images=["a.jpg"])
    res = client.post(f"/api/v1/sites/{site['id']}/images",
                      json={"urls": ["a.jpg", "b.jpg", "c.jpg"]}, headers=admin_headers)
    assert res.status_code == 200
    assert res.get_json()["images"] == ["a.jpg", "b.jpg", "c.jpg"]

    latest = client.get(f"/api/v1/sites/{site['id']}/activities").get_json()["items"][0]
    assert latest["type"] == "photo_upload"
    assert latest["description"].startswith("Added 2 new photos")


def test_add_existing_images_logs_nothing(client, admin_headers):
    site = _create_site(client, admin_headers, images=["a.jpg"])
    res = client.post(f"/api/v1/sites/{site['id']}/images", json={"urls": ["a.jpg"]},
                      headers=admin_headers)
    assert res.status_code == 200
    activities = client.get(f"/api/v1/sites/{site['id']}/activities").get_json()["items"]
    assert [a["type"] for a in activities] == ["site_creation"]


def test_add_images_requires_url_list(client, admin_headers):
    site = _create_site(client, admin_headers)
    res = client.post(f"/api/v1/sites/{site['id']}/images", json={"urls": "a.jpg"},
                      headers=admin_headers)
    assert res.status_code == 422


# ═════════════════════════════════════════════════════════════════════════════
# OVERVIEW / SITE-SCOPED LISTINGS
# ═════════════════════════════════════════════════════════════════════════════


def test_site_scoped_listings(client, admin_headers):
    site = _create_site(client, admin_headers)
    other = _create_site(client, admin_headers, 2)
    client.post("/api/v1/staff", json={"staff_id": "S-1", "first_name": "Sarah",
                                       "last_name": "Smith", "site_id": site["id"]},
                headers=admin_headers)
    client.post("/api/v1/staff", json={"staff_id": "S-2", "first_name": "John",
                                       "last_name": "Doe", "site_id": other["id"]},
                headers=admin_headers)
    client.post("/api/v1/assets", json={"asset_id": "A-1", "name": "Projector", "category": "IT",
                                        "condition": "Good", "site_id": site["id"]},
                headers=admin_headers)

    staff = client.get(f"/api/v1/sites/{site['id']}/staff").get_json()
    assert [s["staff_id"] for s in staff["items"]] == ["S-1"]
    assets = client.get(f"/api/v1/sites/{site['id']}/assets").get_json()
    assert assets["total"] == 1
    programs = client.get(f"/api/v1/sites/{site['id']}/programs").get_json()
    assert programs["total"] == 0


def test_site_scoped_listing_missing_site_is_404(client):
    assert client.get("/api/v1/sites/9/staff").status_code == 404
    assert client.get("/api/v1/sites/9/activities").status_code == 404


def test_site_overview(client, admin_headers):
    site = _create_site(client, admin_headers)
    client.post("/api/v1/staff", json={"staff_id": "S-1", "first_name": "Sarah",
                                       "last_name": "Smith", "verified": True,
                                       "site_id": site["id"]},
                headers=admin_headers)
    client.post("/api/v1/programs", json={"program_id": "P-1", "name": "Adult Literacy",
                                          "category": "Literacy", "status": "Active",
                                          "enrollment_count": 45, "site_id": site["id"]},
                headers=admin_headers)
    client.post(f"/api/v1/sites/{site['id']}/recommendations", json={"title": "Fix roof"},
                headers=admin_headers)

    res = client.get(f"/api/v1/sites/{site['id']}/overview")
    assert res.status_code == 200
    data = res.get_json()
    assert data["site"]["id"] == site["id"]
    assert data["summary"]["staff_count"] == 1
    assert data["summary"]["verified_staff_count"] == 1
    assert data["summary"]["total_enrollment"] == 45
    assert data["summary"]["open_recommendations"] == 1
    assert [a["type"] for a in data["activities"]] == ["recommendation", "site_creation"]


def test_deleted_site_leaves_staff_dangling(client, admin_headers):
    site = _create_site(client, admin_headers)
    res = client.post("/api/v1/staff", json={"staff_id": "S-1", "first_name": "Sarah",
                                             "last_name": "Smith", "site_id": site["id"]},
                      headers=admin_headers)
    member = res.get_json()
    client.delete(f"/api/v1/sites/{site['id']}", headers=admin_headers)
    res = client.get(f"/api/v1/staff/{member['id']}")
    assert res.status_code == 200
    assert res.get_json()["site_id"] == site["id"]
