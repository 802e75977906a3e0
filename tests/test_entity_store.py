"""
College Site Registry
Tests — entity store contract, run against both backends.

Covers:
    - Id assignment: increasing, per type, never reused
    - Round trip, merge-on-update, delete semantics
    - Site-scoped listings
    - Creation audit trail (exactly one activity per create)
    - Business identifier uniqueness
    - Returned rows are copies
    - Activities, recommendations, users
"""

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.store import MemStorage
from app.store.schema import EntityKind, EntityRef

ACTOR = 1


def _site(n=1, **overrides):
    data = {
        "site_id": f"CLC-{n:03d}",
        "name": f"Site {n}",
        "type": "CLC",
        "district": "Bojanala",
        "operational_status": "Active",
        "assessment_status": "To Visit",
    }
    data.update(overrides)
    return data


def _staff(n=1, **overrides):
    data = {"staff_id": f"STAFF-{n:03d}", "first_name": "Sarah", "last_name": f"Smith{n}"}
    data.update(overrides)
    return data


def _asset(n=1, **overrides):
    data = {"asset_id": f"ASSET-{n:03d}", "name": f"Projector {n}", "category": "IT",
            "condition": "Good"}
    data.update(overrides)
    return data


def _program(n=1, **overrides):
    data = {"program_id": f"PROG-{n:03d}", "name": f"Program {n}", "category": "Vocational",
            "status": "Active"}
    data.update(overrides)
    return data


# ═════════════════════════════════════════════════════════════════════════════
# IDS
# ═════════════════════════════════════════════════════════════════════════════


def test_ids_start_at_one_and_increase(any_store):
    first = any_store.create_site(_site(1), performed_by=ACTOR)
    second = any_store.create_site(_site(2), performed_by=ACTOR)
    assert first["id"] == 1
    assert second["id"] == 2


def test_ids_are_counted_per_entity_type(any_store):
    any_store.create_site(_site(1), performed_by=ACTOR)
    any_store.create_site(_site(2), performed_by=ACTOR)
    member = any_store.create_staff(_staff(1), performed_by=ACTOR)
    assert member["id"] == 1


def test_ids_are_never_reused_after_delete(any_store):
    any_store.create_asset(_asset(1), performed_by=ACTOR)
    second = any_store.create_asset(_asset(2), performed_by=ACTOR)
    assert any_store.delete_asset(second["id"]) is True
    third = any_store.create_asset(_asset(3), performed_by=ACTOR)
    assert third["id"] == 3


# ═════════════════════════════════════════════════════════════════════════════
# ROUND TRIP / UPDATE / DELETE
# ═════════════════════════════════════════════════════════════════════════════


def test_create_then_get_returns_equal_row(any_store):
    created = any_store.create_staff(
        _staff(1, qualifications=["PGCE"], skills=["Numeracy", "Assessment"], workload=32),
        performed_by=ACTOR,
    )
    assert any_store.get_staff(created["id"]) == created
    assert created["qualifications"] == ["PGCE"]
    assert created["verified"] is False


def test_optional_fields_default_to_none_or_empty(any_store):
    asset = any_store.create_asset(_asset(1), performed_by=ACTOR)
    assert asset["serial_numbers"] == []
    assert asset["images"] == []
    assert asset["purchase_price"] is None
    assert asset["site_id"] is None


def test_get_missing_returns_none(any_store):
    assert any_store.get_site(99) is None
    assert any_store.get_program(99) is None
    assert any_store.get_activity(99) is None
    assert any_store.get_user(99) is None


def test_update_merges_given_fields_only(any_store):
    site = any_store.create_site(_site(1, classrooms=8, notes="Main campus"), performed_by=ACTOR)
    updated = any_store.update_site(site["id"], {"classrooms": 10})
    assert updated["classrooms"] == 10
    assert updated["notes"] == "Main campus"
    assert updated["name"] == site["name"]
    assert updated["id"] == site["id"]
    assert any_store.get_site(site["id"]) == updated


def test_update_cannot_change_id(any_store):
    program = any_store.create_program(_program(1), performed_by=ACTOR)
    updated = any_store.update_program(program["id"], {"id": 42, "status": "Planned"})
    assert updated["id"] == program["id"]
    assert updated["status"] == "Planned"
    assert any_store.get_program(42) is None


def test_update_missing_row_raises(any_store):
    with pytest.raises(NotFoundError):
        any_store.update_site(99, {"name": "Ghost"})
    with pytest.raises(NotFoundError):
        any_store.update_staff(99, {"first_name": "Ghost"})


def test_delete_returns_true_then_false(any_store):
    member = any_store.create_staff(_staff(1), performed_by=ACTOR)
    assert any_store.delete_staff(member["id"]) is True
    assert any_store.get_staff(member["id"]) is None
    assert any_store.delete_staff(member["id"]) is False


def test_delete_site_leaves_assigned_rows_dangling(any_store):
    site = any_store.create_site(_site(1), performed_by=ACTOR)
    member = any_store.create_staff(_staff(1, site_id=site["id"]), performed_by=ACTOR)
    assert any_store.delete_site(site["id"]) is True
    assert any_store.get_staff(member["id"])["site_id"] == site["id"]


# ═════════════════════════════════════════════════════════════════════════════
# SITE-SCOPED LISTINGS
# ═════════════════════════════════════════════════════════════════════════════


def test_by_site_filters_match_subset_of_all(any_store):
    any_store.create_staff(_staff(1, site_id=1), performed_by=ACTOR)
    any_store.create_staff(_staff(2, site_id=2), performed_by=ACTOR)
    any_store.create_staff(_staff(3, site_id=1), performed_by=ACTOR)
    any_store.create_staff(_staff(4), performed_by=ACTOR)

    expected = [s for s in any_store.get_all_staff() if s["site_id"] == 1]
    assert any_store.get_staff_by_site(1) == expected
    assert [s["staff_id"] for s in expected] == ["STAFF-001", "STAFF-003"]


def test_by_site_for_unknown_site_is_empty(any_store):
    any_store.create_asset(_asset(1, site_id=1), performed_by=ACTOR)
    assert any_store.get_assets_by_site(77) == []
    assert any_store.get_programs_by_site(77) == []


def test_get_all_keeps_insertion_order(any_store):
    for n in (3, 1, 2):
        any_store.create_program(_program(n), performed_by=ACTOR)
    assert [p["program_id"] for p in any_store.get_all_programs()] == [
        "PROG-003", "PROG-001", "PROG-002",
    ]


# ═════════════════════════════════════════════════════════════════════════════
# CREATION AUDIT TRAIL
# ═════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize("kind,create,payload,activity_type", [
    ("site", "create_site", _site(1), "site_creation"),
    ("staff", "create_staff", _staff(1), "staff_creation"),
    ("asset", "create_asset", _asset(1), "asset_creation"),
    ("program", "create_program", _program(1), "program_creation"),
])
def test_create_logs_exactly_one_activity(any_store, kind, create, payload, activity_type):
    row = getattr(any_store, create)(payload, performed_by=7)
    activities = any_store.get_all_activities()
    assert len(activities) == 1
    activity = activities[0]
    assert activity["type"] == activity_type
    assert activity["related_entity_type"] == kind
    assert activity["related_entity_id"] == row["id"]
    assert activity["performed_by"] == 7
    assert activity["timestamp"]


def test_creation_activity_descriptions(any_store):
    any_store.create_site(_site(1, name="Mahikeng CLC"), performed_by=ACTOR)
    any_store.create_staff(_staff(1, first_name="John", last_name="Ndlovu"), performed_by=ACTOR)
    any_store.create_asset(_asset(1, name="Printer"), performed_by=ACTOR)
    any_store.create_program(_program(1, name="ECD Certificate"), performed_by=ACTOR)
    assert [a["description"] for a in any_store.get_all_activities()] == [
        "Created new site: Mahikeng CLC",
        "Added new staff member: John Ndlovu",
        "Added new asset: Printer",
        "Added new program: ECD Certificate",
    ]


def test_create_without_actor_is_rejected(any_store):
    with pytest.raises(ValidationError):
        any_store.create_site(_site(1), performed_by=None)
    with pytest.raises(ValidationError):
        any_store.create_staff(_staff(1), performed_by="1")
    assert any_store.get_all_sites() == []
    assert any_store.get_all_activities() == []


def test_create_site_stamps_audit_fields(any_store):
    site = any_store.create_site(
        _site(1, created_by=99, last_visited_by=5, last_visit_date="2024-01-15T00:00:00+00:00"),
        performed_by=3,
    )
    assert site["created_by"] == 3
    assert site["last_visited_by"] is None
    assert site["last_visit_date"] is None


def test_update_and_delete_do_not_log(any_store):
    site = any_store.create_site(_site(1), performed_by=ACTOR)
    any_store.update_site(site["id"], {"notes": "x"})
    any_store.delete_site(site["id"])
    assert len(any_store.get_all_activities()) == 1


# ═════════════════════════════════════════════════════════════════════════════
# UNIQUENESS
# ═════════════════════════════════════════════════════════════════════════════


def test_duplicate_business_id_on_create_raises(any_store):
    any_store.create_site(_site(1), performed_by=ACTOR)
    with pytest.raises(ConflictError) as exc:
        any_store.create_site(_site(1, name="Other"), performed_by=ACTOR)
    assert exc.value.field == "site_id"
    assert len(any_store.get_all_sites()) == 1
    assert len(any_store.get_all_activities()) == 1


def test_duplicate_business_id_on_update_raises(any_store):
    any_store.create_asset(_asset(1), performed_by=ACTOR)
    second = any_store.create_asset(_asset(2), performed_by=ACTOR)
    with pytest.raises(ConflictError):
        any_store.update_asset(second["id"], {"asset_id": "ASSET-001"})
    assert any_store.get_asset(second["id"])["asset_id"] == "ASSET-002"


def test_update_may_keep_own_business_id(any_store):
    program = any_store.create_program(_program(1), performed_by=ACTOR)
    updated = any_store.update_program(program["id"], {"program_id": "PROG-001", "name": "Renamed"})
    assert updated["name"] == "Renamed"


def test_duplicate_username_raises(any_store):
    any_store.create_user({"username": "admin", "password_hash": "x", "name": "A", "role": "Admin"})
    with pytest.raises(ConflictError):
        any_store.create_user({"username": "admin", "password_hash": "y", "name": "B", "role": "Viewer"})


# ═════════════════════════════════════════════════════════════════════════════
# ISOLATION
# ═════════════════════════════════════════════════════════════════════════════


def test_returned_rows_are_copies(any_store):
    site = any_store.create_site(_site(1, images=["a.jpg"]), performed_by=ACTOR)
    site["name"] = "Mutated"
    site["images"].append("b.jpg")

    stored = any_store.get_site(site["id"])
    assert stored["name"] == "Site 1"
    assert stored["images"] == ["a.jpg"]

    listed = any_store.get_all_sites()
    listed[0]["images"].clear()
    assert any_store.get_site(site["id"])["images"] == ["a.jpg"]


def test_input_payload_is_not_aliased():
    store = MemStorage()
    payload = _staff(1, skills=["Leadership"])
    member = store.create_staff(payload, performed_by=ACTOR)
    payload["skills"].append("Mutated")
    assert store.get_staff(member["id"])["skills"] == ["Leadership"]


# ═════════════════════════════════════════════════════════════════════════════
# ACTIVITIES
# ═════════════════════════════════════════════════════════════════════════════


def test_create_activity_stamps_timestamp(any_store):
    activity = any_store.create_activity({
        "type": "site_visit",
        "description": "Completed site visit",
        **EntityRef(EntityKind.SITE, 1).as_fields(),
        "performed_by": 2,
        "timestamp": "1999-01-01T00:00:00+00:00",
    })
    assert activity["timestamp"] != "1999-01-01T00:00:00+00:00"
    assert any_store.get_activity(activity["id"]) == activity


def test_activities_by_site_only_include_site_references(any_store):
    site = any_store.create_site(_site(1), performed_by=ACTOR)
    # staff #1 shares the numeric id with site #1
    any_store.create_staff(_staff(1), performed_by=ACTOR)
    activities = any_store.get_activities_by_site(site["id"])
    assert [a["type"] for a in activities] == ["site_creation"]


def test_activity_store_has_no_update_or_delete(any_store):
    assert not hasattr(any_store, "update_activity")
    assert not hasattr(any_store, "delete_activity")


def test_entity_ref_rejects_unreferenceable_kinds():
    with pytest.raises(ValidationError):
        EntityRef(EntityKind.USER, 1)
    with pytest.raises(ValidationError):
        EntityRef.parse("district", 1)
    with pytest.raises(ValidationError):
        EntityRef(EntityKind.SITE, "1")
    assert EntityRef.parse("asset", 4).as_fields() == {
        "related_entity_type": "asset", "related_entity_id": 4,
    }


# ═════════════════════════════════════════════════════════════════════════════
# RECOMMENDATIONS
# ═════════════════════════════════════════════════════════════════════════════


def test_recommendation_lifecycle(any_store):
    rec = any_store.create_recommendation(
        {"site_id": 1, "title": "Fix plumbing", "priority": "High"}, performed_by=4,
    )
    assert rec["status"] == "Open"
    assert rec["category"] == "Infrastructure"
    assert rec["created_by"] == 4
    assert rec["created_at"] and rec["created_at"] == rec["updated_at"]

    updated = any_store.update_recommendation(rec["id"], {"status": "Completed"})
    assert updated["status"] == "Completed"
    assert updated["title"] == "Fix plumbing"
    assert updated["updated_at"] >= rec["updated_at"]

    assert any_store.get_recommendations_by_site(1) == [updated]
    assert any_store.delete_recommendation(rec["id"]) is True
    assert any_store.get_all_recommendations() == []


def test_recommendation_requires_actor(any_store):
    with pytest.raises(ValidationError):
        any_store.create_recommendation({"site_id": 1, "title": "x"}, performed_by=None)


# ═════════════════════════════════════════════════════════════════════════════
# USERS
# ═════════════════════════════════════════════════════════════════════════════


def test_user_lookup_by_username(any_store):
    user = any_store.create_user({
        "username": "field", "password_hash": "hash", "name": "John Doe", "role": "Field Assessor",
    })
    assert user["status"] == "active"
    assert any_store.get_user_by_username("field") == user
    assert any_store.get_user_by_username("nobody") is None
    assert any_store.get_all_users() == [user]


def test_update_user_merges(any_store):
    user = any_store.create_user({
        "username": "field", "password_hash": "hash", "name": "John Doe", "role": "Field Assessor",
    })
    updated = any_store.update_user(user["id"], {"status": "inactive"})
    assert updated["status"] == "inactive"
    assert updated["username"] == "field"
    assert not hasattr(any_store, "delete_user")
