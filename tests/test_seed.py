"""
College Site Registry
Tests — sample data loader.
"""

from app.store import MemStorage
from app.store.seed import (
    SEED_ACTIVITIES,
    SEED_ASSETS,
    SEED_PROGRAMS,
    SEED_SITES,
    SEED_STAFF,
    SEED_USERS,
    seed_sample_data,
)
from app.utils.crypto import verify_password


def _assert_seeded(store):
    assert len(store.get_all_users()) == len(SEED_USERS)
    assert len(store.get_all_sites()) == len(SEED_SITES)
    assert len(store.get_all_staff()) == len(SEED_STAFF)
    assert len(store.get_all_assets()) == len(SEED_ASSETS)
    assert len(store.get_all_programs()) == len(SEED_PROGRAMS)
    created = len(SEED_SITES) + len(SEED_STAFF) + len(SEED_ASSETS) + len(SEED_PROGRAMS)
    assert len(store.get_all_activities()) == created + len(SEED_ACTIVITIES)


def test_seed_memory_store():
    store = MemStorage()
    assert seed_sample_data(store, rounds=4) is True
    _assert_seeded(store)


def test_seed_sql_store(sql_store):
    assert seed_sample_data(sql_store, rounds=4) is True
    _assert_seeded(sql_store)


def test_seed_is_skipped_when_users_exist():
    store = MemStorage()
    seed_sample_data(store, rounds=4)
    assert seed_sample_data(store, rounds=4) is False
    assert len(store.get_all_users()) == len(SEED_USERS)


def test_seeded_logins_work():
    store = MemStorage()
    seed_sample_data(store, rounds=4)
    admin = store.get_user_by_username("admin")
    assert admin["role"] == "Admin"
    assert verify_password("admin123", admin["password_hash"])


def test_seeded_rows_reference_seeded_sites():
    store = MemStorage()
    seed_sample_data(store, rounds=4)
    site_ids = {s["id"] for s in store.get_all_sites()}
    assert all(s["site_id"] in site_ids for s in store.get_all_staff())
    assert all(a["related_entity_id"] in site_ids
               for a in store.get_all_activities() if a["related_entity_type"] == "site")


def test_seeded_visits_are_stamped():
    store = MemStorage()
    seed_sample_data(store, rounds=4)
    visited = [s for s in store.get_all_sites() if s["last_visit_date"]]
    expected = sum(1 for _, visit in SEED_SITES if visit is not None)
    assert len(visited) == expected
    assert all(s["last_visited_by"] is not None for s in visited)


def test_seeded_site_is_explorable_over_http(client, store, app):
    seed_sample_data(store, rounds=4)
    res = client.get("/api/v1/sites")
    assert res.get_json()["total"] == len(SEED_SITES)
    res = client.post("/api/v1/auth/login", json={"username": "field", "password": "field123"})
    assert res.status_code == 200
    assert res.get_json()["user"]["role"] == "Field Assessor"
