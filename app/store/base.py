"""
Entity store contract.

``EntityStore`` exposes the per-entity operations the service layer calls
(``get_all_sites``, ``create_staff``, ``get_assets_by_site`` ...). Backends
implement only the row primitives at the bottom of the class; everything
else, including the creation audit trail and business-identifier uniqueness,
lives here so both backends behave the same.

Contract summary:
    get_<e>(id)          -> dict | None   (absent is not an error)
    create_<e>(data)     -> dict          (next id from the per-type counter)
    update_<e>(id, part) -> dict          (merge; NotFoundError if missing)
    delete_<e>(id)       -> bool          (False when nothing was removed)

Every Site/Staff/Asset/Program create appends one Activity after the
primary write. The two writes are not atomic: a failing audit write leaves
the primary row in place.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.store.schema import TABLES, EntityKind, EntityRef


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_actor(performed_by) -> int:
    if performed_by is None or isinstance(performed_by, bool) or not isinstance(performed_by, int):
        raise ValidationError(
            "performed_by is required",
            details={"performed_by": "an acting user id is required"},
        )
    return performed_by


class EntityStore(ABC):
    """Abstract entity store. Rows are plain dicts and always copies."""

    # ── Users ────────────────────────────────────────────────────────────

    def get_all_users(self) -> list[dict]:
        return self._rows(EntityKind.USER)

    def get_user(self, user_id) -> dict | None:
        return self._get_row(EntityKind.USER, user_id)

    def get_user_by_username(self, username: str) -> dict | None:
        return self._find_one(EntityKind.USER, "username", username)

    def create_user(self, data: dict) -> dict:
        return self._create(EntityKind.USER, data)

    def update_user(self, user_id, partial: dict) -> dict:
        return self._update(EntityKind.USER, user_id, partial)

    # ── Sites ────────────────────────────────────────────────────────────

    def get_all_sites(self) -> list[dict]:
        return self._rows(EntityKind.SITE)

    def get_site(self, site_id) -> dict | None:
        return self._get_row(EntityKind.SITE, site_id)

    def create_site(self, data: dict, *, performed_by: int) -> dict:
        actor = _require_actor(performed_by)
        site = self._create(EntityKind.SITE, {
            **data,
            "created_by": actor,
            "last_visited_by": None,
            "last_visit_date": None,
        })
        self._record_creation(
            "site_creation", EntityRef(EntityKind.SITE, site["id"]),
            f"Created new site: {site['name']}", actor,
        )
        return site

    def update_site(self, site_id, partial: dict) -> dict:
        return self._update(EntityKind.SITE, site_id, partial)

    def delete_site(self, site_id) -> bool:
        return self._remove(EntityKind.SITE, site_id)

    # ── Staff ────────────────────────────────────────────────────────────

    def get_all_staff(self) -> list[dict]:
        return self._rows(EntityKind.STAFF)

    def get_staff(self, staff_id) -> dict | None:
        return self._get_row(EntityKind.STAFF, staff_id)

    def get_staff_by_site(self, site_id) -> list[dict]:
        return self._filter(EntityKind.STAFF, "site_id", site_id)

    def create_staff(self, data: dict, *, performed_by: int) -> dict:
        actor = _require_actor(performed_by)
        member = self._create(EntityKind.STAFF, data)
        self._record_creation(
            "staff_creation", EntityRef(EntityKind.STAFF, member["id"]),
            f"Added new staff member: {member['first_name']} {member['last_name']}", actor,
        )
        return member

    def update_staff(self, staff_id, partial: dict) -> dict:
        return self._update(EntityKind.STAFF, staff_id, partial)

    def delete_staff(self, staff_id) -> bool:
        return self._remove(EntityKind.STAFF, staff_id)

    # ── Assets ───────────────────────────────────────────────────────────

    def get_all_assets(self) -> list[dict]:
        return self._rows(EntityKind.ASSET)

    def get_asset(self, asset_id) -> dict | None:
        return self._get_row(EntityKind.ASSET, asset_id)

    def get_assets_by_site(self, site_id) -> list[dict]:
        return self._filter(EntityKind.ASSET, "site_id", site_id)

    def create_asset(self, data: dict, *, performed_by: int) -> dict:
        actor = _require_actor(performed_by)
        asset = self._create(EntityKind.ASSET, data)
        self._record_creation(
            "asset_creation", EntityRef(EntityKind.ASSET, asset["id"]),
            f"Added new asset: {asset['name']}", actor,
        )
        return asset

    def update_asset(self, asset_id, partial: dict) -> dict:
        return self._update(EntityKind.ASSET, asset_id, partial)

    def delete_asset(self, asset_id) -> bool:
        return self._remove(EntityKind.ASSET, asset_id)

    # ── Programs ─────────────────────────────────────────────────────────

    def get_all_programs(self) -> list[dict]:
        return self._rows(EntityKind.PROGRAM)

    def get_program(self, program_id) -> dict | None:
        return self._get_row(EntityKind.PROGRAM, program_id)

    def get_programs_by_site(self, site_id) -> list[dict]:
        return self._filter(EntityKind.PROGRAM, "site_id", site_id)

    def create_program(self, data: dict, *, performed_by: int) -> dict:
        actor = _require_actor(performed_by)
        program = self._create(EntityKind.PROGRAM, data)
        self._record_creation(
            "program_creation", EntityRef(EntityKind.PROGRAM, program["id"]),
            f"Added new program: {program['name']}", actor,
        )
        return program

    def update_program(self, program_id, partial: dict) -> dict:
        return self._update(EntityKind.PROGRAM, program_id, partial)

    def delete_program(self, program_id) -> bool:
        return self._remove(EntityKind.PROGRAM, program_id)

    # ── Activities (append-only) ─────────────────────────────────────────

    def get_all_activities(self) -> list[dict]:
        return self._rows(EntityKind.ACTIVITY)

    def get_activity(self, activity_id) -> dict | None:
        return self._get_row(EntityKind.ACTIVITY, activity_id)

    def get_activities_by_site(self, site_id) -> list[dict]:
        return [
            a for a in self._filter(EntityKind.ACTIVITY, "related_entity_id", site_id)
            if a["related_entity_type"] == EntityKind.SITE.value
        ]

    def create_activity(self, data: dict) -> dict:
        return self._create(EntityKind.ACTIVITY, {**data, "timestamp": utc_now_iso()})

    # ── Recommendations ──────────────────────────────────────────────────

    def get_all_recommendations(self) -> list[dict]:
        return self._rows(EntityKind.RECOMMENDATION)

    def get_recommendation(self, recommendation_id) -> dict | None:
        return self._get_row(EntityKind.RECOMMENDATION, recommendation_id)

    def get_recommendations_by_site(self, site_id) -> list[dict]:
        return self._filter(EntityKind.RECOMMENDATION, "site_id", site_id)

    def create_recommendation(self, data: dict, *, performed_by: int) -> dict:
        actor = _require_actor(performed_by)
        now = utc_now_iso()
        return self._create(EntityKind.RECOMMENDATION, {
            **data, "created_by": actor, "created_at": now, "updated_at": now,
        })

    def update_recommendation(self, recommendation_id, partial: dict) -> dict:
        return self._update(
            EntityKind.RECOMMENDATION, recommendation_id, {**partial, "updated_at": utc_now_iso()},
        )

    def delete_recommendation(self, recommendation_id) -> bool:
        return self._remove(EntityKind.RECOMMENDATION, recommendation_id)

    # ── Shared plumbing ──────────────────────────────────────────────────

    def _record_creation(self, activity_type: str, ref: EntityRef, description: str, actor: int) -> dict:
        return self.create_activity({
            "type": activity_type,
            "description": description,
            **ref.as_fields(),
            "performed_by": actor,
        })

    def _create(self, kind: EntityKind, data: dict) -> dict:
        spec = TABLES[kind]
        if spec.unique is not None:
            value = data.get(spec.unique)
            if value is not None and self._find_one(kind, spec.unique, value) is not None:
                raise ConflictError(spec.label, spec.unique, value)
        return self._insert(kind, data)

    def _update(self, kind: EntityKind, entity_id, partial: dict) -> dict:
        spec = TABLES[kind]
        changes = spec.known(partial)
        if spec.unique is not None and changes.get(spec.unique) is not None:
            holder = self._find_one(kind, spec.unique, changes[spec.unique])
            if holder is not None and holder["id"] != entity_id:
                raise ConflictError(spec.label, spec.unique, changes[spec.unique])
        row = self._patch(kind, entity_id, changes)
        if row is None:
            raise NotFoundError(spec.label, entity_id)
        return row

    def _filter(self, kind: EntityKind, field: str, value) -> list[dict]:
        return [row for row in self._rows(kind) if row[field] == value]

    # ── Backend primitives ───────────────────────────────────────────────

    @abstractmethod
    def _rows(self, kind: EntityKind) -> list[dict]:
        """All rows of *kind* in insertion order."""

    @abstractmethod
    def _get_row(self, kind: EntityKind, entity_id) -> dict | None:
        """One row by internal id, or None."""

    @abstractmethod
    def _find_one(self, kind: EntityKind, field: str, value) -> dict | None:
        """First row whose *field* equals *value*, or None."""

    @abstractmethod
    def _insert(self, kind: EntityKind, data: dict) -> dict:
        """Assign the next id, store the row, return it."""

    @abstractmethod
    def _patch(self, kind: EntityKind, entity_id, changes: dict) -> dict | None:
        """Merge *changes* into a stored row; None when the id is unknown."""

    @abstractmethod
    def _remove(self, kind: EntityKind, entity_id) -> bool:
        """Delete a row; False when the id is unknown."""
