"""
Table layout shared by every entity store backend.

Each entity type has a ``TableSpec``: the stored field names with their
defaults, the unique business identifier (if any) and the human label used
in error messages. Both the in-memory tables and the SQLAlchemy models read
their row shape from here so the two backends return identical dicts.
"""

import copy
import enum
from dataclasses import dataclass, field

from app.core.exceptions import ValidationError


class EntityKind(str, enum.Enum):
    USER = "user"
    SITE = "site"
    STAFF = "staff"
    ASSET = "asset"
    PROGRAM = "program"
    ACTIVITY = "activity"
    RECOMMENDATION = "recommendation"


# Kinds an activity may point at.
REFERENCEABLE_KINDS = frozenset({
    EntityKind.SITE,
    EntityKind.STAFF,
    EntityKind.ASSET,
    EntityKind.PROGRAM,
})


@dataclass(frozen=True)
class EntityRef:
    """Typed pointer from an activity to the entity it describes."""

    kind: EntityKind
    id: int

    def __post_init__(self):
        if self.kind not in REFERENCEABLE_KINDS:
            raise ValidationError(
                f"Activities cannot reference a {self.kind.value}",
                details={"related_entity_type": f"must be one of {sorted(k.value for k in REFERENCEABLE_KINDS)}"},
            )
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise ValidationError(
                "related_entity_id must be an integer",
                details={"related_entity_id": "must be an integer"},
            )

    @classmethod
    def parse(cls, entity_type, entity_id) -> "EntityRef":
        """Build a reference from the loose ``(type string, id)`` pair of a payload."""
        try:
            kind = EntityKind(entity_type)
        except ValueError:
            raise ValidationError(
                f"Unknown related_entity_type: {entity_type!r}",
                details={"related_entity_type": f"must be one of {sorted(k.value for k in REFERENCEABLE_KINDS)}"},
            ) from None
        return cls(kind, entity_id)

    def as_fields(self) -> dict:
        return {"related_entity_type": self.kind.value, "related_entity_id": self.id}


@dataclass(frozen=True)
class TableSpec:
    kind: EntityKind
    label: str
    fields: dict = field(default_factory=dict)
    unique: str | None = None

    def build_row(self, entity_id: int, data: dict) -> dict:
        """Return a full row: id first, then every field with its default."""
        row = {"id": entity_id}
        for name, default in self.fields.items():
            row[name] = copy.deepcopy(data[name] if name in data else default)
        return row

    def known(self, partial: dict) -> dict:
        """Keep only stored fields of *partial*; ``id`` is never writable."""
        return {k: copy.deepcopy(v) for k, v in partial.items() if k in self.fields}


USER_FIELDS = {
    "username": None,
    "password_hash": None,
    "name": None,
    "role": None,
    "email": None,
    "phone": None,
    "status": "active",
}

SITE_FIELDS = {
    "site_id": None,
    "name": None,
    "type": None,
    "district": None,
    "physical_address": None,
    "gps_lat": None,
    "gps_lng": None,
    "host_department": None,
    "agreement_type": None,
    "agreement_details": None,
    "contract_number": None,
    "contract_term": None,
    "renewal_date": None,
    "contact_person": None,
    "contact_email": None,
    "contact_phone": None,
    "establishment_date": None,
    "operational_status": None,
    "assessment_status": None,
    # Infrastructure
    "total_area": None,
    "classrooms": None,
    "offices": None,
    "computer_labs": None,
    "workshops": None,
    "has_library": None,
    "has_student_common_areas": None,
    "has_staff_facilities": None,
    "accessibility_features": None,
    "internet_connectivity": None,
    "security_features": None,
    # Condition assessment
    "building_condition": None,
    "electrical_condition": None,
    "plumbing_condition": None,
    "interior_condition": None,
    "exterior_condition": None,
    "last_renovation_date": None,
    "notes": None,
    "images": [],
    # Server-assigned audit fields
    "created_by": None,
    "last_visited_by": None,
    "last_visit_date": None,
}

STAFF_FIELDS = {
    "staff_id": None,
    "first_name": None,
    "last_name": None,
    "position": None,
    "department": None,
    "email": None,
    "phone": None,
    "verified": False,
    "qualifications": [],
    "skills": [],
    "workload": None,
    "employment_status": None,
    "start_date": None,
    "contract_end_date": None,
    "notes": None,
    "site_id": None,
}

ASSET_FIELDS = {
    "asset_id": None,
    "name": None,
    "category": None,
    "type": None,
    "description": None,
    "manufacturer": None,
    "model": None,
    "serial_numbers": [],
    "purchase_date": None,
    "purchase_price": None,
    "condition": None,
    "location": None,
    "assigned_to": None,
    "last_maintenance_date": None,
    "next_maintenance_date": None,
    "notes": None,
    "images": [],
    "site_id": None,
}

PROGRAM_FIELDS = {
    "program_id": None,
    "name": None,
    "category": None,
    "description": None,
    "enrollment_count": None,
    "start_date": None,
    "end_date": None,
    "status": None,
    "notes": None,
    "site_id": None,
}

ACTIVITY_FIELDS = {
    "type": None,
    "description": None,
    "related_entity_type": None,
    "related_entity_id": None,
    "performed_by": None,
    "timestamp": None,
}

RECOMMENDATION_FIELDS = {
    "site_id": None,
    "title": None,
    "description": None,
    "priority": "Medium",
    "category": "Infrastructure",
    "status": "Open",
    "created_by": None,
    "created_at": None,
    "updated_at": None,
}

TABLES: dict[EntityKind, TableSpec] = {
    EntityKind.USER: TableSpec(EntityKind.USER, "User", USER_FIELDS, unique="username"),
    EntityKind.SITE: TableSpec(EntityKind.SITE, "Site", SITE_FIELDS, unique="site_id"),
    EntityKind.STAFF: TableSpec(EntityKind.STAFF, "Staff member", STAFF_FIELDS, unique="staff_id"),
    EntityKind.ASSET: TableSpec(EntityKind.ASSET, "Asset", ASSET_FIELDS, unique="asset_id"),
    EntityKind.PROGRAM: TableSpec(EntityKind.PROGRAM, "Program", PROGRAM_FIELDS, unique="program_id"),
    EntityKind.ACTIVITY: TableSpec(EntityKind.ACTIVITY, "Activity", ACTIVITY_FIELDS),
    EntityKind.RECOMMENDATION: TableSpec(
        EntityKind.RECOMMENDATION, "Recommendation", RECOMMENDATION_FIELDS,
    ),
}

# Server-assigned fields that callers may not supply.
SERVER_FIELDS: dict[EntityKind, frozenset] = {
    EntityKind.USER: frozenset({"password_hash"}),
    EntityKind.SITE: frozenset({"created_by", "last_visited_by", "last_visit_date"}),
    EntityKind.STAFF: frozenset(),
    EntityKind.ASSET: frozenset(),
    EntityKind.PROGRAM: frozenset(),
    EntityKind.ACTIVITY: frozenset({"timestamp"}),
    EntityKind.RECOMMENDATION: frozenset({"created_by", "created_at", "updated_at"}),
}
