"""
College Site Registry
Persisted entity tables for the SQL store backend.

Models:
    - User: registry user (bcrypt hash, soft-disable via status)
    - Site: CLC / satellite / operational site
    - Staff: staff member, weakly assigned to a site
    - Asset: inventory item, weakly assigned to a site
    - Program: educational offering at a site
    - Activity: append-only audit trail
    - Recommendation: site improvement task raised during assessment

Cross-entity ``*_id`` / ``*_by`` integers are weak references: plain indexed
columns with no database foreign key, so orphaned references are tolerated
and deletes never cascade or block.

``sqlite_autoincrement`` keeps SQLite from reusing the highest id after a
delete; PostgreSQL sequences never reuse ids anyway.
"""

from datetime import datetime

from app.models import db
from app.store.schema import TABLES, EntityKind

_TABLE_ARGS = {"sqlite_autoincrement": True}


class RegistryRow:
    """Shared row <-> dict conversion driven by the store's TableSpec."""

    ENTITY_KIND: EntityKind
    DATETIME_FIELDS: frozenset = frozenset()

    @classmethod
    def coerce(cls, name, value):
        if name in cls.DATETIME_FIELDS and isinstance(value, str):
            return datetime.fromisoformat(value)
        return value

    def assign(self, values: dict) -> None:
        for name, value in values.items():
            setattr(self, name, self.coerce(name, value))

    def to_dict(self) -> dict:
        result = {"id": self.id}
        for name in TABLES[self.ENTITY_KIND].fields:
            value = getattr(self, name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, list):
                value = list(value)
            result[name] = value
        return result

    def __repr__(self):
        return f"<{type(self).__name__} {self.id}>"


# ── User ─────────────────────────────────────────────────────────────────────


class User(RegistryRow, db.Model):
    __tablename__ = "users"
    __table_args__ = _TABLE_ARGS
    ENTITY_KIND = EntityKind.USER

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(150), nullable=False)
    role = db.Column(
        db.String(30), nullable=False,
        comment="Admin | Project Manager | Data Analyst | Field Assessor | Viewer",
    )
    email = db.Column(db.String(200), nullable=True)
    phone = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="active",
                       comment="active | inactive | suspended")


# ── Site ─────────────────────────────────────────────────────────────────────


class Site(RegistryRow, db.Model):
    __tablename__ = "sites"
    __table_args__ = _TABLE_ARGS
    ENTITY_KIND = EntityKind.SITE
    DATETIME_FIELDS = frozenset({"last_visit_date"})

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.String(50), nullable=False, unique=True, comment="e.g. CLC-001")
    name = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(30), nullable=False, comment="CLC | Satellite | Operational")
    district = db.Column(db.String(100), nullable=False, index=True)
    physical_address = db.Column(db.Text)
    gps_lat = db.Column(db.Float)
    gps_lng = db.Column(db.Float)
    host_department = db.Column(db.String(200))
    agreement_type = db.Column(db.String(30), comment="Owned | Rented | Partnership")
    agreement_details = db.Column(db.Text)
    contract_number = db.Column(db.String(100))
    contract_term = db.Column(db.String(100))
    renewal_date = db.Column(db.String(10))
    contact_person = db.Column(db.String(150))
    contact_email = db.Column(db.String(200))
    contact_phone = db.Column(db.String(50))
    establishment_date = db.Column(db.String(10))
    operational_status = db.Column(db.String(20), nullable=False,
                                   comment="Active | Inactive | Planned")
    assessment_status = db.Column(db.String(20), nullable=False,
                                  comment="To Visit | Visited | Data Verified")

    # Infrastructure
    total_area = db.Column(db.Integer, comment="square metres")
    classrooms = db.Column(db.Integer)
    offices = db.Column(db.Integer)
    computer_labs = db.Column(db.Integer)
    workshops = db.Column(db.Integer)
    has_library = db.Column(db.Boolean)
    has_student_common_areas = db.Column(db.Boolean)
    has_staff_facilities = db.Column(db.Boolean)
    accessibility_features = db.Column(db.Text)
    internet_connectivity = db.Column(db.Text)
    security_features = db.Column(db.Text)

    # Condition assessment
    building_condition = db.Column(db.String(20))
    electrical_condition = db.Column(db.String(20))
    plumbing_condition = db.Column(db.String(20))
    interior_condition = db.Column(db.String(20))
    exterior_condition = db.Column(db.String(20))
    last_renovation_date = db.Column(db.String(10))

    notes = db.Column(db.Text)
    images = db.Column(db.JSON, default=list)

    created_by = db.Column(db.Integer, index=True)
    last_visited_by = db.Column(db.Integer)
    last_visit_date = db.Column(db.DateTime(timezone=True))


# ── Staff ────────────────────────────────────────────────────────────────────


class Staff(RegistryRow, db.Model):
    __tablename__ = "staff"
    __table_args__ = _TABLE_ARGS
    ENTITY_KIND = EntityKind.STAFF

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.String(50), nullable=False, unique=True, comment="e.g. STAFF-001")
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    position = db.Column(db.String(150))
    department = db.Column(db.String(150))
    email = db.Column(db.String(200))
    phone = db.Column(db.String(50))
    verified = db.Column(db.Boolean, default=False)
    qualifications = db.Column(db.JSON, default=list)
    skills = db.Column(db.JSON, default=list)
    workload = db.Column(db.Integer, comment="hours per week")
    employment_status = db.Column(db.String(30))
    start_date = db.Column(db.String(10))
    contract_end_date = db.Column(db.String(10))
    notes = db.Column(db.Text)
    site_id = db.Column(db.Integer, index=True)


# ── Asset ────────────────────────────────────────────────────────────────────


class Asset(RegistryRow, db.Model):
    __tablename__ = "assets"
    __table_args__ = _TABLE_ARGS
    ENTITY_KIND = EntityKind.ASSET

    id = db.Column(db.Integer, primary_key=True)
    asset_id = db.Column(db.String(50), nullable=False, unique=True, comment="e.g. ASSET-001")
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(30), nullable=False,
                         comment="Equipment | Furniture | IT | Teaching | Office | Other")
    type = db.Column(db.String(100))
    description = db.Column(db.Text)
    manufacturer = db.Column(db.String(150))
    model = db.Column(db.String(150))
    serial_numbers = db.Column(db.JSON, default=list)
    purchase_date = db.Column(db.String(10))
    purchase_price = db.Column(db.Float)
    condition = db.Column(db.String(20), nullable=False,
                          comment="Excellent | Good | Fair | Poor | NonFunctional | Critical")
    location = db.Column(db.String(200))
    assigned_to = db.Column(db.String(200))
    last_maintenance_date = db.Column(db.String(10))
    next_maintenance_date = db.Column(db.String(10))
    notes = db.Column(db.Text)
    images = db.Column(db.JSON, default=list)
    site_id = db.Column(db.Integer, index=True)


# ── Program ──────────────────────────────────────────────────────────────────


class Program(RegistryRow, db.Model):
    __tablename__ = "programs"
    __table_args__ = _TABLE_ARGS
    ENTITY_KIND = EntityKind.PROGRAM

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(db.String(50), nullable=False, unique=True, comment="e.g. PROG-001")
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    enrollment_count = db.Column(db.Integer)
    start_date = db.Column(db.String(10))
    end_date = db.Column(db.String(10))
    status = db.Column(db.String(20), nullable=False, comment="Active | Inactive | Planned")
    notes = db.Column(db.Text)
    site_id = db.Column(db.Integer, index=True)


# ── Activity ─────────────────────────────────────────────────────────────────


class Activity(RegistryRow, db.Model):
    """Immutable audit trail entry. The store exposes no update or delete."""

    __tablename__ = "activities"
    __table_args__ = (
        db.Index("idx_activity_entity", "related_entity_type", "related_entity_id"),
        _TABLE_ARGS,
    )
    ENTITY_KIND = EntityKind.ACTIVITY
    DATETIME_FIELDS = frozenset({"timestamp"})

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(40), nullable=False,
                     comment="site_visit | data_verification | photo_upload | site_creation | …")
    description = db.Column(db.Text, nullable=False)
    related_entity_type = db.Column(db.String(20), comment="site | staff | asset | program")
    related_entity_id = db.Column(db.Integer)
    performed_by = db.Column(db.Integer, index=True)
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False)


# ── Recommendation ───────────────────────────────────────────────────────────


class Recommendation(RegistryRow, db.Model):
    __tablename__ = "recommendations"
    __table_args__ = _TABLE_ARGS
    ENTITY_KIND = EntityKind.RECOMMENDATION
    DATETIME_FIELDS = frozenset({"created_at", "updated_at"})

    id = db.Column(db.Integer, primary_key=True)
    site_id = db.Column(db.Integer, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    priority = db.Column(db.String(20), default="Medium", comment="Low | Medium | High | Critical")
    category = db.Column(db.String(30), default="Infrastructure")
    status = db.Column(db.String(20), default="Open", comment="Open | Completed | Discarded")
    created_by = db.Column(db.Integer)
    created_at = db.Column(db.DateTime(timezone=True))
    updated_at = db.Column(db.DateTime(timezone=True))


MODELS: dict[EntityKind, type] = {
    EntityKind.USER: User,
    EntityKind.SITE: Site,
    EntityKind.STAFF: Staff,
    EntityKind.ASSET: Asset,
    EntityKind.PROGRAM: Program,
    EntityKind.ACTIVITY: Activity,
    EntityKind.RECOMMENDATION: Recommendation,
}
