"""Payload validation for registry entities.

Every create/update payload passes through ``validate_insert`` or
``validate_patch`` before it reaches the store. Both return a cleaned copy
(dates normalised to ISO ``YYYY-MM-DD``, emails normalised) and raise
``ValidationError`` with a per-field ``details`` dict on failure.

Rejected outright:
- fields the entity does not have
- server-assigned fields (ids, audit stamps, timestamps, password hashes)
- wrong JSON types (``"12"`` is not an integer, ``1`` is not a boolean)
"""
import logging
import math
from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from app.core.exceptions import ValidationError
from app.store.schema import SERVER_FIELDS, EntityKind
from app.utils.helpers import parse_date

logger = logging.getLogger(__name__)

# ── Allowed enum values ──────────────────────────────────────────────────

USER_ROLES = {"Admin", "Project Manager", "Data Analyst", "Field Assessor", "Viewer"}
USER_STATUSES = {"active", "inactive", "suspended"}

SITE_TYPES = {"CLC", "Satellite", "Operational"}
AGREEMENT_TYPES = {"Owned", "Rented", "Partnership"}
OPERATIONAL_STATUSES = {"Active", "Inactive", "Planned"}
ASSESSMENT_STATUSES = {"To Visit", "Visited", "Data Verified"}
CONDITION_RATINGS = {"Not assessed", "Excellent", "Good", "Fair", "Poor", "Critical"}

EMPLOYMENT_STATUSES = {"Full-time", "Part-time", "Contract", "Volunteer"}

ASSET_CATEGORIES = {"Equipment", "Furniture", "IT", "Teaching", "Office", "Other"}
ASSET_CONDITIONS = {"Excellent", "Good", "Fair", "Poor", "NonFunctional", "Critical"}

PROGRAM_STATUSES = {"Active", "Inactive", "Planned"}

REFERENCE_TYPES = {"site", "staff", "asset", "program"}

RECOMMENDATION_PRIORITIES = {"Low", "Medium", "High", "Critical"}
RECOMMENDATION_CATEGORIES = {"Infrastructure", "Staffing", "Equipment", "Programs", "Other"}
RECOMMENDATION_STATUSES = {"Open", "Completed", "Discarded"}

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class Rule:
    """Constraint on one payload field."""

    type: str = "str"           # str | int | float | bool | date | email | str_list | datetime
    required: bool = False
    choices: frozenset | None = None
    max_len: int | None = None
    min_len: int | None = None
    minimum: float | None = None
    maximum: float | None = None


def _enum(choices, required=False) -> Rule:
    return Rule(choices=frozenset(choices), required=required)


_COUNT = Rule(type="int", minimum=0)
_ID_REF = Rule(type="int", minimum=1)
_TEXT = Rule()

USER_RULES = {
    "username": Rule(required=True, max_len=80, min_len=3),
    "password": Rule(required=True, min_len=MIN_PASSWORD_LENGTH, max_len=128),
    "name": Rule(required=True, max_len=150),
    "role": _enum(USER_ROLES, required=True),
    "email": Rule(type="email", max_len=200),
    "phone": Rule(max_len=50),
    "status": _enum(USER_STATUSES),
}

SITE_RULES = {
    "site_id": Rule(required=True, max_len=50),
    "name": Rule(required=True, max_len=200),
    "type": _enum(SITE_TYPES, required=True),
    "district": Rule(required=True, max_len=100),
    "physical_address": _TEXT,
    "gps_lat": Rule(type="float", minimum=-90, maximum=90),
    "gps_lng": Rule(type="float", minimum=-180, maximum=180),
    "host_department": Rule(max_len=200),
    "agreement_type": _enum(AGREEMENT_TYPES),
    "agreement_details": _TEXT,
    "contract_number": Rule(max_len=100),
    "contract_term": Rule(max_len=100),
    "renewal_date": Rule(type="date"),
    "contact_person": Rule(max_len=150),
    "contact_email": Rule(type="email", max_len=200),
    "contact_phone": Rule(max_len=50),
    "establishment_date": Rule(type="date"),
    "operational_status": _enum(OPERATIONAL_STATUSES, required=True),
    "assessment_status": _enum(ASSESSMENT_STATUSES, required=True),
    "total_area": _COUNT,
    "classrooms": _COUNT,
    "offices": _COUNT,
    "computer_labs": _COUNT,
    "workshops": _COUNT,
    "has_library": Rule(type="bool"),
    "has_student_common_areas": Rule(type="bool"),
    "has_staff_facilities": Rule(type="bool"),
    "accessibility_features": _TEXT,
    "internet_connectivity": _TEXT,
    "security_features": _TEXT,
    "building_condition": _enum(CONDITION_RATINGS),
    "electrical_condition": _enum(CONDITION_RATINGS),
    "plumbing_condition": _enum(CONDITION_RATINGS),
    "interior_condition": _enum(CONDITION_RATINGS),
    "exterior_condition": _enum(CONDITION_RATINGS),
    "last_renovation_date": Rule(type="date"),
    "notes": _TEXT,
    "images": Rule(type="str_list"),
}

STAFF_RULES = {
    "staff_id": Rule(required=True, max_len=50),
    "first_name": Rule(required=True, max_len=100),
    "last_name": Rule(required=True, max_len=100),
    "position": Rule(max_len=150),
    "department": Rule(max_len=150),
    "email": Rule(type="email", max_len=200),
    "phone": Rule(max_len=50),
    "verified": Rule(type="bool"),
    "qualifications": Rule(type="str_list"),
    "skills": Rule(type="str_list"),
    "workload": Rule(type="int", minimum=0, maximum=168),
    "employment_status": _enum(EMPLOYMENT_STATUSES),
    "start_date": Rule(type="date"),
    "contract_end_date": Rule(type="date"),
    "notes": _TEXT,
    "site_id": _ID_REF,
}

ASSET_RULES = {
    "asset_id": Rule(required=True, max_len=50),
    "name": Rule(required=True, max_len=200),
    "category": _enum(ASSET_CATEGORIES, required=True),
    "type": Rule(max_len=100),
    "description": _TEXT,
    "manufacturer": Rule(max_len=150),
    "model": Rule(max_len=150),
    "serial_numbers": Rule(type="str_list"),
    "purchase_date": Rule(type="date"),
    "purchase_price": Rule(type="float", minimum=0),
    "condition": _enum(ASSET_CONDITIONS, required=True),
    "location": Rule(max_len=200),
    "assigned_to": Rule(max_len=200),
    "last_maintenance_date": Rule(type="date"),
    "next_maintenance_date": Rule(type="date"),
    "notes": _TEXT,
    "images": Rule(type="str_list"),
    "site_id": _ID_REF,
}

PROGRAM_RULES = {
    "program_id": Rule(required=True, max_len=50),
    "name": Rule(required=True, max_len=200),
    "category": Rule(required=True, max_len=100),
    "description": _TEXT,
    "enrollment_count": _COUNT,
    "start_date": Rule(type="date"),
    "end_date": Rule(type="date"),
    "status": _enum(PROGRAM_STATUSES, required=True),
    "notes": _TEXT,
    "site_id": _ID_REF,
}

ACTIVITY_RULES = {
    "type": Rule(required=True, max_len=40),
    "description": Rule(required=True, max_len=1000),
    "related_entity_type": _enum(REFERENCE_TYPES),
    "related_entity_id": _ID_REF,
    "performed_by": Rule(type="int", required=True, minimum=1),
}

RECOMMENDATION_RULES = {
    "site_id": Rule(type="int", required=True, minimum=1),
    "title": Rule(required=True, max_len=200),
    "description": _TEXT,
    "priority": _enum(RECOMMENDATION_PRIORITIES),
    "category": _enum(RECOMMENDATION_CATEGORIES),
    "status": _enum(RECOMMENDATION_STATUSES),
}

RULES: dict[EntityKind, dict[str, Rule]] = {
    EntityKind.USER: USER_RULES,
    EntityKind.SITE: SITE_RULES,
    EntityKind.STAFF: STAFF_RULES,
    EntityKind.ASSET: ASSET_RULES,
    EntityKind.PROGRAM: PROGRAM_RULES,
    EntityKind.ACTIVITY: ACTIVITY_RULES,
    EntityKind.RECOMMENDATION: RECOMMENDATION_RULES,
}


# ── Field checks ─────────────────────────────────────────────────────────


def _validate_enum(value: str, allowed: frozenset, field_name: str) -> str | None:
    """Return error message if value not in allowed set, else None."""
    if value not in allowed:
        return f"Invalid {field_name}: '{value}'. Allowed: {sorted(allowed)}"
    return None


def _validate_length(value: str, rule: Rule, field_name: str) -> str | None:
    """Return error message if value falls outside the rule's length bounds."""
    if rule.max_len is not None and len(value) > rule.max_len:
        return f"{field_name} exceeds maximum length of {rule.max_len} characters"
    if rule.min_len is not None and len(value) < rule.min_len:
        return f"{field_name} must be at least {rule.min_len} characters"
    return None


def _validate_range(value, rule: Rule, field_name: str) -> str | None:
    if rule.minimum is not None and value < rule.minimum:
        return f"{field_name} must be >= {rule.minimum:g}"
    if rule.maximum is not None and value > rule.maximum:
        return f"{field_name} must be <= {rule.maximum:g}"
    return None


def _check(name: str, value, rule: Rule):
    """Return ``(cleaned_value, error_message)`` for one non-null field."""
    if rule.type in ("str", "email"):
        if not isinstance(value, str):
            return None, f"{name} must be a string"
        value = value.strip()
        if err := _validate_length(value, rule, name):
            return None, err
        if rule.choices is not None and (err := _validate_enum(value, rule.choices, name)):
            return None, err
        if rule.type == "email" and value:
            try:
                value = validate_email(value, check_deliverability=False).normalized
            except EmailNotValidError as exc:
                return None, f"Invalid email: {exc}"
        return value, None

    if rule.type == "int":
        if isinstance(value, bool) or not isinstance(value, int):
            return None, f"{name} must be an integer"
        return value, _validate_range(value, rule, name)

    if rule.type == "float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None, f"{name} must be a number"
        if not math.isfinite(value):
            return None, f"{name} must be a finite number"
        return float(value), _validate_range(value, rule, name)

    if rule.type == "bool":
        if not isinstance(value, bool):
            return None, f"{name} must be true or false"
        return value, None

    if rule.type == "date":
        parsed = parse_date(value) if isinstance(value, str) else None
        if parsed is None:
            return None, f"{name} must be a date (YYYY-MM-DD or DD.MM.YYYY)"
        return parsed.isoformat(), None

    if rule.type == "str_list":
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            return None, f"{name} must be a list of strings"
        return [v.strip() for v in value if v.strip()], None

    raise ValueError(f"Unknown rule type {rule.type!r} for {name}")


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _validate(kind: EntityKind, data, *, partial: bool) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    rules = RULES[kind]
    server_fields = SERVER_FIELDS[kind]
    errors: dict[str, str] = {}
    cleaned: dict = {}

    for name, value in data.items():
        if name == "id" or name in server_fields:
            errors[name] = "is assigned by the server and cannot be set"
            continue
        rule = rules.get(name)
        if rule is None:
            errors[name] = "unknown field"
            continue
        if _is_blank(value):
            if rule.required:
                errors[name] = "is required" if not partial else "cannot be empty"
            else:
                cleaned[name] = None
            continue
        result, err = _check(name, value, rule)
        if err:
            errors[name] = err
        else:
            cleaned[name] = result

    if not partial:
        for name, rule in rules.items():
            if rule.required and name not in data:
                errors[name] = "is required"

    if errors:
        logger.debug("Rejected %s payload: %s", kind.value, errors)
        raise ValidationError(f"Invalid {kind.value} data", details=errors)
    return cleaned


def validate_insert(kind: EntityKind, data) -> dict:
    """Validate a full create payload; all required fields must be present."""
    return _validate(kind, data, partial=False)


def validate_patch(kind: EntityKind, data) -> dict:
    """Validate a partial update payload; only the given fields are checked."""
    return _validate(kind, data, partial=True)
