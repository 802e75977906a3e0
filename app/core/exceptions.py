"""
Registry-wide exception hierarchy.

The entity store and the service layer raise these types; blueprints
register handlers against them once and get consistent HTTP status codes
everywhere.

Usage:
    from app.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Site", resource_id=42)
    raise ValidationError("Invalid payload", details={"type": "..."})
"""


class NotFoundError(Exception):
    """Raised when an update targets a row that does not exist.

    Point lookups return ``None`` instead; only mutations of a missing row
    are errors.

    Args:
        resource: Human-readable entity name (e.g. "Site", "Staff member").
        resource_id: The internal id that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" with ID {resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a payload fails schema or business-rule validation.

    Maps to HTTP 422 in blueprint error handlers.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names;
                 values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when a write would duplicate a unique business identifier.

    Maps to HTTP 409.

    Args:
        resource: Entity name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class AuthenticationError(Exception):
    """Raised when a write arrives without a known, active actor. HTTP 401."""


class PermissionDeniedError(Exception):
    """Raised when the actor's role does not allow the operation. HTTP 403."""

    def __init__(self, message: str, required: str | None = None) -> None:
        self.required = required
        super().__init__(message)
