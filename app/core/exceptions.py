"""
Platform-wide exception hierarchy.

Services raise these types; blueprints register one handler per type and
map them to HTTP status codes:

    NotFoundError          → 404
    ValidationError        → 422
    ConflictError          → 409
    InvalidTransitionError → 409
    FatalImportError       → 400

Row-level CSV problems are NOT exceptions: they are collected in the
import result so the rest of the batch can still commit.

Usage:
    from app.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Submission", resource_id=42)
    raise ValidationError("Please select a reason for pausing.", details={"reason": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model name (e.g. "Submission", "User").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input fails business-rule validation in the service layer.

    Covers both form/row validation and user-facing warnings such as pausing
    a timer without a reason. Nothing is mutated when this is raised.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value.

    Args:
        resource: Model name.
        field: The unique field that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class InvalidTransitionError(Exception):
    """Raised when a timer action is not allowed from the current state.

    Args:
        action: The attempted action ("pause", "resume", ...).
        from_state: The state the entity was in.
        entity_id: PK of the entity, for logs.
    """

    def __init__(self, action: str, from_state: str, entity_id: int | None = None) -> None:
        self.action = action
        self.from_state = from_state
        self.entity_id = entity_id
        super().__init__(f"Cannot {action} a timer that is {from_state}")


class FatalImportError(Exception):
    """Raised when a CSV upload cannot be processed at all.

    Empty files and missing required columns abort the whole batch before
    any row is reconciled.
    """

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)
