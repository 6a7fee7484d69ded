"""
Platform-wide exception hierarchy.

Services raise these; ``projecthub.core.error_handlers`` maps each type to
one HTTP status so blueprints never build error responses for business
failures themselves.

Usage:
    from projecthub.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Project", resource_id=42)
    raise ValidationError("A review reason is required for rejection.")
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist. Maps to HTTP 404.

    Also used when a record exists but is outside the caller's reach
    (e.g. appealing someone else's project), so the response does not
    confirm its existence.

    Args:
        resource: Human-readable entity name (e.g. "Project", "Module").
        resource_id: The PK that was looked up.
        message: Optional full message overriding the generated one.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        if message is None:
            message = f"{resource}"
            if resource_id is not None:
                message += f" id={resource_id}"
            message += " not found"
        super().__init__(message)


class ValidationError(Exception):
    """Raised when input is missing or violates a business rule. Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown, or a list of rule violations.
    """

    def __init__(self, message: str, details: dict | list | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value. Maps to HTTP 409.

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


class StateConflictError(Exception):
    """Raised when a status transition is not allowed from the current state.

    Maps to HTTP 409.
    """

    def __init__(
        self, resource: str, current: str, requested: str, message: str | None = None
    ) -> None:
        self.resource = resource
        self.current = current
        self.requested = requested
        super().__init__(message or f"Invalid {resource} transition: {current} → {requested}")


class PermissionDeniedError(Exception):
    """Raised when the caller's role may act, but not on this record. Maps to HTTP 403."""


class AuthenticationError(Exception):
    """Raised when credentials are missing, wrong, or incomplete. Maps to HTTP 401."""


class TooManyAttemptsError(Exception):
    """Raised when a login key is locked out. Maps to HTTP 429.

    Args:
        retry_after: Seconds until the lock expires.
    """

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(
            f"Too many failed login attempts. Try again in {retry_after} seconds."
        )
