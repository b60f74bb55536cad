"""Application exception hierarchy.

Every error carries a machine-readable ``error_code`` and an HTTP status so
the exception handlers can render it without knowing the concrete type.
"""

from typing import Any, Optional


class BaseAPIException(Exception):
    """Base class for all application errors."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code


# ============================================================================
# Report errors
# ============================================================================


class ValidationError(BaseAPIException):
    """Caller passed an illegal value (enum, image, location, assignee, cursor)."""

    status_code = 422
    error_code = "VALIDATION_ERROR"


class InvalidTransitionError(ValidationError):
    """Requested status change is not allowed by the lifecycle policy."""

    status_code = 409
    error_code = "INVALID_TRANSITION"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move report from '{current}' to '{target}'",
            details={"current_status": current, "target_status": target},
        )
        self.current = current
        self.target = target


class UploadError(BaseAPIException):
    """Blob storage write failed."""

    status_code = 502
    error_code = "UPLOAD_FAILED"


class DatabaseError(BaseAPIException):
    """Generic store failure."""

    status_code = 500
    error_code = "DATABASE_ERROR"


class PersistenceError(DatabaseError):
    """Store write failed."""

    error_code = "PERSISTENCE_ERROR"


class QueryError(DatabaseError):
    """Store read failed."""

    error_code = "QUERY_ERROR"


class StoreError(Exception):
    """Raised by report store backends on any backend-level fault."""


class NotFoundError(BaseAPIException):
    """Point lookup target does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


# ============================================================================
# Auth errors
# ============================================================================


class MissingTokenError(BaseAPIException):
    status_code = 401
    error_code = "MISSING_TOKEN"

    def __init__(self, message: str = "Authorization token is required") -> None:
        super().__init__(message)


class InvalidTokenError(BaseAPIException):
    status_code = 401
    error_code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid authorization token") -> None:
        super().__init__(message)


class InvalidCredentialsError(BaseAPIException):
    status_code = 401
    error_code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class EmailAlreadyInUseError(BaseAPIException):
    status_code = 409
    error_code = "EMAIL_ALREADY_IN_USE"

    def __init__(self, email: str) -> None:
        super().__init__(f"Email already registered: {email}", details={"email": email})


class ForbiddenError(BaseAPIException):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "You do not have access to this resource") -> None:
        super().__init__(message)
