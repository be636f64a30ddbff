"""Monetra — Application Error Taxonomy.

Composers raise these; the request pipeline translates them into the
``{success: false, error: {message, code}}`` envelope using ``status_code``.
``code`` is used only when no endpoint-specific error code applies.
"""


class AppError(Exception):
    """Base application error carrying an HTTP status."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, status_code: int | None = None):
        if status_code is not None:
            self.status_code = status_code
        self.message = message
        super().__init__(message)


class Unauthorized(AppError):
    """No authenticated user on the request."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class Forbidden(AppError):
    """Caller does not own the resource or lacks the required role."""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class ValidationError(AppError):
    """A required field is missing or malformed."""

    status_code = 400
    code = "VALIDATION_FAILED"

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message)


class ExternalServiceError(AppError):
    """An upstream API (AdSense, Google OAuth) failed."""

    status_code = 502
    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service: str, message: str = "External service error"):
        super().__init__(f"{service}: {message}")
