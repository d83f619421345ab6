"""
core/errors.py -- Application error taxonomy.

Every expected failure is raised as an AppError subclass carrying the HTTP
status it maps to and a client-safe message. api/main.py turns any AppError
into the uniform {"error": <message>} envelope, so route handlers and
services never build error responses by hand.

Layer rule: core/ is the kernel. No imports from api/, auth/, or listings/.
"""


class AppError(Exception):
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    message = "Invalid input"


class Unauthorized(AppError):
    """Missing, malformed, or expired session -- never says which."""

    status_code = 401
    message = "Unauthorized"


class Forbidden(AppError):
    status_code = 403
    message = "Forbidden"


class NotFound(AppError):
    status_code = 404
    message = "Not found"


class Conflict(AppError):
    """Unique-constraint violation (duplicate email, slug, or source URL)."""

    status_code = 409
    message = "Conflict"


class InternalError(AppError):
    """Unexpected store or runtime failure. The message never carries detail."""

    status_code = 500
    message = "Internal server error"
