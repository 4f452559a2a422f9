"""Custom exception classes for the Pengaduan service.

Every exception carries the HTTP status it maps to, so the application-level
handler can turn it into the standard JSON error envelope.
"""


class PengaduanError(Exception):
    """Base exception for all Pengaduan service errors."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str = None):
        """Initialize the exception.

        Args:
            message: Human readable message returned to the client.
        """
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PengaduanError):
    """Raised when input is malformed or missing."""

    status_code = 400
    default_message = "Invalid input"


class InvalidTransitionError(ValidationError):
    """Raised when a complaint status change is not allowed."""

    def __init__(self, current_status: str, new_status: str):
        """Initialize the exception.

        Args:
            current_status: Status the complaint currently has.
            new_status: Status that was requested.
        """
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(
            f"Cannot change status from '{current_status}' to '{new_status}'"
        )


class AuthError(PengaduanError):
    """Raised on bad credentials or a missing/invalid/expired token."""

    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(PengaduanError):
    """Raised when the caller is authenticated but not permitted."""

    status_code = 403
    default_message = "Access denied"


class NotFoundError(PengaduanError):
    """Raised when a requested record does not exist."""

    status_code = 404
    default_message = "Resource not found"


class ConflictError(PengaduanError):
    """Raised when a unique key is already taken."""

    status_code = 409
    default_message = "Resource already exists"


class InternalError(PengaduanError):
    """Raised on unexpected failures such as a failed database write."""

    pass
