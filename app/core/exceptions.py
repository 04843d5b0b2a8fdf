"""Custom exception hierarchy.

Each error class carries the HTTP status the API layer answers with, so the
exception handlers in ``app.api.errors`` stay a single lookup.
"""


class AppError(Exception):
    """Base exception for application errors."""

    status_code: int = 500
    error_label: str = "Internal server error"

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class AuthenticationError(AppError):
    """Raised when no authenticated session is present."""

    status_code = 401
    error_label = "Unauthorized"


class ValidationError(AppError):
    """Raised when input validation fails."""

    status_code = 400
    error_label = "Validation failed"


class NotFoundError(AppError):
    """Raised when a resource does not exist or is not visible to the caller."""

    status_code = 404
    error_label = "Not found"


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""

    status_code = 500
    error_label = "Configuration error"


class UpstreamError(AppError):
    """Raised when a backing service (database, storage, workflow) fails."""

    status_code = 500
    error_label = "Upstream failure"


class DatabaseError(UpstreamError):
    """Raised when a database operation fails."""
    pass


class StorageError(UpstreamError):
    """Raised when an object storage operation fails."""
    pass


class APIClientError(UpstreamError):
    """Raised when an external API call fails."""
    pass


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class WorkflowError(APIClientError):
    """Raised when the extraction workflow cannot be reached or answers badly."""
    pass
