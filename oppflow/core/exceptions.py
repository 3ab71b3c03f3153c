"""Custom exceptions for the Oppflow service.

Every error carries a machine-readable ``error_code`` and a human-readable
message. The API layer maps codes to HTTP statuses in one place.
"""


class OppflowError(Exception):
    """Base exception for Oppflow."""

    error_code = "internal_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ValidationError(OppflowError):
    """Raised when input is malformed or missing; ``field`` names the first violation."""

    error_code = "validation_error"

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(OppflowError):
    """Raised when a resource is absent or owned by another tenant."""

    error_code = "not_found"


class ConflictError(OppflowError):
    """Raised when a write violates a uniqueness or integrity constraint."""

    error_code = "conflict"


class AuthenticationError(OppflowError):
    """Raised when no valid principal is available."""

    error_code = "unauthorized"


class AuthorizationError(OppflowError):
    """Raised when a valid principal is not entitled to a tenant or action."""

    error_code = "forbidden"


class UpstreamUnavailableError(OppflowError):
    """Raised by collaborators whose failure has a documented fallback."""

    error_code = "upstream_unavailable"


class DeliveryError(OppflowError):
    """Raised when the mail sender fails on a user-visible send."""

    error_code = "delivery_failed"


class BlobStoreError(OppflowError):
    """Raised when the blob store rejects an upload or delete."""

    error_code = "blob_store_failed"


class DatabaseError(OppflowError):
    """Raised when a database operation fails."""


class ConfigurationError(OppflowError):
    """Raised when configuration is invalid."""

    error_code = "configuration_error"
