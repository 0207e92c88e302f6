"""
Error taxonomy for the auth service.

Every error carries the message returned to the caller and the HTTP status
it maps to; the exception handlers in ``main`` render them as
``{"message": ...}``.
"""


class AuthServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AuthServiceError):
    """Missing or malformed input."""
    status_code = 400


class AuthorizationError(AuthServiceError):
    """Admin registration without the right admin key."""
    status_code = 400


class ConflictError(AuthServiceError):
    """Email or external id already registered in the tenant."""
    status_code = 400


class AuthenticationError(AuthServiceError):
    """Unknown user or wrong password."""
    status_code = 401


class TokenInvalidError(AuthServiceError):
    """Bad signature, malformed or expired token."""
    status_code = 401


class NotFoundError(AuthServiceError):
    status_code = 404


class TenantResolutionError(AuthServiceError):
    """Bad tenant identifier (400) or unreachable tenant store (500)."""
    status_code = 400


class StorageError(AuthServiceError):
    status_code = 500


class DuplicateKeyError(StorageError):
    """A unique index rejected the insert."""


class ConfigurationError(AuthServiceError):
    """The service is missing a required secret."""
    status_code = 500
