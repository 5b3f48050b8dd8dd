"""Error taxonomy for the FURIPS admin service.

Every error carries the HTTP status it maps to at the request boundary.
"""

from typing import Any


class FuripsError(Exception):
    """Base exception for the service."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(FuripsError):
    """Malformed or missing input."""

    status_code = 400


class AuthenticationError(FuripsError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class PermissionDeniedError(FuripsError):
    """Caller's role is not allowed to perform the operation."""

    status_code = 403


class NotFoundError(FuripsError):
    """Referenced entity does not exist."""

    status_code = 404


class IncompleteUploadError(FuripsError):
    """Assembly attempted before every chunk was received."""

    status_code = 409

    def __init__(self, upload_id: str, missing: list[int]):
        super().__init__(
            f"Upload {upload_id} is missing {len(missing)} chunk(s)",
            details={"missingChunks": missing},
        )
        self.upload_id = upload_id
        self.missing = missing


class ConflictError(FuripsError):
    """Operation clashes with work already in progress."""

    status_code = 409


class ConfigurationError(FuripsError):
    """A required external service is not set up."""

    status_code = 500


class StorageError(FuripsError):
    """Local filesystem operation failed."""

    status_code = 500


class UpstreamError(FuripsError):
    """Storage provider call failed."""

    status_code = 500
