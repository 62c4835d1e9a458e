"""Catalog error taxonomy.

Every error names the pipeline stage that failed and, where available, the
underlying cause, so that operators can reconcile partially applied work
(orphaned media, for example) from the error response alone.
"""

from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base exception for the rental catalog backend."""

    status_code = 500

    def __init__(
        self,
        message: str,
        stage: str = "",
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.cause = cause
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Structured payload for API responses."""
        return {
            "message": self.message,
            "stage": self.stage,
            "error": str(self.cause) if self.cause else None,
            "details": self.details,
        }


class ValidationError(CatalogError):
    """Missing or malformed required input. Nothing was persisted."""

    status_code = 400


class GeocodeFailure(CatalogError):
    """The address lookup did not resolve to coordinates."""

    status_code = 422

    def __init__(self, message: str, status: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.status = status
        self.details.setdefault("provider_status", status)


class StorageFailure(CatalogError):
    """Upload to or deletion from object storage failed."""

    status_code = 502


class GeometryParseError(CatalogError):
    """A stored spatial value could not be decoded into a point."""

    status_code = 500


class NotFound(CatalogError):
    """The referenced listing or room does not exist."""

    status_code = 404


class AuthorizationError(CatalogError):
    """Caller is neither the owning manager nor an administrator."""

    status_code = 403


class MissingCredentials(AuthorizationError):
    """No bearer credential was supplied."""

    status_code = 401


class TransactionFailure(CatalogError):
    """The atomic delete failed and was rolled back in full."""

    status_code = 500


class PersistenceFailure(CatalogError):
    """A location or listing write failed and was rolled back."""

    status_code = 500
