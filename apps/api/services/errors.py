"""Error taxonomy shared by the catalog, account and media services."""

from typing import Optional


class CatalogError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Missing or malformed required input."""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(CatalogError):
    status_code = 404


class AuthError(CatalogError):
    """Missing, malformed or expired credentials."""

    status_code = 401


class StorageError(CatalogError):
    """Underlying store unavailable or an operation against it failed.

    The message is only for server-side logs; clients get a generic reply.
    """

    status_code = 500


class RateLimitError(CatalogError):
    status_code = 429
