"""Domain errors raised by services.

Routes never build HTTP errors for these by hand: the exception handlers in
`app.main` map each class to its status code and the structured error body.
"""

from typing import Any


class PortalError(Exception):
    """Base exception for portal services."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class InvalidArgument(PortalError):
    """Bad input shape or range. Raised before any write."""

    code = "INVALID_ARGUMENT"
    status_code = 400


class NotFound(PortalError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class UpstreamUnavailable(PortalError):
    """An external data source failed. Recovered locally, never returned to clients."""

    code = "UPSTREAM_UNAVAILABLE"
    status_code = 502

    def __init__(self, source: str, message: str):
        super().__init__(message, detail={"source": source})
        self.source = source


class StorageFailure(PortalError):
    """The database rejected a write."""

    code = "STORAGE_FAILURE"
    status_code = 500


class Unauthorized(PortalError):
    """Missing or wrong admin credentials."""

    code = "UNAUTHORIZED"
    status_code = 401
