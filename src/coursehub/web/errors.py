"""Error taxonomy for the HTTP endpoints.

Handlers raise these; the endpoint dispatcher renders them as
{"success": false, "message": ...} with the matching status code.
"""

from __future__ import annotations


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(ApiError):
    """Missing or malformed input."""

    status_code = 400


class AuthError(ApiError):
    """Credentials did not match."""

    status_code = 401


class NotFoundError(ApiError):
    """Referenced record does not exist."""

    status_code = 404


class MethodNotAllowedError(ApiError):
    """Method not supported for the resource."""

    status_code = 405


class ConflictError(ApiError):
    """Uniqueness violation."""

    status_code = 409


class StoreError(ApiError):
    """A statement ran but did not have the expected effect."""

    status_code = 500
