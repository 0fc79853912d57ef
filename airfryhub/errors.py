"""
Error types raised by the forum service.

Only three kinds of failure exist: validation (caught before any network
call), remote-call failure (platform or network error) and not-found.
Authentication and ownership failures are reported separately so routes can
map them to 401/403.
"""

from __future__ import annotations


class ForumError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(ForumError):
    """Schema check failed; carries one message per offending field."""

    status_code = 422

    def __init__(self, errors: dict[str, str]):
        super().__init__("Validation failed")
        self.errors = dict(errors)


class NotFound(ForumError):
    status_code = 404


class NotAuthenticated(ForumError):
    status_code = 401

    def __init__(self, message: str = "Not authenticated yet"):
        super().__init__(message)


class Forbidden(ForumError):
    status_code = 403


class RemoteCallFailed(ForumError):
    status_code = 502
