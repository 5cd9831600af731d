"""Domain errors raised by service functions.

Routers translate these into HTTP responses using ``status_code``.
"""

from __future__ import annotations


class ServiceError(ValueError):
    """Base class for expected, caller-facing failures."""

    status_code: int = 400


class ValidationFailed(ServiceError):
    """A required field is missing or malformed."""

    status_code = 400


class NotFound(ServiceError):
    """A referenced user, post, comment or conversation does not exist."""

    status_code = 404


class Forbidden(ServiceError):
    """The caller is not a participant or owner of the target."""

    status_code = 403


class Conflict(ServiceError):
    """The mutation would duplicate an existing row."""

    status_code = 409
