"""Domain error taxonomy.

Each error carries the HTTP status the route layer maps it to, so the
mapping kind -> transport status is deterministic and lives in one place.
Only `NotFound` on a single-record fetch is absorbed (as `None`) by the
storage layer; everything else propagates with its kind preserved.
"""

from __future__ import annotations

from typing import Optional


class DomainError(RuntimeError):
    """Base error for the fund administration domain layer."""

    kind = "domain_error"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    """Lookup by identity found nothing."""

    kind = "not_found"
    http_status = 404


class ValidationError(DomainError):
    """Malformed or missing input, rejected before any storage round-trip."""

    kind = "validation_error"
    http_status = 400


class InvalidRole(ValidationError, ValueError):
    """Raw input could not be converted into a Role."""

    kind = "invalid_role"


class InvalidHierarchy(DomainError):
    """Unknown parent, self-parenting or a cycle in the structure forest."""

    kind = "invalid_hierarchy"
    http_status = 400


class InvalidTransition(DomainError):
    """Illegal deployment-status change."""

    kind = "invalid_transition"
    http_status = 409


class AuthorizationDenied(DomainError):
    """The authorization evaluator returned Deny."""

    kind = "authorization_denied"
    http_status = 403

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class StorageFailure(DomainError):
    """The storage collaborator reported an error. Never retried here."""

    kind = "storage_failure"
    http_status = 500

    def __init__(self, message: str, *, transient: bool = False, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.transient = transient
        self.cause = cause
        if transient:
            self.http_status = 503
