from __future__ import annotations

from typing import Any


GENERIC_DENIAL_MESSAGE = "Organization not found"


class OrgContextError(Exception):
    """Base class for failures while resolving or checking an org context."""

    category = "org_context_error"
    retryable = False


class Unauthenticated(OrgContextError):
    category = "unauthenticated"

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class AccessDenied(OrgContextError):
    """Identity is known but may not act as the requested organization."""

    category = "denied"

    def __init__(self, message: str = GENERIC_DENIAL_MESSAGE, *, reason: str = "denied") -> None:
        self.reason = reason
        super().__init__(message)


class Forbidden(AccessDenied):
    """Context resolved, but the action needs more than it grants."""

    category = "forbidden"

    def __init__(self, message: str, *, reason: str = "forbidden") -> None:
        super().__init__(message, reason=reason)


class Misconfigured(OrgContextError):
    """Caller input (usually an explicit org id) is missing or malformed."""

    category = "misconfigured"


class TransientLookupFailure(OrgContextError):
    """The data store failed during a membership or organization lookup.

    Surfaced as-is; authorization lookups are never retried.
    """

    category = "transient_lookup_failure"
    retryable = True

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} lookup failed{detail}")


_STATUS_BY_CATEGORY = {
    Unauthenticated.category: 401,
    AccessDenied.category: 404,
    Forbidden.category: 403,
    Misconfigured.category: 400,
    TransientLookupFailure.category: 503,
}


def context_error_http_status(exc: OrgContextError) -> int:
    return _STATUS_BY_CATEGORY.get(exc.category, 400)


def context_error_detail(exc: OrgContextError) -> dict[str, Any]:
    # Denials share one message so callers cannot tell which org ids exist.
    if isinstance(exc, AccessDenied) and not isinstance(exc, Forbidden):
        message = GENERIC_DENIAL_MESSAGE
    elif isinstance(exc, TransientLookupFailure):
        message = "Organization context temporarily unavailable"
    else:
        message = str(exc)
    return {
        "type": "org_context_error",
        "category": exc.category,
        "retryable": exc.retryable,
        "message": message,
    }
