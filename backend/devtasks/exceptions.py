"""
DevTasks Backend - Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions, one per failure class a gate or
       service can signal.
How:   Each exception carries a message, an HTTP status, a status class
       ("fail" for 4xx, "error" for 5xx), an operational flag, optional
       context and the moment it was raised. The ErrorNormalizer
       (error_handler.py) renders them into JSON responses.
Who:   Raised by gates, services and middleware; caught by global handlers.

Exception Hierarchy:
    DevTasksError (base)
    ├── ValidationFailedError    → 400 (operational)
    ├── NotAuthenticatedError    → 401 (operational)
    ├── ForbiddenError           → 403 (operational)
    ├── NotFoundError            → 404 (operational)
    ├── ConflictError            → 400 (operational, duplicate unique field)
    ├── PayloadTooLargeError     → 413 (operational)
    ├── RateLimitedError         → 429 (operational)
    └── InternalError            → 500 (defect unless marked operational)

Operational errors are expected conditions whose message is safe to show.
Non-operational errors are defects: clients only ever see a generic message
in minimal render mode, and they are always logged server-side.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def status_class(status_code: int) -> str:
    """'fail' for client-side (4xx) codes, 'error' for everything else."""
    return "fail" if 400 <= status_code < 500 else "error"


class DevTasksError(Exception):
    """
    Base exception for all DevTasks application errors.

    Attributes:
        message:        User-facing error description
        status_code:    HTTP status code for the response
        status:         "fail" (4xx) or "error" (5xx)
        is_operational: True for expected, handleable conditions
        context:        Additional debug info (logged, only rendered in verbose mode)
        timestamp:      When the error was raised (UTC)
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"
    operational: bool = True

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        operational: Optional[bool] = None,
    ):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.status = status_class(self.status_code)
        self.is_operational = self.operational if operational is None else operational
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Raw error object, as exposed in verbose error bodies."""
        return {
            "name": type(self).__name__,
            "statusCode": self.status_code,
            "status": self.status,
            "isOperational": self.is_operational,
            "context": self.context,
        }


class ValidationFailedError(DevTasksError):
    """
    Raised when client input fails validation.

    When:    Body rule violations, malformed identifiers, unparseable JSON.
    HTTP:    400 Bad Request

    `errors` keeps the individual messages that were joined into `message`.
    """

    status_code = 400
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        if errors:
            ctx["errors"] = list(errors)
        super().__init__(message=message, context=ctx)
        self.errors = list(errors or [])
        self.field = field


class NotAuthenticatedError(DevTasksError):
    """Missing, invalid or expired credentials, or a revoked account. HTTP 401."""

    status_code = 401
    default_message = "You are not logged in! Please log in to get access."


class ForbiddenError(DevTasksError):
    """Authenticated, but the role or relationship does not grant access. HTTP 403."""

    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFoundError(DevTasksError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found

    The store returns None for missing rows; gates and services convert
    that into this exception.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message or f"{resource} not found", context=ctx)


class ConflictError(DevTasksError):
    """
    Raised when a write collides with a unique field (e.g. a second user
    with the same email).

    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        field: str,
        value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if value is None:
            message = f"{field} already exists. Please choose another value."
        else:
            message = f"{field} '{value}' already exists. Please choose another value."
        ctx = context or {}
        ctx["field"] = field
        if value is not None:
            ctx["value"] = value
        super().__init__(message=message, context=ctx)
        self.field = field
        self.value = value


class PayloadTooLargeError(DevTasksError):
    """
    Raised when a request body exceeds the configured size limit.

    HTTP:    413 Payload Too Large
    """

    status_code = 413

    def __init__(
        self,
        limit: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["limit_bytes"] = limit
        super().__init__(
            message=f"Request body too large. The limit is {limit} bytes.",
            context=ctx,
        )
        self.limit = limit


class RateLimitedError(DevTasksError):
    """
    Raised when a client exceeds its request budget for the current window.

    HTTP:    429 Too Many Requests

    Response includes:
        - retry_after: Seconds until the window resets
        - Retry-After header for HTTP-compliant clients
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(
            message=f"Too many requests. Try again in {retry_after} seconds.",
            context=ctx,
        )
        self.retry_after = retry_after


class InternalError(DevTasksError):
    """
    Unexpected server-side failure. HTTP 500.

    Non-operational by default; pass operational=True for known server
    conditions whose message is safe to show.
    """

    status_code = 500
    default_message = "Something went wrong!"
    operational = False
