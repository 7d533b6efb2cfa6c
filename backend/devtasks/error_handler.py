"""
DevTasks Backend - Error Normalizer
====================================

What:  Turns any exception raised while serving a request into one JSON
       error shape and status code.
How:   normalize() pattern-matches library errors (integrity violations,
       pydantic validation, PyJWT, Starlette HTTP errors) into DevTasksError
       instances; render() picks the body for the configured RenderMode.
Who:   register_exception_handlers() wires it into the app; the rate-limit
       middleware calls render() directly.

Response bodies:
    verbose   {status, error, message, stack, timestamp}
    minimal   {status, message, timestamp}
              non-operational → {status: "error", message: "Something went wrong!"}

Non-operational errors are logged with their traceback in both modes.
"""

import logging
import re
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

import jwt
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from devtasks.auth.gates import TOKEN_EXPIRED, TOKEN_INVALID
from devtasks.config import RenderMode
from devtasks.exceptions import (
    ConflictError,
    DevTasksError,
    InternalError,
    NotAuthenticatedError,
    ValidationFailedError,
)
from devtasks.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Something went wrong!"

# PostgreSQL: 'DETAIL:  Key (email)=(a@b.com) already exists.'
_PG_DUPLICATE = re.compile(r"Key \((?P<field>[^)]+)\)=\((?P<value>[^)]*)\)")
# SQLite: 'UNIQUE constraint failed: users.email'
_SQLITE_DUPLICATE = re.compile(r"UNIQUE constraint failed: \w+\.(?P<field>\w+)")


def _validation_messages(errors: Iterable[Dict[str, Any]]) -> list:
    messages = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(loc)
        msg = error.get("msg", "is invalid")
        messages.append(f"{field}: {msg}" if field else msg)
    return messages


def _duplicate_from_integrity(exc: IntegrityError) -> Optional[ConflictError]:
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    match = _PG_DUPLICATE.search(detail)
    if match:
        return ConflictError(match.group("field"), match.group("value"))
    match = _SQLITE_DUPLICATE.search(detail)
    if match:
        return ConflictError(match.group("field"))
    return None


class ErrorNormalizer:
    """
    Normalizes and renders errors for one RenderMode.

    The mode is fixed at construction; nothing here reads the environment.
    """

    def __init__(self, mode: RenderMode = RenderMode.MINIMAL):
        self.mode = mode

    # ── Classification ────────────────────────────────────────────────────

    def normalize(self, exc: BaseException, path: Optional[str] = None) -> DevTasksError:
        if isinstance(exc, DevTasksError):
            return exc

        if isinstance(exc, IntegrityError):
            conflict = _duplicate_from_integrity(exc)
            if conflict is not None:
                return conflict
            return InternalError(context={"reason": "integrity"})

        if isinstance(exc, (RequestValidationError, PydanticValidationError)):
            messages = _validation_messages(exc.errors())
            return ValidationFailedError(
                "Invalid input data. " + ". ".join(messages),
                errors=messages,
            )

        # ExpiredSignatureError subclasses InvalidTokenError; check it first
        if isinstance(exc, jwt.ExpiredSignatureError):
            return NotAuthenticatedError(TOKEN_EXPIRED)
        if isinstance(exc, jwt.InvalidTokenError):
            return NotAuthenticatedError(TOKEN_INVALID)

        if isinstance(exc, StarletteHTTPException):
            if exc.status_code == 404 and exc.detail == "Not Found":
                return DevTasksError(f"Route {path} not found", status_code=404)
            return DevTasksError(
                str(exc.detail),
                status_code=exc.status_code,
                operational=exc.status_code < 500,
            )

        return InternalError(context={"exception": type(exc).__name__})

    # ── Rendering ─────────────────────────────────────────────────────────

    def body(self, error: DevTasksError, original: BaseException) -> Dict[str, Any]:
        timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

        if self.mode is RenderMode.VERBOSE:
            raw = error.to_dict()
            if original is not error:
                raw["cause"] = repr(original)
            return {
                "status": error.status,
                "error": raw,
                "message": error.message if error.is_operational else str(original) or error.message,
                "stack": "".join(
                    traceback.format_exception(type(original), original, original.__traceback__)
                ),
                "timestamp": timestamp,
            }

        if not error.is_operational:
            return {"status": "error", "message": GENERIC_MESSAGE, "timestamp": timestamp}
        return {"status": error.status, "message": error.message, "timestamp": timestamp}

    def render(self, exc: BaseException, request: Request) -> JSONResponse:
        error = self.normalize(exc, request.url.path)
        rid = request_id_var.get("")

        if not error.is_operational:
            logger.error(
                "[%s] Unhandled error on %s %s: %s | Context: %s",
                rid,
                request.method,
                request.url.path,
                exc,
                error.context,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        elif error.status_code >= 500:
            logger.error("[%s] %s", rid, error.message)
        else:
            logger.info("[%s] %d %s", rid, error.status_code, error.message)

        status_code = error.status_code
        if not error.is_operational and self.mode is RenderMode.MINIMAL:
            status_code = 500

        headers = {}
        retry_after = getattr(error, "retry_after", None)
        if status_code == 429 and retry_after is not None:
            headers["Retry-After"] = str(retry_after)

        return JSONResponse(
            status_code=status_code,
            content=self.body(error, exc),
            headers=headers or None,
        )


def register_exception_handlers(app: FastAPI, normalizer: ErrorNormalizer) -> None:
    """
    Route every error class through the normalizer.

    Handler hierarchy:
        DevTasksError           → its own status
        RequestValidationError  → 400 "Invalid input data. ..."
        IntegrityError          → 400 duplicate field, else 500
        PyJWT errors            → 401
        HTTPException           → its status (404 "Route <path> not found")
        Exception (fallback)    → 500
    """

    async def handle(request: Request, exc: Exception) -> JSONResponse:
        return normalizer.render(exc, request)

    for exc_class in (
        DevTasksError,
        RequestValidationError,
        PydanticValidationError,
        IntegrityError,
        jwt.InvalidTokenError,
        StarletteHTTPException,
        Exception,
    ):
        app.add_exception_handler(exc_class, handle)
