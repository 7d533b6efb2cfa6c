"""
DevTasks Backend - Error Normalizer Tests
==========================================

What we test:
    ✅ Classification of library errors (integrity, pydantic, PyJWT, HTTP)
    ✅ Minimal vs verbose bodies
    ✅ Non-operational errors never leak in minimal mode, always logged
    ✅ Retry-After on 429
"""

import json
import logging

import jwt
import pytest
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from devtasks.config import RenderMode
from devtasks.error_handler import GENERIC_MESSAGE, ErrorNormalizer
from devtasks.exceptions import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotAuthenticatedError,
    RateLimitedError,
    ValidationFailedError,
)


def _request(path: str = "/api/projects") -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "headers": [],
        "scheme": "http",
        "server": ("test", 80),
        "client": ("127.0.0.1", 1234),
    })


def _body(response) -> dict:
    return json.loads(response.body)


class _Payload(BaseModel):
    hours: int


class TestNormalize:

    def setup_method(self):
        self.normalizer = ErrorNormalizer(RenderMode.MINIMAL)

    def test_app_errors_pass_through(self):
        err = ForbiddenError()
        assert self.normalizer.normalize(err) is err

    def test_postgres_duplicate_key(self):
        orig = Exception(
            'duplicate key value violates unique constraint "uq_users_email"\n'
            "DETAIL:  Key (email)=(a@b.com) already exists."
        )
        result = self.normalizer.normalize(IntegrityError("INSERT ...", {}, orig))
        assert isinstance(result, ConflictError)
        assert result.status_code == 400
        assert result.message == "email 'a@b.com' already exists. Please choose another value."

    def test_sqlite_duplicate_key(self):
        orig = Exception("UNIQUE constraint failed: users.email")
        result = self.normalizer.normalize(IntegrityError("INSERT ...", {}, orig))
        assert isinstance(result, ConflictError)
        assert "email" in result.message

    def test_other_integrity_errors_are_internal(self):
        orig = Exception("FOREIGN KEY constraint failed")
        result = self.normalizer.normalize(IntegrityError("INSERT ...", {}, orig))
        assert isinstance(result, InternalError)
        assert not result.is_operational

    def test_pydantic_validation(self):
        with pytest.raises(ValidationError) as exc_info:
            _Payload.model_validate({"hours": "lots"})
        result = self.normalizer.normalize(exc_info.value)
        assert isinstance(result, ValidationFailedError)
        assert result.status_code == 400
        assert result.message.startswith("Invalid input data. hours: ")

    def test_jwt_errors(self):
        expired = self.normalizer.normalize(jwt.ExpiredSignatureError("expired"))
        invalid = self.normalizer.normalize(jwt.InvalidSignatureError("bad"))
        assert isinstance(expired, NotAuthenticatedError)
        assert isinstance(invalid, NotAuthenticatedError)
        assert expired.message != invalid.message

    def test_unknown_route(self):
        result = self.normalizer.normalize(StarletteHTTPException(404), "/api/nope")
        assert result.status_code == 404
        assert result.message == "Route /api/nope not found"
        assert result.is_operational

    def test_method_not_allowed_keeps_status(self):
        result = self.normalizer.normalize(StarletteHTTPException(405))
        assert result.status_code == 405
        assert result.status == "fail"

    def test_unknown_exception_is_internal(self):
        result = self.normalizer.normalize(KeyError("boom"))
        assert isinstance(result, InternalError)
        assert result.status_code == 500
        assert result.status == "error"


class TestRenderMinimal:

    def setup_method(self):
        self.normalizer = ErrorNormalizer(RenderMode.MINIMAL)

    def test_operational_error_shows_message(self):
        response = self.normalizer.render(ForbiddenError("You do not have access to this project"), _request())
        body = _body(response)
        assert response.status_code == 403
        assert set(body) == {"status", "message", "timestamp"}
        assert body["status"] == "fail"
        assert body["message"] == "You do not have access to this project"

    def test_non_operational_error_never_leaks(self, caplog):
        secret = "password=hunter2 at db-primary:5432"
        with caplog.at_level(logging.ERROR, logger="devtasks.error_handler"):
            response = self.normalizer.render(RuntimeError(secret), _request())
        body = _body(response)
        assert response.status_code == 500
        assert body == {"status": "error", "message": GENERIC_MESSAGE, "timestamp": body["timestamp"]}
        assert secret not in response.body.decode()
        assert any(secret in record.getMessage() for record in caplog.records)

    def test_internal_error_marked_operational_shows_message(self):
        err = InternalError("JWT secret not configured", operational=True)
        body = _body(self.normalizer.render(err, _request()))
        assert body["message"] == "JWT secret not configured"
        assert body["status"] == "error"

    def test_rate_limited_carries_retry_after(self):
        response = self.normalizer.render(RateLimitedError(42), _request())
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"
        assert _body(response)["message"] == "Too many requests. Try again in 42 seconds."

    def test_duplicate_email_body(self):
        orig = Exception("DETAIL:  Key (email)=(a@b.com) already exists.")
        response = self.normalizer.render(IntegrityError("INSERT", {}, orig), _request())
        body = _body(response)
        assert response.status_code == 400
        assert "email" in body["message"] and "a@b.com" in body["message"]


class TestRenderVerbose:

    def setup_method(self):
        self.normalizer = ErrorNormalizer(RenderMode.VERBOSE)

    def test_verbose_body_has_stack_and_raw_error(self):
        try:
            raise ValueError("raw detail")
        except ValueError as exc:
            response = self.normalizer.render(exc, _request())
        body = _body(response)
        assert set(body) == {"status", "error", "message", "stack", "timestamp"}
        assert body["message"] == "raw detail"
        assert "ValueError" in body["stack"]
        assert body["error"]["isOperational"] is False
        assert body["error"]["statusCode"] == 500

    def test_verbose_operational_error(self):
        response = self.normalizer.render(NotAuthenticatedError(), _request())
        body = _body(response)
        assert response.status_code == 401
        assert body["status"] == "fail"
        assert body["error"]["name"] == "NotAuthenticatedError"
