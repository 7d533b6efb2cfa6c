"""
DevTasks Backend - Security Middleware
=======================================

What:  Hardening headers on every response, and a cap on request body size.
How:   SecurityHeadersMiddleware adds the standard browser-hardening headers
       unless a route already set them. RequestSizeLimitMiddleware rejects
       bodies whose declared Content-Length exceeds the cap; read_body()
       enforces the same cap on bodies sent without a length.
Who:   create_app() registers both; validate_body() reads through read_body().

Headers set by default:
    Content-Security-Policy      same-origin only (skipped on /docs, /redoc)
    Strict-Transport-Security    max-age from settings, includeSubDomains
    X-Content-Type-Options       nosniff
    X-Frame-Options              SAMEORIGIN
    Referrer-Policy              no-referrer
    Cross-Origin-Opener-Policy   same-origin
    Cross-Origin-Resource-Policy same-origin
    X-DNS-Prefetch-Control       off
    X-Permitted-Cross-Domain-Policies  none
    X-XSS-Protection             0 (legacy auditor disabled)
"""

import logging
from typing import Dict, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from devtasks.exceptions import PayloadTooLargeError, ValidationFailedError

logger = logging.getLogger(__name__)

CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "base-uri 'self'",
        "font-src 'self' https: data:",
        "form-action 'self'",
        "frame-ancestors 'self'",
        "img-src 'self' data:",
        "object-src 'none'",
        "script-src 'self'",
        "script-src-attr 'none'",
        "style-src 'self' https: 'unsafe-inline'",
        "upgrade-insecure-requests",
    ]
)

DEFAULT_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds hardening headers to every response."""

    # Swagger UI and ReDoc load their assets from a CDN
    CSP_EXEMPT_PATHS = frozenset({"/docs", "/redoc"})

    def __init__(
        self,
        app: ASGIApp,
        hsts_max_age: int = 0,
        csp_exempt_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.headers = dict(DEFAULT_HEADERS)
        if hsts_max_age > 0:
            self.headers["Strict-Transport-Security"] = f"max-age={hsts_max_age}; includeSubDomains"
        self.csp_exempt_paths = (
            frozenset(csp_exempt_paths) if csp_exempt_paths is not None else self.CSP_EXEMPT_PATHS
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        if request.url.path not in self.csp_exempt_paths:
            response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests whose Content-Length exceeds max_body_bytes with a
    normalized 413. Like RateLimitMiddleware, it renders the error itself
    because app exception handlers never see middleware exceptions.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int, normalizer):
        super().__init__(app)
        self.max_body_bytes = max_body_bytes
        self.normalizer = normalizer

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        declared = request.headers.get("content-length")
        if declared is not None:
            try:
                length = int(declared)
            except ValueError:
                return self.normalizer.render(
                    ValidationFailedError("Invalid Content-Length header"), request
                )
            if length > self.max_body_bytes:
                logger.warning(
                    "Rejected %s %s: body of %d bytes exceeds %d",
                    request.method,
                    request.url.path,
                    length,
                    self.max_body_bytes,
                )
                return self.normalizer.render(PayloadTooLargeError(self.max_body_bytes), request)
        return await call_next(request)


async def read_body(request: Request, limit: Optional[int]) -> bytes:
    """
    Read the request body, stopping as soon as it grows past `limit` bytes.

    Raises:
        PayloadTooLargeError (413)
    """
    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if limit is not None and received > limit:
            raise PayloadTooLargeError(limit)
        chunks.append(chunk)
    return b"".join(chunks)
