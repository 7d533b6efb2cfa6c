"""
DevTasks Backend - Request ID Middleware
=========================================

What:  Tags each request with a short correlation id.
How:   Honors an inbound X-Request-ID, otherwise generates one; stores it in
       a ContextVar (read by loggers and the error normalizer) and on
       request.state, and echoes it in the response header.
When:  Runs right after rate limiting, before request logging.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

HEADER = "X-Request-ID"
MAX_INBOUND_LENGTH = 64


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns request ids; client-supplied ids longer than 64 chars are replaced."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        inbound = request.headers.get(HEADER, "").strip()
        rid = inbound if 0 < len(inbound) <= MAX_INBOUND_LENGTH else new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[HEADER] = rid
        return response
