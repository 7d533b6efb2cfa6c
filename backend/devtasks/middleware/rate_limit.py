"""
DevTasks Backend - Rate Limiting
=================================

What:  Per-client fixed-window rate limiter, applied globally as middleware
       and per-route (login) as a dependency.
How:   A RateLimiter instance owns a bounded map of client id → bucket.
       Each bucket counts requests until its reset time; the map is pruned
       of expired buckets on every call (no background sweep).
Who:   create_app() builds one limiter per policy and hands it to
       RateLimitMiddleware / stores it on app.state.
When:  Early in the middleware chain (inside request id and logging),
       before authentication.

Algorithm (per call):
    1. Drop every bucket whose reset time has passed
    2. Look up or create the caller's bucket (reset = now + window)
    3. count >= max → reject with the whole seconds left in the window
    4. Otherwise increment and report limit / remaining / reset

Concurrency:
    hit() never awaits, so under asyncio the read-increment-write sequence
    cannot interleave with another request. The lock additionally covers
    threaded deployments within one process. Buckets live in process memory
    only; multiple worker processes each enforce their own budget.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from devtasks.exceptions import RateLimitedError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitBucket:
    count: int
    reset_at: float  # epoch seconds


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int = 0

    def headers(self) -> Dict[str, str]:
        """Informational headers for client-side backoff."""
        reset = datetime.fromtimestamp(self.reset_at, tz=timezone.utc)
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": reset.isoformat(timespec="seconds").replace("+00:00", "Z"),
        }


class RateLimiter:
    """
    Fixed-window request counter keyed by client identifier.

    Args:
        window_ms:     window length in milliseconds
        max_requests:  requests allowed per window
        max_clients:   bound on tracked clients; when full after pruning,
                       the bucket closest to its reset is evicted
        clock:         returns epoch seconds (injectable for tests)
    """

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        max_clients: int = 10_000,
        clock: Callable[[], float] = time.time,
    ):
        if window_ms <= 0 or max_requests <= 0 or max_clients <= 0:
            raise ValueError("window_ms, max_requests and max_clients must be positive")
        self.window = window_ms / 1000
        self.max_requests = max_requests
        self.max_clients = max_clients
        self._clock = clock
        self._buckets: Dict[str, RateLimitBucket] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._buckets)

    def bucket(self, client_id: str) -> Optional[RateLimitBucket]:
        return self._buckets.get(client_id)

    def hit(self, client_id: str) -> RateLimitDecision:
        """Count one request from client_id and decide whether it may proceed."""
        with self._lock:
            now = self._clock()
            self._prune(now)

            bucket = self._buckets.get(client_id)
            if bucket is None:
                if len(self._buckets) >= self.max_clients:
                    self._evict_one()
                bucket = RateLimitBucket(count=0, reset_at=now + self.window)
                self._buckets[client_id] = bucket

            if bucket.count >= self.max_requests:
                return RateLimitDecision(
                    allowed=False,
                    limit=self.max_requests,
                    remaining=0,
                    reset_at=bucket.reset_at,
                    retry_after=max(1, math.ceil(bucket.reset_at - now)),
                )

            bucket.count += 1
            return RateLimitDecision(
                allowed=True,
                limit=self.max_requests,
                remaining=self.max_requests - bucket.count,
                reset_at=bucket.reset_at,
            )

    def _prune(self, now: float) -> None:
        expired = [cid for cid, b in self._buckets.items() if now > b.reset_at]
        for cid in expired:
            del self._buckets[cid]

    def _evict_one(self) -> None:
        oldest = min(self._buckets, key=lambda cid: self._buckets[cid].reset_at)
        del self._buckets[oldest]
        logger.debug("Rate limiter full; evicted bucket for %s", oldest)


def client_identifier(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Applies a RateLimiter to every request except health and docs paths.

    Allowed responses carry X-RateLimit-* headers. Rejections are rendered
    by the ErrorNormalizer here, since exception handlers registered on the
    app sit inside this middleware and never see its exceptions.
    """

    EXCLUDED_PATHS = frozenset({"/health", "/docs", "/openapi.json", "/redoc"})

    def __init__(
        self,
        app: ASGIApp,
        limiter: RateLimiter,
        normalizer,
        excluded_paths: Optional[Iterable[str]] = None,
    ):
        super().__init__(app)
        self.limiter = limiter
        self.normalizer = normalizer
        self.excluded_paths = (
            frozenset(excluded_paths) if excluded_paths is not None else self.EXCLUDED_PATHS
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        client_ip = client_identifier(request)
        decision = self.limiter.hit(client_ip)

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for %s on %s %s (retry in %ds)",
                client_ip,
                request.method,
                request.url.path,
                decision.retry_after,
            )
            response = self.normalizer.render(RateLimitedError(decision.retry_after), request)
            response.headers.update(decision.headers())
            return response

        response = await call_next(request)
        response.headers.update(decision.headers())
        return response


def rate_limit(limiter_attr: str) -> Callable:
    """
    FastAPI dependency factory applying the limiter stored at
    app.state.<limiter_attr> to a single route.

    Raises:
        RateLimitedError (429) when the caller's budget is exhausted.
    """

    async def dependency(request: Request, response: Response) -> RateLimitDecision:
        limiter: RateLimiter = getattr(request.app.state, limiter_attr)
        decision = limiter.hit(client_identifier(request))
        if not decision.allowed:
            logger.warning(
                "Route rate limit exceeded for %s on %s",
                client_identifier(request),
                request.url.path,
            )
            raise RateLimitedError(decision.retry_after, context={"limit": decision.limit})
        response.headers.update(decision.headers())
        return decision

    return dependency
