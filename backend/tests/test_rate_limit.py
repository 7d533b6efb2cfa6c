"""
DevTasks Backend - Rate Limiter Tests
======================================

What we test:
    ✅ Fixed-window counting (allow × max, then reject)
    ✅ Window reset after expiry
    ✅ Whole-second retry hints and informational headers
    ✅ Per-client isolation, pruning, bounded bucket map
    ✅ Middleware: 429 body, headers, excluded paths
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from devtasks.config import RenderMode
from devtasks.error_handler import ErrorNormalizer
from devtasks.middleware.rate_limit import RateLimiter, RateLimitMiddleware


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestRateLimiter:

    def setup_method(self):
        self.clock = FakeClock()
        self.limiter = RateLimiter(window_ms=1000, max_requests=3, clock=self.clock)

    def test_allows_up_to_max_then_rejects(self):
        decisions = [self.limiter.hit("10.0.0.1") for _ in range(4)]
        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]
        assert decisions[3].retry_after == 1

    def test_window_resets_after_expiry(self):
        for _ in range(4):
            self.limiter.hit("10.0.0.1")
        self.clock.advance(1.001)
        decision = self.limiter.hit("10.0.0.1")
        assert decision.allowed
        assert self.limiter.bucket("10.0.0.1").count == 1

    def test_bucket_survives_until_strictly_past_reset(self):
        for _ in range(3):
            self.limiter.hit("10.0.0.1")
        self.clock.advance(1.0)  # now == reset_at
        assert not self.limiter.hit("10.0.0.1").allowed

    def test_clients_are_isolated(self):
        for _ in range(3):
            self.limiter.hit("10.0.0.1")
        assert not self.limiter.hit("10.0.0.1").allowed
        assert self.limiter.hit("10.0.0.2").allowed

    def test_expired_buckets_are_pruned(self):
        self.limiter.hit("10.0.0.1")
        self.limiter.hit("10.0.0.2")
        self.clock.advance(2)
        self.limiter.hit("10.0.0.3")
        assert len(self.limiter) == 1

    def test_retry_after_rounds_up_to_whole_seconds(self):
        limiter = RateLimiter(window_ms=60_000, max_requests=1, clock=self.clock)
        limiter.hit("c")
        self.clock.advance(10.2)
        decision = limiter.hit("c")
        assert not decision.allowed
        assert decision.retry_after == 50

    def test_bucket_map_is_bounded(self):
        limiter = RateLimiter(window_ms=10_000, max_requests=5, max_clients=2, clock=self.clock)
        limiter.hit("a")
        self.clock.advance(1)
        limiter.hit("b")
        self.clock.advance(1)
        limiter.hit("c")
        assert len(limiter) == 2
        # "a" had the earliest reset and was evicted
        assert limiter.bucket("a") is None

    def test_headers(self):
        decision = self.limiter.hit("10.0.0.1")
        headers = decision.headers()
        assert headers["X-RateLimit-Limit"] == "3"
        assert headers["X-RateLimit-Remaining"] == "2"
        assert headers["X-RateLimit-Reset"].endswith("Z")

    @pytest.mark.parametrize("kwargs", [
        {"window_ms": 0, "max_requests": 1},
        {"window_ms": 1000, "max_requests": 0},
    ])
    def test_rejects_non_positive_configuration(self, kwargs):
        with pytest.raises(ValueError):
            RateLimiter(**kwargs)


def _limited_app(limiter: RateLimiter) -> FastAPI:
    app = FastAPI()

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "OK"}

    app.add_middleware(
        RateLimitMiddleware,
        limiter=limiter,
        normalizer=ErrorNormalizer(RenderMode.MINIMAL),
    )
    return app


class TestRateLimitMiddleware:

    @pytest.mark.asyncio
    async def test_fourth_request_gets_429(self):
        app = _limited_app(RateLimiter(window_ms=60_000, max_requests=3))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            for _ in range(3):
                ok = await client.get("/ping")
                assert ok.status_code == 200
                assert "X-RateLimit-Remaining" in ok.headers
            limited = await client.get("/ping")

        assert limited.status_code == 429
        body = limited.json()
        assert body["status"] == "fail"
        assert body["message"].startswith("Too many requests. Try again in ")
        assert body["message"].endswith(" seconds.")
        assert limited.headers["X-RateLimit-Remaining"] == "0"
        assert int(limited.headers["Retry-After"]) >= 1

    @pytest.mark.asyncio
    async def test_health_is_not_limited(self):
        app = _limited_app(RateLimiter(window_ms=60_000, max_requests=1))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            statuses = [(await client.get("/health")).status_code for _ in range(5)]
        assert statuses == [200] * 5
