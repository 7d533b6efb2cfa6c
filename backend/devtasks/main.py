"""
DevTasks Backend - FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles middleware, gates' shared state, exception
       handlers and routers; lifespan() handles startup/shutdown.
Who:   uvicorn (uvicorn devtasks.main:app) and the test suite.

Request pipeline:
    ┌──────────────────────────────────────────────────────────────┐
    │ Middleware: Request ID → Logging → CORS → Security Headers   │
    │             → Rate Limit → Body Size → GZip                  │
    │                                                              │
    │ Route dependencies:                                          │
    │   Authentication → Role / Resource-Access → Body validation  │
    │                                                              │
    │ Handler → services → database                                │
    │                                                              │
    │ Any exception → ErrorNormalizer → JSON error body            │
    └──────────────────────────────────────────────────────────────┘

Shared per-process state on app.state:
    token_verifier      signs / verifies bearer tokens
    rate_limiter        global limiter (also held by RateLimitMiddleware)
    auth_rate_limiter   stricter limiter for POST /api/auth/login
    normalizer          ErrorNormalizer for the configured RenderMode
    max_body_bytes      request body cap (also held by RequestSizeLimitMiddleware)

Lifecycle:
    Startup:  logging → config check → database ping (retried) → schema
    Shutdown: dispose the engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from devtasks import __version__
from devtasks.auth.tokens import TokenVerifier, default_verifier
from devtasks.config import RenderMode, settings
from devtasks.database import dispose_engine, ensure_schema, verify_connection
from devtasks.error_handler import ErrorNormalizer, register_exception_handlers
from devtasks.middleware.logging import RequestLoggingMiddleware
from devtasks.middleware.rate_limit import RateLimiter, RateLimitMiddleware
from devtasks.middleware.request_id import RequestIDMiddleware
from devtasks.middleware.security import RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from devtasks.routes import auth, health, projects, tasks, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, to stdout.

    Format: 2024-01-15T12:00:00 [INFO] devtasks.access: GET /api/... 200 3.1ms
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("DevTasks Backend %s starting (%s)", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        if settings.environment == "production":
            raise
        # Outside production, keep serving so health checks still answer

    await verify_connection()
    await ensure_schema()

    logger.info("Error render mode: %s", app.state.normalizer.mode.value)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("DevTasks Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    render_mode: Optional[RenderMode] = None,
    verifier: Optional[TokenVerifier] = None,
    rate_limiter: Optional[RateLimiter] = None,
    auth_rate_limiter: Optional[RateLimiter] = None,
    max_body_bytes: Optional[int] = None,
) -> FastAPI:
    """
    Build a configured app. Every argument defaults from settings; tests
    pass their own to control render mode, secrets, limiter budgets and
    the body cap.
    """
    app = FastAPI(
        title="DevTasks API",
        description="Project and task management API for software teams.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    normalizer = ErrorNormalizer(render_mode or settings.render_mode)
    limiter = rate_limiter or RateLimiter(
        window_ms=settings.rate_limit_window_ms,
        max_requests=settings.rate_limit_requests,
        max_clients=settings.rate_limit_max_clients,
    )

    app.state.normalizer = normalizer
    app.state.max_body_bytes = max_body_bytes or settings.max_body_bytes
    app.state.token_verifier = verifier or default_verifier()
    app.state.rate_limiter = limiter
    app.state.auth_rate_limiter = auth_rate_limiter or RateLimiter(
        window_ms=settings.auth_rate_limit_window_ms,
        max_requests=settings.auth_rate_limit_requests,
        max_clients=settings.rate_limit_max_clients,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID runs first, so
    # rejections from the limiter and size cap still carry an id and a log line
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(
        RequestSizeLimitMiddleware,
        max_body_bytes=app.state.max_body_bytes,
        normalizer=normalizer,
    )
    app.add_middleware(RateLimitMiddleware, limiter=limiter, normalizer=normalizer)
    app.add_middleware(SecurityHeadersMiddleware, hsts_max_age=settings.hsts_max_age)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception Handlers ────────────────────────────────────────────────
    register_exception_handlers(app, normalizer)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(projects.router)
    app.include_router(tasks.router)

    return app


app = create_app()
