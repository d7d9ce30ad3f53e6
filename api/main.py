"""
api/main.py -- FastAPI application factory for Quill.

Run with:  uvicorn asgi:app --reload

create_app(settings) builds a fully wired app. Settings are passed in rather
than read inside the components: the factory stores them on
app.state.settings and the lifespan builds the engine and stores from them,
so tests can build as many isolated apps as they like.

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Every response, errors included, uses the envelope from api.models.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import HealthData, envelope
from api.routes.auth import router as auth_router
from api.routes.posts import router as posts_router
from auth.store import UserStore
from core.config import Settings, get_settings
from core.database import check_database, create_db_engine, init_schema
from core.errors import BlogError
from posts.service import PostService
from posts.store import PostStore

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("quill.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database and build the stores; dispose the engine on shutdown.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The engine's connection pool and the settings on app.state are
    the only process-wide state.
    """
    settings: Settings = app.state.settings
    logger.info("Quill API starting up")
    engine = create_db_engine(settings.database_url)
    init_schema(engine)
    app.state.engine = engine
    app.state.user_store = UserStore(engine)
    app.state.post_store = PostStore(engine)
    app.state.post_service = PostService(app.state.post_store)
    logger.info("Database initialized")

    yield

    engine.dispose()
    logger.info("Quill API shutdown complete")


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same envelope so clients can parse errors uniformly.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=envelope(success=False, message=message))


async def blog_error_handler(request: Request, exc: BlogError) -> JSONResponse:
    """Map a domain error to its status code and safe message.

    exc.message is written for callers. Token failure kinds are not included:
    all four reach the client as the same 401.
    """
    if exc.status_code >= 500:
        logger.error("Server error on %s %s: %s", request.method, request.url.path, exc.code)
    return _error(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with the first field error when body or params fail validation."""
    errors = exc.errors()
    message = "Request validation failed."
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return _error(400, message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the envelope."""
    resp = _error(exc.status_code, str(exc.detail))
    if exc.headers:
        resp.headers.update(exc.headers)
    return resp


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a rate limit is exceeded, with Retry-After.

    Synchronous because SlowAPIMiddleware calls it directly (without await)
    for synchronous endpoints.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    resp = _error(429, "Too many requests.")
    resp.headers["Retry-After"] = str(retry_after)
    return resp


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected failures (e.g. database unavailable).

    The exception and stack trace go to the log only, never to the response.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the Quill API. Uses get_settings() when settings is None.

    The rate limiter is process-wide (api.limiter): the route decorators bind
    to it at import time. Building an app sets limiter.enabled from its
    settings, so the most recently built app decides whether limits apply to
    every app in the process. Tests that enable limiting must switch it back
    off when done.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Quill API",
        description="Minimal blog publishing: accounts, bearer tokens and owner-only post editing.",
        version=API_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )
    app.state.settings = settings

    # Each add_middleware() call wraps the stack built so far, so the last
    # one added is the first to see a request: TrustedHost -> CORS -> SlowAPI.
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    # SlowAPI looks for app.state.limiter by convention.
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    app.middleware("http")(log_requests)

    app.add_exception_handler(BlogError, blog_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(auth_router, tags=["Auth"])
    app.include_router(posts_router, tags=["Posts"])

    # Defined on the app (not a router) so it is always reachable. Not rate
    # limited -- load balancers must not be throttled. Plain def: the database
    # probe blocks, so it runs in the threadpool instead of on the event loop.
    @app.get("/health", tags=["Health"])
    def health(request: Request) -> JSONResponse:
        """Return liveness, version and database status."""
        db_ok = check_database(request.app.state.engine)
        data = HealthData(
            status="healthy" if db_ok else "degraded",
            version=API_VERSION,
            components={"app": "ok", "database": "ok" if db_ok else "error"},
        )
        return JSONResponse(content=envelope(data))

    return app
