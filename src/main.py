"""LearnLoop FastAPI application."""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware

from src.api import api_router
from src.config import get_settings
from src.constants import REQUEST_ID_HEADER, SESSION_COOKIE_NAME, SESSION_MAX_AGE_SECONDS
from src.db import async_session_maker, init_db
from src.utils.cache import cache
from src.utils.http_client import close_all_clients
from src.utils.logging import get_logger, setup_logging
from src.utils.metrics import MetricsMiddleware, metrics

settings = get_settings()
setup_logging()
logger = get_logger(__name__)

APP_VERSION = "1.0.0"


class ApiHeadersMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and keep per-user API responses out of shared caches."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        if request.url.path.startswith("/api/"):
            # Responses depend on the bearer token
            response.headers["Cache-Control"] = "no-store"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    await init_db()
    logger.info("Database initialized")

    if await cache.connect():
        logger.info("Redis cache connected")
    else:
        logger.warning("Redis cache unavailable - running without caching")

    yield

    await cache.close()
    await close_all_clients()
    logger.info("Redis cache and HTTP clients closed")


app = FastAPI(
    title=settings.app_name,
    version=APP_VERSION,
    lifespan=lifespan,
)

# Middleware (order matters - first added = last executed)
app.add_middleware(ApiHeadersMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)

# CORS: the frontend is served from its own origin
if settings.is_development:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, "http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )

# Session cookie only carries the OAuth state of the server-side Google flow
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.jwt_secret,
    session_cookie=SESSION_COOKIE_NAME,
    max_age=SESSION_MAX_AGE_SECONDS,
    same_site="lax",
    https_only=settings.is_production,
)

app.include_router(api_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors with the request id and answer with a plain 500."""
    request_id = getattr(request.state, "request_id", "-")
    logger.exception(f"[request={request_id}] Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
        headers={REQUEST_ID_HEADER: request_id},
    )


_app_start_time = datetime.now(UTC)


@app.get("/", include_in_schema=False)
async def root() -> dict:
    return {"name": settings.app_name, "version": APP_VERSION}


async def _check_database() -> bool:
    try:
        async with async_session_maker() as db:
            await db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Health check: database unavailable: {e}")
        return False


async def _check_redis() -> bool:
    try:
        return bool(await cache.ping())
    except Exception as e:
        logger.warning(f"Health check: redis unavailable: {e}")
        return False


@app.get("/health", include_in_schema=True, tags=["monitoring"])
async def health_check() -> JSONResponse:
    """Database and Redis health for monitoring and load balancers.

    Returns 200 when both answer, 503 with status "degraded" otherwise.
    """
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    healthy = all(checks.values())

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "timestamp": datetime.now(UTC).isoformat(),
            "uptime_seconds": (datetime.now(UTC) - _app_start_time).total_seconds(),
            "version": APP_VERSION,
            "checks": {
                name: {"status": "healthy" if ok else "unhealthy"} for name, ok in checks.items()
            },
        },
    )


@app.get("/metrics", include_in_schema=True, tags=["monitoring"])
async def prometheus_metrics() -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(
        content=metrics.format_prometheus(),
        media_type="text/plain; charset=utf-8",
    )
