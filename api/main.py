"""
api/main.py -- FastAPI application entry point for Datify.

Run with:      uvicorn asgi:app --reload
               python main.py

Middleware stack (outermost to innermost):
  1. log_requests   -- logs every response, throttled ones included
  2. rate_limit     -- per-client fixed window from app.state.rate_limiter
  3. CORSMiddleware -- adds CORS headers for allowed browser origins

Lifespan builds the user store, rate limiter and gateway on app.state at
startup and disposes the store on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import build_rate_limiter, client_key
from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from auth.exceptions import (
    ComparisonError,
    DuplicateIdentity,
    HashingError,
    InvalidCredentials,
    RateLimited,
    Unauthorized,
)
from auth.gateway import AuthGateway
from auth.passwords import PasswordHasher
from auth.ratelimit import RateLimiter
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

API_VERSION = "1.0.0"
WELCOME_MESSAGE = "Welcome to Datify API!💖"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("datify.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    get_settings() raises on a missing DATIFY_SECRET outside debug mode, so a
    misconfigured server fails here instead of serving unverifiable tokens.
    """
    settings = get_settings()
    logger.info("Datify API starting up")

    user_store = UserStore(settings.resolved_database_url())
    logger.info("Database status: %s", user_store.check_connection())

    app.state.user_store = user_store
    app.state.rate_limiter = build_rate_limiter(settings)
    app.state.gateway = AuthGateway(
        store=user_store,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens=TokenService(settings.secret_key, ttl=timedelta(seconds=settings.token_expire_seconds)),
    )
    logger.info("Auth initialized (rate_limit=%s)", settings.rate_limit)

    yield

    app.state.user_store.close()
    logger.info("Datify API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Datify API",
    description="Account registration, login and token-gated dashboard.",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Rate limiting middleware
#
# Applies to every route, unknown paths included. Runs outside the routing
# exception layer, so it builds the 429 response itself. RateLimited has no
# exception handler of its own.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def rate_limit(request: Request, call_next):
    limiter: RateLimiter = request.app.state.rate_limiter
    key = client_key(request)
    try:
        # Storage backends other than memory:// do network I/O.
        await run_in_threadpool(limiter.check, key)
    except RateLimited as exc:
        logger.warning("Rate limit exceeded for %s", key)
        return _rate_limited_response(exc)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Registered after rate_limit so it wraps it: throttled requests are logged too.
# ---------------------------------------------------------------------------


@app.middleware("http")
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
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every handler returns the same flat ErrorResponse body. Messages come from
# the exception classes; nothing from the traceback reaches the client.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, detail=detail).model_dump(exclude_none=True),
    )


def _rate_limited_response(exc: RateLimited) -> JSONResponse:
    response = _error(429, exc.message)
    response.headers["Retry-After"] = str(exc.retry_after)
    return response


@app.exception_handler(DuplicateIdentity)
async def duplicate_identity_handler(request: Request, exc: DuplicateIdentity) -> JSONResponse:
    return _error(400, exc.message)


@app.exception_handler(InvalidCredentials)
async def invalid_credentials_handler(request: Request, exc: InvalidCredentials) -> JSONResponse:
    response = _error(400, exc.message)
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(Unauthorized)
async def unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
    response = _error(401, exc.message)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(HashingError)
@app.exception_handler(ComparisonError)
async def crypto_error_handler(request: Request, exc: HashingError | ComparisonError) -> JSONResponse:
    """A bcrypt failure is a server fault, not a credential problem."""
    logger.error("Password primitive failed on %s %s: %s", request.method, request.url.path, exc.message)
    return _error(500, "Internal server error")


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 when the request body fails validation."""
    return _error(422, "Invalid request body", detail=str(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Flatten FastAPI/Starlette HTTP exceptions (404, 405, ...) into ErrorResponse."""
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


# ---------------------------------------------------------------------------
# Welcome and health endpoints
# ---------------------------------------------------------------------------


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def welcome() -> str:
    return WELCOME_MESSAGE


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    database = request.app.state.user_store.check_connection()
    db_ok = database == "connected"
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
