"""
api/main.py -- FastAPI application factory for the account service.

create_app() is the single place where the process is wired together: it
builds the user directory, the password hasher, the token signer, the account
service, the rate limiter and the router, and hangs them off app.state. There
is no module-level app object; callers construct one explicitly:

Run with:  python main.py serve
           uvicorn --factory api.main:create_app

Middleware stack (outermost to innermost):
  1. log_requests       -- one access-log line per request
  2. SlowAPIMiddleware  -- enforces the login rate limit from app.state.limiter

Exception handlers translate every AccountError through STATUS_BY_KIND, which
covers each ErrorKind exactly once.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from accounts.service import AccountService
from api.limiter import build_limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.users import build_router
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenSigner
from core.config import Settings, get_settings
from core.errors import AccountError, ErrorKind

__version__ = "1.0.0"

logger = logging.getLogger("accounts.api")

# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.INTERNAL: 500,
}


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(
            exclude_none=True
        ),
    )


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    return _error_response(STATUS_BY_KIND[exc.kind], exc.kind.value, exc.message)


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Synchronous because SlowAPIMiddleware calls it directly without awaiting.
    """
    response = _error_response(429, "rate_limited", "Too many requests.", str(exc.detail))
    response.headers["Retry-After"] = str(int(getattr(exc, "retry_after", 60)))
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or path params fail validation."""
    return _error_response(422, "validation_error", "Request validation failed.", str(exc.errors()))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The traceback goes to the log only; the client receives a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, ErrorKind.INTERNAL.value, "Internal Server Error")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Account service starting up (version %s)", __version__)
    yield
    # A store handed to create_app() belongs to the caller.
    if app.state.owns_store:
        app.state.store.close()
    logger.info("Account service shutdown complete")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None, store: UserStore | None = None) -> FastAPI:
    """Build a fully wired application.

    Args:
        settings: Explicit configuration. Defaults to get_settings(), which
                  reads the environment once per process.
        store:    Pre-built user directory (tests pass an in-memory one).
                  Defaults to a UserStore on settings.database_url.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    owns_store = store is None
    if owns_store:
        store = UserStore(settings.database_url)

    app = FastAPI(
        title="Account Service",
        description="User registration, login, and token-gated user records.",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.owns_store = owns_store
    app.state.accounts = AccountService(
        store=store,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        signer=TokenSigner(
            user_secret=settings.user_token_secret,
            admin_secret=settings.admin_token_secret,
            expire_seconds=settings.token_expire_seconds,
        ),
    )
    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = build_limiter(settings)

    app.add_middleware(SlowAPIMiddleware)

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

    app.add_exception_handler(AccountError, account_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Registered before the user router so /health is not captured by /{user_id}.
    @app.get("/health", tags=["Health"])
    def health() -> HealthResponse:
        """Return liveness, version and directory status."""
        try:
            database = "ok" if app.state.store.ping() else "error"
        except SQLAlchemyError:
            logger.exception("Health check could not reach the user directory")
            database = "error"
        return HealthResponse(version=__version__, components={"app": "ok", "database": database})

    app.include_router(build_router(app.state.limiter, settings.login_rate_limit), tags=["Users"])
    return app
