"""
api/main.py -- FastAPI application entry point for the listing service.

Run with:  uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for the allowed frontend origins;
                              credentials allowed so the session cookie travels
  3. log_requests          -- one log line per request with latency

Lifespan opens the shared Database, builds the stores on app.state, and
disposes the engine on shutdown.
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
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorResponse, HealthResponse
from api.routes.admin import router as admin_router
from api.routes.auth import router as auth_router
from api.routes.cron import router as cron_router
from api.routes.jobs import router as jobs_router
from auth.store import UserStore
from core.config import get_settings
from core.db import Database
from core.errors import AppError, ValidationError
from listings.store import ListingStore

SERVICE_NAME = "jobboard-backend"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("jobboard.api")

settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared Database and the stores; dispose the engine on shutdown.

    Both stores receive the same Database, so there is one connection pool
    per process. Each store creates its own tables on construction.
    """
    logger.info("Listing API starting up")
    db = Database(settings.database_url)
    app.state.db = db
    app.state.user_store = UserStore(db)
    app.state.listing_store = ListingStore(db)
    logger.info("Stores initialized (users=%d)", app.state.user_store.count_users())

    yield

    db.close()
    logger.info("Listing API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Jobboard API",
    description="Job, result and admit-card listings with admin management.",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


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

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(jobs_router, prefix="/api", tags=["Listings"])
app.include_router(admin_router, prefix="/api", tags=["Admin"])
app.include_router(cron_router, prefix="/api", tags=["Cron"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error leaves the API as {"error": "<message>"}.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 "Invalid input" for any body, path or query validation failure.

    Field-level details are logged at DEBUG only.
    """
    logger.debug("Validation failed on %s %s: %s", request.method, request.url.path, exc.errors())
    return _error(ValidationError.status_code, ValidationError.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework errors (unknown route, wrong method) in the error envelope."""
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The traceback goes to the log only; the client receives a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


# ---------------------------------------------------------------------------
# Root and health
# ---------------------------------------------------------------------------


@app.get("/", tags=["Health"])
async def root() -> dict:
    return {"ok": True, "service": SERVICE_NAME}


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Liveness probe. Does not touch the database."""
    return HealthResponse()
