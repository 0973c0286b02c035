"""Top1000 Backend -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from top1000.api.v1.router import api_v1_router
from top1000.config import settings
from top1000.core.exceptions import (
    AuthError,
    InputError,
    LoggedError,
    NotFoundError,
    RateLimitError,
)
from top1000.db.session import Base, engine
from top1000.schemas.common import ErrorDetail, ErrorResponse
from top1000.services.cache_service import get_cache_service

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting Top1000 API server...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Auto-create tables on startup (safe for fresh deployments)
    try:
        # Import all models so they register with Base.metadata
        from top1000.models import client_action, game, user, vote  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables verified/created")
    except Exception as e:
        logger.error(f"Database init failed: {e}", exc_info=True)

    cache = get_cache_service()
    if await cache.health_check():
        logger.info("Redis cache connected successfully")
    else:
        logger.warning("Redis cache connection failed (will operate without caching)")

    yield

    # Shutdown
    logger.info("Shutting down Top1000 API server...")
    await cache.close()
    await engine.dispose()


app = FastAPI(
    title="Top1000 API",
    description="Community voted top list of video games",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(RateLimitError)
async def rate_limit_handler(request: Request, exc: RateLimitError):
    return _error(429, "rate_limited", exc.message)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, "not_found", exc.message)


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError):
    return _error(400, "invalid_input", exc.message)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    response = _error(401, "unauthorized", exc.message)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(LoggedError)
async def logged_error_handler(request: Request, exc: LoggedError):
    return _error(500, "internal_error", exc.message)


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Top1000 API",
        "version": "0.1.0",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
