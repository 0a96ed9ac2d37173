"""FastAPI application for the Watered plant tracker."""

import logging
import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

# Note: .env is loaded in app.config before config is initialized
from app.auth import SESSION_COOKIE_NAME
from app.config import config
from app.domain import utcnow
from app.models import ApiStatusResponse, HealthResponse
from app import pages
from app.routers import admin, auth, plant
from app.storage import reset_storage

VERSION = "1.0.0"

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

_started_at = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    # Startup
    logger.info("Starting Watered service...")

    # Validate configuration
    try:
        config.validate()
        logger.info("Configuration validated")
    except Exception as e:
        logger.error(f"Configuration validation failed: {e}")
        sys.exit(1)

    config.log_status()

    yield

    # Shutdown
    logger.info("Shutting down Watered service...")
    reset_storage()


# Create FastAPI app
app = FastAPI(
    title="Watered",
    description="Shared plant watering tracker",
    version=VERSION,
    lifespan=lifespan
)

app.add_middleware(
    SessionMiddleware,
    secret_key=config.get_session_secret(),
    session_cookie=SESSION_COOKIE_NAME,
    max_age=config.SESSION_MAX_AGE_SECONDS,
    same_site="lax",
    https_only=config.use_secure_cookies(),
)

app.include_router(plant.router, prefix="/api/plant", tags=["plant"])
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
app.include_router(pages.router, tags=["pages"])


def format_uptime(seconds: float) -> str:
    """Format uptime as whole days, hours or minutes (at least "1 minute")."""
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = hours // 24
    if days >= 1:
        return "1 day" if days == 1 else f"{days} days"
    if hours >= 1:
        return "1 hour" if hours == 1 else f"{hours} hours"
    if minutes <= 1:
        return "1 minute"
    return f"{minutes} minutes"


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(status="ok", service="watered")


@app.get("/api/status", response_model=ApiStatusResponse)
async def api_status():
    """Service version and uptime."""
    uptime = time.monotonic() - _started_at
    return ApiStatusResponse(
        status="ok",
        service="watered-api",
        version=VERSION,
        timestamp=utcnow(),
        uptime_seconds=uptime,
        uptime_formatted=format_uptime(uptime),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies and parameters are client errors."""
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request body"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )
