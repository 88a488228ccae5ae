"""
Telemetry Hub - Backend API

FastAPI application that provides:
- Probe uploads with command delivery (/update)
- Cursor-based log export for the collector (/download)
- Operator command submission (/command)

Data lives in SQLite: log messages and commands in one database, hub-wide
state (cleanup throttle, tracked upload interval) in a key-value table.
"""

from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .common.exceptions import (
    AuthenticationError,
    HubError,
    StorageError,
    ValidationError,
)
from .common.logging_setup import get_service_logger, setup_logging
from .config import get_settings
from .dependencies.services import get_database
from .middleware import RequestLogMiddleware
from .routers import collector, operators, probes
from .storage import HubDatabase

logger = get_service_logger("main")


# ============================================
# APPLICATION LIFESPAN
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application startup and shutdown events.

    Startup:
    - Configure logging from settings
    """
    settings = get_settings()
    setup_logging(settings.loglevel, settings.log_format.lower() == "json")
    logger.info(
        f"Starting Telemetry Hub {__version__}",
        extra={
            "database_path": str(settings.database_path),
            "cleanup_interval_minutes": settings.cleanup_interval_minutes,
            "delete_timeout_minutes": settings.delete_timeout_minutes,
            "default_upload_interval": settings.default_upload_interval,
        },
    )

    yield

    logger.info("Shutting down Telemetry Hub")


# ============================================
# CREATE APPLICATION
# ============================================

app = FastAPI(
    title="Telemetry Hub",
    description="""
    Log and command exchange for a fleet of probe nodes.

    ## Endpoints
    - **/update**: Probes upload log lines and receive pending commands
    - **/download**: The collector pages through logs with a resumable cursor
    - **/command**: Operators queue commands for one node or the whole fleet

    Every endpoint requires the X-Api-Key header for its caller role.
    """,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(RequestLogMiddleware)


# ============================================
# ERROR HANDLING
# ============================================

# Error bodies are fixed short texts; details only go to the log
ERROR_STATUS = {
    AuthenticationError: (401, "Unauthorized"),
    ValidationError: (400, "Bad Request"),
    StorageError: (500, "Internal Server Error"),
}


@app.exception_handler(HubError)
async def hub_error_handler(request: Request, exc: HubError):
    status_code, text = next(
        (mapped for cls, mapped in ERROR_STATUS.items() if isinstance(exc, cls)),
        (500, "Internal Server Error"),
    )
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return PlainTextResponse(text, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.errors()}")
    return PlainTextResponse("Bad Request", status_code=400)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return PlainTextResponse(
        HTTPStatus(exc.status_code).phrase,
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


# ============================================
# INCLUDE ROUTERS
# ============================================

app.include_router(probes.router, tags=["Probes"])
app.include_router(collector.router, tags=["Collector"])
app.include_router(operators.router, tags=["Operators"])


# ============================================
# HEALTH
# ============================================

@app.get("/health", tags=["Health"])
def health_check(db: HubDatabase = Depends(get_database)):
    """
    Health check.

    Unauthenticated, so it reports nothing about stored data. The database
    is still opened, so a storage failure shows up as 500.
    """
    return {
        "status": "healthy",
        "version": __version__,
    }
