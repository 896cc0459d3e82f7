"""
WriterID Portal Backend — FastAPI Application Factory
======================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (uvicorn writerid_portal.main:app) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware:  RequestContext → GZip → CORS                   │
    │                                                              │
    │  Routes:                                                     │
    │  ┌───────────────┐ ┌──────────────────┐ ┌────────────────┐   │
    │  │ /api/v1/...   │ │ /api/external/...│ │ GET /health    │   │
    │  │ bearer token  │ │ X-API-Key        │ │ no auth        │   │
    │  └───────────────┘ └──────────────────┘ └────────────────┘   │
    │                                                              │
    │  Exception Handlers:                                         │
    │  ┌────────────────────────────────────────────────────────┐  │
    │  │ Validation→400 │ Auth→401 │ Owner→403 │ NotFound→404   │  │
    │  │ Conflict→409   │ Storage/Queue/DB→500 │ Executor→502/4 │  │
    │  └────────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging, configuration check, storage root for the local backend
    Shutdown:  close storage/queue/executor clients, dispose the engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from writerid_portal import __version__
from writerid_portal.config import settings
from writerid_portal.database import dispose_engine
from writerid_portal.dependencies import close_gateways
from writerid_portal.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    ExecutorError,
    ExecutorTimeoutError,
    NotFoundError,
    QueueError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from writerid_portal.middleware.request_context import (
    RequestContextMiddleware,
    RequestIDLogFilter,
    request_id_var,
)
from writerid_portal.routes import auth, dashboard, datasets, external, health, models, tasks

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s"

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Every record carries the current request ID (or "-" outside a request)
    through RequestIDLogFilter, attached to the handler so third-party
    loggers get it too.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("azure").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("WriterID Portal Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health and the error responses make the problem visible
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if settings.storage_backend == "local":
        storage = Path(settings.storage_root)
        storage.mkdir(parents=True, exist_ok=True)
        logger.info("Local storage directory: %s", storage.resolve())
    else:
        logger.info("Using Azure blob storage and queue '%s'", settings.queue_name)

    logger.info("Executor endpoint: %s", settings.executor_predict_url)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("WriterID Portal Backend shutting down...")
    await close_gateways()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the ErrorResponse body.

    Handlers are resolved by the exception's MRO, so a subclass with its own
    handler (InvalidStatusTransitionError, ExecutorTimeoutError) gets it,
    and anything else falls back to its parent's handler.

    Server-side errors (5xx) never expose their context; it is logged instead.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        message = errors[0]["message"] if errors else "Request validation failed"
        logger.warning("Request validation failed: %s", errors)
        return error_response(400, "validation_error", message, {"errors": errors})

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content={
                "error": "authentication_error",
                "message": exc.message,
                "request_id": request_id_var.get(""),
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        logger.warning("Ownership check failed: %s", exc.context)
        return error_response(403, "unauthorized", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(409, "conflict", exc.message)

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error("Storage error: %s | Context: %s", exc.message, exc.context)
        return error_response(500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(QueueError)
    async def handle_queue_error(request: Request, exc: QueueError):
        logger.error("Queue error: %s | Context: %s", exc.message, exc.context)
        return error_response(500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return error_response(500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(ExecutorTimeoutError)
    async def handle_executor_timeout(request: Request, exc: ExecutorTimeoutError):
        logger.error("Executor timeout: %s", exc.message)
        return error_response(504, "executor_timeout", exc.message)

    @app.exception_handler(ExecutorError)
    async def handle_executor_error(request: Request, exc: ExecutorError):
        logger.error("Executor error: %s | Context: %s", exc.message, exc.context)
        return error_response(502, "executor_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500 with the request ID, stack trace logged only."""
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="WriterID Portal API",
        description=(
            "Portal backend for writer identification: manage handwriting datasets "
            "and models, and run prediction tasks against the executor service."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestContext → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestContextMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(datasets.router)
    app.include_router(models.router)
    app.include_router(tasks.router)
    app.include_router(dashboard.router)
    app.include_router(external.router)
    app.include_router(health.router)

    return app


app = create_app()
