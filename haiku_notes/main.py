"""
Haiku Notes Backend: FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) builds the Database and services, stores them on
       app.state, registers middleware, exception handlers and routers.
Who:   `python -m haiku_notes`, or `uvicorn --factory haiku_notes.main:create_app`.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────────┐ ┌──────────────┐ ┌────────────────┐  │
    │  │  Request ID  │→│   Logging    │→│    Deadline    │  │
    │  └──────────────┘ └──────────────┘ └────────────────┘  │
    │                                                         │
    │  Routes:                                                │
    │  ┌────────────┐ ┌──────────────┐ ┌──────────────────┐  │
    │  │ /ping      │ │ /user        │ │ /user/{u}/notes  │  │
    │  │ /health    │ │ /user/{u}    │ │ /user/{u}/note/* │  │
    │  └────────────┘ └──────────────┘ └──────────────────┘  │
    │                                                         │
    │  Exception Handlers:                                    │
    │  ┌───────────────────────────────────────────────────┐ │
    │  │ Validation→400 │ Decode→4xx │ NotFound→404        │ │
    │  │ Conflict→409 │ DB down→503 │ DB→500 │ other→500   │ │
    │  └───────────────────────────────────────────────────┘ │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging at the configured level
    2. Ping the database (failure aborts startup)
    3. Log startup complete

    Shutdown:
    1. Dispose database engine (close all connections)
    2. Log shutdown complete
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from haiku_notes import __version__
from haiku_notes.config import Settings, load_settings
from haiku_notes.database import Database
from haiku_notes.exceptions import (
    ConflictError,
    DatabaseConnectionError,
    DatabaseError,
    HaikuNotesError,
    IdentifierGenerationError,
    NotFoundError,
    RequestDecodeError,
    ValidationError,
)
from haiku_notes.middleware.deadline import DeadlineMiddleware
from haiku_notes.middleware.logging import RequestLoggingMiddleware
from haiku_notes.middleware.request_id import RequestIDMiddleware, request_id_var
from haiku_notes.routes import health, notes, users
from haiku_notes.services.note_service import NoteService
from haiku_notes.services.user_service import UserService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Per-statement and per-request chatter from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: logging, then a database ping. An unreachable database raises
    out of the lifespan, so uvicorn refuses to start serving.

    Shutdown: dispose the engine.
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("Haiku Notes Backend %s starting up...", __version__)

    try:
        await database.ping()
    except Exception:
        logger.error("Database is unreachable; refusing to start.", exc_info=True)
        await database.dispose()
        raise

    logger.info("Server ready at http://%s:%d", settings.api.host, settings.api.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Haiku Notes Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "details": details or None,
            "request_id": request_id_var.get(""),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError            → 400 validation_error
        RequestDecodeError         → exc.status_code / exc.error_code
        NotFoundError              → 404 not_found
        ConflictError              → 409 conflict
        DatabaseConnectionError    → 503 database_unavailable
        DatabaseError              → 500 server_error
        IdentifierGenerationError  → 500 server_error
        HaikuNotesError (base)     → 500 server_error
        Exception (fallback)       → 500 internal_server_error

    Store and unexpected failures never expose driver messages, SQL or stack
    traces; those are logged server-side with the request id.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestDecodeError)
    async def handle_decode_error(request: Request, exc: RequestDecodeError):
        logger.warning("[%s] Body rejected: %s", request_id_var.get(""), exc.message)
        return _error_response(exc.status_code, exc.error_code, exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message, {"resource": exc.resource})

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.warning(
            "[%s] Conflict: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return _error_response(409, "conflict", exc.message)

    @app.exception_handler(DatabaseConnectionError)
    async def handle_database_unavailable(request: Request, exc: DatabaseConnectionError):
        logger.error(
            "[%s] Database unavailable: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(503, "database_unavailable", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(IdentifierGenerationError)
    async def handle_identifier_error(request: Request, exc: IdentifierGenerationError):
        logger.error(
            "[%s] Identifier generation failed | Context: %s", request_id_var.get(""), exc.context
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(HaikuNotesError)
    async def handle_application_error(request: Request, exc: HaikuNotesError):
        logger.error(
            "[%s] Application error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Fully loaded settings; read from the environment when omitted.

    The Database and services are attached to app.state here rather than in
    the lifespan, so an app driven without lifespan events (httpx's
    ASGITransport in tests) is still complete.
    """
    if settings is None:
        settings = load_settings()

    app = FastAPI(
        title="Haiku Notes API",
        description="Per-user notes with server-generated identifiers and ordered listing.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.database = Database(settings.db)
    app.state.note_service = NoteService(owner_scoped_reads=settings.owner_scoped_note_reads)
    app.state.user_service = UserService()

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → Deadline → routes
    app.add_middleware(DeadlineMiddleware, timeout=settings.api.write_timeout)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(notes.router)

    return app
