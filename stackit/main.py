"""
StackIt Backend — FastAPI Application Factory
===============================================

What:  Builds the FastAPI application: storage client, middleware, routes,
       exception handlers and lifecycle.
How:   create_app() returns a configured instance; `app` at module level is
       what uvicorn serves (uvicorn stackit.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware: RequestID → Logging → RateLimit → RouteGuard│
    │                                                          │
    │  Routes:  /api/auth/*   /api/questions*   /health        │
    │                                                          │
    │  Exception Handlers → {success: false, error, message,   │
    │                        details?, requestId}              │
    │                                                          │
    │  app.state.database: Database (engine + session factory) │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging → config check → wait for the database (backoff)
    Shutdown:  dispose the engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stackit import __version__
from stackit.config import settings
from stackit.database import Database
from stackit.exceptions import (
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    StackItError,
    UnauthenticatedError,
    ValidationError,
)
from stackit.middleware import (
    RateLimitMiddleware,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    RouteGuardMiddleware,
    request_id_var,
)
from stackit.routes import auth, health, questions

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configures the root logger once, writing to stdout."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("StackIt Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        logger.error("Fix the configuration and restart the server.")

    database: Database = app.state.database
    try:
        await database.wait_until_ready()
    except Exception as e:
        # Keep serving: /health reports the outage and requests fail with 500
        logger.error("Database unreachable after %d attempts: %s",
                     settings.db_connect_attempts, e)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("StackIt Backend shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[object] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content = {"success": False, "error": error, "message": message}
    if details:
        content["details"] = details
    content["requestId"] = request_id_var.get("") or None
    return JSONResponse(status_code=status_code, content=content, headers=headers)


# Exception type → (HTTP status, error code, include context as details)
_ERROR_TABLE = (
    (ValidationError, 400, "validation_error", True),
    (UnauthenticatedError, 401, "unauthenticated", False),
    (ForbiddenError, 403, "forbidden", False),
    (NotFoundError, 404, "not_found", True),
    (ConflictError, 409, "conflict", True),
)

_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthenticated",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps exceptions to the JSON error envelope.

    Handler hierarchy:
        ValidationError, RequestValidationError → 400
        UnauthenticatedError                    → 401
        ForbiddenError                          → 403
        NotFoundError                           → 404
        ConflictError                           → 409
        (429 is answered by RateLimitMiddleware before routing)
        DatabaseError, StackItError             → 500 (generic message)
        Exception                               → 500 (generic message)

    Internal details (SQL, stack traces) are logged, never returned.
    """

    def _domain_handler(status_code: int, error: str, with_details: bool):
        async def handler(request: Request, exc: StackItError):
            rid = request_id_var.get("")
            logger.info("[%s] %s %s: %s", rid, status_code, error, exc.message)
            return error_response(
                status_code,
                error,
                exc.message,
                details=exc.context if with_details else None,
            )
        return handler

    for exc_class, status_code, error, with_details in _ERROR_TABLE:
        app.add_exception_handler(exc_class, _domain_handler(status_code, error, with_details))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), errors)
        first = errors[0] if errors else None
        message = f"{first['field']}: {first['message']}" if first and first["field"] else "Invalid request"
        return error_response(400, "validation_error", message, details={"errors": errors})

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return error_response(
            500, "server_error", "An internal error occurred. Please try again later.",
        )

    @app.exception_handler(StackItError)
    async def handle_stackit_error(request: Request, exc: StackItError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error %s: %s",
                     rid, type(exc).__name__, exc.message)
        return error_response(
            500, "server_error", "An internal error occurred. Please try again later.",
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        error = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
        return error_response(
            exc.status_code, error, str(exc.detail), headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Assembles the application.

    Args:
        database: storage client to use; built from settings when omitted.
                  Tests pass an in-memory SQLite Database here.
    """
    app = FastAPI(
        title="StackIt API",
        description=(
            "Community question-and-answer backend: accounts, questions with "
            "rich-text descriptions and tags, and a paginated feed."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database or Database()

    # Last added runs first: RequestID → Logging → RateLimit → RouteGuard → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RouteGuardMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(questions.router)
    app.include_router(health.router)

    return app


app = create_app()
