"""
OP-Blog API: FastAPI Application Factory
========================================

What:  Builds the FastAPI application: logging, middleware, exception
       handlers and routers.
How:   create_app() returns a configured instance; the module-level `app`
       is what uvicorn serves (uvicorn app.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware (outermost first):                           │
    │   CORS → Request ID → Security Headers → Rate Limit      │
    │        → Body Limit → Access Log                         │
    │                                                          │
    │  Routers under /api/v1:                                  │
    │   auth · password · users · categories · posts ·         │
    │   comments · admin        (+ GET /health at the root)    │
    │                                                          │
    │  Exception Handlers → {message, errors?, stack?,         │
    │                        request_id}                       │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging, production config check, database wait (tenacity)
    Shutdown:  engine disposal
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import settings
from app.database import dispose_engine, wait_for_database
from app.exceptions import DatabaseError, OpBlogError, RateLimitExceededError, ValidationError
from app.middleware.body_limit import BodySizeLimitMiddleware
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.middleware.security_headers import SecurityHeadersMiddleware
from app.routes import admin, auth, categories, comments, health, password, posts, root, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure stdout logging for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] app.services.post_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "aiosmtplib"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("OP-Blog API %s starting (%s)", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        raise

    await wait_for_database()
    logger.info("Server ready at http://%s:%d%s", settings.backend_host, settings.backend_port, settings.api_prefix)

    yield

    logger.info("OP-Blog API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(
    message: str,
    exc: Optional[BaseException] = None,
    errors: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message}
    if errors:
        body["errors"] = errors
    if exc is not None and not settings.is_production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every failure onto the error envelope.

        OpBlogError subclasses   → their status_code
        RequestValidationError   → 400 "Validation failed" (body/query/params)
        SQLAlchemyError          → 500 DatabaseError, details only in the log
        HTTPException (404)      → 404 "Not Found - {path}"
        anything else            → 500, logged with traceback
    """

    @app.exception_handler(OpBlogError)
    async def handle_app_error(request: Request, exc: OpBlogError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc, getattr(exc, "errors", None)),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        error = ValidationError.from_pydantic(exc.errors())
        return JSONResponse(
            status_code=error.status_code,
            content=_error_body(error.message, exc, error.errors),
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_database_error(request: Request, exc: SQLAlchemyError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s", rid, type(exc).__name__, exc_info=True)
        error = DatabaseError(context={"error_type": type(exc).__name__})
        return JSONResponse(
            status_code=error.status_code,
            content=_error_body(error.message, exc),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = f"Not Found - {request.url.path}"
        else:
            message = str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message, exc),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal Server Error", exc),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="OP-Blog API",
        description=(
            "Blog REST API: accounts with email verification and password reset, "
            "posts with images and likes, comments, categories and admin counts."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(BodySizeLimitMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "PUT", "PATCH"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )

    register_exception_handlers(app)

    app.include_router(health.router)
    for module in (root, auth, password, users, categories, posts, comments, admin):
        app.include_router(module.router, prefix=settings.api_prefix)

    return app


app = create_app()
