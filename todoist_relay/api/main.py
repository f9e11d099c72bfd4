"""Todoist relay REST API - FastAPI app wrapping the shared operations facade."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import Settings
from ..errors import ErrorKind, RelayError
from ..operations import TodoistOperations, build_operations
from .routes import health, labels, projects, tasks

logger = logging.getLogger("todoist_relay.api")

# Shown on GET / and in the 404 hint
ENDPOINTS = {
    "health": ["GET /health", "GET /health/simple", "GET /health/ready"],
    "tasks": {
        "list": "GET /api/tasks",
        "get": "GET /api/tasks/:id",
        "create": "POST /api/tasks",
        "update": "PATCH /api/tasks/:id",
        "complete": "POST /api/tasks/:id/complete",
        "reopen": "POST /api/tasks/:id/reopen",
        "delete": "DELETE /api/tasks/:id",
    },
    "projects": {
        "list": "GET /api/projects",
        "get": "GET /api/projects/:id",
        "create": "POST /api/projects",
        "update": "PATCH /api/projects/:id",
        "delete": "DELETE /api/projects/:id",
    },
    "labels": {
        "list": "GET /api/labels",
        "get": "GET /api/labels/:id",
    },
}


def _available_routes() -> list[str]:
    routes = ["GET /"]
    for group in ENDPOINTS.values():
        routes.extend(group if isinstance(group, list) else group.values())
    return routes


def error_status(error: RelayError) -> int:
    """HTTP status for a relay error."""
    if error.kind is ErrorKind.VALIDATION:
        return 400
    if error.status is not None and 400 <= error.status <= 599:
        return error.status
    return 500


def create_app(settings: Settings, operations: Optional[TodoistOperations] = None) -> FastAPI:
    """Build the REST app.

    Args:
        settings: Process settings
        operations: Facade to serve; built from settings (and closed on
            shutdown) when omitted
    """
    owns_client = operations is None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        if app.state.operations is None:
            app.state.operations = build_operations(settings)
        if settings.environment != "test":
            if await app.state.operations.ready():
                logger.info("✓ Todoist API connection verified")
            else:
                logger.warning("✗ Todoist API connection failed - serving anyway, /health will report degraded")

        yield

        if owns_client:
            await app.state.operations.client.aclose()

    app = FastAPI(
        title="Claude Todoist API",
        description="REST API for Claude to manage Todoist tasks, projects and labels",
        version=settings.server_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.operations = operations
    app.state.started_at = time.monotonic()

    # CORS middleware for Claude and local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.monotonic()
        response = await call_next(request)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({(time.monotonic() - started) * 1000:.0f}ms)"
        )
        return response

    # Error envelopes

    @app.exception_handler(RelayError)
    async def relay_error_handler(request: Request, exc: RelayError):
        body = {"success": False, "error": exc.message}
        if exc.kind is ErrorKind.VALIDATION:
            body["details"] = exc.details
        return JSONResponse(status_code=error_status(exc), content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in err["loc"]), "reason": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid request", "details": details},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={
                    "success": False,
                    "error": f"Route {request.method} {request.url.path} not found",
                    "available_routes": _available_routes(),
                },
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        body = {"success": False, "error": "Internal server error"}
        if settings.is_development:
            body["details"] = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=500, content=body)

    # Include routers
    app.include_router(tasks.router, prefix="/api")
    app.include_router(projects.router, prefix="/api")
    app.include_router(labels.router, prefix="/api")
    app.include_router(health.router)

    @app.get("/")
    async def root():
        """Service metadata and endpoint map."""
        return {
            "name": "Claude Todoist API",
            "version": settings.server_version,
            "description": "REST API for Claude AI to manage Todoist tasks and projects",
            "environment": settings.environment,
            "endpoints": ENDPOINTS,
        }

    return app
