"""
FastAPI application factory.

Run locally:
    uvicorn crewdesk_api.app:app --reload --port 8000
    crewdesk-api            # same app, bound to settings.api_host / api_port
"""

from __future__ import annotations

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from crewdesk_shared.config import settings

from crewdesk_api.middleware.logging import LoggingMiddleware
from crewdesk_api.responses import error_response
from crewdesk_api.routers.health import router as health_router
from crewdesk_api.routers.v1 import v1_router

logger = structlog.get_logger()


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    msg = first.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def install_error_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": "<message>"}``."""

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return error_response(message, exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(_validation_message(exc), 400)

    @app.exception_handler(APIError)
    async def _backend_error(request: Request, exc: APIError) -> JSONResponse:
        logger.error(
            "backend_error",
            path=request.url.path,
            code=exc.code,
            error=exc.message,
        )
        return error_response(exc.message or "Database error", 500)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Crewdesk API",
        description="Event staffing, vendor availability and time tracking",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    install_error_handlers(app)

    app.include_router(health_router)
    app.include_router(v1_router)

    logger.info("app_created", cors_origins=settings.cors_origins_list)
    return app


app = create_app()


def run() -> None:
    uvicorn.run("crewdesk_api.app:app", host=settings.api_host, port=settings.api_port)
