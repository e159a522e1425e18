"""FastAPI application entry point.

- Health endpoint at /health
- Link rewrite API under /api/v1/links
- Every request logged with method, path, request_id and timing; the
  request_id is echoed in X-Request-ID (a caller-supplied one is reused so
  the render pipeline can correlate its own logs)
- Errors use the structured body from link_manager.core.errors
- 4xx logged at WARNING, 5xx at ERROR
"""

import json
import logging
import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from link_manager.api.v1 import router as api_v1_router
from link_manager.core.config import get_settings
from link_manager.core.errors import (
    REQUEST_ID_HEADER,
    error_response,
    get_request_id,
    new_request_id,
)
from link_manager.core.logging import get_logger, setup_logging
from link_manager.services.mapping_table import (
    MappingTableError,
    load_configured_mappings,
)

setup_logging()
logger = get_logger(__name__)


def summarize_body(body: bytes) -> dict[str, Any]:
    """Describe a request body for DEBUG logs without logging page markup."""
    summary: dict[str, Any] = {"body_length": len(body)}
    try:
        data = json.loads(body)
    except ValueError:
        return summary
    if not isinstance(data, dict):
        return summary

    summary["body_keys"] = sorted(data)
    if isinstance(data.get("html"), str):
        summary["html_length"] = len(data["html"])
    if isinstance(data.get("mappings"), list):
        summary["mapping_count"] = len(data["mappings"])
    return summary


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a request_id and logs each request with its timing."""

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        request_id = new_request_id(request)
        request.state.request_id = request_id

        started = time.monotonic()
        log_extra: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        logger.info("Request started", extra=log_extra)

        if request.method not in ("GET", "HEAD", "OPTIONS") and logger.isEnabledFor(
            logging.DEBUG
        ):
            body = await request.body()
            if body:
                logger.debug(
                    "Request body",
                    extra={"request_id": request_id, **summarize_body(body)},
                )

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        log_extra["status_code"] = response.status_code
        log_extra["duration_ms"] = round((time.monotonic() - started) * 1000, 2)

        if response.status_code >= 500:
            logger.error("Request failed", extra=log_extra)
        elif response.status_code >= 400:
            logger.warning("Request error", extra=log_extra)
        else:
            logger.info("Request completed", extra=log_extra)

        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Log startup and check the configured mapping table once."""
    settings = get_settings()
    logger.info(
        "Starting application",
        extra={
            "app_name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "site_url": settings.site_url,
        },
    )

    try:
        mappings = load_configured_mappings(settings)
    except MappingTableError as e:
        # Requests that carry their own mappings still work
        logger.warning(
            "Configured mapping table is invalid",
            extra={"error": str(e)},
        )
    else:
        logger.info(
            "Configured mapping table loaded",
            extra={"mapping_count": len(mappings)},
        )

    yield

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        message = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in errors
        )
        logger.warning(
            "Validation error",
            extra={"request_id": get_request_id(request), "error_count": len(errors)},
        )
        return error_response(
            request, status.HTTP_422_UNPROCESSABLE_ENTITY, message, "VALIDATION_ERROR"
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            extra={
                "request_id": get_request_id(request),
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            },
            exc_info=True,
        )
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An internal error occurred. Please try again later.",
            "INTERNAL_ERROR",
        )

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Returns {"status": "ok"} while the service is running."""
        return {"status": "ok"}

    app.include_router(api_v1_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "link_manager.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
