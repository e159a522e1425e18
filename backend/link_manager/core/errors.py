"""Structured error responses.

Every error the API returns has the same body:
{"error": str, "code": str, "request_id": str}
"""

import re
import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

REQUEST_ID_HEADER = "X-Request-ID"

# Caller-supplied request IDs are reused only when they look like a token
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

HTTP_ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "PAYLOAD_TOO_LARGE",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


def new_request_id(request: Request) -> str:
    """Return the caller's X-Request-ID when usable, else a fresh UUID."""
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming and _REQUEST_ID_PATTERN.match(incoming):
        return incoming
    return str(uuid.uuid4())


def get_request_id(request: Request) -> str:
    """Get request_id from request state."""
    return getattr(request.state, "request_id", "unknown")


def error_response(
    request: Request,
    status_code: int,
    error: str,
    code: str | None = None,
) -> JSONResponse:
    """Build a structured error response for a request."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "code": code or HTTP_ERROR_CODES.get(status_code, "HTTP_ERROR"),
            "request_id": get_request_id(request),
        },
    )
