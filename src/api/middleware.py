"""API middleware — CORS, request logging, and error handling.

Provides helper functions and middleware classes to configure cross-origin
resource sharing, structured request logging (via structlog), and automatic
conversion of ``CulturePrismError`` subclasses into ``{error, timestamp}``
JSON bodies carrying the exception's HTTP status.

# ─── MIDDLEWARE EXECUTION ORDER ───────────────────────────────────────
#
# Starlette middleware is a stack (last added, first executed):
#
#   In main.py:
#     app.add_middleware(ErrorHandlingMiddleware)    # innermost
#     app.add_middleware(RequestLoggingMiddleware)
#     configure_cors(app)                            # outermost
#
#   Request flow:
#     Client → CORS → RequestLogging → ErrorHandling → route handler
#
# CORS answers OPTIONS preflights before anything else runs, and
# RequestLoggingMiddleware sees the final status code even when
# ErrorHandlingMiddleware replaced an exception with a JSON error.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.api.schemas import ErrorResponse
from src.utils.errors import CulturePrismError
from src.utils.logging import bind_request_context, clear_request_context, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware to the FastAPI application.

    Parameters
    ----------
    app:
        The FastAPI application instance.
    allowed_origins:
        Explicit list of allowed origins.  Defaults to ``["*"]``.
    """
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject a wildcard origin combined with credentials.
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration.

    A short ``http_request_id`` is bound into the structlog context for the
    duration of the request so pipeline events can be correlated with it.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None
        bind_request_context(http_request_id=uuid.uuid4().hex[:12])

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )
            clear_request_context()


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the standard ``{error, timestamp}`` JSON response."""
    body = ErrorResponse(error=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn exceptions into ``{error, timestamp}`` responses.

    ``CulturePrismError`` subclasses keep their message and map to the
    class's ``status_code``.  Anything else becomes a 500 with a generic
    message; stack traces are logged server-side only.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except CulturePrismError as exc:
            log = _logger.error if exc.status_code >= 500 else _logger.warning
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                status=exc.status_code,
                path=str(request.url.path),
            )
            return error_response(exc.status_code, exc.message)
        except Exception:
            _logger.exception("unhandled_error", path=str(request.url.path))
            return error_response(500, "Internal server error")


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed request bodies as 400 instead of FastAPI's 422."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request body")
    _logger.warning(
        "request_validation_failed",
        path=str(request.url.path),
        errors=len(errors),
        location=location,
    )
    return error_response(400, f"{location}: {message}" if location else message)
