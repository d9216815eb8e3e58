"""API middleware: CORS, request logging, and error handling.

Starlette middleware is a stack (last added, first executed).  ``create_app``
adds ErrorHandlingMiddleware first and RequestLoggingMiddleware second, so
requests flow::

    Client -> RequestLogging -> ErrorHandling -> route handler

and the request log sees the final status code, including the ones
produced by ErrorHandling.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from kbase.api.schemas import ErrorResponse
from kbase.utils.errors import (
    CollectionNotFoundError,
    KnowledgeBaseError,
    ValidationError,
)
from kbase.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Errors the client caused; everything else is a server-side failure.
_STATUS_BY_ERROR: dict[type[KnowledgeBaseError], int] = {
    ValidationError: 400,
    CollectionNotFoundError: 404,
}


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
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

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


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``KnowledgeBaseError`` subclasses into JSON error bodies.

    The client gets the exception class name and message; provider details
    and tracebacks stay in the server log.  Other exceptions fall through
    to FastAPI's default 500 handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except KnowledgeBaseError as exc:
            status_code = _status_for(exc)
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
                status=status_code,
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=status_code, content=body.model_dump())


def _status_for(exc: KnowledgeBaseError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status_code
    return 500
