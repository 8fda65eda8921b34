"""Standardized error responses across all API endpoints."""
from typing import Any

import sentry_sdk
import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = structlog.get_logger()


class ErrorResponse(BaseModel):
    """Standard error envelope returned by all API error handlers."""
    error: str
    message: str
    detail: Any = None
    request_id: str = "unknown"


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", "unknown")


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return a consistent JSON envelope."""
    request_id = _request_id(request)

    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        request_id=request_id,
    )
    sentry_sdk.capture_exception(exc)

    body = ErrorResponse(
        error="internal_server_error",
        message="An unexpected error occurred. Our team has been notified.",
        request_id=request_id,
    )
    return JSONResponse(status_code=500, content=body.model_dump())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Fold HTTPException into the same JSON envelope."""
    if isinstance(exc.detail, dict):
        error = exc.detail.get("error", f"http_{exc.status_code}")
        message = exc.detail.get("message", str(exc.detail))
        detail: Any = exc.detail.get("detail")
    else:
        error = f"http_{exc.status_code}"
        message = str(exc.detail)
        # Plain-string detail is kept so clients reading resp["detail"] still work
        detail = exc.detail

    body = ErrorResponse(
        error=error,
        message=message,
        detail=detail,
        request_id=_request_id(request),
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=dict(exc.headers or {}),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)
