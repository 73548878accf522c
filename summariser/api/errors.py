"""Mapping from pipeline failures to HTTP responses.

Every error response has the body ``{"error": str, "stage": str, "kind": str}``.

    400  invalid URL or malformed request body
    422  content failures (no article, unusable model reply, fetch 4xx, page too large)
    502  upstream unavailability (fetch timeout / unreachable / 5xx / redirect loop,
         model unavailable or rate limited)
    504  deadline exceeded
    500  summary store write failed
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from summariser.errors import (
    ErrorKind,
    FetchError,
    InvalidRequestError,
    PersistenceError,
    PipelineFailure,
)

_KIND_STATUS = {
    ErrorKind.INVALID_URL: 400,
    ErrorKind.EMPTY_CONTENT: 422,
    ErrorKind.INVALID_RESPONSE: 422,
    ErrorKind.TOO_LARGE: 422,
    ErrorKind.TIMEOUT: 502,
    ErrorKind.UNREACHABLE: 502,
    ErrorKind.TOO_MANY_REDIRECTS: 502,
    ErrorKind.UPSTREAM_UNAVAILABLE: 502,
    ErrorKind.RATE_LIMITED: 502,
    ErrorKind.DEADLINE_EXCEEDED: 504,
    ErrorKind.SUMMARY_WRITE_FAILED: 500,
}


def status_for(failure: PipelineFailure) -> int:
    """HTTP status code for *failure*."""
    if isinstance(failure, InvalidRequestError):
        return 400
    if isinstance(failure, PersistenceError):
        return 500
    if isinstance(failure, FetchError) and failure.kind is ErrorKind.HTTP_STATUS:
        # The page itself is missing or forbidden vs. the origin is broken.
        code = failure.status_code or 502
        return 422 if 400 <= code < 500 else 502
    return _KIND_STATUS.get(failure.kind, 500)


async def _pipeline_failure_handler(request: Request, exc: PipelineFailure) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict())


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid request body: {detail}", "stage": "request", "kind": "InvalidRequest"},
    )


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PipelineFailure, _pipeline_failure_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
