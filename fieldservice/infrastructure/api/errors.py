"""Maps domain errors onto HTTP responses with an ``{"error": message}`` body."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fieldservice.domain.errors import (
    ConflictError,
    DomainError,
    InvalidStateError,
    NotFoundError,
    OutsideWindowError,
    PermissionDeniedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[DomainError], int] = {
    ValidationError: 400,
    InvalidStateError: 400,
    OutsideWindowError: 400,
    PermissionDeniedError: 403,
    NotFoundError: 404,
    ConflictError: 409,
}


def status_for(exc: DomainError) -> int:
    for error_type, status in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status
    return 400


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status = status_for(exc)
    logger.info("%s %s -> %d %s: %s", request.method, request.url.path, status, exc.kind, exc.message)
    return JSONResponse(status_code=status, content={"error": exc.message, "kind": exc.kind})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": problems or "Invalid request"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
