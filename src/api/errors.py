"""
Domain error to HTTP status mapping.

This is the only place where lifecycle error kinds become status codes.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.domain.exceptions import ErrorKind, InvalidCredentials, LifecycleError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.EXPIRED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.TRANSACTION_ABORTED: status.HTTP_409_CONFLICT,
    ErrorKind.FATAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: LifecycleError) -> int:
    # Login failures must not reveal whether the email exists
    if isinstance(exc, InvalidCredentials):
        return status.HTTP_401_UNAUTHORIZED
    return STATUS_BY_KIND[exc.kind]


async def lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    status_code = status_for(exc)
    if exc.kind is ErrorKind.FATAL:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "kind": exc.kind.value},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LifecycleError, lifecycle_error_handler)
