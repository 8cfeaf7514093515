"""Translate domain errors into HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.errors import (
    AuthenticationError,
    AuthorizationError,
    CoachingDataError,
    InvalidQueryError,
    NotFoundError,
    ProviderError,
    ValidationError,
)

STATUS_BY_ERROR: dict[type[CoachingDataError], int] = {
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    InvalidQueryError: 400,
    ProviderError: 502,
}


def status_for(error: CoachingDataError) -> int:
    for error_type, status in STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return status
    return 500


async def handle_coaching_error(request: Request, exc: CoachingDataError) -> JSONResponse:
    status = status_for(exc)
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    if status >= 500:
        request.app.state.logging.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    else:
        request.app.state.logging.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": exc.message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CoachingDataError, handle_coaching_error)
