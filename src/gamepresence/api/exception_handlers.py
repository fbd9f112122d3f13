"""Custom exception handlers for the FastAPI application.

Domain exceptions become JSON responses with a status code per exception family.
Bodies always look like {"error": "<ExceptionClass>", "detail": "<message>"} so the
frontend can show detail verbatim.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gamepresence.domain.exceptions import (
    AuthError,
    ConfigurationError,
    DomainException,
    ExternalServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# Pydantic's exc.errors() can carry the raw body as bytes, which JSONResponse can't encode
def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, dict):
            return {k: _sanitize_value(v) for k, v in value.items()}
        if isinstance(value, list | tuple):
            return [_sanitize_value(item) for item in value]
        return value

    return [_sanitize_value(error) for error in errors]


def _error_response(status_code: int, exc: DomainException) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.__class__.__name__, "detail": exc.message},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain and validation exceptions.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning("Validation error at %s: %s", request.url.path, exc.message)
        return _error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error("Configuration error at %s: %s", request.url.path, exc.message)
        return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc)

    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        logger.warning("External service error at %s: %s", request.url.path, exc.message)
        return _error_response(status.HTTP_502_BAD_GATEWAY, exc)

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        logger.warning("Authorization error at %s: %s", request.url.path, exc.message)
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s", request.url.path, sanitized_errors
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "RequestValidationError", "detail": sanitized_errors},
        )
