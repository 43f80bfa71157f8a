"""Error types and their mapping onto API responses."""
import logging
import traceback
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from response_helpers import create_error_response, create_validation_error_response

logger = logging.getLogger(__name__)


class IrrigationError(Exception):
    """Base class for errors raised by the irrigation backend."""


class ValidationFailedError(IrrigationError):
    """
    A record does not satisfy the rule table of its kind.

    Args:
        errors: Mapping of dot-notation field path to error messages
        kind: Record kind that was being validated
    """

    def __init__(self, errors: Dict[str, List[str]], kind: Optional[str] = None):
        self.errors = errors
        self.kind = kind
        fields = ", ".join(sorted(errors))
        super().__init__(f"{kind or 'Record'} validation failed: {fields}")


class DuplicateKeyError(IrrigationError):
    """A uniqueness constraint was violated at write time."""

    def __init__(self, field: Optional[str], value: Any = None, kind: Optional[str] = None):
        self.field = field
        self.value = value
        self.kind = kind
        super().__init__(f"Duplicate value for {kind or 'record'}.{field or 'unknown'}")


class NotFoundError(IrrigationError):
    """No record of the given kind has the given identifier."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class ConfigurationMissingError(IrrigationError):
    """Required environment variables are absent at startup."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Missing required configuration: {', '.join(missing)}")


class InvalidTokenError(IrrigationError):
    """A bearer token failed signature or expiry verification."""


def _json(status_code: int, content: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI, environment: str = "development") -> None:
    """
    Translate errors raised by handlers into the standard response envelopes.

    Args:
        app: Application to register the handlers on
        environment: Deployment environment; error internals are exposed
            only in "development"
    """

    @app.exception_handler(ValidationFailedError)
    async def handle_validation_failed(request: Request, exc: ValidationFailedError):
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
        return _json(status.HTTP_400_BAD_REQUEST, create_validation_error_response(exc.errors))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors: Dict[str, List[str]] = {}
        for error in exc.errors():
            # Drop the leading "body"/"query"/"path" segment
            path = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
            errors.setdefault(path, []).append(error["msg"])
        return _json(status.HTTP_400_BAD_REQUEST, create_validation_error_response(errors))

    @app.exception_handler(DuplicateKeyError)
    async def handle_duplicate_key(request: Request, exc: DuplicateKeyError):
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")
        details = {"field": exc.field} if exc.field else None
        return _json(
            status.HTTP_400_BAD_REQUEST,
            create_error_response("Duplicate key", status.HTTP_400_BAD_REQUEST, details),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _json(
            status.HTTP_404_NOT_FOUND,
            create_error_response(str(exc), status.HTTP_404_NOT_FOUND),
        )

    @app.exception_handler(InvalidTokenError)
    async def handle_invalid_token(request: Request, exc: InvalidTokenError):
        return _json(
            status.HTTP_401_UNAUTHORIZED,
            create_error_response(str(exc), status.HTTP_401_UNAUTHORIZED),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _json(exc.status_code, create_error_response(str(exc.detail), exc.status_code))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        details = None
        if environment == "development":
            details = {
                "message": str(exc),
                "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            }
        return _json(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            create_error_response("Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR, details),
        )
