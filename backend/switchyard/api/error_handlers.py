"""Error Handlers — global exception handlers for anything that escapes a route.

Invariants:
    - ProcedureError -> map_error() envelope with its fixed status
    - RequestValidationError (FastAPI parameter parsing) -> PARSE_ERROR with field details
    - StarletteHTTPException (unknown URL, wrong verb) -> matching kind, same envelope
    - Exception (catch-all) -> INTERNAL, never leaks internal details

Design Decisions:
    - Same envelope as dispatch failures so clients handle one error shape
    - Extracted from main.py to keep the entry point small
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from switchyard.core.errors import (
    ErrorKind, FieldViolation, ProcedureError, coerce_error, map_error,
)

logger = logging.getLogger(__name__)

_KIND_BY_HTTP_STATUS = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    405: ErrorKind.METHOD_NOT_SUPPORTED,
    408: ErrorKind.TIMEOUT,
    409: ErrorKind.CONFLICT,
    412: ErrorKind.PRECONDITION_FAILED,
    413: ErrorKind.PAYLOAD_TOO_LARGE,
    422: ErrorKind.PARSE_ERROR,
    429: ErrorKind.TOO_MANY_REQUESTS,
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_procedure_error_handler(app)
    _register_http_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _respond(error: ProcedureError) -> JSONResponse:
    response = map_error(error)
    return JSONResponse(status_code=response.status, content=response.to_response())


def _register_procedure_error_handler(app: FastAPI) -> None:

    @app.exception_handler(ProcedureError)
    async def procedure_error_handler(request: Request, exc: ProcedureError):
        """Handle classified errors raised outside dispatch."""
        logger.warning(
            f"ProcedureError on {request.url.path}: {exc.code}",
            extra={"error_code": exc.code, "kind": exc.kind.value},
        )
        return _respond(exc)


def _register_http_error_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Unknown URLs and wrong verbs at the HTTP layer."""
        kind = _KIND_BY_HTTP_STATUS.get(exc.status_code, ErrorKind.INTERNAL)
        message = exc.detail if isinstance(exc.detail, str) else None
        return _respond(ProcedureError(kind, message))


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle FastAPI parameter validation errors."""
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return _respond(ProcedureError(
            ErrorKind.PARSE_ERROR,
            violations=[
                FieldViolation(
                    path=".".join(str(loc) for loc in e["loc"]) or "$",
                    reason=e["msg"],
                )
                for e in exc.errors()
            ],
        ))


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        settings = request.app.state.settings
        if settings.is_production:
            logger.error(f"Unhandled exception on {request.url.path}")
        else:
            logger.error(
                f"Unhandled exception on {request.url.path}: {exc}", exc_info=True,
            )
        return _respond(coerce_error(exc))
