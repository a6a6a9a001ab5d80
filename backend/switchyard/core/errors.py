"""Error Taxonomy — closed set of failure kinds and their fixed transport mapping.

Invariants:
    - Every failure leaving dispatch is exactly one ProcedureError with one ErrorKind
    - ErrorKind -> HTTP status is fixed (_STATUS_BY_KIND) and never varies by caller
    - INTERNAL always maps to INTERNAL_MESSAGE, whatever the original text was
    - ProcedureError.cause is internal only — never serialized by to_response()

Design Decisions:
    - Single ProcedureError class keyed by kind over one subclass per kind:
      handlers build errors with factory helpers (not_found(), forbidden(), ...)
    - ConfigurationError is NOT a ProcedureError: it aborts startup and never
      reaches a caller
"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError


class ErrorKind(str, Enum):
    """Closed classification of failure causes."""
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_SUPPORTED = "METHOD_NOT_SUPPORTED"
    TIMEOUT = "TIMEOUT"
    CONFLICT = "CONFLICT"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    PARSE_ERROR = "PARSE_ERROR"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    INTERNAL = "INTERNAL"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.METHOD_NOT_SUPPORTED: 405,
    ErrorKind.TIMEOUT: 408,
    ErrorKind.CONFLICT: 409,
    ErrorKind.PRECONDITION_FAILED: 412,
    ErrorKind.PAYLOAD_TOO_LARGE: 413,
    ErrorKind.PARSE_ERROR: 422,
    ErrorKind.TOO_MANY_REQUESTS: 429,
    ErrorKind.INTERNAL: 500,
}

_DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.BAD_REQUEST: "The request was rejected",
    ErrorKind.UNAUTHORIZED: "Authentication required",
    ErrorKind.FORBIDDEN: "You do not have access to this resource",
    ErrorKind.NOT_FOUND: "Resource not found",
    ErrorKind.METHOD_NOT_SUPPORTED: "Method not supported for this procedure",
    ErrorKind.TIMEOUT: "The request took too long to complete",
    ErrorKind.CONFLICT: "The request conflicts with the current state",
    ErrorKind.PRECONDITION_FAILED: "A precondition for this request failed",
    ErrorKind.PAYLOAD_TOO_LARGE: "The request payload is too large",
    ErrorKind.PARSE_ERROR: "Invalid input",
    ErrorKind.TOO_MANY_REQUESTS: "Too many requests",
    ErrorKind.INTERNAL: "An unexpected error occurred",
}

INTERNAL_MESSAGE = _DEFAULT_MESSAGES[ErrorKind.INTERNAL]


def status_for(kind: ErrorKind) -> int:
    """Transport status for an error kind."""
    return _STATUS_BY_KIND[kind]


class ConfigurationError(Exception):
    """Router tree is malformed. Raised at startup, never at request time."""


@dataclass(frozen=True)
class FieldViolation:
    """One field-level schema violation: dotted path + human-readable reason."""
    path: str
    reason: str

    def to_dict(self) -> dict:
        return {"path": self.path, "reason": self.reason}


class ProcedureError(Exception):
    """The single failure type that crosses the dispatch boundary."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        *,
        code: str | None = None,
        cause: BaseException | None = None,
        violations: list[FieldViolation] | None = None,
    ):
        self.kind = kind
        self.message = message or _DEFAULT_MESSAGES[kind]
        self.code = code or kind.value
        self.cause = cause
        self.violations = list(violations or [])
        super().__init__(self.message)

    @property
    def http_status(self) -> int:
        return status_for(self.kind)

    def __repr__(self) -> str:
        return f"ProcedureError(kind={self.kind.value}, code={self.code!r}, message={self.message!r})"


class NestedTransactionError(ProcedureError):
    """run_transaction was entered while a scope was already open for the request."""

    def __init__(self):
        super().__init__(
            ErrorKind.INTERNAL,
            "Nested transactions are not supported",
            code="NESTED_TRANSACTION",
        )


@dataclass(frozen=True)
class ErrorResponse:
    """Caller-safe projection of a ProcedureError."""
    status: int
    kind: ErrorKind
    code: str
    message: str
    violations: list[FieldViolation] = field(default_factory=list)

    def to_response(self) -> dict:
        """Standard REST error envelope."""
        body: dict = {
            "code": self.code,
            "kind": self.kind.value,
            "message": self.message,
            "status": self.status,
        }
        if self.violations:
            body["details"] = [v.to_dict() for v in self.violations]
        return {"error": body}


def map_error(error: ProcedureError) -> ErrorResponse:
    """Pure, total mapping from a classified error to its caller-safe response."""
    if error.kind is ErrorKind.INTERNAL:
        # INTERNAL never echoes text or codes set deep in the stack
        return ErrorResponse(
            status=status_for(ErrorKind.INTERNAL),
            kind=ErrorKind.INTERNAL,
            code="INTERNAL_ERROR",
            message=INTERNAL_MESSAGE,
        )
    return ErrorResponse(
        status=status_for(error.kind),
        kind=error.kind,
        code=error.code,
        message=error.message,
        violations=list(error.violations),
    )


def violations_from_pydantic(exc: ValidationError) -> list[FieldViolation]:
    """Flatten pydantic error locations into dotted-path violations."""
    violations = []
    for e in exc.errors():
        path = ".".join(str(loc) for loc in e["loc"]) or "$"
        violations.append(FieldViolation(path=path, reason=e["msg"]))
    return violations


def coerce_error(exc: BaseException) -> ProcedureError:
    """Classify any exception. Unknown failures become INTERNAL with the cause kept.

    A pydantic ValidationError here is a defect (a bad response projection, say):
    caller input is checked by the validation gate before the handler runs.
    """
    if isinstance(exc, ProcedureError):
        return exc
    if isinstance(exc, IntegrityError):
        return ProcedureError(ErrorKind.CONFLICT, cause=exc)
    if isinstance(exc, TimeoutError):
        return ProcedureError(ErrorKind.TIMEOUT, cause=exc)
    return ProcedureError(ErrorKind.INTERNAL, cause=exc)


# ─── Factories ───────────────────────────────────────────────────

def bad_request(message: str | None = None, *, code: str | None = None) -> ProcedureError:
    return ProcedureError(ErrorKind.BAD_REQUEST, message, code=code)


def unauthorized(message: str | None = None) -> ProcedureError:
    return ProcedureError(ErrorKind.UNAUTHORIZED, message)


def forbidden(message: str | None = None, *, code: str | None = None) -> ProcedureError:
    return ProcedureError(ErrorKind.FORBIDDEN, message, code=code)


def not_found(resource_type: str, resource_id: str) -> ProcedureError:
    """Data-level not-found for a referenced entity."""
    return ProcedureError(
        ErrorKind.NOT_FOUND,
        f"{resource_type} '{resource_id}' not found",
        code="RESOURCE_NOT_FOUND",
    )


def procedure_not_found(path: str) -> ProcedureError:
    """Dispatch-level not-found: no procedure registered at path."""
    return ProcedureError(
        ErrorKind.NOT_FOUND,
        f"No procedure registered at '{path}'",
        code="PROCEDURE_NOT_FOUND",
    )


def conflict(message: str | None = None, *, code: str | None = None) -> ProcedureError:
    return ProcedureError(ErrorKind.CONFLICT, message, code=code)


def timeout(message: str | None = None) -> ProcedureError:
    return ProcedureError(ErrorKind.TIMEOUT, message, code="DEADLINE_EXCEEDED")
