"""Validation Gate — checks untrusted input against a procedure's declared schema.

Invariants:
    - validate() never raises for bad input: it returns Err(PARSE_ERROR)
    - A PARSE_ERROR from validate() always carries at least one FieldViolation
    - Unknown fields are rejected (StrictInput forbids extras); wrong scalar types
      are rejected, not coerced
    - Missing input (None, empty body, JSON null) validates as {} so
      all-optional schemas accept an empty call
    - JsonText is decoded here, after guards: malformed JSON from an
      unauthenticated caller is never looked at

Design Decisions:
    - Pydantic models as schemas: field-level errors with locations come for free
    - StrictInput base sets the policy once; per-field defaults/optionals still apply
    - Everything is validated in JSON mode, so the rules are the same whether
      input arrived as transport text or as an already-decoded object
"""

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from switchyard.core.errors import (
    ErrorKind, FieldViolation, ProcedureError, violations_from_pydantic,
)
from switchyard.core.result import Err, Ok

_EMPTY_DOCUMENTS = ("", "null", "{}")


class StrictInput(BaseModel):
    """Base for procedure input schemas: no extras, no silent coercion."""
    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)


@dataclass(frozen=True)
class JsonText:
    """Undecoded JSON input handed over by a transport."""
    text: str | bytes


def validate(schema: type[BaseModel] | None, raw_input: Any) -> Ok | Err:
    """Validate raw_input against schema. A None schema accepts only empty input."""
    document = _as_document(raw_input)
    if document is None:
        return _parse_error("$", "Input must be JSON-serializable")

    if schema is None:
        if document.strip() in _EMPTY_DOCUMENTS:
            return Ok(None)
        return _parse_error("$", "This procedure takes no input")

    if document.strip() in ("", "null"):
        document = "{}"
    try:
        value = schema.model_validate_json(document)
    except ValidationError as e:
        return Err(ProcedureError(
            ErrorKind.PARSE_ERROR,
            violations=violations_from_pydantic(e) or [
                FieldViolation(path="$", reason="Invalid input"),
            ],
            cause=e,
        ))
    return Ok(value)


def _as_document(raw_input: Any) -> str | None:
    if raw_input is None:
        return ""
    if isinstance(raw_input, JsonText):
        text = raw_input.text
        if isinstance(text, bytes):
            try:
                return text.decode("utf-8")
            except UnicodeDecodeError:
                return None
        return text
    try:
        return json.dumps(raw_input)
    except (TypeError, ValueError):
        return None


def _parse_error(path: str, reason: str) -> Err:
    return Err(ProcedureError(
        ErrorKind.PARSE_ERROR,
        violations=[FieldViolation(path=path, reason=reason)],
    ))
