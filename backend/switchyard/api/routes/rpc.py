"""RPC Routes — HTTP adapter for ProcedureDispatch.

Invariants:
    - GET /api/v1/rpc/{path}?input=<json> dispatches queries only
    - POST /api/v1/rpc/{path} with a JSON body dispatches mutations only
    - Input is passed through undecoded (JsonText): decoding happens in the
      validation gate, after guards
    - Bodies larger than settings.max_input_bytes => PAYLOAD_TOO_LARGE (no dispatch);
      an oversized Content-Length is refused unread, a streamed body is read
      only until it passes the limit
    - A fresh Context (and store handle) is built for every request

Design Decisions:
    - Dispatcher, settings and database manager read from app.state, set by lifespan
"""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from switchyard.config import Settings
from switchyard.core.context import Context
from switchyard.core.domain_types import ProcedureKind
from switchyard.core.errors import ErrorKind, ProcedureError, map_error
from switchyard.core.middleware import ProtectedGuard
from switchyard.core.validation import JsonText
from switchyard.services.context_builder import RawRequest, build_context
from switchyard.services.dispatch import DispatchOutcome, ProcedureDispatch

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/rpc", tags=["rpc"])


def get_settings_state(request: Request) -> Settings:
    return request.app.state.settings


def get_dispatch(request: Request) -> ProcedureDispatch:
    return request.app.state.dispatch


def get_context(request: Request) -> Context:
    """Context Builder adapter: one Context per HTTP request."""
    raw = RawRequest(headers=dict(request.headers), cookies=dict(request.cookies))
    return build_context(raw, request.app.state.db.store(), request.app.state.settings)


@router.get("")
async def list_procedures(dispatch: ProcedureDispatch = Depends(get_dispatch)):
    """Registered procedure paths with their kind and auth requirement."""
    return {
        "procedures": [
            {
                "path": path,
                "kind": procedure.kind.value,
                "protected": any(isinstance(g, ProtectedGuard) for g in procedure.guards),
                "description": procedure.description,
            }
            for path, procedure in dispatch.router.procedures()
        ],
    }


@router.get("/{path}")
async def call_query(
    path: str,
    input: str | None = Query(None),
    context: Context = Depends(get_context),
    dispatch: ProcedureDispatch = Depends(get_dispatch),
    settings: Settings = Depends(get_settings_state),
):
    """Dispatch a query procedure."""
    if input is not None and len(input.encode("utf-8")) > settings.max_input_bytes:
        return _too_large(settings)
    raw_input = JsonText(input) if input is not None else None
    outcome = await dispatch.call(context, path, raw_input, ProcedureKind.QUERY)
    return _respond(outcome)


@router.post("/{path}")
async def call_mutation(
    path: str,
    request: Request,
    context: Context = Depends(get_context),
    dispatch: ProcedureDispatch = Depends(get_dispatch),
    settings: Settings = Depends(get_settings_state),
):
    """Dispatch a mutation procedure."""
    body = await _read_bounded(request, settings.max_input_bytes)
    if body is None:
        return _too_large(settings)
    raw_input = JsonText(body) if body else None
    outcome = await dispatch.call(context, path, raw_input, ProcedureKind.MUTATION)
    return _respond(outcome)


async def _read_bounded(request: Request, limit: int) -> bytes | None:
    """Request body, or None once it is known to exceed `limit` bytes."""
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        return None
    chunks, size = [], 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


def _respond(outcome: DispatchOutcome) -> JSONResponse:
    if outcome.ok:
        return JSONResponse(
            status_code=outcome.status,
            content={"result": {"data": jsonable_encoder(outcome.data)}},
        )
    return JSONResponse(
        status_code=outcome.status, content=outcome.error.to_response(),
    )


def _too_large(settings: Settings) -> JSONResponse:
    response = map_error(ProcedureError(
        ErrorKind.PAYLOAD_TOO_LARGE,
        f"Input exceeds {settings.max_input_bytes} bytes",
    ))
    return JSONResponse(status_code=response.status, content=response.to_response())
