"""Context Builder — turns transport-level request data into a per-request Context.

Invariants:
    - Runs exactly once per request, before any guard
    - Absent credential => session None (not an error); invalid credential => session None
    - Never touches the data store and never performs business logic
    - deadline = now + min(client-requested timeout, configured request timeout)

Design Decisions:
    - RawRequest decouples the builder from FastAPI: the route adapts Request -> RawRequest
    - Bearer header wins over cookie when both are present
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from uuid import uuid4

from switchyard.config import Settings
from switchyard.core.context import Context, deadline_after
from switchyard.core.repository_protocols import DataStore
from switchyard.infrastructure.tokens import decode_session_token

logger = logging.getLogger(__name__)

TIMEOUT_HEADER = "x-request-timeout-ms"
REQUEST_ID_HEADER = "x-request-id"


@dataclass(frozen=True)
class RawRequest:
    """Transport-neutral request data. Header names are matched case-insensitively."""
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return value
        return None


def extract_credential(raw: RawRequest, cookie_name: str) -> str | None:
    """Bearer token from Authorization, else the session cookie, else None."""
    authorization = raw.header("authorization")
    if authorization:
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() == "bearer" and token.strip():
            return token.strip()
    cookie = raw.cookies.get(cookie_name)
    return cookie or None


def resolve_timeout(raw: RawRequest, configured_seconds: float) -> float:
    """Effective timeout in seconds. Client may shorten, never extend."""
    requested = raw.header(TIMEOUT_HEADER)
    if requested is None:
        return configured_seconds
    try:
        requested_ms = int(requested)
    except ValueError:
        return configured_seconds
    if requested_ms <= 0:
        return configured_seconds
    return min(requested_ms / 1000, configured_seconds)


def build_context(raw: RawRequest, store: DataStore, settings: Settings) -> Context:
    """Build the per-request Context: session, store handle, deadline, request id."""
    token = extract_credential(raw, settings.session_cookie_name)
    session = decode_session_token(token, settings) if token else None
    return Context(
        store=store,
        session=session,
        deadline=deadline_after(resolve_timeout(raw, settings.request_timeout_seconds)),
        request_id=raw.header(REQUEST_ID_HEADER) or uuid4().hex,
    )
