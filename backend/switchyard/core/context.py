"""Request Context — per-request value carrying session, store handle, and deadline.

Invariants:
    - A Context is created once per request and never shared across requests
    - session is either None or a fully populated SessionIdentity (all fields required)
    - AuthedContext.session is never None — produced only by ProtectedGuard
    - deadline is an absolute time.monotonic() value, or None for no deadline

Design Decisions:
    - Explicit context passing over ambient globals: every operation needing the
      session or store receives the Context as a parameter
    - Frozen dataclasses: guards build new contexts instead of mutating one
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from switchyard.core.domain_types import UserId
from switchyard.core.repository_protocols import DataStore


class SessionIdentity(BaseModel):
    """Authenticated caller. Every field is required — no partial sessions."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    user_id: UserId
    email: str = Field(min_length=3)
    name: str = Field(min_length=1)
    expires_at: datetime


@dataclass(frozen=True)
class Context:
    """Per-request context handed to guards and handlers."""
    store: DataStore
    session: SessionIdentity | None = None
    deadline: float | None = None
    request_id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def remaining_seconds(self) -> float | None:
        """Seconds until the deadline (may be <= 0), or None without a deadline."""
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()


@dataclass(frozen=True)
class AuthedContext(Context):
    """Context narrowed by ProtectedGuard: session is guaranteed present."""
    session: SessionIdentity = None  # type: ignore[assignment]

    def __post_init__(self):
        if self.session is None:
            raise ValueError("AuthedContext requires a session")

    @property
    def user_id(self) -> UserId:
        return self.session.user_id


def deadline_after(seconds: float | None) -> float | None:
    """Absolute monotonic deadline `seconds` from now."""
    if seconds is None:
        return None
    return time.monotonic() + seconds
