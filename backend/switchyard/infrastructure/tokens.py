"""Session Tokens — signed JWT credentials that carry a SessionIdentity.

Invariants:
    - decode_session_token returns a fully populated SessionIdentity or None — never partial
    - Expired, tampered, or incomplete tokens decode to None (caller is anonymous)
    - Tokens are signed with settings.session_secret using settings.session_algorithm
"""

import logging
from datetime import datetime, timedelta, timezone

import jwt
from pydantic import ValidationError

from switchyard.config import Settings
from switchyard.core.context import SessionIdentity

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "email", "name", "exp", "iat"]


def mint_session_token(
    user_id: str, email: str, name: str, settings: Settings,
    *, ttl_seconds: int | None = None, issued_at: datetime | None = None,
) -> str:
    """Sign a session token for an authenticated user."""
    now = issued_at or datetime.now(timezone.utc)
    ttl = settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
    payload = {
        "sub": str(user_id),
        "email": email,
        "name": name,
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.session_algorithm)


def decode_session_token(token: str, settings: Settings) -> SessionIdentity | None:
    """Verify signature + expiry and build the identity. Invalid => None."""
    try:
        claims = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[settings.session_algorithm],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected session token: {e.__class__.__name__}")
        return None

    try:
        return SessionIdentity(
            user_id=claims["sub"],
            email=claims["email"],
            name=claims["name"],
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
    except (ValidationError, TypeError, ValueError) as e:
        logger.debug(f"Session token claims incomplete: {e}")
        return None
