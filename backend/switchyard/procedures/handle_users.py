"""User Procedures — user.create (public sign-up) and user.me (protected).

Invariants:
    - user.create rejects an already registered email with CONFLICT (a racing
      insert that trips the unique index is classified CONFLICT by dispatch)
    - user.me reads only the caller's own row; a stale session => NOT_FOUND
"""

import logging

from sqlalchemy import select

from switchyard.config import Settings
from switchyard.core.context import AuthedContext, Context
from switchyard.core.errors import conflict, not_found
from switchyard.core.procedure import protected_procedure, public_procedure
from switchyard.core.result import Err, Ok
from switchyard.core.router import Router, create_router
from switchyard.infrastructure.tokens import mint_session_token
from switchyard.models.user import User
from switchyard.schemas.user import UserCreate, UserCreated, UserResponse

logger = logging.getLogger(__name__)


class UserHandlers:
    """Sign-up and self-lookup handlers."""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def create(self, ctx: Context, data: UserCreate) -> Ok | Err:
        """Register a user and return a session token."""
        existing = await ctx.store.scalar(
            select(User.id).where(User.email == data.email),
        )
        if existing is not None:
            return Err(conflict(
                "A user with this email already exists", code="EMAIL_TAKEN",
            ))

        user = User(email=data.email, name=data.name, post_count=0)
        await ctx.store.add(user)
        logger.info(f"Registered user {user.id}", extra={"request_id": ctx.request_id})

        token = mint_session_token(str(user.id), user.email, user.name, self.settings)
        return Ok(UserCreated(user=UserResponse.model_validate(user), token=token))

    async def me(self, ctx: AuthedContext, _input: None) -> Ok | Err:
        """The caller's own user record."""
        user = await ctx.store.get(User, ctx.user_id)
        if user is None:
            return Err(not_found("User", str(ctx.user_id)))
        return Ok(UserResponse.model_validate(user))


def build_user_router(settings: Settings) -> Router:
    users = UserHandlers(settings)
    return create_router({
        "create": public_procedure.input(UserCreate).mutation(users.create),
        "me": protected_procedure.query(users.me),
    })
