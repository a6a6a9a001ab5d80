"""Procedure test fixtures — the real root router over an in-memory database."""

from datetime import datetime, timedelta, timezone

import pytest

from switchyard.models.post import Post
from switchyard.procedures.app_router import build_app_router
from switchyard.services.dispatch import ProcedureDispatch


@pytest.fixture
def app_dispatch(settings) -> ProcedureDispatch:
    return ProcedureDispatch(build_app_router(settings))


@pytest.fixture
def seed_posts(store, seed_user):
    """Insert `count` posts for seed_user with strictly increasing updated_at."""
    async def _seed(count: int, *, same_timestamp: bool = False) -> list[Post]:
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        posts = []
        async with store.transaction() as scope:
            for i in range(count):
                stamp = base if same_timestamp else base + timedelta(minutes=i)
                post = Post(
                    author_id=seed_user.id, title=f"Post {i:02d}", body="",
                    created_at=stamp, updated_at=stamp,
                )
                await scope.add(post)
                posts.append(post)
        return posts
    return _seed
