"""Post Procedures — lookup, paginated listing, and owner-only mutations.

Invariants:
    - post.create and post.delete write the post and the author's post_count in
      one transaction: both persist or neither does
    - Only the author may update or delete a post (FORBIDDEN otherwise)
    - post.list ordering is total: requested column, then Post.id

Design Decisions:
    - post_count is changed with a single UPDATE ... SET post_count = post_count +/- 1
      so concurrent creates cannot lose increments
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update

from switchyard.core.context import AuthedContext, Context
from switchyard.core.errors import bad_request, forbidden, not_found
from switchyard.core.pagination import PageWindow, PaginationResult, order_clauses, paginate
from switchyard.core.procedure import protected_procedure, public_procedure
from switchyard.core.repository_protocols import TransactionScope
from switchyard.core.result import Err, Ok
from switchyard.core.router import Router, create_router
from switchyard.models.post import Post
from switchyard.models.user import User
from switchyard.schemas.post import (
    PostCreate, PostFilters, PostListInput, PostLookup, PostOrderField,
    PostResponse, PostUpdate,
)
from switchyard.services.transaction import run_transaction

logger = logging.getLogger(__name__)

_ORDER_COLUMNS = {
    PostOrderField.UPDATED_AT.value: Post.updated_at,
    PostOrderField.CREATED_AT.value: Post.created_at,
    PostOrderField.TITLE.value: Post.title,
}


async def by_id(ctx: Context, data: PostLookup) -> Ok | Err:
    """Fetch one post."""
    post = await ctx.store.get(Post, data.id)
    if post is None:
        return Err(not_found("Post", str(data.id)))
    return Ok(PostResponse.model_validate(post))


async def list_posts(ctx: Context, params: PostListInput) -> Ok:
    """Paginated, filterable post listing."""
    filters = params.filters or PostFilters()

    async def query(window: PageWindow) -> list[Post]:
        statement = select(Post)
        if filters.author_id is not None:
            statement = statement.where(Post.author_id == filters.author_id)
        if filters.search:
            statement = statement.where(
                Post.title.icontains(filters.search, autoescape=True),
            )
        statement = (
            statement
            .order_by(*order_clauses(_ORDER_COLUMNS, window, Post.id))
            .offset(window.offset)
            .limit(window.limit)
        )
        return await ctx.store.scalars(statement)

    page = await paginate(params, query, remaining_seconds=ctx.remaining_seconds())
    return Ok(PaginationResult(
        items=[PostResponse.model_validate(p) for p in page.items],
        has_next_page=page.has_next_page,
    ))


async def create_post(ctx: AuthedContext, data: PostCreate) -> Ok | Err:
    """Create a post and bump the author's post_count atomically."""

    async def write(scope: TransactionScope) -> PostResponse | Err:
        bumped = await scope.execute(
            update(User)
            .where(User.id == ctx.user_id)
            .values(post_count=User.post_count + 1),
        )
        if bumped.rowcount == 0:
            return Err(not_found("User", str(ctx.user_id)))
        post = Post(author_id=ctx.user_id, title=data.title, body=data.body)
        await scope.add(post)
        await scope.flush()
        return PostResponse.model_validate(post)

    result = await run_transaction(ctx, write)
    if isinstance(result, Err):
        return result
    logger.info(f"Created post {result.id}", extra={"request_id": ctx.request_id})
    return Ok(result)


async def update_post(ctx: AuthedContext, data: PostUpdate) -> Ok | Err:
    """Edit title and/or body of one of the caller's posts."""
    if data.title is None and data.body is None:
        return Err(bad_request(
            "Provide a title or body to update", code="EMPTY_UPDATE",
        ))

    async def write(scope: TransactionScope) -> PostResponse | Err:
        post = await _owned_post(scope, ctx, data.id)
        if isinstance(post, Err):
            return post
        if data.title is not None:
            post.title = data.title
        if data.body is not None:
            post.body = data.body
        post.updated_at = datetime.now(timezone.utc)
        await scope.flush()
        return PostResponse.model_validate(post)

    result = await run_transaction(ctx, write)
    return result if isinstance(result, Err) else Ok(result)


async def delete_post(ctx: AuthedContext, data: PostLookup) -> Ok | Err:
    """Delete one of the caller's posts and decrement their post_count."""

    async def write(scope: TransactionScope) -> dict | Err:
        post = await _owned_post(scope, ctx, data.id)
        if isinstance(post, Err):
            return post
        await scope.delete(post)
        await scope.execute(
            update(User)
            .where(User.id == ctx.user_id)
            .values(post_count=User.post_count - 1),
        )
        return {"id": str(data.id), "deleted": True}

    result = await run_transaction(ctx, write)
    return result if isinstance(result, Err) else Ok(result)


async def _owned_post(
    scope: TransactionScope, ctx: AuthedContext, post_id,
) -> Post | Err:
    post = await scope.get(Post, post_id)
    if post is None:
        return Err(not_found("Post", str(post_id)))
    if post.author_id != ctx.user_id:
        return Err(forbidden(
            "Only the author can modify this post", code="NOT_POST_OWNER",
        ))
    return post


def build_post_router() -> Router:
    return create_router({
        "by_id": public_procedure.input(PostLookup).query(by_id),
        "list": public_procedure.input(PostListInput).query(list_posts),
        "create": protected_procedure.input(PostCreate).mutation(create_post),
        "update": protected_procedure.input(PostUpdate).mutation(update_post),
        "delete": protected_procedure.input(PostLookup).mutation(delete_post),
    })
