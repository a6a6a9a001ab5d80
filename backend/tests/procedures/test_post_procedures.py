"""Post Procedures — tests through the real router: lookup, paging, owner-only writes.

Tests cover:
    - post.list: take=10 over 25 posts by updated_at => 10 items + has_next_page,
      repeated calls return identical pages; ties broken deterministically
    - post.list: clamping, filters, ordering options
    - post.create: post + author post_count written together
    - post.update / post.delete: NOT_FOUND, FORBIDDEN for non-owners, BAD_REQUEST for empty update
    - Protected post mutations without a session => UNAUTHORIZED
"""

from uuid import uuid4

from sqlalchemy import func, select

from switchyard.core.domain_types import ProcedureKind
from switchyard.models.post import Post
from switchyard.models.user import User


async def _list(dispatch, ctx, **params):
    outcome = await dispatch.call(ctx, "post.list", params, ProcedureKind.QUERY)
    assert outcome.ok, outcome.error
    return outcome.data


# ─── post.list ───────────────────────────────────────────────────

async def test_first_page_of_25_by_updated_at(app_dispatch, make_context, seed_posts):
    posts = await seed_posts(25)
    page = await _list(app_dispatch, make_context(), take=10, order_by="updated_at")

    assert len(page.items) == 10
    assert page.has_next_page is True
    newest_first = [p.id for p in reversed(posts)][:10]
    assert [item.id for item in page.items] == newest_first


async def test_repeated_list_returns_identical_page(app_dispatch, make_context, seed_posts):
    await seed_posts(25)
    first = await _list(app_dispatch, make_context(), take=10, order_by="updated_at")
    second = await _list(app_dispatch, make_context(), take=10, order_by="updated_at")
    assert [i.id for i in first.items] == [i.id for i in second.items]


async def test_ties_broken_deterministically_across_pages(app_dispatch, make_context, seed_posts):
    await seed_posts(25, same_timestamp=True)
    seen = []
    for skip in (0, 10, 20):
        page = await _list(app_dispatch, make_context(), take=10, skip=skip)
        seen.extend(item.id for item in page.items)
    assert len(seen) == 25
    assert len(set(seen)) == 25


async def test_walking_pages_until_exhausted(app_dispatch, make_context, seed_posts):
    await seed_posts(25)
    skip, pages = 0, []
    while True:
        page = await _list(app_dispatch, make_context(), take=10, skip=skip)
        pages.append(len(page.items))
        if not page.has_next_page:
            break
        skip += 10
    assert pages == [10, 10, 5]


async def test_take_is_clamped_not_rejected(app_dispatch, make_context, seed_posts):
    await seed_posts(3)
    zero = await _list(app_dispatch, make_context(), take=0)
    huge = await _list(app_dispatch, make_context(), take=5000)
    assert len(zero.items) == 1
    assert zero.has_next_page is True
    assert len(huge.items) == 3
    assert huge.has_next_page is False


async def test_order_by_title_ascending(app_dispatch, make_context, seed_posts):
    await seed_posts(5)
    page = await _list(app_dispatch, make_context(), order_by="title", direction="asc")
    titles = [item.title for item in page.items]
    assert titles == sorted(titles)


async def test_filter_by_author_and_search(
    app_dispatch, make_context, seed_posts, other_user, seed_user,
):
    await seed_posts(12)
    by_other = await _list(
        app_dispatch, make_context(), filters={"author_id": str(other_user.id)},
    )
    assert by_other.items == []

    matching = await _list(
        app_dispatch, make_context(), filters={"author_id": str(seed_user.id), "search": "post 1"},
    )
    assert {item.title for item in matching.items} == {"Post 10", "Post 11"}


async def test_unknown_order_field_is_parse_error(app_dispatch, make_context):
    outcome = await app_dispatch.call(make_context(), "post.list", {"order_by": "password"})
    assert outcome.status == 422
    assert outcome.error.violations[0].path == "order_by"


async def test_unknown_filter_is_parse_error(app_dispatch, make_context):
    outcome = await app_dispatch.call(make_context(), "post.list", {"filters": {"is_admin": True}})
    assert outcome.status == 422


# ─── post.by_id ──────────────────────────────────────────────────

async def test_by_id_found_and_missing(app_dispatch, make_context, seed_posts):
    [post] = await seed_posts(1)
    found = await app_dispatch.call(make_context(), "post.by_id", {"id": str(post.id)})
    assert found.ok
    assert found.data.title == "Post 00"

    missing = await app_dispatch.call(make_context(), "post.by_id", {"id": str(uuid4())})
    assert missing.status == 404
    assert missing.error.code == "RESOURCE_NOT_FOUND"


async def test_by_id_rejects_malformed_uuid(app_dispatch, make_context):
    outcome = await app_dispatch.call(make_context(), "post.by_id", {"id": "123"})
    assert outcome.status == 422


# ─── post.create ─────────────────────────────────────────────────

async def test_create_writes_post_and_bumps_count(app_dispatch, make_context, store, seed_user):
    outcome = await app_dispatch.call(
        make_context(seed_user), "post.create", {"title": "Hello", "body": "World"},
        ProcedureKind.MUTATION,
    )
    assert outcome.ok
    assert outcome.data.author_id == seed_user.id
    assert (await store.get(User, seed_user.id)).post_count == 1
    assert await store.scalar(select(func.count()).select_from(Post)) == 1


async def test_create_requires_session(app_dispatch, make_context, store):
    outcome = await app_dispatch.call(make_context(), "post.create", {"title": "Hello"})
    assert outcome.status == 401
    assert await store.scalar(select(func.count()).select_from(Post)) == 0


async def test_create_for_deleted_user_writes_nothing(app_dispatch, make_context, store, seed_user):
    ctx = make_context(seed_user)
    await store.delete(seed_user)
    outcome = await app_dispatch.call(ctx, "post.create", {"title": "Ghost"})
    assert outcome.status == 404
    assert await store.scalar(select(func.count()).select_from(Post)) == 0


async def test_create_blank_title_is_parse_error(app_dispatch, make_context, seed_user):
    outcome = await app_dispatch.call(make_context(seed_user), "post.create", {"title": "   "})
    assert outcome.status == 422
    assert outcome.error.violations[0].path == "title"


# ─── post.update ─────────────────────────────────────────────────

async def test_owner_can_update(app_dispatch, make_context, seed_posts, seed_user):
    [post] = await seed_posts(1)
    outcome = await app_dispatch.call(
        make_context(seed_user), "post.update", {"id": str(post.id), "title": "Renamed"},
    )
    assert outcome.ok
    assert outcome.data.title == "Renamed"
    assert outcome.data.updated_at.replace(tzinfo=None) > post.updated_at.replace(tzinfo=None)


async def test_non_owner_update_is_forbidden(app_dispatch, make_context, store, seed_posts, other_user):
    [post] = await seed_posts(1)
    outcome = await app_dispatch.call(
        make_context(other_user), "post.update", {"id": str(post.id), "title": "Mine now"},
    )
    assert outcome.status == 403
    assert outcome.error.code == "NOT_POST_OWNER"
    assert (await store.get(Post, post.id)).title == "Post 00"


async def test_empty_update_is_bad_request(app_dispatch, make_context, seed_posts, seed_user):
    [post] = await seed_posts(1)
    outcome = await app_dispatch.call(make_context(seed_user), "post.update", {"id": str(post.id)})
    assert outcome.status == 400
    assert outcome.error.code == "EMPTY_UPDATE"


async def test_update_missing_post_is_not_found(app_dispatch, make_context, seed_user):
    outcome = await app_dispatch.call(
        make_context(seed_user), "post.update", {"id": str(uuid4()), "body": "x"},
    )
    assert outcome.status == 404


async def test_whitespace_title_update_is_parse_error(
    app_dispatch, make_context, store, seed_posts, seed_user,
):
    [post] = await seed_posts(1)
    outcome = await app_dispatch.call(
        make_context(seed_user), "post.update", {"id": str(post.id), "title": "   "},
    )
    assert outcome.status == 422
    assert outcome.error.violations[0].path == "title"
    assert (await store.get(Post, post.id)).title == "Post 00"


# ─── post.delete ─────────────────────────────────────────────────

async def test_owner_delete_removes_post_and_decrements(app_dispatch, make_context, store, seed_user):
    created = await app_dispatch.call(make_context(seed_user), "post.create", {"title": "Temp"})
    outcome = await app_dispatch.call(
        make_context(seed_user), "post.delete", {"id": str(created.data.id)},
    )
    assert outcome.ok
    assert outcome.data == {"id": str(created.data.id), "deleted": True}
    assert await store.get(Post, created.data.id) is None
    assert (await store.get(User, seed_user.id)).post_count == 0


async def test_non_owner_delete_is_forbidden(app_dispatch, make_context, store, seed_posts, other_user):
    [post] = await seed_posts(1)
    outcome = await app_dispatch.call(make_context(other_user), "post.delete", {"id": str(post.id)})
    assert outcome.status == 403
    assert await store.get(Post, post.id) is not None
