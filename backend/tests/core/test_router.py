"""Router Composition — tests for tree construction and dotted-path resolution.

Tests cover:
    - Every registered path resolves to exactly its procedure
    - Unregistered paths (missing segment, router leaf, too deep) fail closed
    - Duplicate names fail at construction with ConfigurationError, never overwrite
    - Invalid names and reused nodes are rejected
    - merge_routers flattens namespaces with the same duplicate check
"""

import pytest

from switchyard.core.domain_types import ProcedureKind
from switchyard.core.errors import ConfigurationError, ErrorKind, ProcedureError
from switchyard.core.procedure import Procedure, protected_procedure, public_procedure
from switchyard.core.result import Ok
from switchyard.core.router import Router, create_router, merge_routers


async def _handler(ctx, _input):
    return Ok(None)


def _query() -> Procedure:
    return public_procedure.query(_handler)


def _mutation() -> Procedure:
    return protected_procedure.mutation(_handler)


def _tree() -> tuple[Router, dict[str, Procedure]]:
    procs = {
        "health.ping": _query(),
        "post.list": _query(),
        "post.create": _mutation(),
        "admin.user.ban": _mutation(),
    }
    router = create_router({
        "health": create_router({"ping": procs["health.ping"]}),
        "post": create_router({
            "list": procs["post.list"],
            "create": procs["post.create"],
        }),
        "admin": create_router({
            "user": create_router({"ban": procs["admin.user.ban"]}),
        }),
    })
    return router, procs


def test_every_registered_path_resolves_to_its_procedure():
    router, procs = _tree()
    for path, proc in procs.items():
        assert router.resolve(path) is proc


def test_procedures_lists_all_paths():
    router, procs = _tree()
    listed = dict(router.procedures())
    assert set(listed) == set(procs)


@pytest.mark.parametrize("path", [
    "nope",
    "post.nope",
    "post",                  # a router, not a procedure
    "post.list.extra",       # walks through a procedure
    "admin.user",
    "",
    "post..list",
])
def test_unregistered_path_yields_dispatch_not_found(path):
    router, _ = _tree()
    result = router.resolve(path)
    assert isinstance(result, ProcedureError)
    assert result.kind is ErrorKind.NOT_FOUND
    assert result.code == "PROCEDURE_NOT_FOUND"


def test_duplicate_names_fail_at_construction():
    with pytest.raises(ConfigurationError, match="Duplicate"):
        create_router([("create", _mutation()), ("create", _mutation())])


def test_duplicate_across_merge_fails():
    a = create_router({"post": create_router({"list": _query()})})
    b = create_router({"post": create_router({"create": _mutation()})})
    with pytest.raises(ConfigurationError, match="Duplicate"):
        merge_routers(a, b)


def test_merge_routers_flattens_namespaces():
    a = create_router({"health": create_router({"ping": _query()})})
    b = create_router({"post": create_router({"list": _query()})})
    merged = merge_routers(a, b)
    assert {p for p, _ in merged.procedures()} == {"health.ping", "post.list"}


@pytest.mark.parametrize("name", ["", "post.list"])
def test_invalid_child_names_rejected(name):
    with pytest.raises(ConfigurationError):
        create_router({name: _query()})


def test_non_procedure_child_rejected():
    with pytest.raises(ConfigurationError, match="must be a Procedure or Router"):
        create_router({"ping": _handler})


def test_same_procedure_registered_twice_rejected():
    proc = _query()
    with pytest.raises(ConfigurationError, match="more than once"):
        create_router({"a": proc, "b": proc})


def test_same_subrouter_reused_rejected():
    shared = create_router({"ping": _query()})
    with pytest.raises(ConfigurationError, match="more than once"):
        create_router({"a": shared, "b": shared})


def test_router_children_are_read_only():
    router, _ = _tree()
    with pytest.raises(TypeError):
        router.children["new"] = _query()


def test_builder_sets_kind_and_guards():
    query = public_procedure.query(_handler)
    mutation = protected_procedure.mutation(_handler)
    assert query.kind is ProcedureKind.QUERY
    assert mutation.kind is ProcedureKind.MUTATION
    assert len(mutation.guards) == 1


def test_builder_is_immutable():
    base = public_procedure
    extended = base.use(object())
    assert len(base.guards) == 1
    assert len(extended.guards) == 2
