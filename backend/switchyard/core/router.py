"""Router — namespace tree of procedures addressed by dotted path.

Invariants:
    - Child names are unique per router, non-empty, and contain no "."
    - Routers form a tree: no router instance is reachable twice
    - resolve() returns exactly one Procedure or a PROCEDURE_NOT_FOUND error (never raises)
    - Routers are read-only after construction and carry no behavior

Design Decisions:
    - create_router accepts (name, child) pairs as well as mappings, so duplicate
      registrations are caught instead of silently overwritten by dict literals
    - Explicit tree over auto-discovery: every procedure path is visible in one place
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Union

from switchyard.core.errors import ConfigurationError, ProcedureError, procedure_not_found
from switchyard.core.procedure import Procedure

Child = Union[Procedure, "Router"]
PATH_SEPARATOR = "."


class Router:
    """Immutable namespace node. Build with create_router() / merge_routers()."""

    __slots__ = ("_children",)

    def __init__(self, children: Mapping[str, Child]):
        self._children = MappingProxyType(dict(children))

    @property
    def children(self) -> Mapping[str, Child]:
        return self._children

    def resolve(self, path: str) -> Procedure | ProcedureError:
        """Walk the dotted path segment by segment. Fails closed."""
        node: Child = self
        for segment in path.split(PATH_SEPARATOR):
            if not isinstance(node, Router):
                return procedure_not_found(path)
            child = node._children.get(segment)
            if child is None:
                return procedure_not_found(path)
            node = child
        if not isinstance(node, Procedure):
            return procedure_not_found(path)
        return node

    def procedures(self, prefix: str = "") -> list[tuple[str, Procedure]]:
        """Every (dotted_path, procedure) pair, depth-first in registration order."""
        found = []
        for name, child in self._children.items():
            path = f"{prefix}{PATH_SEPARATOR}{name}" if prefix else name
            if isinstance(child, Router):
                found.extend(child.procedures(path))
            else:
                found.append((path, child))
        return found

    def __repr__(self) -> str:
        return f"Router({list(self._children)})"


def create_router(children: Mapping[str, Child] | Iterable[tuple[str, Child]]) -> Router:
    """Build a router node. Raises ConfigurationError on any malformed child."""
    pairs = children.items() if isinstance(children, Mapping) else children
    collected: dict[str, Child] = {}
    for name, child in pairs:
        _check_name(name)
        if name in collected:
            raise ConfigurationError(f"Duplicate procedure or router name '{name}'")
        if not isinstance(child, (Procedure, Router)):
            raise ConfigurationError(
                f"'{name}' must be a Procedure or Router, got {type(child).__name__}",
            )
        collected[name] = child
    router = Router(collected)
    _check_tree(router)
    return router


def merge_routers(*routers: Router) -> Router:
    """Flatten several routers into one namespace level. Duplicates are fatal."""
    pairs = [
        (name, child)
        for router in routers
        for name, child in router.children.items()
    ]
    return create_router(pairs)


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ConfigurationError("Router child names must be non-empty strings")
    if PATH_SEPARATOR in name:
        raise ConfigurationError(
            f"Router child name '{name}' must not contain '{PATH_SEPARATOR}'",
        )


def _check_tree(root: Router) -> None:
    """A router or procedure instance may appear only once in the tree."""
    seen: set[int] = set()
    stack: list[tuple[str, Child]] = [("", root)]
    while stack:
        path, node = stack.pop()
        if id(node) in seen:
            raise ConfigurationError(
                f"'{path}' is registered more than once in the router tree",
            )
        seen.add(id(node))
        if isinstance(node, Router):
            for name, child in node.children.items():
                child_path = f"{path}{PATH_SEPARATOR}{name}" if path else name
                stack.append((child_path, child))
