"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, PostId wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
PostId = NewType("PostId", UUID)
ProcedurePath = NewType("ProcedurePath", str)   # dotted, e.g. "post.list"


# ─── Enums ───────────────────────────────────────────────────────

class ProcedureKind(str, Enum):
    """Read-only queries vs. state-changing mutations. Bound to HTTP verb by transport."""
    QUERY = "query"
    MUTATION = "mutation"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"
